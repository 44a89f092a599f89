import json
import time

from concurrent.futures                          import ThreadPoolExecutor
from dataclasses                                 import replace
from datetime                                    import date, datetime
from marc_evaluator.core.aggregator.aggregator   import AggregateResult, Aggregator, EvaluationResult
from marc_evaluator.core.dataset_loader.loader   import save_dataset
from marc_evaluator.core.dataset_loader.models   import DatasetError, DatasetItem, EvaluationDataset, InstitutionalBooksRecord
from marc_evaluator.core.field_comparator        import FieldComparator, SelectorConfig
from marc_evaluator.core.ground_truth            import (
    BookMetadata, book_metadata_to_canonical_record, canonical_record_to_mnemonic, metadata_to_canonical_record
)
from marc_evaluator.core.module_logger           import ModuleLogger
from marc_evaluator.core.record_parser           import CanonicalRecord, RecordParser
from marc_evaluator.core.report_renderer         import ReportRenderer
from omegaconf                                   import DictConfig, OmegaConf
from pathlib                                     import Path
from typing                                      import Any, Callable, Iterable

logger = ModuleLogger('runner')()

CandidateSource = Callable[[DatasetItem], str | None]
RESULTS_FILE    = 'results.json'
METADATA_FORMAT = 'metadata'   # Generated output declared as JSON metadata instead of a MARC encoding

def stored_candidate(item: DatasetItem) -> str | None:
    """
    Default candidate source: the generated record already stored on the item.
    """
    return item.generated_marc

def parse_candidate(parser: RecordParser, text: str, declared_format: str | None = None) -> CanonicalRecord:
    """
    Parses generated output into a candidate record. JSON metadata is mapped onto
    the fields a reference record built from source metadata carries.

    Raises:
        ParseError: If the text is not a usable record or metadata object
    """
    if declared_format == METADATA_FORMAT:
        return book_metadata_to_canonical_record(BookMetadata.from_json(text))
    return parser.parse(text, declared_format)

def load_settings(config_file: Path | None = None, overrides: dict[str, Any] | None = None) -> DictConfig:
    """
    Loads evaluator.yml, merging optional overrides over the file values.
    """
    settings = OmegaConf.load(config_file or SelectorConfig.CONFIG_FILE)
    if overrides:
        settings = OmegaConf.merge(settings, OmegaConf.create(overrides))
    return settings

# -------------------- EvaluationRunner Class --------------------

class EvaluationRunner:
    """
    Evaluates dataset items in a fixed-size worker pool and aggregates the results.

    Every item yields exactly one EvaluationResult. A record that fails to generate,
    parse or compare is logged and recorded as a failed attempt; the batch continues.
    """

    def __init__(
        self,
        config      : SelectorConfig,
        parser      : RecordParser | None = None,
        max_workers : int                 = 4
    ):
        """
        Initializes the EvaluationRunner instance.

        Args:
            config      : Selector configuration shared by comparator and aggregator
            parser      : Optional record parser, e.g. one with a record size cap
            max_workers : Number of records evaluated concurrently
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.config      = config
        self.parser      = parser or RecordParser()
        self.comparator  = FieldComparator(config)
        self.aggregator  = Aggregator(config)
        self.max_workers = max_workers

    @classmethod
    def from_settings(cls, settings: DictConfig, profile: str | None = None, config_file: Path | None = None) -> 'EvaluationRunner':
        """
        Builds a runner from the 'evaluation' section of evaluator.yml.
        """
        evaluation = settings.evaluation
        return cls(
            config      = SelectorConfig.from_profile(profile or evaluation.profile, config_file = config_file),
            parser      = RecordParser(max_record_bytes = evaluation.get('max_record_bytes')),
            max_workers = int(evaluation.get('max_workers', 4))
        )

    def evaluate_item(self, item: DatasetItem, generated_text: str | None) -> EvaluationResult:
        """
        Parses and compares one item's reference record against generated text.

        Returns:
            EvaluationResult: The comparison, or the error that prevented it
        """
        start = time.perf_counter()

        def failed(message: str) -> EvaluationResult:
            logger.error(f"Record {item.id}: {message}")
            return EvaluationResult(
                record_id        = item.id,
                error            = message,
                generated_record = generated_text or '',
                reference_record = item.reference_marc,
                processing_time  = time.perf_counter() - start
            )

        if not generated_text or not generated_text.strip():
            return failed("No generated record available")

        try:
            reference  = self.parser.parse(item.reference_marc, item.reference_format)
            candidate  = parse_candidate(self.parser, generated_text, item.generated_format)
            comparison = self.comparator.compare(reference, candidate)
        except Exception as e:
            return failed(f"Failed to compare records: {e}")

        logger.info(f"Record {item.id}: overall score {comparison.overall_score:.3f}")
        return EvaluationResult(
            record_id        = item.id,
            comparison       = comparison,
            generated_record = generated_text,
            reference_record = item.reference_marc,
            processing_time  = time.perf_counter() - start
        )

    def run(
        self,
        items            : Iterable[DatasetItem],
        candidate_source : CandidateSource | None = None,
        metadata         : dict[str, Any] | None  = None
    ) -> AggregateResult:
        """
        Evaluates every item concurrently and aggregates the results.

        Results are collected in submission order, so the aggregate is the same
        whatever order the workers finish in.

        Args:
            items            : Dataset items to evaluate
            candidate_source : Callable producing the generated record text for an item;
                               defaults to the item's stored generated_marc
            metadata         : Provenance passed through to the aggregate

        Returns:
            AggregateResult: Aggregate over every item
        """
        items    = list(items)
        source   = candidate_source or stored_candidate
        metadata = {'sample_size': len(items), **(metadata or {})}

        def work(item: DatasetItem) -> EvaluationResult:
            start = time.perf_counter()
            try:
                generated_text = source(item)
            except Exception as e:
                logger.error(f"Record {item.id}: failed to generate record: {e}")
                return EvaluationResult(
                    record_id        = item.id,
                    error            = f"Failed to generate record: {e}",
                    reference_record = item.reference_marc,
                    processing_time  = time.perf_counter() - start
                )

            result = self.evaluate_item(item, generated_text)
            return replace(result, processing_time = time.perf_counter() - start)

        logger.info(f"Evaluating {len(items)} items with {self.max_workers} workers (profile '{self.config.name}')")

        with ThreadPoolExecutor(max_workers = self.max_workers) as executor:
            futures = [executor.submit(work, item) for item in items]
            results = [future.result() for future in futures]

        return self.aggregator.aggregate(results, metadata)

# -------------------- Result Persistence --------------------

def save_results(aggregate: AggregateResult, output_dir: Path | str) -> Path:
    """
    Writes the aggregate to output_dir/results.json.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents = True, exist_ok = True)

    results_path = output_dir / RESULTS_FILE
    with results_path.open('w', encoding = 'utf-8') as file:
        json.dump(aggregate.to_dict(), file, indent = 2, ensure_ascii = False)

    logger.info(f"Saved results for {aggregate.total_records} records to {results_path}")
    return results_path

def load_results(results_dir: Path | str) -> AggregateResult:
    """
    Reads results.json written by save_results.

    Raises:
        OSError      : If the file cannot be read
        DatasetError : If the file is not valid JSON
    """
    results_path = Path(results_dir) / RESULTS_FILE

    with results_path.open('r', encoding = 'utf-8') as file:
        try:
            data = json.load(file)
        except json.JSONDecodeError as e:
            raise DatasetError(f"Failed to decode {results_path}: {e}") from e

    return AggregateResult.from_dict(data)

def save_eval_yaml(aggregate: AggregateResult, evals_dir: Path | str) -> Path:
    """
    Writes the eval YAML document to evals_dir/<model>-<timestamp>.yaml.
    """
    evals_dir = Path(evals_dir)
    evals_dir.mkdir(parents = True, exist_ok = True)

    timestamp = datetime.now().strftime('%Y-%m-%d_%H-%M-%S')
    eval_path = evals_dir / f"{aggregate.model or 'model'}-{timestamp}.yaml"
    eval_path.write_text(ReportRenderer(aggregate).render_yaml(), encoding = 'utf-8')

    logger.info(f"Saved eval YAML to {eval_path}")
    return eval_path

# -------------------- Reference Dataset --------------------

def build_reference_dataset(
    records    : Iterable[InstitutionalBooksRecord],
    output_dir : Path | str,
    entered_on : date | None = None
) -> EvaluationDataset:
    """
    Builds and saves a dataset whose reference records come from source metadata.
    Records without a barcode or title cannot be identified or compared and are skipped.
    """
    items = []
    for record in records:
        if not record.barcode_src or not record.title_src:
            logger.warning(f"Skipping record without barcode or title: {record.barcode_src or '(no barcode)'}")
            continue

        reference = metadata_to_canonical_record(record, entered_on = entered_on)
        items.append(DatasetItem(
            id               = record.barcode_src,
            reference_marc   = canonical_record_to_mnemonic(reference),
            reference_format = 'mnemonic'
        ))

    dataset = EvaluationDataset(items = items)
    save_dataset(dataset, output_dir)
    return dataset
