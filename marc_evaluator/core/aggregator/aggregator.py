import numpy as np

from collections                                     import Counter
from dataclasses                                     import dataclass, field
from datetime                                        import datetime
from marc_evaluator.core.field_comparator.comparator import FieldComparison, RecordComparisonResult
from marc_evaluator.core.field_comparator.selectors  import SelectorConfig
from marc_evaluator.core.module_logger               import ModuleLogger
from typing                                          import Any, Iterable

logger = ModuleLogger('aggregator')()

# -------------------- Data Classes --------------------

@dataclass(frozen = True)
class EvaluationResult:
    """
    One attempted record: either a comparison or the error that prevented it.
    """
    record_id        : str
    comparison       : RecordComparisonResult | None = None
    error            : str | None                    = None
    generated_record : str                           = ''
    reference_record : str                           = ''
    processing_time  : float                         = 0.0   # Seconds

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.comparison is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            'id'                : self.record_id,
            'reference_marc'    : self.reference_record,
            'generated_marc'    : self.generated_record,
            'comparison_result' : self.comparison.to_dict() if self.comparison else None,
            'error'             : self.error,
            'processing_time'   : self.processing_time
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'EvaluationResult':
        comparison = data.get('comparison_result')
        return cls(
            record_id        = str(data.get('id', '')),
            comparison       = RecordComparisonResult.from_dict(comparison) if comparison else None,
            error            = data.get('error') or None,
            generated_record = data.get('generated_marc') or '',
            reference_record = data.get('reference_marc') or '',
            processing_time  = float(data.get('processing_time') or 0.0)
        )

@dataclass
class FieldStats:
    """
    Running statistics for one selector across successful comparisons.
    """
    count     : int     = 0
    score_sum : float   = 0.0
    histogram : Counter = field(default_factory = Counter)   # Classification -> occurrences

    @property
    def average(self) -> float:
        return self.score_sum / self.count if self.count else 0.0

    def add(self, comparison: FieldComparison) -> None:
        self.count     += 1
        self.score_sum += comparison.score
        self.histogram[comparison.method] += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            'count'         : self.count,
            'score_sum'     : self.score_sum,
            'average_score' : self.average,
            'histogram'     : dict(self.histogram)
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'FieldStats':
        return cls(
            count     = int(data.get('count', 0)),
            score_sum = float(data.get('score_sum', 0.0)),
            histogram = Counter(data.get('histogram', {}))
        )

@dataclass(frozen = True)
class AggregateResult:
    """
    Dataset-level view of an evaluation run, built once from the complete list of results.
    """
    total_records           : int
    success_count           : int
    failure_count           : int
    selectors               : list[str]               # Configured selector names, in configuration order
    field_stats             : dict[str, FieldStats]
    extra_field_counts      : dict[str, int]
    mean_score              : float
    median_score            : float
    min_score               : float
    max_score               : float
    average_processing_time : float
    total_processing_time   : float
    evaluation_date         : str
    provider                : str
    model                   : str
    sample_size             : int
    dataset                 : str
    profile                 : str
    results                 : list[EvaluationResult] = field(default_factory = list)

    @property
    def field_accuracies(self) -> dict[str, float]:
        return {name: stats.average for name, stats in self.field_stats.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            'metadata' : {
                'evaluation_date' : self.evaluation_date,
                'provider'        : self.provider,
                'model'           : self.model,
                'sample_size'     : self.sample_size,
                'dataset'         : self.dataset,
                'profile'         : self.profile,
                'selectors'       : list(self.selectors)
            },
            'summary' : {
                'total_records'           : self.total_records,
                'successful_evals'        : self.success_count,
                'failed_evals'            : self.failure_count,
                'average_score'           : self.mean_score,
                'median_score'            : self.median_score,
                'min_score'               : self.min_score,
                'max_score'               : self.max_score,
                'average_processing_time' : self.average_processing_time,
                'total_processing_time'   : self.total_processing_time,
                'field_stats'             : {name: stats.to_dict() for name, stats in self.field_stats.items()},
                'extra_field_counts'      : dict(self.extra_field_counts)
            },
            'results' : [result.to_dict() for result in self.results]
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'AggregateResult':
        metadata = data.get('metadata', {})
        summary  = data.get('summary', {})

        return cls(
            total_records           = int(summary.get('total_records', 0)),
            success_count           = int(summary.get('successful_evals', 0)),
            failure_count           = int(summary.get('failed_evals', 0)),
            selectors               = list(metadata.get('selectors', [])),
            field_stats             = {name: FieldStats.from_dict(item) for name, item in summary.get('field_stats', {}).items()},
            extra_field_counts      = dict(summary.get('extra_field_counts', {})),
            mean_score              = float(summary.get('average_score', 0.0)),
            median_score            = float(summary.get('median_score', 0.0)),
            min_score               = float(summary.get('min_score', 0.0)),
            max_score               = float(summary.get('max_score', 0.0)),
            average_processing_time = float(summary.get('average_processing_time', 0.0)),
            total_processing_time   = float(summary.get('total_processing_time', 0.0)),
            evaluation_date         = metadata.get('evaluation_date', ''),
            provider                = metadata.get('provider', ''),
            model                   = metadata.get('model', ''),
            sample_size             = int(metadata.get('sample_size', 0)),
            dataset                 = metadata.get('dataset', ''),
            profile                 = metadata.get('profile', ''),
            results                 = [EvaluationResult.from_dict(item) for item in data.get('results', [])]
        )

# -------------------- Aggregator Class --------------------

class Aggregator:
    """
    Reduces per-record evaluation results into dataset-level statistics.
    """

    def __init__(self, config: SelectorConfig):
        """
        Initializes the Aggregator instance.

        Args:
            config : Selector configuration the results were produced with
        """
        self.config = config

    def aggregate(self, results: Iterable[EvaluationResult], metadata: dict[str, Any] | None = None) -> AggregateResult:
        """
        Aggregates a complete sequence of evaluation results.

        Failed attempts count toward the totals only. Each selector is averaged over
        the successful comparisons that contain it.

        Args:
            results  : Every attempted record, in a stable order
            metadata : Provenance with optional 'provider', 'model', 'dataset',
                       'evaluation_date' and 'sample_size' keys

        Returns:
            AggregateResult: The finished aggregate
        """
        results  = list(results)
        metadata = metadata or {}

        field_stats  = {name: FieldStats() for name in self.config.names}
        extra_counts = Counter()
        scores       = []
        success_time = 0.0

        for result in results:
            if not result.succeeded:
                continue

            scores.append(result.comparison.overall_score)
            success_time += result.processing_time

            for name, comparison in result.comparison.fields.items():
                field_stats.setdefault(name, FieldStats()).add(comparison)

            extra_counts.update(result.comparison.extra.keys())

        success_count = len(scores)
        distribution  = self.score_distribution(scores)

        aggregate = AggregateResult(
            total_records           = len(results),
            success_count           = success_count,
            failure_count           = len(results) - success_count,
            selectors               = self.config.names,
            field_stats             = field_stats,
            extra_field_counts      = dict(sorted(extra_counts.items())),
            average_processing_time = success_time / success_count if success_count else 0.0,
            total_processing_time   = sum(result.processing_time for result in results),
            evaluation_date         = metadata.get('evaluation_date') or datetime.now().isoformat(timespec = 'seconds'),
            provider                = metadata.get('provider', ''),
            model                   = metadata.get('model', ''),
            sample_size             = int(metadata.get('sample_size', len(results))),
            dataset                 = str(metadata.get('dataset', '')),
            profile                 = self.config.name,
            results                 = results,
            **distribution
        )

        logger.info(
            f"Aggregated {aggregate.total_records} records "
            f"({aggregate.success_count} succeeded, {aggregate.failure_count} failed), "
            f"mean score {aggregate.mean_score:.3f}"
        )
        return aggregate

    @staticmethod
    def score_distribution(scores: list[float]) -> dict[str, float]:
        """
        Mean, median, min and max of the overall scores; all zeros without scores.
        """
        if not scores:
            return {'mean_score': 0.0, 'median_score': 0.0, 'min_score': 0.0, 'max_score': 0.0}

        values = np.asarray(scores, dtype = float)
        return {
            'mean_score'   : float(np.mean(values)),
            'median_score' : float(np.median(values)),
            'min_score'    : float(np.min(values)),
            'max_score'    : float(np.max(values))
        }
