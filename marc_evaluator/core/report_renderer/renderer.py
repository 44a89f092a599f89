import csv
import io
import json

from marc_evaluator.core.aggregator.aggregator import AggregateResult, EvaluationResult
from marc_evaluator.core.module_logger         import ModuleLogger
from marc_evaluator.core.utils                 import Utils
from ruamel.yaml                               import YAML

logger = ModuleLogger('renderer')()

class ReportRenderer:
    """
    Renders an AggregateResult as text, JSON, CSV or an eval YAML document.
    """
    FORMATS        = ('text', 'json', 'csv', 'yaml')
    WIDTH          = 70
    MAX_VALUE_SIZE = 80
    CSV_HEADER     = ['id', 'overall_score', 'missing_fields', 'extra_fields', 'error']

    def __init__(self, aggregate: AggregateResult):
        """
        Initializes the ReportRenderer instance.

        Args:
            aggregate : Finished aggregate to render
        """
        self.aggregate = aggregate

    def render(self, output_format: str) -> str:
        """
        Renders the aggregate in one of FORMATS.

        Raises:
            ValueError: If the format is not supported
        """
        if output_format not in self.FORMATS:
            raise ValueError(f"Unsupported report format '{output_format}'; expected one of {list(self.FORMATS)}")

        logger.info(f"Rendering {output_format} report for {self.aggregate.total_records} records")
        return getattr(self, f'render_{output_format}')()

    @property
    def selector_names(self) -> list[str]:
        """
        Configured selectors in configuration order, followed by any others seen in the results.
        """
        names = list(self.aggregate.selectors)
        return names + [name for name in self.aggregate.field_stats if name not in names]

    # -------------------- Text --------------------

    def render_text(self) -> str:
        agg   = self.aggregate
        lines = []
        rule  = '=' * self.WIDTH
        dash  = '-' * self.WIDTH

        def percent(count: int) -> float:
            return count / agg.total_records * 100 if agg.total_records else 0.0

        lines += [
            rule,
            "MARC RECORD EVALUATION SUMMARY",
            rule,
            f"Evaluation Date : {agg.evaluation_date}",
            f"Provider        : {agg.provider}",
            f"Model           : {agg.model}",
            f"Dataset         : {agg.dataset}",
            f"Profile         : {agg.profile}",
            f"Sample Size     : {agg.sample_size} records",
            "",
            "PROCESSING STATISTICS",
            dash,
            f"Total Records           : {agg.total_records}",
            f"Successful              : {agg.success_count} ({percent(agg.success_count):.1f}%)",
            f"Failed                  : {agg.failure_count} ({percent(agg.failure_count):.1f}%)",
            f"Average Processing Time : {agg.average_processing_time:.2f}s",
            f"Total Processing Time   : {agg.total_processing_time:.2f}s",
            "",
            "FIELD-LEVEL ACCURACY",
            dash,
            f"{'Field':<22} {'Count':>6} {'Average':>9}  Classifications"
        ]

        for name in self.selector_names:
            stats     = agg.field_stats.get(name)
            if stats is None:
                continue
            histogram = ', '.join(f"{method}={count}" for method, count in sorted(stats.histogram.items()))
            lines.append(f"{name:<22} {stats.count:>6} {stats.average * 100:>8.2f}%  {histogram}")

        if agg.extra_field_counts:
            lines += ["", "Extra Fields:"]
            lines += [f"  {tag}: {count}" for tag, count in agg.extra_field_counts.items()]

        lines += [
            "",
            "OVERALL SCORE",
            dash,
            f"Average Score : {agg.mean_score * 100:.2f}%",
            f"Median Score  : {agg.median_score * 100:.2f}%",
            f"Min Score     : {agg.min_score * 100:.2f}%",
            f"Max Score     : {agg.max_score * 100:.2f}%",
            rule,
            "",
            "DETAILED RESULTS",
            rule
        ]

        for index, result in enumerate(agg.results, start = 1):
            lines += self.record_lines(index, result)

        return '\n'.join(lines) + '\n'

    def record_lines(self, index: int, result: EvaluationResult) -> list[str]:
        lines = ["", f"[{index}] Record ID: {result.record_id}"]

        if not result.succeeded:
            lines.append(f"  Error: {result.error or 'no comparison produced'}")
            return lines

        comparison = result.comparison
        lines.append(f"  Overall Score: {comparison.overall_score * 100:.2f}%")
        lines.append(f"  Total Edit Distance: {comparison.total_distance}")

        if comparison.missing_fields:
            lines.append(f"  Missing Fields: {', '.join(comparison.missing_fields)}")
        if comparison.extra_fields:
            lines.append(f"  Extra Fields: {', '.join(comparison.extra_fields)}")

        lines.append("  Field Scores:")
        for name, field in comparison.fields.items():
            lines.append(f"    {name}: {field.score * 100:.2f}% ({field.method})")

        if comparison.diffs:
            lines.append("  Significant Differences:")
            for diff in comparison.diffs:
                lines += [
                    f"    {diff.name} ({diff.similarity * 100:.0f}% similar):",
                    f"      Reference: {Utils.truncate(diff.reference, self.MAX_VALUE_SIZE)}",
                    f"      Generated: {Utils.truncate(diff.generated, self.MAX_VALUE_SIZE)}"
                ]

        return lines

    # -------------------- JSON / CSV / YAML --------------------

    def render_json(self) -> str:
        return json.dumps(self.aggregate.to_dict(), indent = 2, ensure_ascii = False)

    def render_csv(self) -> str:
        """
        One row per record; failed records report zero scores and their error.
        """
        names  = self.selector_names
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator = '\n')

        writer.writerow(self.CSV_HEADER + [f'field_{name}' for name in names])

        for result in self.aggregate.results:
            if not result.succeeded:
                row = [result.record_id, '0', '', '', result.error or '']
                writer.writerow(row + ['0'] * len(names))
                continue

            comparison = result.comparison
            scores     = comparison.field_scores
            row        = [
                result.record_id,
                f"{comparison.overall_score:.4f}",
                ';'.join(comparison.missing_fields),
                ';'.join(comparison.extra_fields),
                ''
            ]
            writer.writerow(row + [f"{scores[name]:.4f}" if name in scores else '0' for name in names])

        return buffer.getvalue()

    def render_yaml(self) -> str:
        """
        Eval document with a 'config' block and one entry per successful record.
        Record text is written verbatim; nothing in it is treated as interpolation.
        """
        agg      = self.aggregate
        document = {
            'config' : {
                'provider'    : agg.provider,
                'model'       : agg.model,
                'profile'     : agg.profile,
                'dataset'     : agg.dataset,
                'sample_size' : agg.sample_size,
                'timestamp'   : agg.evaluation_date
            },
            'results' : []
        }

        for result in agg.results:
            if not result.succeeded:
                continue

            document['results'].append({
                'identifier'        : result.record_id,
                'provider_response' : result.generated_record,
                'reference_marc'    : result.reference_record,
                'overall_score'     : result.comparison.overall_score,
                'fields_matched'    : result.comparison.fields_matched,
                'fields_missing'    : len(result.comparison.missing_fields),
                'fields_incorrect'  : result.comparison.fields_incorrect,
                'total_distance'    : result.comparison.total_distance,
                'field_scores'      : result.comparison.field_scores
            })

        yaml = YAML()
        yaml.default_flow_style = False

        buffer = io.StringIO()
        yaml.dump(document, buffer)
        return buffer.getvalue()
