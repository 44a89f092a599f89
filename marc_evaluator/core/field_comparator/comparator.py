from dataclasses                                     import dataclass, field
from marc_evaluator.core.field_comparator.normalizer import normalize
from marc_evaluator.core.field_comparator.selectors  import SelectorConfig
from marc_evaluator.core.field_comparator.similarity import (
    BOTH_MISSING_SCORE, EXACT_SCORE, HIGH_SIMILARITY_THRESHOLD, SUBSTRING_FLOOR,
    classify_similarity, field_distance, similarity
)
from marc_evaluator.core.record_parser.models        import CanonicalRecord
from typing                                          import Any

# Fields scoring below this are reported as significant differences.
DIFF_THRESHOLD = HIGH_SIMILARITY_THRESHOLD

# Methods counted as a matched or an incorrect field in record summaries.
MATCHED_METHODS   = frozenset({'exact', 'substring', 'high'})
INCORRECT_METHODS = frozenset({'medium', 'low'})

# -------------------- Data Classes --------------------

@dataclass(frozen = True)
class FieldComparison:
    """
    Outcome of comparing one selector's value between reference and candidate.
    """
    name     : str
    expected : str
    actual   : str
    score    : float
    method   : str    # exact, substring, high, medium, low, both_missing, no_reference, missing, extra
    notes    : str = ''

    def to_dict(self) -> dict[str, Any]:
        return {
            'expected' : self.expected,
            'actual'   : self.actual,
            'score'    : self.score,
            'method'   : self.method,
            'notes'    : self.notes
        }

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> 'FieldComparison':
        return cls(
            name     = name,
            expected = data.get('expected', ''),
            actual   = data.get('actual', ''),
            score    = float(data.get('score', 0.0)),
            method   = data.get('method', ''),
            notes    = data.get('notes', '')
        )

@dataclass(frozen = True)
class FieldDiff:
    """
    Low-similarity field kept for human inspection, with the raw values of both sides.
    """
    name       : str
    reference  : str
    generated  : str
    similarity : float

    def to_dict(self) -> dict[str, Any]:
        return {
            'field'      : self.name,
            'reference'  : self.reference,
            'generated'  : self.generated,
            'similarity' : self.similarity
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'FieldDiff':
        return cls(
            name       = data.get('field', ''),
            reference  = data.get('reference', ''),
            generated  = data.get('generated', ''),
            similarity = float(data.get('similarity', 0.0))
        )

@dataclass(frozen = True)
class RecordComparisonResult:
    """
    Per-record comparison output consumed by the aggregator.
    """
    fields         : dict[str, FieldComparison]                              # Configured selectors, in configuration order
    overall_score  : float
    missing_fields : list[str]                  = field(default_factory = list)
    extra_fields   : list[str]                  = field(default_factory = list)
    extra          : dict[str, FieldComparison] = field(default_factory = dict)
    diffs          : list[FieldDiff]            = field(default_factory = list)
    total_distance : int                        = 0   # Summed edit distance of the normalized selector values

    @property
    def field_scores(self) -> dict[str, float]:
        return {name: comparison.score for name, comparison in self.fields.items()}

    @property
    def fields_matched(self) -> int:
        return sum(comparison.method in MATCHED_METHODS for comparison in self.fields.values())

    @property
    def fields_incorrect(self) -> int:
        return sum(comparison.method in INCORRECT_METHODS for comparison in self.fields.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            'fields'            : {name: comparison.to_dict() for name, comparison in self.fields.items()},
            'overall_score'     : self.overall_score,
            'missing_fields'    : list(self.missing_fields),
            'extra_fields'      : list(self.extra_fields),
            'extra'             : {name: comparison.to_dict() for name, comparison in self.extra.items()},
            'field_differences' : [diff.to_dict() for diff in self.diffs],
            'total_distance'    : self.total_distance
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'RecordComparisonResult':
        return cls(
            fields         = {name: FieldComparison.from_dict(name, item) for name, item in data.get('fields', {}).items()},
            overall_score  = float(data.get('overall_score', 0.0)),
            missing_fields = list(data.get('missing_fields', [])),
            extra_fields   = list(data.get('extra_fields', [])),
            extra          = {name: FieldComparison.from_dict(name, item) for name, item in data.get('extra', {}).items()},
            diffs          = [FieldDiff.from_dict(item) for item in data.get('field_differences', [])],
            total_distance = int(data.get('total_distance', 0))
        )

# -------------------- Field Comparison --------------------

def compare_values(name: str, expected: str, actual: str) -> FieldComparison:
    """
    Scores one pair of extracted values.

    Rules are applied in order, emptiness being judged after normalization:
        1. both empty              -> 0.5, both_missing
        2. reference empty         -> 0.0, no_reference
        3. candidate empty         -> 0.0, missing
        4. normalized values equal -> 1.0, exact
        5. one contains the other  -> at least 0.8, substring
        6. otherwise               -> edit-distance similarity, high / medium / low
    """
    expected_norm, actual_norm = normalize(expected), normalize(actual)

    def result(score: float, method: str, notes: str) -> FieldComparison:
        return FieldComparison(name = name, expected = expected, actual = actual, score = score, method = method, notes = notes)

    if not expected_norm and not actual_norm:
        return result(BOTH_MISSING_SCORE, 'both_missing', "Both fields are empty")

    if not expected_norm:
        return result(0.0, 'no_reference', "No reference value (ground truth missing)")

    if not actual_norm:
        return result(0.0, 'missing', "Generated record is missing this field")

    if expected_norm == actual_norm:
        return result(EXACT_SCORE, 'exact', "Exact match")

    score = similarity(expected_norm, actual_norm)

    if expected_norm in actual_norm or actual_norm in expected_norm:
        return result(max(SUBSTRING_FLOOR, score), 'substring', f"Partial match (substring found, similarity {score:.2f})")

    method = classify_similarity(score)
    return result(score, method, f"{method.capitalize()} similarity ({score:.2f})")

# -------------------- FieldComparator Class --------------------

class FieldComparator:
    """
    Compares a candidate record against a reference record using a weighted
    selector configuration, producing one RecordComparisonResult per pair.
    """

    def __init__(self, config: SelectorConfig):
        """
        Initializes the FieldComparator instance.

        Args:
            config : Validated selector configuration supplying extraction rules and weights
        """
        self.config = config

    def compare(self, reference: CanonicalRecord, candidate: CanonicalRecord) -> RecordComparisonResult:
        """
        Compares every configured selector, then flags candidate fields outside the configuration.

        Args:
            reference : Trusted reference record
            candidate : Generated record under evaluation

        Returns:
            RecordComparisonResult: Weighted overall score with per-field diagnostics
        """
        fields         = {}
        missing_fields = []
        extra_fields   = []
        diffs          = []
        weighted_score = 0.0
        total_distance = 0

        for selector in self.config:
            comparison = compare_values(selector.name, selector.extract(reference), selector.extract(candidate))
            fields[selector.name] = comparison
            weighted_score       += selector.weight * comparison.score
            total_distance       += field_distance(comparison.expected, comparison.actual)

            if comparison.method == 'missing':
                missing_fields.append(selector.name)
            elif comparison.method == 'no_reference':
                extra_fields.append(selector.name)

            if comparison.score < DIFF_THRESHOLD:
                diffs.append(FieldDiff(
                    name       = selector.name,
                    reference  = comparison.expected,
                    generated  = comparison.actual,
                    similarity = comparison.score
                ))

        extra = self.find_unconfigured_fields(reference, candidate)
        extra_fields.extend(extra)

        return RecordComparisonResult(
            fields         = fields,
            overall_score  = weighted_score / self.config.total_weight,
            missing_fields = missing_fields,
            extra_fields   = extra_fields,
            extra          = extra,
            diffs          = diffs,
            total_distance = total_distance
        )

    def find_unconfigured_fields(self, reference: CanonicalRecord, candidate: CanonicalRecord) -> dict[str, FieldComparison]:
        """
        Finds candidate data fields that no selector covers and the reference lacks.
        They score 0.0 and never enter the weighted sum.
        """
        reference_tags = set(reference.tags())
        extra          = {}

        for tag in sorted(candidate.tags()):
            if tag in reference_tags or self.config.covers(tag):
                continue

            fields = [field for field in candidate.get_fields(tag) if not field.is_control]
            if not fields:
                continue

            extra[tag] = FieldComparison(
                name     = tag,
                expected = '',
                actual   = fields[0].text(),
                score    = 0.0,
                method   = 'extra',
                notes    = "Field not covered by the selector configuration"
            )

        return extra
