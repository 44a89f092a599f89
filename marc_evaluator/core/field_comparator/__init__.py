"""
Weighted field-by-field comparison of a candidate record against a reference record.
"""

from .comparator import FieldComparator, FieldComparison, FieldDiff, RecordComparisonResult, compare_values
from .normalizer import normalize
from .selectors  import ConfigurationError, FieldSelector, SelectorConfig
from .similarity import classify_similarity, similarity

__all__ = [
    'ConfigurationError',
    'FieldComparator',
    'FieldComparison',
    'FieldDiff',
    'FieldSelector',
    'RecordComparisonResult',
    'SelectorConfig',
    'classify_similarity',
    'compare_values',
    'normalize',
    'similarity'
]
