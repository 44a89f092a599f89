"""
Concurrent evaluation of dataset items and persistence of results.
"""

from .runner import (
    METADATA_FORMAT, EvaluationRunner, build_reference_dataset, load_results, load_settings,
    parse_candidate, save_eval_yaml, save_results, stored_candidate
)

__all__ = [
    'METADATA_FORMAT',
    'EvaluationRunner',
    'build_reference_dataset',
    'load_results',
    'load_settings',
    'parse_candidate',
    'save_eval_yaml',
    'save_results',
    'stored_candidate'
]
