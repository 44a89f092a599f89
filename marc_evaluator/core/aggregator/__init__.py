"""
Dataset-level aggregation of per-record evaluation results.
"""

from .aggregator import AggregateResult, Aggregator, EvaluationResult, FieldStats

__all__ = ['AggregateResult', 'Aggregator', 'EvaluationResult', 'FieldStats']
