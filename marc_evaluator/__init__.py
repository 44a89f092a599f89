"""
MARC Evaluator
Field-by-field evaluation of generated MARC catalog records against reference records.
"""

__version__ = '0.1.0'

from marc_evaluator.core.utils             import Utils
from marc_evaluator.core.module_logger     import ModuleLogger
from marc_evaluator.core.record_parser     import CanonicalRecord, ParseError, RecordParser
from marc_evaluator.core.field_comparator  import ConfigurationError, FieldComparator, SelectorConfig
from marc_evaluator.core.aggregator        import AggregateResult, Aggregator, EvaluationResult
from marc_evaluator.core.report_renderer   import ReportRenderer
from marc_evaluator.core.dataset_loader    import DatasetError, InstitutionalBooksLoader
from marc_evaluator.core.ground_truth      import metadata_to_canonical_record
from marc_evaluator.core.evaluation_runner import EvaluationRunner

__all__ = [
    'Utils',
    'ModuleLogger',
    'CanonicalRecord',
    'ParseError',
    'RecordParser',
    'ConfigurationError',
    'FieldComparator',
    'SelectorConfig',
    'AggregateResult',
    'Aggregator',
    'EvaluationResult',
    'ReportRenderer',
    'DatasetError',
    'InstitutionalBooksLoader',
    'metadata_to_canonical_record',
    'EvaluationRunner'
]
