"""
Evaluation dataset files and Institutional Books metadata loading.
"""

from .loader import InstitutionalBooksLoader, append_dataset_item, load_dataset, save_dataset
from .models import DatasetError, DatasetItem, EvaluationDataset, Identifiers, InstitutionalBooksRecord

__all__ = [
    'DatasetError',
    'DatasetItem',
    'EvaluationDataset',
    'Identifiers',
    'InstitutionalBooksLoader',
    'InstitutionalBooksRecord',
    'append_dataset_item',
    'load_dataset',
    'save_dataset'
]
