"""
Canonical record construction from Institutional Books source metadata and
from extracted JSON metadata.
"""

from .builder  import canonical_record_to_mnemonic, metadata_to_canonical_record
from .metadata import BookMetadata, book_metadata_to_canonical_record, clean_json

__all__ = [
    'BookMetadata',
    'book_metadata_to_canonical_record',
    'canonical_record_to_mnemonic',
    'clean_json',
    'metadata_to_canonical_record'
]
