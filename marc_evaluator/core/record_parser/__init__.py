"""
Parsing of raw MARC records into the canonical field model.
"""

from .models import CanonicalRecord, Field, SubValue
from .parser import ParseError, RecordParser

__all__ = ['CanonicalRecord', 'Field', 'ParseError', 'RecordParser', 'SubValue']
