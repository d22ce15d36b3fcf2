"""
Post-Processing Module for the Statement Converter.

This module provides functionality for:
    - Date normalization
    - Amount normalization to Decimal
    - Mandatory-field sanitization of transaction batches

Author: ML Engineering Team
"""

from .normalizers import DateNormalizer, AmountNormalizer
from .processor import RecordSanitizer

__all__ = [
    'RecordSanitizer',
    'DateNormalizer',
    'AmountNormalizer'
]
