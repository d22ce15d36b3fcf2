"""
Model Inference Module for the Statement Converter.

This module turns raw statement text into transaction records under a
versioned rule contract.

Features:
    - Rule contract shared by every engine
    - Pluggable engines behind the ExtractorPort interface
    - Typed transaction records with Decimal amounts

Engines:
    - gemini: Google Gemini, schema-constrained JSON output
    - rules: deterministic line parser

Author: ML Engineering Team
"""

from .extraction_result import ExtractionOutcome, TransactionRecord
from .rules import DEFAULT_CONTRACT, RuleContract
from .port import ExtractionRequest, ExtractorPort
from .extractor import StructuredTransactionExtractor

__all__ = [
    'StructuredTransactionExtractor',
    'ExtractionOutcome',
    'TransactionRecord',
    'RuleContract',
    'DEFAULT_CONTRACT',
    'ExtractionRequest',
    'ExtractorPort',
]
