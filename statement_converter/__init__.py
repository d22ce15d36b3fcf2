"""
Statement Converter - Source Package.

This package contains all core modules for converting bank statement
PDFs, text-native or scanned, into a table of transactions. Each module
has a single responsibility.

Modules:
    - input_handler: PDF loading, text layer, rasterization, PDF runtime
    - ocr_engine: Optical text recognition of a rendered page
    - model_inference: Rule-governed structured transaction extraction
    - postprocessor: Normalization and record sanitization
    - output_handler: TableMatrix formatting and Excel export
    - pipeline: Mode selection, state machine, quota gate interface

Architecture:
    Text layer → Mode → {Text | Rasterize → OCR} → Structuring → Sanitize → Table
"""

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

__all__ = [
    'input_handler',
    'ocr_engine',
    'model_inference',
    'postprocessor',
    'output_handler',
    'pipeline',
    'utils'
]
