"""
Input Handler Module for the Statement Converter.

This module provides functionality for:
    - Loading PDF statement files from disk
    - Extracting the embedded text layer of a PDF
    - Rasterizing a PDF page for OCR
    - The process-wide PDF runtime context

Author: ML Engineering Team
"""

from .handler import InputHandler
from .runtime import PdfRuntimeSettings, initialize_pdf_runtime, get_pdf_runtime
from .text_extractor import TextLayerExtractor
from .rasterizer import PageImage, PageRasterizer

__all__ = [
    'InputHandler',
    'PdfRuntimeSettings',
    'initialize_pdf_runtime',
    'get_pdf_runtime',
    'TextLayerExtractor',
    'PageImage',
    'PageRasterizer'
]
