"""
OCR Engine Module for the Statement Converter.

Recognizes text on rasterized pages of image-based statements.

Supports multiple OCR backends:
    - Tesseract (default)
    - Gemini vision

Author: ML Engineering Team
"""

from .engine import OCREngine
from .ocr_result import RecognitionResult

__all__ = ['OCREngine', 'RecognitionResult']
