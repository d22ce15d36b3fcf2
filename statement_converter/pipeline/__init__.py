"""
Pipeline Module for the Statement Converter.

This module provides:
    - Extraction mode selection (text-native vs. image-based)
    - The conversion state machine and orchestration
    - The quota gate interface honored before a conversion starts

Author: ML Engineering Team
"""

from .mode_selector import (
    DEFAULT_TEXT_NATIVE_THRESHOLD,
    ExtractionMode,
    ExtractionModeSelector,
    select_extraction_mode,
)
from .quota import QuotaDecision, QuotaGate
from .pipeline import ConversionPipeline, ConversionResult, ConversionService, PipelineState

__all__ = [
    'ExtractionMode',
    'ExtractionModeSelector',
    'select_extraction_mode',
    'DEFAULT_TEXT_NATIVE_THRESHOLD',
    'QuotaDecision',
    'QuotaGate',
    'ConversionPipeline',
    'ConversionResult',
    'ConversionService',
    'PipelineState',
]
