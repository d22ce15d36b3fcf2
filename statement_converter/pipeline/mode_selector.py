"""
Extraction Mode Selector.

Decides from the text layer alone whether a document can be structured
from its embedded text or has to go through OCR. The signal is only the
length of the whole document's text: scans usually carry nothing, or a
short watermark string.

Author: ML Engineering Team
"""

from enum import Enum
from typing import Optional

from config import get_config
from statement_converter.utils.logger import get_logger

logger = get_logger(__name__)


DEFAULT_TEXT_NATIVE_THRESHOLD = 100


class ExtractionMode(Enum):
    """How the raw text of a document is obtained."""
    TEXT_NATIVE = "text_native"
    IMAGE_BASED = "image_based"


def select_extraction_mode(
    text: Optional[str],
    threshold: int = DEFAULT_TEXT_NATIVE_THRESHOLD
) -> ExtractionMode:
    """
    Classify a document by the length of its text layer.

    Args:
        text: Full document text from the text layer. None counts as empty.
        threshold: Text strictly longer than this is text-native.

    Returns:
        ExtractionMode.TEXT_NATIVE or ExtractionMode.IMAGE_BASED.

    Example:
        >>> select_extraction_mode("x" * 50)
        <ExtractionMode.IMAGE_BASED: 'image_based'>
    """
    if len(text or "") > threshold:
        return ExtractionMode.TEXT_NATIVE
    return ExtractionMode.IMAGE_BASED


class ExtractionModeSelector:
    """
    Mode selection with the configured threshold.

    Example:
        >>> selector = ExtractionModeSelector()
        >>> selector.select(raw_text)
    """

    def __init__(self, threshold: Optional[int] = None) -> None:
        if threshold is None:
            threshold = get_config("pipeline.text_native_threshold", DEFAULT_TEXT_NATIVE_THRESHOLD)
        self.threshold = int(threshold)

    def select(self, text: Optional[str]) -> ExtractionMode:
        mode = select_extraction_mode(text, self.threshold)
        logger.info(
            f"Extraction mode: {mode.value} "
            f"({len(text or '')} chars, threshold {self.threshold})"
        )
        return mode
