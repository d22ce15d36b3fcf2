"""
OCR Result Data Class.

Author: ML Engineering Team
"""

from dataclasses import dataclass


@dataclass
class RecognitionResult:
    """
    Text recognized from one page image.

    Attributes:
        extracted_text: Raw recognized text, line breaks preserved
        engine: Name of the backend that produced the text
        page_index: Zero-based page the text came from
        processing_time: Seconds spent in the backend
    """
    extracted_text: str
    engine: str = ""
    page_index: int = 0
    processing_time: float = 0.0

    @property
    def char_count(self) -> int:
        return len(self.extracted_text)

    def __repr__(self) -> str:
        return (
            f"RecognitionResult(engine='{self.engine}', "
            f"page={self.page_index}, chars={self.char_count})"
        )
