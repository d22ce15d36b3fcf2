"""
Main OCR Engine Module.

OCREngine is the optical-text-recognizer boundary of the pipeline: it
takes one rasterized page, hands it to the configured backend and returns
the recognized text. The backend call is bounded by a timeout and can be
cancelled by the awaiting caller.

Usage:
    from statement_converter.ocr_engine import OCREngine

    engine = OCREngine()
    result = await engine.recognize(page_image)
    print(result.extracted_text)

Author: ML Engineering Team
"""

import asyncio
import time
from typing import Any, Dict, Optional

from config import get_config
from statement_converter.utils.logger import get_logger
from statement_converter.utils.exceptions import RecognitionFailure
from statement_converter.input_handler.rasterizer import PageImage
from .ocr_result import RecognitionResult

logger = get_logger(__name__)


class OCREngine:
    """
    Unified interface over the OCR backends.

    Supported Backends:
        - tesseract: Tesseract OCR (default)
        - gemini: Gemini vision transcription

    The backend is created on first use, so a conversion that never needs
    OCR does not require Tesseract or an API key.

    Attributes:
        backend_name: Name of the configured backend
        timeout: Seconds allowed for one recognition call

    Example:
        >>> engine = OCREngine(backend="tesseract", timeout=30)
        >>> result = await engine.recognize(page_image)
    """

    SUPPORTED_BACKENDS = ['tesseract', 'gemini']

    def __init__(self, backend: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.backend_name = backend or get_config("ocr.backend", "tesseract")
        if self.backend_name == "pytesseract":
            self.backend_name = "tesseract"

        if self.backend_name not in self.SUPPORTED_BACKENDS:
            raise ValueError(
                f"Unknown OCR backend '{self.backend_name}', "
                f"expected one of {self.SUPPORTED_BACKENDS}"
            )

        self.timeout = float(timeout if timeout is not None else get_config("ocr.timeout_seconds", 60))
        self._backend = None

        logger.info(f"OCR Engine configured with backend: {self.backend_name}")

    def _get_backend(self):
        if self._backend is None:
            if self.backend_name == "gemini":
                from .gemini_backend import GeminiVisionBackend
                self._backend = GeminiVisionBackend()
            else:
                from .tesseract_backend import TesseractBackend
                self._backend = TesseractBackend()
        return self._backend

    async def recognize(self, image: PageImage) -> RecognitionResult:
        """
        Recognize the text of a rasterized page.

        Args:
            image: Page rendered by the PageRasterizer.

        Returns:
            RecognitionResult with the recognized text.

        Raises:
            RecognitionFailure: If the backend fails, times out, or returns
                               no text. There is no automatic retry.
        """
        start_time = time.time()
        logger.debug(f"Recognizing {image!r} with {self.backend_name}")

        try:
            backend = self._get_backend()
            text = await asyncio.wait_for(backend.recognize(image), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"OCR timed out after {self.timeout:.0f}s")
            raise RecognitionFailure(self.backend_name, f"timed out after {self.timeout:.0f}s")
        except RecognitionFailure:
            raise
        except Exception as e:
            logger.error(f"OCR processing failed: {e}")
            raise RecognitionFailure(self.backend_name, str(e))

        text = (text or "").strip()
        if not text:
            raise RecognitionFailure(self.backend_name, "no text recognized on page")

        result = RecognitionResult(
            extracted_text=text,
            engine=self.backend_name,
            page_index=image.page_index,
            processing_time=time.time() - start_time
        )

        logger.info(
            f"OCR completed: {result.char_count} characters "
            f"({result.processing_time:.2f}s)"
        )
        return result

    def get_backend_info(self) -> Dict[str, Any]:
        return {
            'backend': self.backend_name,
            'timeout': self.timeout,
            'initialized': self._backend is not None
        }
