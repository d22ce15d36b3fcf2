"""
Tesseract OCR Backend.

Recognizes the text of a rasterized statement page with Tesseract
(pytesseract). Tesseract is a blocking, CPU-bound call, so it runs in the
default thread pool.

Requirements:
    - Tesseract OCR installed on the system
    - pytesseract Python package

Author: ML Engineering Team
"""

import pytesseract

from config import get_config
from statement_converter.utils.logger import get_logger
from statement_converter.utils.helpers import run_blocking
from statement_converter.utils.exceptions import RecognitionFailure
from statement_converter.input_handler.rasterizer import PageImage

logger = get_logger(__name__)


class TesseractBackend:
    """
    Tesseract OCR backend implementation.

    Attributes:
        language: Tesseract language code (e.g., "eng")
        psm: Page Segmentation Mode (1-13)
        oem: OCR Engine Mode (0-3)
        extra_config: Additional Tesseract command-line options

    Example:
        >>> backend = TesseractBackend()
        >>> text = await backend.recognize(page_image)
    """

    name = "tesseract"

    def __init__(self) -> None:
        self.language = get_config("ocr.tesseract.lang", "eng")
        # psm 6 treats the page as one uniform block, which keeps table rows on one line
        self.psm = get_config("ocr.tesseract.psm", 6)
        self.oem = get_config("ocr.tesseract.oem", 3)
        self.extra_config = get_config("ocr.tesseract.config", "")

        self._check_dependencies()

        logger.debug(
            f"TesseractBackend initialized (lang={self.language}, "
            f"psm={self.psm}, oem={self.oem})"
        )

    def _check_dependencies(self) -> None:
        """
        Check that the Tesseract binary is reachable.

        Raises:
            RecognitionFailure: If Tesseract is not installed.
        """
        try:
            version = pytesseract.get_tesseract_version()
            logger.info(f"Tesseract version: {version}")
        except Exception as e:
            raise RecognitionFailure(
                self.name,
                f"Tesseract OCR not installed or not in PATH: {e}"
            )

    def _build_config(self) -> str:
        config_parts = [
            f"--psm {self.psm}",
            f"--oem {self.oem}"
        ]

        if self.extra_config:
            config_parts.append(self.extra_config)

        return ' '.join(config_parts)

    def image_to_text(self, image: PageImage) -> str:
        """Run Tesseract synchronously on a page image."""
        config = self._build_config()
        logger.debug(f"Running Tesseract OCR (config: {config})")

        return pytesseract.image_to_string(
            image.to_pil(),
            lang=self.language,
            config=config
        )

    async def recognize(self, image: PageImage) -> str:
        """Recognize the text of a page image without blocking the event loop."""
        return await run_blocking(self.image_to_text, image)
