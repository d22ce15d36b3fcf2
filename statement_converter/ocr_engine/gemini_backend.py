"""
Gemini Vision OCR Backend.

Sends the rasterized page to a Gemini multimodal model and asks for a
verbatim transcription. Useful for low-quality scans where Tesseract
struggles with table layouts.

Author: ML Engineering Team
"""

from typing import Optional

import google.generativeai as genai

from config import get_config
from statement_converter.utils.logger import get_logger
from statement_converter.utils.helpers import get_api_key
from statement_converter.input_handler.rasterizer import PageImage

logger = get_logger(__name__)


class GeminiVisionBackend:
    """
    OCR through the Gemini ``generate_content`` API.

    Attributes:
        model_name: Gemini model identifier

    Example:
        >>> backend = GeminiVisionBackend()
        >>> text = await backend.recognize(page_image)
    """

    name = "gemini"

    PROMPT = (
        "You are an OCR engine. Transcribe all text visible in this scanned "
        "bank statement page exactly as printed, top to bottom. Keep each "
        "table row on its own line and keep the column values of a row on "
        "that line, separated by spaces. Do not summarize, translate, or "
        "add commentary. Return plain text only."
    )

    def __init__(self, model_name: Optional[str] = None) -> None:
        self.model_name = model_name or get_config("ocr.gemini.model", "gemini-1.5-flash")

        api_key = get_api_key(get_config("ocr.gemini.api_key_env", "GEMINI_API_KEY"))
        genai.configure(api_key=api_key)

        self.model = genai.GenerativeModel(
            self.model_name,
            generation_config={"temperature": 0.0}
        )

        logger.debug(f"GeminiVisionBackend initialized (model={self.model_name})")

    async def recognize(self, image: PageImage) -> str:
        """
        Transcribe a page image.

        Raises:
            ValueError: If the response carries no text (blocked or empty).
        """
        logger.debug(f"Sending {image!r} to {self.model_name}")

        response = await self.model.generate_content_async([
            self.PROMPT,
            {"mime_type": image.mime_type, "data": image.data}
        ])

        return response.text
