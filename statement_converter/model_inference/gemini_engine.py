"""
Gemini Transaction Engine.

Schema-constrained structured extraction with Google Gemini. The rule
contract is sent as the system instruction and the JSON schema is
enforced through ``response_schema``, so the model answers with a JSON
document instead of prose.

Author: ML Engineering Team
"""

import json
from typing import Any, Optional

import google.generativeai as genai

from config import get_config
from statement_converter.utils.logger import get_logger
from statement_converter.utils.helpers import get_api_key
from .port import ExtractionRequest, ExtractorPort

logger = get_logger(__name__)


class GeminiTransactionEngine(ExtractorPort):
    """
    Extraction engine backed by a Gemini model.

    Attributes:
        model_name: Gemini model identifier
        temperature: Sampling temperature (0.0 = most deterministic)

    Example:
        >>> engine = GeminiTransactionEngine()
        >>> response = await engine.extract(ExtractionRequest(raw_text=text))
        >>> response["transactions"][0]["description"]
    """

    name = "gemini"

    def __init__(self, model_name: Optional[str] = None, temperature: Optional[float] = None) -> None:
        self.model_name = model_name or get_config("extraction.gemini.model", "gemini-1.5-flash")
        if temperature is None:
            temperature = get_config("extraction.gemini.temperature", 0.0)
        self.temperature = float(temperature)

        api_key = get_api_key(get_config("extraction.gemini.api_key_env", "GEMINI_API_KEY"))
        genai.configure(api_key=api_key)

        logger.info(f"GeminiTransactionEngine initialized with model: {self.model_name}")

    def _build_model(self, request: ExtractionRequest):
        return genai.GenerativeModel(
            self.model_name,
            system_instruction=request.contract.instructions(),
            generation_config={
                "response_mime_type": "application/json",
                "response_schema": request.contract.schema,
                "temperature": self.temperature,
            }
        )

    async def extract(self, request: ExtractionRequest) -> Optional[Any]:
        """
        Ask the model for the transactions in ``request.raw_text``.

        Returns:
            Decoded JSON response, or None when the model returned nothing
            usable (empty or non-JSON output).
        """
        model = self._build_model(request)
        prompt = request.contract.render_prompt(request.raw_text)

        logger.debug(
            f"Calling {self.model_name} (contract v{request.contract.version}, "
            f"{len(request.raw_text)} chars of text)"
        )

        response = await model.generate_content_async(prompt)
        return self._decode(response.text)

    def _decode(self, text: Optional[str]) -> Optional[Any]:
        text = (text or "").strip()
        if not text:
            logger.error("Model returned an empty response")
            return None

        # Some models still wrap JSON in markdown fences
        if text.startswith("```json"):
            text = text[7:]
        elif text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse model response as JSON: {e}")
            return None
