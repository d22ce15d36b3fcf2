"""
Extractor Port.

Interface between the pipeline and whatever engine turns raw statement
text into transaction candidates.

Author: ML Engineering Team
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from .rules import DEFAULT_CONTRACT, RuleContract


@dataclass(frozen=True)
class ExtractionRequest:
    """
    Input of one extraction call.

    Attributes:
        raw_text: Statement text from the text layer or from OCR
        contract: Rules the engine must honor
    """
    raw_text: str
    contract: RuleContract = DEFAULT_CONTRACT


class ExtractorPort(ABC):
    """
    Transaction extraction engine.

    Implementations return the decoded response object, expected to look
    like ``{"transactions": [...]}``, or None when they produced no result
    at all. Shape problems inside an existing result are left to the
    caller.
    """

    name = "engine"

    @abstractmethod
    async def extract(self, request: ExtractionRequest) -> Optional[Any]:
        """Extract transaction candidates from ``request.raw_text``."""
