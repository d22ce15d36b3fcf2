"""
Structured Transaction Extractor Module.

This module provides the StructuredTransactionExtractor, which hands the
raw statement text to an extraction engine together with the rule
contract and turns the engine's response into a batch of
TransactionRecord objects.

Response handling:
    - No result at all          -> StructuringFailure (fatal)
    - No usable transactions    -> warning, empty batch, malformed=True
    - Empty transactions list   -> valid "no transactions" outcome
    - Candidate without balance -> excluded, counted as contract violation

Supported Engines:
    - gemini: Google Gemini with a JSON response schema (default)
    - rules: deterministic line parser, works offline

Author: ML Engineering Team
"""

import asyncio
import time
from typing import Any, List, Optional, Tuple, Union

from config import get_config
from statement_converter.utils.logger import get_logger
from statement_converter.utils.exceptions import (
    ContractViolation,
    MalformedExtractionResponse,
    StructuringFailure,
)
from statement_converter.postprocessor.normalizers import AmountNormalizer
from .extraction_result import ExtractionOutcome, TransactionRecord
from .port import ExtractionRequest, ExtractorPort
from .rules import DEFAULT_CONTRACT, RuleContract

# Initialize module logger
logger = get_logger(__name__)


class StructuredTransactionExtractor:
    """
    Rule-governed transaction extraction.

    The extractor owns no per-conversion state, so one instance can serve
    concurrent conversions.

    Attributes:
        engine: ExtractorPort implementation doing the actual extraction
        contract: Rule contract sent with every request
        timeout: Seconds allowed for one engine call

    Example:
        >>> extractor = StructuredTransactionExtractor(engine="rules")
        >>> outcome = await extractor.extract(raw_text)
        >>> print(len(outcome.transactions))
    """

    SUPPORTED_ENGINES = ['gemini', 'rules']

    def __init__(
        self,
        engine: Union[str, ExtractorPort, None] = None,
        contract: Optional[RuleContract] = None,
        timeout: Optional[float] = None
    ) -> None:
        """
        Initialize the extractor.

        Args:
            engine: Engine name ('gemini', 'rules') or an ExtractorPort
                   instance. If None, uses config.
            contract: Rule contract. Defaults to the current contract version.
            timeout: Engine call timeout in seconds. If None, uses config.

        Raises:
            ValueError: If the engine name is not supported.
        """
        self.engine = engine if isinstance(engine, ExtractorPort) else self._create_engine(engine)
        self.contract = contract or DEFAULT_CONTRACT
        self.timeout = float(
            timeout if timeout is not None else get_config("extraction.timeout_seconds", 120)
        )
        self.amount_normalizer = AmountNormalizer()

        logger.info(
            f"StructuredTransactionExtractor initialized with engine: {self.engine.name} "
            f"(contract v{self.contract.version})"
        )

    def _create_engine(self, name: Optional[str]) -> ExtractorPort:
        name = (name or get_config("extraction.engine", "gemini")).lower()

        if name == "gemini":
            from .gemini_engine import GeminiTransactionEngine
            return GeminiTransactionEngine()

        if name == "rules":
            from .rule_based import RuleBasedTransactionEngine
            return RuleBasedTransactionEngine()

        raise ValueError(
            f"Unknown extraction engine '{name}', expected one of {self.SUPPORTED_ENGINES}"
        )

    async def extract(self, raw_text: str) -> ExtractionOutcome:
        """
        Extract the transaction batch from raw statement text.

        Args:
            raw_text: Text from the PDF text layer or from OCR.

        Returns:
            ExtractionOutcome with the candidate batch in document order.

        Raises:
            StructuringFailure: If the engine returns no result, fails, or
                               times out.
        """
        start_time = time.time()
        engine_name = self.engine.name
        request = ExtractionRequest(raw_text=raw_text, contract=self.contract)

        logger.info(f"Structuring {len(raw_text)} characters with {engine_name}")

        try:
            response = await asyncio.wait_for(self.engine.extract(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"Extraction timed out after {self.timeout:.0f}s")
            raise StructuringFailure(engine_name, f"timed out after {self.timeout:.0f}s")
        except StructuringFailure:
            raise
        except Exception as e:
            logger.error(f"Extraction engine failed: {e}")
            raise StructuringFailure(engine_name, str(e))

        if response is None:
            logger.error("Extraction engine returned no result")
            raise StructuringFailure(engine_name, "engine returned no result")

        outcome = ExtractionOutcome(engine=engine_name, contract_version=self.contract.version)

        try:
            candidates = self._candidates(response)
        except MalformedExtractionResponse as e:
            logger.warning(f"{e.message}: {e.details.get('reason')}; treating as empty batch")
            outcome.malformed = True
            candidates = []

        outcome.transactions, outcome.contract_violations = self._build_records(candidates)
        outcome.processing_time = time.time() - start_time

        if outcome.contract_violations:
            logger.warning(
                f"Excluded {outcome.contract_violations} candidate(s) that broke the rule contract"
            )

        logger.info(
            f"Extraction completed: {len(outcome.transactions)} candidate(s) "
            f"({outcome.processing_time:.2f}s)"
        )
        return outcome

    def _candidates(self, response: Any) -> List[Any]:
        if not isinstance(response, dict):
            raise MalformedExtractionResponse(
                f"expected an object, got {type(response).__name__}"
            )

        if 'transactions' not in response:
            raise MalformedExtractionResponse("'transactions' key missing")

        transactions = response['transactions']
        if not isinstance(transactions, list):
            raise MalformedExtractionResponse(
                f"'transactions' is {type(transactions).__name__}, not a list"
            )

        return transactions

    def _build_records(self, candidates: List[Any]) -> Tuple[List[TransactionRecord], int]:
        records = []
        violations = 0

        for index, candidate in enumerate(candidates):
            try:
                records.append(TransactionRecord.from_dict(candidate, self.amount_normalizer))
            except ContractViolation as e:
                violations += 1
                logger.debug(f"Candidate {index} excluded: {e}")

        return records, violations
