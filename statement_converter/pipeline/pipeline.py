"""
Conversion Pipeline Module.

This module wires the pipeline stages together for one conversion:

    PDF bytes -> text layer -> mode selection
              -> {direct text | rasterize page -> OCR}
              -> structured extraction -> sanitization -> TableMatrix

Stages run strictly in order; each is awaited before the next starts.
Blocking PDF work runs in the default executor and the two external calls
(OCR, structuring) are bounded by their own timeouts. Every conversion
owns its own text, page image and batch; nothing is cached between calls.

Usage:
    from statement_converter.pipeline import ConversionPipeline

    pipeline = ConversionPipeline()
    result = await pipeline.convert(pdf_bytes)
    for row in result.table:
        print(row)

Author: ML Engineering Team
"""

import asyncio
import inspect
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from config import get_config
from statement_converter.utils.logger import get_logger
from statement_converter.utils.helpers import run_blocking
from statement_converter.utils.exceptions import (
    QuotaExceededError,
    RecognitionFailure,
    StatementConversionError,
)
from statement_converter.input_handler import PageRasterizer, TextLayerExtractor
from statement_converter.ocr_engine import OCREngine
from statement_converter.model_inference import StructuredTransactionExtractor, TransactionRecord
from statement_converter.postprocessor import RecordSanitizer
from statement_converter.output_handler import TableMatrix, TabularFormatter
from .mode_selector import ExtractionMode, ExtractionModeSelector
from .quota import QuotaDecision, QuotaGate

# Initialize module logger
logger = get_logger(__name__)


class PipelineState(Enum):
    """Lifecycle of a single conversion."""
    IDLE = "idle"
    EXTRACTING_TEXT = "extracting_text"
    SELECTING_MODE = "selecting_mode"
    DIRECT_TEXT_READY = "direct_text_ready"
    RASTERIZING = "rasterizing"
    RECOGNIZING = "recognizing"
    STRUCTURING = "structuring"
    SANITIZING = "sanitizing"
    FORMATTING = "formatting"
    DONE = "done"
    ERROR = "error"
    CANCELLED = "cancelled"


StateListener = Callable[[PipelineState], Any]


@dataclass
class ConversionResult:
    """
    Output of one successful conversion.

    Attributes:
        table: Header + rows matrix for export or preview
        transactions: Sanitized records in document order
        mode: How the raw text was obtained
        raw_text: Text handed to the structuring step
        dropped_count: Records removed by the sanitizer
        malformed_response: Engine answered without a usable transactions list
        contract_violations: Candidates excluded for breaking the rule contract
        states: States visited, in order
        processing_time: Total seconds spent
    """
    table: TableMatrix
    transactions: List[TransactionRecord]
    mode: ExtractionMode
    raw_text: str
    dropped_count: int = 0
    malformed_response: bool = False
    contract_violations: int = 0
    states: List[PipelineState] = field(default_factory=list)
    processing_time: float = 0.0

    @property
    def row_count(self) -> int:
        return len(self.transactions)

    def __repr__(self) -> str:
        return (
            f"ConversionResult(mode={self.mode.value}, "
            f"rows={self.row_count}, "
            f"dropped={self.dropped_count}, "
            f"malformed={self.malformed_response})"
        )


class ConversionPipeline:
    """
    Document structuring pipeline.

    All stages are injectable, which is how tests and alternative
    deployments swap the OCR service or extraction engine.

    Attributes:
        text_extractor: TextLayerExtractor
        mode_selector: ExtractionModeSelector
        rasterizer: PageRasterizer
        recognizer: Object with ``async recognize(PageImage)`` (OCREngine)
        extractor: StructuredTransactionExtractor
        sanitizer: RecordSanitizer
        formatter: TabularFormatter

    Example:
        >>> pipeline = ConversionPipeline(extractor=StructuredTransactionExtractor("rules"))
        >>> result = await pipeline.convert(pdf_bytes)
        >>> print(result.mode, len(result.transactions))
    """

    def __init__(
        self,
        text_extractor: Optional[TextLayerExtractor] = None,
        mode_selector: Optional[ExtractionModeSelector] = None,
        rasterizer: Optional[PageRasterizer] = None,
        recognizer: Optional[Any] = None,
        extractor: Optional[StructuredTransactionExtractor] = None,
        sanitizer: Optional[RecordSanitizer] = None,
        formatter: Optional[TabularFormatter] = None
    ) -> None:
        self.text_extractor = text_extractor or TextLayerExtractor()
        self.mode_selector = mode_selector or ExtractionModeSelector()
        self.rasterizer = rasterizer or PageRasterizer()
        self.recognizer = recognizer or OCREngine()
        self.extractor = extractor or StructuredTransactionExtractor()
        self.sanitizer = sanitizer or RecordSanitizer()
        self.formatter = formatter or TabularFormatter()

        logger.info("ConversionPipeline initialized")

    async def _recognize(self, image) -> str:
        backend_name = getattr(self.recognizer, 'backend_name', 'ocr')

        try:
            recognition = await self.recognizer.recognize(image)
        except RecognitionFailure:
            raise
        except Exception as e:
            logger.error(f"Recognizer {backend_name} failed: {e}")
            raise RecognitionFailure(backend_name, str(e))

        raw_text = (getattr(recognition, 'extracted_text', None) or "").strip()
        if not raw_text:
            raise RecognitionFailure(backend_name, "no text recognized on page")
        return raw_text

    async def convert(
        self,
        pdf_bytes: bytes,
        page_index: Optional[int] = None,
        on_state: Optional[StateListener] = None
    ) -> ConversionResult:
        """
        Run one conversion.

        Args:
            pdf_bytes: Raw PDF document.
            page_index: Page to OCR for image-based documents.
                       If None, uses config (first page).
            on_state: Optional callback invoked on every state change.

        Returns:
            ConversionResult with the TableMatrix and the sanitized batch.

        Raises:
            ExtractionFailure: The buffer is not a readable PDF.
            RasterizationFailure: The page cannot be rendered.
            RecognitionFailure: OCR failed or returned no text.
            StructuringFailure: The extraction engine produced no result.
            asyncio.CancelledError: The caller cancelled the conversion.
        """
        if page_index is None:
            page_index = int(get_config("input.pdf.page_index", 0))

        start_time = time.time()
        states: List[PipelineState] = []
        state = PipelineState.IDLE

        def enter(new_state: PipelineState) -> None:
            nonlocal state
            state = new_state
            states.append(new_state)
            logger.debug(f"Pipeline state -> {new_state.value}")
            if on_state is not None:
                on_state(new_state)

        enter(PipelineState.IDLE)

        try:
            enter(PipelineState.EXTRACTING_TEXT)
            document_text = await run_blocking(self.text_extractor.extract, pdf_bytes)

            enter(PipelineState.SELECTING_MODE)
            mode = self.mode_selector.select(document_text)

            if mode is ExtractionMode.TEXT_NATIVE:
                enter(PipelineState.DIRECT_TEXT_READY)
                raw_text = document_text
            else:
                enter(PipelineState.RASTERIZING)
                image = await run_blocking(self.rasterizer.rasterize, pdf_bytes, page_index)

                enter(PipelineState.RECOGNIZING)
                raw_text = await self._recognize(image)
                del image

            enter(PipelineState.STRUCTURING)
            outcome = await self.extractor.extract(raw_text)

            enter(PipelineState.SANITIZING)
            transactions, dropped = self.sanitizer.partition(outcome.transactions)

            enter(PipelineState.FORMATTING)
            table = self.formatter.format(transactions)

            enter(PipelineState.DONE)

        except asyncio.CancelledError:
            logger.warning(f"Conversion cancelled during {state.value}")
            enter(PipelineState.CANCELLED)
            raise
        except StatementConversionError as e:
            logger.error(f"Conversion failed during {state.value}: {e}")
            e.details.setdefault('stage', state.value)
            enter(PipelineState.ERROR)
            raise
        except Exception as e:
            logger.error(f"Unexpected error during {state.value}: {e}")
            enter(PipelineState.ERROR)
            raise

        result = ConversionResult(
            table=table,
            transactions=transactions,
            mode=mode,
            raw_text=raw_text,
            dropped_count=len(dropped),
            malformed_response=outcome.malformed,
            contract_violations=outcome.contract_violations,
            states=states,
            processing_time=time.time() - start_time
        )

        logger.info(f"Conversion completed: {result!r} ({result.processing_time:.2f}s)")
        return result


class ConversionService:
    """
    Caller-side entry point that honors a quota gate.

    The gate is consulted before the pipeline starts; a refusal raises
    QuotaExceededError and no pipeline work is done.

    Example:
        >>> service = ConversionService(pipeline, quota_gate=gate)
        >>> result = await service.convert("user-42", pdf_bytes)
    """

    def __init__(self, pipeline: ConversionPipeline, quota_gate: Optional[QuotaGate] = None) -> None:
        self.pipeline = pipeline
        self.quota_gate = quota_gate

    async def check_quota(self, identity: Optional[str]) -> QuotaDecision:
        if self.quota_gate is None:
            return QuotaDecision(allowed=True)

        decision = self.quota_gate.check_allowed(identity)
        if inspect.isawaitable(decision):
            decision = await decision
        return decision

    async def convert(
        self,
        identity: Optional[str],
        pdf_bytes: bytes,
        page_index: Optional[int] = None,
        on_state: Optional[StateListener] = None
    ) -> ConversionResult:
        """
        Check the quota, then run the pipeline.

        Raises:
            QuotaExceededError: If the gate refuses the conversion.
        """
        decision = await self.check_quota(identity)
        if not decision.allowed:
            logger.warning(f"Conversion refused by quota gate for {identity!r}")
            raise QuotaExceededError(identity, decision.retry_after_ms)

        return await self.pipeline.convert(pdf_bytes, page_index=page_index, on_state=on_state)
