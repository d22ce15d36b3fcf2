"""Tests for the conversion pipeline, its state machine and the quota pre-flight."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest

from statement_converter.model_inference import StructuredTransactionExtractor
from statement_converter.pipeline import (
    ConversionPipeline,
    ConversionService,
    ExtractionMode,
    PipelineState,
    QuotaDecision,
)
from statement_converter.utils.exceptions import (
    ExtractionFailure,
    QuotaExceededError,
    RasterizationFailure,
    RecognitionFailure,
    StructuringFailure,
)


SCANNED_PAGE_TEXT = (
    "1 Feb Balance brought forward 40,000.00\n"
    "3 Feb Card payment - High St Petrol 24.50 39,975.50"
)

TEXT_PATH = [
    PipelineState.IDLE,
    PipelineState.EXTRACTING_TEXT,
    PipelineState.SELECTING_MODE,
    PipelineState.DIRECT_TEXT_READY,
    PipelineState.STRUCTURING,
    PipelineState.SANITIZING,
    PipelineState.FORMATTING,
    PipelineState.DONE,
]


def build_pipeline(engine=None, recognizer=None, extractor=None) -> ConversionPipeline:
    if extractor is None:
        extractor = StructuredTransactionExtractor(engine=engine or "rules")
    return ConversionPipeline(recognizer=recognizer or Mock(), extractor=extractor)


class TestConversionPipeline:
    """Test suite for ConversionPipeline."""

    @pytest.mark.asyncio
    async def test_text_native_statement(self, text_pdf_bytes):
        """Text layer goes straight to structuring; OCR is never called."""
        recognizer = Mock()
        recognizer.recognize = AsyncMock()
        result = await build_pipeline(recognizer=recognizer).convert(text_pdf_bytes)

        assert result.mode is ExtractionMode.TEXT_NATIVE
        assert result.states == TEXT_PATH
        recognizer.recognize.assert_not_called()

        assert result.table[0] == ['Date', 'Description', 'Debit', 'Credit', 'Balance']
        assert result.table[1] == [
            '2024-02-03', 'Card payment - High St Petrol', '24.50', '', '39975.50'
        ]
        assert len(result.table) == len(result.transactions) + 1 == 4

    @pytest.mark.asyncio
    async def test_columnar_statement_with_rules_engine(self, columnar_pdf_bytes):
        """A table whose cells are placed one by one still yields its rows."""
        result = await build_pipeline().convert(columnar_pdf_bytes)

        assert result.mode is ExtractionMode.TEXT_NATIVE
        assert result.table[1:] == [
            ['2024-02-03', 'Card payment - High St Petrol', '24.50', '', '39975.50'],
            ['2024-02-05', 'Salary ACME Ltd', '', '1500.00', '41475.50'],
            ['2024-02-09', 'Direct debit - City Energy', '82.10', '', '41393.40'],
        ]

    @pytest.mark.asyncio
    async def test_scanned_statement_uses_ocr(self, blank_pdf_bytes, fake_recognizer_factory):
        """Short text layer means rasterize the first page and OCR it."""
        recognizer = fake_recognizer_factory(text=SCANNED_PAGE_TEXT)
        result = await build_pipeline(recognizer=recognizer).convert(blank_pdf_bytes)

        assert result.mode is ExtractionMode.IMAGE_BASED
        assert result.states[3:5] == [PipelineState.RASTERIZING, PipelineState.RECOGNIZING]
        assert PipelineState.DIRECT_TEXT_READY not in result.states
        assert recognizer.images[0].page_index == 0
        assert (recognizer.images[0].width, recognizer.images[0].height) == (300, 150)
        assert result.raw_text == SCANNED_PAGE_TEXT
        assert [t.description for t in result.transactions] == ['Card payment - High St Petrol']

    @pytest.mark.asyncio
    async def test_short_text_layer_forces_ocr(self, short_text_pdf_bytes, fake_recognizer_factory):
        recognizer = fake_recognizer_factory(text=SCANNED_PAGE_TEXT)
        result = await build_pipeline(recognizer=recognizer).convert(short_text_pdf_bytes)

        assert result.mode is ExtractionMode.IMAGE_BASED
        assert len(recognizer.images) == 1

    @pytest.mark.asyncio
    async def test_requested_page_is_rasterized(self, two_page_pdf_bytes, fake_recognizer_factory):
        recognizer = fake_recognizer_factory(text=SCANNED_PAGE_TEXT)
        await build_pipeline(recognizer=recognizer).convert(two_page_pdf_bytes, page_index=1)

        assert recognizer.images[0].page_index == 1

    @pytest.mark.asyncio
    async def test_sanitizer_drops_are_counted(self, text_pdf_bytes, fake_engine_factory):
        engine = fake_engine_factory(response={"transactions": [
            {"date": "2024-02-03", "description": "Kept", "debit": 1, "balance": None},
            {"date": "2024-02-04", "description": "  ", "debit": 2, "balance": None},
            {"date": "", "description": "No date", "debit": 3, "balance": None},
        ]})
        result = await build_pipeline(engine=engine).convert(text_pdf_bytes)

        assert result.dropped_count == 2
        assert [t.description for t in result.transactions] == ["Kept"]
        assert result.table[1] == ['2024-02-03', 'Kept', '1.00', '', '']

    @pytest.mark.asyncio
    async def test_malformed_response_is_flagged(self, text_pdf_bytes, fake_engine_factory):
        engine = fake_engine_factory(response={"rows": []})
        result = await build_pipeline(engine=engine).convert(text_pdf_bytes)

        assert result.malformed_response is True
        assert result.table == [['Date', 'Description', 'Debit', 'Credit', 'Balance']]
        assert result.states[-1] is PipelineState.DONE

    @pytest.mark.asyncio
    async def test_no_result_raises_structuring_failure(self, text_pdf_bytes, fake_engine_factory):
        """An undefined engine result fails the conversion."""
        states = []
        pipeline = build_pipeline(engine=fake_engine_factory(response=None))

        with pytest.raises(StructuringFailure) as exc_info:
            await pipeline.convert(text_pdf_bytes, on_state=states.append)

        assert exc_info.value.details["stage"] == "structuring"
        assert states[-2:] == [PipelineState.STRUCTURING, PipelineState.ERROR]

    @pytest.mark.asyncio
    async def test_unreadable_pdf(self):
        states = []

        with pytest.raises(ExtractionFailure):
            await build_pipeline().convert(b"not a pdf", on_state=states.append)

        assert states == [PipelineState.IDLE, PipelineState.EXTRACTING_TEXT, PipelineState.ERROR]

    @pytest.mark.asyncio
    async def test_page_out_of_range(self, blank_pdf_bytes, fake_recognizer_factory):
        recognizer = fake_recognizer_factory(text=SCANNED_PAGE_TEXT)

        with pytest.raises(RasterizationFailure):
            await build_pipeline(recognizer=recognizer).convert(blank_pdf_bytes, page_index=3)

        assert recognizer.images == []

    @pytest.mark.asyncio
    async def test_ocr_failure_aborts(self, blank_pdf_bytes, fake_recognizer_factory, fake_engine_factory):
        """No retry: a failed recognition never reaches structuring."""
        engine = fake_engine_factory(response={"transactions": []})
        recognizer = fake_recognizer_factory(error=RecognitionFailure("fake-ocr", "boom"))

        with pytest.raises(RecognitionFailure):
            await build_pipeline(engine=engine, recognizer=recognizer).convert(blank_pdf_bytes)

        assert engine.requests == []

    @pytest.mark.asyncio
    async def test_recognizer_exception_becomes_recognition_failure(
            self, blank_pdf_bytes, fake_recognizer_factory, fake_engine_factory):
        """Any recognizer error surfaces as RecognitionFailure."""
        engine = fake_engine_factory(response={"transactions": []})
        recognizer = fake_recognizer_factory(error=RuntimeError("service down"))
        states = []

        with pytest.raises(RecognitionFailure) as exc_info:
            await build_pipeline(engine=engine, recognizer=recognizer).convert(
                blank_pdf_bytes, on_state=states.append
            )

        assert exc_info.value.details["reason"] == "service down"
        assert exc_info.value.details["stage"] == "recognizing"
        assert states[-1] is PipelineState.ERROR
        assert engine.requests == []

    @pytest.mark.asyncio
    async def test_empty_ocr_text_aborts(self, blank_pdf_bytes, fake_recognizer_factory):
        recognizer = fake_recognizer_factory(text="   ")

        with pytest.raises(RecognitionFailure, match="no text recognized"):
            await build_pipeline(recognizer=recognizer).convert(blank_pdf_bytes)

    @pytest.mark.asyncio
    async def test_cancellation(self, text_pdf_bytes, fake_engine_factory):
        """Cancelling the caller cancels the in-flight structuring call."""
        engine = fake_engine_factory(response={"transactions": []}, delay=10)
        states = []
        task = asyncio.create_task(
            build_pipeline(engine=engine).convert(text_pdf_bytes, on_state=states.append)
        )

        await engine.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert states[-1] is PipelineState.CANCELLED
        assert PipelineState.STRUCTURING in states

    @pytest.mark.asyncio
    async def test_conversions_do_not_share_state(self, text_pdf_bytes, blank_pdf_bytes,
                                                  fake_recognizer_factory):
        pipeline = build_pipeline(recognizer=fake_recognizer_factory(text=SCANNED_PAGE_TEXT))

        first, second = await asyncio.gather(
            pipeline.convert(text_pdf_bytes),
            pipeline.convert(blank_pdf_bytes),
        )

        assert first.mode is ExtractionMode.TEXT_NATIVE
        assert second.mode is ExtractionMode.IMAGE_BASED
        assert len(first.transactions) == 3
        assert len(second.transactions) == 1


class AllowGate:
    def __init__(self, decision):
        self.decision = decision
        self.identities = []

    def check_allowed(self, identity):
        self.identities.append(identity)
        return self.decision


class TestConversionService:
    """Test suite for the quota pre-flight."""

    @pytest.mark.asyncio
    async def test_allowed_runs_pipeline(self, text_pdf_bytes):
        gate = AllowGate(QuotaDecision(allowed=True))
        service = ConversionService(build_pipeline(), quota_gate=gate)

        result = await service.convert("user-1", text_pdf_bytes)

        assert gate.identities == ["user-1"]
        assert result.transactions[0].balance == Decimal("39975.50")

    @pytest.mark.asyncio
    async def test_refused_never_starts_pipeline(self, text_pdf_bytes):
        pipeline = Mock()
        pipeline.convert = AsyncMock()
        gate = AllowGate(QuotaDecision(allowed=False, retry_after_ms=60000))
        service = ConversionService(pipeline, quota_gate=gate)

        with pytest.raises(QuotaExceededError) as exc_info:
            await service.convert("user-1", text_pdf_bytes)

        assert exc_info.value.retry_after_ms == 60000
        pipeline.convert.assert_not_called()

    @pytest.mark.asyncio
    async def test_async_gate(self, text_pdf_bytes):
        gate = Mock()
        gate.check_allowed = AsyncMock(return_value=QuotaDecision(allowed=False))
        service = ConversionService(build_pipeline(), quota_gate=gate)

        with pytest.raises(QuotaExceededError):
            await service.convert(None, text_pdf_bytes)

    @pytest.mark.asyncio
    async def test_no_gate_allows(self, text_pdf_bytes):
        service = ConversionService(build_pipeline())
        result = await service.convert(None, text_pdf_bytes)

        assert result.states[-1] is PipelineState.DONE
