"""Shared fixtures: generated PDFs, fake collaborators, clean global state."""

import asyncio
from typing import Any, List, Optional

import fitz  # PyMuPDF
import pytest

from config import ConfigurationManager
from statement_converter.input_handler.runtime import reset_pdf_runtime
from statement_converter.model_inference.port import ExtractionRequest, ExtractorPort
from statement_converter.ocr_engine.ocr_result import RecognitionResult


STATEMENT_LINES = [
    "Northbank plc - Current Account Statement",
    "Statement period: 1 February 2024 to 29 February 2024",
    "Date Description Paid out Paid in Balance",
    "1 Feb Balance brought forward 40,000.00",
    "3 Feb Card payment - High St Petrol 24.50 39,975.50",
    "5 Feb Salary ACME Ltd 1,500.00 41,475.50",
    "9 Feb Direct debit - City Energy 82.10 41,393.40",
    "Thank you for banking with us.",
]


def make_pdf(pages: List[List[str]], width: float = 595, height: float = 842) -> bytes:
    """Build a PDF with one page per entry; each entry is a list of text lines."""
    doc = fitz.open()
    for lines in pages:
        page = doc.new_page(width=width, height=height)
        y = 60
        for line in lines:
            page.insert_text((40, y), line, fontsize=10)
            y += 16
    data = doc.tobytes()
    doc.close()
    return data


COLUMN_X = (40, 110, 330, 400, 470)

COLUMNAR_ROWS = [
    ("Date", "Description", "Paid out", "Paid in", "Balance"),
    ("01 Feb 2024", "Balance brought forward", "", "", "40,000.00"),
    ("03 Feb 2024", "Card payment - High St Petrol", "24.50", "", "39,975.50"),
    ("05 Feb 2024", "Salary ACME Ltd", "", "1,500.00", "41,475.50"),
    ("09 Feb 2024", "Direct debit - City Energy", "82.10", "", "41,393.40"),
]


def make_columnar_pdf(rows: List[tuple]) -> bytes:
    """Build a one-page statement table with every cell placed on its own."""
    doc = fitz.open()
    page = doc.new_page(width=595, height=842)
    y = 60
    for row in rows:
        for x, cell in zip(COLUMN_X, row):
            if cell:
                page.insert_text((x, y), cell, fontsize=9)
        y += 14
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture(autouse=True)
def clean_global_state():
    """Fresh configuration and PDF runtime for every test."""
    ConfigurationManager.reset()
    reset_pdf_runtime()
    yield
    ConfigurationManager.reset()
    reset_pdf_runtime()


@pytest.fixture
def statement_text() -> str:
    return "\n".join(STATEMENT_LINES)


@pytest.fixture
def text_pdf_bytes() -> bytes:
    return make_pdf([STATEMENT_LINES])


@pytest.fixture
def columnar_pdf_bytes() -> bytes:
    return make_columnar_pdf(COLUMNAR_ROWS)


@pytest.fixture
def two_page_pdf_bytes() -> bytes:
    return make_pdf([["Page one line"], ["Page two line"]])


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    return make_pdf([[]], width=200, height=100)


@pytest.fixture
def short_text_pdf_bytes() -> bytes:
    return make_pdf([["SCANNED COPY"]])


class FakeEngine(ExtractorPort):
    """Extraction engine returning a canned response."""

    name = "fake"

    def __init__(self, response: Any = None, delay: float = 0.0, error: Optional[Exception] = None):
        self.response = response
        self.delay = delay
        self.error = error
        self.requests: List[ExtractionRequest] = []
        self.started = asyncio.Event()

    async def extract(self, request: ExtractionRequest) -> Any:
        self.requests.append(request)
        self.started.set()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


class FakeRecognizer:
    """OCR collaborator returning canned text."""

    backend_name = "fake-ocr"

    def __init__(self, text: str = "", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.images = []

    async def recognize(self, image) -> RecognitionResult:
        self.images.append(image)
        if self.error is not None:
            raise self.error
        return RecognitionResult(extracted_text=self.text, engine=self.backend_name,
                                 page_index=image.page_index)


@pytest.fixture
def fake_engine_factory():
    return FakeEngine


@pytest.fixture
def fake_recognizer_factory():
    return FakeRecognizer


@pytest.fixture
def pdf_factory():
    return make_pdf
