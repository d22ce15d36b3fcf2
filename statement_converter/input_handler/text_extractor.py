"""
Text Layer Extractor Module.

Pulls the embedded text layer out of every page of a PDF and joins it
into one document-level string, preserving page order. Scanned documents
simply produce little or no text; deciding what to do about that is the
mode selector's job, not this module's.

Uses PyMuPDF by default, pdfplumber as an alternative backend. PyMuPDF
words are regrouped into physical rows by their vertical position, so a
statement table whose cells are placed separately still reads as one
line per transaction.

Author: ML Engineering Team
"""

import io
from typing import List, Optional, Sequence

import pdfplumber

from config import get_config
from statement_converter.utils.logger import get_logger
from statement_converter.utils.exceptions import ExtractionFailure
from .runtime import TEXT_BACKENDS, get_pdf_runtime, open_pdf

logger = get_logger(__name__)


class TextLayerExtractor:
    """
    Extractor for the embedded text of a PDF document.

    Attributes:
        backend: 'pymupdf' or 'pdfplumber'

    Example:
        >>> extractor = TextLayerExtractor()
        >>> text = extractor.extract(pdf_bytes)
        >>> print(f"{len(text)} characters of embedded text")
    """

    def __init__(self, backend: Optional[str] = None, row_tolerance: Optional[float] = None) -> None:
        """
        Initialize the extractor.

        Args:
            backend: Text backend override. If None, the PDF runtime's
                    configured backend is used.
            row_tolerance: Max vertical distance between words of one row.
        """
        runtime = get_pdf_runtime()
        self.backend = backend or runtime.text_backend
        if row_tolerance is None:
            row_tolerance = get_config("input.pdf.row_tolerance", 3.0)
        self.row_tolerance = float(row_tolerance)

        if self.backend not in TEXT_BACKENDS:
            raise ValueError(f"Unknown text backend '{self.backend}'")

        logger.debug(f"TextLayerExtractor initialized (backend={self.backend})")

    def extract(self, pdf_bytes: bytes) -> str:
        """
        Extract the text of all pages.

        Args:
            pdf_bytes: Raw PDF document.

        Returns:
            Page texts joined with newlines, trimmed. Empty string when the
            document carries no text layer.

        Raises:
            ExtractionFailure: If the buffer is not a readable PDF.
        """
        if self.backend == 'pdfplumber':
            pages = self._extract_with_pdfplumber(pdf_bytes)
        else:
            pages = self._extract_with_pymupdf(pdf_bytes)

        text = "\n".join(page.strip() for page in pages).strip()

        logger.info(f"Extracted {len(text)} characters from {len(pages)} page(s)")
        return text

    def _extract_with_pymupdf(self, pdf_bytes: bytes) -> List[str]:
        try:
            doc = open_pdf(pdf_bytes)
        except Exception as e:
            logger.error(f"Could not open PDF: {e}")
            raise ExtractionFailure(str(e))

        try:
            return [
                "\n".join(self.group_rows(page.get_text("words"), self.row_tolerance))
                for page in doc
            ]
        except Exception as e:
            logger.error(f"PyMuPDF text extraction failed: {e}")
            raise ExtractionFailure(str(e))
        finally:
            doc.close()

    @staticmethod
    def group_rows(words: Sequence[tuple], tolerance: float) -> List[str]:
        """
        Cluster PyMuPDF words into physical rows.

        Words whose vertical centres lie within ``tolerance`` of a row's
        first word join that row; each row reads left to right.

        Args:
            words: ``page.get_text("words")`` tuples (x0, y0, x1, y1, text, ...).
            tolerance: Max vertical distance in points.

        Returns:
            Row strings from top to bottom.
        """
        placed = sorted(
            ((y0 + y1) / 2, x0, text) for x0, y0, x1, y1, text, *_ in words
        )

        rows: List[List[tuple]] = []
        anchor = None
        for middle, x0, text in placed:
            if anchor is None or middle - anchor > tolerance:
                rows.append([])
                anchor = middle
            rows[-1].append((x0, text))

        return [" ".join(text for _, text in sorted(row)) for row in rows]

    def _extract_with_pdfplumber(self, pdf_bytes: bytes) -> List[str]:
        if not pdf_bytes or b"%PDF" not in pdf_bytes[:1024]:
            raise ExtractionFailure("not a PDF (missing %PDF header)")

        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                return [page.extract_text() or "" for page in pdf.pages]
        except Exception as e:
            logger.error(f"pdfplumber text extraction failed: {e}")
            raise ExtractionFailure(str(e))

    def page_count(self, pdf_bytes: bytes) -> int:
        """
        Get the number of pages in a PDF.

        Raises:
            ExtractionFailure: If the buffer is not a readable PDF.
        """
        try:
            doc = open_pdf(pdf_bytes)
        except Exception as e:
            raise ExtractionFailure(str(e))

        try:
            return doc.page_count
        finally:
            doc.close()
