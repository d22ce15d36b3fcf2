"""
PDF Runtime Module.

Process-wide PDF runtime context. The rendering library is configured
exactly once, before the first text extraction or rasterization, and the
resulting settings are read-only afterwards.

Usage:
    from statement_converter.input_handler.runtime import initialize_pdf_runtime

    initialize_pdf_runtime()          # optional, at startup
    runtime = get_pdf_runtime()       # components call this lazily

Author: ML Engineering Team
"""

import threading
from dataclasses import dataclass
from typing import Optional

import fitz  # PyMuPDF

from config import get_config
from statement_converter.utils.logger import get_logger

logger = get_logger(__name__)


TEXT_BACKENDS = ('pymupdf', 'pdfplumber')
RASTER_BACKENDS = ('pymupdf', 'pdf2image')
DEFAULT_RENDER_SCALE = 1.5


@dataclass(frozen=True)
class PdfRuntimeSettings:
    """
    Immutable snapshot of the PDF runtime configuration.

    Attributes:
        text_backend: Library used for text-layer extraction.
        raster_backend: Library used for page rendering.
        render_scale: Upscaling factor applied when rasterizing.
        mupdf_version: Version of the bundled MuPDF library.
    """
    text_backend: str
    raster_backend: str
    render_scale: float
    mupdf_version: str


_runtime: Optional[PdfRuntimeSettings] = None
_runtime_lock = threading.Lock()


def initialize_pdf_runtime(
    text_backend: Optional[str] = None,
    raster_backend: Optional[str] = None,
    render_scale: Optional[float] = None
) -> PdfRuntimeSettings:
    """
    Configure the PDF runtime once for the lifetime of the process.

    Later calls return the existing settings unchanged; differing
    arguments are reported and ignored.

    Args:
        text_backend: 'pymupdf' or 'pdfplumber'. Defaults to configuration.
        raster_backend: 'pymupdf' or 'pdf2image'. Defaults to configuration.
        render_scale: Rasterization scale. Defaults to configuration (1.5).

    Returns:
        The process-wide PdfRuntimeSettings.

    Raises:
        ValueError: If an unknown backend or a non-positive scale is given.
    """
    global _runtime

    with _runtime_lock:
        if _runtime is not None:
            requested = (text_backend, raster_backend, render_scale)
            current = (_runtime.text_backend, _runtime.raster_backend, _runtime.render_scale)
            if any(r is not None and r != c for r, c in zip(requested, current)):
                logger.warning(
                    f"PDF runtime already initialized with {current}; "
                    f"ignoring requested {requested}"
                )
            return _runtime

        text_backend = text_backend or get_config("input.pdf.text_backend", "pymupdf")
        raster_backend = raster_backend or get_config("input.pdf.raster_backend", "pymupdf")
        if render_scale is None:
            render_scale = get_config("input.pdf.render_scale", DEFAULT_RENDER_SCALE)

        if text_backend not in TEXT_BACKENDS:
            raise ValueError(f"Unknown text backend '{text_backend}', expected one of {TEXT_BACKENDS}")
        if raster_backend not in RASTER_BACKENDS:
            raise ValueError(f"Unknown raster backend '{raster_backend}', expected one of {RASTER_BACKENDS}")
        if float(render_scale) <= 0:
            raise ValueError(f"Render scale must be positive, got {render_scale}")

        # MuPDF prints recoverable syntax errors to stderr; we report failures ourselves
        fitz.TOOLS.mupdf_display_errors(False)

        _runtime = PdfRuntimeSettings(
            text_backend=text_backend,
            raster_backend=raster_backend,
            render_scale=float(render_scale),
            mupdf_version=str(fitz.version[1])
        )

        logger.info(
            f"PDF runtime initialized (text={text_backend}, raster={raster_backend}, "
            f"scale={render_scale}, mupdf={_runtime.mupdf_version})"
        )
        return _runtime


def get_pdf_runtime() -> PdfRuntimeSettings:
    """Return the runtime settings, initializing from configuration on first use."""
    if _runtime is None:
        return initialize_pdf_runtime()
    return _runtime


def reset_pdf_runtime() -> None:
    """Forget the runtime settings. Intended for tests only."""
    global _runtime
    with _runtime_lock:
        _runtime = None


def open_pdf(pdf_bytes: bytes) -> "fitz.Document":
    """
    Open a PDF byte buffer with PyMuPDF.

    Raises:
        ValueError: If the buffer is empty, not a PDF, or password-protected.
        RuntimeError: Re-raised library errors for corrupt documents.
    """
    if not pdf_bytes:
        raise ValueError("empty buffer")
    if b"%PDF" not in pdf_bytes[:1024]:
        raise ValueError("not a PDF (missing %PDF header)")

    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    if doc.needs_pass:
        doc.close()
        raise ValueError("document is password-protected")
    return doc
