"""
Page Rasterizer Module.

Renders a single PDF page into an in-memory PNG for OCR. Pages are
upscaled by a fixed factor (1.5x the native page size by default), which
keeps statement text legible for the recognizer without producing
oversized payloads.

Backends:
    - pymupdf: PyMuPDF pixmap rendering (default, no system dependencies)
    - pdf2image: Poppler-based rendering

Author: ML Engineering Team
"""

import io
from dataclasses import dataclass
from typing import Optional

import fitz  # PyMuPDF
import pdf2image
from PIL import Image

from statement_converter.utils.logger import get_logger
from statement_converter.utils.exceptions import RasterizationFailure
from .runtime import RASTER_BACKENDS, get_pdf_runtime, open_pdf

logger = get_logger(__name__)


@dataclass
class PageImage:
    """
    One rendered PDF page.

    Attributes:
        page_index: Zero-based index of the rendered page
        width: Image width in pixels
        height: Image height in pixels
        data: Encoded image payload
        mime_type: Encoding of ``data``
        scale: Upscaling factor used for rendering
    """
    page_index: int
    width: int
    height: int
    data: bytes
    mime_type: str = "image/png"
    scale: float = 1.5

    def to_pil(self) -> Image.Image:
        """Decode the payload into an RGB Pillow image."""
        image = Image.open(io.BytesIO(self.data))
        if image.mode != 'RGB':
            image = image.convert('RGB')
        return image

    def __repr__(self) -> str:
        return (
            f"PageImage(page={self.page_index}, "
            f"size={self.width}x{self.height}, "
            f"bytes={len(self.data)})"
        )


class PageRasterizer:
    """
    Renders PDF pages to PNG images.

    Attributes:
        backend: 'pymupdf' or 'pdf2image'
        scale: Upscaling factor relative to the page's native size

    Example:
        >>> rasterizer = PageRasterizer()
        >>> image = rasterizer.rasterize(pdf_bytes)        # first page
        >>> image = rasterizer.rasterize(pdf_bytes, 2)     # third page
    """

    def __init__(self, backend: Optional[str] = None, scale: Optional[float] = None) -> None:
        runtime = get_pdf_runtime()
        self.backend = backend or runtime.raster_backend
        self.scale = float(scale if scale is not None else runtime.render_scale)

        if self.backend not in RASTER_BACKENDS:
            raise ValueError(f"Unknown raster backend '{self.backend}'")

        logger.debug(f"PageRasterizer initialized (backend={self.backend}, scale={self.scale})")

    def rasterize(self, pdf_bytes: bytes, page_index: int = 0) -> PageImage:
        """
        Render one page of the document.

        Args:
            pdf_bytes: Raw PDF document.
            page_index: Zero-based page index (default: first page).

        Returns:
            PageImage with a PNG payload.

        Raises:
            RasterizationFailure: If the page is out of range or cannot be rendered.
        """
        if page_index < 0:
            raise RasterizationFailure(page_index, "page index must not be negative")

        if self.backend == 'pdf2image':
            image = self._render_with_pdf2image(pdf_bytes, page_index)
        else:
            image = self._render_with_pymupdf(pdf_bytes, page_index)

        logger.info(f"Rasterized page {page_index + 1}: {image.width}x{image.height} px")
        return image

    def _render_with_pymupdf(self, pdf_bytes: bytes, page_index: int) -> PageImage:
        try:
            doc = open_pdf(pdf_bytes)
        except Exception as e:
            logger.error(f"Could not open PDF for rendering: {e}")
            raise RasterizationFailure(page_index, str(e))

        try:
            if page_index >= doc.page_count:
                raise RasterizationFailure(
                    page_index,
                    f"page {page_index + 1} is out of range (1-{doc.page_count})"
                )

            page = doc.load_page(page_index)
            pix = page.get_pixmap(matrix=fitz.Matrix(self.scale, self.scale))

            return PageImage(
                page_index=page_index,
                width=pix.width,
                height=pix.height,
                data=pix.tobytes("png"),
                scale=self.scale
            )

        except RasterizationFailure:
            raise
        except Exception as e:
            logger.error(f"PyMuPDF rendering failed: {e}")
            raise RasterizationFailure(page_index, str(e))
        finally:
            doc.close()

    def _render_with_pdf2image(self, pdf_bytes: bytes, page_index: int) -> PageImage:
        # Native PDF resolution is 72 DPI
        dpi = int(round(72 * self.scale))

        try:
            page_count = pdf2image.pdfinfo_from_bytes(pdf_bytes).get('Pages', 0)
        except Exception as e:
            logger.error(f"Could not read PDF info: {e}")
            raise RasterizationFailure(page_index, str(e))

        if page_index >= page_count:
            raise RasterizationFailure(
                page_index,
                f"page {page_index + 1} is out of range (1-{page_count})"
            )

        try:
            images = pdf2image.convert_from_bytes(
                pdf_bytes,
                dpi=dpi,
                first_page=page_index + 1,
                last_page=page_index + 1,
                fmt='png'
            )
            image = images[0]
            buffer = io.BytesIO()
            image.save(buffer, format='PNG')
        except Exception as e:
            logger.error(f"pdf2image conversion failed: {e}")
            raise RasterizationFailure(page_index, str(e))

        return PageImage(
            page_index=page_index,
            width=image.width,
            height=image.height,
            data=buffer.getvalue(),
            scale=self.scale
        )
