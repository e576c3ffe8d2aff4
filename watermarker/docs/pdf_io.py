from __future__ import annotations

import logging
import math
import os
from typing import Optional

import numpy as np
from pdf2image import convert_from_bytes, pdfinfo_from_bytes
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)

from watermarker.errors import ConfigError, DocumentDecodeError

from .model import PageImage

logger = logging.getLogger(__name__)

PDF_SIGNATURE = b"%PDF-"
POINTS_PER_INCH = 72.0

_POPPLER_ERRORS = (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)


def is_pdf_bytes(data: bytes) -> bool:
    # readers tolerate leading garbage before the header within the first 1 KiB
    return bool(data) and PDF_SIGNATURE in data[:1024]


def read_pdf_bytes(path: str) -> bytes:
    if not os.path.exists(path):
        raise FileNotFoundError(f"PDF file not found: {path}")
    with open(path, "rb") as f:
        data = f.read()
    if not is_pdf_bytes(data):
        raise DocumentDecodeError(f"Not a PDF file: {path}")
    return data


def count_pages(pdf_bytes: bytes, poppler_path: Optional[str] = None) -> int:
    """Return the number of pages of a PDF given as bytes.

    Doxygen:
    - @param pdf_bytes: PDF file content.
    - @param poppler_path: Poppler binary directory (None searches PATH).
    - @return: Page count (>= 1).
    - @throws DocumentDecodeError: If the bytes are not a readable PDF.
    """
    if not is_pdf_bytes(pdf_bytes):
        raise DocumentDecodeError("Input is not a PDF document")
    try:
        info = pdfinfo_from_bytes(pdf_bytes, poppler_path=poppler_path)
        pages = int(info["Pages"])
    except _POPPLER_ERRORS as exc:
        raise DocumentDecodeError(f"Failed to read PDF: {exc}") from exc
    except (KeyError, ValueError) as exc:
        raise DocumentDecodeError(f"Could not determine page count: {exc}") from exc
    if pages < 1:
        raise DocumentDecodeError("PDF has no pages")
    return pages


def rasterize_page(
    pdf_bytes: bytes,
    page_number: int,
    scale: float = 2.0,
    poppler_path: Optional[str] = None,
    page_count: Optional[int] = None,
) -> PageImage:
    """Render one PDF page to an RGBA pixel buffer.

    One PDF point becomes `scale` pixels (rendering at 72 * scale DPI), so a
    612x792 pt page yields a 1224x1584 buffer at the default scale.

    Args:
        pdf_bytes: PDF file content.
        page_number: 1-based page number.
        scale: Rendering scale factor relative to PDF points.
        poppler_path: Path to the Poppler binary directory.
        page_count: Known page count, to skip a pdfinfo call.

    Returns:
        A PageImage holding a fresh HxWx4 uint8 array.
    """
    if scale <= 0 or not math.isfinite(scale):
        raise ConfigError(f"Rendering scale must be positive, got {scale!r}")
    total = page_count if page_count is not None else count_pages(pdf_bytes, poppler_path)
    if not isinstance(page_number, int) or page_number < 1 or page_number > total:
        raise DocumentDecodeError(f"Page {page_number} is out of range (1..{total})")

    try:
        images = convert_from_bytes(
            pdf_bytes,
            dpi=POINTS_PER_INCH * scale,
            first_page=page_number,
            last_page=page_number,
            poppler_path=poppler_path,
        )
    except _POPPLER_ERRORS as exc:
        raise DocumentDecodeError(f"Failed to render page {page_number}: {exc}") from exc

    if not images:
        raise DocumentDecodeError(f"Poppler returned no image for page {page_number}")
    pil_img = images[0]
    pixels = np.array(pil_img.convert("RGBA"), dtype=np.uint8)
    logger.debug("Rasterized page %d at %.2fx -> %dx%d", page_number, scale, pixels.shape[1], pixels.shape[0])
    return PageImage(index=page_number, pixels=pixels)


class PdfRasterizer:
    """Per-document render capability: page count plus render(page_number)."""

    def __init__(self, pdf_bytes: bytes, scale: float = 2.0, poppler_path: Optional[str] = None) -> None:
        if not is_pdf_bytes(pdf_bytes):
            raise DocumentDecodeError("Input is not a PDF document")
        self.pdf_bytes = pdf_bytes
        self.scale = float(scale)
        self.poppler_path = poppler_path
        self._page_count: Optional[int] = None

    @property
    def page_count(self) -> int:
        if self._page_count is None:
            self._page_count = count_pages(self.pdf_bytes, self.poppler_path)
        return self._page_count

    def render(self, page_number: int) -> PageImage:
        return rasterize_page(
            self.pdf_bytes,
            page_number,
            scale=self.scale,
            poppler_path=self.poppler_path,
            page_count=self.page_count,
        )
