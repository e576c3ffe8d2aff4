"""Export of encoded pages: ZIP bundle, rebuilt PDF, or loose PNG files.

All exporters are all-or-nothing: they either return/write the complete
result or raise, leaving nothing partial behind.
"""

from __future__ import annotations

import io
import logging
import os
import zipfile
from typing import Dict, List, Sequence

from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from watermarker.errors import ArchiveError, ConfigError, DocumentAssembleError

from .model import EncodedPage

logger = logging.getLogger(__name__)

DEFAULT_ZIP_NAME = "watermarked_pages.zip"
DEFAULT_PDF_NAME = "watermarked_document.pdf"
EXPORT_FORMATS = ("zip", "pdf", "png")


def _ordered(pages: Sequence[EncodedPage]) -> List[EncodedPage]:
    ordered = sorted(pages, key=lambda p: p.index)
    names = [p.filename for p in ordered]
    if len(set(names)) != len(names):
        raise ValueError("Duplicate page indices in export")
    return ordered


def build_zip(pages: Sequence[EncodedPage]) -> bytes:
    """Bundle pages as `page_<N>.png` entries of an in-memory ZIP archive.

    Doxygen:
    - @param pages: Encoded pages (any order; written by ascending index).
    - @return: ZIP file content.
    - @throws ArchiveError: If any entry cannot be written.
    """
    try:
        ordered = _ordered(pages)
        zip_buffer = io.BytesIO()
        with zipfile.ZipFile(zip_buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zip_file:
            for page in ordered:
                zip_file.writestr(page.filename, page.data)
    except (OSError, ValueError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
        raise ArchiveError(f"Failed to build ZIP archive: {exc}") from exc
    logger.info("Built ZIP bundle with %d page(s)", len(ordered))
    return zip_buffer.getvalue()


def build_pdf(pages: Sequence[EncodedPage]) -> bytes:
    """Rebuild a PDF with one full-page image per encoded page.

    Each page is exactly as large as its image, one pixel per PDF unit.

    Doxygen:
    - @param pages: Encoded pages (any order; assembled by ascending index).
    - @return: PDF file content.
    - @throws DocumentAssembleError: If an image cannot be embedded.
    """
    try:
        ordered = _ordered(pages)
        if not ordered:
            raise ValueError("No pages to assemble")
        pdf_buffer = io.BytesIO()
        c = canvas.Canvas(pdf_buffer)
        for page in ordered:
            reader = ImageReader(io.BytesIO(page.data))
            width, height = reader.getSize()
            c.setPageSize((width, height))
            c.drawImage(reader, 0, 0, width=width, height=height, mask="auto")
            c.showPage()
        c.save()
    except Exception as exc:  # reportlab re-raises image errors with varying types
        raise DocumentAssembleError(f"Failed to assemble PDF: {exc}") from exc
    logger.info("Assembled PDF with %d page(s)", len(ordered))
    return pdf_buffer.getvalue()


def write_pages(pages: Sequence[EncodedPage], out_dir: str) -> List[str]:
    """Write every page as its own `page_<N>.png` file under `out_dir`."""
    written: List[str] = []
    try:
        ordered = _ordered(pages)
        os.makedirs(out_dir, exist_ok=True)
        for page in ordered:
            path = os.path.join(out_dir, page.filename)
            with open(path, "wb") as f:
                f.write(page.data)
            written.append(path)
    except (OSError, ValueError) as exc:
        for path in written:
            try:
                os.remove(path)
            except OSError:
                logger.warning("Could not remove partial output %s", path)
        raise ArchiveError(f"Failed to write page files: {exc}") from exc
    logger.info("Wrote %d page file(s) to %s", len(written), out_dir)
    return written


def export(pages: Sequence[EncodedPage], out_format: str, out_path: str) -> Dict[str, object]:
    """Write pages to disk in the requested format.

    - zip: single archive at `out_path`
    - pdf: single document at `out_path`
    - png: directory `out_path` with one file per page
    """
    fmt = out_format.lower()
    if fmt == "png":
        return {"png": write_pages(pages, out_path)}

    if fmt == "zip":
        payload = build_zip(pages)
        error_cls = ArchiveError
    elif fmt == "pdf":
        payload = build_pdf(pages)
        error_cls = DocumentAssembleError
    else:
        raise ConfigError(f"Unsupported export format: {out_format!r} (expected one of {EXPORT_FORMATS})")

    # existing files at out_path are only replaced once the payload is on disk
    part_path = out_path + ".part"
    try:
        parent = os.path.dirname(os.path.abspath(out_path))
        os.makedirs(parent, exist_ok=True)
        with open(part_path, "wb") as f:
            f.write(payload)
        os.replace(part_path, out_path)
    except OSError as exc:
        if os.path.isfile(part_path):
            os.remove(part_path)
        raise error_cls(f"Failed to write {out_path}: {exc}") from exc
    return {fmt: out_path}
