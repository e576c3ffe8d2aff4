"""Document layer: data model, PDF rasterization and export assembly.

Exposes:
- Data model: PageImage, Overlay, EncodedPage
- Reader: PdfRasterizer / rasterize_page (pdf2image + Poppler)
- Writers: build_zip, build_pdf, write_pages, export
"""

from .model import PageImage, Overlay, EncodedPage
from .pdf_io import PdfRasterizer, count_pages, rasterize_page, read_pdf_bytes
from .export import build_zip, build_pdf, write_pages, export

__all__ = [
    "PageImage",
    "Overlay",
    "EncodedPage",
    "PdfRasterizer",
    "count_pages",
    "rasterize_page",
    "read_pdf_bytes",
    "build_zip",
    "build_pdf",
    "write_pages",
    "export",
]
