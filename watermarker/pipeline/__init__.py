"""High-level pipeline orchestration for rasterize → watermark → export."""

from .process import (
    print_progress_bar,
    process_pages,
    process_pdf_watermark,
    watermark_pdf_file,
)

__all__ = [
    "print_progress_bar",
    "process_pages",
    "process_pdf_watermark",
    "watermark_pdf_file",
]
