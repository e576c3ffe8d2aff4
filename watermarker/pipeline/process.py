"""High-level pipeline: rasterize → composite overlays → encode → export.

This module orchestrates one run over one document and one overlay set and
provides `watermark_pdf_file` as a single entry point for scripts and the CLI.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Sequence

from watermarker.config import RasterConfig, WatermarkConfig
from watermarker.docs.export import DEFAULT_PDF_NAME, DEFAULT_ZIP_NAME, EXPORT_FORMATS, export
from watermarker.docs.model import EncodedPage, Overlay
from watermarker.docs.pdf_io import PdfRasterizer, read_pdf_bytes
from watermarker.errors import ConfigError, NoOverlaysError, WatermarkerError
from watermarker.image import encode_page, load_overlays, read_overlay_files
from watermarker.render import composite_overlays

logger = logging.getLogger(__name__)


def print_progress_bar(done_pages: int, total_pages: int, width: int = 10) -> None:
    """Render a colored one-line progress bar (10 fixed segments).

    Doxygen:
    - @param done_pages: Number of pages already watermarked.
    - @param total_pages: Total pages in the document.
    - @param width: Number of bar segments (default 10).
    """
    total = max(1, total_pages)
    done = max(0, min(done_pages, total))
    segments = max(1, int(width))
    filled = int(done / total * segments)
    if done >= total:
        filled = segments
    pending = max(0, segments - filled)
    GREEN = "\x1b[32m"
    RED = "\x1b[31m"
    RESET = "\x1b[0m"
    bar = f"{GREEN}{'█'*filled}{RESET}{RED}{'█'*pending}{RESET} [{done}/{total_pages}]"
    end = "\n" if done >= total else ""
    print(f"\r{bar}", end=end, flush=True)


def process_page(rasterizer, page_number: int, overlays: Sequence[Overlay], config: WatermarkConfig) -> EncodedPage:
    """Rasterize, watermark and encode a single page.

    The page buffer is created here and never leaves this call, so pages can
    run on separate workers.
    """
    page = rasterizer.render(page_number)
    pixels = composite_overlays(page.pixels, overlays, config.opacity, config.scale, config.position)
    data = encode_page(pixels)
    logger.debug("Page %d watermarked (%dx%d, %d bytes)", page_number, pixels.shape[1], pixels.shape[0], len(data))
    return EncodedPage(index=page_number, data=data)


def process_pages(
    rasterizer,
    overlays: Sequence[Overlay],
    config: WatermarkConfig,
    max_workers: int = 1,
    progress: bool = False,
) -> List[EncodedPage]:
    """Watermark every page of `rasterizer` and return them in page order.

    Doxygen:
    - @param rasterizer: Object with `page_count` and `render(page_number)`.
    - @param overlays: Decoded overlays, drawn in list order.
    - @param config: Global opacity / scale / position.
    - @param max_workers: >1 processes pages on a thread pool.
    - @param progress: Print a console progress bar.
    - @return: Encoded pages ordered by page number.
    - @throws NoOverlaysError: If `overlays` is empty (checked before rendering).
    """
    if not overlays:
        raise NoOverlaysError("Please supply at least one watermark image")
    config.validate()

    total = rasterizer.page_count
    numbers = list(range(1, total + 1))
    logger.info("Watermarking %d page(s) with %d overlay(s), position=%s", total, len(overlays), config.position.value)

    results: Dict[int, EncodedPage] = {}
    if progress:
        print_progress_bar(0, total)

    if max_workers is None or max_workers <= 1:
        for n in numbers:
            results[n] = process_page(rasterizer, n, overlays, config)
            if progress:
                print_progress_bar(len(results), total)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {pool.submit(process_page, rasterizer, n, overlays, config): n for n in numbers}
            try:
                for fut in as_completed(futures):
                    page = fut.result()
                    results[page.index] = page
                    if progress:
                        print_progress_bar(len(results), total)
            except BaseException:
                for fut in futures:
                    fut.cancel()
                raise

    # barrier: export needs every page, in document order
    return [results[n] for n in numbers]


def process_pdf_watermark(
    pdf_bytes: bytes,
    overlays: Sequence[Overlay],
    config: WatermarkConfig,
    raster: Optional[RasterConfig] = None,
    max_workers: int = 1,
    progress: bool = False,
) -> List[EncodedPage]:
    if not overlays:
        raise NoOverlaysError("Please supply at least one watermark image")
    raster = raster or RasterConfig()
    rasterizer = PdfRasterizer(pdf_bytes, scale=raster.scale, poppler_path=raster.poppler_path)
    return process_pages(rasterizer, overlays, config, max_workers=max_workers, progress=progress)


def default_output_path(pdf_path: str, out_format: str) -> str:
    base_dir = os.path.dirname(os.path.abspath(pdf_path))
    if out_format == "zip":
        return os.path.join(base_dir, DEFAULT_ZIP_NAME)
    if out_format == "pdf":
        return os.path.join(base_dir, DEFAULT_PDF_NAME)
    base_name = os.path.splitext(os.path.basename(pdf_path))[0]
    return os.path.join(base_dir, f"{base_name}_watermarked")


def watermark_pdf_file(
    pdf_path: str,
    overlay_paths: Sequence[str],
    config: Optional[WatermarkConfig] = None,
    out_format: str = "zip",
    out_path: Optional[str] = None,
    raster: Optional[RasterConfig] = None,
    max_workers: int = 1,
    progress: bool = False,
) -> Dict[str, Any]:
    """Run the full pipeline on files and write the requested export.

    Doxygen:
    - @param pdf_path: Source PDF path.
    - @param overlay_paths: Watermark image paths; non-image files are skipped.
    - @param config: Watermark settings (defaults: opacity 0.5, scale 0.5, center).
    - @param out_format: One of {'zip', 'pdf', 'png'}.
    - @param out_path: Output file (zip/pdf) or directory (png).
    - @return: Dict mapping the format to the produced path(s), plus 'pages'.
    - @throws WatermarkerError: Any stage failure; nothing is written then.
    """
    config = config or WatermarkConfig()
    fmt = (out_format or "").lower()
    if fmt not in EXPORT_FORMATS:
        raise ConfigError(f"Unsupported export format: {out_format!r} (expected one of {EXPORT_FORMATS})")

    try:
        # overlays first: an empty set must fail before any page is rendered
        overlays = load_overlays(read_overlay_files(overlay_paths), max_workers=max_workers)
        pdf_bytes = read_pdf_bytes(pdf_path)
        pages = process_pdf_watermark(
            pdf_bytes, overlays, config, raster=raster, max_workers=max_workers, progress=progress
        )
        target = out_path or default_output_path(pdf_path, fmt)
        result: Dict[str, Any] = export(pages, fmt, target)
    except WatermarkerError as exc:
        logger.error("Run failed [%s]: %s", exc.category, exc)
        raise

    result["pages"] = len(pages)
    logger.info("Exported %d page(s) as %s", len(pages), fmt)
    return result
