"""
Entry point and compatibility facade for the PDF → watermark → export pipeline.

This module exposes a stable API and a CLI suitable for PyInstaller builds.

Packages:
- watermarker.docs: PDF rasterization, data model, ZIP/PDF/PNG export
- watermarker.image: Overlay decoding and PNG page encoding
- watermarker.render: Placement planning and alpha compositing
- watermarker.pipeline: High-level orchestration (`watermark_pdf_file`)
"""

from __future__ import annotations

import logging

from watermarker.config import RasterConfig, WatermarkConfig, configure_dependencies
from watermarker.errors import ConfigError, WatermarkerError
from watermarker.logger import setup_logger
from watermarker.render import PlacementMode, plan, composite, composite_overlays
from watermarker.image import load_overlay, load_overlays, encode_page
from watermarker.docs import PdfRasterizer, build_zip, build_pdf, write_pages
from watermarker.pipeline import process_pdf_watermark, watermark_pdf_file

__all__ = [
    # config
    "RasterConfig",
    "WatermarkConfig",
    "configure_dependencies",
    # core
    "PlacementMode",
    "plan",
    "composite",
    "composite_overlays",
    "load_overlay",
    "load_overlays",
    "encode_page",
    "PdfRasterizer",
    "build_zip",
    "build_pdf",
    "write_pages",
    # pipeline
    "process_pdf_watermark",
    "watermark_pdf_file",
]


def _cli(argv=None) -> int:
    """CLI for watermarking every page of a PDF with one or more images.

    --file / -f: Path to input PDF
    --watermark / -w: Watermark image path (repeatable; drawn in the given order)
    --opacity: Global opacity in [0, 1] (default: 0.5)
    --scale: Multiplier applied to each watermark's size (default: 0.5)
    --position / -p: Placement mode (default: center)
    --out-format: zip|pdf|png (default: zip)
    --out / -o: Output file (zip/pdf) or directory (png)
    --render-scale: Page rasterization scale relative to PDF points (default: 2.0)
    --workers: Pages processed in parallel (default: 1)
    """
    import argparse

    parser = argparse.ArgumentParser(description="Rasterize a PDF and stamp watermark images onto every page.")
    parser.add_argument("--file", "-f", type=str, required=True, help="Path to input PDF")
    parser.add_argument("--watermark", "-w", type=str, action="append", default=[], help="Watermark image path (repeatable)")
    parser.add_argument("--opacity", type=float, default=0.5, help="Watermark opacity in [0, 1] (default: 0.5)")
    parser.add_argument("--scale", type=float, default=0.5, help="Watermark scale multiplier (default: 0.5)")
    parser.add_argument("--position", "-p", type=str, default=PlacementMode.CENTER.value, choices=[m.value for m in PlacementMode], help="Placement mode (default: center)")
    parser.add_argument("--out-format", type=str, default="zip", choices=["zip", "pdf", "png"], help="Export format (default: zip)")
    parser.add_argument("--out", "-o", type=str, default=None, help="Output file (zip/pdf) or directory (png)")
    parser.add_argument("--render-scale", type=float, default=2.0, help="Rasterization scale relative to PDF points (default: 2.0)")
    parser.add_argument("--workers", type=int, default=1, help="Number of pages processed in parallel (default: 1)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    setup_logger("watermarker", logging.DEBUG if args.verbose else logging.INFO)

    # Configure external dependencies (Poppler) from config/dependencies.json
    poppler_path = configure_dependencies()

    try:
        config = WatermarkConfig(opacity=args.opacity, scale=args.scale, position=args.position)
        raster = RasterConfig(scale=args.render_scale, poppler_path=poppler_path)
    except ConfigError as e:
        print(f"{e.category}: {e}")
        return 2

    try:
        result = watermark_pdf_file(
            pdf_path=args.file,
            overlay_paths=args.watermark,
            config=config,
            out_format=args.out_format,
            out_path=args.out,
            raster=raster,
            max_workers=args.workers,
            progress=True,
        )
    except ConfigError as e:
        print(f"{e.category}: {e}")
        return 2
    except WatermarkerError as e:
        print(f"{e.category}: {e}")
        return 1
    except FileNotFoundError as e:
        print(f"not_found: {e}")
        return 1

    # Print produced paths
    for k, v in result.items():
        if isinstance(v, list):
            for item in v:
                print(f"{k}: {item}")
        else:
            print(f"{k}: {v}")
    return 0


if __name__ == "__main__":
    raise SystemExit(_cli())
