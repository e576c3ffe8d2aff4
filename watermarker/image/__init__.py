"""Image-level codec utilities (overlay decoding, page encoding)."""

from .processing import (
    encode_page,
    load_overlay,
    load_overlays,
    read_overlay_files,
)

__all__ = [
    "encode_page",
    "load_overlay",
    "load_overlays",
    "read_overlay_files",
]
