"""Image codec helpers: overlay decoding and lossless page encoding.

These utilities convert between encoded image bytes and numpy RGBA arrays
using Pillow.
"""

from __future__ import annotations

import io
import logging
import mimetypes
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from watermarker.docs.model import Overlay
from watermarker.errors import EncodeError, ImageDecodeError, NoOverlaysError

logger = logging.getLogger(__name__)

# missing from the built-in table on hosts without a system mime.types
mimetypes.add_type("image/webp", ".webp")


def load_overlay(data: bytes, name: str = "") -> Overlay:
    """Decode one overlay image to an RGBA array.

    Doxygen:
    - @param data: Raw bytes of a raster image file (PNG, JPEG, GIF, WEBP, ...).
    - @param name: Label used in logs and errors (usually the file name).
    - @return: Overlay with intrinsic width/height of the source asset.
    - @throws ImageDecodeError: On corrupt or unsupported input.
    """
    label = name or "<overlay>"
    if not data:
        raise ImageDecodeError(f"Overlay {label} is empty")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"Failed to decode overlay {label}: {exc}") from exc

    pixels = np.array(rgba, dtype=np.uint8)
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise ImageDecodeError(f"Overlay {label} has no pixels")
    # shared by all page workers
    pixels.setflags(write=False)
    logger.debug("Loaded overlay %s (%dx%d)", label, pixels.shape[1], pixels.shape[0])
    return Overlay(name=name, pixels=pixels)


def load_overlays(items: Sequence[Tuple[str, bytes]], max_workers: Optional[int] = None) -> List[Overlay]:
    """Decode overlays independently; the result keeps the input order.

    The first decode failure is raised after all submitted work has settled.
    """
    if not items:
        raise NoOverlaysError("At least one overlay image is required")
    if max_workers is not None and max_workers <= 1:
        return [load_overlay(data, name) for name, data in items]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(load_overlay, data, name) for name, data in items]
        return [f.result() for f in futures]


def is_image_path(path: str) -> bool:
    mime, _ = mimetypes.guess_type(path)
    return bool(mime) and mime.startswith("image/")


def read_overlay_files(paths: Sequence[str]) -> List[Tuple[str, bytes]]:
    """Read overlay files from disk, skipping anything that is not an image type.

    Doxygen:
    - @param paths: Candidate overlay file paths, in compositing order.
    - @return: List of (basename, bytes) for the image files, order preserved.
    - @throws FileNotFoundError: If an image path does not exist.
    - @throws NoOverlaysError: If no path has an image MIME type.
    """
    items: List[Tuple[str, bytes]] = []
    for path in paths:
        if not is_image_path(path):
            logger.warning("Skipping non-image overlay file: %s", path)
            continue
        if not os.path.exists(path):
            raise FileNotFoundError(f"Overlay file not found: {path}")
        with open(path, "rb") as f:
            items.append((os.path.basename(path), f.read()))
    if not items:
        raise NoOverlaysError("No valid image files selected")
    return items


def encode_page(pixels: np.ndarray) -> bytes:
    """Serialize a page buffer to PNG bytes (lossless).

    Doxygen:
    - @param pixels: HxWx4 (or HxWx3) uint8 array.
    - @return: PNG file content.
    - @throws EncodeError: If Pillow cannot encode the buffer.
    """
    try:
        img = Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
        buf = io.BytesIO()
        img.save(buf, format="PNG")
    except (OSError, ValueError, TypeError, MemoryError) as exc:
        raise EncodeError(f"Failed to encode page buffer: {exc}") from exc
    return buf.getvalue()
