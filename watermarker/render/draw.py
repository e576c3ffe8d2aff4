"""Compositing helpers: draw overlays onto a page buffer.

Overlays are resampled with OpenCV, mapped onto the page with one affine
transform per draw instruction and blended with Porter-Duff "over" on
premultiplied float buffers, then converted back to uint8 RGBA.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Sequence, Tuple

import cv2
import numpy as np

from watermarker.docs.model import Overlay
from watermarker.render.placement import DrawInstruction, plan


def ensure_rgba(pixels: np.ndarray) -> np.ndarray:
    """Return an RGBA uint8 view/copy of a gray, RGB or RGBA array."""
    if pixels.ndim == 2:
        return cv2.cvtColor(pixels, cv2.COLOR_GRAY2RGBA)
    channels = pixels.shape[2]
    if channels == 4:
        return pixels
    if channels == 3:
        return cv2.cvtColor(pixels, cv2.COLOR_RGB2RGBA)
    raise ValueError(f"Unsupported channel count: {channels}")


def premultiply(rgba: np.ndarray) -> np.ndarray:
    """uint8 RGBA -> float32 premultiplied RGBA in [0, 1]."""
    out = rgba.astype(np.float32) / 255.0
    out[..., :3] *= out[..., 3:4]
    return out


def unpremultiply(premul: np.ndarray) -> np.ndarray:
    """float32 premultiplied RGBA in [0, 1] -> uint8 RGBA."""
    alpha = premul[..., 3:4]
    rgb = np.divide(premul[..., :3], alpha, out=np.zeros_like(premul[..., :3]), where=alpha > 0)
    out = np.concatenate([rgb, alpha], axis=-1)
    return np.clip(out * 255.0 + 0.5, 0, 255).astype(np.uint8)


def _affine_for(instr: DrawInstruction, src_w: int, src_h: int) -> np.ndarray:
    """2x3 matrix mapping source pixel coordinates to page pixel coordinates.

    The source rectangle is scaled to (width, height), rotated about its
    centre and moved so that the unrotated top-left lands on (x, y).
    """
    sx = instr.width / src_w
    sy = instr.height / src_h
    c = math.cos(instr.rotation)
    s = math.sin(instr.rotation)
    a = np.array([[c * sx, -s * sy], [s * sx, c * sy]], dtype=np.float64)
    cx, cy = instr.center
    half = np.array([instr.width / 2.0, instr.height / 2.0])
    rot = np.array([[c, -s], [s, c]])
    t = np.array([cx, cy]) - rot @ half
    # pixel centres sit at +0.5 in continuous coordinates
    t = t + a @ np.array([0.5, 0.5]) - 0.5
    return np.hstack([a, t.reshape(2, 1)])


def _bounds(instr: DrawInstruction, canvas_w: int, canvas_h: int) -> Tuple[int, int, int, int]:
    """Clipped integer bounding box (x0, y0, x1, y1) of the transformed draw."""
    c = math.cos(instr.rotation)
    s = math.sin(instr.rotation)
    cx, cy = instr.center
    hw, hh = instr.width / 2.0, instr.height / 2.0
    xs = []
    ys = []
    for dx, dy in ((-hw, -hh), (hw, -hh), (hw, hh), (-hw, hh)):
        xs.append(cx + c * dx - s * dy)
        ys.append(cy + s * dx + c * dy)
    x0 = max(0, int(math.floor(min(xs))))
    y0 = max(0, int(math.floor(min(ys))))
    x1 = min(canvas_w, int(math.ceil(max(xs))))
    y1 = min(canvas_h, int(math.ceil(max(ys))))
    return x0, y0, x1, y1


def _resample(premul: np.ndarray, width: float, height: float) -> np.ndarray:
    rw = max(1, int(round(width)))
    rh = max(1, int(round(height)))
    src_h, src_w = premul.shape[:2]
    if (rw, rh) == (src_w, src_h):
        return premul
    shrinking = rw < src_w or rh < src_h
    interp = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
    return cv2.resize(premul, (rw, rh), interpolation=interp)


def composite(
    page: np.ndarray,
    overlay: np.ndarray,
    instructions: Iterable[DrawInstruction],
    opacity: float,
) -> np.ndarray:
    """Draw `overlay` once per instruction onto a copy of `page`.

    Doxygen:
    - @param page: Page buffer, HxWx4 (or HxWx3) uint8.
    - @param overlay: Overlay buffer, hxwx4 uint8 RGBA. Not modified.
    - @param instructions: Draw geometry from `plan`.
    - @param opacity: Global opacity multiplied into every source alpha.
    - @return: New HxWx4 uint8 RGBA buffer.
    """
    out = ensure_rgba(page).copy()
    canvas_h, canvas_w = out.shape[:2]
    overlay = ensure_rgba(overlay)
    if opacity <= 0 or overlay.shape[0] == 0 or overlay.shape[1] == 0:
        return out

    src = premultiply(overlay)
    resized: Dict[Tuple[int, int], np.ndarray] = {}

    for instr in instructions:
        if instr.width <= 0 or instr.height <= 0:
            continue
        x0, y0, x1, y1 = _bounds(instr, canvas_w, canvas_h)
        if x1 <= x0 or y1 <= y0:
            continue

        key = (max(1, int(round(instr.width))), max(1, int(round(instr.height))))
        if key not in resized:
            resized[key] = _resample(src, instr.width, instr.height)
        tile = resized[key]

        m = _affine_for(instr, tile.shape[1], tile.shape[0])
        m[0, 2] -= x0
        m[1, 2] -= y0
        warped = cv2.warpAffine(
            tile,
            m,
            (x1 - x0, y1 - y0),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=(0, 0, 0, 0),
        )
        warped *= opacity

        dst = premultiply(out[y0:y1, x0:x1])
        blended = warped + dst * (1.0 - warped[..., 3:4])
        out[y0:y1, x0:x1] = unpremultiply(np.clip(blended, 0.0, 1.0))

    return out


def composite_overlays(
    page: np.ndarray,
    overlays: Sequence[Overlay],
    opacity: float,
    scale: float,
    position,
) -> np.ndarray:
    """Fold every overlay, in list order, onto the evolving page buffer.

    Each overlay gets its own placement plan; later overlays land on top.
    """
    buf = ensure_rgba(page).copy()
    for overlay in overlays:
        canvas_h, canvas_w = buf.shape[:2]
        instructions: List[DrawInstruction] = plan(
            canvas_w, canvas_h, overlay.width, overlay.height, scale, position
        )
        buf = composite(buf, overlay.pixels, instructions, opacity)
    return buf
