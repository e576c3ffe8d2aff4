"""Placement planning: where and how often an overlay is drawn on a page.

`plan` is a pure function of the canvas size, the overlay's intrinsic size,
the global scale and the placement mode. It returns the fully resolved draw
geometry consumed by the compositor in `watermarker.render.draw`.

Nine anchor modes place one copy of the overlay, 20 px away from any edge the
anchor refers to. The `tile` mode covers the page with a grid of copies, each
rotated by -45 degrees about its own centre.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple, Union

from watermarker.errors import ConfigError

MARGIN = 20.0
TILE_PITCH = 1.5
TILE_ROTATION = -math.pi / 4


class PlacementMode(str, Enum):
    TOP_LEFT = "topLeft"
    TOP_CENTER = "topCenter"
    TOP_RIGHT = "topRight"
    CENTER_LEFT = "centerLeft"
    CENTER = "center"
    CENTER_RIGHT = "centerRight"
    BOTTOM_LEFT = "bottomLeft"
    BOTTOM_CENTER = "bottomCenter"
    BOTTOM_RIGHT = "bottomRight"
    TILE = "tile"

    @classmethod
    def parse(cls, value: Union[str, "PlacementMode"]) -> "PlacementMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ConfigError(f"Unknown position {value!r}; expected one of: {choices}") from None


# (horizontal, vertical) anchor per single-placement mode
_ANCHORS: Dict[PlacementMode, Tuple[str, str]] = {
    PlacementMode.TOP_LEFT: ("left", "top"),
    PlacementMode.TOP_CENTER: ("center", "top"),
    PlacementMode.TOP_RIGHT: ("right", "top"),
    PlacementMode.CENTER_LEFT: ("left", "center"),
    PlacementMode.CENTER: ("center", "center"),
    PlacementMode.CENTER_RIGHT: ("right", "center"),
    PlacementMode.BOTTOM_LEFT: ("left", "bottom"),
    PlacementMode.BOTTOM_CENTER: ("center", "bottom"),
    PlacementMode.BOTTOM_RIGHT: ("right", "bottom"),
}


@dataclass(frozen=True)
class DrawInstruction:
    """One resolved draw: top-left target (x, y), size and rotation in radians.

    Rotation is applied about the centre of the drawn rectangle.
    """

    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)


def _axis_offset(anchor: str, canvas: float, drawn: float) -> float:
    if anchor in ("left", "top"):
        return MARGIN
    if anchor == "center":
        return (canvas - drawn) / 2.0
    return canvas - drawn - MARGIN


def _check_dimension(name: str, value: float) -> float:
    v = float(value)
    if not math.isfinite(v) or v < 0:
        raise ValueError(f"{name} must be a finite non-negative number, got {value!r}")
    return v


def tile_origins(canvas: float, drawn: float) -> List[float]:
    """Grid origins along one axis: start one tile before 0, step 1.5 * drawn.

    Doxygen:
    - @param canvas: Canvas extent along the axis.
    - @param drawn: Drawn tile extent along the axis (must be > 0).
    - @return: Origins o with o < canvas, in increasing order.
    """
    pitch = drawn * TILE_PITCH
    start = -drawn
    count = max(0, math.ceil((canvas - start) / pitch))
    origins = [start + i * pitch for i in range(count)]
    # ceil() on an exact float boundary may admit one origin == canvas
    while origins and origins[-1] >= canvas:
        origins.pop()
    return origins


def plan(
    canvas_w: float,
    canvas_h: float,
    overlay_w: float,
    overlay_h: float,
    scale: float,
    mode: Union[str, PlacementMode],
) -> List[DrawInstruction]:
    """Compute the ordered draw instructions for one overlay on one page.

    Doxygen:
    - @param canvas_w: Page width in pixels.
    - @param canvas_h: Page height in pixels.
    - @param overlay_w: Overlay intrinsic width in pixels.
    - @param overlay_h: Overlay intrinsic height in pixels.
    - @param scale: Multiplier applied to the intrinsic overlay size.
    - @param mode: PlacementMode (or its string value).
    - @return: One instruction for anchor modes, row-major grid for `tile`.
    - @throws ValueError: On negative or non-finite dimensions.
    - @throws ConfigError: On an unknown mode string.
    """
    mode = PlacementMode.parse(mode)
    canvas_w = _check_dimension("canvas_w", canvas_w)
    canvas_h = _check_dimension("canvas_h", canvas_h)
    scale = _check_dimension("scale", scale)
    drawn_w = _check_dimension("overlay_w", overlay_w) * scale
    drawn_h = _check_dimension("overlay_h", overlay_h) * scale

    if mode is PlacementMode.TILE:
        if drawn_w <= 0 or drawn_h <= 0:
            return []
        xs = tile_origins(canvas_w, drawn_w)
        return [
            DrawInstruction(x=x, y=y, width=drawn_w, height=drawn_h, rotation=TILE_ROTATION)
            for y in tile_origins(canvas_h, drawn_h)
            for x in xs
        ]

    h_anchor, v_anchor = _ANCHORS[mode]
    x = _axis_offset(h_anchor, canvas_w, drawn_w)
    y = _axis_offset(v_anchor, canvas_h, drawn_h)
    return [DrawInstruction(x=x, y=y, width=drawn_w, height=drawn_h, rotation=0.0)]
