"""Watermark placement planning and compositing."""

from .placement import (
    MARGIN,
    TILE_ROTATION,
    DrawInstruction,
    PlacementMode,
    plan,
)
from .draw import composite, composite_overlays

__all__ = [
    "MARGIN",
    "TILE_ROTATION",
    "DrawInstruction",
    "PlacementMode",
    "plan",
    "composite",
    "composite_overlays",
]
