from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class PageImage:
    """One rasterized page. `index` is 1-based; `pixels` is HxWx4 uint8 RGBA."""

    index: int
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True, eq=False)
class Overlay:
    """A decoded watermark image, shared read-only across all pages."""

    name: str
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True)
class EncodedPage:
    index: int
    data: bytes
    ext: str = "png"

    @property
    def filename(self) -> str:
        return f"page_{self.index}.{self.ext}"
