from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass
from typing import Optional

from watermarker.errors import ConfigError
from watermarker.render.placement import PlacementMode

logger = logging.getLogger(__name__)

DEFAULT_RENDER_SCALE = 2.0


def _resolve_path(base: str, relative: str) -> str:
    return os.path.abspath(os.path.join(base, relative))


def configure_dependencies() -> Optional[str]:
    """Resolve the Poppler binary directory from config/dependencies.json.

    Falls back to the POPPLER_PATH environment variable. Returns None when
    nothing usable is configured, in which case pdf2image searches PATH.
    """
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
    deps_path = os.path.join(project_root, "config", "dependencies.json")

    poppler_abs: Optional[str] = None

    if os.path.exists(deps_path):
        try:
            with open(deps_path, "r", encoding="utf-8") as deps_file:
                deps = json.load(deps_file) or {}
        except (OSError, ValueError) as exc:
            logger.warning("Could not load dependencies from %s: %s", deps_path, exc)
            deps = {}

        poppler_rel = deps.get("poppler_path")
        if poppler_rel:
            candidate = _resolve_path(project_root, poppler_rel)
            if os.path.isdir(candidate):
                poppler_abs = candidate
            else:
                logger.warning("Poppler path from config does not exist or is not a directory: %s", candidate)
    else:
        logger.debug("dependencies.json not found at %s", deps_path)

    if poppler_abs is None:
        env = os.environ.get("POPPLER_PATH")
        if env and os.path.isdir(env):
            poppler_abs = env

    return poppler_abs


@dataclass
class WatermarkConfig:
    """Global settings for one run; applied to every overlay on every page."""

    opacity: float = 0.5
    scale: float = 0.5
    position: PlacementMode = PlacementMode.CENTER

    def __post_init__(self) -> None:
        if not isinstance(self.position, PlacementMode):
            self.position = PlacementMode.parse(self.position)
        self.validate()

    def validate(self) -> None:
        try:
            opacity = float(self.opacity)
            scale = float(self.scale)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"opacity and scale must be numbers: {exc}") from exc
        if not math.isfinite(opacity) or not 0.0 <= opacity <= 1.0:
            raise ConfigError(f"opacity must be within [0, 1], got {self.opacity!r}")
        if not math.isfinite(scale) or scale <= 0.0:
            raise ConfigError(f"scale must be greater than 0, got {self.scale!r}")
        self.opacity = opacity
        self.scale = scale


@dataclass
class RasterConfig:
    scale: float = DEFAULT_RENDER_SCALE  # 2x raster
    poppler_path: Optional[str] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        try:
            scale = float(self.scale)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"render scale must be a number: {exc}") from exc
        if not math.isfinite(scale) or scale <= 0.0:
            raise ConfigError(f"render scale must be greater than 0, got {self.scale!r}")
        self.scale = scale

