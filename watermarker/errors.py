"""Exception taxonomy for the watermarking pipeline.

Every stage raises its own subclass of :class:`WatermarkerError`; the
``category`` tag lets the caller report a single categorized failure per run.
"""

from __future__ import annotations


class WatermarkerError(Exception):
    """Base class for all run-level failures."""

    category = "error"

    def __str__(self) -> str:
        msg = super().__str__()
        return msg or self.__class__.__name__


class ConfigError(WatermarkerError, ValueError):
    """Invalid watermark configuration (opacity, scale, position)."""

    category = "config"


class NoOverlaysError(ConfigError):
    """No overlay image was supplied for the run."""


class DocumentDecodeError(WatermarkerError):
    """Bad or unsupported document, or page index out of range."""

    category = "document_decode"


class ImageDecodeError(WatermarkerError):
    """Corrupt or non-image overlay input."""

    category = "image_decode"


class EncodeError(WatermarkerError):
    """A composited page could not be serialized."""

    category = "encode"


class ArchiveError(WatermarkerError):
    category = "archive"


class DocumentAssembleError(WatermarkerError):
    category = "document_assemble"


__all__ = [
    "WatermarkerError",
    "ConfigError",
    "NoOverlaysError",
    "DocumentDecodeError",
    "ImageDecodeError",
    "EncodeError",
    "ArchiveError",
    "DocumentAssembleError",
]
