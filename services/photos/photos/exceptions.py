"""
Photos pipeline — domain exceptions.

Every failure the pipeline can report maps to one of these classes so that
handlers and the CLI can turn it into a short status string without
inspecting library-specific errors.

Propagation:
  ConfigError / SourceError / EventError  — abort before any artifact exists.
  ProcessingError                         — abort after the source was read.
  VariantError                            — collected per variant, siblings continue.
  ThumbnailError                          — reported as a warning only.
  StorageError                            — S3 call failed.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from photos.variants.schemas import VariantSpec


class PhotosError(Exception):
    """Base class for every error raised by the pipeline."""


# ── Configuration ────────────────────────────────────────────────────────────

class ConfigError(PhotosError):
    """Malformed box or format configuration string."""


# ── Input ────────────────────────────────────────────────────────────────────

class EventError(PhotosError):
    """Event record or object key cannot be mapped to a bucket location."""


class SourceError(PhotosError):
    """Source bytes are missing, unreadable, or not a supported image."""


class StorageError(PhotosError):
    """An object storage call failed."""


# ── Processing ───────────────────────────────────────────────────────────────

class ProcessingError(PhotosError):
    """Normalizing or measuring the source image failed."""


class VariantError(PhotosError):
    """Deriving one box/format variant failed."""

    def __init__(self, spec: VariantSpec, reason: str) -> None:
        super().__init__(f"{spec.filename}: {reason}")
        self.spec = spec
        self.reason = reason


class ThumbnailError(PhotosError):
    """Creating the thumbnail failed. Never fatal."""
