import logging
from pathlib import Path

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from photos.exceptions import ConfigError
from photos.variants.constants import DEFAULT_THUMB_SIZE
from photos.variants.plan import build_plan
from photos.variants.schemas import VariantConfig

logger = logging.getLogger(__name__)


def _env_files() -> list[str]:
    """Load .env from the repository root (when running from services/photos) then local .env."""
    base = Path(__file__).resolve().parent.parent.parent.parent  # repository root
    return [str(base / ".env"), ".env"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Buckets ──────────────────────────────────────────────────────────────
    destination_bucket: str = ""
    aws_region: str = ""

    # ── Variants ─────────────────────────────────────────────────────────────
    # "label:width,height;...", empty means the default breakpoints
    dimensions: str = ""
    # "jpeg,webp,...", empty means jpeg + webp
    formats: str = ""
    thumb_size: int = DEFAULT_THUMB_SIZE
    max_workers: int = 4

    # ── Cleanup ──────────────────────────────────────────────────────────────
    max_keys: int = 1000
    # When set, only <prefix>/<cleanup_filename> is deleted instead of the whole folder
    cleanup_filename: str = ""

    log_level: str = "INFO"

    @field_validator("thumb_size", mode="before")
    @classmethod
    def _fallback_thumb_size(cls, v: object) -> int:
        try:
            size = int(v)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            size = 0
        if size <= 0:
            logger.warning("Invalid value for THUMB_SIZE: %r, using default %d", v, DEFAULT_THUMB_SIZE)
            return DEFAULT_THUMB_SIZE
        return size

    @field_validator("max_keys", "max_workers")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {v!r}")
        return level

    def variant_config(self) -> VariantConfig:
        """Parse the box/format strings once. Raises ConfigError."""
        return VariantConfig(
            plan=build_plan(self.dimensions, self.formats),
            thumb_size=self.thumb_size,
            max_workers=self.max_workers,
        )


def load_settings(**overrides: object) -> Settings:
    """Build Settings from the environment, reporting bad values as ConfigError."""
    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']).upper()}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(f"invalid settings: {problems}") from exc
