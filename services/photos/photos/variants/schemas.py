"""
Image variants — value types passed between the plan builder, the engine
and the pipeline drivers.

All of them are immutable apart from DerivationResult, which the engine fills
while it works.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from photos.variants.constants import (
    DEFAULT_THUMB_SIZE,
    ORIGINAL_NAME,
    THUMBNAIL_NAME,
    ImageFormat,
)


@dataclass(frozen=True)
class Dimensions:
    """A (width, height) pair in pixels."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"dimensions must be positive, got {self.width}x{self.height}")

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"

    def fits_within(self, box: Dimensions) -> bool:
        return self.width <= box.width and self.height <= box.height

    def as_tuple(self) -> tuple[int, int]:
        return (self.width, self.height)


@dataclass(frozen=True)
class NamedBox:
    label: str
    box: Dimensions


@dataclass(frozen=True)
class VariantSpec:
    """One box/format pair; determines exactly one output file."""

    label: str
    format: ImageFormat
    box: Dimensions

    @property
    def filename(self) -> str:
        return f"{self.label}.{self.format.extension}"


@dataclass(frozen=True)
class VariantPlan:
    """Configured boxes and output formats."""

    boxes: tuple[NamedBox, ...]
    formats: tuple[ImageFormat, ...]

    @property
    def specs(self) -> list[VariantSpec]:
        """Cross product of boxes and formats, boxes outermost."""
        return [
            VariantSpec(label=named.label, format=fmt, box=named.box)
            for named in self.boxes
            for fmt in self.formats
        ]


@dataclass(frozen=True)
class VariantConfig:
    """Everything the engine needs, built once at the process boundary."""

    plan: VariantPlan
    thumb_size: int = DEFAULT_THUMB_SIZE
    max_workers: int = 4


@dataclass(frozen=True)
class DerivedArtifact:
    path: str
    data: bytes
    format: ImageFormat
    dimensions: Dimensions

    @property
    def content_type(self) -> str:
        return self.format.content_type


@dataclass(frozen=True)
class VariantFailure:
    spec: VariantSpec
    reason: str


@dataclass
class DerivationResult:
    """Outcome of one engine run.

    ``artifacts`` holds everything that was produced, in the order
    orig, variants (plan order), thumbnail. ``failures`` lists variants that
    could not be derived; ``warnings`` collects non-fatal problems such as a
    failed thumbnail.
    """

    artifacts: list[DerivedArtifact] = field(default_factory=list)
    failures: list[VariantFailure] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def status(self) -> str:
        if self.ok:
            return "Success"
        failed = ", ".join(f.spec.filename for f in self.failures)
        return f"Partial: {len(self.failures)} variant(s) failed ({failed})"

    @property
    def filenames(self) -> list[str]:
        return [artifact.path for artifact in self.artifacts]

    @property
    def original(self) -> DerivedArtifact | None:
        return self._find(f"{ORIGINAL_NAME}.{ImageFormat.JPEG.extension}")

    @property
    def thumbnail(self) -> DerivedArtifact | None:
        return self._find(f"{THUMBNAIL_NAME}.{ImageFormat.JPEG.extension}")

    def _find(self, path: str) -> DerivedArtifact | None:
        for artifact in self.artifacts:
            if artifact.path == path:
                return artifact
        return None
