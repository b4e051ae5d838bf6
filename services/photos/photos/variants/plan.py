"""
Variant plan builder.

Turns the textual box and format configuration (environment variables or CLI
flags) into a VariantPlan. Empty configuration means defaults.

Box list:    "label:width,height;label:width,height"   e.g. "1200:1090,818;992:910,683"
Format list: "jpeg,webp,png"                            case-insensitive, "jpg" allowed
"""
from __future__ import annotations

from photos.exceptions import ConfigError
from photos.variants.constants import (
    DEFAULT_BOXES,
    DEFAULT_FORMATS,
    FORMAT_ALIASES,
    RESERVED_LABELS,
    ImageFormat,
)
from photos.variants.schemas import Dimensions, NamedBox, VariantPlan


def default_boxes() -> tuple[NamedBox, ...]:
    return tuple(
        NamedBox(label, Dimensions(width, height))
        for label, (width, height) in DEFAULT_BOXES.items()
    )


def parse_format(token: str) -> ImageFormat:
    """Map one format token to an ImageFormat. Raises ConfigError when unknown."""
    name = token.strip().lower()
    if name in FORMAT_ALIASES:
        return FORMAT_ALIASES[name]
    try:
        fmt = ImageFormat(name)
    except ValueError:
        raise ConfigError(f"unknown image type: {token.strip()}") from None
    if fmt is ImageFormat.UNKNOWN:
        raise ConfigError(f"unknown image type: {token.strip()}")
    return fmt


def parse_formats(text: str | None) -> tuple[ImageFormat, ...]:
    if not text or not text.strip():
        return DEFAULT_FORMATS
    formats: list[ImageFormat] = []
    for token in text.split(","):
        fmt = parse_format(token)
        if fmt not in formats:
            formats.append(fmt)
    return tuple(formats)


def _parse_side(value: str, side: str, entry: str) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        raise ConfigError(f"invalid {side} value {value!r} in dimensions entry: {entry}") from None
    if parsed <= 0:
        raise ConfigError(f"{side} must be positive in dimensions entry: {entry}")
    return parsed


def parse_boxes(text: str | None) -> tuple[NamedBox, ...]:
    if not text or not text.strip():
        return default_boxes()

    boxes: list[NamedBox] = []
    seen: set[str] = set()
    for entry in text.split(";"):
        parts = entry.split(":")
        if len(parts) != 2:
            raise ConfigError(f"invalid dimensions format: {entry!r}")
        label, size = parts[0].strip(), parts[1].split(",")
        if len(size) != 2:
            raise ConfigError(f"invalid dimensions format: {entry!r}")
        if not label:
            raise ConfigError(f"missing label in dimensions entry: {entry!r}")
        if label in RESERVED_LABELS:
            raise ConfigError(f"label {label!r} is reserved for a fixed artifact")
        if label in seen:
            raise ConfigError(f"duplicate label {label!r} in dimensions")
        width = _parse_side(size[0], "width", entry)
        height = _parse_side(size[1], "height", entry)
        seen.add(label)
        boxes.append(NamedBox(label, Dimensions(width, height)))
    return tuple(boxes)


def build_plan(boxes: str | None = None, formats: str | None = None) -> VariantPlan:
    """Parse both configuration strings. Raises ConfigError before any image I/O."""
    return VariantPlan(boxes=parse_boxes(boxes), formats=parse_formats(formats))
