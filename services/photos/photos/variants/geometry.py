"""
Aspect-ratio preserving fit of an image into a bounding box.

The arithmetic truncates toward zero, matching what the existing derived
images in the destination buckets were produced with.
"""
from __future__ import annotations

from photos.variants.schemas import Dimensions


def resize_to_width(size: Dimensions, width: int) -> Dimensions:
    """Scale ``size`` to ``width``, keeping its aspect ratio."""
    return Dimensions(width, max(1, size.height * width // size.width))


def resize_to_height(size: Dimensions, height: int) -> Dimensions:
    """Scale ``size`` to ``height``, keeping its aspect ratio."""
    return Dimensions(max(1, size.width * height // size.height), height)


def fit(source: Dimensions, box: Dimensions) -> Dimensions:
    """Largest size within ``box`` with the aspect ratio of ``source``.

    Never upscales: a source already inside the box is returned unchanged.
    """
    if source.fits_within(box):
        return source

    if source.width > source.height:
        # Landscape
        resized = resize_to_width(source, box.width)
        if resized.height > box.height:
            resized = resize_to_height(resized, box.height)
    else:
        # Portrait or square
        resized = resize_to_height(source, box.height)
        if resized.width > box.width:
            resized = resize_to_width(resized, box.width)
    return resized
