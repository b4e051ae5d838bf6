"""
Image variant engine — normalize, resize and re-encode one source image.

Uses Pillow for image manipulation. Produces, from a single input image:
  - orig.jpeg:        auto-oriented, metadata stripped, re-encoded as JPEG
  - <label>.<ext>:    one file per box x format, fitted inside the box
  - thumbnail.jpeg:   square, centre-cropped thumbnail

Every variant is resized from the normalized image, never from the raw
upload. Variants are independent of each other and are derived on a thread
pool; a failed variant is recorded and the others still complete.
"""
from __future__ import annotations

import io
import logging
from concurrent.futures import ThreadPoolExecutor

import pillow_heif
from PIL import Image, ImageOps, UnidentifiedImageError

from photos.exceptions import ProcessingError, SourceError, ThumbnailError, VariantError
from photos.variants.constants import (
    DETECTED_FORMATS,
    EXIF_ORIENTATION_TAG,
    JPEG_QUALITY,
    ORIGINAL_NAME,
    THUMBNAIL_NAME,
    TRANSPOSED_ORIENTATIONS,
    WEBP_QUALITY,
    ImageFormat,
)
from photos.variants.geometry import fit
from photos.variants.schemas import (
    DerivationResult,
    DerivedArtifact,
    Dimensions,
    VariantConfig,
    VariantFailure,
    VariantSpec,
)

logger = logging.getLogger(__name__)

# HEIF/HEIC (iPhone uploads) has no opener in stock Pillow
pillow_heif.register_heif_opener()


def detect_format(data: bytes) -> ImageFormat:
    """Identify the container format of ``data``; UNKNOWN when Pillow can't tell."""
    if not data:
        return ImageFormat.UNKNOWN
    try:
        with Image.open(io.BytesIO(data)) as img:
            return DETECTED_FORMATS.get(img.format or "", ImageFormat.UNKNOWN)
    except (UnidentifiedImageError, OSError):
        return ImageFormat.UNKNOWN


def can_encode(fmt: ImageFormat) -> bool:
    """True when the running Pillow build has an encoder for ``fmt``."""
    name = fmt.pillow_name
    if name is None:
        return False
    Image.init()
    return name in Image.SAVE


def encode(img: Image.Image, fmt: ImageFormat) -> bytes:
    """Encode ``img`` as ``fmt`` without carrying any metadata over."""
    if not can_encode(fmt):
        raise ValueError(f"no encoder available for {fmt.extension}")
    buf = io.BytesIO()
    if fmt is ImageFormat.JPEG:
        img.save(buf, format="JPEG", quality=JPEG_QUALITY, optimize=True)
    elif fmt is ImageFormat.WEBP:
        img.save(buf, format="WEBP", quality=WEBP_QUALITY, method=4)
    else:
        img.save(buf, format=fmt.pillow_name)
    return buf.getvalue()


def _to_rgb(img: Image.Image) -> Image.Image:
    """Flatten onto white / convert so the image can be stored as JPEG."""
    if img.mode == "P" and "transparency" in img.info:
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA", "PA"):
        # Composite onto white background
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


class ImageVariantEngine:
    """Derive every configured artifact from one source image."""

    def __init__(self, config: VariantConfig) -> None:
        self._config = config

    @property
    def config(self) -> VariantConfig:
        return self._config

    def derive(self, data: bytes) -> DerivationResult:
        """Produce orig, variants and thumbnail from raw source bytes.

        Raises SourceError for unsupported input and ProcessingError when the
        source cannot be normalized or measured; in both cases nothing is
        produced. Variant and thumbnail problems end up in the result.
        """
        with self._open(data) as source:
            base, original = self._normalize(source)
            try:
                source_size = self._measure(source)
            except ProcessingError:
                base.close()
                raise

        try:
            result = DerivationResult(artifacts=[original])
            specs = self._config.plan.specs
            logger.info(
                "Deriving %d variant(s) from %s source",
                len(specs), source_size,
            )

            workers = max(1, min(self._config.max_workers, len(specs)))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(pool.map(
                    lambda spec: self._derive_one(base, source_size, spec), specs,
                ))
            for outcome in outcomes:
                if isinstance(outcome, VariantFailure):
                    result.failures.append(outcome)
                else:
                    result.artifacts.append(outcome)

            try:
                result.artifacts.append(self._thumbnail(base))
            except ThumbnailError as exc:
                logger.warning("Thumbnail skipped: %s", exc)
                result.warnings.append(str(exc))
        finally:
            base.close()

        return result

    # ── Steps ────────────────────────────────────────────────────────────────

    def _open(self, data: bytes) -> Image.Image:
        if not data:
            raise SourceError("source is empty")
        try:
            img = Image.open(io.BytesIO(data))
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
            raise SourceError(f"invalid image type: {exc}") from exc
        if DETECTED_FORMATS.get(img.format or "", ImageFormat.UNKNOWN) is ImageFormat.UNKNOWN:
            img.close()
            raise SourceError(f"unsupported image type: {img.format}")
        return img

    def _normalize(self, source: Image.Image) -> tuple[Image.Image, DerivedArtifact]:
        """Auto-orient, strip metadata, encode JPEG. Returns the decoded result too."""
        try:
            oriented = ImageOps.exif_transpose(source)
            rgb = _to_rgb(oriented)
            # drop EXIF/ICC/XMP carried over from the upload
            rgb.info = {}
            data = encode(rgb, ImageFormat.JPEG)
            base = Image.open(io.BytesIO(data))
            base.load()
        except (OSError, ValueError, SyntaxError) as exc:
            raise ProcessingError(f"Error converting and autorotating: {exc}") from exc
        artifact = DerivedArtifact(
            path=f"{ORIGINAL_NAME}.{ImageFormat.JPEG.extension}",
            data=data,
            format=ImageFormat.JPEG,
            dimensions=Dimensions(*base.size),
        )
        return base, artifact

    def _measure(self, source: Image.Image) -> Dimensions:
        """Size of the original buffer, in display orientation."""
        try:
            width, height = source.size
            orientation = source.getexif().get(EXIF_ORIENTATION_TAG)
            if orientation in TRANSPOSED_ORIENTATIONS:
                width, height = height, width
            return Dimensions(width, height)
        except (OSError, ValueError) as exc:
            raise ProcessingError(f"Error getting image size: {exc}") from exc

    def _derive_one(
        self,
        base: Image.Image,
        source_size: Dimensions,
        spec: VariantSpec,
    ) -> DerivedArtifact | VariantFailure:
        try:
            artifact = self._render(base, source_size, spec)
        except VariantError as exc:
            logger.error("Variant %s failed: %s", spec.filename, exc.reason)
            return VariantFailure(spec=spec, reason=exc.reason)
        logger.debug("Derived %s at %s", artifact.path, artifact.dimensions)
        return artifact

    def _render(self, base: Image.Image, source_size: Dimensions, spec: VariantSpec) -> DerivedArtifact:
        size = fit(source_size, spec.box)
        try:
            resized = base.resize(size.as_tuple(), Image.LANCZOS)
        except (OSError, ValueError, MemoryError) as exc:
            raise VariantError(spec, f"Error resizing to {size.width}Wx{size.height}H: {exc}") from exc
        try:
            data = encode(resized, spec.format)
        except (OSError, ValueError, KeyError) as exc:
            raise VariantError(spec, f"Error converting to {spec.format.extension}: {exc}") from exc
        finally:
            resized.close()
        return DerivedArtifact(path=spec.filename, data=data, format=spec.format, dimensions=size)

    def _thumbnail(self, base: Image.Image) -> DerivedArtifact:
        size = self._config.thumb_size
        try:
            thumb = ImageOps.fit(base, (size, size), Image.LANCZOS)
            data = encode(thumb, ImageFormat.JPEG)
        except (OSError, ValueError) as exc:
            raise ThumbnailError(f"Error creating thumbnail: {exc}") from exc
        return DerivedArtifact(
            path=f"{THUMBNAIL_NAME}.{ImageFormat.JPEG.extension}",
            data=data,
            format=ImageFormat.JPEG,
            dimensions=Dimensions(size, size),
        )
