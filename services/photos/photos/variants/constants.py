"""
Image variants — static constants and enum types.
"""
import enum


class ImageFormat(str, enum.Enum):
    """Supported image container formats. The value doubles as file extension."""
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    TIFF = "tiff"
    GIF = "gif"
    PDF = "pdf"
    SVG = "svg"
    MAGICK = "magick"
    HEIF = "heif"
    AVIF = "avif"
    UNKNOWN = "unknown"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES.get(self, "application/octet-stream")

    @property
    def pillow_name(self) -> str | None:
        """Pillow plugin name used for decoding/encoding, None when Pillow has none."""
        return PILLOW_FORMATS.get(self)


# Extra spellings accepted in format lists
FORMAT_ALIASES: dict[str, ImageFormat] = {
    "jpg": ImageFormat.JPEG,
}

CONTENT_TYPES: dict[ImageFormat, str] = {
    ImageFormat.JPEG: "image/jpeg",
    ImageFormat.PNG: "image/png",
    ImageFormat.WEBP: "image/webp",
    ImageFormat.TIFF: "image/tiff",
    ImageFormat.GIF: "image/gif",
    ImageFormat.PDF: "application/pdf",
    ImageFormat.SVG: "image/svg+xml",
    ImageFormat.HEIF: "image/heif",
    ImageFormat.AVIF: "image/avif",
}

# SVG and MAGICK have no Pillow codec
PILLOW_FORMATS: dict[ImageFormat, str] = {
    ImageFormat.JPEG: "JPEG",
    ImageFormat.PNG: "PNG",
    ImageFormat.WEBP: "WEBP",
    ImageFormat.TIFF: "TIFF",
    ImageFormat.GIF: "GIF",
    ImageFormat.PDF: "PDF",
    ImageFormat.HEIF: "HEIF",
    ImageFormat.AVIF: "AVIF",
}

# Pillow's Image.format -> ImageFormat, for detecting what a source buffer is
DETECTED_FORMATS: dict[str, ImageFormat] = {
    "JPEG": ImageFormat.JPEG,
    "MPO": ImageFormat.JPEG,  # multi-picture JPEG from phone cameras
    "PNG": ImageFormat.PNG,
    "WEBP": ImageFormat.WEBP,
    "TIFF": ImageFormat.TIFF,
    "GIF": ImageFormat.GIF,
    "PDF": ImageFormat.PDF,
    "HEIF": ImageFormat.HEIF,
    "AVIF": ImageFormat.AVIF,
}

DEFAULT_FORMATS: tuple[ImageFormat, ...] = (ImageFormat.JPEG, ImageFormat.WEBP)

# Breakpoint label -> (width, height) box
DEFAULT_BOXES: dict[str, tuple[int, int]] = {
    "1200": (1090, 818),
    "992": (910, 683),
    "768": (670, 503),
    "576": (515, 386),
    "408": (400, 300),
    "320": (310, 225),
}

DEFAULT_THUMB_SIZE = 128

# Fixed artifacts written next to the variants
ORIGINAL_NAME = "orig"
THUMBNAIL_NAME = "thumbnail"
RESERVED_LABELS = frozenset({ORIGINAL_NAME, THUMBNAIL_NAME})

# Encoder quality for lossy formats
JPEG_QUALITY = 85
WEBP_QUALITY = 85

# EXIF orientations 5-8 swap width and height
EXIF_ORIENTATION_TAG = 0x0112
TRANSPOSED_ORIENTATIONS = frozenset({5, 6, 7, 8})
