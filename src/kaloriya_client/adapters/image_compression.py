"""Pillow-based photo compression before upload."""

import io
import logging
from dataclasses import dataclass
from pathlib import PurePath

from PIL import Image, ImageOps

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompressionStats:
    """Sizes before and after compression, reduction in percent."""

    original_size: int
    compressed_size: int
    reduction: int


@dataclass(frozen=True)
class CompressedImage:
    """Re-encoded image ready for upload."""

    data: bytes
    filename: str
    width: int
    height: int
    stats: CompressionStats
    content_type: str = "image/jpeg"


def needs_compression(size_bytes: int, threshold_kb: int = 300) -> bool:
    """Return True for images larger than the threshold."""
    return size_bytes > threshold_kb * 1024


def compress_image(
    raw: bytes, filename: str, max_width: int = 1024, quality: int = 75
) -> CompressedImage:
    """Downscale an image to `max_width` and re-encode it as JPEG.

    Raises PIL.UnidentifiedImageError when the bytes are not an image.
    """
    with Image.open(io.BytesIO(raw)) as opened:
        image = ImageOps.exif_transpose(opened)
        width, height = image.size
        if width > max_width:
            height = round(height * max_width / width)
            width = max_width
            image = image.resize((width, height))
        buffer = io.BytesIO()
        image.convert("RGB").save(buffer, format="JPEG", quality=quality, optimize=True)
    data = buffer.getvalue()
    stats = CompressionStats(
        original_size=len(raw),
        compressed_size=len(data),
        reduction=round((1 - len(data) / len(raw)) * 100) if raw else 0,
    )
    _logger.info(
        "Compressed photo %sKB -> %sKB (%s%% smaller)",
        round(stats.original_size / 1024),
        round(stats.compressed_size / 1024),
        stats.reduction,
    )
    return CompressedImage(
        data=data,
        filename=f"{PurePath(filename).stem or 'photo'}.jpg",
        width=width,
        height=height,
        stats=stats,
    )
