"""Image compression."""

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from xml.parsers.expat import ExpatError

from PIL import Image, UnidentifiedImageError
from scour.scour import sanitizeOptions, scourString

from ..core.errors import TransformError

logger = logging.getLogger(__name__)

RASTER_FORMATS = {".jpg": "JPEG", ".jpeg": "JPEG", ".png": "PNG", ".gif": "GIF"}


def _compress_raster(data: bytes, image_format: str) -> bytes:
    buffer = BytesIO()
    with Image.open(BytesIO(data)) as image:
        if image_format == "JPEG":
            # Reuse the source quantisation tables, no generational loss.
            image.save(buffer, "JPEG", quality="keep", optimize=True, progressive=True)
        elif image_format == "GIF" and getattr(image, "n_frames", 1) > 1:
            image.save(buffer, "GIF", save_all=True, optimize=True)
        else:
            image.save(buffer, image_format, optimize=True)
    return buffer.getvalue()


def _compress_svg(data: bytes) -> bytes:
    options = sanitizeOptions()
    options.strip_comments = True
    options.remove_metadata = True
    return scourString(data.decode("utf-8"), options).encode("utf-8")


def compress_image(path: Path) -> bytes:
    """Return the compressed bytes of an image, never larger than the input.

    Unknown extensions are passed through unchanged.
    """
    original = path.read_bytes()
    suffix = path.suffix.lower()
    try:
        if suffix == ".svg":
            candidate = _compress_svg(original)
        elif suffix in RASTER_FORMATS:
            candidate = _compress_raster(original, RASTER_FORMATS[suffix])
        else:
            return original
    except (UnidentifiedImageError, OSError, ValueError, ExpatError) as exc:
        raise TransformError(path, f"cannot compress image: {exc}") from exc

    if len(candidate) >= len(original):
        logger.debug(f"Kept original {path.name} ({len(original)} bytes)")
        return original
    logger.debug(f"Compressed {path.name}: {len(original)} -> {len(candidate)} bytes")
    return candidate
