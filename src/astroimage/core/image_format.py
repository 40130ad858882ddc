"""Validation and PNG normalisation of downloaded image bytes."""

from __future__ import annotations

import io
import logging

from PIL import Image, UnidentifiedImageError

from astroimage.core.errors import InvalidImageFormat

logger = logging.getLogger(__name__)

# Modes the PNG encoder writes directly; anything else (e.g. CMYK) is converted.
_PNG_MODES = {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}


def to_png(data: bytes) -> bytes:
    """Decode *data* as an image and return it encoded as PNG.

    PNG input is returned unchanged; any other decodable format is
    re-encoded, since stored images are always served as ``image/png``.

    Raises:
        InvalidImageFormat: If *data* is empty or not a decodable image.
    """
    if not data:
        raise InvalidImageFormat("Generated image is empty")

    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            if image.format == "PNG":
                return data
            logger.debug(f"Re-encoding {image.format} image as PNG")
            buffer = io.BytesIO()
            if image.mode not in _PNG_MODES:
                image.convert("RGBA").save(buffer, format="PNG")
            else:
                image.save(buffer, format="PNG")
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageFormat.wrap("Generated image could not be decoded", e) from e

    return buffer.getvalue()
