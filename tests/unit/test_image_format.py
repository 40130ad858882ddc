"""Tests for PNG normalisation of downloaded images."""

import io

import pytest
from PIL import Image

from astroimage.core.errors import InvalidImageFormat
from astroimage.core.image_format import to_png


def _encode(image: Image.Image, fmt: str) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def test_png_is_returned_unchanged():
    """PNG input is returned as the same bytes object."""
    data = _encode(Image.new("RGB", (4, 4), "blue"), "PNG")
    assert to_png(data) is data


def test_jpeg_is_reencoded():
    """JPEG input is re-encoded as a PNG of the same size."""
    data = _encode(Image.new("RGB", (4, 4), "green"), "JPEG")

    result = to_png(data)

    assert result.startswith(b"\x89PNG")
    with Image.open(io.BytesIO(result)) as image:
        assert image.format == "PNG"
        assert image.size == (4, 4)


def test_cmyk_is_converted():
    """Modes PNG cannot store are converted to RGBA."""
    data = _encode(Image.new("CMYK", (4, 4)), "JPEG")

    with Image.open(io.BytesIO(to_png(data))) as image:
        assert image.mode == "RGBA"


def test_empty_bytes_rejected():
    """Empty input raises InvalidImageFormat."""
    with pytest.raises(InvalidImageFormat, match="empty"):
        to_png(b"")


def test_garbage_rejected():
    """Bytes that are not an image raise InvalidImageFormat."""
    with pytest.raises(InvalidImageFormat):
        to_png(b"<html>Service Unavailable</html>")

