"""Tests for the domain error taxonomy."""

import pytest

from astroimage.core.errors import (
    AppError,
    ErrorCode,
    ImageGenerationFailed,
    ImageNotFound,
    ImageRetrievalFailed,
    ImageUploadFailed,
    InternalError,
    InvalidImageFormat,
    UserAlreadyExists,
    UserNotFound,
)


@pytest.mark.parametrize(
    "error_cls, code, status",
    [
        (UserNotFound, ErrorCode.USER_NOT_FOUND, 404),
        (UserAlreadyExists, ErrorCode.USER_ALREADY_EXISTS, 409),
        (ImageNotFound, ErrorCode.IMAGE_NOT_FOUND, 404),
        (ImageGenerationFailed, ErrorCode.IMAGE_GENERATION_FAILED, 500),
        (ImageUploadFailed, ErrorCode.IMAGE_UPLOAD_FAILED, 500),
        (ImageRetrievalFailed, ErrorCode.IMAGE_RETRIEVAL_FAILED, 500),
        (InvalidImageFormat, ErrorCode.INVALID_IMAGE_FORMAT, 400),
        (InternalError, ErrorCode.INTERNAL_ERROR, 500),
    ],
)
def test_codes_and_statuses(error_cls, code, status):
    """Each error carries its code, HTTP status and default message."""
    error = error_cls()
    assert isinstance(error, AppError)
    assert error.error_code is code
    assert error.status_code == status
    assert error.message == error_cls.default_message


def test_custom_message():
    """A per-instance message replaces the default."""
    error = UserNotFound("User u9 not found")
    assert error.message == "User u9 not found"
    assert str(error) == "User u9 not found"


def test_wrap_appends_upstream_text():
    """wrap() keeps the context and appends the upstream error text."""
    error = ImageUploadFailed.wrap("Failed to upload a.png", RuntimeError("AccessDenied"))
    assert isinstance(error, ImageUploadFailed)
    assert error.message == "Failed to upload a.png: AccessDenied"
