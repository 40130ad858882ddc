"""Domain error taxonomy for the Astro Image backend.

Every failure surfaced to an HTTP caller is an :class:`AppError` subclass.
Each carries a stable ``error_code`` (the ``errorCode`` field of the error
envelope), a human-readable message, and the HTTP status the API layer maps
it to.  Adapters catch library exceptions and re-raise the nearest domain
error with the upstream message appended, chaining the original with
``raise ... from exc``.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes reported in the ``errorCode`` envelope field."""

    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
    IMAGE_NOT_FOUND = "IMAGE_NOT_FOUND"
    IMAGE_GENERATION_FAILED = "IMAGE_GENERATION_FAILED"
    IMAGE_UPLOAD_FAILED = "IMAGE_UPLOAD_FAILED"
    IMAGE_RETRIEVAL_FAILED = "IMAGE_RETRIEVAL_FAILED"
    INVALID_IMAGE_FORMAT = "INVALID_IMAGE_FORMAT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppError(Exception):
    """Base class for errors that are reported to API callers.

    Subclasses set ``error_code``, ``status_code`` and ``default_message``;
    callers may override the message per instance.
    """

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @classmethod
    def wrap(cls, context: str, exc: BaseException) -> "AppError":
        """Build an error whose message appends the upstream failure text."""
        return cls(f"{context}: {exc}")


class UserNotFound(AppError):
    error_code = ErrorCode.USER_NOT_FOUND
    status_code = 404
    default_message = "User not found"


class UserAlreadyExists(AppError):
    error_code = ErrorCode.USER_ALREADY_EXISTS
    status_code = 409
    default_message = "User with this userId already exists"


class ImageNotFound(AppError):
    error_code = ErrorCode.IMAGE_NOT_FOUND
    status_code = 404
    default_message = "Image not found"


class ImageGenerationFailed(AppError):
    error_code = ErrorCode.IMAGE_GENERATION_FAILED
    status_code = 500
    default_message = "Image generation failed"


class ImageUploadFailed(AppError):
    error_code = ErrorCode.IMAGE_UPLOAD_FAILED
    status_code = 500
    default_message = "Image upload failed"


class ImageRetrievalFailed(AppError):
    error_code = ErrorCode.IMAGE_RETRIEVAL_FAILED
    status_code = 500
    default_message = "Image retrieval failed"


class InvalidImageFormat(AppError):
    error_code = ErrorCode.INVALID_IMAGE_FORMAT
    status_code = 400
    default_message = "Invalid image format"


class InternalError(AppError):
    """Catch-all for unexpected failures."""
