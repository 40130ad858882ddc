"""Pydantic request and response models for the Astro Image API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.  All JSON keys are camelCase; Python attributes
are snake_case.

Models
------
CreateImageRequest
    Payload for ``POST /images``.
CreateUserRequest
    Payload for ``POST /users`` - the full user profile.
UpsertUserData
    ``data`` of the ``POST /users`` response.
SuccessResponse
    The success envelope ``{success, data, message, timestamp}``.
ErrorResponse
    The error envelope ``{success, errorCode, message, timestamp, path}``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from astroimage.core.errors import ErrorCode
from astroimage.core.models import ImageTypeField, UpsertStatus, UserProfile

T = TypeVar("T")


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string with milliseconds."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateImageRequest(_ApiModel):
    """Request body for the ``POST /images`` endpoint.

    Attributes:
        image_type: Image category (``partner``, ``celebrity``, ``pet``,
            ``tattoo``, ``city`` or ``art``; case-insensitive).
        user_id: External id of the requesting user.
        prompt: Explicit prompt.  When omitted or blank, the prompt is
            generated from the user's zodiac signs.
        ai_model: Generation model override.  ``None`` uses the configured
            default.
    """

    image_type: ImageTypeField = Field(..., description="Image category.")
    user_id: str = Field(..., min_length=1, description="External user id.")
    prompt: str | None = Field(
        default=None,
        description="Explicit prompt; generated from the user's chart when omitted.",
    )
    ai_model: str | None = Field(default=None, description="Generation model override.")


class CreateUserRequest(UserProfile):
    """Request body for the ``POST /users`` endpoint (the full profile)."""


class UpsertUserData(_ApiModel):
    user_id: str
    status: UpsertStatus


class SuccessResponse(_ApiModel, Generic[T]):
    """Uniform success envelope."""

    success: Literal[True] = True
    data: T
    message: str | None = None
    timestamp: str = Field(default_factory=utc_timestamp)


class ErrorResponse(_ApiModel):
    """Uniform error envelope."""

    success: Literal[False] = False
    error_code: ErrorCode
    message: str
    timestamp: str = Field(default_factory=utc_timestamp)
    path: str | None = None
