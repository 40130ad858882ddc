"""Domain models shared by the stores, the workflow and the API layer.

The document store keeps camelCase field names (``userId``, ``imageUrl``),
so every model uses a camelCase alias generator.  Python code works with the
snake_case attribute names; ``to_document()`` produces the stored shape.

Models
------
UserProfile
    Birth and astrological data submitted by the client.
User
    A stored user: profile plus account state (credits, active flag).
ImageRecord
    Metadata of one generated image.
ImageSummary
    The view of an image returned to API callers.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ImageType(str, Enum):
    """Image categories, one prompt template each."""

    PARTNER = "partner"
    CELEBRITY = "celebrity"
    PET = "pet"
    TATTOO = "tattoo"
    CITY = "city"
    ART = "art"

    @classmethod
    def _missing_(cls, value):
        # Older clients send "Tattoo".
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


def _coerce_image_type(value):
    return ImageType(value) if isinstance(value, str) else value


ImageTypeField = Annotated[ImageType, BeforeValidator(_coerce_image_type)]


def _date_part(value):
    # JavaScript clients send Date.toISOString(), e.g. "1990-07-27T23:00:00.000Z".
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
        except ValueError:
            return value
    return value


BirthDate = Annotated[date, BeforeValidator(_date_part)]


class ImageStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class InterestedIn(str, Enum):
    BOYS = "boys"
    GIRLS = "girls"
    NON_BINARY = "non-binary"


class UpsertStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict:
        """Return the camelCase dict stored in the document database."""
        return self.model_dump(by_alias=True, mode="json", exclude={"id"})


class UserProfile(_CamelModel):
    """Profile fields a client submits for a user.

    Attributes:
        user_id: External, unique user identifier.
        name: Display name.
        gender: ``male`` or ``female``.
        birth_date: Date of birth.  A full ISO timestamp is accepted and
            reduced to its calendar date as written.
        knows_birth_time: Whether ``birth_time`` is reliable.
        birth_time: Time of birth as free text (e.g. ``"14:30"``).
        birth_place: Place of birth.
        interested_in: ``boys``, ``girls`` or ``non-binary``.
        sun_sign: Sun sign name.
        moon_sign: Moon sign name.
        rising_sign: Rising (ascendant) sign name.
    """

    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    gender: Gender
    birth_date: BirthDate
    knows_birth_time: bool = False
    birth_time: str | None = None
    birth_place: str
    interested_in: InterestedIn
    sun_sign: str | None = None
    moon_sign: str | None = None
    rising_sign: str | None = None


class User(UserProfile):
    """A stored user document."""

    id: str | None = None
    credits: int = 0
    is_active: bool = True


class ImageRecord(_CamelModel):
    """Metadata stored for one generated image."""

    id: str | None = None
    image_url: str
    image_name: str
    image_type: ImageTypeField
    user_id: str
    prompt: str | None = None
    status: ImageStatus = ImageStatus.PENDING
    ai_model: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_document(self) -> dict:
        document = super().to_document()
        # Keep real datetimes so the database stores BSON dates.
        document["createdAt"] = self.created_at
        document["updatedAt"] = self.updated_at
        return document


class ImageSummary(_CamelModel):
    """Public view of an image record."""

    id: str
    image_url: str
    image_name: str
    image_type: ImageTypeField
    status: ImageStatus
    prompt: str | None = None
    ai_model: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: ImageRecord) -> ImageSummary:
        return cls(
            id=record.id,
            image_url=record.image_url,
            image_name=record.image_name,
            image_type=record.image_type,
            status=record.status,
            prompt=record.prompt,
            ai_model=record.ai_model,
            created_at=record.created_at,
        )
