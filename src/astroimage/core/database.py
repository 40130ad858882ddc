"""MongoDB-backed user and image record stores.

Two collections are used:

- ``users`` - one document per external ``userId`` (unique index).
- ``images`` - one document per generated image, indexed by owner and
  creation time for the per-user listing.

Documents use the camelCase field names of :mod:`astroimage.core.models`.
The MongoDB ``_id`` is exposed to callers as the string ``id`` attribute.

Error handling strategy:
    A duplicate ``userId`` on insert is raised as
    :class:`~astroimage.core.errors.UserAlreadyExists`; any other driver
    failure is raised as :class:`~astroimage.core.errors.InternalError` with
    the driver message appended.

Usage
-----
::

    client, database = connect(config)
    users = MongoUserStore(database["users"])
    images = MongoImageStore(database["images"])
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from astroimage.core.errors import InternalError, UserAlreadyExists
from astroimage.core.models import ImageRecord, User, UserProfile

if TYPE_CHECKING:
    from astroimage.core.config import AstroImageConfig

logger = logging.getLogger(__name__)


class UserStore(Protocol):
    def find_by_user_id(self, user_id: str) -> User | None: ...

    def insert(self, user: User) -> User: ...

    def replace_profile(self, profile: UserProfile) -> User | None: ...

    def decrement_credits(self, user_id: str, amount: int = 1) -> None: ...


class ImageStore(Protocol):
    def insert(self, record: ImageRecord) -> ImageRecord: ...

    def list_by_user(self, user_id: str) -> list[ImageRecord]: ...

    def find_by_id(self, image_id: str) -> ImageRecord | None: ...


def connect(config: AstroImageConfig) -> tuple[MongoClient, Database]:
    """Create a client for ``config.database_url`` and select the database.

    The driver connects lazily, so this does not block on the server.
    """
    client: MongoClient = MongoClient(config.database_url, tz_aware=True)
    logger.info(f"MongoDB client created for database '{config.database_name}'")
    return client, client[config.database_name]


@contextmanager
def _driver_errors(action: str) -> Iterator[None]:
    try:
        yield
    except DuplicateKeyError:
        raise
    except PyMongoError as e:
        logger.error(f"Database error while trying to {action}: {e}")
        raise InternalError.wrap(f"Database error while trying to {action}", e) from e


def _from_document(document: dict) -> dict:
    """Move the MongoDB ``_id`` to a string ``id`` key."""
    data = dict(document)
    object_id = data.pop("_id", None)
    if object_id is not None:
        data["id"] = str(object_id)
    return data


class MongoUserStore:
    """User persistence on a ``users`` collection."""

    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    def ensure_indexes(self) -> None:
        with _driver_errors("create user indexes"):
            self._collection.create_index([("userId", ASCENDING)], unique=True)

    def find_by_user_id(self, user_id: str) -> User | None:
        with _driver_errors("load user"):
            document = self._collection.find_one({"userId": user_id})
        if document is None:
            return None
        return User.model_validate(_from_document(document))

    def insert(self, user: User) -> User:
        """Insert a new user document.

        Raises:
            UserAlreadyExists: If another document already holds ``user_id``.
        """
        try:
            with _driver_errors("insert user"):
                result = self._collection.insert_one(user.to_document())
        except DuplicateKeyError as e:
            raise UserAlreadyExists() from e
        return user.model_copy(update={"id": str(result.inserted_id)})

    def replace_profile(self, profile: UserProfile) -> User | None:
        """Overwrite every profile field of an existing user.

        Account state (``credits``, ``isActive``) is left untouched.

        Returns:
            The updated user, or ``None`` if no user has ``profile.user_id``.
        """
        with _driver_errors("update user"):
            document = self._collection.find_one_and_update(
                {"userId": profile.user_id},
                {"$set": profile.to_document()},
                return_document=ReturnDocument.AFTER,
            )
        if document is None:
            return None
        return User.model_validate(_from_document(document))

    def decrement_credits(self, user_id: str, amount: int = 1) -> None:
        with _driver_errors("update credits"):
            self._collection.update_one({"userId": user_id}, {"$inc": {"credits": -amount}})


class MongoImageStore:
    """Image record persistence on an ``images`` collection."""

    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    def ensure_indexes(self) -> None:
        with _driver_errors("create image indexes"):
            self._collection.create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])

    def insert(self, record: ImageRecord) -> ImageRecord:
        """Insert *record*, stamping ``createdAt``/``updatedAt``."""
        now = datetime.now(timezone.utc)
        stamped = record.model_copy(update={"created_at": now, "updated_at": now})
        with _driver_errors("insert image"):
            result = self._collection.insert_one(stamped.to_document())
        return stamped.model_copy(update={"id": str(result.inserted_id)})

    def list_by_user(self, user_id: str) -> list[ImageRecord]:
        """Return the user's active images, newest first."""
        with _driver_errors("list images"):
            cursor = self._collection.find({"userId": user_id, "isActive": True}).sort(
                "createdAt", DESCENDING
            )
            documents = list(cursor)
        return [ImageRecord.model_validate(_from_document(doc)) for doc in documents]

    def find_by_id(self, image_id: str) -> ImageRecord | None:
        """Return the image with *image_id*, or ``None`` if absent or malformed."""
        if not ObjectId.is_valid(image_id):
            return None
        with _driver_errors("load image"):
            document = self._collection.find_one({"_id": ObjectId(image_id)})
        if document is None:
            return None
        return ImageRecord.model_validate(_from_document(document))
