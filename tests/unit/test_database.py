"""Tests for the MongoDB stores against mocked collections."""

from datetime import date, datetime, timezone
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from astroimage.core.database import MongoImageStore, MongoUserStore
from astroimage.core.errors import InternalError, UserAlreadyExists
from astroimage.core.models import ImageRecord, ImageStatus, User

USER_OID = ObjectId("65a000000000000000000001")
IMAGE_OID = ObjectId("65a000000000000000000002")


def _user_document(**overrides):
    document = {
        "_id": USER_OID,
        "userId": "u1",
        "name": "Ada Lovelace",
        "gender": "female",
        "birthDate": "1990-07-28",
        "knowsBirthTime": False,
        "birthTime": None,
        "birthPlace": "London",
        "interestedIn": "boys",
        "sunSign": "Leo",
        "moonSign": None,
        "risingSign": None,
        "credits": 3,
        "isActive": True,
    }
    document.update(overrides)
    return document


def _image_document(**overrides):
    created = datetime(2024, 5, 1, tzinfo=timezone.utc)
    document = {
        "_id": IMAGE_OID,
        "imageUrl": "https://cdn.test/a.png",
        "imageName": "a.png",
        "imageType": "pet",
        "userId": "u1",
        "prompt": "A cat",
        "status": "completed",
        "aiModel": "dall-e-3",
        "isActive": True,
        "createdAt": created,
        "updatedAt": created,
    }
    document.update(overrides)
    return document


@pytest.fixture
def collection():
    return MagicMock()


class TestMongoUserStore:
    """Test MongoUserStore."""

    def test_find_maps_document(self, collection):
        """A stored document maps to a User with a string id."""
        collection.find_one.return_value = _user_document()

        user = MongoUserStore(collection).find_by_user_id("u1")

        collection.find_one.assert_called_once_with({"userId": "u1"})
        assert user.id == str(USER_OID)
        assert user.birth_date == date(1990, 7, 28)
        assert user.credits == 3

    def test_find_missing(self, collection):
        """An unknown userId returns None."""
        collection.find_one.return_value = None
        assert MongoUserStore(collection).find_by_user_id("u1") is None

    def test_insert_returns_id(self, collection, sample_profile):
        """Inserting returns the user with its new id."""
        collection.insert_one.return_value.inserted_id = USER_OID

        stored = MongoUserStore(collection).insert(User(**sample_profile.model_dump()))

        assert stored.id == str(USER_OID)
        document = collection.insert_one.call_args.args[0]
        assert document["userId"] == "u1"
        assert document["credits"] == 0
        assert "id" not in document

    def test_insert_duplicate(self, collection, sample_profile):
        """A duplicate key becomes UserAlreadyExists."""
        collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        with pytest.raises(UserAlreadyExists):
            MongoUserStore(collection).insert(User(**sample_profile.model_dump()))

    def test_replace_profile_sets_profile_fields_only(self, collection, sample_profile):
        """Profile replacement never writes credits or isActive."""
        collection.find_one_and_update.return_value = _user_document(name="Ada King")

        updated = MongoUserStore(collection).replace_profile(sample_profile)

        query, update = collection.find_one_and_update.call_args.args
        assert query == {"userId": "u1"}
        assert "credits" not in update["$set"]
        assert "isActive" not in update["$set"]
        assert update["$set"]["moonSign"] == "Pisces"
        assert collection.find_one_and_update.call_args.kwargs["return_document"] is ReturnDocument.AFTER
        assert updated.name == "Ada King"

    def test_decrement_credits(self, collection):
        """Credits are decremented with $inc."""
        MongoUserStore(collection).decrement_credits("u1")
        collection.update_one.assert_called_once_with({"userId": "u1"}, {"$inc": {"credits": -1}})

    def test_driver_error_is_internal(self, collection):
        """Other driver errors become InternalError."""
        collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")

        with pytest.raises(InternalError, match="no servers"):
            MongoUserStore(collection).find_by_user_id("u1")


class TestMongoImageStore:
    """Test MongoImageStore."""

    def test_insert_stamps_times(self, collection):
        """Inserted images get matching createdAt and updatedAt."""
        collection.insert_one.return_value.inserted_id = IMAGE_OID
        record = ImageRecord(
            image_url="https://cdn.test/a.png",
            image_name="a.png",
            image_type="pet",
            user_id="u1",
            status=ImageStatus.COMPLETED,
        )

        stored = MongoImageStore(collection).insert(record)

        assert stored.id == str(IMAGE_OID)
        assert stored.created_at is not None
        assert stored.created_at == stored.updated_at
        document = collection.insert_one.call_args.args[0]
        assert document["createdAt"] == stored.created_at
        assert document["status"] == "completed"

    def test_list_filters_active_newest_first(self, collection):
        """Listing queries active images sorted by createdAt descending."""
        cursor = collection.find.return_value
        cursor.sort.return_value = [_image_document()]

        records = MongoImageStore(collection).list_by_user("u1")

        collection.find.assert_called_once_with({"userId": "u1", "isActive": True})
        cursor.sort.assert_called_once_with("createdAt", DESCENDING)
        assert [r.id for r in records] == [str(IMAGE_OID)]
        assert records[0].prompt == "A cat"

    def test_find_by_id(self, collection):
        """Images are looked up by ObjectId."""
        collection.find_one.return_value = _image_document()

        record = MongoImageStore(collection).find_by_id(str(IMAGE_OID))

        collection.find_one.assert_called_once_with({"_id": IMAGE_OID})
        assert record.image_url == "https://cdn.test/a.png"

    def test_malformed_id_is_not_queried(self, collection):
        """A malformed id returns None without a query."""
        assert MongoImageStore(collection).find_by_id("not-an-object-id") is None
        collection.find_one.assert_not_called()
