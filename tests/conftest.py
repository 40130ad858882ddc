"""Shared pytest fixtures for Astro Image tests.

External collaborators (MongoDB, S3, the generation API) are replaced by the
in-memory fakes defined here.  Each fake records its calls so tests can
assert that a failed request touched nothing downstream.
"""

import io
import itertools
import shutil
import tempfile
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from astroimage.api.main import Services, create_app
from astroimage.core.blob_store import BlobStream
from astroimage.core.config import AstroImageConfig
from astroimage.core.errors import ImageRetrievalFailed, UserAlreadyExists
from astroimage.core.models import ImageRecord, User, UserProfile
from astroimage.core.user_service import UserService
from astroimage.core.workflow import ImageWorkflow


def make_png(color: str = "red", size: tuple[int, int] = (8, 8)) -> bytes:
    """Encode a small solid-colour PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class InMemoryUserStore:
    """Dictionary-backed stand-in for MongoUserStore."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.decrement_calls: list[tuple[str, int]] = []
        self._ids = itertools.count(1)

    def find_by_user_id(self, user_id: str) -> User | None:
        return self.users.get(user_id)

    def insert(self, user: User) -> User:
        if user.user_id in self.users:
            raise UserAlreadyExists()
        stored = user.model_copy(update={"id": f"user-{next(self._ids)}"})
        self.users[user.user_id] = stored
        return stored

    def replace_profile(self, profile: UserProfile) -> User | None:
        existing = self.users.get(profile.user_id)
        if existing is None:
            return None
        updated = existing.model_copy(update=profile.model_dump())
        self.users[profile.user_id] = updated
        return updated

    def decrement_credits(self, user_id: str, amount: int = 1) -> None:
        self.decrement_calls.append((user_id, amount))
        user = self.users[user_id]
        self.users[user_id] = user.model_copy(update={"credits": user.credits - amount})


class InMemoryImageStore:
    """List-backed stand-in for MongoImageStore."""

    def __init__(self) -> None:
        self.records: list[ImageRecord] = []
        self.find_calls: list[str] = []
        self._ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def insert(self, record: ImageRecord) -> ImageRecord:
        self._clock += timedelta(seconds=1)
        stored = record.model_copy(
            update={
                "id": f"img-{next(self._ids)}",
                "created_at": self._clock,
                "updated_at": self._clock,
            }
        )
        self.records.append(stored)
        return stored

    def list_by_user(self, user_id: str) -> list[ImageRecord]:
        matches = [r for r in self.records if r.user_id == user_id and r.is_active]
        return sorted(matches, key=lambda r: r.created_at, reverse=True)

    def find_by_id(self, image_id: str) -> ImageRecord | None:
        self.find_calls.append(image_id)
        return next((r for r in self.records if r.id == image_id), None)


class FakeBlobStore:
    """Dictionary-backed stand-in for S3BlobStore."""

    base_url = "https://blobs.test/astro-images"

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.upload_calls: list[str] = []
        self.open_calls: list[tuple[str, str | None]] = []

    def upload(self, name: str, data: bytes, content_type: str = "image/png") -> str:
        self.upload_calls.append(name)
        self.blobs[name] = data
        return f"{self.base_url}/{name}"

    def name_from_url(self, url: str) -> str:
        return url.rsplit("/", 1)[-1]

    def open_stream(self, name: str, byte_range: str | None = None) -> BlobStream:
        self.open_calls.append((name, byte_range))
        if name not in self.blobs:
            raise ImageRetrievalFailed(f"Failed to read {name}: NoSuchKey")
        data = self.blobs[name]
        if byte_range:
            start, end = (int(part) for part in byte_range.removeprefix("bytes=").split("-"))
            chunk = data[start : end + 1]
            return BlobStream(
                chunks=iter([chunk]),
                content_length=len(chunk),
                content_range=f"bytes {start}-{end}/{len(data)}",
                content_type="image/png",
            )
        return BlobStream(chunks=iter([data]), content_length=len(data), content_type="image/png")


class FakeGenerationClient:
    """Stand-in for ImageGenerationClient returning a fixed PNG."""

    default_model = "test-model"

    def __init__(self, image_bytes: bytes | None = None) -> None:
        self.image_bytes = image_bytes if image_bytes is not None else make_png()
        self.prompts: list[str] = []
        self.models: list[str | None] = []
        self.downloads: list[str] = []
        self.fail_with: Exception | None = None

    def generate(self, prompt: str, model: str | None = None) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self.prompts.append(prompt)
        self.models.append(model)
        return f"https://generator.test/out/{len(self.prompts)}.png"

    def download(self, url: str) -> bytes:
        self.downloads.append(url)
        return self.image_bytes


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config() -> AstroImageConfig:
    """Create a test configuration that ignores any local env files."""
    return AstroImageConfig(
        _env_file=None,
        environment="test",
        database_url="mongodb://localhost:27017",
        database_name="astroimage_test",
        image_api_url="https://generator.test/v1/images/generations",
        image_api_key="test-key",
        blob_container="test-bucket",
    )


@pytest.fixture
def sample_profile() -> UserProfile:
    """A complete profile with three known zodiac signs."""
    return UserProfile(
        user_id="u1",
        name="Ada Lovelace",
        gender="female",
        birth_date=date(1990, 7, 28),
        knows_birth_time=True,
        birth_time="14:30",
        birth_place="London",
        interested_in="boys",
        sun_sign="Leo",
        moon_sign="Pisces",
        rising_sign="Scorpio",
    )


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def image_store() -> InMemoryImageStore:
    return InMemoryImageStore()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def generator() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def stored_user(user_store: InMemoryUserStore, sample_profile: UserProfile) -> User:
    """Insert the sample profile with five credits."""
    return user_store.insert(User(**sample_profile.model_dump(), credits=5))


@pytest.fixture
def workflow(user_store, image_store, blob_store, generator) -> ImageWorkflow:
    clock = itertools.count(1700000000000).__next__
    return ImageWorkflow(user_store, image_store, blob_store, generator, clock=clock)


@pytest.fixture
def test_client(workflow, user_store, test_config) -> TestClient:
    """FastAPI TestClient wired to the in-memory fakes."""
    services = Services(workflow=workflow, users=UserService(user_store))
    app = create_app(services=services, settings=test_config)
    return TestClient(app)
