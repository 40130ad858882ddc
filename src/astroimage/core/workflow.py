"""Image creation workflow and image record accessors.

:class:`ImageWorkflow` orchestrates one image request end to end.  Every step
depends on the previous one succeeding; the first failure aborts the request
with a domain error and nothing is retried or rolled back.

Create flow
-----------
1. Look up the user by external ``userId`` (``UserNotFound``).
2. Resolve the prompt: an explicit prompt wins, otherwise the prompt builder.
3. Ask the generation API for an image (``ImageGenerationFailed``).
4. Download the generated bytes (``ImageGenerationFailed``).
5. Validate and normalise them to PNG (``InvalidImageFormat``).
6. Upload to blob storage as ``<name>_<epoch millis>.png`` (``ImageUploadFailed``).
7. Persist the image record with status ``completed``.
8. Decrement the user's credits by one.

Steps 7 and 8 are not atomic: a failure after the upload leaves an orphaned
blob, and a failure between 7 and 8 leaves an image that cost no credit.

Collaborators are injected, so tests can substitute in-memory fakes for the
stores, the blob store and the generation client.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from astroimage.core.blob_store import BlobStream
from astroimage.core.database import ImageStore, UserStore
from astroimage.core.errors import ImageNotFound, ImageRetrievalFailed, UserNotFound
from astroimage.core.image_format import to_png
from astroimage.core.models import ImageRecord, ImageStatus, ImageSummary, ImageType
from astroimage.core.prompt_builder import build_prompt

logger = logging.getLogger(__name__)


class GenerationClient(Protocol):
    default_model: str

    def generate(self, prompt: str, model: str | None = None) -> str: ...

    def download(self, url: str) -> bytes: ...


class BlobStore(Protocol):
    def upload(self, name: str, data: bytes, content_type: str = "image/png") -> str: ...

    def name_from_url(self, url: str) -> str: ...

    def open_stream(self, name: str, byte_range: str | None = None) -> BlobStream: ...


@dataclass
class CreateImageCommand:
    """Input of :meth:`ImageWorkflow.create_image`."""

    image_type: ImageType
    user_id: str
    prompt: str | None = None
    ai_model: str | None = None


_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def blob_name_for(user_name: str, timestamp_ms: int) -> str:
    """Build the blob name ``<sanitised user name>_<epoch millis>.png``."""
    safe = _UNSAFE_NAME_CHARS.sub("_", user_name.strip()).strip("_") or "user"
    return f"{safe}_{timestamp_ms}.png"


class ImageWorkflow:
    """Creates, lists and streams generated images.

    Args:
        users: User store.
        images: Image record store.
        blobs: Blob store holding image bytes.
        generator: Text-to-image API client.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        users: UserStore,
        images: ImageStore,
        blobs: BlobStore,
        generator: GenerationClient,
        *,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._users = users
        self._images = images
        self._blobs = blobs
        self._generator = generator
        self._clock = clock or (lambda: int(time.time() * 1000))

    def create_image(self, command: CreateImageCommand) -> ImageSummary:
        """Run the full create flow and return the stored image's summary.

        Raises:
            UserNotFound: No user has ``command.user_id``.
            ImageGenerationFailed: The API call or download failed.
            InvalidImageFormat: The downloaded bytes are not an image.
            ImageUploadFailed: Blob storage rejected the upload.
        """
        user = self._users.find_by_user_id(command.user_id)
        if user is None:
            raise UserNotFound(f"User {command.user_id} not found")

        if command.prompt and command.prompt.strip():
            prompt = command.prompt
        else:
            prompt = build_prompt(command.image_type, user)
        model = command.ai_model or self._generator.default_model

        logger.info(f"Generating {command.image_type.value} image for user {user.user_id}")
        source_url = self._generator.generate(prompt, model)
        data = to_png(self._generator.download(source_url))

        image_name = blob_name_for(user.name, self._clock())
        image_url = self._blobs.upload(image_name, data, "image/png")

        record = self._images.insert(
            ImageRecord(
                image_url=image_url,
                image_name=image_name,
                image_type=command.image_type,
                user_id=user.user_id,
                prompt=prompt,
                status=ImageStatus.COMPLETED,
                ai_model=model,
            )
        )
        self._users.decrement_credits(user.user_id, 1)
        logger.info(f"Stored image {record.id} for user {user.user_id}")

        return ImageSummary.from_record(record)

    def list_by_user(self, user_id: str) -> list[ImageSummary]:
        """Return summaries of the user's active images, newest first.

        Raises:
            ImageNotFound: The user has no images.
        """
        records = self._images.list_by_user(user_id)
        if not records:
            raise ImageNotFound(f"No images found for user {user_id}")
        return [ImageSummary.from_record(record) for record in records]

    def stream_by_id(self, image_id: str, byte_range: str | None = None) -> BlobStream:
        """Open the stored bytes of image *image_id* for streaming.

        Raises:
            ImageNotFound: No image has this id; storage is not touched.
            ImageRetrievalFailed: The blob store could not serve the bytes.
        """
        record = self._images.find_by_id(image_id)
        if record is None:
            raise ImageNotFound(f"Image {image_id} not found")

        name = self._blobs.name_from_url(record.image_url)
        try:
            return self._blobs.open_stream(name, byte_range)
        except ImageRetrievalFailed:
            raise
        except Exception as e:
            raise ImageRetrievalFailed.wrap(f"Failed to retrieve image {image_id}", e) from e
