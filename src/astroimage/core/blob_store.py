"""Object storage for generated image bytes.

Images are kept in an S3-compatible bucket (AWS S3, MinIO, Azure via an S3
gateway, ...).  Each blob gets a durable URL built from a public base URL;
reading goes back through the S3 API by blob name, so the bucket itself may
stay private.

Error handling strategy:
    ``botocore`` client and transport errors are re-raised as
    :class:`~astroimage.core.errors.ImageUploadFailed` on write and
    :class:`~astroimage.core.errors.ImageRetrievalFailed` on read.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, unquote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from astroimage.core.errors import ImageRetrievalFailed, ImageUploadFailed

if TYPE_CHECKING:
    from astroimage.core.config import AstroImageConfig

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass
class BlobStream:
    """An open blob read.

    Attributes:
        chunks: Iterator over the body bytes; closes the body when exhausted.
        content_length: Number of bytes that will be yielded, if known.
        content_range: ``Content-Range`` value when a byte range was read.
        content_type: Stored content type, if known.
    """

    chunks: Iterator[bytes]
    content_length: int | None = None
    content_range: str | None = None
    content_type: str | None = None


def _iter_body(body: Any, chunk_size: int) -> Iterator[bytes]:
    try:
        yield from body.iter_chunks(chunk_size)
    finally:
        body.close()


class S3BlobStore:
    """Blob store backed by one S3 bucket.

    Args:
        client: A boto3 S3 client.
        bucket: Bucket name (the storage "container").
        public_base_url: Prefix for durable blob URLs.  Derived from the
            client's endpoint when omitted.
    """

    def __init__(self, client: Any, bucket: str, public_base_url: str | None = None) -> None:
        self._client = client
        self.bucket = bucket
        if public_base_url is None:
            public_base_url = f"{client.meta.endpoint_url.rstrip('/')}/{bucket}"
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_config(cls, config: AstroImageConfig) -> S3BlobStore:
        """Build a store from the ``blob_*`` configuration fields."""
        client = boto3.client(
            "s3",
            aws_access_key_id=config.blob_account,
            aws_secret_access_key=config.blob_key,
            endpoint_url=config.blob_endpoint_url,
            region_name=config.blob_region,
        )
        return cls(client, config.blob_container, config.blob_public_base_url)

    def url_for(self, name: str) -> str:
        return f"{self.public_base_url}/{quote(name)}"

    @staticmethod
    def name_from_url(url: str) -> str:
        """Resolve a durable blob URL back to its storage-relative name."""
        path = urlparse(url).path
        return unquote(path.rsplit("/", 1)[-1])

    def upload(self, name: str, data: bytes, content_type: str = "image/png") -> str:
        """Store *data* under *name* and return its durable URL.

        Raises:
            ImageUploadFailed: If the object store rejects the write.
        """
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=name,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise ImageUploadFailed.wrap(f"Failed to upload {name}", e) from e

        url = self.url_for(name)
        logger.info(f"Uploaded {len(data)} bytes to {url}")
        return url

    def open_stream(self, name: str, byte_range: str | None = None) -> BlobStream:
        """Open blob *name* for streaming, optionally a single byte range.

        Args:
            name: Storage-relative blob name.
            byte_range: An HTTP ``Range`` header value such as ``bytes=0-1023``.

        Raises:
            ImageRetrievalFailed: If the object is missing or unreadable.
        """
        params = {"Bucket": self.bucket, "Key": name}
        if byte_range:
            params["Range"] = byte_range

        try:
            response = self._client.get_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise ImageRetrievalFailed.wrap(f"Failed to read {name}", e) from e

        return BlobStream(
            chunks=_iter_body(response["Body"], CHUNK_SIZE),
            content_length=response.get("ContentLength"),
            content_range=response.get("ContentRange"),
            content_type=response.get("ContentType"),
        )
