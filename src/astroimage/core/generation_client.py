"""HTTP client for the third-party text-to-image API.

Processing flow:
    1. POST the prompt to the configured generation endpoint.
    2. Read the source URL of the generated asset from the JSON reply.
    3. Download the asset bytes from that URL.

The endpoint is expected to speak the OpenAI ``images/generations`` shape:
a JSON body ``{"model", "prompt", "n", "size"}`` answered by
``{"data": [{"url": "..."}]}``.

Error handling strategy:
    Transport errors, non-2xx statuses and replies without a URL are all
    raised as :class:`~astroimage.core.errors.ImageGenerationFailed` with
    the upstream message appended.  Nothing is retried.
"""

from __future__ import annotations

import logging

import requests

from astroimage.core.errors import ImageGenerationFailed

logger = logging.getLogger(__name__)


class ImageGenerationClient:
    """Thin wrapper around the generation endpoint.

    Args:
        api_url: Generation endpoint URL.
        api_key: Bearer token, or ``None`` for unauthenticated endpoints.
        default_model: Model name used when the caller does not pick one.
        size: Requested output size (``WIDTHxHEIGHT``).
        timeout: Seconds to wait on each call; ``None`` waits indefinitely.
        session: Optional ``requests.Session``; one is created if omitted.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None = None,
        *,
        default_model: str = "dall-e-3",
        size: str = "1024x1024",
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.api_url = api_url
        self.default_model = default_model
        self.size = size
        self.timeout = timeout
        self._session = session or requests.Session()
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"

    def generate(self, prompt: str, model: str | None = None) -> str:
        """Request one image for *prompt* and return its source URL.

        Raises:
            ImageGenerationFailed: On transport error, non-2xx status, or a
                reply without ``data[0].url``.
        """
        payload = {
            "model": model or self.default_model,
            "prompt": prompt,
            "n": 1,
            "size": self.size,
        }
        logger.info(f"Requesting image from {self.api_url} (model={payload['model']})")

        try:
            response = self._session.post(
                self.api_url,
                json=payload,
                headers=self._headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ImageGenerationFailed.wrap("Image API request failed", e) from e

        if not response.ok:
            raise ImageGenerationFailed(
                f"Image API returned status {response.status_code}: {response.text}"
            )

        try:
            body = response.json()
            url = body["data"][0]["url"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ImageGenerationFailed.wrap("Malformed image API response", e) from e

        if not isinstance(url, str) or not url:
            raise ImageGenerationFailed("Malformed image API response: empty image url")
        return url

    def download(self, url: str) -> bytes:
        """Fetch the generated asset bytes from *url*.

        Raises:
            ImageGenerationFailed: On transport error or non-2xx status.
        """
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise ImageGenerationFailed.wrap("Image download failed", e) from e

        if not response.ok:
            raise ImageGenerationFailed(
                f"Image download returned status {response.status_code}"
            )
        return response.content
