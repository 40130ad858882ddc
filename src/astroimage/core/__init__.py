"""Core functionality of the Astro Image backend.

This package holds everything below the HTTP layer:

- **config**: ``AstroImageConfig`` settings loaded from ``ASTROIMAGE_*``
  environment variables and env files
- **errors**: the domain error taxonomy mapped to HTTP statuses by the API
- **models**: pydantic user and image models in the stored camelCase shape
- **zodiac** / **prompt_builder**: static sign trait table and the per-category
  prompt templates built on it
- **generation_client**: the text-to-image HTTP client
- **image_format**: Pillow validation and PNG normalisation
- **blob_store**: S3-compatible storage of image bytes
- **database**: MongoDB user and image record stores
- **workflow** / **user_service**: the operations the routes call

Collaborators are wired together by ``astroimage.api.main`` at startup and
injected, never read from module globals.
"""

from astroimage.core.config import AstroImageConfig, config
from astroimage.core.models import ImageType, User, UserProfile
from astroimage.core.prompt_builder import build_prompt

__all__ = [
    "AstroImageConfig",
    "config",
    "ImageType",
    "User",
    "UserProfile",
    "build_prompt",
]
