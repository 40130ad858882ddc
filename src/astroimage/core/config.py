"""Configuration management for the Astro Image backend.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the ASTROIMAGE_ prefix,
allowing deployment-specific settings without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (ASTROIMAGE_* prefix)
2. ``.env.<environment>`` file in the working directory (e.g. ``.env.production``)
3. ``.env`` file in the working directory (fallback)
4. Default values defined in AstroImageConfig

The environment name itself is read from ``ASTROIMAGE_ENVIRONMENT`` before the
settings class is built, because it decides which env file is consulted.

Example .env.development file:
    ASTROIMAGE_DATABASE_URL=mongodb://localhost:27017
    ASTROIMAGE_IMAGE_API_URL=https://api.example.com/v1/images/generations
    ASTROIMAGE_IMAGE_API_KEY=sk-...
    ASTROIMAGE_BLOB_CONTAINER=astro-images

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
The FastAPI lifespan uses it to build the database, storage and generation
clients unless the application factory is handed ready-made services.

Usage Example
-------------
    from astroimage.core.config import config

    print(config.database_name)
    print(config.server_port)
"""

import os
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENTS = ("development", "production", "test")


def _env_files() -> tuple[str, ...]:
    """Return the env files to read, lowest priority first.

    pydantic-settings gives later files precedence, so the generic ``.env``
    fallback comes first and the environment-specific file second.
    """
    environment = os.getenv("ASTROIMAGE_ENVIRONMENT", "development").lower()
    if environment not in ENVIRONMENTS:
        environment = "development"
    return (".env", f".env.{environment}")


class AstroImageConfig(BaseSettings):
    """Main configuration for the Astro Image backend.

    Attributes
    ----------
    Application:
        app_name : str
            Display name reported by the banner endpoint
        environment : Literal["development", "production", "test"]
            Deployment environment name
        log_level : str
            Root logging level used by ``main()``

    Document store:
        database_url : str
            MongoDB connection string
        database_name : str
            Database holding the ``users`` and ``images`` collections

    Image generation API:
        image_api_url : str
            Text-to-image endpoint (OpenAI-style ``images/generations``)
        image_api_key : str | None
            Bearer token sent to the endpoint
        image_model : str
            Model name used when the request does not specify one
        image_size : str
            Requested output size, ``WIDTHxHEIGHT``
        http_timeout : float | None
            Seconds to wait on outbound HTTP calls; ``None`` waits forever

    Blob storage (S3-compatible):
        blob_account : str | None
            Access key id
        blob_key : str | None
            Secret access key
        blob_container : str
            Bucket that receives generated images
        blob_endpoint_url : str | None
            Custom endpoint for non-AWS object stores
        blob_region : str | None
            Region name
        blob_public_base_url : str | None
            Base URL used to build durable image URLs; derived from the
            endpoint and bucket when unset

    Server:
        server_host : str
            Bind address
        server_port : int
            Bind port (1024-65535)
    """

    model_config = SettingsConfigDict(
        env_file=_env_files(),
        env_file_encoding="utf-8",
        env_prefix="ASTROIMAGE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Astro Image", description="Service display name")
    environment: Literal["development", "production", "test"] = Field(
        default="development",
        description="Deployment environment name",
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    # Document store
    database_url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string",
    )
    database_name: str = Field(default="astroimage", description="MongoDB database name")

    # Image generation API
    image_api_url: str = Field(
        default="https://api.openai.com/v1/images/generations",
        description="Text-to-image endpoint",
    )
    image_api_key: str | None = Field(default=None, description="Image API bearer token")
    image_model: str = Field(default="dall-e-3", description="Default image model")
    image_size: str = Field(default="1024x1024", description="Requested image size")
    http_timeout: float | None = Field(
        default=120.0,
        description="Timeout in seconds for outbound HTTP calls (None disables it)",
    )

    # Blob storage
    blob_account: str | None = Field(default=None, description="Object storage access key id")
    blob_key: str | None = Field(default=None, description="Object storage secret key")
    blob_container: str = Field(default="astro-images", description="Object storage bucket")
    blob_endpoint_url: str | None = Field(
        default=None,
        description="Custom endpoint for S3-compatible stores",
    )
    blob_region: str | None = Field(default=None, description="Object storage region")
    blob_public_base_url: str | None = Field(
        default=None,
        description="Base URL for durable image links",
    )

    # Server
    server_host: str = Field(default="0.0.0.0", description="Server bind address")
    server_port: int = Field(default=3000, description="Server port", ge=1024, le=65535)


# Global configuration instance, loaded from ASTROIMAGE_* variables and env files.
config = AstroImageConfig()
