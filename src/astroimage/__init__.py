"""Astro Image - astrology-themed AI image generation backend."""

__version__ = "0.1.0"

from astroimage.core.config import AstroImageConfig, config

__all__ = [
    "AstroImageConfig",
    "config",
]
