"""Configuration package for the Recommendation service."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
