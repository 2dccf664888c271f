"""Client library for The Room studio."""

from .app import StudioApp, configure_logging
from .config import Settings

__all__ = ["Settings", "StudioApp", "configure_logging"]
