"""Runtime configuration for the rulematch CLI."""

from rulematch.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
