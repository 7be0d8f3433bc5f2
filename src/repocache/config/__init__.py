"""Configuration for repocache."""

from repocache.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
