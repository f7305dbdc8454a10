"""Configuration module."""

from .settings import UNBOUNDED_DEPTH, SearchSettings, get_settings, resolve_depth

__all__ = ["SearchSettings", "UNBOUNDED_DEPTH", "get_settings", "resolve_depth"]
