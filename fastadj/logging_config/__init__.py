"""Structured logging for the adjacency search."""

from .structured import get_logger, search_context, setup_logging

__all__ = ["get_logger", "search_context", "setup_logging"]
