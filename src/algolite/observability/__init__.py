"""Logging configuration."""

from algolite.observability.logging import setup_logging

__all__ = ["setup_logging"]
