"""Utility functions for the deployer."""

from app.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
