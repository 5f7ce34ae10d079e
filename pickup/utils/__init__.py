"""Utility modules."""

from pickup.utils.logging import setup_logging

__all__ = ["setup_logging"]
