"""API route modules."""

from . import housekeeping

__all__ = ["housekeeping"]
