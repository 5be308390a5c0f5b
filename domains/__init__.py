"""Domain modules for the Timora wellness backend."""

from .base import Domain

__all__ = ["Domain"]
