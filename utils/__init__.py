"""Utility modules for the Timora backend."""

from .log_sanitizer import sanitize_log, sanitize_for_log

__all__ = ["sanitize_log", "sanitize_for_log"]
