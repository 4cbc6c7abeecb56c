"""Utility modules for backup cleaning."""

from .formatters import format_file_size, format_date, pluralize

__all__ = ["format_file_size", "format_date", "pluralize"]
