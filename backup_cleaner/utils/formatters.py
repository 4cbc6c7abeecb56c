"""Formatting utilities for backup cleaner output."""

from datetime import date, datetime
from typing import Optional, Union


def format_file_size(size_bytes: int) -> str:
    """Format file size in human readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Size with up to two decimals, e.g. ``1.5 KB`` or ``0 B``.
    """
    units = ['B', 'KB', 'MB', 'GB', 'TB']
    size = float(size_bytes)
    order = 0
    while size >= 1024 and order < len(units) - 1:
        order += 1
        size /= 1024

    number = f"{size:.2f}".rstrip('0').rstrip('.')
    return f"{number} {units[order]}"


def format_date(dt: Union[date, datetime], short: bool = False) -> str:
    """Format a date or datetime for display.

    Args:
        dt: Date or datetime to format.
        short: If True, leave out the seconds.

    Returns:
        Formatted date string.
    """
    if not isinstance(dt, datetime):
        return dt.strftime('%Y-%m-%d')
    if short:
        return dt.strftime('%Y-%m-%d %H:%M')
    return dt.strftime('%Y-%m-%d %H:%M:%S')


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    """Return ``count`` with the singular or plural noun."""
    return f"{count} {singular if count == 1 else (plural or singular + 's')}"
