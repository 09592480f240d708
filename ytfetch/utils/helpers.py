"""
General utility functions for reading loosely-typed JSON responses.
Ported from yt-dlp's utils.py.
"""

from datetime import datetime, timezone
from typing import Any


def traverse_obj(obj: Any, *paths: Any, default: Any = None) -> Any:
    """
    Traverse nested dicts/lists safely.
    Ported from yt-dlp's traverse_obj utility.

    Usage:
        traverse_obj(data, 'key1', 'key2', 'key3')
        traverse_obj(data, ('key1', 'key2'), ('alt_key1', 'alt_key2'))
    """
    for path in paths:
        if isinstance(path, (list, tuple)):
            result = obj
            for key in path:
                if result is None:
                    break
                if isinstance(result, dict):
                    result = result.get(key)
                elif isinstance(result, (list, tuple)):
                    try:
                        result = result[key]
                    except (IndexError, TypeError):
                        result = None
                else:
                    result = None
            if result is not None:
                return result
        else:
            if isinstance(obj, dict) and path in obj:
                return obj[path]
    return default


def int_or_none(v: Any, scale: int = 1) -> int | None:
    """Convert value to int or return None."""
    if v is None:
        return None
    try:
        return int(v) // scale
    except (ValueError, TypeError):
        return None


def str_or_none(v: Any) -> str | None:
    """Convert value to string or return None."""
    if v is None:
        return None
    result = str(v).strip()
    return result if result else None


def parse_datetime(date_str: str | None) -> datetime | None:
    """Parse the date formats found in player responses into an aware datetime."""
    if not date_str:
        return None

    date_str = date_str.strip()

    try:
        dt = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        dt = None

    if dt is None:
        for fmt in ("%Y-%m-%d %H:%M:%S", "%Y%m%d"):
            try:
                dt = datetime.strptime(date_str, fmt)
                break
            except ValueError:
                continue

    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
