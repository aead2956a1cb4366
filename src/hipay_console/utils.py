"""Small helpers shared by the command line."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any


def parse_date(s: str) -> date:
    """Parse a date string in YYYY-MM-DD format.

    Args:
        s: Date string in ISO format (YYYY-MM-DD).

    Returns:
        Parsed date object.

    Raises:
        ValueError: If the date string is not in YYYY-MM-DD format.

    Examples:
        >>> parse_date("2024-04-25")
        datetime.date(2024, 4, 25)

    """
    return datetime.strptime(s, "%Y-%m-%d").date()


def parse_key_value(item: str) -> tuple[str, str]:
    """Split a ``key=value`` command line item.

    Raises:
        ValueError: If there is no ``=`` or the key is empty.

    """
    key, sep, value = item.partition("=")
    if not sep or not key.strip():
        raise ValueError(f"Expected key=value, got {item!r}")
    return key.strip(), value


def load_json_object(path: Path | str) -> dict[str, Any]:
    """Read a JSON object from ``path`` (UTF-8).

    Raises:
        ValueError: If the file does not hold a JSON object.
        OSError: If the file cannot be read.

    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object, got {type(data).__name__}")
    return data
