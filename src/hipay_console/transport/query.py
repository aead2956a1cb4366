"""RFC 3986 query string encoding.

Mirrors the conventions of the console's own query parsing: booleans are
sent as ``1``/``0``, ``None`` entries are left out, and nested values use
bracket notation (``filters[status]=active``, ``ids[0]=4``).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import quote


def encode_component(value: str) -> str:
    """Percent-encode one key or value; only ``A-Za-z0-9-._~`` stay literal."""
    return quote(value, safe="~")


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def _flatten(prefix: str, value: Any, out: list[tuple[str, str]]) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            _flatten(f"{prefix}[{key}]", item, out)
    elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        for index, item in enumerate(value):
            _flatten(f"{prefix}[{index}]", item, out)
    else:
        out.append((prefix, _scalar(value)))


def build_query(params: Mapping[str, Any] | None) -> str:
    """Serialize ``params`` into a query string, in insertion order.

    Args:
        params: Flat (or nested) mapping of query parameters.

    Returns:
        ``key=value`` pairs joined by ``&``; empty string for no entries.

    Examples:
        >>> build_query({"a": "x y", "b": "1"})
        'a=x%20y&b=1'
        >>> build_query({})
        ''
    """
    if not params:
        return ""
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        _flatten(str(key), value, pairs)
    return "&".join(f"{encode_component(k)}={encode_component(v)}" for k, v in pairs)


def with_query(path: str, params: Mapping[str, Any] | None) -> str:
    """Append the encoded ``params`` to ``path``; the path is returned as-is without entries."""
    query = build_query(params)
    if not query:
        return path
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{query}"
