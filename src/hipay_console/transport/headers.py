"""Request header composition.

Every request carries the JSON content negotiation headers and, once a
usable token has been obtained by login, the ``x-Authorization`` header.
Caller-supplied headers are appended last so they can override any of
them: the composed list is never deduplicated, the conversion to the
mapping handed to ``requests`` lets later entries win.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from requests.structures import CaseInsensitiveDict

if TYPE_CHECKING:
    from hipay_console.session import AuthToken

logger = logging.getLogger(__name__)

AUTH_HEADER = "x-Authorization"

DEFAULT_HEADERS: tuple[str, ...] = (
    "Content-Type: application/json",
    "Accept: application/json",
)


def auth_header(token: AuthToken | None) -> str | None:
    """Build the ``x-Authorization`` header line, or None without a usable token.

    ``expires_in`` is not consulted: an expired token is still sent as-is.
    """
    if token is None or not token.is_usable:
        return None
    return f"{AUTH_HEADER}: {token.token_type} {token.access_token}"


def compose_headers(
    token: AuthToken | None, overrides: Sequence[str] | None = None
) -> list[str]:
    """Compose the ordered header list for one request.

    Order: defaults, then the auth header (if any), then ``overrides`` in the
    caller's order.

    Args:
        token: Current auth token, or None before login.
        overrides: Extra ``"Name: Value"`` lines. None is treated as empty.

    Returns:
        New list of header lines.

    Examples:
        >>> compose_headers(None, ["X-Trace: 1"])
        ['Content-Type: application/json', 'Accept: application/json', 'X-Trace: 1']
    """
    headers = list(DEFAULT_HEADERS)
    line = auth_header(token)
    if line is not None:
        headers.append(line)
    headers.extend(overrides or [])
    return headers


def headers_to_mapping(lines: Iterable[str]) -> CaseInsensitiveDict:
    """Convert header lines into the mapping sent by ``requests``.

    Later lines replace earlier ones with the same (case-insensitive) name.
    A line with an empty value (``"Accept:"``) drops that header: the None
    value tells ``requests`` not to send it, even when the session would
    add it by default. Lines without a colon are skipped. Values outside
    Latin-1 are sent as UTF-8 bytes.
    """
    mapping: CaseInsensitiveDict = CaseInsensitiveDict()
    for line in lines:
        name, sep, value = line.partition(":")
        name = name.strip()
        if not sep or not name:
            logger.warning("Skipping malformed header line %r", line)
            continue
        value = value.strip()
        mapping[name] = _wire_value(value) if value else None
    return mapping


def _wire_value(value: str) -> str | bytes:
    # http.client only encodes str values as Latin-1; send anything else as UTF-8 bytes
    try:
        value.encode("latin-1")
    except UnicodeEncodeError:
        return value.encode("utf-8")
    return value
