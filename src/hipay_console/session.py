"""Authentication state shared by all requests of one client.

The session holds the normalized base URL and the token returned by the
last login. Login is the only writer; every request reads the token while
composing its headers. A lock serializes the two so a client instance can
be shared between threads.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class AuthToken:
    """Token returned by the console login endpoint.

    Example payload::

        {"token_type": "Bearer", "expires_in": 3600, "access_token": "eyJ..."}

    ``expires_in`` is informational only: it is never checked and the token
    is not renewed automatically.
    """

    token_type: str | None = None
    access_token: str | None = None
    expires_in: int | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def is_usable(self) -> bool:
        """True when both the type and the credential are present."""
        return self.token_type is not None and self.access_token is not None

    @classmethod
    def from_payload(cls, payload: Any) -> AuthToken:
        """Build a token from a decoded login response.

        No format validation is done. A payload that is not a JSON object
        gives a token with no fields, which is never sent.
        """
        if not isinstance(payload, Mapping):
            return cls()
        expires_in = payload.get("expires_in")
        return cls(
            token_type=_optional_str(payload.get("token_type")),
            access_token=_optional_str(payload.get("access_token")),
            expires_in=expires_in if isinstance(expires_in, int) else None,
            raw=dict(payload),
        )


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def normalize_base_url(url: str) -> str:
    """Return ``url`` with exactly one trailing slash."""
    return url.rstrip("/") + "/"


class SessionState:
    """Base URL and current auth token of a client instance."""

    def __init__(self, base_url: str) -> None:
        self.base_url = normalize_base_url(base_url)
        self._token: AuthToken | None = None
        self._lock = threading.Lock()

    @property
    def token(self) -> AuthToken | None:
        with self._lock:
            return self._token

    def replace_token(self, token: AuthToken) -> None:
        """Replace the stored token wholesale."""
        with self._lock:
            self._token = token

    def clear_token(self) -> None:
        with self._lock:
            self._token = None

    @property
    def is_authenticated(self) -> bool:
        token = self.token
        return token is not None and token.is_usable

    def url_for(self, path: str) -> str:
        """Join a relative API path to the base URL."""
        return self.base_url + path.lstrip("/")
