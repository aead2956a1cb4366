"""Connection settings for the HiPay Console API client.

This module provides a single configuration class used by the request
executor, the client and the command line.

Environment (optional):
  HIPAY_CONSOLE_URL: API base URL (defaults to the production console)
  HIPAY_CONSOLE_USER: Console user login
  HIPAY_CONSOLE_PASSWORD: Console user password
  HIPAY_CONSOLE_VERIFY_TLS=1   # enable certificate verification
  HIPAY_CONSOLE_TIMEOUT=30     # total execution timeout, seconds
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

from hipay_console.exceptions import ConfigError

PROD_CONSOLE_API_URL = "https://console.hipay.com/api"
STAGE_CONSOLE_API_URL = "https://stage-console.hipay.com/api"

DEFAULT_CONNECT_TIMEOUT = 3.0
DEFAULT_TOTAL_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "hipay-console-api/0.1.0"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    """Settings shared by every request of a client instance.

    Attributes:
        base_url: API base URL. Normalized to exactly one trailing slash by
            the session state, so both ".../api" and ".../api/" work.
        connect_timeout: Seconds allowed to establish the connection.
        total_timeout: Seconds allowed for the whole exchange, body included.
        verify_tls: Verify server certificates and host names. Defaults to
            False to stay compatible with the historical client behaviour;
            set it to True (or HIPAY_CONSOLE_VERIFY_TLS=1) wherever possible.
        user_agent: User-Agent sent with every request.
        username: Optional login used by the command line.
        password: Optional password used by the command line.
    """

    base_url: str = PROD_CONSOLE_API_URL
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    total_timeout: float = DEFAULT_TOTAL_TIMEOUT
    verify_tls: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    username: str | None = None
    password: str | None = None

    def __post_init__(self) -> None:
        if not self.base_url or not self.base_url.strip():
            raise ConfigError("base_url must not be empty")
        if self.connect_timeout <= 0 or self.total_timeout <= 0:
            raise ConfigError(
                f"Timeouts must be positive (connect={self.connect_timeout}, "
                f"total={self.total_timeout})"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: object) -> Settings:
        """Build settings from HIPAY_CONSOLE_* environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ`` (useful in tests).
            **overrides: Explicit values that take precedence over the
                environment. ``None`` values are ignored.

        Returns:
            Settings instance.

        Raises:
            ConfigError: If a variable holds an unparsable value.

        Examples:
            >>> Settings.from_env({"HIPAY_CONSOLE_VERIFY_TLS": "yes"}).verify_tls
            True
        """
        env = os.environ if environ is None else environ

        settings = cls(
            base_url=_strip_quotes(env.get("HIPAY_CONSOLE_URL")) or PROD_CONSOLE_API_URL,
            total_timeout=_parse_float(env, "HIPAY_CONSOLE_TIMEOUT", DEFAULT_TOTAL_TIMEOUT),
            verify_tls=_parse_bool(env, "HIPAY_CONSOLE_VERIFY_TLS", False),
            username=_strip_quotes(env.get("HIPAY_CONSOLE_USER")),
            password=_strip_quotes(env.get("HIPAY_CONSOLE_PASSWORD")),
        )
        explicit = {k: v for k, v in overrides.items() if v is not None}
        return replace(settings, **explicit) if explicit else settings


def _strip_quotes(value: str | None) -> str | None:
    # .env files often keep the quotes around values
    if value is None:
        return None
    value = value.strip().strip('"').strip("'")
    return value or None


def _parse_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}") from e


def _parse_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean (1/0, true/false, yes/no), got {raw!r}")
