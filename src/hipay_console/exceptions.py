"""Domain-specific exceptions for the HiPay Console API client.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from ConsoleAPIError for easy catching.

HTTP-level errors (4xx/5xx) and transport failures are never raised: they
are reported through the fields of the returned result objects.
"""


class ConsoleAPIError(Exception):
    """Base exception for all HiPay Console API client errors.

    Users can catch this exception to handle any error raised by the package.
    """

    pass


class ConfigError(ConsoleAPIError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Invalid configuration values are provided
    - Environment variables cannot be parsed
    """

    pass


class DownloadDestinationError(ConsoleAPIError):
    """Raised when the destination of a download cannot be opened for writing.

    The request is never sent when this is raised. The original ``OSError``
    is available as ``__cause__``.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot open download destination {path!r}: {reason}")
        self.path = path
        self.reason = reason
