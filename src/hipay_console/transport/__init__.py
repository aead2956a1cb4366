"""Request execution layer: header composition, query encoding, status text, executor."""

from hipay_console.transport.executor import (
    Method,
    RequestExecutor,
    RequestSpec,
    TransportErrorCode,
    TransportResult,
)
from hipay_console.transport.headers import compose_headers
from hipay_console.transport.query import build_query
from hipay_console.transport.status import status_text

__all__ = [
    "Method",
    "RequestExecutor",
    "RequestSpec",
    "TransportErrorCode",
    "TransportResult",
    "build_query",
    "compose_headers",
    "status_text",
]
