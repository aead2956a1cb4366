"""Request execution and response normalization.

Every API call goes through :class:`RequestExecutor`, which runs exactly one
HTTP exchange and folds its outcome into a :class:`TransportResult`:

- transport failures (DNS, connect, TLS, timeout, broken transfer) are
  reported through ``errno_transport``/``errmsg_transport`` with an empty
  body; nothing is raised,
- HTTP errors (4xx/5xx) are reported like any other status,
- the only exception raised is :class:`DownloadDestinationError`, before any
  network activity, when a download destination cannot be opened.

Transport policy, identical for every call:
- connect timeout ``Settings.connect_timeout`` (3 s), whole exchange bounded
  by ``Settings.total_timeout`` (30 s)
- redirects are never followed; a 3xx is returned as-is
- certificate verification follows ``Settings.verify_tls`` (off by default)
- proxies and other environment settings are ignored
- a new ``requests.Session`` per call, no pooling, no retries
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path
from typing import IO, Any

import requests
import urllib3
from urllib3.exceptions import (
    InsecureRequestWarning,
    MaxRetryError,
    NameResolutionError,
    NewConnectionError,
    ProtocolError,
)
from urllib3.exceptions import TimeoutError as Urllib3TimeoutError

from hipay_console.config import Settings
from hipay_console.exceptions import DownloadDestinationError
from hipay_console.session import SessionState
from hipay_console.transport.headers import compose_headers, headers_to_mapping
from hipay_console.transport.status import status_text

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class Method(str, Enum):
    """HTTP verbs supported by the executor; DOWNLOAD is a GET streamed to a file."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    DOWNLOAD = "DOWNLOAD"

    @property
    def http_verb(self) -> str:
        return "GET" if self is Method.DOWNLOAD else self.value

    @property
    def sends_body(self) -> bool:
        return self in (Method.POST, Method.PUT)


class TransportErrorCode(IntEnum):
    """Transport failure classification.

    Numbered like libcurl's CURLcode so results stay comparable with other
    console clients. 0 always means the exchange completed at the transport
    level, whatever the HTTP status.
    """

    OK = 0
    UNSUPPORTED_PROTOCOL = 1
    URL_MALFORMAT = 3
    COULDNT_RESOLVE_HOST = 6
    COULDNT_CONNECT = 7
    WRITE_ERROR = 23
    OPERATION_TIMEDOUT = 28
    SSL_CONNECT_ERROR = 35
    BAD_FUNCTION_ARGUMENT = 43
    TOO_MANY_REDIRECTS = 47
    GOT_NOTHING = 52
    RECV_ERROR = 56
    BAD_CONTENT_ENCODING = 61

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES[self]


_ERROR_MESSAGES = {
    TransportErrorCode.OK: "",
    TransportErrorCode.UNSUPPORTED_PROTOCOL: "Unsupported protocol",
    TransportErrorCode.URL_MALFORMAT: "URL using bad/illegal format or missing URL",
    TransportErrorCode.COULDNT_RESOLVE_HOST: "Couldn't resolve host name",
    TransportErrorCode.COULDNT_CONNECT: "Couldn't connect to server",
    TransportErrorCode.WRITE_ERROR: "Failed writing received data to disk/application",
    TransportErrorCode.OPERATION_TIMEDOUT: "Timeout was reached",
    TransportErrorCode.SSL_CONNECT_ERROR: "SSL connect error",
    TransportErrorCode.BAD_FUNCTION_ARGUMENT: "A libcurl function was given a bad argument",
    TransportErrorCode.TOO_MANY_REDIRECTS: "Number of redirects hit maximum amount",
    TransportErrorCode.GOT_NOTHING: "Server returned nothing (no headers, no data)",
    TransportErrorCode.RECV_ERROR: "Failure when receiving data from the peer",
    TransportErrorCode.BAD_CONTENT_ENCODING: "Unrecognized or bad HTTP Content or Transfer-Encoding",
}


@dataclass(frozen=True)
class RequestSpec:
    """One outbound request.

    Attributes:
        method: HTTP verb, or DOWNLOAD.
        path: Path relative to the API base URL, query string included.
        body: Mapping serialized to JSON for POST/PUT; ignored otherwise.
        headers: Extra ``"Name: Value"`` lines appended after the defaults.
        destination: File written by DOWNLOAD.
    """

    method: Method
    path: str
    body: Mapping[str, Any] | None = None
    headers: Sequence[str] | None = None
    destination: str | Path | None = None

    def __post_init__(self) -> None:
        if self.method is Method.DOWNLOAD and self.destination is None:
            raise ValueError("DOWNLOAD requests need a destination path")


@dataclass(frozen=True)
class TransportResult:
    """Uniform outcome of one request.

    Attributes:
        errno_transport: 0 on success, a TransportErrorCode value otherwise.
        errmsg_transport: Human-readable transport error, empty on success.
        status_code: HTTP status, 0 when no response was received.
        reason: Reason phrase for ``status_code`` (empty when unknown).
        body: Raw response body; empty string on transport failure.
    """

    errno_transport: int
    errmsg_transport: str
    status_code: int
    reason: str
    body: str

    @property
    def ok(self) -> bool:
        return self.errno_transport == 0 and 200 <= self.status_code < 300

    @classmethod
    def success(cls, status_code: int, body: str) -> TransportResult:
        return cls(
            errno_transport=int(TransportErrorCode.OK),
            errmsg_transport="",
            status_code=status_code,
            reason=status_text(status_code),
            body=body,
        )

    @classmethod
    def failure(
        cls, code: TransportErrorCode, detail: str = "", status_code: int = 0
    ) -> TransportResult:
        message = f"{code.message}: {detail}" if detail else code.message
        return cls(
            errno_transport=int(code),
            errmsg_transport=message,
            status_code=status_code,
            reason=status_text(status_code),
            body="",
        )


def encode_json_body(body: Mapping[str, Any]) -> bytes:
    """Serialize a request body: pretty-printed, non-ASCII characters kept as-is."""
    return json.dumps(body, indent=4, ensure_ascii=False).encode("utf-8")


def _root_cause(exc: BaseException) -> BaseException | None:
    """Dig the urllib3 error out of a requests exception."""
    reason = exc.args[0] if exc.args and isinstance(exc.args[0], BaseException) else None
    if isinstance(reason, MaxRetryError):
        reason = reason.reason
    return reason


def classify_exception(exc: BaseException) -> TransportErrorCode:
    """Map an exception raised during a request to a transport error code."""
    if isinstance(exc, requests.exceptions.SSLError):
        return TransportErrorCode.SSL_CONNECT_ERROR
    if isinstance(exc, requests.exceptions.Timeout):
        return TransportErrorCode.OPERATION_TIMEDOUT
    if isinstance(exc, requests.exceptions.TooManyRedirects):
        return TransportErrorCode.TOO_MANY_REDIRECTS
    if isinstance(exc, requests.exceptions.ChunkedEncodingError):
        return TransportErrorCode.RECV_ERROR
    if isinstance(exc, requests.exceptions.ContentDecodingError):
        return TransportErrorCode.BAD_CONTENT_ENCODING
    if isinstance(exc, requests.exceptions.InvalidSchema):
        return TransportErrorCode.UNSUPPORTED_PROTOCOL
    if isinstance(exc, (requests.exceptions.MissingSchema, requests.exceptions.InvalidURL)):
        return TransportErrorCode.URL_MALFORMAT
    if isinstance(exc, requests.exceptions.InvalidHeader):
        return TransportErrorCode.BAD_FUNCTION_ARGUMENT
    if isinstance(exc, requests.exceptions.ConnectionError):
        cause = _root_cause(exc)
        if isinstance(cause, NameResolutionError):
            return TransportErrorCode.COULDNT_RESOLVE_HOST
        # NewConnectionError derives from urllib3's TimeoutError, test it first
        if isinstance(cause, NewConnectionError):
            return TransportErrorCode.COULDNT_CONNECT
        if isinstance(cause, Urllib3TimeoutError):
            return TransportErrorCode.OPERATION_TIMEDOUT
        if isinstance(cause, ProtocolError):
            return TransportErrorCode.GOT_NOTHING
        return TransportErrorCode.COULDNT_CONNECT
    if isinstance(exc, requests.exceptions.RequestException):
        return TransportErrorCode.RECV_ERROR
    if isinstance(exc, OSError):
        return TransportErrorCode.WRITE_ERROR
    if isinstance(exc, ValueError):
        return TransportErrorCode.BAD_FUNCTION_ARGUMENT
    return TransportErrorCode.RECV_ERROR


def _interrupt(response: requests.Response, expired: threading.Event) -> None:
    """Timer callback: flag the deadline and unblock any pending body read."""
    expired.set()
    try:
        response.raw.shutdown()
    except (OSError, RuntimeError, ValueError) as e:
        # Connection already released or closed: nothing left to interrupt
        logger.debug("Could not shut down the response socket: %s", e)


class RequestExecutor:
    """Runs requests against the session's base URL under the fixed transport policy."""

    def __init__(self, state: SessionState, settings: Settings | None = None) -> None:
        self.state = state
        self.settings = settings or Settings(base_url=state.base_url)
        if not self.settings.verify_tls:
            # One warning per client instead of one per request
            urllib3.disable_warnings(InsecureRequestWarning)
            logger.warning(
                "TLS certificate verification is disabled for %s "
                "(set verify_tls=True or HIPAY_CONSOLE_VERIFY_TLS=1 to enable it)",
                self.state.base_url,
            )

    # ------------------------- Public helpers -------------------------
    def get(self, path: str, headers: Sequence[str] | None = None) -> TransportResult:
        return self.execute(RequestSpec(Method.GET, path, headers=headers))

    def delete(self, path: str, headers: Sequence[str] | None = None) -> TransportResult:
        return self.execute(RequestSpec(Method.DELETE, path, headers=headers))

    def post(
        self,
        path: str,
        body: Mapping[str, Any] | None = None,
        headers: Sequence[str] | None = None,
    ) -> TransportResult:
        return self.execute(RequestSpec(Method.POST, path, body=body, headers=headers))

    def put(
        self,
        path: str,
        body: Mapping[str, Any] | None = None,
        headers: Sequence[str] | None = None,
    ) -> TransportResult:
        return self.execute(RequestSpec(Method.PUT, path, body=body, headers=headers))

    def download(
        self, path: str, destination: str | Path, headers: Sequence[str] | None = None
    ) -> TransportResult:
        return self.execute(
            RequestSpec(Method.DOWNLOAD, path, headers=headers, destination=destination)
        )

    # ------------------------- Execution -------------------------
    def execute(self, spec: RequestSpec) -> TransportResult:
        """Run one request and normalize its outcome.

        Args:
            spec: Request description.

        Returns:
            TransportResult for this exchange.

        Raises:
            DownloadDestinationError: If the DOWNLOAD destination cannot be
                opened. No request is sent in that case.

        """
        url = self.state.url_for(spec.path)
        headers = headers_to_mapping(compose_headers(self.state.token, spec.headers))
        data = None
        if spec.method.sends_body and spec.body is not None:
            data = encode_json_body(spec.body)

        if spec.method is not Method.DOWNLOAD:
            return self._perform(spec.method.http_verb, url, headers, data, sink=None)

        destination = str(spec.destination)
        try:
            sink = open(destination, "wb")
        except OSError as e:
            raise DownloadDestinationError(destination, e.strerror or str(e)) from e
        with sink:
            # Written whatever the status: error payloads end up in the file too
            return self._perform(spec.method.http_verb, url, headers, data, sink=sink)

    def _new_session(self) -> requests.Session:
        s = requests.Session()
        s.trust_env = False
        s.headers.update({"User-Agent": self.settings.user_agent})
        return s

    def _perform(
        self,
        verb: str,
        url: str,
        headers: Mapping[str, str | bytes | None],
        data: bytes | None,
        sink: IO[bytes] | None,
    ) -> TransportResult:
        started = time.monotonic()
        deadline = started + self.settings.total_timeout
        status = 0
        with self._new_session() as s:
            try:
                response = s.request(
                    verb,
                    url,
                    data=data,
                    headers=headers,
                    timeout=(self.settings.connect_timeout, self.settings.total_timeout),
                    allow_redirects=False,
                    verify=self.settings.verify_tls,
                    stream=True,
                )
                with response:
                    status = response.status_code
                    payload = self._read_body(response, sink, deadline)
            except requests.RequestException as e:
                return self._failed(verb, url, e, status, started)
            except OSError as e:
                # Raised by sink.write(); requests' own errors are caught above
                return self._failed(verb, url, e, status, started)
            except ValueError as e:
                # http.client rejects header names it cannot encode
                return self._failed(verb, url, e, status, started)

        logger.debug(
            "%s %s -> %s (%d bytes, %.2fs)",
            verb,
            url,
            status,
            len(payload),
            time.monotonic() - started,
        )
        return TransportResult.success(status, payload.decode("utf-8", errors="replace"))

    def _read_body(
        self, response: requests.Response, sink: IO[bytes] | None, deadline: float
    ) -> bytes:
        """Read the whole body, copying each chunk to ``sink`` when given.

        A timer shuts the socket down at ``deadline``, so a read blocked on a
        server that trickles bytes returns there instead of waiting for a
        full chunk or the socket timeout.
        """
        expired = threading.Event()
        watchdog = threading.Timer(
            max(deadline - time.monotonic(), 0.0), _interrupt, args=(response, expired)
        )
        watchdog.daemon = True
        watchdog.start()
        chunks: list[bytes] = []
        try:
            self._check_deadline(deadline)
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                self._check_deadline(deadline)
                if sink is not None:
                    sink.write(chunk)
                chunks.append(chunk)
        except (requests.RequestException, OSError, ValueError) as e:
            if expired.is_set():
                raise self._timeout_error() from e
            raise
        finally:
            watchdog.cancel()
        # A shut down connection without Content-Length reads as a clean EOF
        if expired.is_set():
            raise self._timeout_error()
        return b"".join(chunks)

    def _check_deadline(self, deadline: float) -> None:
        if time.monotonic() > deadline:
            raise self._timeout_error()

    def _timeout_error(self) -> requests.exceptions.ReadTimeout:
        return requests.exceptions.ReadTimeout(
            f"Operation timed out after {self.settings.total_timeout:g} seconds"
        )

    def _failed(
        self, verb: str, url: str, exc: BaseException, status: int, started: float
    ) -> TransportResult:
        code = classify_exception(exc)
        logger.warning(
            "%s %s failed after %.2fs: [%d] %s",
            verb,
            url,
            time.monotonic() - started,
            code,
            exc,
        )
        return TransportResult.failure(code, str(exc), status_code=status)
