"""Shared fixtures: a fake transport in place of requests.Session.request."""

from __future__ import annotations

import json
import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import pytest
import requests

from hipay_console import ConsoleAPI, Settings


class FakeRaw:
    """Stand-in for the urllib3 response behind a requests.Response."""

    def __init__(self) -> None:
        self.shut_down = False

    def shutdown(self) -> None:
        self.shut_down = True


class FakeResponse:
    """Minimal stand-in for a streamed requests.Response."""

    def __init__(
        self,
        status_code: int = 200,
        body: bytes = b"",
        body_error: BaseException | None = None,
        chunk_size: int = 4,
        delay: float = 0.0,
    ) -> None:
        self.status_code = status_code
        self._body = body
        self._body_error = body_error
        self._chunk_size = chunk_size
        self._delay = delay
        self.closed = False
        self.raw = FakeRaw()

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        for start in range(0, len(self._body), self._chunk_size):
            if self._delay:
                time.sleep(self._delay)
            yield self._body[start : start + self._chunk_size]
        if self._body_error is not None:
            raise self._body_error

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


@dataclass
class RecordedCall:
    method: str
    url: str
    headers: Any
    data: bytes | None
    kwargs: dict[str, Any]
    trust_env: bool
    session_headers: dict[str, str]


@dataclass
class FakeTransport:
    """Queue of canned outcomes consumed by each request, plus a call log."""

    calls: list[RecordedCall] = field(default_factory=list)
    outcomes: list[FakeResponse | BaseException] = field(default_factory=list)

    def reply(self, status_code: int = 200, body: Any = b"", **kwargs: Any) -> FakeTransport:
        if isinstance(body, (dict, list)):
            body = json.dumps(body).encode("utf-8")
        elif isinstance(body, str):
            body = body.encode("utf-8")
        self.outcomes.append(FakeResponse(status_code, body, **kwargs))
        return self

    def fail(self, error: BaseException) -> FakeTransport:
        self.outcomes.append(error)
        return self

    @property
    def last(self) -> RecordedCall:
        return self.calls[-1]

    def request(self, session: requests.Session, method: str, url: str, **kwargs: Any) -> Any:
        self.calls.append(
            RecordedCall(
                method=method,
                url=url,
                headers=kwargs.pop("headers", None),
                data=kwargs.pop("data", None),
                kwargs=kwargs,
                trust_env=session.trust_env,
                session_headers=dict(session.headers),
            )
        )
        outcome = self.outcomes.pop(0) if self.outcomes else FakeResponse(200, b"{}")
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def transport(monkeypatch: pytest.MonkeyPatch) -> FakeTransport:
    """Replace every requests.Session.request call with the fake transport."""
    fake = FakeTransport()

    def _request(session: requests.Session, method: str, url: str, **kwargs: Any) -> Any:
        return fake.request(session, method, url, **kwargs)

    monkeypatch.setattr(requests.Session, "request", _request)
    return fake


@pytest.fixture
def api() -> ConsoleAPI:
    return ConsoleAPI(settings=Settings(base_url="https://console.test/api"))

