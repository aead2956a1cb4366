"""HiPay Console API client.

Implements the export management endpoints of the console API:

    login                           POST   login
    download_export_file            GET    export-files/{id}?hash=...     (streamed to a file)
    send_export_file                GET    export-files/{id}/email?hash=...
    regenerate_export_file          GET    export-files/{id}/regenerate?hash=...&send_by_email=...
    list_export_file                GET    exports/{exportId}/files?dateCreated=&status=&filename=&dateRegenerated=
    create_export_file              POST   exports/{exportId}/files
    list_export                     GET    exports?<filters>
    create_export                   POST   exports
    list_export_trending_balance    GET    exports/trending-balance
    get_export                      GET    exports/{id}?withExportFiles=...
    delete_export                   DELETE exports/{id}
    replace_export                  PUT    exports/{id}

Every operation returns an :class:`ApiResponse`. The decoded JSON body is in
``data``; it is an empty dict when the body is not valid JSON (empty body,
transport failure, HTML error page, downloaded file...).

See https://console.hipay.com/api/docs for payload formats.

Example:
    >>> from hipay_console import ConsoleAPI, STAGE_CONSOLE_API_URL
    >>> api = ConsoleAPI(STAGE_CONSOLE_API_URL)
    >>> api.login("user@example.com", "secret").status_code
    200
    >>> files = api.list_export_file(42, status="stocked").data
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hipay_console.config import Settings
from hipay_console.session import AuthToken, SessionState
from hipay_console.transport.executor import RequestExecutor, TransportResult
from hipay_console.transport.query import with_query

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiResponse:
    """Result of an endpoint call: the transport outcome plus the decoded body."""

    transport: TransportResult
    data: Any

    @property
    def ok(self) -> bool:
        return self.transport.ok

    @property
    def status_code(self) -> int:
        return self.transport.status_code

    @property
    def reason(self) -> str:
        return self.transport.reason

    @property
    def errno_transport(self) -> int:
        return self.transport.errno_transport

    @property
    def errmsg_transport(self) -> str:
        return self.transport.errmsg_transport

    def as_dict(self) -> dict[str, Any]:
        """Flat view of the response, keyed like the console's other clients."""
        return {
            "errno_transport": self.transport.errno_transport,
            "errmsg_transport": self.transport.errmsg_transport,
            "errno_http": self.transport.status_code,
            "errmsg_http": self.transport.reason,
            "response": self.data,
        }


def try_decode_json(body: str) -> tuple[bool, Any]:
    """Decode ``body`` as JSON; return ``(False, {})`` when it is not valid JSON."""
    try:
        return True, json.loads(body)
    except ValueError:
        return False, {}


def decode_json_body(result: TransportResult) -> ApiResponse:
    """Wrap a transport result, decoding its body (``{}`` on failure)."""
    _, data = try_decode_json(result.body)
    return ApiResponse(transport=result, data=data)


def _flag(value: bool) -> str:
    return "true" if value else "false"


class ConsoleAPI:
    """Client for the HiPay Console export API.

    The token returned by :meth:`login` is kept and sent with every later
    request. It is not renewed when it expires: call :meth:`login` again.

    Args:
        base_url: API base URL, e.g. ``PROD_CONSOLE_API_URL``. Defaults to
            ``settings.base_url``.
        settings: Transport settings. ``verify_tls`` is False unless set.
    """

    def __init__(self, base_url: str | None = None, settings: Settings | None = None) -> None:
        if settings is None:
            settings = Settings(base_url=base_url) if base_url else Settings()
        self.settings = settings
        self.session = SessionState(base_url or settings.base_url)
        self.executor = RequestExecutor(self.session, settings)

    @property
    def base_url(self) -> str:
        return self.session.base_url

    @property
    def is_authenticated(self) -> bool:
        """True when the last login stored a usable token."""
        return self.session.is_authenticated

    @property
    def auth_token(self) -> AuthToken | None:
        return self.session.token

    # ------------------------- Authentication -------------------------
    def login(self, username: str, password: str) -> ApiResponse:
        """Authenticate and keep the returned token for subsequent calls.

        A response that is not valid JSON clears any previously stored token.

        Implements POST /api/login
        """
        result = self.executor.post("login", {"username": username, "password": password})
        decoded, data = try_decode_json(result.body)
        if decoded:
            self.session.replace_token(AuthToken.from_payload(data))
        else:
            self.session.clear_token()

        if self.session.is_authenticated:
            logger.info("Logged in to %s", self.base_url)
        else:
            logger.warning(
                "Login to %s did not return a usable token (HTTP %s %s)",
                self.base_url,
                result.status_code,
                result.reason or result.errmsg_transport,
            )
        return ApiResponse(transport=result, data=data)

    # ------------------------- Export files -------------------------
    def download_export_file(
        self, file_id: int, file_hash: str, destination_path: str | Path
    ) -> ApiResponse:
        """Download an export file to ``destination_path``.

        The file is written whatever the HTTP status.

        Args:
            file_id: Export file ID.
            file_hash: Hash of the file, as returned by :meth:`list_export_file`.
            destination_path: Where the file is written.

        Raises:
            DownloadDestinationError: If ``destination_path`` cannot be opened.

        Implements GET /api/export-files/{id}
        """
        path = with_query(f"export-files/{file_id}", {"hash": file_hash})
        logger.debug("Downloading export file %s to %s", file_id, destination_path)
        return decode_json_body(self.executor.download(path, destination_path))

    def send_export_file(self, file_id: int, file_hash: str) -> ApiResponse:
        """Send an export file by email.

        Implements GET /api/export-files/{id}/email
        """
        path = with_query(f"export-files/{file_id}/email", {"hash": file_hash})
        return decode_json_body(self.executor.get(path))

    def regenerate_export_file(
        self, file_id: int, file_hash: str, send_by_email: bool = False
    ) -> ApiResponse:
        """Generate a file again in the same conditions as the first time.

        Implements GET /api/export-files/{id}/regenerate
        """
        params = {"hash": file_hash, "send_by_email": _flag(send_by_email)}
        path = with_query(f"export-files/{file_id}/regenerate", params)
        return decode_json_body(self.executor.get(path))

    def list_export_file(
        self,
        export_id: int,
        date_created: str = "",
        status: str = "",
        filename: str = "",
        date_regenerated: str = "",
    ) -> ApiResponse:
        """List the files generated for an export.

        Args:
            export_id: Export ID.
            date_created: File creation date (YYYY-MM-DD).
            status: One of created, stocked, sent, expired, send_error,
                generate_error.
            filename: Name of the generated file.
            date_regenerated: File regeneration date (YYYY-MM-DD).

        Implements GET /api/exports/{exportId}/files
        """
        params = {
            "dateCreated": date_created,
            "status": status,
            "filename": filename,
            "dateRegenerated": date_regenerated,
        }
        path = with_query(f"exports/{export_id}/files", params)
        return decode_json_body(self.executor.get(path))

    def create_export_file(self, export_id: int, data: Mapping[str, Any]) -> ApiResponse:
        """Create an export file resource.

        ``data`` fields: export, status, nbItems, dateRegenerated.

        Implements POST /api/exports/{exportId}/files
        """
        return decode_json_body(self.executor.post(f"exports/{export_id}/files", data))

    # ------------------------- Exports -------------------------
    def list_export(self, filters: Mapping[str, Any]) -> ApiResponse:
        """List exports matching ``filters``.

        Filter keys: module (mandatory), dateCreated, status, filePrefix,
        recurrence, receiveByEmail, config, withExportFiles.

        Implements GET /api/exports
        """
        return decode_json_body(self.executor.get(with_query("exports", filters)))

    def create_export(self, data: Mapping[str, Any]) -> ApiResponse:
        """Create a new export.

        Implements POST /api/exports
        """
        return decode_json_body(self.executor.post("exports", data))

    def list_export_trending_balance(self) -> ApiResponse:
        """Implements GET /api/exports/trending-balance"""
        return decode_json_body(self.executor.get("exports/trending-balance"))

    def get_export(self, export_id: int, with_export_files: bool = True) -> ApiResponse:
        """Retrieve one export, with or without its list of files.

        Implements GET /api/exports/{id}
        """
        path = with_query(f"exports/{export_id}", {"withExportFiles": _flag(with_export_files)})
        return decode_json_body(self.executor.get(path))

    def delete_export(self, export_id: int) -> ApiResponse:
        """Implements DELETE /api/exports/{id}"""
        return decode_json_body(self.executor.delete(f"exports/{export_id}"))

    def replace_export(self, export_id: int | str, data: Mapping[str, Any]) -> ApiResponse:
        """Replace an export configuration.

        Implements PUT /api/exports/{id}
        """
        return decode_json_body(self.executor.put(f"exports/{export_id}", data))
