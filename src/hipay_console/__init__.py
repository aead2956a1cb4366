"""HiPay Console API client - export management over HTTP.

This package wraps the HiPay Console export API:

- **Authentication**: `ConsoleAPI.login()` stores the returned token and sends
  it as ``x-Authorization`` with every later request
- **Exports**: list, create, get, replace, delete, trending balance
- **Export files**: list, create, download, send by email, regenerate

Module Structure:
    hipay_console.client: ConsoleAPI endpoint operations and ApiResponse
    hipay_console.transport: request executor, headers, query strings, status text
    hipay_console.session: AuthToken and SessionState
    hipay_console.config: Settings and HIPAY_CONSOLE_* environment loading
    hipay_console.cli: ``hipay-console`` command line

Quick Start:
    >>> from hipay_console import ConsoleAPI, Settings
    >>>
    >>> api = ConsoleAPI(settings=Settings.from_env(verify_tls=True))
    >>> api.login("user@example.com", "secret")
    >>> exports = api.list_export({"module": "transaction"}).data
    >>> api.download_export_file(1234, "a1b2c3", "export.csv")

Requests never raise for HTTP errors or network failures: check
``status_code`` and ``errno_transport`` on the returned ApiResponse.
"""

__version__ = "0.1.0"

from hipay_console.client import ApiResponse, ConsoleAPI
from hipay_console.config import PROD_CONSOLE_API_URL, STAGE_CONSOLE_API_URL, Settings
from hipay_console.exceptions import ConfigError, ConsoleAPIError, DownloadDestinationError
from hipay_console.session import AuthToken
from hipay_console.transport import TransportErrorCode, TransportResult

__all__ = [
    "PROD_CONSOLE_API_URL",
    "STAGE_CONSOLE_API_URL",
    "ApiResponse",
    "AuthToken",
    "ConfigError",
    "ConsoleAPI",
    "ConsoleAPIError",
    "DownloadDestinationError",
    "Settings",
    "TransportErrorCode",
    "TransportResult",
    "__version__",
]
