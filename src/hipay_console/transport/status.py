"""Reason phrases for HTTP status codes."""

from __future__ import annotations

HTTP_STATUS_TEXT: dict[int, str] = {
    # 1xx informational response
    100: "Continue",
    101: "Switching Protocols",
    102: "Processing",
    103: "Early Hints",
    # 2xx success
    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non-Authoritative Information",
    204: "No Content",
    205: "Reset Content",
    206: "Partial Content",
    207: "Multi-Status",
    208: "Already Reported",
    226: "IM Used",
    # 3xx redirection
    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    305: "Use Proxy",
    306: "Switch Proxy",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    # 4xx client errors
    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    407: "Proxy Authentication Required",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Payload Too Large",
    414: "URI Too Long",
    415: "Unsupported Media Type",
    416: "Range Not Satisfiable",
    417: "Expectation Failed",
    418: "I'm a teapot",
    421: "Misdirected Request",
    422: "Unprocessable Entity",
    423: "Locked",
    424: "Failed Dependency",
    425: "Too Early",
    426: "Upgrade Required",
    428: "Precondition Required",
    429: "Too Many Requests",
    431: "Request Header Fields Too Large",
    451: "Unavailable For Legal Reasons",
    # 5xx server errors
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
    506: "Variant Also Negotiates",
    507: "Insufficient Storage",
    508: "Loop Detected",
    510: "Not Extended",
    511: "Network Authentication Required",
    # Vendor extensions
    456: "Quota exceeded",
    529: "Too many requests",
}


def normalize_status(code: int | str | None) -> int:
    """Coerce a status code to an int; anything non-numeric becomes 0.

    Examples:
        >>> normalize_status("404")
        404
        >>> normalize_status("n/a")
        0
    """
    if code is None or isinstance(code, bool):
        return 0
    if isinstance(code, int):
        return code
    text = str(code).strip()
    return int(text) if text.isascii() and text.isdigit() else 0


def status_text(code: int | str | None) -> str:
    """Return the English reason phrase for an HTTP status code.

    Unknown codes (including 0, used when no response was received) map to
    an empty string rather than an error.

    Examples:
        >>> status_text(200)
        'OK'
        >>> status_text(999)
        ''
    """
    return HTTP_STATUS_TEXT.get(normalize_status(code), "")
