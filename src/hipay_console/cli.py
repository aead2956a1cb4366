"""Command line for the HiPay Console export API.

Examples:
  # Exports
  hipay-console list-exports --filter module=transaction --filter status=active
  hipay-console get-export 1234 --no-files
  hipay-console create-export export.json
  hipay-console replace-export 1234 export.json
  hipay-console delete-export 1234
  hipay-console trending-balance

  # Export files
  hipay-console list-files 1234 --status stocked --date-created 2024-04-25
  hipay-console download-file 5678 a1b2c3 ./downloads/export.csv
  hipay-console send-file 5678 a1b2c3
  hipay-console regenerate-file 5678 a1b2c3 --email

Environment (optional):
  HIPAY_CONSOLE_URL, HIPAY_CONSOLE_USER, HIPAY_CONSOLE_PASSWORD,
  HIPAY_CONSOLE_VERIFY_TLS, HIPAY_CONSOLE_TIMEOUT (see hipay_console.config)

The decoded JSON response is printed on stdout. Exit status is 0 for a 2xx
response, 1 for any other response or a transport failure, 2 for usage and
configuration errors.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from hipay_console.client import ApiResponse, ConsoleAPI
from hipay_console.config import Settings
from hipay_console.exceptions import ConsoleAPIError
from hipay_console.utils import load_json_object, parse_date, parse_key_value

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

FILE_STATUSES = ("created", "stocked", "sent", "expired", "send_error", "generate_error")


def _iso(value: object) -> str:
    return value.isoformat() if hasattr(value, "isoformat") else ""


# ------------------------- Commands -------------------------
def cmd_list_exports(api: ConsoleAPI, args: argparse.Namespace) -> ApiResponse:
    filters = dict(parse_key_value(item) for item in args.filter)
    if "module" not in filters:
        logger.warning("The console expects a 'module' filter (e.g. --filter module=transaction)")
    return api.list_export(filters)


def cmd_get_export(api: ConsoleAPI, args: argparse.Namespace) -> ApiResponse:
    return api.get_export(args.export_id, with_export_files=not args.no_files)


def cmd_create_export(api: ConsoleAPI, args: argparse.Namespace) -> ApiResponse:
    return api.create_export(load_json_object(args.json_file))


def cmd_replace_export(api: ConsoleAPI, args: argparse.Namespace) -> ApiResponse:
    return api.replace_export(args.export_id, load_json_object(args.json_file))


def cmd_delete_export(api: ConsoleAPI, args: argparse.Namespace) -> ApiResponse:
    return api.delete_export(args.export_id)


def cmd_trending_balance(api: ConsoleAPI, args: argparse.Namespace) -> ApiResponse:
    return api.list_export_trending_balance()


def cmd_list_files(api: ConsoleAPI, args: argparse.Namespace) -> ApiResponse:
    return api.list_export_file(
        args.export_id,
        date_created=_iso(args.date_created),
        status=args.status or "",
        filename=args.filename or "",
        date_regenerated=_iso(args.date_regenerated),
    )


def cmd_create_file(api: ConsoleAPI, args: argparse.Namespace) -> ApiResponse:
    return api.create_export_file(args.export_id, load_json_object(args.json_file))


def cmd_download_file(api: ConsoleAPI, args: argparse.Namespace) -> ApiResponse:
    destination: Path = args.destination
    destination.parent.mkdir(parents=True, exist_ok=True)
    response = api.download_export_file(args.file_id, args.file_hash, destination)
    if response.ok:
        logger.info("Saved %s (%d bytes)", destination, destination.stat().st_size)
    return response


def cmd_send_file(api: ConsoleAPI, args: argparse.Namespace) -> ApiResponse:
    return api.send_export_file(args.file_id, args.file_hash)


def cmd_regenerate_file(api: ConsoleAPI, args: argparse.Namespace) -> ApiResponse:
    return api.regenerate_export_file(args.file_id, args.file_hash, send_by_email=args.email)


Command = Callable[[ConsoleAPI, argparse.Namespace], ApiResponse]


# ------------------------- Parser -------------------------
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="hipay-console", description="HiPay Console export API client")
    p.add_argument("--url", help="API base URL (default: HIPAY_CONSOLE_URL or production)")
    p.add_argument("--user", help="Console login (default: HIPAY_CONSOLE_USER)")
    p.add_argument("--password", help="Console password (default: HIPAY_CONSOLE_PASSWORD)")
    p.add_argument(
        "--verify-tls",
        action="store_true",
        help="Verify the server certificate (off unless HIPAY_CONSOLE_VERIFY_TLS is set)",
    )
    p.add_argument("-v", "--verbose", action="store_true")
    sub = p.add_subparsers(dest="command", required=True)

    def add(name: str, func: Command, help_text: str) -> argparse.ArgumentParser:
        sp = sub.add_parser(name, help=help_text)
        sp.set_defaults(func=func)
        return sp

    sp = add("list-exports", cmd_list_exports, "List exports")
    sp.add_argument(
        "--filter", action="append", default=[], metavar="KEY=VALUE", help="Repeatable filter"
    )

    sp = add("get-export", cmd_get_export, "Show one export")
    sp.add_argument("export_id", type=int)
    sp.add_argument("--no-files", action="store_true", help="Do not include export files")

    sp = add("create-export", cmd_create_export, "Create an export from a JSON file")
    sp.add_argument("json_file", type=Path)

    sp = add("replace-export", cmd_replace_export, "Replace an export from a JSON file")
    sp.add_argument("export_id", type=int)
    sp.add_argument("json_file", type=Path)

    sp = add("delete-export", cmd_delete_export, "Delete an export")
    sp.add_argument("export_id", type=int)

    add("trending-balance", cmd_trending_balance, "List trending balance exports")

    sp = add("list-files", cmd_list_files, "List the files of an export")
    sp.add_argument("export_id", type=int)
    sp.add_argument("--date-created", type=parse_date, metavar="YYYY-MM-DD")
    sp.add_argument("--status", choices=FILE_STATUSES)
    sp.add_argument("--filename")
    sp.add_argument("--date-regenerated", type=parse_date, metavar="YYYY-MM-DD")

    sp = add("create-file", cmd_create_file, "Create an export file from a JSON file")
    sp.add_argument("export_id", type=int)
    sp.add_argument("json_file", type=Path)

    sp = add("download-file", cmd_download_file, "Download an export file")
    sp.add_argument("file_id", type=int)
    sp.add_argument("file_hash")
    sp.add_argument("destination", type=Path)

    sp = add("send-file", cmd_send_file, "Send an export file by email")
    sp.add_argument("file_id", type=int)
    sp.add_argument("file_hash")

    sp = add("regenerate-file", cmd_regenerate_file, "Generate an export file again")
    sp.add_argument("file_id", type=int)
    sp.add_argument("file_hash")
    sp.add_argument("--email", action="store_true", help="Also send the new file by email")

    return p


def _report(response: ApiResponse) -> int:
    print(json.dumps(response.data, indent=2, ensure_ascii=False))
    if response.errno_transport:
        logger.error("Request failed: [%d] %s", response.errno_transport, response.errmsg_transport)
        return EXIT_FAILED
    if not response.ok:
        logger.error("HTTP %d %s", response.status_code, response.reason)
        return EXIT_FAILED
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line tool.

    Orchestrates one command:
    1. Parses command-line arguments
    2. Loads settings from the environment and the options
    3. Logs in when credentials are available
    4. Runs the command and prints the decoded response

    Returns:
        Process exit status.

    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        settings = Settings.from_env(
            base_url=args.url,
            username=args.user,
            password=args.password,
            verify_tls=True if args.verify_tls else None,
        )
        api = ConsoleAPI(settings=settings)

        if settings.username and settings.password:
            login = api.login(settings.username, settings.password)
            if not api.is_authenticated:
                return _report(login) or EXIT_FAILED
        else:
            logger.info("No credentials provided, calling the API anonymously.")

        func: Command = args.func
        return _report(func(api, args))
    except ConsoleAPIError as e:
        logger.error("%s", e)
        return EXIT_USAGE
    except (OSError, ValueError) as e:
        # Unreadable or invalid JSON input files, bad --filter items
        logger.error("%s", e)
        return EXIT_USAGE


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
