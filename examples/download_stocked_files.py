"""Example: download every stocked file of the transaction exports.

Prerequisites:
- HIPAY_CONSOLE_USER and HIPAY_CONSOLE_PASSWORD set in the environment
- HIPAY_CONSOLE_URL pointing to the stage console while testing
"""

from pathlib import Path

from hipay_console import ConsoleAPI, Settings

settings = Settings.from_env()
api = ConsoleAPI(settings=settings)
out_dir = Path("data/exports")
out_dir.mkdir(parents=True, exist_ok=True)

login = api.login(settings.username or "", settings.password or "")
if not api.is_authenticated:
    raise SystemExit(f"Login failed: HTTP {login.status_code} {login.reason} {login.errmsg_transport}")

exports = api.list_export({"module": "transaction", "status": "active"}).data
print(f"Found {len(exports)} transaction export(s)")

for export in exports:
    files = api.list_export_file(export["id"], status="stocked").data
    for export_file in files:
        destination = out_dir / export_file["filename"]
        response = api.download_export_file(export_file["id"], export_file["hash"], destination)
        print(f"{destination}: HTTP {response.status_code} {response.reason}")
