import json
import re
import threading
from pathlib import Path

import httplib2
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

READONLY_SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets.readonly",
    "https://www.googleapis.com/auth/drive",
]
READWRITE_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

_ID_RE = re.compile(r"/d/([^/]+)")
_GID_RE = re.compile(r"gid=(\d+)")


def parse_spreadsheet_url(url: str) -> tuple[str, int | None]:
    """Return (spreadsheet id, sub-sheet gid or None) from a shared sheet URL."""
    found = _ID_RE.search(url or "")
    if not found:
        raise ValueError(f"Not a Google Sheets URL: {url!r}")
    gid = _GID_RE.search(url)
    return found.group(1), int(gid.group(1)) if gid else None


def load_service_account(credentials: str, scopes: list[str], subject: str = ""):
    """Credentials from a service-account key file path or inline JSON."""
    text = credentials.strip()
    if not text:
        raise RuntimeError("Google service account credentials are not configured")
    if text.startswith("{"):
        info = json.loads(text)
        creds = service_account.Credentials.from_service_account_info(info, scopes=scopes)
    else:
        if not Path(text).exists():
            raise RuntimeError(f"Google service account file not found: {text}")
        creds = service_account.Credentials.from_service_account_file(text, scopes=scopes)
    if subject:
        creds = creds.with_subject(subject)
    return creds


class SheetsClient:
    # the client library backs off exponentially between attempts
    API_RETRIES = 5
    GRID_ROWS = 1000
    GRID_COLUMNS = 10
    HTTP_TIMEOUT_SEC = 30

    def __init__(self, credentials=None, *, service=None) -> None:
        self._credentials = credentials
        self._service = service
        # httplib2 connections are not thread-safe: one service per thread
        self._local = threading.local()

    def _get_service(self):
        if self._service is not None:
            return self._service
        service = getattr(self._local, "service", None)
        if service is None:
            if self._credentials is None:
                raise RuntimeError("SheetsClient needs credentials or a service")
            http = AuthorizedHttp(self._credentials, http=httplib2.Http(timeout=self.HTTP_TIMEOUT_SEC))
            service = build("sheets", "v4", http=http, cache_discovery=False)
            self._local.service = service
        return service

    def _execute(self, request, spreadsheet_id: str):
        try:
            return request.execute(num_retries=self.API_RETRIES)
        except HttpError as e:
            raise RuntimeError(
                f"The API returned an error for spreadsheet {spreadsheet_id}: {e}. "
                "Check that the sheet exists, that it is shared with the bot account, "
                "and that Google Sheets is available."
            ) from e

    def get_grid(self, spreadsheet_id: str, gid: int | None = None) -> list[list[object]]:
        """Raw rows of a sub-sheet; dates come back as serial day numbers."""
        # batchGetByDataFilter lets us address the sub-sheet by the gid in shared URLs
        body = {
            "dataFilters": [
                {
                    "gridRange": {
                        "sheetId": gid or 0,
                        "startRowIndex": 0,
                        "endRowIndex": self.GRID_ROWS,
                        "startColumnIndex": 0,
                        "endColumnIndex": self.GRID_COLUMNS,
                    }
                }
            ],
            "majorDimension": "ROWS",
            "dateTimeRenderOption": "SERIAL_NUMBER",
            "valueRenderOption": "UNFORMATTED_VALUE",
        }
        request = self._get_service().spreadsheets().values().batchGetByDataFilter(
            spreadsheetId=spreadsheet_id, body=body
        )
        resp = self._execute(request, spreadsheet_id)
        value_ranges = resp.get("valueRanges") or []
        if not value_ranges:
            return []
        return list(value_ranges[0].get("valueRange", {}).get("values", []))

    def get_values(self, spreadsheet_id: str, range_: str) -> list[list[object]]:
        request = self._get_service().spreadsheets().values().get(
            spreadsheetId=spreadsheet_id, range=range_, majorDimension="ROWS"
        )
        return list(self._execute(request, spreadsheet_id).get("values", []))

    def append_values(self, spreadsheet_id: str, range_: str, values: list[list[object]]) -> dict:
        request = self._get_service().spreadsheets().values().append(
            spreadsheetId=spreadsheet_id,
            range=range_,
            valueInputOption="RAW",
            body={"values": values},
        )
        return self._execute(request, spreadsheet_id)

    def update_values(self, spreadsheet_id: str, range_: str, values: list[list[object]]) -> dict:
        request = self._get_service().spreadsheets().values().update(
            spreadsheetId=spreadsheet_id,
            range=range_,
            valueInputOption="RAW",
            body={"values": values},
        )
        return self._execute(request, spreadsheet_id)

    def clear_values(self, spreadsheet_id: str, range_: str) -> dict:
        request = self._get_service().spreadsheets().values().clear(spreadsheetId=spreadsheet_id, range=range_, body={})
        return self._execute(request, spreadsheet_id)
