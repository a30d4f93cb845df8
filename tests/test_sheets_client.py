import threading

import pytest
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.errors import HttpError
from httplib2 import Response

import rowbot.clients.sheets as sheets_module
from rowbot.clients.sheets import SheetsClient, load_service_account, parse_spreadsheet_url


class _FakeRequest:
    def __init__(self, payload: dict):
        self.payload = payload
        self.num_retries = None

    def execute(self, num_retries=0):
        self.num_retries = num_retries
        return self.payload


class _FakeErrorRequest:
    def __init__(self, error: Exception):
        self.error = error

    def execute(self, num_retries=0):
        raise self.error


class _FakeValues:
    def __init__(self):
        self.calls: list[tuple[str, dict]] = []
        self.requests: list[_FakeRequest] = []

    def _request(self, payload):
        req = _FakeRequest(payload)
        self.requests.append(req)
        return req

    def batchGetByDataFilter(self, **kwargs):
        self.calls.append(("batchGetByDataFilter", kwargs))
        return self._request(
            {"valueRanges": [{"valueRange": {"values": [["", "Hi $B"], [], [44001, "bob"]]}}]}
        )

    def get(self, **kwargs):
        self.calls.append(("get", kwargs))
        return self._request({"values": [["alice", "U1"]]})

    def append(self, **kwargs):
        self.calls.append(("append", kwargs))
        return self._request({"updates": {"updatedRows": 1}})

    def update(self, **kwargs):
        self.calls.append(("update", kwargs))
        return self._request({})

    def clear(self, **kwargs):
        self.calls.append(("clear", kwargs))
        return self._request({})


class _FakeSpreadsheets:
    def __init__(self, values):
        self._values = values

    def values(self):
        return self._values


class _FakeSheetsService:
    def __init__(self, values=None):
        self.values = values or _FakeValues()

    def spreadsheets(self):
        return _FakeSpreadsheets(self.values)


def test_parse_spreadsheet_url_with_gid():
    url = "https://docs.google.com/spreadsheets/d/1AbC-xyz_9/edit#gid=123456"
    assert parse_spreadsheet_url(url) == ("1AbC-xyz_9", 123456)


def test_parse_spreadsheet_url_without_gid():
    assert parse_spreadsheet_url("https://docs.google.com/spreadsheets/d/abc/edit") == ("abc", None)


def test_parse_spreadsheet_url_rejects_other_links():
    with pytest.raises(ValueError):
        parse_spreadsheet_url("https://example.com/sheet")


def test_get_grid_requests_serial_dates_for_sub_sheet():
    service = _FakeSheetsService()
    client = SheetsClient(service=service)

    rows = client.get_grid("sheet-1", 42)

    assert rows == [["", "Hi $B"], [], [44001, "bob"]]
    name, kwargs = service.values.calls[0]
    assert name == "batchGetByDataFilter"
    assert kwargs["spreadsheetId"] == "sheet-1"
    body = kwargs["body"]
    assert body["dateTimeRenderOption"] == "SERIAL_NUMBER"
    assert body["valueRenderOption"] == "UNFORMATTED_VALUE"
    grid = body["dataFilters"][0]["gridRange"]
    assert grid["sheetId"] == 42
    assert grid["endRowIndex"] == 1000
    assert grid["endColumnIndex"] == 10
    assert service.values.requests[0].num_retries == SheetsClient.API_RETRIES


def test_get_grid_defaults_to_first_sheet_and_handles_empty_response():
    values = _FakeValues()
    values.batchGetByDataFilter = lambda **kwargs: _FakeRequest({})
    client = SheetsClient(service=_FakeSheetsService(values))
    assert client.get_grid("sheet-1") == []


def test_write_calls_use_raw_input():
    service = _FakeSheetsService()
    client = SheetsClient(service=service)

    client.append_values("meta", "UserID Map!A3:B", [["bob", "U2"]])
    client.update_values("meta", "UserID Map!A3:B", [["alice", "U1"]])
    client.clear_values("meta", "UserID Map!A3:B2000")

    calls = {name: kwargs for name, kwargs in service.values.calls}
    assert calls["append"]["valueInputOption"] == "RAW"
    assert calls["append"]["body"] == {"values": [["bob", "U2"]]}
    assert calls["update"]["range"] == "UserID Map!A3:B"
    assert calls["clear"]["range"] == "UserID Map!A3:B2000"


def test_api_errors_become_runtime_errors_naming_the_sheet():
    values = _FakeValues()
    response = Response({"status": "403", "reason": "Forbidden"})
    error = HttpError(response, b'{"error": {"message": "The caller does not have permission"}}')
    values.get = lambda **kwargs: _FakeErrorRequest(error)
    client = SheetsClient(service=_FakeSheetsService(values))

    with pytest.raises(RuntimeError, match="sheet-9") as exc:
        client.get_values("sheet-9", "A1")
    assert exc.value.__cause__ is error


def test_client_without_credentials_or_service():
    with pytest.raises(RuntimeError):
        SheetsClient().get_values("x", "A1")


def test_load_service_account_missing_file(tmp_path):
    with pytest.raises(RuntimeError, match="not found"):
        load_service_account(str(tmp_path / "nope.json"), ["scope"])


def test_load_service_account_not_configured():
    with pytest.raises(RuntimeError, match="not configured"):
        load_service_account("  ", ["scope"])


def test_each_thread_gets_its_own_transport(monkeypatch):
    built: list[object] = []
    lock = threading.Lock()

    def fake_build(api, version, http=None, cache_discovery=True):
        with lock:
            built.append(http)
        return _FakeSheetsService()

    monkeypatch.setattr(sheets_module, "build", fake_build)
    client = SheetsClient(credentials=object())
    start = threading.Barrier(4)
    seen: list[tuple[object, object]] = []

    def worker():
        start.wait()
        first = client._get_service()
        again = client._get_service()
        with lock:
            seen.append((first, again))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(built) == 4
    assert all(isinstance(h, AuthorizedHttp) for h in built)
    assert len({id(h) for h in built}) == 4
    assert all(first is again for first, again in seen)
    assert len({id(first) for first, _ in seen}) == 4
