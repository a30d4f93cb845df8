import pytest

from rowbot.config import Settings
from rowbot.metasheet import BOTS_RANGE, USERS_RANGE, MetaSheet
from rowbot.runtime import Runtime

TEMPLATE_ROWS = [
    ["", "Today's host: $B"],
    ["Date", "Host"],
    [44000, "alice"],
    [44001, "bob"],
]


class FakeSheets:
    """In-memory stand-in for SheetsClient keyed by spreadsheet id."""

    def __init__(self, grids=None, values=None):
        self.grids = grids or {}
        self.values = values or {}
        self.appended: list[tuple[str, list]] = []

    def get_grid(self, spreadsheet_id, gid=None):
        grid = self.grids.get(spreadsheet_id)
        if isinstance(grid, Exception):
            raise grid
        return grid or []

    def get_values(self, spreadsheet_id, range_):
        return self.values.get(range_, [])

    def append_values(self, spreadsheet_id, range_, values):
        self.appended.append((range_, values))
        return {}

    def update_values(self, spreadsheet_id, range_, values):
        return {}

    def clear_values(self, spreadsheet_id, range_):
        return {}


class FakeSlack:
    def __init__(self, users=None, bot_id="UBOT", fail_channels=()):
        self.users = users or {}
        self.bot_id = bot_id
        self.fail_channels = set(fail_channels)
        self.posted: list[tuple[str, str]] = []

    def post_message(self, channel, text):
        if channel in self.fail_channels:
            raise RuntimeError("Slack post failed: channel_not_found")
        self.posted.append((channel, text))

    def user_info(self, user_id):
        return self.users.get(user_id)

    def bot_user_id(self):
        return self.bot_id

    def channel_name(self, channel):
        return f"name-{channel}"


def make_settings(**overrides) -> Settings:
    values = dict(
        metasheet_id="meta-id",
        google_credentials="",
        google_share_email="",
        slack_bot_token="xoxb-test",
        slack_signing_secret="",
        slack_webhook_url="",
        schedules="morning=09:00@UTC",
        debug_routes=True,
    )
    values.update(overrides)
    return Settings(**values)


def bot_row(channel, sheet_id, algorithm="date_match", schedule="morning_9amET", channel_id=None):
    url = f"https://docs.google.com/spreadsheets/d/{sheet_id}/edit"
    return [channel, "", "ON", url, schedule, algorithm, "", "", channel_id or f"C-{channel}", ""]


@pytest.fixture
def fake_runtime():
    meta_sheets = FakeSheets(
        values={
            BOTS_RANGE: [bot_row("standup", "sheet-a")],
            USERS_RANGE: [["bob", "U2"]],
        }
    )
    bot_sheets = FakeSheets(grids={"sheet-a": TEMPLATE_ROWS})
    return Runtime(
        settings=make_settings(),
        sheets=bot_sheets,
        metasheet=MetaSheet(meta_sheets, "meta-id"),
        slack=FakeSlack(),
    )
