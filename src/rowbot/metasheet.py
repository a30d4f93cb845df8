"""The control spreadsheet: which bots exist and who is who in Slack.

Two tabs matter. ``Metasheet`` lists one bot per row from row 8 down;
``UserID Map`` maps display names to Slack user ids from row 3 down.
"""

from collections.abc import Iterable
from dataclasses import asdict, dataclass

from rowbot.clients.sheets import SheetsClient
from rowbot.render import normalize_name

BOTS_RANGE = "Metasheet!A8:J"
USERS_RANGE = "UserID Map!A3:B"
USERS_CLEAR_RANGE = "UserID Map!A3:B2000"

DEFAULT_SCHEDULE = "morning_9amET"
DEFAULT_ALGORITHM = "date_match"


@dataclass(frozen=True)
class SheetBotEntry:
    channel_name: str
    title: str
    status: str
    spreadsheet_url: str
    schedule: str
    algorithm: str
    b_column_filter: str
    custom_message_cell: str
    channel_id: str
    user_created: str
    row: int

    @classmethod
    def from_row(cls, row: list[object], index: int) -> "SheetBotEntry":
        values = [str(v) if v is not None else "" for v in row] + [""] * 10
        return cls(*values[:10], row=index)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


def collect_user_ids(event: dict) -> list[str]:
    """User ids mentioned in a Slack event's rich-text blocks."""
    seen: dict[str, None] = {}
    for block in event.get("blocks") or []:
        for element in block.get("elements") or []:
            if element.get("user_id"):
                seen[element["user_id"]] = None
            for inner in element.get("elements") or []:
                if inner.get("user_id"):
                    seen[inner["user_id"]] = None
    return list(seen)


class MetaSheet:
    def __init__(self, sheets: SheetsClient, spreadsheet_id: str) -> None:
        if not spreadsheet_id:
            raise RuntimeError("Missing METASHEET_SPREADSHEET_ID")
        self.sheets = sheets
        self.spreadsheet_id = spreadsheet_id
        self.users: dict[str, str] = {}

    def get_sheets(self, schedule: str | None = None) -> list[SheetBotEntry]:
        entries = []
        for i, row in enumerate(self.sheets.get_values(self.spreadsheet_id, BOTS_RANGE)):
            entry = SheetBotEntry.from_row(row, i)
            if entry.status == "OFF":
                continue
            if schedule and entry.schedule != schedule:
                continue
            entries.append(entry)
        print(f"sheetbots for schedule={schedule or '*'}: {len(entries)}")
        return entries

    def load_user_mapping(self) -> dict[str, str]:
        users: dict[str, str] = {}
        for row in self.sheets.get_values(self.spreadsheet_id, USERS_RANGE):
            if len(row) < 2 or not row[0] or not row[1]:
                continue
            users[normalize_name(row[0])] = str(row[1]).strip()
        self.users = users
        return dict(users)

    def add_user_mapping(self, pairs: Iterable[tuple[str, str]]) -> dict | None:
        values = [[name, user_id] for name, user_id in pairs if name and user_id]
        if not values:
            return None
        return self.sheets.append_values(self.spreadsheet_id, USERS_RANGE, values)

    def deduplicate_user_mapping(self) -> dict | None:
        pairs = sorted(self.load_user_mapping().items())
        if not pairs:
            return None
        self.sheets.clear_values(self.spreadsheet_id, USERS_CLEAR_RANGE)
        return self.sheets.update_values(self.spreadsheet_id, USERS_RANGE, [list(p) for p in pairs])

    def add_sheet(
        self,
        *,
        sheet_url: str,
        channel_id: str,
        channel_name: str,
        schedule: str = "",
        algorithm: str = "",
        b_column_filter: str = "",
        custom_message_cell: str = "",
        user_added: str = "",
    ) -> dict:
        # TODO: skip sheets that are already registered for the same channel
        row = [
            channel_name,
            "",  # title, filled in by metasheet admins
            "ON",
            sheet_url,
            schedule or DEFAULT_SCHEDULE,
            algorithm or DEFAULT_ALGORITHM,
            b_column_filter,
            custom_message_cell,
            channel_id,
            user_added,
        ]
        return self.sheets.append_values(self.spreadsheet_id, BOTS_RANGE, [row])
