"""One bot = one sheet of dated rows + a message template."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from rowbot.clients.sheets import SheetsClient, parse_spreadsheet_url
from rowbot.dates import as_instant
from rowbot.render import render
from rowbot.selection import build_filter, cell, get_strategy

# row 0 holds the template in column B, row 1 is a spacer for humans
HEADER_ROWS = 2


@dataclass(frozen=True)
class BotConfig:
    strategy_name: str = "date_most_recent"
    filter_spec: str | None = None
    custom_template: str | None = None


def maybe_message(
    config: BotConfig,
    snapshot: Sequence[Sequence[object]],
    name_map: Mapping[str, str],
    reference_date: object = None,
) -> str | None:
    """Today's message for one bot, or None when nothing is scheduled."""
    if len(snapshot) <= HEADER_ROWS:
        return None
    template = config.custom_template or cell(snapshot[0], 1)
    if not template:
        return None

    rows = snapshot[HEADER_ROWS:]
    strategy = get_strategy(config.strategy_name)
    selected = strategy(rows, build_filter(config.filter_spec), as_instant(reference_date))
    if not selected:
        return None
    return render(str(template), selected, name_map)


class SheetBot:
    """Fetches a bot's sheet and evaluates it against a reference date."""

    def __init__(
        self,
        sheets: SheetsClient,
        spreadsheet_url: str,
        *,
        filter_spec: str | None = None,
        custom_message_cell: str | None = None,
        name_map: Mapping[str, str] | None = None,
    ) -> None:
        self.sheets = sheets
        self.spreadsheet_url = spreadsheet_url
        self.spreadsheet_id, self.gid = parse_spreadsheet_url(spreadsheet_url)
        self.filter_spec = filter_spec or None
        self.custom_message_cell = custom_message_cell or None
        self.name_map = dict(name_map or {})

    def fetch_snapshot(self) -> tuple[list[list[object]], str | None]:
        """(rows, custom template) as currently stored in the sheet."""
        rows = self.sheets.get_grid(self.spreadsheet_id, self.gid)
        custom_template = None
        if self.custom_message_cell:
            values = self.sheets.get_values(self.spreadsheet_id, self.custom_message_cell)
            if values and values[0]:
                custom_template = str(values[0][0])
        return rows, custom_template

    def maybe_message(self, algorithm: str | None = None, fakedate: object = None) -> str | None:
        rows, custom_template = self.fetch_snapshot()
        config = BotConfig(
            strategy_name=algorithm or "date_most_recent",
            filter_spec=self.filter_spec,
            custom_template=custom_template,
        )
        reference_date = as_instant(fakedate)
        message = maybe_message(config, rows, self.name_map, reference_date)
        if message is not None:
            print(f"maybe_message {self.spreadsheet_id} gid={self.gid} algorithm={algorithm} date={reference_date:%Y-%m-%d}")
        return message
