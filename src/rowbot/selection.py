"""Row filters and the named strategies that pick today's row.

Every strategy takes ``(rows, passes_filter, reference_date)`` where ``rows``
are the data rows of a sheet (header rows already dropped) and returns one
of those rows, or None. Strategies never mutate ``rows``.
"""

import datetime as dt
from collections.abc import Callable, Sequence
from enum import Enum

from rowbot.dates import to_calendar_instant, midnight_of
from rowbot.render import display_text

Row = Sequence[object]
RowFilter = Callable[[Row], bool]
Strategy = Callable[[Sequence[Row], RowFilter, dt.datetime], "Row | None"]


def cell(row: Row, index: int) -> object:
    """Column value by zero-based index; None past the end of the row."""
    if 0 <= index < len(row):
        return row[index]
    return None


def build_filter(filter_spec: object = None) -> RowFilter:
    """Row predicate: column A set, and column B equal to ``filter_spec`` if given."""
    if filter_spec is None or filter_spec == "":

        def passes(row: Row) -> bool:
            return bool(cell(row, 0))

        return passes

    wanted = display_text(filter_spec)

    def passes_with_tag(row: Row) -> bool:
        tag = cell(row, 1)
        return bool(cell(row, 0)) and tag is not None and display_text(tag) == wanted

    return passes_with_tag


class StrategyName(str, Enum):
    FIRST_ROW = "first_row"
    DATE_MATCH = "date_match"
    DATE_MATCH_WITH_ROW_CONTENTS = "date_match_with_row_contents"
    DATE_MOST_RECENT = "date_most_recent"
    TOMORROW_REMINDER = "tomorrow_reminder"
    WEEKDAYS_AFTER_TOPDATE = "weekdays_after_topdate"


DEFAULT_STRATEGY = StrategyName.DATE_MOST_RECENT


def first_row(rows: Sequence[Row], passes_filter: RowFilter, reference_date: dt.datetime) -> Row | None:
    # smoke test for sheets without a schedule yet; date is ignored
    for row in rows:
        if len(row) and passes_filter(row):
            return row
    return None


def _match_day(rows: Sequence[Row], passes_filter: RowFilter, day: dt.datetime, *, needs_b: bool = False) -> Row | None:
    for row in rows:
        if not passes_filter(row):
            continue
        if to_calendar_instant(cell(row, 0)) != day:
            continue
        if needs_b and not cell(row, 1):
            continue
        return row
    return None


def date_match(rows: Sequence[Row], passes_filter: RowFilter, reference_date: dt.datetime) -> Row | None:
    return _match_day(rows, passes_filter, midnight_of(reference_date))


def date_match_with_row_contents(
    rows: Sequence[Row], passes_filter: RowFilter, reference_date: dt.datetime
) -> Row | None:
    """Like date_match, but the row must also carry a value in column B."""
    return _match_day(rows, passes_filter, midnight_of(reference_date), needs_b=True)


def date_most_recent(rows: Sequence[Row], passes_filter: RowFilter, reference_date: dt.datetime) -> Row | None:
    """Most recent row as of today, for rows sorted ascending by column A.

    A row dated today wins. Otherwise the row just before the first future
    row is returned, so gaps (weekends, holidays) keep the previous item.
    Once every dated row is in the past there is nothing to return.
    """
    today = midnight_of(reference_date)
    for i, row in enumerate(rows):
        if not cell(row, 0):
            continue
        day = to_calendar_instant(cell(row, 0))
        if day is None:
            continue
        if day == today and passes_filter(row):
            return row
        if day > today:
            if i and passes_filter(rows[i - 1]):
                return rows[i - 1]
            return None
    return None


def tomorrow_reminder(rows: Sequence[Row], passes_filter: RowFilter, reference_date: dt.datetime) -> Row | None:
    tomorrow = midnight_of(reference_date + dt.timedelta(days=1))
    return _match_day(rows, passes_filter, tomorrow)


def weekdays_after_topdate(
    rows: Sequence[Row], passes_filter: RowFilter, reference_date: dt.datetime
) -> Row | None:
    """Index rows as consecutive weekdays starting at the first row's date.

    Only the first row needs a date; each week advances five rows. The
    filter and the other rows' dates are ignored.
    """
    if not rows:
        return None
    first_date = to_calendar_instant(cell(rows[0], 0))
    if first_date is None:
        return None
    elapsed = midnight_of(reference_date) - first_date
    if elapsed < dt.timedelta(0) or elapsed % dt.timedelta(days=1):
        return None
    days_since = elapsed.days
    row_index = (days_since // 7) * 5 + days_since % 7
    if row_index < len(rows):
        return rows[row_index]
    return None


_STRATEGIES: dict[StrategyName, Strategy] = {
    StrategyName.FIRST_ROW: first_row,
    StrategyName.DATE_MATCH: date_match,
    StrategyName.DATE_MATCH_WITH_ROW_CONTENTS: date_match_with_row_contents,
    StrategyName.DATE_MOST_RECENT: date_most_recent,
    StrategyName.TOMORROW_REMINDER: tomorrow_reminder,
    StrategyName.WEEKDAYS_AFTER_TOPDATE: weekdays_after_topdate,
}


def resolve_strategy_name(name: object) -> StrategyName:
    """Unknown or missing names fall back to date_most_recent."""
    if isinstance(name, StrategyName):
        return name
    try:
        return StrategyName(str(name).strip().lower())
    except ValueError:
        return DEFAULT_STRATEGY


def get_strategy(name: object) -> Strategy:
    return _STRATEGIES[resolve_strategy_name(name)]
