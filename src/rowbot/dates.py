import datetime as dt
import math

MS_PER_DAY = 86400 * 1000
# Sheets serial day 25569 is 1970-01-01
SERIAL_EPOCH_OFFSET_DAYS = 25569

_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)


def _epoch_ms(instant: dt.datetime) -> float:
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=dt.timezone.utc)
    return (instant - _EPOCH) / dt.timedelta(milliseconds=1)


def _from_epoch_ms(ms: float) -> dt.datetime:
    return _EPOCH + dt.timedelta(milliseconds=ms)


def to_calendar_instant(serial: object) -> dt.datetime | None:
    """Convert a spreadsheet date serial (days) to a UTC instant.

    Returns None for anything that is not a finite number, so an invalid
    cell never equals a valid "today".
    """
    if serial is None or isinstance(serial, bool):
        return None
    try:
        days = float(str(serial).strip()) if isinstance(serial, str) else float(serial)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(days):
        return None
    try:
        return _from_epoch_ms((days - SERIAL_EPOCH_OFFSET_DAYS) * MS_PER_DAY)
    except OverflowError:
        return None


def midnight_of(instant: dt.datetime) -> dt.datetime:
    """Truncate an instant to 00:00 UTC of its day (day-count arithmetic)."""
    ms = _epoch_ms(instant)
    return _from_epoch_ms(math.floor(ms / MS_PER_DAY) * MS_PER_DAY)


def as_instant(value: object = None) -> dt.datetime:
    """Coerce a caller-supplied reference date; None means now."""
    if value is None or value == "":
        return dt.datetime.now(dt.timezone.utc)
    if isinstance(value, dt.datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.timezone.utc)
        return value.astimezone(dt.timezone.utc)
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day, tzinfo=dt.timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _from_epoch_ms(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return as_instant(dt.datetime.fromisoformat(text))
        except ValueError as e:
            raise ValueError(f"Unrecognized date: {value!r}") from e
    raise ValueError(f"Unrecognized date: {value!r}")
