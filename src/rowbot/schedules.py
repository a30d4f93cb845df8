"""Named triggers, e.g. ``morning_9amET=09:00@America/New_York~weekdays``."""

import datetime as dt
import threading
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass(frozen=True)
class Schedule:
    name: str
    hour: int
    minute: int
    tz: str = "UTC"
    weekdays_only: bool = False

    def is_due(self, now: dt.datetime) -> bool:
        local = now.astimezone(ZoneInfo(self.tz))
        if self.weekdays_only and local.weekday() >= 5:
            return False
        return local.hour == self.hour and local.minute == self.minute


def _parse_one(chunk: str) -> Schedule:
    if "=" not in chunk:
        raise ValueError(f"Schedule must look like name=HH:MM[@Zone][~weekdays]: {chunk!r}")
    name, spec = (part.strip() for part in chunk.split("=", 1))
    weekdays_only = False
    if spec.endswith("~weekdays"):
        weekdays_only = True
        spec = spec[: -len("~weekdays")]
    tz = "UTC"
    if "@" in spec:
        spec, tz = (part.strip() for part in spec.split("@", 1))
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown time zone in schedule {name!r}: {tz}") from e
    try:
        hh, mm = spec.split(":")
        hour, minute = int(hh), int(mm)
    except ValueError as e:
        raise ValueError(f"Schedule {name!r} needs HH:MM, got {spec!r}") from e
    if not name or not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid schedule: {chunk!r}")
    return Schedule(name=name, hour=hour, minute=minute, tz=tz, weekdays_only=weekdays_only)


def parse_schedules(raw: str) -> tuple[Schedule, ...]:
    return tuple(_parse_one(chunk.strip()) for chunk in raw.split(",") if chunk.strip())


def due_schedules(schedules: tuple[Schedule, ...], now: dt.datetime) -> list[str]:
    return [s.name for s in schedules if s.is_due(now)]


class ScheduleLog:
    """Last start and outcome per schedule, shared between run threads and the health check."""

    def __init__(self, schedules: tuple[Schedule, ...] = ()) -> None:
        self._lock = threading.Lock()
        self._runs: dict[str, dict[str, str]] = {s.name: {} for s in schedules}

    def started(self, name: str, at: dt.datetime) -> None:
        with self._lock:
            self._runs[name] = {"started": at.isoformat(), "status": "running"}

    def finished(self, name: str, sent: int) -> None:
        with self._lock:
            self._runs.setdefault(name, {}).update(status="ok", sent=str(sent))

    def failed(self, name: str, error: Exception) -> None:
        with self._lock:
            self._runs.setdefault(name, {}).update(status="error", error=str(error))

    def snapshot(self) -> dict[str, dict[str, str]]:
        with self._lock:
            return {name: dict(run) for name, run in self._runs.items()}

    def health_text(self) -> str:
        lines = ["OK"]
        for name, run in sorted(self.snapshot().items()):
            if not run:
                lines.append(f"{name} never")
                continue
            detail = run.get("sent") or run.get("error") or ""
            lines.append(f"{name} {run.get('started', '-')} {run['status']} {detail}".rstrip())
        return "\n".join(lines) + "\n"
