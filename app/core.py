# app/core.py

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.exceptions import InvalidTimeInput


@dataclass(frozen=True)
class TimeInterval:
    start: Union[datetime, date]
    end: Union[datetime, date]
    all_day: bool
    timezone: str

    def as_google(self) -> tuple[dict, dict]:
        """Return the (start, end) objects Google Calendar expects."""
        if self.all_day:
            return {"date": self.start.isoformat()}, {"date": self.end.isoformat()}
        return (
            {"dateTime": self.start.isoformat(), "timeZone": self.timezone},
            {"dateTime": self.end.isoformat(), "timeZone": self.timezone},
        )


def parse_date(value) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidTimeInput(f"Data inválida: {value}")


def parse_time(value) -> time:
    if isinstance(value, time):
        return value
    raw = str(value).strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(raw, fmt).time()
        except ValueError:
            continue
    raise InvalidTimeInput(f"Hora inválida: {value}")


def get_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidTimeInput(f"Fuso horário inválido: {name}")


def resolve_interval(
    start_date,
    start_time=None,
    duration_minutes: Optional[int] = None,
    end_date=None,
    *,
    timezone: str,
    default_minutes: int = 60,
) -> TimeInterval:
    day = parse_date(start_date)
    last_day = parse_date(end_date) if end_date not in (None, "") else day
    if last_day < day:
        raise InvalidTimeInput("A data de fim não pode ser anterior à data de início")

    # 1) Timed slot: [start, start + duration)
    if start_time not in (None, ""):
        if last_day != day:
            raise InvalidTimeInput("Hora e data de fim não podem ser usadas em conjunto")
        minutes = default_minutes if duration_minutes in (None, "", 0) else duration_minutes
        try:
            minutes = int(minutes)
        except (TypeError, ValueError):
            raise InvalidTimeInput(f"Duração inválida: {duration_minutes}")
        if minutes <= 0:
            raise InvalidTimeInput(f"Duração inválida: {duration_minutes}")

        zone = get_zone(timezone)
        start = datetime.combine(day, parse_time(start_time), tzinfo=zone)
        # Elapsed time, not wall-clock, across DST changes
        end = (start.astimezone(dt_timezone.utc) + timedelta(minutes=minutes)).astimezone(zone)
        return TimeInterval(start=start, end=end, all_day=False, timezone=timezone)

    # 2) All-day: end is exclusive, so always at least one day
    return TimeInterval(start=day, end=last_day + timedelta(days=1), all_day=True, timezone=timezone)
