from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_TIMEZONE
from ..core.exceptions import ValidationError

_tz = ZoneInfo(DEFAULT_TIMEZONE)


def configure_timezone(name: str) -> None:
    """Switch the zone used for every calendar computation (called by create_app)."""
    global _tz
    _tz = ZoneInfo(name)


def now_local() -> datetime:
    """Current aware time in the hostel's time zone.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(_tz)


def today_local() -> date:
    return now_local().date()


def to_local(value: datetime) -> datetime:
    # DATETIME columns hold naive local wall-clock time.
    if value.tzinfo is None:
        return value.replace(tzinfo=_tz)
    return value.astimezone(_tz)


def to_db(value: datetime) -> datetime:
    """Aware datetime -> naive local wall-clock time for DATETIME columns."""
    if value.tzinfo is None:
        return value
    return value.astimezone(_tz).replace(tzinfo=None)


def isoformat(value: datetime | None) -> str | None:
    return to_local(value).isoformat() if value else None


def parse_iso_date(value: str, field_name: str = "date") -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid {field_name} format. Use YYYY-MM-DD")


def parse_hhmm(value: str) -> int:
    """'07:30' -> minutes since midnight."""
    hours, minutes = str(value).split(":", 1)
    return int(hours) * 60 + int(minutes)


def minutes_of_day(value: datetime) -> int:
    return value.hour * 60 + value.minute


def format_time_12h(value: str) -> str:
    """'07:00' -> '7:00 AM', '19:30' -> '7:30 PM'."""
    hours, minutes = str(value).split(":", 1)
    h = int(hours)
    suffix = "PM" if h >= 12 else "AM"
    h12 = h % 12 or 12
    return f"{h12}:{minutes[:2]} {suffix}"


def week_start(value: date) -> date:
    """Sunday that starts the week containing ``value``."""
    # date.weekday(): Monday=0 .. Sunday=6
    return value - timedelta(days=(value.weekday() + 1) % 7)


def sunday_index(value: date) -> int:
    """Day of week with Sunday=0 .. Saturday=6."""
    return (value.weekday() + 1) % 7


def server_time(now: datetime | None = None) -> dict:
    now = now or now_local()
    return {
        "date": now.strftime("%Y-%m-%d"),
        "display": f"{now.strftime('%A')}, {now.day} {now.strftime('%b')} {now.year}",
        "weekday": now.strftime("%A"),
        "day": now.day,
        "month": now.strftime("%b"),
        "year": now.year,
        "hours": now.hour,
        "minutes": now.minute,
        "timestamp": int(now.timestamp() * 1000),
    }
