"""
Zeitzonen-Helfer.

Alle Zeitstempel werden in UTC gespeichert; "heute", Schichtbeginn und
Bewertungszeiträume sind dagegen lokale Kalendertage der Firma.
"""
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from shiftkeeper.core.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """SQLite liefert naive Werte zurück – diese sind UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def company_zone(company) -> ZoneInfo:
    name = getattr(company, "timezone", None) or settings.DEFAULT_TIMEZONE
    return ZoneInfo(name)


def weekday_number(d: date) -> int:
    """0 = Sonntag … 6 = Samstag."""
    return d.isoweekday() % 7


def local_date(dt: datetime, tz: ZoneInfo) -> date:
    return ensure_utc(dt).astimezone(tz).date()


def combine_local(day: date, t: time, tz: ZoneInfo) -> datetime:
    """Local wall-clock time on ``day`` as a UTC datetime."""
    return datetime.combine(day, t, tzinfo=tz).astimezone(timezone.utc)


def local_day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """[start of day, start of next day) in UTC."""
    return (
        combine_local(day, time.min, tz),
        combine_local(day + timedelta(days=1), time.min, tz),
    )


def local_range_bounds(start: date, end: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Both calendar days inclusive: [start 00:00, end+1 00:00) in UTC."""
    return combine_local(start, time.min, tz), combine_local(end + timedelta(days=1), time.min, tz)


def end_of_local_day(moment: datetime, tz: ZoneInfo) -> datetime:
    day = local_date(moment, tz)
    return combine_local(day, time(23, 59, 59), tz)
