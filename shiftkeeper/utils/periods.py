"""Standard-Bewertungszeiträume (Monat, Vormonat, Quartal, Jahr)."""
from dataclasses import dataclass
from datetime import date

from dateutil.relativedelta import relativedelta


@dataclass(frozen=True)
class Period:
    key: str
    label: str
    start: date
    end: date


def current_month(today: date) -> Period:
    start = today.replace(day=1)
    end = start + relativedelta(months=1, days=-1)
    return Period("current_month", "Current month", start, end)


def last_month(today: date) -> Period:
    start = today.replace(day=1) - relativedelta(months=1)
    end = start + relativedelta(months=1, days=-1)
    return Period("last_month", "Last month", start, end)


def current_quarter(today: date) -> Period:
    first_month = 3 * ((today.month - 1) // 3) + 1
    start = date(today.year, first_month, 1)
    end = start + relativedelta(months=3, days=-1)
    return Period("current_quarter", "Current quarter", start, end)


def current_year(today: date) -> Period:
    return Period("current_year", "Current year", date(today.year, 1, 1), date(today.year, 12, 31))


def standard_periods(today: date) -> list[Period]:
    return [current_month(today), last_month(today), current_quarter(today), current_year(today)]
