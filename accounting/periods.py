# accounting/periods.py
"""
Calendar-month helpers for recurring expenses and forecasts.
"""

import calendar
import datetime


def add_months(value: datetime.date, months: int) -> datetime.date:
    """Same day N months later, clamped to the end of shorter months."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return datetime.date(year, month, day)


def month_start(value: datetime.date) -> datetime.date:
    return value.replace(day=1)


def month_end(value: datetime.date) -> datetime.date:
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def month_key(value: datetime.date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def month_keys(start: datetime.date, count: int) -> list[str]:
    """Keys of `count` consecutive months starting with start's month."""
    first = month_start(start)
    return [month_key(add_months(first, offset)) for offset in range(count)]


def monthly_equivalent(amount: int, months_per_period: int) -> int:
    """amount / months, rounded half up to whole cents."""
    return (2 * amount + months_per_period) // (2 * months_per_period)
