"""Date manipulation utilities"""

from datetime import date
from typing import List


def month_start(day: date) -> date:
    """First day of the month containing `day`"""
    return date(day.year, day.month, 1)


def add_months(day: date, months: int) -> date:
    """Shift a month-start date by whole months (negative allowed)"""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month"""
    return (end.year - start.year) * 12 + (end.month - start.month)


def generate_month_range(end: date, months: int) -> List[date]:
    """Month-start dates for the `months` months ending with end's month (inclusive, oldest first)"""
    last = month_start(end)
    return [add_months(last, -offset) for offset in range(months - 1, -1, -1)]
