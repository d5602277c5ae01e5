"""Calendar helpers for subscription periods."""

import calendar
from datetime import datetime


def add_months(value: datetime, months: int) -> datetime:
    """Shift ``value`` by whole calendar months.

    The day is clamped to the last day of the target month, so
    January 31st plus one month is the last day of February.

    Examples:
        >>> add_months(datetime(2024, 1, 31), 1)
        datetime.datetime(2024, 2, 29, 0, 0)
        >>> add_months(datetime(2024, 11, 15), 3)
        datetime.datetime(2025, 2, 15, 0, 0)
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
