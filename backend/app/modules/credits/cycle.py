"""Calendar arithmetic for credit cycles."""

import calendar
from datetime import datetime


def months_elapsed(anchor: datetime, now: datetime) -> int:
    """Whole calendar months between two timestamps, ignoring day-of-month.

    An anchor on Jan 31 and a current time of Feb 1 count as one month.
    """
    return (now.year * 12 + now.month) - (anchor.year * 12 + anchor.month)


def start_of_next_billing_cycle(now: datetime) -> datetime:
    """Same day-of-month one calendar month ahead, clamped to the month's last day.

    Jan 31 -> Feb 28 (or 29), Dec 15 -> Jan 15 of the next year. Time of day
    and tzinfo are preserved.
    """
    year, month_index = divmod(now.year * 12 + now.month, 12)
    month = month_index + 1
    last_day = calendar.monthrange(year, month)[1]
    return now.replace(year=year, month=month, day=min(now.day, last_day))


def next_reset_at(anchor: datetime) -> datetime:
    """Earliest moment at which months_elapsed(anchor, now) reaches 1.

    That is midnight on the first day of the month after the anchor's month.
    """
    year, month_index = divmod(anchor.year * 12 + anchor.month, 12)
    return anchor.replace(
        year=year, month=month_index + 1, day=1,
        hour=0, minute=0, second=0, microsecond=0,
    )
