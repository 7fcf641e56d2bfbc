# accounting/services/dates.py

"""
DATE HELPERS (ledger timeline)

The API speaks Unix-epoch milliseconds (UTC). Services work on aware
datetimes. A plain date means the whole day: start of day when used as a
lower bound, end of day when used as an "as of" / upper bound.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone as dt_timezone

from django.utils import timezone

EPOCH = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)
ONE_MS = timedelta(milliseconds=1)


def to_datetime(value, *, end_of_day: bool = False) -> datetime | None:
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        if timezone.is_naive(value):
            return timezone.make_aware(value, timezone.get_current_timezone())
        return value

    if isinstance(value, date):
        bound = time.max if end_of_day else time.min
        return datetime.combine(value, bound, tzinfo=dt_timezone.utc)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return from_epoch_ms(int(value))

    raise TypeError(f"Unsupported date value: {value!r}")


def from_epoch_ms(ms: int) -> datetime:
    return EPOCH + ms * ONE_MS


def to_epoch_ms(dt: datetime | None) -> int | None:
    if dt is None:
        return None
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt, timezone.get_current_timezone())
    return (dt - EPOCH) // ONE_MS


def days_between(later: datetime, earlier: datetime) -> int:
    """
    Whole elapsed days, floored (a document 29h old is 1 day old).
    """
    return (later - earlier).days
