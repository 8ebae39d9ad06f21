"""Magnitude-based helpers for the device's float encoding.

The sensor stream carries every datum as a float. Its role is decided by
magnitude alone: anything above ``DATE_THRESHOLD`` reads as a ``YYYYMMDD``
date and anything above ``DATETIME_THRESHOLD`` as a ``YYYYMMDDhhmmss``
datetime. The thresholds are fixed by the device format and are not derived
from calendar arithmetic.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

DATE_THRESHOLD = 19700101.0
DATETIME_THRESHOLD = 19700101000000.0
DATETIME_DIVISOR = 1000000.0

ERROR_VALUE = -999.0
TOLERANCE = 0.001


def compare_doubles(first: float, second: float) -> bool:
    """Approximate equality within ``TOLERANCE``."""
    return abs(first - second) <= TOLERANCE


def is_error(value: float) -> bool:
    return compare_doubles(value, ERROR_VALUE)


def is_date(datum: float) -> bool:
    return datum > DATE_THRESHOLD


def is_datetime(datum: float) -> bool:
    return datum > DATETIME_THRESHOLD


def to_date(datetime_value: float) -> int:
    """Truncate ``YYYYMMDDhhmmss`` to ``YYYYMMDD``."""
    return int(math.floor(datetime_value / DATETIME_DIVISOR))


def same_date(first: float, second: float) -> bool:
    return compare_doubles(first, second)


def to_date_key(value: float) -> Optional[int]:
    """Normalise a query date to the integer key buckets are stored under.

    Full datetimes are truncated to their date. Plain dates match the nearest
    integer only when they lie within ``TOLERANCE`` of it; anything else cannot
    name a bucket and yields ``None``.
    """
    if is_datetime(value):
        return to_date(value)
    nearest = round(value)
    if not compare_doubles(value, nearest):
        return None
    return int(nearest)


def datetime_to_float(moment: datetime) -> float:
    """Encode ``moment`` as a ``YYYYMMDDhhmmss`` float."""
    return float(
        moment.second
        + moment.minute * 100
        + moment.hour * 100**2
        + moment.day * 100**3
        + moment.month * 100**4
        + moment.year * 100**5
    )


def float_to_datetime(value: float) -> datetime:
    """Decode a ``YYYYMMDDhhmmss`` float into a naive ``datetime``.

    Out-of-range fields roll forward the way a lenient calendar does, so
    ``20231106250000`` decodes to 2023-11-07 01:00:00 and month 13 becomes
    January of the next year. Only years ``datetime`` cannot hold are
    rejected.
    """
    if not is_datetime(value):
        raise ValueError(f"{value!r} is not an encoded datetime.")
    stamp, second = divmod(int(round(value)), 100)
    stamp, minute = divmod(stamp, 100)
    stamp, hour = divmod(stamp, 100)
    stamp, day = divmod(stamp, 100)
    year, month = divmod(stamp, 100)
    extra_years, month_index = divmod(month - 1, 12)
    try:
        start = datetime(year + extra_years, month_index + 1, 1)
        return start + timedelta(days=day - 1, hours=hour, minutes=minute, seconds=second)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"{value!r} lies outside the supported datetime range.") from exc
