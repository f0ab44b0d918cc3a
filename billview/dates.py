"""
billview.dates
==============

Date‑of‑birth parsing and calendar comparison.

Patients type their DOB on phones as often as on desktops, so four input
shapes are accepted, tried in this order:

1. ``MMDDYYYY``      – eight digits, keypad friendly
2. ``M/D/YYYY``      – slash delimited, 1–2 digit month/day
3. ``YYYY-M-D``      – ISO style, year first
4. ``M-D-YYYY``      – hyphen delimited, year last

The first pattern whose shape matches the *whole* string wins.  Shapes are
not range‑checked; if :class:`datetime.date` refuses the numbers (month 13,
February 30) the input is treated as unparseable.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional, Union

# (pattern, group index of year, month, day)
DOB_PATTERNS = [
    (re.compile(r"(\d{2})(\d{2})(\d{4})", re.ASCII), (3, 1, 2)),
    (re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})", re.ASCII), (3, 1, 2)),
    (re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})", re.ASCII), (1, 2, 3)),
    (re.compile(r"(\d{1,2})-(\d{1,2})-(\d{4})", re.ASCII), (3, 1, 2)),
]

DateLike = Union[date, datetime, str]


def parse_date_of_birth(text: str) -> Optional[date]:
    """
    Parse a patient‑entered DOB into a calendar date.

    Returns ``None`` for anything that matches none of the accepted shapes,
    and for shapes whose numbers do not form a real date.

    Examples
    --------
    >>> parse_date_of_birth("10012019")
    datetime.date(2019, 10, 1)
    >>> parse_date_of_birth("2019-1-1")
    datetime.date(2019, 1, 1)
    >>> parse_date_of_birth("1012019") is None
    True
    """
    if not text:
        return None
    for pattern, (y, m, d) in DOB_PATTERNS:
        match = pattern.fullmatch(text)
        if match is None:
            continue
        try:
            return date(int(match.group(y)), int(match.group(m)), int(match.group(d)))
        except ValueError:
            return None
    return None


def to_calendar_date(value: Optional[DateLike]) -> Optional[date]:
    """
    Reduce a stored date, timestamp or ISO‑8601 string to its calendar date.

    Time of day and timezone are dropped as written, never converted: a
    stored ``1990-01-15T23:30:00-05:00`` is still the 15th.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def dates_equal(a: Optional[DateLike], b: Optional[DateLike]) -> bool:
    """True when both values reduce to the same year, month and day."""
    left, right = to_calendar_date(a), to_calendar_date(b)
    if left is None or right is None:
        return False
    return (left.year, left.month, left.day) == (right.year, right.month, right.day)
