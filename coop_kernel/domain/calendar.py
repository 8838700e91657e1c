"""
Calendar -- date arithmetic and tolerant date parsing.

Month arithmetic clamps to the last day of the target month
(31 Jan + 1 month = 29 Feb in a leap year). Member-entered dates arrive in
several layouts; ``parse_safe_date`` normalizes them and ``format_display_date``
renders the DD/MM/YYYY form printed on receipts and passbooks.
"""

from __future__ import annotations

import calendar as _calendar
import re
from datetime import date, datetime, timedelta

_ISO_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_SEPARATORS = re.compile(r"[/\-.\s]+")


def add_months(start: date, months: int) -> date:
    """Shift ``start`` by whole calendar months, clamping the day."""
    index = start.month - 1 + months
    year = start.year + index // 12
    month = index % 12 + 1
    day = min(start.day, _calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_days(start: date, days: int) -> date:
    return start + timedelta(days=days)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end`` (negative if end is earlier)."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months


def parse_safe_date(value: str | date | datetime | None) -> date | None:
    """
    Parse a user-entered date.

    Accepted layouts:
        YYYY-MM-DD (optionally followed by a time part), YYYY/MM/DD,
        DD/MM/YYYY and MM/DD/YYYY. ``/``, ``-``, ``.`` and spaces all work as
        separators. When both leading parts are 12 or less the day-first
        reading wins.

    Returns None for empty input. Raises ValueError when the text cannot be
    read as a real calendar date.
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

    iso = _ISO_PREFIX.match(text)
    if iso:
        return _build(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)), value)

    parts = [p for p in _SEPARATORS.split(text) if p]
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Unrecognized date: {value!r}")

    if len(parts[0]) == 4:
        year, month, day = int(parts[0]), int(parts[1]), int(parts[2])
    elif len(parts[2]) == 4:
        first, second, year = int(parts[0]), int(parts[1]), int(parts[2])
        if first > 12:
            day, month = first, second
        elif second > 12:
            month, day = first, second
        else:
            day, month = first, second
    else:
        raise ValueError(f"Unrecognized date: {value!r}")

    return _build(year, month, day, value)


def _build(year: int, month: int, day: int, original: object) -> date:
    try:
        return date(year, month, day)
    except ValueError as e:
        raise ValueError(f"Invalid calendar date: {original!r}") from e


def format_display_date(value: date | datetime | str | None) -> str:
    """Render as DD/MM/YYYY; ``-`` for missing values."""
    if value is None or value == "":
        return "-"
    parsed = parse_safe_date(value)
    if parsed is None:
        return "-"
    return parsed.strftime("%d/%m/%Y")


def same_month(a: date, b: date) -> bool:
    return a.year == b.year and a.month == b.month
