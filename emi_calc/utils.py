"""Utility functions for the EMI calculator.

This module provides helpers for parsing user input into Python data types and
for calendar arithmetic: adding months to a date and counting how many monthly
due dates have passed. It uses Python's ``datetime`` and ``calendar`` modules.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` (or ``YYYY-MM``) string into a ``date``.

    A bare year-month is normalized to the first day of that month.

    Raises
    ------
    ValueError
        If the string is not a valid date.
    """
    try:
        parts = value.strip().split("-")
        if len(parts) == 2:
            return date(int(parts[0]), int(parts[1]), 1)
        if len(parts) != 3:
            raise ValueError
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except Exception as exc:
        raise ValueError(f"Invalid date string: {value}") from exc


def as_date(value) -> date:
    """Return ``value`` as a plain ``date``.

    Accepts ``date``, ``datetime`` (the time part is dropped) or an ISO string.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_date(value)
    raise ValueError(f"Invalid date value: {value!r}")


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_elapsed(start: date, as_of: date) -> int:
    """Number of monthly due dates after ``start`` that fall strictly before ``as_of``.

    Due dates are ``add_months(start, i)`` for ``i >= 1``. Returns 0 when
    ``as_of`` is on or before the first due date.

    An installment is not counted on its own due date, only from the day
    after. This count is the elapsed-time figure a payment ledger is
    compared against when a schedule sets ``reconciliation_mismatch``.
    """
    months = (as_of.year - start.year) * 12 + (as_of.month - start.month)
    # add_months(start, months) always lands in as_of's month
    if months > 0 and add_months(start, months) >= as_of:
        months -= 1
    return max(0, months)


def float_from_str(value: str) -> float:
    """Convert a numeric string into a ``float``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = value.replace(",", "").strip()
        return float(cleaned)
    except Exception as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
