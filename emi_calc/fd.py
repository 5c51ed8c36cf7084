"""Fixed-deposit maturity calculations.

Maturity is compounded annually over the exact elapsed time:

    maturity = P * (1 + rate / 100) ^ (days / 365.25)

A deposit whose end date precedes its start date is treated as having no
duration. It is logged and flagged on the result instead of raised.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Iterable, List

from .data_models import FDTerms, FDWatchItem, MaturityResult
from .errors import InvalidDateRange, InvalidPrincipal, InvalidRate
from .utils import as_date

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.25
APPROACHING_MATURITY_DAYS = 45


def _maturity(principal: float, annual_rate_percent: float, start_date, end_date) -> MaturityResult:
    if not math.isfinite(principal) or principal <= 0:
        raise InvalidPrincipal(f"Deposit amount must be greater than 0; got {principal}")
    if not math.isfinite(annual_rate_percent) or annual_rate_percent < 0:
        raise InvalidRate(f"Deposit rate cannot be negative; got {annual_rate_percent}")

    start = as_date(start_date)
    end = as_date(end_date)
    days = (end - start).days
    range_error = days < 0
    if range_error:
        logger.warning("Deposit ends (%s) before it starts (%s); using zero duration", end, start)
        days = 0
    years = days / DAYS_PER_YEAR
    amount = principal * (1 + annual_rate_percent / 100) ** years
    return MaturityResult(amount=amount, years=years, date_range_error=range_error)


def compute_maturity_amount(
    principal: float, annual_rate_percent: float, start_date: date, end_date: date
) -> float:
    """Return the maturity value of a deposit held from ``start_date`` to ``end_date``."""
    return _maturity(principal, annual_rate_percent, start_date, end_date).amount


def maturity_for(fd: FDTerms) -> MaturityResult:
    """Return the maturity value of ``fd`` along with its duration in years."""
    return _maturity(fd.principal_amount, fd.annual_rate_percent, fd.start_date, fd.end_date)


def matured_fds(fds: Iterable[FDTerms], as_of: date) -> List[FDWatchItem]:
    """Deposits whose end date is on or before ``as_of``, most overdue first.

    ``days`` is the number of days since maturity.
    """
    as_of = as_date(as_of)
    items = [
        FDWatchItem(fd=fd, days=(as_of - as_date(fd.end_date)).days, maturity=maturity_for(fd))
        for fd in fds
        if as_date(fd.end_date) <= as_of
    ]
    return sorted(items, key=lambda item: item.days, reverse=True)


def approaching_maturity(
    fds: Iterable[FDTerms], as_of: date, days_ahead: int = APPROACHING_MATURITY_DAYS
) -> List[FDWatchItem]:
    """Deposits maturing after ``as_of`` but within ``days_ahead`` days, soonest first.

    ``days`` is the number of days left until maturity.
    """
    if days_ahead < 0:
        raise InvalidDateRange(f"days_ahead cannot be negative; got {days_ahead}")
    as_of = as_date(as_of)
    items = []
    for fd in fds:
        days_left = (as_date(fd.end_date) - as_of).days
        if 0 < days_left <= days_ahead:
            items.append(FDWatchItem(fd=fd, days=days_left, maturity=maturity_for(fd)))
    return sorted(items, key=lambda item: item.days)
