"""Core calculation engine for the EMI calculator.

This module implements the financial logic for reducing-balance loans: the
fixed monthly installment (EMI), the full amortization schedule with
paid/pending/overdue classification, the outstanding principal after a number
of installments and the effect of a lump-sum prepayment under the
"reduce tenure" and "reduce EMI" strategies.

Every function is pure. Amounts are floats and are never rounded here;
rounding belongs to the formatter and the exporters. The current date is
always passed in as ``as_of`` and never read from the system clock.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from numbers import Integral
from typing import Iterable, List, Optional, Tuple

from .data_models import (
    OVERDUE,
    PAID,
    PENDING,
    REDUCE_EMI,
    REDUCE_TENURE,
    STRATEGIES,
    Affordability,
    AmortizationSchedule,
    LoanProgress,
    LoanTerms,
    PaymentRecord,
    PendingAmounts,
    PrepaymentInput,
    PrepaymentResult,
    SchedulePeriod,
)
from .errors import (
    InvalidPaidPeriods,
    InvalidPrepayment,
    InvalidPrincipal,
    InvalidRate,
    InvalidTenure,
    LoanCalcError,
)
from .utils import add_months, as_date, months_elapsed

logger = logging.getLogger(__name__)

RECONCILIATION_TOLERANCE = 0.05

# Affordability assumptions used when the loan itself is not known yet.
AFFORDABILITY_RATE_PERCENT = 10.0
AFFORDABILITY_TENURE_MONTHS = 240
DEBT_TO_INCOME_RATIO = 0.4
LOW_HEADROOM_EMI = 5000.0

# A prepayment may exceed the outstanding principal by float noise only.
_AMOUNT_TOLERANCE = 1e-6
_PERIOD_EPSILON = 1e-9


def _check_principal(principal: float) -> None:
    if not math.isfinite(principal) or principal <= 0:
        raise InvalidPrincipal(f"Principal must be greater than 0; got {principal}")


def _check_rate(annual_rate_percent: float) -> None:
    if not math.isfinite(annual_rate_percent) or annual_rate_percent < 0:
        raise InvalidRate(f"Interest rate cannot be negative; got {annual_rate_percent}")


def _check_tenure(tenure_months: int) -> None:
    if isinstance(tenure_months, bool) or not isinstance(tenure_months, Integral):
        raise InvalidTenure(f"Tenure must be a whole number of months; got {tenure_months!r}")
    if tenure_months < 1:
        raise InvalidTenure(f"Tenure must be at least 1 month; got {tenure_months}")


def _check_terms(terms: LoanTerms) -> None:
    _check_principal(terms.principal_amount)
    _check_rate(terms.interest_rate_annual_percent)
    _check_tenure(terms.tenure_months)


def compute_emi(principal: float, annual_rate_percent: float, tenure_months: int) -> float:
    """Return the fixed monthly installment of a reducing-balance loan.

    The formula is:

        EMI = P * r * (1 + r)^n / ((1 + r)^n - 1)

    where ``P`` is the principal, ``r`` is the monthly rate
    (``annual_rate_percent / 12 / 100``) and ``n`` is the tenure in months.
    When the rate is zero the installment is exactly ``P / n``.

    Raises
    ------
    InvalidPrincipal, InvalidRate, InvalidTenure
        If the inputs do not describe a loan.
    """
    _check_principal(principal)
    _check_rate(annual_rate_percent)
    _check_tenure(tenure_months)

    rate_per_month = annual_rate_percent / 12 / 100
    if rate_per_month == 0:
        return principal / tenure_months
    factor = (1 + rate_per_month) ** tenure_months
    return principal * rate_per_month * factor / (factor - 1)


def outstanding_principal(
    principal: float, annual_rate_percent: float, tenure_months: int, elapsed_periods: int
) -> float:
    """Return the principal still owed after ``elapsed_periods`` installments.

    Uses the closed form ``P(1+r)^k - EMI((1+r)^k - 1)/r`` (or the straight
    line ``P - P/n*k`` at a zero rate). A fully paid loan owes nothing.
    """
    emi = compute_emi(principal, annual_rate_percent, tenure_months)
    if elapsed_periods >= tenure_months:
        return 0.0
    if elapsed_periods <= 0:
        return float(principal)
    rate_per_month = annual_rate_percent / 12 / 100
    if rate_per_month == 0:
        balance = principal - principal / tenure_months * elapsed_periods
    else:
        growth = (1 + rate_per_month) ** elapsed_periods
        balance = principal * growth - emi * (growth - 1) / rate_per_month
    return max(0.0, balance)


def tenure_for_emi(principal: float, annual_rate_percent: float, emi: float) -> int:
    """Return the number of installments of ``emi`` needed to clear ``principal``.

    The last installment may be smaller than ``emi``.

    Raises
    ------
    InvalidPrepayment
        If ``emi`` does not even cover the first month's interest.
    """
    _check_principal(principal)
    _check_rate(annual_rate_percent)
    if not math.isfinite(emi) or emi <= 0:
        raise InvalidPrepayment(f"EMI must be positive; got {emi}")

    rate_per_month = annual_rate_percent / 12 / 100
    if rate_per_month == 0:
        periods = principal / emi
    else:
        if emi <= principal * rate_per_month:
            raise InvalidPrepayment("EMI amount is insufficient to cover even the interest")
        periods = -math.log(1 - rate_per_month * principal / emi) / math.log(1 + rate_per_month)
    return max(1, math.ceil(periods - _PERIOD_EPSILON))


def _amortize(
    balance: float, rate_per_month: float, emi: float, periods: int
) -> List[Tuple[float, float, float]]:
    """Run the reducing-balance recurrence.

    Returns ``(principal, interest, remaining)`` per period. The final period,
    or any period whose principal would overshoot, takes whatever is left.
    """
    rows: List[Tuple[float, float, float]] = []
    for index in range(1, periods + 1):
        interest = balance * rate_per_month
        principal = emi - interest
        if index == periods or principal > balance:
            principal = balance
        balance -= principal
        rows.append((principal, interest, balance))
    return rows


def _ledger_from_payments(
    payments: Iterable[PaymentRecord], tenure_months: int
) -> dict:
    ledger = {}
    for record in payments:
        if not 1 <= record.period_index <= tenure_months:
            raise InvalidPaidPeriods(
                f"Payment for period {record.period_index} is outside 1..{tenure_months}"
            )
        ledger[record.period_index] = record
    return ledger


def generate_schedule(
    terms: LoanTerms,
    as_of: date,
    paid_periods_override: Optional[int] = None,
    payments: Optional[Iterable[PaymentRecord]] = None,
) -> AmortizationSchedule:
    """Compute the amortization schedule of a loan as seen on ``as_of``.

    Parameters
    ----------
    terms: LoanTerms
        The loan. Installment ``i`` falls due ``i`` months after
        ``terms.start_date``.
    as_of: date
        The date the statuses are evaluated against.
    paid_periods_override: Optional[int]
        Authoritative number of paid installments. Periods ``1..N`` are paid
        and any later period already due is overdue.
    payments: Optional[Iterable[PaymentRecord]]
        Authoritative payment ledger. Takes precedence over
        ``paid_periods_override``.

    Returns
    -------
    AmortizationSchedule
        Exactly ``terms.tenure_months`` periods. Without a ledger, a period is
        paid when its due date is before ``as_of``. With a ledger, the ledger
        decides and ``reconciliation_mismatch`` reports whether it disagrees
        with elapsed time.
    """
    _check_terms(terms)
    as_of = as_date(as_of)
    tenure = terms.tenure_months
    emi = compute_emi(terms.principal_amount, terms.interest_rate_annual_percent, tenure)

    time_elapsed = min(months_elapsed(terms.start_date, as_of), tenure)

    ledger = None
    if payments is not None:
        ledger = _ledger_from_payments(payments, tenure)
    elif paid_periods_override is not None:
        if (
            isinstance(paid_periods_override, bool)
            or not isinstance(paid_periods_override, Integral)
            or not 0 <= paid_periods_override <= tenure
        ):
            raise InvalidPaidPeriods(
                f"Paid periods must be between 0 and {tenure}; got {paid_periods_override!r}"
            )
        ledger = {index: None for index in range(1, paid_periods_override + 1)}

    ledger_paid = len(ledger) if ledger is not None else None
    mismatch = ledger_paid is not None and ledger_paid != time_elapsed
    if mismatch:
        logger.warning(
            "Paid ledger (%d) disagrees with elapsed time (%d) as of %s",
            ledger_paid,
            time_elapsed,
            as_of,
        )

    periods: List[SchedulePeriod] = []
    rows = _amortize(float(terms.principal_amount), terms.monthly_rate, emi, tenure)
    for index, (principal_part, interest_part, remaining) in enumerate(rows, start=1):
        due_date = add_months(terms.start_date, index)
        days_overdue = 0
        amount_paid = None
        if ledger is None:
            status = PAID if due_date < as_of else PENDING
        elif index in ledger:
            status = PAID
            record = ledger[index]
            if record is not None:
                amount_paid = record.amount_paid
        elif due_date < as_of:
            status = OVERDUE
            days_overdue = (as_of - due_date).days
        else:
            status = PENDING

        periods.append(
            SchedulePeriod(
                period_index=index,
                due_date=due_date,
                emi_amount=emi if index < tenure else principal_part + interest_part,
                principal_component=principal_part,
                interest_component=interest_part,
                remaining_principal_after=remaining,
                status=status,
                days_overdue=days_overdue,
                amount_paid=amount_paid,
            )
        )

    logger.debug(
        "Generated %d-period schedule (EMI %.4f) as of %s", len(periods), emi, as_of
    )
    return AmortizationSchedule(
        terms=terms,
        as_of=as_of,
        emi_amount=emi,
        periods=periods,
        time_elapsed_periods=time_elapsed,
        ledger_paid_periods=ledger_paid,
        reconciliation_mismatch=mismatch,
    )


def simulate_prepayment(terms: LoanTerms, prepayment: PrepaymentInput) -> PrepaymentResult:
    """Simulate a lump-sum prepayment made after ``prepayment.elapsed_periods`` installments.

    With ``reduce_tenure`` the EMI stays the same and the loan ends sooner.
    With ``reduce_emi`` the loan keeps its end date and the EMI is recomputed
    on the reduced principal. Interest already paid is the same in both
    scenarios, so the savings are the difference in future interest.

    Raises
    ------
    InvalidPrepayment
        For an unknown strategy, elapsed periods outside ``[0, tenure]``, a
        fully paid loan, a non-positive amount, an amount above the
        outstanding principal or ``paid_amounts`` that do not match the
        elapsed periods.
    """
    _check_terms(terms)
    if prepayment.strategy not in STRATEGIES:
        raise InvalidPrepayment(
            f"Strategy must be one of {', '.join(STRATEGIES)}; got {prepayment.strategy!r}"
        )

    tenure = terms.tenure_months
    elapsed = prepayment.elapsed_periods
    if isinstance(elapsed, bool) or not isinstance(elapsed, Integral) or not 0 <= elapsed <= tenure:
        raise InvalidPrepayment(f"Elapsed periods must be between 0 and {tenure}; got {elapsed!r}")

    amount = prepayment.prepayment_amount
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidPrepayment(f"Prepayment amount must be positive; got {amount}")

    principal = float(terms.principal_amount)
    rate = terms.interest_rate_annual_percent
    rate_per_month = terms.monthly_rate
    emi = compute_emi(principal, rate, tenure)
    outstanding = outstanding_principal(principal, rate, tenure, elapsed)
    if outstanding <= 0:
        raise InvalidPrepayment(f"Loan is fully paid after {elapsed} periods; nothing to prepay")
    if amount > outstanding + _AMOUNT_TOLERANCE:
        raise InvalidPrepayment(
            f"Prepayment {amount:.2f} exceeds outstanding principal {outstanding:.2f}"
        )
    new_balance = max(0.0, outstanding - amount)
    remaining = tenure - elapsed

    original_future_interest = max(0.0, emi * remaining - outstanding)
    if prepayment.paid_amounts is None:
        original_total_interest = emi * tenure - principal
    else:
        if len(prepayment.paid_amounts) != elapsed:
            raise InvalidPrepayment(
                f"Expected {elapsed} paid amounts; got {len(prepayment.paid_amounts)}"
            )
        interest_paid = sum(prepayment.paid_amounts) - (principal - outstanding)
        original_total_interest = interest_paid + original_future_interest

    new_emi: Optional[float] = None
    if prepayment.strategy == REDUCE_TENURE:
        if new_balance > 0:
            new_remaining = tenure_for_emi(new_balance, rate, emi)
            rows = _amortize(new_balance, rate_per_month, emi, new_remaining)
            new_future_interest = sum(interest for _, interest, _ in rows)
        else:
            new_remaining = 0
            new_future_interest = 0.0
        new_tenure = elapsed + new_remaining
    else:
        if new_balance > 0:
            new_emi = compute_emi(new_balance, rate, remaining)
            new_future_interest = max(0.0, new_emi * remaining - new_balance)
        else:
            new_emi = 0.0
            new_future_interest = 0.0
        new_tenure = tenure

    interest_savings = max(0.0, original_future_interest - new_future_interest)
    logger.debug(
        "Prepayment of %.2f at period %d (%s): tenure %d -> %d, savings %.2f",
        amount,
        elapsed,
        prepayment.strategy,
        tenure,
        new_tenure,
        interest_savings,
    )
    return PrepaymentResult(
        strategy=prepayment.strategy,
        elapsed_periods=elapsed,
        original_emi_amount=emi,
        current_outstanding=outstanding,
        outstanding_after_prepayment=new_balance,
        original_total_interest=original_total_interest,
        new_total_interest=original_total_interest - interest_savings,
        interest_savings=interest_savings,
        original_tenure=tenure,
        new_tenure=new_tenure,
        tenure_reduction_months=tenure - new_tenure,
        new_emi_amount=new_emi if prepayment.strategy == REDUCE_EMI else None,
    )


def loan_progress(
    terms: LoanTerms,
    as_of: date,
    recorded_balance: Optional[float] = None,
    tolerance: float = RECONCILIATION_TOLERANCE,
) -> LoanProgress:
    """Report how far a loan has progressed by ``as_of``.

    The theoretical balance assumes every installment due before ``as_of``
    was paid. When ``recorded_balance`` is supplied it is compared against
    the theoretical one: the loan is on track if the recorded balance is at
    most ``theoretical * (1 + tolerance)``.
    """
    _check_terms(terms)
    as_of = as_date(as_of)
    tenure = terms.tenure_months
    months = min(months_elapsed(terms.start_date, as_of), tenure)
    theoretical = outstanding_principal(
        terms.principal_amount, terms.interest_rate_annual_percent, tenure, months
    )

    balance = theoretical if recorded_balance is None else recorded_balance
    progress = (terms.principal_amount - balance) / terms.principal_amount * 100

    is_on_track = None
    discrepancy = None
    if recorded_balance is not None:
        is_on_track = recorded_balance <= theoretical * (1 + tolerance)
        discrepancy = recorded_balance - theoretical
        if not is_on_track:
            logger.warning(
                "Recorded balance %.2f is above theoretical %.2f beyond %.0f%% tolerance",
                recorded_balance,
                theoretical,
                tolerance * 100,
            )

    is_complete = months >= tenure
    return LoanProgress(
        months_elapsed=months,
        completion_percentage=min(months / tenure * 100, 100.0),
        is_complete=is_complete,
        theoretical_balance=theoretical,
        recorded_balance=recorded_balance,
        progress_percentage=progress,
        is_on_track=is_on_track,
        balance_discrepancy=discrepancy,
        next_due_date=None if is_complete else add_months(terms.start_date, months + 1),
    )


def pending_amounts(terms: LoanTerms, elapsed_periods: int) -> PendingAmounts:
    """Return the principal, interest and total still to be paid after ``elapsed_periods``."""
    _check_terms(terms)
    tenure = terms.tenure_months
    if (
        isinstance(elapsed_periods, bool)
        or not isinstance(elapsed_periods, Integral)
        or not 0 <= elapsed_periods <= tenure
    ):
        raise InvalidPaidPeriods(
            f"Elapsed periods must be between 0 and {tenure}; got {elapsed_periods}"
        )
    remaining = tenure - elapsed_periods
    if remaining == 0:
        return PendingAmounts(pending_principal=0.0, pending_interest=0.0, total_pending=0.0)

    emi = compute_emi(terms.principal_amount, terms.interest_rate_annual_percent, tenure)
    principal_left = outstanding_principal(
        terms.principal_amount, terms.interest_rate_annual_percent, tenure, elapsed_periods
    )
    interest_left = max(0.0, emi * remaining - principal_left)
    return PendingAmounts(
        pending_principal=principal_left,
        pending_interest=interest_left,
        total_pending=principal_left + interest_left,
    )


def principal_for_emi(emi: float, annual_rate_percent: float, tenure_months: int) -> float:
    """Inverse of :func:`compute_emi`: the principal an installment of ``emi`` can service."""
    _check_rate(annual_rate_percent)
    _check_tenure(tenure_months)
    if emi <= 0:
        return 0.0
    rate_per_month = annual_rate_percent / 12 / 100
    if rate_per_month == 0:
        return emi * tenure_months
    factor = (1 + rate_per_month) ** tenure_months
    return emi * (factor - 1) / (rate_per_month * factor)


def loan_affordability(
    monthly_income: float,
    existing_emis: float = 0.0,
    debt_to_income_ratio: float = DEBT_TO_INCOME_RATIO,
) -> Affordability:
    """Estimate the largest EMI and loan a monthly income can support.

    The loan amount assumes a 10 % rate over 240 months.
    """
    if not all(math.isfinite(value) for value in (monthly_income, existing_emis, debt_to_income_ratio)):
        raise LoanCalcError("Income, existing EMIs and ratio must be finite numbers")
    if monthly_income < 0 or existing_emis < 0:
        raise LoanCalcError("Income and existing EMIs cannot be negative")
    if not 0 < debt_to_income_ratio <= 1:
        raise LoanCalcError(f"Debt-to-income ratio must be in (0, 1]; got {debt_to_income_ratio}")

    max_emi = monthly_income * debt_to_income_ratio - existing_emis
    if max_emi <= 0:
        recommendation = "over_committed"
    elif max_emi < LOW_HEADROOM_EMI:
        recommendation = "low_headroom"
    else:
        recommendation = "affordable"
    return Affordability(
        max_emi=max(0.0, max_emi),
        max_loan_amount=principal_for_emi(
            max_emi, AFFORDABILITY_RATE_PERCENT, AFFORDABILITY_TENURE_MONTHS
        ),
        recommendation=recommendation,
    )
