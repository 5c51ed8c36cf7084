"""Data models for the EMI calculator.

This module defines dataclasses representing the entities used by the
calculator: loan terms, individual schedule periods, the schedule as a whole,
prepayment requests and their results, loan progress snapshots and fixed
deposits. All of them are plain frozen values; the application that owns the
loans is responsible for storing them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, List, Optional, Sequence

PAID = "paid"
PENDING = "pending"
OVERDUE = "overdue"

REDUCE_TENURE = "reduce_tenure"
REDUCE_EMI = "reduce_emi"
STRATEGIES = (REDUCE_TENURE, REDUCE_EMI)


@dataclass(frozen=True)
class LoanTerms:
    """Terms of a reducing-balance loan.

    Attributes
    ----------
    principal_amount: float
        The amount borrowed.
    interest_rate_annual_percent: float
        Nominal annual interest rate in percent (``8.5`` means 8.5 %).
    tenure_months: int
        Number of monthly installments.
    start_date: date
        Date the loan was taken. The first installment falls due one month
        later.
    processing_fee, insurance, prepayment_charges: Optional[float]
        Pass-through figures kept for the surrounding application. The
        calculations never read them.
    """

    principal_amount: float
    interest_rate_annual_percent: float
    tenure_months: int
    start_date: date
    processing_fee: Optional[float] = None
    insurance: Optional[float] = None
    prepayment_charges: Optional[float] = None

    @property
    def monthly_rate(self) -> float:
        return self.interest_rate_annual_percent / 12 / 100


@dataclass(frozen=True)
class PaymentRecord:
    """A recorded installment payment from the loan's payment ledger."""

    period_index: int
    paid_date: Optional[date] = None
    amount_paid: Optional[float] = None


@dataclass(frozen=True)
class SchedulePeriod:
    """One month of an amortization schedule.

    ``principal_component + interest_component`` equals ``emi_amount``. The
    final period absorbs any rounding residue so that
    ``remaining_principal_after`` ends at zero.
    """

    period_index: int
    due_date: date
    emi_amount: float
    principal_component: float
    interest_component: float
    remaining_principal_after: float
    status: str  # "paid", "pending" or "overdue"
    days_overdue: int = 0
    amount_paid: Optional[float] = None


@dataclass(frozen=True)
class AmortizationSchedule:
    """A full amortization schedule generated for a given "as of" date.

    ``time_elapsed_periods`` is the number of installments that fell due
    before ``as_of``. ``ledger_paid_periods`` is the paid count supplied by the
    caller (``None`` when the schedule was built from elapsed time only).
    When both exist and disagree, ``reconciliation_mismatch`` is set; the
    ledger figure is the one reflected in the period statuses.
    """

    terms: LoanTerms
    as_of: date
    emi_amount: float
    periods: List[SchedulePeriod]
    time_elapsed_periods: int
    ledger_paid_periods: Optional[int] = None
    reconciliation_mismatch: bool = False

    def __iter__(self) -> Iterator[SchedulePeriod]:
        return iter(self.periods)

    def __len__(self) -> int:
        return len(self.periods)

    def __getitem__(self, index):
        return self.periods[index]

    @property
    def total_interest(self) -> float:
        return sum(p.interest_component for p in self.periods)

    @property
    def total_payment(self) -> float:
        return sum(p.emi_amount for p in self.periods)

    @property
    def paid_count(self) -> int:
        return sum(1 for p in self.periods if p.status == PAID)

    @property
    def pending_count(self) -> int:
        return sum(1 for p in self.periods if p.status == PENDING)

    @property
    def overdue_count(self) -> int:
        return sum(1 for p in self.periods if p.status == OVERDUE)

    @property
    def next_due_period(self) -> Optional[SchedulePeriod]:
        """The earliest period that has not been paid, if any."""
        for p in self.periods:
            if p.status != PAID:
                return p
        return None


@dataclass(frozen=True)
class PrepaymentInput:
    """A lump-sum prepayment request.

    Attributes
    ----------
    elapsed_periods: int
        Installments already paid when the prepayment is made.
    prepayment_amount: float
        Amount applied directly to the principal.
    strategy: str
        ``"reduce_tenure"`` keeps the EMI and shortens the loan.
        ``"reduce_emi"`` keeps the remaining tenure and lowers the EMI.
    paid_amounts: Optional[Sequence[float]]
        Actual amounts paid for each elapsed installment, when known.
    """

    elapsed_periods: int
    prepayment_amount: float
    strategy: str = REDUCE_TENURE
    paid_amounts: Optional[Sequence[float]] = None


@dataclass(frozen=True)
class PrepaymentResult:
    """Outcome of a prepayment simulation.

    ``new_emi_amount`` is only set for the ``reduce_emi`` strategy.
    """

    strategy: str
    elapsed_periods: int
    original_emi_amount: float
    current_outstanding: float
    outstanding_after_prepayment: float
    original_total_interest: float
    new_total_interest: float
    interest_savings: float
    original_tenure: int
    new_tenure: int
    tenure_reduction_months: int
    new_emi_amount: Optional[float] = None

    @property
    def interest_savings_percentage(self) -> float:
        if self.original_total_interest <= 0:
            return 0.0
        return self.interest_savings / self.original_total_interest * 100

    @property
    def prepayment_percentage(self) -> float:
        """Prepayment as a percentage of the outstanding principal."""
        if self.current_outstanding <= 0:
            return 0.0
        prepayment = self.current_outstanding - self.outstanding_after_prepayment
        return prepayment / self.current_outstanding * 100


@dataclass(frozen=True)
class LoanProgress:
    """Where a loan stands on a given date.

    The theoretical balance comes from elapsed time; the recorded balance is
    whatever the application has stored. Both are reported, together with
    ``is_on_track``, and neither replaces the other.
    """

    months_elapsed: int
    completion_percentage: float
    is_complete: bool
    theoretical_balance: float
    recorded_balance: Optional[float]
    progress_percentage: float
    is_on_track: Optional[bool]
    balance_discrepancy: Optional[float]
    next_due_date: Optional[date]


@dataclass(frozen=True)
class PendingAmounts:
    pending_principal: float
    pending_interest: float
    total_pending: float


@dataclass(frozen=True)
class Affordability:
    max_emi: float
    max_loan_amount: float
    recommendation: str  # "over_committed", "low_headroom" or "affordable"


@dataclass(frozen=True)
class FDTerms:
    """A fixed deposit."""

    principal_amount: float
    annual_rate_percent: float
    start_date: date
    end_date: date
    label: Optional[str] = None


@dataclass(frozen=True)
class MaturityResult:
    """Maturity value of a fixed deposit.

    ``date_range_error`` is set when the deposit ends before it starts; the
    amount is then the principal itself.
    """

    amount: float
    years: float
    date_range_error: bool = False


@dataclass(frozen=True)
class FDWatchItem:
    """A deposit together with its distance in days from maturity."""

    fd: FDTerms
    days: int
    maturity: Optional[MaturityResult] = field(default=None, compare=False)
