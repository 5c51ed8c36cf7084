"""Loan EMI, amortization, prepayment and fixed-deposit maturity calculations."""

from .data_models import (
    AmortizationSchedule,
    FDTerms,
    LoanTerms,
    PaymentRecord,
    PrepaymentInput,
    PrepaymentResult,
    SchedulePeriod,
)
from .engine import compute_emi, generate_schedule, simulate_prepayment
from .errors import (
    InvalidDateRange,
    InvalidPaidPeriods,
    InvalidPrepayment,
    InvalidPrincipal,
    InvalidRate,
    InvalidTenure,
    LoanCalcError,
)
from .fd import compute_maturity_amount
