"""Exceptions raised by the EMI calculator.

Every error derives from :class:`LoanCalcError`, which is itself a
``ValueError`` so callers that only care about "bad input" can keep catching
``ValueError``.
"""


class LoanCalcError(ValueError):
    """Base class for invalid loan or deposit inputs."""


class InvalidPrincipal(LoanCalcError):
    """Raised when the principal is zero or negative."""


class InvalidRate(LoanCalcError):
    """Raised when the annual interest rate is negative."""


class InvalidTenure(LoanCalcError):
    """Raised when the tenure is not a positive whole number of months."""


class InvalidPaidPeriods(LoanCalcError):
    """Raised when a paid-period count or payment ledger does not fit the loan."""


class InvalidPrepayment(LoanCalcError):
    """Raised for a prepayment that cannot be applied to the loan.

    This covers non-positive amounts, amounts above the outstanding principal,
    elapsed periods outside ``[0, tenure]`` and unknown strategies.
    """


class InvalidDateRange(LoanCalcError):
    """Raised when a date window is malformed."""
