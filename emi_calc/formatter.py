"""Output helpers for the EMI calculator.

This module renders schedules, prepayment simulations and progress reports as
plain text, turns them into JSON-serialisable dictionaries for exports and the
web adapter, and builds the short recommendation messages shown next to a
simulation. Amounts are rounded to two decimals here and nowhere else.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from .data_models import Affordability, AmortizationSchedule, LoanProgress, PrepaymentResult

CURRENCY_SYMBOL = "₹"

AFFORDABILITY_MESSAGES = {
    "over_committed": "Current EMI commitments exceed recommended debt-to-income ratio",
    "low_headroom": "Consider increasing income or reducing existing EMIs before taking new loan",
    "affordable": "Loan is affordable within recommended limits",
}


def format_currency(amount: float, symbol: str = CURRENCY_SYMBOL) -> str:
    """Format ``amount`` with Indian digit grouping, e.g. ``₹12,34,567.89``."""
    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}{symbol}{whole}.{fraction}"


def prepayment_recommendation(result: PrepaymentResult, prepayment_amount: float) -> str:
    """Return a one-line verdict on a simulated prepayment."""
    if result.interest_savings > prepayment_amount * 0.3:
        return "Excellent prepayment opportunity! High interest savings expected."
    if result.interest_savings > prepayment_amount * 0.15:
        return "Good prepayment option with moderate interest savings."
    if result.tenure_reduction_months > 12:
        return "Prepayment will significantly reduce loan tenure."
    return "Consider if prepayment is the best use of funds compared to other investments."


def schedule_summary(schedule: AmortizationSchedule) -> Dict[str, Any]:
    terms = schedule.terms
    next_due = schedule.next_due_period
    return {
        "principal_amount": round(terms.principal_amount, 2),
        "interest_rate_annual_percent": terms.interest_rate_annual_percent,
        "tenure_months": terms.tenure_months,
        "emi_amount": round(schedule.emi_amount, 2),
        "total_interest": round(schedule.total_interest, 2),
        "total_payment": round(schedule.total_payment, 2),
        "as_of": schedule.as_of.isoformat(),
        "paid": schedule.paid_count,
        "pending": schedule.pending_count,
        "overdue": schedule.overdue_count,
        "time_elapsed_periods": schedule.time_elapsed_periods,
        "ledger_paid_periods": schedule.ledger_paid_periods,
        "reconciliation_mismatch": schedule.reconciliation_mismatch,
        "next_due_date": next_due.due_date.isoformat() if next_due else None,
    }


def schedule_to_dicts(schedule: AmortizationSchedule) -> List[Dict[str, Any]]:
    """Convert schedule periods into JSON-serialisable dictionaries."""
    rows = []
    for p in schedule:
        rows.append(
            {
                "period": p.period_index,
                "due_date": p.due_date.isoformat(),
                "emi": round(p.emi_amount, 2),
                "principal": round(p.principal_component, 2),
                "interest": round(p.interest_component, 2),
                "balance": round(p.remaining_principal_after, 2),
                "status": p.status,
                "days_overdue": p.days_overdue,
                "amount_paid": None if p.amount_paid is None else round(p.amount_paid, 2),
            }
        )
    return rows


def prepayment_to_dict(result: PrepaymentResult, prepayment_amount: float) -> Dict[str, Any]:
    data = {k: round(v, 2) if isinstance(v, float) else v for k, v in asdict(result).items()}
    data["interest_savings_percentage"] = round(result.interest_savings_percentage, 2)
    data["prepayment_percentage"] = round(result.prepayment_percentage, 2)
    data["recommendation"] = prepayment_recommendation(result, prepayment_amount)
    return data


def affordability_to_dict(result: Affordability) -> Dict[str, Any]:
    return {
        "max_emi": round(result.max_emi, 2),
        "max_loan_amount": round(result.max_loan_amount, 2),
        "recommendation": result.recommendation,
        "message": AFFORDABILITY_MESSAGES[result.recommendation],
    }


def progress_to_dict(progress: LoanProgress) -> Dict[str, Any]:
    data = {k: round(v, 2) if isinstance(v, float) else v for k, v in asdict(progress).items()}
    if progress.next_due_date is not None:
        data["next_due_date"] = progress.next_due_date.isoformat()
    return data


def print_summary(schedule: AmortizationSchedule) -> None:
    """Print a summary of loan metrics in a human‑readable format."""
    summary = schedule_summary(schedule)
    print("Summary")
    print("-" * 72)
    print(f"Principal          : {format_currency(summary['principal_amount'])}")
    print(f"Rate (annual)      : {summary['interest_rate_annual_percent']:.2f}%")
    print(f"Tenure             : {summary['tenure_months']} months")
    print(f"EMI                : {format_currency(summary['emi_amount'])}")
    print(f"Total interest     : {format_currency(summary['total_interest'])}")
    print(f"Total payment      : {format_currency(summary['total_payment'])}")
    print(f"Paid / pending     : {summary['paid']} / {summary['pending']}")
    if summary["overdue"]:
        print(f"Overdue            : {summary['overdue']}")
    if summary["next_due_date"]:
        print(f"Next due           : {summary['next_due_date']}")
    if summary["reconciliation_mismatch"]:
        print(
            f"Ledger mismatch    : {summary['ledger_paid_periods']} paid on record, "
            f"{summary['time_elapsed_periods']} due by {summary['as_of']}"
        )
    print("-" * 72)


def print_schedule(schedule: AmortizationSchedule) -> None:
    """Print the amortization schedule as a simple table."""
    headers = ["Period", "Due", "EMI", "Principal", "Interest", "Balance", "Status"]
    print("\t".join(headers))
    for row in schedule_to_dicts(schedule):
        status = row["status"]
        if row["days_overdue"]:
            status = f"{status} ({row['days_overdue']}d)"
        print(
            "\t".join(
                [
                    str(row["period"]),
                    row["due_date"],
                    f"{row['emi']:.2f}",
                    f"{row['principal']:.2f}",
                    f"{row['interest']:.2f}",
                    f"{row['balance']:.2f}",
                    status,
                ]
            )
        )


def print_prepayment(result: PrepaymentResult, prepayment_amount: float) -> None:
    """Print the outcome of a prepayment simulation."""
    print("Prepayment simulation")
    print("=" * 72)
    print(f"Outstanding now    : {format_currency(result.current_outstanding)}")
    print(f"After prepayment   : {format_currency(result.outstanding_after_prepayment)}")
    print(f"Original interest  : {format_currency(result.original_total_interest)}")
    print(f"New interest       : {format_currency(result.new_total_interest)}")
    print(
        f"Interest saved     : {format_currency(result.interest_savings)} "
        f"({result.interest_savings_percentage:.2f}%)"
    )
    print(f"Tenure             : {result.original_tenure} -> {result.new_tenure} months")
    if result.new_emi_amount is not None:
        print(
            f"EMI                : {format_currency(result.original_emi_amount)} -> "
            f"{format_currency(result.new_emi_amount)}"
        )
    print(prepayment_recommendation(result, prepayment_amount))
    print("=" * 72)


def print_progress(progress: LoanProgress) -> None:
    print("Loan progress")
    print("-" * 72)
    print(f"Installments due   : {progress.months_elapsed} ({progress.completion_percentage:.2f}%)")
    print(f"Theoretical balance: {format_currency(progress.theoretical_balance)}")
    if progress.recorded_balance is not None:
        print(f"Recorded balance   : {format_currency(progress.recorded_balance)}")
        print(f"On track           : {'Yes' if progress.is_on_track else 'No'}")
    print(f"Principal repaid   : {progress.progress_percentage:.2f}%")
    if progress.next_due_date:
        print(f"Next due           : {progress.next_due_date.isoformat()}")
    print("-" * 72)


def print_affordability(result: Affordability) -> None:
    print(f"Maximum EMI        : {format_currency(result.max_emi)}")
    print(f"Maximum loan       : {format_currency(result.max_loan_amount)}")
    print(AFFORDABILITY_MESSAGES[result.recommendation])
