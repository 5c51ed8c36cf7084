"""Command‑line interface for the EMI calculator.

This module uses the ``click`` library to implement a multi‑command interface.
Users can compute an EMI, print or export the full amortization schedule,
simulate a prepayment, check a loan's progress against its recorded balance
value a fixed deposit and estimate how much a monthly income can borrow.
Schedules can be exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

import click

from .data_models import STRATEGIES, FDTerms, LoanTerms, PrepaymentInput
from .engine import (
    DEBT_TO_INCOME_RATIO,
    compute_emi,
    generate_schedule,
    loan_affordability,
    loan_progress,
    simulate_prepayment,
)
from .errors import LoanCalcError
from .fd import approaching_maturity, matured_fds, maturity_for
from .formatter import (
    format_currency,
    print_affordability,
    print_prepayment,
    print_progress,
    prepayment_to_dict,
    print_schedule,
    print_summary,
    schedule_summary,
    schedule_to_dicts,
)
from .utils import float_from_str, parse_date

_SUFFIXES = (
    ("lakh", 100_000.0),
    ("cr", 10_000_000.0),
    ("k", 1_000.0),
    ("l", 100_000.0),
    ("m", 1_000_000.0),
)


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain floats ("500000"), comma grouping ("5,00,000") and
    shorthand with ``k``, ``l``/``lakh``, ``m`` and ``cr`` suffixes (e.g.,
    "5l" meaning 500_000). Returns a float.
    """
    value = value.strip().lower()
    factor = 1.0
    for suffix, multiplier in _SUFFIXES:
        if value.endswith(suffix):
            factor = multiplier
            value = value[: -len(suffix)]
            break
    try:
        return float_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_date_option(value: Optional[str], default: Optional[date] = None) -> date:
    if not value:
        if default is None:
            raise click.BadParameter("A date is required")
        return default
    try:
        return parse_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def build_terms_from_options(principal: str, rate: float, term: int, start_date: str) -> LoanTerms:
    return LoanTerms(
        principal_amount=parse_amount(principal),
        interest_rate_annual_percent=rate,
        tenure_months=term,
        start_date=parse_date_option(start_date),
    )


def export_to_json(path: Path, schedule) -> None:
    """Export schedule and summary to a JSON file."""
    data = {"summary": schedule_summary(schedule), "schedule": schedule_to_dicts(schedule)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule) -> None:
    """Export schedule to a CSV file."""
    header = ["Period", "Due_Date", "EMI", "Principal", "Interest", "Balance", "Status", "Days_Overdue", "Amount_Paid"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in schedule_to_dicts(schedule):
            writer.writerow(
                [
                    row["period"],
                    row["due_date"],
                    row["emi"],
                    row["principal"],
                    row["interest"],
                    row["balance"],
                    row["status"],
                    row["days_overdue"],
                    "" if row["amount_paid"] is None else row["amount_paid"],
                ]
            )


def loan_options(func):
    """Attach the options shared by every loan command."""
    func = click.option("--start-date", "-s", "start_date", required=True, help="Loan start date (YYYY-MM-DD)")(func)
    func = click.option("--term", "-t", "term", required=True, type=int, help="Loan tenure in months")(func)
    func = click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")(func)
    func = click.option("--principal", "-p", "principal", required=True, help="Loan amount")(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log calculation details to stderr")
def cli(verbose: bool) -> None:
    """An EMI, amortization and prepayment calculator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Loan amount")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
@click.option("--term", "-t", "term", required=True, type=int, help="Loan tenure in months")
def emi(principal: str, rate: float, term: int) -> None:
    """Print the monthly installment for a loan."""
    try:
        amount = compute_emi(parse_amount(principal), rate, term)
    except LoanCalcError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"EMI: {format_currency(amount)}")


@cli.command()
@loan_options
@click.option("--as-of", "as_of", help="Evaluate statuses as of this date (YYYY-MM-DD, default today)")
@click.option("--paid", "paid", type=int, help="Number of installments paid according to the ledger")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: float,
    term: int,
    start_date: str,
    as_of: Optional[str],
    paid: Optional[int],
    output: Optional[str],
) -> None:
    """Compute and print the full amortization schedule."""
    terms = build_terms_from_options(principal, rate, term, start_date)
    as_of_date = parse_date_option(as_of, date.today())
    try:
        result = generate_schedule(terms, as_of_date, paid_periods_override=paid)
    except LoanCalcError as exc:
        raise click.ClickException(str(exc))
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
    else:
        print_summary(result)
        print_schedule(result)


@cli.command()
@loan_options
@click.option("--elapsed", "elapsed", required=True, type=int, help="Installments already paid")
@click.option("--amount", "amount", required=True, help="Prepayment amount")
@click.option(
    "--strategy",
    "strategy",
    type=click.Choice(STRATEGIES),
    default=STRATEGIES[0],
    help="Keep the EMI and shorten the loan, or keep the tenure and lower the EMI",
)
@click.option("--output", "output", type=str, help="Output file path (.json)")
def prepay(
    principal: str,
    rate: float,
    term: int,
    start_date: str,
    elapsed: int,
    amount: str,
    strategy: str,
    output: Optional[str],
) -> None:
    """Simulate a lump-sum prepayment."""
    terms = build_terms_from_options(principal, rate, term, start_date)
    prepayment_amount = parse_amount(amount)
    try:
        result = simulate_prepayment(
            terms,
            PrepaymentInput(elapsed_periods=elapsed, prepayment_amount=prepayment_amount, strategy=strategy),
        )
    except LoanCalcError as exc:
        raise click.ClickException(str(exc))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Simulation export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump(prepayment_to_dict(result, prepayment_amount), f, indent=2)
        click.echo(f"Simulation exported to {path}")
    else:
        print_prepayment(result, prepayment_amount)


@cli.command()
@loan_options
@click.option("--as-of", "as_of", help="Evaluate progress as of this date (YYYY-MM-DD, default today)")
@click.option("--balance", "balance", help="Balance currently on record for the loan")
def progress(
    principal: str,
    rate: float,
    term: int,
    start_date: str,
    as_of: Optional[str],
    balance: Optional[str],
) -> None:
    """Compare a loan's recorded balance with where it should be."""
    terms = build_terms_from_options(principal, rate, term, start_date)
    as_of_date = parse_date_option(as_of, date.today())
    recorded = parse_amount(balance) if balance else None
    try:
        report = loan_progress(terms, as_of_date, recorded_balance=recorded)
    except LoanCalcError as exc:
        raise click.ClickException(str(exc))
    print_progress(report)


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Deposit amount")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
@click.option("--start", "start", required=True, help="Deposit start date (YYYY-MM-DD)")
@click.option("--end", "end", required=True, help="Maturity date (YYYY-MM-DD)")
@click.option("--as-of", "as_of", help="Report time to maturity as of this date (YYYY-MM-DD)")
def fd(principal: str, rate: float, start: str, end: str, as_of: Optional[str]) -> None:
    """Print the maturity value of a fixed deposit."""
    deposit = FDTerms(
        principal_amount=parse_amount(principal),
        annual_rate_percent=rate,
        start_date=parse_date_option(start),
        end_date=parse_date_option(end),
    )
    try:
        result = maturity_for(deposit)
    except LoanCalcError as exc:
        raise click.ClickException(str(exc))
    if result.date_range_error:
        click.echo("Warning: maturity date is before the start date; treating duration as zero", err=True)
    click.echo(f"Years held: {result.years:.4f}")
    click.echo(f"Maturity amount: {format_currency(result.amount)}")
    if as_of:
        as_of_date = parse_date_option(as_of)
        matured = matured_fds([deposit], as_of_date)
        if matured:
            click.echo(f"Matured {matured[0].days} days ago")
        else:
            days_left = (deposit.end_date - as_of_date).days
            soon = " (maturing soon)" if approaching_maturity([deposit], as_of_date) else ""
            click.echo(f"Matures in {days_left} days{soon}")


@cli.command()
@click.option("--income", "income", required=True, help="Monthly income")
@click.option("--existing", "existing", default="0", help="EMIs already being paid each month")
@click.option(
    "--ratio",
    "ratio",
    type=float,
    default=DEBT_TO_INCOME_RATIO,
    show_default=True,
    help="Share of income that may go to EMIs",
)
def afford(income: str, existing: str, ratio: float) -> None:
    """Estimate the largest EMI and loan an income can support."""
    try:
        result = loan_affordability(parse_amount(income), parse_amount(existing), ratio)
    except LoanCalcError as exc:
        raise click.ClickException(str(exc))
    print_affordability(result)


if __name__ == "__main__":
    cli()
