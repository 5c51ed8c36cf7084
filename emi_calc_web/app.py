import logging
import math
import os
from datetime import date

from flask import Flask, jsonify, request

from emi_calc.data_models import REDUCE_TENURE, FDTerms, LoanTerms, PrepaymentInput
from emi_calc.engine import (
    DEBT_TO_INCOME_RATIO,
    RECONCILIATION_TOLERANCE,
    compute_emi,
    generate_schedule,
    loan_affordability,
    loan_progress,
    simulate_prepayment,
)
from emi_calc.errors import LoanCalcError
from emi_calc.fd import maturity_for
from emi_calc.formatter import (
    affordability_to_dict,
    format_currency,
    prepayment_to_dict,
    progress_to_dict,
    schedule_summary,
    schedule_to_dicts,
)
from emi_calc.utils import as_date

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["RECONCILIATION_TOLERANCE"] = float(
    os.environ.get("EMI_CALC_RECONCILIATION_TOLERANCE", RECONCILIATION_TOLERANCE)
)
app.config["CURRENCY_SYMBOL"] = os.environ.get("EMI_CALC_CURRENCY_SYMBOL", "₹")
logging.basicConfig(level=os.environ.get("EMI_CALC_LOG_LEVEL", "WARNING").upper())


class PayloadError(ValueError):
    """Raised for a payload that is missing fields or has the wrong types."""


def _payload() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise PayloadError("Request body must be a JSON object")
    return data


def _field(data: dict, name: str, cast, default=None):
    value = data.get(name, default)
    if value is None:
        raise PayloadError(f"Missing required field: {name}")
    try:
        return cast(value)
    except (TypeError, ValueError) as exc:
        raise PayloadError(f"Invalid value for {name}: {value!r}") from exc


def _whole_number(value) -> int:
    number = float(value)
    if isinstance(value, bool) or not math.isfinite(number) or number != int(number):
        raise ValueError(value)
    return int(number)


def _terms_from_payload(data: dict) -> LoanTerms:
    def optional_amount(name):
        return _field(data, name, float) if data.get(name) is not None else None

    return LoanTerms(
        principal_amount=_field(data, "principal_amount", float),
        interest_rate_annual_percent=_field(data, "interest_rate", float, 0),
        tenure_months=_field(data, "tenure_months", _whole_number),
        start_date=_field(data, "start_date", as_date, date.today().isoformat()),
        processing_fee=optional_amount("processing_fee"),
        insurance=optional_amount("insurance"),
        prepayment_charges=optional_amount("prepayment_charges"),
    )


def _as_of(data: dict) -> date:
    return _field(data, "as_of", as_date, date.today().isoformat())


@app.errorhandler(LoanCalcError)
def handle_calc_error(exc):
    logger.info("Rejected %s: %s", request.path, exc)
    return jsonify({"error": str(exc), "kind": type(exc).__name__}), 400


@app.errorhandler(PayloadError)
def handle_bad_request(exc):
    return jsonify({"error": str(exc)}), 400


@app.route("/api/emi", methods=["POST"])
def emi():
    data = _payload()
    terms = _terms_from_payload(data)
    amount = compute_emi(terms.principal_amount, terms.interest_rate_annual_percent, terms.tenure_months)
    return jsonify(
        {
            "emi_amount": round(amount, 2),
            "formatted": format_currency(amount, app.config["CURRENCY_SYMBOL"]),
            "total_interest": round(amount * terms.tenure_months - terms.principal_amount, 2),
        }
    )


@app.route("/api/schedule", methods=["POST"])
def schedule():
    data = _payload()
    terms = _terms_from_payload(data)
    paid = data.get("paid_periods")
    result = generate_schedule(
        terms,
        _as_of(data),
        paid_periods_override=_field(data, "paid_periods", _whole_number) if paid is not None else None,
    )
    return jsonify({"summary": schedule_summary(result), "schedule": schedule_to_dicts(result)})


@app.route("/api/loans/prepayment-simulator", methods=["POST"])
def prepayment_simulator():
    data = _payload()
    terms = _terms_from_payload(data)
    amount = _field(data, "prepayment_amount", float)
    prepayment = PrepaymentInput(
        elapsed_periods=_field(data, "elapsed_periods", _whole_number, 0),
        prepayment_amount=amount,
        strategy=data.get("strategy", REDUCE_TENURE),
    )
    result = simulate_prepayment(terms, prepayment)
    return jsonify(prepayment_to_dict(result, amount))


@app.route("/api/loans/progress", methods=["POST"])
def progress():
    data = _payload()
    terms = _terms_from_payload(data)
    recorded = data.get("current_balance")
    report = loan_progress(
        terms,
        _as_of(data),
        recorded_balance=_field(data, "current_balance", float) if recorded is not None else None,
        tolerance=app.config["RECONCILIATION_TOLERANCE"],
    )
    return jsonify(progress_to_dict(report))


@app.route("/api/loans/affordability", methods=["POST"])
def affordability():
    data = _payload()
    result = loan_affordability(
        _field(data, "monthly_income", float),
        _field(data, "existing_emis", float, 0),
        _field(data, "debt_to_income_ratio", float, DEBT_TO_INCOME_RATIO),
    )
    return jsonify(affordability_to_dict(result))


@app.route("/api/fds/maturity", methods=["POST"])
def fd_maturity():
    data = _payload()
    deposit = FDTerms(
        principal_amount=_field(data, "amount", float),
        annual_rate_percent=_field(data, "rate", float),
        start_date=_field(data, "start_date", as_date),
        end_date=_field(data, "end_date", as_date),
    )
    result = maturity_for(deposit)
    return jsonify(
        {
            "maturity_amount": round(result.amount, 2),
            "years": round(result.years, 4),
            "date_range_error": result.date_range_error,
        }
    )


if __name__ == "__main__":
    print("Starting EMI calculator API...")
    app.run(port=int(os.environ.get("PORT", 8710)))
