"""
Tests for the prepayment simulator.
"""

import unittest
from datetime import date

from emi_calc.data_models import REDUCE_EMI, REDUCE_TENURE, LoanTerms, PrepaymentInput
from emi_calc.engine import compute_emi, outstanding_principal, simulate_prepayment
from emi_calc.errors import InvalidPrepayment

LOAN = LoanTerms(
    principal_amount=1000000,
    interest_rate_annual_percent=9,
    tenure_months=120,
    start_date=date(2020, 1, 1),
)


class ReduceTenureTests(unittest.TestCase):

    def setUp(self):
        self.result = simulate_prepayment(
            LOAN, PrepaymentInput(elapsed_periods=24, prepayment_amount=100000, strategy=REDUCE_TENURE)
        )

    def test_shorter_loan_and_savings(self):
        self.assertLess(self.result.new_tenure, 120)
        self.assertGreater(self.result.interest_savings, 0)
        self.assertEqual(self.result.tenure_reduction_months, 120 - self.result.new_tenure)

    def test_keeps_emi(self):
        self.assertIsNone(self.result.new_emi_amount)
        self.assertEqual(self.result.original_emi_amount, compute_emi(1000000, 9, 120))

    def test_new_tenure_is_smallest_that_clears_balance(self):
        emi = self.result.original_emi_amount
        remaining = self.result.new_tenure - 24
        clears = outstanding_after(self.result.outstanding_after_prepayment, 0.0075, emi, remaining)
        short = outstanding_after(self.result.outstanding_after_prepayment, 0.0075, emi, remaining - 1)
        self.assertLessEqual(clears, 1e-6)
        self.assertGreater(short, 0)

    def test_interest_totals(self):
        emi = self.result.original_emi_amount
        self.assertAlmostEqual(self.result.original_total_interest, emi * 120 - 1000000, places=6)
        self.assertAlmostEqual(
            self.result.interest_savings,
            self.result.original_total_interest - self.result.new_total_interest,
            places=6,
        )

    def test_outstanding_figures(self):
        outstanding = outstanding_principal(1000000, 9, 120, 24)
        self.assertAlmostEqual(self.result.current_outstanding, outstanding, places=6)
        self.assertAlmostEqual(self.result.outstanding_after_prepayment, outstanding - 100000, places=6)
        self.assertAlmostEqual(
            self.result.prepayment_percentage, 100000 / outstanding * 100, places=6
        )
        self.assertTrue(0 < self.result.interest_savings_percentage < 100)


class ReduceEMITests(unittest.TestCase):

    def setUp(self):
        self.result = simulate_prepayment(
            LOAN, PrepaymentInput(elapsed_periods=24, prepayment_amount=100000, strategy=REDUCE_EMI)
        )

    def test_lower_emi_same_tenure(self):
        self.assertEqual(self.result.new_tenure, 120)
        self.assertEqual(self.result.tenure_reduction_months, 0)
        self.assertLess(self.result.new_emi_amount, self.result.original_emi_amount)
        self.assertGreater(self.result.interest_savings, 0)

    def test_new_emi_reamortizes_remaining_balance(self):
        expected = compute_emi(self.result.outstanding_after_prepayment, 9, 96)
        self.assertAlmostEqual(self.result.new_emi_amount, expected, places=6)

    def test_reduce_tenure_saves_more(self):
        tenure = simulate_prepayment(
            LOAN, PrepaymentInput(elapsed_periods=24, prepayment_amount=100000, strategy=REDUCE_TENURE)
        )
        self.assertGreater(tenure.interest_savings, self.result.interest_savings)


class PrepaymentInvariantTests(unittest.TestCase):
    """Savings never go negative and neither strategy makes the loan worse."""

    def test_grid(self):
        loans = [
            LOAN,
            LoanTerms(500000, 8.5, 240, date(2018, 7, 10)),
            LoanTerms(60000, 0, 24, date(2023, 1, 1)),
            LoanTerms(250000, 15.5, 36, date(2022, 1, 31)),
        ]
        for terms in loans:
            emi = compute_emi(terms.principal_amount, terms.interest_rate_annual_percent, terms.tenure_months)
            for elapsed in (0, 1, terms.tenure_months // 2, terms.tenure_months - 1):
                outstanding = outstanding_principal(
                    terms.principal_amount,
                    terms.interest_rate_annual_percent,
                    terms.tenure_months,
                    elapsed,
                )
                for share in (0.01, 0.25, 0.5, 1.0):
                    amount = outstanding * share
                    for strategy in (REDUCE_TENURE, REDUCE_EMI):
                        result = simulate_prepayment(
                            terms, PrepaymentInput(elapsed, amount, strategy)
                        )
                        self.assertGreaterEqual(result.interest_savings, 0)
                        self.assertLessEqual(result.new_tenure, terms.tenure_months)
                        self.assertGreaterEqual(result.new_tenure, elapsed)
                        if strategy == REDUCE_EMI:
                            self.assertLessEqual(result.new_emi_amount, emi + 1e-9)

    def test_zero_rate(self):
        terms = LoanTerms(120000, 0, 12, date(2024, 1, 1))
        result = simulate_prepayment(terms, PrepaymentInput(2, 20000, REDUCE_TENURE))
        self.assertEqual(result.current_outstanding, 100000)
        self.assertEqual(result.new_tenure, 10)
        self.assertEqual(result.interest_savings, 0)
        self.assertEqual(result.original_total_interest, 0)

    def test_prepaying_everything(self):
        outstanding = outstanding_principal(1000000, 9, 120, 24)
        tenure = simulate_prepayment(LOAN, PrepaymentInput(24, outstanding, REDUCE_TENURE))
        self.assertEqual(tenure.new_tenure, 24)
        self.assertEqual(tenure.outstanding_after_prepayment, 0.0)
        emi = simulate_prepayment(LOAN, PrepaymentInput(24, outstanding, REDUCE_EMI))
        self.assertEqual(emi.new_emi_amount, 0.0)
        self.assertAlmostEqual(tenure.interest_savings, emi.interest_savings, places=4)

    def test_paid_amounts_matching_emi_change_nothing(self):
        emi = compute_emi(1000000, 9, 120)
        plain = simulate_prepayment(LOAN, PrepaymentInput(24, 100000, REDUCE_TENURE))
        ledger = simulate_prepayment(
            LOAN, PrepaymentInput(24, 100000, REDUCE_TENURE, paid_amounts=[emi] * 24)
        )
        self.assertAlmostEqual(plain.original_total_interest, ledger.original_total_interest, places=4)
        self.assertAlmostEqual(plain.new_total_interest, ledger.new_total_interest, places=4)

    def test_paid_amounts_with_extra_paid(self):
        emi = compute_emi(1000000, 9, 120)
        plain = simulate_prepayment(LOAN, PrepaymentInput(24, 100000, REDUCE_EMI))
        ledger = simulate_prepayment(
            LOAN, PrepaymentInput(24, 100000, REDUCE_EMI, paid_amounts=[emi + 100] * 24)
        )
        self.assertAlmostEqual(ledger.original_total_interest, plain.original_total_interest + 2400, places=4)
        self.assertAlmostEqual(ledger.interest_savings, plain.interest_savings, places=6)


class InvalidPrepaymentTests(unittest.TestCase):

    def test_fully_paid_loan(self):
        self.assertEqual(outstanding_principal(1000000, 9, 120, 120), 0.0)
        with self.assertRaises(InvalidPrepayment):
            simulate_prepayment(LOAN, PrepaymentInput(120, 1, REDUCE_TENURE))

    def test_tiny_amount_on_paid_off_loan(self):
        for strategy in (REDUCE_TENURE, REDUCE_EMI):
            with self.assertRaises(InvalidPrepayment):
                simulate_prepayment(LOAN, PrepaymentInput(120, 1e-7, strategy))

    def test_amount_above_outstanding(self):
        outstanding = outstanding_principal(1000000, 9, 120, 24)
        with self.assertRaises(InvalidPrepayment):
            simulate_prepayment(LOAN, PrepaymentInput(24, outstanding + 1, REDUCE_TENURE))

    def test_non_positive_amount(self):
        for amount in (0, -500):
            with self.assertRaises(InvalidPrepayment):
                simulate_prepayment(LOAN, PrepaymentInput(24, amount, REDUCE_EMI))

    def test_elapsed_out_of_range(self):
        for elapsed in (-1, 121):
            with self.assertRaises(InvalidPrepayment):
                simulate_prepayment(LOAN, PrepaymentInput(elapsed, 1000, REDUCE_TENURE))

    def test_unknown_strategy(self):
        with self.assertRaises(InvalidPrepayment):
            simulate_prepayment(LOAN, PrepaymentInput(24, 1000, "both"))

    def test_paid_amounts_length(self):
        with self.assertRaises(InvalidPrepayment):
            simulate_prepayment(LOAN, PrepaymentInput(24, 1000, REDUCE_TENURE, paid_amounts=[1.0] * 3))


def outstanding_after(balance, rate_per_month, emi, periods):
    for _ in range(periods):
        balance = balance * (1 + rate_per_month) - emi
    return balance


if __name__ == "__main__":
    unittest.main()
