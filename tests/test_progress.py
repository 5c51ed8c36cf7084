"""
Tests for loan progress reconciliation, pending amounts and affordability.
"""

import unittest
from datetime import date

from emi_calc.data_models import LoanTerms
from emi_calc.engine import (
    compute_emi,
    loan_affordability,
    loan_progress,
    outstanding_principal,
    pending_amounts,
)
from emi_calc.errors import InvalidPaidPeriods, LoanCalcError

LOAN = LoanTerms(1000000, 9, 120, date(2020, 1, 10), processing_fee=5000.0)


class LoanProgressTests(unittest.TestCase):

    def test_theoretical_balance_from_elapsed_time(self):
        progress = loan_progress(LOAN, date(2022, 1, 11))
        self.assertEqual(progress.months_elapsed, 24)
        self.assertAlmostEqual(progress.theoretical_balance, outstanding_principal(1000000, 9, 120, 24))
        self.assertAlmostEqual(progress.completion_percentage, 20.0)
        self.assertFalse(progress.is_complete)
        self.assertEqual(progress.next_due_date, date(2022, 2, 10))

    def test_without_recorded_balance(self):
        progress = loan_progress(LOAN, date(2022, 1, 11))
        self.assertIsNone(progress.recorded_balance)
        self.assertIsNone(progress.is_on_track)
        self.assertIsNone(progress.balance_discrepancy)
        expected = (1000000 - progress.theoretical_balance) / 1000000 * 100
        self.assertAlmostEqual(progress.progress_percentage, expected)

    def test_recorded_within_tolerance(self):
        theoretical = loan_progress(LOAN, date(2022, 1, 11)).theoretical_balance
        progress = loan_progress(LOAN, date(2022, 1, 11), recorded_balance=theoretical * 1.04)
        self.assertTrue(progress.is_on_track)
        self.assertAlmostEqual(progress.balance_discrepancy, theoretical * 0.04)
        self.assertAlmostEqual(progress.recorded_balance, theoretical * 1.04)

    def test_recorded_beyond_tolerance_is_reported_not_replaced(self):
        theoretical = loan_progress(LOAN, date(2022, 1, 11)).theoretical_balance
        with self.assertLogs("emi_calc.engine", level="WARNING"):
            progress = loan_progress(LOAN, date(2022, 1, 11), recorded_balance=theoretical * 1.06)
        self.assertFalse(progress.is_on_track)
        self.assertAlmostEqual(progress.recorded_balance, theoretical * 1.06)
        self.assertAlmostEqual(progress.theoretical_balance, theoretical)

    def test_custom_tolerance(self):
        theoretical = loan_progress(LOAN, date(2022, 1, 11)).theoretical_balance
        progress = loan_progress(
            LOAN, date(2022, 1, 11), recorded_balance=theoretical * 1.06, tolerance=0.1
        )
        self.assertTrue(progress.is_on_track)

    def test_ahead_of_schedule_is_on_track(self):
        progress = loan_progress(LOAN, date(2022, 1, 11), recorded_balance=500000)
        self.assertTrue(progress.is_on_track)
        self.assertAlmostEqual(progress.progress_percentage, 50.0)

    def test_complete(self):
        progress = loan_progress(LOAN, date(2035, 1, 1))
        self.assertEqual(progress.months_elapsed, 120)
        self.assertTrue(progress.is_complete)
        self.assertEqual(progress.theoretical_balance, 0.0)
        self.assertEqual(progress.completion_percentage, 100.0)
        self.assertIsNone(progress.next_due_date)

    def test_not_started(self):
        progress = loan_progress(LOAN, date(2019, 12, 1))
        self.assertEqual(progress.months_elapsed, 0)
        self.assertEqual(progress.theoretical_balance, 1000000)
        self.assertEqual(progress.next_due_date, date(2020, 2, 10))


class PendingAmountsTests(unittest.TestCase):

    def test_nothing_paid(self):
        pending = pending_amounts(LOAN, 0)
        emi = compute_emi(1000000, 9, 120)
        self.assertEqual(pending.pending_principal, 1000000)
        self.assertAlmostEqual(pending.total_pending, emi * 120, places=4)
        self.assertAlmostEqual(pending.pending_interest, emi * 120 - 1000000, places=4)

    def test_midway(self):
        pending = pending_amounts(LOAN, 60)
        emi = compute_emi(1000000, 9, 120)
        self.assertAlmostEqual(pending.total_pending, emi * 60, places=4)
        self.assertAlmostEqual(
            pending.pending_principal + pending.pending_interest, pending.total_pending
        )

    def test_fully_paid(self):
        pending = pending_amounts(LOAN, 120)
        self.assertEqual((pending.pending_principal, pending.total_pending), (0.0, 0.0))

    def test_out_of_range(self):
        with self.assertRaises(InvalidPaidPeriods):
            pending_amounts(LOAN, 121)

    def test_not_a_whole_number(self):
        for bad in (2.5, True):
            with self.assertRaises(InvalidPaidPeriods):
                pending_amounts(LOAN, bad)


class AffordabilityTests(unittest.TestCase):

    def test_affordable(self):
        result = loan_affordability(100000)
        self.assertEqual(result.recommendation, "affordable")
        self.assertAlmostEqual(result.max_emi, 40000)
        self.assertAlmostEqual(compute_emi(result.max_loan_amount, 10, 240), 40000, places=4)

    def test_low_headroom(self):
        result = loan_affordability(10000)
        self.assertEqual(result.recommendation, "low_headroom")
        self.assertAlmostEqual(result.max_emi, 4000)

    def test_over_committed(self):
        result = loan_affordability(10000, existing_emis=5000)
        self.assertEqual(result.recommendation, "over_committed")
        self.assertEqual(result.max_emi, 0.0)
        self.assertEqual(result.max_loan_amount, 0.0)

    def test_invalid(self):
        with self.assertRaises(LoanCalcError):
            loan_affordability(-1)
        with self.assertRaises(LoanCalcError):
            loan_affordability(10000, debt_to_income_ratio=0)

    def test_non_finite(self):
        for kwargs in (
            {"monthly_income": float("nan")},
            {"monthly_income": float("inf")},
            {"monthly_income": 10000, "existing_emis": float("nan")},
            {"monthly_income": 10000, "debt_to_income_ratio": float("nan")},
        ):
            with self.assertRaises(LoanCalcError):
                loan_affordability(**kwargs)


if __name__ == "__main__":
    unittest.main()
