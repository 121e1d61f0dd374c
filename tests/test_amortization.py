"""
Tests for the amortization engine.
"""

import math
from datetime import date

import pytest

from fincalc.calculations.amortization import (
    calculate_debt_service,
    calculate_total_interest,
    generate_schedule,
)
from fincalc.calculations.annuity import loan_payment, remaining_balance
from fincalc.errors import InvalidInputError, NonAmortizingLoanError
from fincalc.models import LoanDefinition, PaymentFrequency


class TestLoanPayment:
    """Test the annuity payment formula."""

    def test_calculate_payment(self):
        """Test monthly payment calculation."""
        # $1M loan at 5% for 30 years
        payment = loan_payment(1000000, 0.05 / 12, 360)
        # Expected payment around $5,368/month
        assert abs(payment - 5368.22) < 0.01

    def test_zero_rate_payment(self):
        """Test straight-line repayment without interest."""
        assert loan_payment(12000, 0, 12) == 1000

    def test_remaining_balance(self):
        """Test the closed-form balance matches the simulated one."""
        schedule = generate_schedule(LoanDefinition(principal=100000, annual_rate=0.06, term_years=5))
        closed_form = remaining_balance(100000, 0.005, 60, 12)
        assert abs(schedule.rows[11].remaining_balance - closed_form) < 1e-6


class TestSchedule:
    """Test schedule generation."""

    def test_schedule_length(self, mortgage):
        """Test a 30-year monthly loan has 360 rows."""
        result = generate_schedule(mortgage)
        assert len(result.rows) == 360
        assert result.payoff_periods == 360
        assert abs(result.base_payment - 1199.10) < 0.01

    def test_balances_decrease(self, mortgage):
        """Test remaining balance is non-increasing."""
        rows = generate_schedule(mortgage).rows
        for previous, current in zip(rows, rows[1:]):
            assert current.remaining_balance <= previous.remaining_balance

    def test_final_balance(self, mortgage):
        """Test the loan is paid off within epsilon."""
        result = generate_schedule(mortgage)
        assert result.rows[-1].remaining_balance <= 0.01

    def test_principal_sums_to_loan_amount(self, mortgage):
        """Test principal portions repay the loan."""
        result = generate_schedule(mortgage)
        total_principal = sum(row.principal_portion for row in result.rows)
        assert abs(total_principal - result.loan_amount) <= 0.01
        assert abs(result.rows[-1].cumulative_principal - total_principal) < 1e-6

    def test_totals(self, mortgage):
        """Test total interest and total payments agree."""
        result = generate_schedule(mortgage)
        assert abs(result.total_interest - calculate_total_interest(result.rows)) < 1e-9
        assert abs(result.total_payments - (result.loan_amount + result.total_interest)) < 0.01
        assert abs(result.total_interest - 231676.38) < 1.0

    def test_row_fields(self, mortgage):
        """Test the first row splits the payment."""
        first = generate_schedule(mortgage).rows[0]
        assert first.period_index == 1
        assert abs(first.interest_portion - 1000) < 1e-9
        assert abs(first.principal_portion + first.interest_portion - first.payment_amount) < 1e-9

    def test_down_payment(self):
        """Test the down payment reduces the financed amount."""
        result = generate_schedule(LoanDefinition(
            principal=250000, annual_rate=0.06, term_years=30, down_payment=50000,
        ))
        assert result.loan_amount == 200000
        assert abs(result.base_payment - 1199.10) < 0.01

    def test_zero_rate(self):
        """Test an interest-free loan."""
        result = generate_schedule(LoanDefinition(principal=12000, annual_rate=0, term_years=1))
        assert len(result.rows) == 12
        assert result.total_interest == 0

    def test_input_not_mutated(self, mortgage):
        """Test the loan definition is left as given."""
        before = mortgage.model_dump()
        generate_schedule(mortgage.model_copy(update={"extra_payment": 100}))
        assert mortgage.model_dump() == before

    def test_debt_service(self, mortgage):
        """Test debt service over the first year."""
        result = generate_schedule(mortgage)
        assert abs(calculate_debt_service(result.rows, 1, 12) - 12 * result.base_payment) < 1e-6


class TestExtraPayments:
    """Test extra-payment acceleration."""

    def test_extra_payment_shortens_loan(self, mortgage):
        """Test extra principal saves periods and interest."""
        base = generate_schedule(mortgage)
        accelerated = generate_schedule(mortgage.model_copy(update={"extra_payment": 200}))

        assert len(accelerated.rows) <= len(base.rows)
        assert accelerated.total_interest <= base.total_interest
        assert accelerated.terms_saved_by_extra_payment == len(base.rows) - len(accelerated.rows)
        assert accelerated.terms_saved_by_extra_payment > 0
        assert abs(
            accelerated.interest_saved_by_extra_payment
            - (base.total_interest - accelerated.total_interest)
        ) < 1e-6
        assert abs(
            accelerated.years_saved_by_extra_payment
            - accelerated.terms_saved_by_extra_payment / 12
        ) < 1e-12

    def test_no_extra_payment_saves_nothing(self, mortgage):
        """Test savings are zero without extra payments."""
        result = generate_schedule(mortgage)
        assert result.terms_saved_by_extra_payment == 0
        assert result.interest_saved_by_extra_payment == 0

    def test_last_payment_not_overpaid(self, mortgage):
        """Test the final principal never exceeds the balance."""
        result = generate_schedule(mortgage.model_copy(update={"extra_payment": 500}))
        last = result.rows[-1]
        assert last.remaining_balance >= 0
        assert last.payment_amount <= result.periodic_payment + 1e-9


class TestPaymentDates:
    """Test dated schedules."""

    def test_monthly_dates(self, mortgage):
        """Test payment dates step by calendar month."""
        loan = mortgage.model_copy(update={"first_payment_date": date(2025, 1, 31)})
        rows = generate_schedule(loan).rows
        assert rows[0].payment_date == date(2025, 1, 31)
        assert rows[1].payment_date == date(2025, 2, 28)
        assert rows[2].payment_date == date(2025, 3, 31)
        assert rows[12].payment_date == date(2026, 1, 31)

    def test_quarterly_dates(self):
        """Test quarterly frequency."""
        rows = generate_schedule(LoanDefinition(
            principal=10000,
            annual_rate=0.08,
            term_years=1,
            frequency=PaymentFrequency.quarterly,
            first_payment_date=date(2025, 3, 1),
        )).rows
        assert [row.payment_date for row in rows] == [
            date(2025, 3, 1), date(2025, 6, 1), date(2025, 9, 1), date(2025, 12, 1),
        ]

    def test_undated_by_default(self, mortgage):
        """Test rows carry no date unless a first date is given."""
        assert generate_schedule(mortgage).rows[0].payment_date is None


class TestValidation:
    """Test loan validation and non-amortizing loans."""

    @pytest.mark.parametrize("update", [
        {"principal": 0},
        {"principal": -1000},
        {"term_years": 0},
        {"annual_rate": -0.01},
        {"down_payment": -1},
        {"down_payment": 200000},
        {"extra_payment": -50},
        {"principal": math.inf},
        {"payment_amount": 0},
    ])
    def test_invalid_loan(self, mortgage, update):
        """Test precondition failures raise InvalidInputError."""
        with pytest.raises(InvalidInputError):
            generate_schedule(mortgage.model_copy(update=update))

    def test_payment_below_interest(self, mortgage):
        """Test a payment smaller than the first-period interest."""
        loan = mortgage.model_copy(update={"payment_amount": 900})
        with pytest.raises(NonAmortizingLoanError) as exc_info:
            generate_schedule(loan)
        assert abs(exc_info.value.interest - 1000) < 1e-9
        assert exc_info.value.payment == 900

