"""
Loan Amortization Calculations

Simulates period-by-period balance reduction of a loan, with optional
extra principal payments, and reports the savings those extra payments
produce against the same loan without them.
"""

import logging
import math
from typing import List, Optional, Sequence

from fincalc.calculations.annuity import loan_payment
from fincalc.config import get_settings
from fincalc.errors import InvalidInputError, NonAmortizingLoanError
from fincalc.models import AmortizationResult, AmortizationRow, LoanDefinition

logger = logging.getLogger(__name__)


def generate_schedule(
    loan: LoanDefinition, epsilon: Optional[float] = None
) -> AmortizationResult:
    """
    Generate a full amortization schedule.

    Args:
        loan: Loan terms (never modified)
        epsilon: Balance at or below which the loan counts as paid off

    Returns:
        AmortizationResult with rows, totals and extra-payment savings

    Raises:
        InvalidInputError: If the loan terms are invalid
        NonAmortizingLoanError: If the payment does not cover first-period interest
    """
    validate_loan(loan)
    if epsilon is None:
        epsilon = get_settings().balance_epsilon

    base_payment = scheduled_payment(loan)
    rows = _simulate(loan, base_payment, loan.extra_payment, epsilon)
    total_interest = calculate_total_interest(rows)
    total_payments = sum(row.payment_amount for row in rows)

    terms_saved = 0
    interest_saved = 0.0
    if loan.extra_payment > 0:
        baseline = _simulate(loan, base_payment, 0.0, epsilon)
        terms_saved = len(baseline) - len(rows)
        interest_saved = calculate_total_interest(baseline) - total_interest

    logger.debug(
        f"Generated {len(rows)} of {loan.number_of_periods:g} periods, "
        f"{terms_saved} saved by extra payment"
    )

    return AmortizationResult(
        rows=tuple(rows),
        total_interest=total_interest,
        total_payments=total_payments,
        terms_saved_by_extra_payment=terms_saved,
        interest_saved_by_extra_payment=interest_saved,
        years_saved_by_extra_payment=loan.frequency.years_from_periods(terms_saved),
        loan_amount=loan.loan_amount,
        base_payment=base_payment,
        periodic_payment=base_payment + loan.extra_payment,
        rate_per_period=loan.rate_per_period,
        number_of_periods=loan.number_of_periods,
    )


def validate_loan(loan: LoanDefinition) -> None:
    """Raise InvalidInputError if the loan terms cannot be amortized."""
    for field in ("principal", "annual_rate", "term_years", "down_payment", "extra_payment"):
        if not math.isfinite(getattr(loan, field)):
            raise InvalidInputError(f"{field} must be a finite number")

    if loan.principal <= 0:
        raise InvalidInputError("Principal amount must be positive")
    if loan.annual_rate < 0:
        raise InvalidInputError("Interest rate cannot be negative")
    if loan.term_years <= 0:
        raise InvalidInputError("Loan term must be positive")
    if loan.down_payment < 0:
        raise InvalidInputError("Down payment cannot be negative")
    if loan.extra_payment < 0:
        raise InvalidInputError("Extra payment cannot be negative")
    if loan.down_payment >= loan.principal:
        raise InvalidInputError("Down payment must be less than principal amount")
    if loan.payment_amount is not None and not (
        math.isfinite(loan.payment_amount) and loan.payment_amount > 0
    ):
        raise InvalidInputError("Payment amount must be positive")


def scheduled_payment(loan: LoanDefinition) -> float:
    """Return the fixed payment per period, before any extra payment."""
    if loan.payment_amount is not None:
        return loan.payment_amount
    return loan_payment(loan.loan_amount, loan.rate_per_period, loan.number_of_periods)


def _simulate(
    loan: LoanDefinition, base_payment: float, extra_payment: float, epsilon: float
) -> List[AmortizationRow]:
    schedule = []
    balance = loan.loan_amount
    rate = loan.rate_per_period
    total_payment = base_payment + extra_payment
    max_periods = math.ceil(loan.number_of_periods - 1e-9)

    step = loan.frequency.period_delta()
    cumulative_principal = 0.0
    cumulative_interest = 0.0

    for period in range(1, max_periods + 1):
        payment_date = None
        if loan.first_payment_date is not None:
            payment_date = loan.first_payment_date + step * (period - 1)

        interest = balance * rate

        if period == 1 and interest >= total_payment:
            raise NonAmortizingLoanError(
                f"Payment of {total_payment:.2f} does not cover "
                f"first-period interest of {interest:.2f}",
                interest=interest,
                payment=total_payment,
            )

        # Ensure we don't overpay
        principal_pmt = min(total_payment - interest, balance)
        balance -= principal_pmt
        cumulative_principal += principal_pmt
        cumulative_interest += interest

        schedule.append(
            AmortizationRow(
                period_index=period,
                payment_date=payment_date,
                payment_amount=principal_pmt + interest,
                principal_portion=principal_pmt,
                interest_portion=interest,
                remaining_balance=balance,
                cumulative_principal=cumulative_principal,
                cumulative_interest=cumulative_interest,
            )
        )

        # Stop if balance is paid off
        if balance <= epsilon:
            break

    return schedule


def calculate_total_interest(schedule: Sequence[AmortizationRow]) -> float:
    """Calculate total interest paid over loan term."""
    return sum(row.interest_portion for row in schedule)


def calculate_debt_service(
    schedule: Sequence[AmortizationRow], start_period: int, end_period: int
) -> float:
    """Calculate total debt service (P+I) for a range of periods."""
    return sum(
        row.payment_amount
        for row in schedule
        if start_period <= row.period_index <= end_period
    )
