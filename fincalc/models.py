"""
Pydantic models for the calculation engine.

These are the data transfer objects exchanged with the host application.
They hold plain values only, so an external document store can serialize
them with ``model_dump()``.
"""

from datetime import date
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict
from dateutil.relativedelta import relativedelta
import enum


class PaymentFrequency(str, enum.Enum):
    """Payment frequency options for financial calculations."""

    annual = "annual"
    semi_annual = "semi_annual"
    quarterly = "quarterly"
    monthly = "monthly"
    weekly = "weekly"
    daily = "daily"

    @property
    def periods_per_year(self) -> float:
        return _PERIODS_PER_YEAR[self]

    def period_rate(self, annual_rate: float) -> float:
        """Convert an annual rate to the rate per payment period."""
        return annual_rate / self.periods_per_year

    def number_of_periods(self, years: float) -> float:
        """Convert a term in years to a number of payment periods."""
        return years * self.periods_per_year

    def years_from_periods(self, periods: float) -> float:
        return periods / self.periods_per_year

    def period_delta(self) -> relativedelta:
        """Calendar step between two consecutive payment dates."""
        if self is PaymentFrequency.weekly:
            return relativedelta(weeks=1)
        if self is PaymentFrequency.daily:
            return relativedelta(days=1)
        return relativedelta(months=12 // int(self.periods_per_year))


_PERIODS_PER_YEAR = {
    PaymentFrequency.annual: 1.0,
    PaymentFrequency.semi_annual: 2.0,
    PaymentFrequency.quarterly: 4.0,
    PaymentFrequency.monthly: 12.0,
    PaymentFrequency.weekly: 52.0,
    PaymentFrequency.daily: 365.0,
}


class TvmVariable(str, enum.Enum):
    """The five quantities of the time-value-of-money equation."""

    present_value = "present_value"
    future_value = "future_value"
    payment = "payment"
    rate_per_period = "rate_per_period"
    number_of_periods = "number_of_periods"


class Variable(BaseModel):
    """A named value held by the variable store."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: float
    expression: Optional[str] = None
    markup: Optional[str] = None


class TvmInputs(BaseModel):
    """Input to the TVM solver: four known quantities and the unknown to solve."""

    model_config = ConfigDict(frozen=True)

    solve_for: TvmVariable
    present_value: Optional[float] = None
    future_value: Optional[float] = None
    payment: Optional[float] = None
    rate_per_period: Optional[float] = None
    number_of_periods: Optional[float] = None

    frequency: PaymentFrequency = PaymentFrequency.annual
    payments_at_beginning: bool = False

    @classmethod
    def from_annual(
        cls,
        solve_for: TvmVariable,
        present_value: Optional[float] = None,
        future_value: Optional[float] = None,
        payment: Optional[float] = None,
        annual_rate: Optional[float] = None,
        term_years: Optional[float] = None,
        frequency: PaymentFrequency = PaymentFrequency.monthly,
        payments_at_beginning: bool = False,
    ) -> "TvmInputs":
        """
        Build inputs from an annual rate and a term in years.

        Args:
            solve_for: The unknown quantity
            annual_rate: Annual interest rate as decimal (e.g., 0.05 for 5%)
            term_years: Term in years
            frequency: Compounding and payment frequency

        Returns:
            TvmInputs expressed per payment period
        """
        return cls(
            solve_for=solve_for,
            present_value=present_value,
            future_value=future_value,
            payment=payment,
            rate_per_period=(
                None if annual_rate is None else frequency.period_rate(annual_rate)
            ),
            number_of_periods=(
                None if term_years is None else frequency.number_of_periods(term_years)
            ),
            frequency=frequency,
            payments_at_beginning=payments_at_beginning,
        )

    def known_values(self) -> dict:
        """Return the populated TVM quantities keyed by variable."""
        values = {variable: getattr(self, variable.value) for variable in TvmVariable}
        return {k: v for k, v in values.items() if v is not None}


class TvmResult(BaseModel):
    """Solved TVM equation with every quantity filled in."""

    model_config = ConfigDict(frozen=True)

    solve_for: TvmVariable
    value: float

    present_value: float
    future_value: float
    payment: float
    rate_per_period: float
    number_of_periods: float

    frequency: PaymentFrequency
    payments_at_beginning: bool = False

    annual_rate: float
    annual_rate_percent: float
    effective_annual_rate: float
    years: float
    iterations: int = 0
    bisection_used: bool = False
    cash_flow_convention: bool = False


class LoanDefinition(BaseModel):
    """Loan terms passed to the amortization engine."""

    model_config = ConfigDict(frozen=True)

    principal: float
    annual_rate: float  # Decimal (e.g., 0.06 for 6%)
    term_years: float
    frequency: PaymentFrequency = PaymentFrequency.monthly
    down_payment: float = 0.0
    extra_payment: float = 0.0

    # Fixed scheduled payment replacing the annuity payment
    payment_amount: Optional[float] = None
    first_payment_date: Optional[date] = None

    @property
    def loan_amount(self) -> float:
        return self.principal - self.down_payment

    @property
    def rate_per_period(self) -> float:
        return self.frequency.period_rate(self.annual_rate)

    @property
    def number_of_periods(self) -> float:
        return self.frequency.number_of_periods(self.term_years)


class AmortizationRow(BaseModel):
    """Single entry in an amortization schedule."""

    model_config = ConfigDict(frozen=True)

    period_index: int
    payment_date: Optional[date] = None
    payment_amount: float
    principal_portion: float
    interest_portion: float
    remaining_balance: float
    cumulative_principal: float = 0.0
    cumulative_interest: float = 0.0


class AmortizationResult(BaseModel):
    """Generated schedule plus aggregate metrics."""

    model_config = ConfigDict(frozen=True)

    rows: Tuple[AmortizationRow, ...]
    total_interest: float
    total_payments: float
    terms_saved_by_extra_payment: int = 0
    interest_saved_by_extra_payment: float = 0.0
    years_saved_by_extra_payment: float = 0.0

    loan_amount: float
    base_payment: float
    periodic_payment: float
    rate_per_period: float
    number_of_periods: float

    @property
    def payoff_periods(self) -> int:
        return len(self.rows)
