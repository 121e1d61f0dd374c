"""
Annuity Formulas

Closed-form time-value-of-money relations shared by the TVM solver, the
amortization engine and the financial functions of the expression engine.

All rates are per period as decimals (e.g., 0.005 for 0.5% per month).
Values follow the accumulation convention: present value, payments and
future value are signed contributions to one balance, so

    FV = PV * (1 + r)^n + PMT * k * ((1 + r)^n - 1) / r

where k = 1 + r for payments at the beginning of each period, else 1.
"""

import math

ZERO_RATE = 1e-12


def growth_factor(rate: float, periods: float) -> float:
    """Return (1 + rate)^periods, or inf when the power overflows."""
    try:
        return (1 + rate) ** periods
    except OverflowError:
        return math.inf


def annuity_factor(rate: float, periods: float, at_beginning: bool = False) -> float:
    """
    Accumulated value of a unit payment stream.

    Args:
        rate: Rate per period as decimal
        periods: Number of periods
        at_beginning: Payments at the start of each period (annuity due)

    Returns:
        k * ((1 + r)^n - 1) / r, or n when the rate is zero
    """
    if abs(rate) < ZERO_RATE:
        return periods
    factor = (growth_factor(rate, periods) - 1) / rate
    if at_beginning:
        factor *= 1 + rate
    return factor


def annuity_factor_derivative(
    rate: float, periods: float, at_beginning: bool = False
) -> float:
    """Derivative of annuity_factor with respect to the rate."""
    if abs(rate) < ZERO_RATE:
        slope = periods * (periods - 1) / 2
        return slope + periods if at_beginning else slope

    growth = growth_factor(rate, periods)
    d_growth = periods * growth_factor(rate, periods - 1)
    base = (growth - 1) / rate
    d_base = (d_growth * rate - (growth - 1)) / (rate * rate)
    if at_beginning:
        return base + (1 + rate) * d_base
    return d_base


def future_value(
    rate: float,
    periods: float,
    payment: float = 0.0,
    present_value: float = 0.0,
    at_beginning: bool = False,
) -> float:
    """Calculate the future value of a lump sum plus a payment stream."""
    return present_value * growth_factor(rate, periods) + payment * annuity_factor(
        rate, periods, at_beginning
    )


def present_value(
    rate: float,
    periods: float,
    payment: float = 0.0,
    future_value: float = 0.0,
    at_beginning: bool = False,
) -> float:
    """Calculate the present value that accumulates to future_value."""
    return (future_value - payment * annuity_factor(rate, periods, at_beginning)) / (
        growth_factor(rate, periods)
    )


def payment(
    rate: float,
    periods: float,
    present_value: float = 0.0,
    future_value: float = 0.0,
    at_beginning: bool = False,
) -> float:
    """
    Calculate the periodic payment that moves present_value to future_value.

    A loan (positive present value, zero future value) yields a negative
    payment: money leaving the balance every period.
    """
    factor = annuity_factor(rate, periods, at_beginning)
    return (future_value - present_value * growth_factor(rate, periods)) / factor


def loan_payment(principal: float, rate: float, periods: float) -> float:
    """
    Calculate the periodic payment of a fully amortizing loan.

    Matches Excel's PMT() function with the sign flipped.

    Args:
        principal: Loan principal amount
        rate: Interest rate per period as decimal
        periods: Total number of payments

    Returns:
        Payment amount per period (positive number)
    """
    if principal <= 0:
        return 0.0
    if periods <= 0:
        return 0.0

    if abs(rate) < ZERO_RATE:
        return principal / periods

    growth = growth_factor(rate, periods)
    if math.isinf(growth):
        return principal * rate

    return principal * rate * growth / (growth - 1)


def remaining_balance(
    principal: float,
    rate: float,
    periods: float,
    payments_completed: int,
) -> float:
    """Calculate remaining loan balance after N payments."""
    pmt = loan_payment(principal, rate, periods)

    if abs(rate) < ZERO_RATE:
        return max(0.0, principal - pmt * payments_completed)

    balance = principal * growth_factor(rate, payments_completed) - pmt * (
        (growth_factor(rate, payments_completed) - 1) / rate
    )

    return max(0.0, balance)


def compound_amount(principal: float, annual_rate: float, compounds_per_year: float, years: float) -> float:
    """Calculate P * (1 + r/m)^(m*t)."""
    return principal * growth_factor(annual_rate / compounds_per_year, compounds_per_year * years)


def effective_annual_rate(rate_per_period: float, periods_per_year: float) -> float:
    """Convert a periodic rate to the equivalent compounded annual rate."""
    return growth_factor(rate_per_period, periods_per_year) - 1
