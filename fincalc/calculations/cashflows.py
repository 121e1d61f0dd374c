"""
NPV and IRR Calculations

Implements IRR using Newton-Raphson method, matching Excel's IRR function.
Used by the npv() and irr() functions of the expression engine.
"""

from typing import Sequence

from fincalc.errors import ConvergenceError, InvalidInputError

MAX_ITERATIONS = 100
TOLERANCE = 1e-7
DEFAULT_GUESS = 0.1


def calculate_npv(cash_flows: Sequence[float], discount_rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of cash flows.

    Args:
        cash_flows: Array of cash flows (negative = outflow, positive = inflow),
            the first one at period 0
        discount_rate: Discount rate per period (e.g., 0.10 for 10%)

    Returns:
        NPV value
    """
    npv = 0.0
    for period, cf in enumerate(cash_flows):
        npv += cf / ((1 + discount_rate) ** period)
    return npv


def _npv_derivative(cash_flows: Sequence[float], rate: float) -> float:
    """Calculate derivative of NPV with respect to rate (for Newton-Raphson)."""
    dnpv = 0.0
    for period, cf in enumerate(cash_flows):
        dnpv -= (period * cf) / ((1 + rate) ** (period + 1))
    return dnpv


def calculate_irr(cash_flows: Sequence[float], guess: float = DEFAULT_GUESS) -> float:
    """
    Calculate IRR (Internal Rate of Return) using Newton-Raphson method.

    Matches Excel's IRR() function behavior for periodic cash flows.

    Args:
        cash_flows: Array of periodic cash flows
        guess: Initial guess for rate (default 0.1 = 10%)

    Returns:
        IRR per period as decimal (e.g., 0.15 for 15%)

    Raises:
        InvalidInputError: If the cash flows cannot have an IRR
        ConvergenceError: If the iteration does not converge
    """
    if len(cash_flows) < 2:
        raise InvalidInputError("At least 2 cash flows required")

    has_positive = any(cf > 0 for cf in cash_flows)
    has_negative = any(cf < 0 for cf in cash_flows)

    if not has_positive or not has_negative:
        raise InvalidInputError(
            "Cash flows must contain both positive and negative values"
        )

    rate = guess

    for _ in range(MAX_ITERATIONS):
        npv = calculate_npv(cash_flows, rate)
        dnpv = _npv_derivative(cash_flows, rate)

        if abs(dnpv) < TOLERANCE:
            raise ConvergenceError("IRR calculation failed: derivative too small")

        new_rate = rate - npv / dnpv

        if new_rate <= -1:
            new_rate = (rate - 1) / 2

        if abs(new_rate - rate) < TOLERANCE:
            return new_rate

        rate = new_rate

    raise ConvergenceError("IRR calculation did not converge")


def calculate_multiple(cash_flows: Sequence[float]) -> float:
    """
    Calculate equity multiple.

    Args:
        cash_flows: Array of cash flows (investments are negative)

    Returns:
        Multiple (e.g., 2.0 = 2.0x return)
    """
    total_inflows = sum(cf for cf in cash_flows if cf > 0)
    total_outflows = abs(sum(cf for cf in cash_flows if cf < 0))

    if total_outflows == 0:
        raise InvalidInputError("No investment (outflows) found")

    return total_inflows / total_outflows
