"""
Time Value of Money Solver

Given four of {present value, future value, payment, rate per period,
number of periods}, computes the fifth. Future value, present value, payment
and number of periods have closed forms; the rate is found with
Newton-Raphson, falling back to bracketing and bisection when Newton fails.

Values are signed contributions to one accumulated balance:
FV = PV(1+r)^n + PMT*k*A. Rate and period solving try that reading first.
When it has no solution and the future value carries the opposite sign of
the investment side, the inputs are read in calculator cash-flow convention,
PV(1+r)^n + PMT*k*A + FV = 0, instead.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, TypeVar

from fincalc.calculations import annuity
from fincalc.config import get_settings
from fincalc.errors import ConvergenceError, InvalidInputError, UnsolvableError
from fincalc.models import TvmInputs, TvmResult, TvmVariable

logger = logging.getLogger(__name__)

# Rates closer than this to -100% per period are not accepted as roots
MIN_GROWTH = 1e-6

# Scan grid used to bracket a root when Newton-Raphson fails
BRACKET_GRID = (
    -0.99, -0.9, -0.5, -0.25, -0.1, -0.05, -0.01, 0.0, 0.001, 0.01, 0.025,
    0.05, 0.1, 0.2, 0.35, 0.5, 0.75, 1.0, 2.0, 5.0, 10.0,
)
BISECTION_MAX_ITERATIONS = 200

T = TypeVar("T")


@dataclass(frozen=True)
class RateSolution:
    """Solved rate and how it was found."""

    rate: float
    iterations: int
    bisection_used: bool = False


def solve(
    inputs: TvmInputs,
    tolerance: Optional[float] = None,
    max_iterations: Optional[int] = None,
    initial_guess: Optional[float] = None,
) -> TvmResult:
    """
    Solve the TVM equation for the unknown named by ``inputs.solve_for``.

    Args:
        inputs: Four known quantities plus the unknown
        tolerance: Convergence tolerance on the residual (rate solving only)
        max_iterations: Newton-Raphson iteration bound (rate solving only)
        initial_guess: Newton-Raphson starting rate (rate solving only)

    Returns:
        TvmResult with all five quantities filled in

    Raises:
        InvalidInputError: If not exactly four quantities are populated
        UnsolvableError: If the number of periods has no solution
        ConvergenceError: If the rate cannot be determined
    """
    validate_inputs(inputs)

    pv = inputs.present_value
    fv = inputs.future_value
    pmt = inputs.payment
    rate = inputs.rate_per_period
    periods = inputs.number_of_periods
    due = inputs.payments_at_beginning
    iterations = 0
    bisection_used = False
    cash_flow = False

    if inputs.solve_for is TvmVariable.future_value:
        fv = annuity.future_value(rate, periods, pmt, pv, due)
    elif inputs.solve_for is TvmVariable.present_value:
        pv = annuity.present_value(rate, periods, pmt, fv, due)
    elif inputs.solve_for is TvmVariable.payment:
        pmt = annuity.payment(rate, periods, pv, fv, due)
    elif inputs.solve_for is TvmVariable.number_of_periods:
        periods, cash_flow = _solve_either_convention(
            lambda convention: solve_number_of_periods(
                pv, fv, pmt, rate, due, cash_flow_convention=convention
            ),
            pv,
            fv,
            pmt,
        )
    else:
        solution, cash_flow = _solve_either_convention(
            lambda convention: solve_rate(
                pv,
                fv,
                pmt,
                periods,
                due,
                tolerance=tolerance,
                max_iterations=max_iterations,
                initial_guess=initial_guess,
                cash_flow_convention=convention,
            ),
            pv,
            fv,
            pmt,
        )
        rate = solution.rate
        iterations = solution.iterations
        bisection_used = solution.bisection_used

    values = {
        TvmVariable.present_value: pv,
        TvmVariable.future_value: fv,
        TvmVariable.payment: pmt,
        TvmVariable.rate_per_period: rate,
        TvmVariable.number_of_periods: periods,
    }
    periods_per_year = inputs.frequency.periods_per_year
    annual_rate = rate * periods_per_year

    return TvmResult(
        solve_for=inputs.solve_for,
        value=values[inputs.solve_for],
        present_value=pv,
        future_value=fv,
        payment=pmt,
        rate_per_period=rate,
        number_of_periods=periods,
        frequency=inputs.frequency,
        payments_at_beginning=due,
        annual_rate=annual_rate,
        annual_rate_percent=annual_rate * 100,
        effective_annual_rate=annuity.effective_annual_rate(rate, periods_per_year),
        years=inputs.frequency.years_from_periods(periods),
        iterations=iterations,
        bisection_used=bisection_used,
        cash_flow_convention=cash_flow,
    )


def validate_inputs(inputs: TvmInputs) -> None:
    """Check that exactly four quantities are known and solve_for is the fifth."""
    known = inputs.known_values()

    if len(known) != 4:
        raise InvalidInputError(
            f"Exactly 4 of the 5 TVM values must be provided, got {len(known)}"
        )
    if inputs.solve_for in known:
        raise InvalidInputError(
            f"{inputs.solve_for.value} is provided but was requested as the unknown"
        )

    for variable, value in known.items():
        if not math.isfinite(value):
            raise InvalidInputError(f"{variable.value} must be a finite number")

    periods = known.get(TvmVariable.number_of_periods)
    if periods is not None and periods <= 0:
        raise InvalidInputError("number_of_periods must be positive")

    rate = known.get(TvmVariable.rate_per_period)
    if rate is not None and rate <= -1:
        raise InvalidInputError("rate_per_period must be greater than -100%")


def residual(
    present_value: float,
    future_value: float,
    payment: float,
    rate: float,
    periods: float,
    at_beginning: bool = False,
    cash_flow_convention: bool = False,
) -> float:
    """
    Evaluate the TVM equation at the given values.

    With ``cash_flow_convention`` the future value is read as the balancing
    cash flow, i.e. PV(1+r)^n + PMT*k*A + FV.
    """
    fv = -future_value if cash_flow_convention else future_value
    return annuity.future_value(rate, periods, payment, present_value, at_beginning) - fv


def solve_number_of_periods(
    present_value: float,
    future_value: float,
    payment: float,
    rate: float,
    at_beginning: bool = False,
    cash_flow_convention: bool = False,
) -> float:
    """
    Solve for the number of periods.

    n = ln((FV + c) / (PV + c)) / ln(1 + r) with c = PMT * k / r, which is
    ln(FV / PV) / ln(1 + r) without payments.
    """
    pv, pmt = present_value, payment
    fv = -future_value if cash_flow_convention else future_value

    if abs(rate) < annuity.ZERO_RATE:
        if pmt == 0:
            raise UnsolvableError(
                "Number of periods is undetermined with zero rate and zero payment"
            )
        periods = (fv - pv) / pmt
    else:
        k = 1 + rate if at_beginning else 1.0
        c = pmt * k / rate
        numerator = fv + c
        denominator = pv + c
        if denominator < 0:
            numerator, denominator = -numerator, -denominator

        if denominator <= 0:
            raise UnsolvableError("Present value must be positive to solve for periods")
        if numerator <= 0:
            raise UnsolvableError(
                "Future value cannot be reached: logarithm argument is not positive"
            )
        periods = math.log(numerator / denominator) / math.log(1 + rate)

    if not math.isfinite(periods) or periods < 0:
        raise UnsolvableError("Number of periods has no non-negative solution")
    return periods


def solve_rate(
    present_value: float,
    future_value: float,
    payment: float,
    periods: float,
    at_beginning: bool = False,
    tolerance: Optional[float] = None,
    max_iterations: Optional[int] = None,
    initial_guess: Optional[float] = None,
    cash_flow_convention: bool = False,
) -> RateSolution:
    """
    Solve for the rate per period.

    Newton-Raphson on f(r) = PV(1+r)^n + PMT*k*((1+r)^n - 1)/r - FV with an
    analytic derivative.

    Returns:
        RateSolution with the rate and the number of solver steps taken

    Raises:
        ConvergenceError: If no rate satisfies the equation within tolerance
    """
    settings = get_settings()
    tolerance = settings.newton_tolerance if tolerance is None else tolerance
    max_iterations = (
        settings.newton_max_iterations if max_iterations is None else max_iterations
    )
    rate = settings.newton_initial_guess if initial_guess is None else initial_guess

    pv, pmt = present_value, payment
    fv = -future_value if cash_flow_convention else future_value

    def f(r: float) -> float:
        return annuity.future_value(r, periods, pmt, pv, at_beginning) - fv

    def df(r: float) -> float:
        d_growth = periods * annuity.growth_factor(r, periods - 1)
        return pv * d_growth + pmt * annuity.annuity_factor_derivative(
            r, periods, at_beginning
        )

    iteration = 0
    for iteration in range(1, max_iterations + 1):
        value = f(rate)
        slope = df(rate)

        if not math.isfinite(value) or not math.isfinite(slope):
            logger.debug(f"Newton-Raphson hit a non-finite value at rate {rate}")
            break

        step = value / slope if slope != 0 else math.inf
        # A residual shrinking only because (1 + r)^n vanishes is not a root
        if abs(value) < tolerance and abs(step) <= 1e-6 * (1 + rate):
            if 1 + rate >= MIN_GROWTH:
                logger.debug(f"Rate converged to {rate} after {iteration} iterations")
                return RateSolution(rate, iteration)
            break

        if not math.isfinite(step):
            break

        new_rate = rate - step
        if new_rate <= -1:
            new_rate = (rate - 1) / 2

        if abs(new_rate - rate) < 1e-15 * max(1.0, abs(rate)):
            if abs(value) < tolerance * max(1.0, abs(fv), abs(pv)) and 1 + rate >= MIN_GROWTH:
                return RateSolution(new_rate, iteration)
            break

        rate = new_rate

    logger.debug(f"Newton-Raphson did not converge after {iteration} iterations, trying bisection")
    rate, steps = _bisect_rate(f, tolerance)
    return RateSolution(rate, iteration + steps, bisection_used=True)


def _bisect_rate(f: Callable[[float], float], tolerance: float) -> Tuple[float, int]:
    """Find a sign change on BRACKET_GRID and bisect it; returns (rate, steps)."""
    previous_rate = None
    previous_value = None

    for rate in BRACKET_GRID:
        value = f(rate)
        if not math.isfinite(value):
            continue
        if value == 0:
            return rate, 0
        if previous_value is not None and (value > 0) != (previous_value > 0):
            low, high = previous_rate, rate
            f_low = previous_value
            mid = (low + high) / 2
            steps = 0
            for steps in range(1, BISECTION_MAX_ITERATIONS + 1):
                mid = (low + high) / 2
                f_mid = f(mid)
                if abs(f_mid) < tolerance or high - low < 1e-15:
                    break
                if (f_mid > 0) == (f_low > 0):
                    low, f_low = mid, f_mid
                else:
                    high = mid
            logger.debug(f"Bisection found rate {mid} after {steps} steps")
            return mid, steps
        previous_rate, previous_value = rate, value

    raise ConvergenceError("Interest rate cannot be determined for the given values")


def _solve_either_convention(
    solver: Callable[[bool], T],
    present_value: float,
    future_value: float,
    payment: float,
) -> Tuple[T, bool]:
    """
    Run ``solver`` in the accumulation convention, then in the cash-flow
    convention when the first has no solution and the signs allow it.

    Returns:
        Tuple of (solver result, whether the cash-flow convention was used)
    """
    try:
        return solver(False), False
    except (UnsolvableError, ConvergenceError):
        # Cash-flow reading applies only when FV opposes the investment side
        investment = present_value if present_value != 0 else payment
        if investment * future_value >= 0:
            raise
    logger.debug("No solution as an accumulated balance, reading inputs as cash flows")
    return solver(True), True
