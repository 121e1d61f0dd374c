"""
Function table for the expression evaluator.

Each entry maps a name to its arity, its evaluation rule and its markup
rule. Arithmetic follows IEEE 754: domain violations give NaN and
overflow gives infinity instead of raising. The evaluator runs every rule
under ``np.errstate(all="ignore")``.

Most rules receive evaluated float arguments. Lazy rules (``sum``,
``product``, ``integral``) receive the unevaluated argument nodes so they
can bind an index variable while evaluating the body.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from fincalc.calculations import annuity, cashflows
from fincalc.config import get_settings
from fincalc.errors import DomainError, ExpressionSyntaxError, FinCalcError
from fincalc.expressions.parser import FunctionCall, Node, VariableRef

MarkupRule = Callable[[List[str], Sequence[Node]], str]


@dataclass(frozen=True)
class FunctionSpec:
    name: str
    min_args: int
    max_args: Optional[int]  # None for variadic
    rule: Callable
    markup: Optional[MarkupRule] = None
    lazy: bool = False
    description: str = ""

    def accepts(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args

    def arity_text(self) -> str:
        if self.max_args is None:
            return f"at least {self.min_args}"
        if self.min_args == self.max_args:
            return str(self.min_args)
        return f"{self.min_args} to {self.max_args}"


FUNCTIONS: Dict[str, FunctionSpec] = {}


def register_function(spec: FunctionSpec) -> FunctionSpec:
    """Add or replace a function in the table."""
    FUNCTIONS[spec.name] = spec
    return spec


def get_function(name: str) -> Optional[FunctionSpec]:
    return FUNCTIONS.get(name)


def _ieee(fn: Callable) -> Callable:
    """Wrap a math-module style function so errors become NaN / infinity."""

    def wrapper(*args):
        try:
            return fn(*args)
        except FinCalcError:
            raise
        except (ValueError, ZeroDivisionError):
            return math.nan
        except OverflowError:
            return math.inf

    return wrapper


# =============================================================================
# MARKUP RULES
# =============================================================================


def _args(args: List[str]) -> str:
    return "\\left(" + ", ".join(args) + "\\right)"


def operator_markup(command: str) -> MarkupRule:
    """Render as a LaTeX operator such as \\sin applied to the arguments."""
    return lambda args, nodes: command + _args(args)


def named_markup(name: str) -> MarkupRule:
    return lambda args, nodes: "\\operatorname{" + name + "}" + _args(args)


def _sqrt_markup(args, nodes):
    return "\\sqrt{" + args[0] + "}"


def _cbrt_markup(args, nodes):
    return "\\sqrt[3]{" + args[0] + "}"


def _nthroot_markup(args, nodes):
    return "\\sqrt[" + args[1] + "]{" + args[0] + "}"


def _abs_markup(args, nodes):
    return "\\left|" + args[0] + "\\right|"


def _floor_markup(args, nodes):
    return "\\left\\lfloor " + args[0] + " \\right\\rfloor"


def _ceil_markup(args, nodes):
    return "\\left\\lceil " + args[0] + " \\right\\rceil"


def _power_markup(base: str) -> MarkupRule:
    return lambda args, nodes: base + "^{" + args[0] + "}"


def _exp_markup(args, nodes):
    return "e^{" + args[0] + "}"


def _log_markup(args, nodes):
    if len(args) == 2:
        return "\\log_{" + args[1] + "}" + _args(args[:1])
    return "\\log_{10}" + _args(args)


def _factorial_markup(args, nodes):
    arg = args[0]
    if not isinstance(nodes[0], VariableRef) and not arg.isdigit():
        arg = "\\left(" + arg + "\\right)"
    return arg + "!"


def _binomial_markup(args, nodes):
    return "\\binom{" + args[0] + "}{" + args[1] + "}"


def _series_markup(command: str, name: str) -> MarkupRule:
    def render(args, nodes):
        if _is_indexed(nodes):
            return (
                command + "_{" + args[1] + "=" + args[2] + "}^{" + args[3] + "} "
                + args[0]
            )
        return named_markup(name)(args, nodes)

    return render


def _integral_markup(args, nodes):
    if len(args) == 4:
        return (
            "\\int_{" + args[2] + "}^{" + args[3] + "} " + args[0]
            + " \\, d" + args[1]
        )
    return named_markup("integral")(args, nodes)


# =============================================================================
# NUMERIC RULES
# =============================================================================


def factorial_value(n: float, position: Optional[int] = None) -> float:
    """
    Factorial of a non-negative integer.

    Raises:
        DomainError: For negative, non-integer or too large operands
    """
    limit = get_settings().factorial_limit
    if not math.isfinite(n) or n < 0 or not float(n).is_integer():
        raise DomainError(
            f"Factorial is only defined for non-negative integers, got {n:g}", position
        )
    if n > limit:
        raise DomainError(f"Factorial operand {n:g} exceeds the limit of {limit}", position)
    try:
        return float(math.factorial(int(n)))
    except OverflowError:
        return math.inf


def _log(x, base=None):
    if base is None:
        return np.log10(x)
    return np.log(x) / np.log(base)


def _nthroot(x, n):
    if n == 0:
        return math.nan
    if x < 0 and math.fmod(n, 2) == 0:
        return math.nan
    return math.copysign(np.power(abs(x), 1.0 / n), x)


def _round(x, digits=0):
    scale = np.power(10.0, digits)
    return np.sign(x) * np.floor(np.abs(x) * scale + 0.5) / scale


def _binomial(n, k):
    if k < 0 or k > n:
        return 0.0
    if k == 0 or k == n:
        return 1.0
    if not (float(n).is_integer() and float(k).is_integer()):
        return math.gamma(n + 1) / (math.gamma(k + 1) * math.gamma(n - k + 1))

    n, k = int(n), int(min(k, n - k))
    if k > get_settings().max_series_terms:
        return math.exp(math.lgamma(n + 1) - math.lgamma(k + 1) - math.lgamma(n - k + 1))
    result = 1.0
    for i in range(k):
        result = result * (n - i) / (i + 1)
    return result


def _permutation(n, r):
    if r < 0 or r > n:
        return 0.0
    return math.gamma(n + 1) / math.gamma(n - r + 1)


def _gcd(a, b):
    return float(math.gcd(int(abs(a)), int(abs(b))))


def _lcm(a, b):
    divisor = _gcd(a, b)
    if divisor == 0:
        return 0.0
    return abs(int(a) * int(b)) / divisor


def _beta(x, y):
    return math.gamma(x) * math.gamma(y) / math.gamma(x + y)


def _clamp(x, low, high):
    return min(max(x, low), high)


def _fv(rate, periods, pmt, pv, due=0.0):
    return annuity.future_value(rate, periods, pmt, pv, bool(due))


def _pv(rate, periods, pmt, fv, due=0.0):
    return annuity.present_value(rate, periods, pmt, fv, bool(due))


def _pmt(rate, periods, pv, fv=0.0, due=0.0):
    return annuity.payment(rate, periods, pv, fv, bool(due))


def _cash_flow_rule(fn: Callable, label: str) -> Callable:
    def rule(*args):
        try:
            return fn(*args)
        except FinCalcError as exc:
            raise DomainError(f"{label}: {exc.message}") from exc

    return rule


def _npv(rate, *flows):
    return cashflows.calculate_npv(flows, rate)


def _irr(*flows):
    return cashflows.calculate_irr(flows)


def _multiple(*flows):
    return cashflows.calculate_multiple(flows)


# =============================================================================
# LAZY RULES
# =============================================================================


def _is_indexed(nodes: Sequence[Node]) -> bool:
    return len(nodes) == 4 and isinstance(nodes[1], VariableRef)


def _integer_bound(value: float, label: str, position: int) -> int:
    if not math.isfinite(value) or not float(value).is_integer():
        raise DomainError(f"{label} bound must be an integer, got {value:g}", position)
    return int(value)


def _series(evaluator, call: FunctionCall, bindings, combine, start: float):
    if not _is_indexed(call.args):
        values = [evaluator.evaluate_node(arg, bindings) for arg in call.args]
        result = np.float64(start)
        for value in values:
            result = combine(result, value)
        return result

    body, index, low_node, high_node = call.args
    low = _integer_bound(evaluator.evaluate_node(low_node, bindings), "Lower", low_node.position)
    high = _integer_bound(evaluator.evaluate_node(high_node, bindings), "Upper", high_node.position)

    limit = get_settings().max_series_terms
    if high - low + 1 > limit:
        raise DomainError(f"{call.name}() is limited to {limit} terms", call.position)

    result = np.float64(start)
    for i in range(low, high + 1):
        scope = dict(bindings)
        scope[index.name] = np.float64(i)
        result = combine(result, evaluator.evaluate_node(body, scope))
    return result


def _sum(evaluator, call, bindings):
    return _series(evaluator, call, bindings, np.add, 0.0)


def _product(evaluator, call, bindings):
    return _series(evaluator, call, bindings, np.multiply, 1.0)


def _integral(evaluator, call, bindings):
    """Composite Simpson rule over [a, b]."""
    body, variable, low_node, high_node = call.args
    if not isinstance(variable, VariableRef):
        raise ExpressionSyntaxError(
            "integral() needs a variable name as its second argument", variable.position
        )

    low = evaluator.evaluate_node(low_node, bindings)
    high = evaluator.evaluate_node(high_node, bindings)
    if not (math.isfinite(low) and math.isfinite(high)):
        raise DomainError("integral() bounds must be finite", call.position)

    intervals = get_settings().integral_intervals
    intervals += intervals % 2
    points = np.linspace(low, high, intervals + 1)
    weights = np.ones(intervals + 1)
    weights[1:-1:2] = 4.0
    weights[2:-1:2] = 2.0

    values = np.empty(intervals + 1)
    for i, x in enumerate(points):
        scope = dict(bindings)
        scope[variable.name] = np.float64(x)
        values[i] = evaluator.evaluate_node(body, scope)

    step = (high - low) / intervals
    return np.float64(step / 3.0 * np.dot(weights, values))


# =============================================================================
# TABLE
# =============================================================================


def _unary(name: str, rule: Callable, markup: MarkupRule, description: str = "") -> None:
    register_function(FunctionSpec(name, 1, 1, rule, markup, description=description))


for _name, _rule in (
    ("sin", np.sin), ("cos", np.cos), ("tan", np.tan),
    ("sinh", np.sinh), ("cosh", np.cosh), ("tanh", np.tanh),
    ("ln", np.log),
):
    _unary(_name, _rule, operator_markup("\\" + _name))

for _name, _rule, _command in (
    ("asin", np.arcsin, "\\arcsin"),
    ("acos", np.arccos, "\\arccos"),
    ("atan", np.arctan, "\\arctan"),
    ("log10", np.log10, "\\log_{10}"),
    ("log2", np.log2, "\\log_{2}"),
):
    _unary(_name, _rule, operator_markup(_command))

for _name, _rule in (
    ("sec", lambda x: 1.0 / np.cos(x)),
    ("csc", lambda x: 1.0 / np.sin(x)),
    ("cot", lambda x: 1.0 / np.tan(x)),
    ("asinh", np.arcsinh), ("acosh", np.arccosh), ("atanh", np.arctanh),
    ("sign", np.sign),
    ("step", lambda x: np.float64(1.0 if x >= 0 else 0.0)),
    ("erf", _ieee(math.erf)), ("erfc", _ieee(math.erfc)),
):
    _unary(_name, _rule, named_markup(_name))

_unary("sqrt", np.sqrt, _sqrt_markup, "Square root")
_unary("cbrt", np.cbrt, _cbrt_markup, "Cube root")
_unary("abs", np.abs, _abs_markup, "Absolute value")
_unary("floor", np.floor, _floor_markup)
_unary("ceil", np.ceil, _ceil_markup)
_unary("exp", np.exp, _exp_markup, "Exponential")
_unary("exp2", np.exp2, _power_markup("2"))
_unary("exp10", lambda x: np.power(10.0, x), _power_markup("10"))
_unary("gamma", _ieee(math.gamma), operator_markup("\\Gamma"), "Gamma function")
_unary("factorial", factorial_value, _factorial_markup, "Factorial function: n!")

register_function(FunctionSpec("log", 1, 2, _log, _log_markup, description="Logarithm, base 10 or given base"))
register_function(FunctionSpec("atan2", 2, 2, np.arctan2, named_markup("atan2")))
register_function(FunctionSpec("nthroot", 2, 2, _ieee(_nthroot), _nthroot_markup))
register_function(FunctionSpec("round", 1, 2, _round, named_markup("round")))
register_function(FunctionSpec("min", 1, None, lambda *xs: np.min(xs), operator_markup("\\min")))
register_function(FunctionSpec("max", 1, None, lambda *xs: np.max(xs), operator_markup("\\max")))
register_function(FunctionSpec("clamp", 3, 3, _clamp, named_markup("clamp")))
register_function(FunctionSpec("lerp", 3, 3, lambda a, b, t: a + t * (b - a), named_markup("lerp")))
register_function(FunctionSpec("binomial", 2, 2, _ieee(_binomial), _binomial_markup, description="Binomial coefficient: C(n,k)"))
register_function(FunctionSpec("permutation", 2, 2, _ieee(_permutation), named_markup("P"), description="Permutation: P(n,r)"))
register_function(FunctionSpec("gcd", 2, 2, _ieee(_gcd), operator_markup("\\gcd")))
register_function(FunctionSpec("lcm", 2, 2, _ieee(_lcm), named_markup("lcm")))
register_function(FunctionSpec("beta", 2, 2, _ieee(_beta), operator_markup("\\mathrm{B}")))

register_function(FunctionSpec("sum", 1, None, _sum, _series_markup("\\sum", "sum"), lazy=True))
register_function(FunctionSpec("product", 1, None, _product, _series_markup("\\prod", "product"), lazy=True))
register_function(FunctionSpec("integral", 4, 4, _integral, _integral_markup, lazy=True))

register_function(FunctionSpec("fv", 4, 5, _ieee(_fv), named_markup("FV"), description="Future value: fv(rate, n, pmt, pv[, due])"))
register_function(FunctionSpec("pv", 4, 5, _ieee(_pv), named_markup("PV"), description="Present value: pv(rate, n, pmt, fv[, due])"))
register_function(FunctionSpec("pmt", 3, 5, _ieee(_pmt), named_markup("PMT"), description="Payment: pmt(rate, n, pv[, fv[, due]])"))
register_function(FunctionSpec("compound", 4, 4, _ieee(annuity.compound_amount), named_markup("compound"), description="P(1 + r/m)^(mt)"))
register_function(FunctionSpec("npv", 2, None, _cash_flow_rule(_npv, "npv"), named_markup("NPV")))
register_function(FunctionSpec("irr", 2, None, _cash_flow_rule(_irr, "irr"), named_markup("IRR")))
register_function(FunctionSpec("multiple", 1, None, _cash_flow_rule(_multiple, "multiple"), named_markup("multiple")))
