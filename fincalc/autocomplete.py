"""
Formula Autocomplete

Suggestions over a fixed catalog of formulas, functions and constants.
Lookups are pure; the catalog is an immutable module-level tuple.
"""

import enum
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from fincalc.config import get_settings


class Category(str, enum.Enum):
    GEOMETRY = "Geometry"
    CALCULUS = "Calculus"
    ALGEBRA = "Algebra"
    TRIGONOMETRY = "Trigonometry"
    STATISTICS = "Statistics"
    PHYSICS = "Physics"
    FINANCE = "Finance"
    CONSTANTS = "Constants"
    FUNCTIONS = "Functions"


@dataclass(frozen=True)
class Suggestion:
    title: str
    subtitle: str
    category: Category
    insertion_text: str
    completion: str
    markup: str


def _formula(title, subtitle, category, text, markup) -> Suggestion:
    return Suggestion(title, subtitle, category, text, text, markup)


def _function(title, subtitle, name, markup) -> Suggestion:
    return Suggestion(title, subtitle, Category.FUNCTIONS, name + "(", name + "(", markup)


def _constant(title, subtitle, symbol, markup) -> Suggestion:
    return Suggestion(title, subtitle, Category.CONSTANTS, symbol, symbol, markup)


# =============================================================================
# CATALOG
# =============================================================================

FORMULAS = (
    _formula("Area of Circle", "A = πr²", Category.GEOMETRY,
             "pi * r^2", "A = \\pi r^2"),
    _formula("Volume of Sphere", "V = (4/3)πr³", Category.GEOMETRY,
             "(4/3) * pi * r^3", "V = \\frac{4}{3}\\pi r^3"),
    _formula("Surface Area of Sphere", "A = 4πr²", Category.GEOMETRY,
             "4 * pi * r^2", "A = 4\\pi r^2"),
    _formula("Volume of Cylinder", "V = πr²h", Category.GEOMETRY,
             "pi * r^2 * h", "V = \\pi r^2 h"),
    _formula("Pythagorean Theorem", "c² = a² + b²", Category.GEOMETRY,
             "sqrt(a^2 + b^2)", "c = \\sqrt{a^2 + b^2}"),
    _formula("Derivative of x^n", "d/dx[x^n] = nx^(n-1)", Category.CALCULUS,
             "n * x^(n-1)", "\\frac{d}{dx}[x^n] = nx^{n-1}"),
    _formula("Definite Integral", "∫ f(x) dx from a to b", Category.CALCULUS,
             "integral(x^2, x, a, b)", "\\int_{a}^{b} x^2 \\, dx"),
    _formula("Quadratic Formula", "x = (-b ± √(b²-4ac))/2a", Category.ALGEBRA,
             "(-b + sqrt(b^2 - 4*a*c))/(2*a)", "x = \\frac{-b \\pm \\sqrt{b^2 - 4ac}}{2a}"),
    _formula("Binomial Theorem", "(a+b)^n = Σ(n choose k)a^(n-k)b^k", Category.ALGEBRA,
             "sum(binomial(n, k) * a^(n-k) * b^k, k, 0, n)",
             "(a+b)^n = \\sum_{k=0}^{n} \\binom{n}{k} a^{n-k} b^k"),
    _formula("Pythagorean Identity", "sin²θ + cos²θ = 1", Category.TRIGONOMETRY,
             "sin(θ)^2 + cos(θ)^2", "\\sin^2\\theta + \\cos^2\\theta = 1"),
    _formula("Law of Cosines", "c² = a² + b² - 2ab·cos(C)", Category.TRIGONOMETRY,
             "sqrt(a^2 + b^2 - 2*a*b*cos(C))", "c^2 = a^2 + b^2 - 2ab\\cos C"),
    _formula("Double Angle Formula (sin)", "sin(2θ) = 2sin(θ)cos(θ)", Category.TRIGONOMETRY,
             "2*sin(θ)*cos(θ)", "\\sin(2\\theta) = 2\\sin\\theta\\cos\\theta"),
    _formula("Normal Distribution", "f(x) = (1/σ√(2π))e^(-½((x-μ)/σ)²)", Category.STATISTICS,
             "(1/(σ*sqrt(2*π)))*exp(-0.5*((x-μ)/σ)^2)",
             "f(x) = \\frac{1}{\\sigma\\sqrt{2\\pi}} e^{-\\frac{1}{2}\\left(\\frac{x-\\mu}{\\sigma}\\right)^2}"),
    _formula("Kinetic Energy", "KE = ½mv²", Category.PHYSICS,
             "0.5 * m * v^2", "KE = \\frac{1}{2}mv^2"),
    _formula("Einstein's Mass-Energy", "E = mc²", Category.PHYSICS,
             "m * c^2", "E = mc^2"),
    _formula("Coulomb's Law", "F = k(q₁q₂)/r²", Category.PHYSICS,
             "k * (q1 * q2) / r^2", "F = k\\frac{q_1 q_2}{r^2}"),
    _formula("Compound Interest", "A = P(1 + r/n)^(nt)", Category.FINANCE,
             "P * (1 + r/n)^(n*t)", "A = P\\left(1 + \\frac{r}{n}\\right)^{nt}"),
    _formula("Present Value", "PV = FV/(1+r)^n", Category.FINANCE,
             "FV / (1 + r)^n", "PV = \\frac{FV}{(1+r)^n}"),
    _formula("Loan Payment", "PMT = P·r/(1-(1+r)^-n)", Category.FINANCE,
             "P * r / (1 - (1 + r)^(-n))", "PMT = \\frac{P r}{1 - (1+r)^{-n}}"),
)

FUNCTIONS = (
    _function("Sine", "sin(x)", "sin", "\\sin(x)"),
    _function("Cosine", "cos(x)", "cos", "\\cos(x)"),
    _function("Tangent", "tan(x)", "tan", "\\tan(x)"),
    _function("Natural Logarithm", "ln(x)", "ln", "\\ln(x)"),
    _function("Logarithm", "log(x), log(x, b)", "log", "\\log_{10}(x)"),
    _function("Square Root", "√x", "sqrt", "\\sqrt{x}"),
    _function("Absolute Value", "|x|", "abs", "|x|"),
    _function("Factorial", "n!", "factorial", "n!"),
    _function("Summation", "Σ", "sum", "\\sum"),
    _function("Integral", "∫ f(x) dx", "integral", "\\int"),
    _function("Future Value", "fv(rate, n, pmt, pv)", "fv", "\\operatorname{FV}"),
    _function("Present Value of Annuity", "pv(rate, n, pmt, fv)", "pv", "\\operatorname{PV}"),
    _function("Payment", "pmt(rate, n, pv)", "pmt", "\\operatorname{PMT}"),
    _function("Net Present Value", "npv(rate, cf0, cf1, ...)", "npv", "\\operatorname{NPV}"),
    _function("Internal Rate of Return", "irr(cf0, cf1, ...)", "irr", "\\operatorname{IRR}"),
)

CONSTANTS = (
    _constant("Pi", "π ≈ 3.14159", "π", "\\pi"),
    _constant("Euler's Number", "e ≈ 2.71828", "e", "e"),
    _constant("Golden Ratio", "φ ≈ 1.618", "φ", "\\phi"),
    _constant("Speed of Light", "c = 299,792,458 m/s", "c", "c"),
)

CATALOG = FORMULAS + FUNCTIONS + CONSTANTS

PARTIAL_IDENTIFIER = re.compile(r"[A-Za-z]+$")


# =============================================================================
# LOOKUPS
# =============================================================================


def get_suggestions(partial_input: str, limit: Optional[int] = None) -> List[Suggestion]:
    """
    Suggestions for partially typed input.

    Title-prefix matches come first, then entries whose title, subtitle or
    completion contains the input. Matching is case-insensitive and ties
    keep catalog order.

    Args:
        partial_input: Text typed so far
        limit: Maximum number of suggestions (defaults to settings)

    Returns:
        At most ``limit`` unique suggestions; empty for blank input
    """
    if limit is None:
        limit = get_settings().autocomplete_limit

    query = partial_input.strip().lower()
    if not query or limit <= 0:
        return []

    prefix_matches = [s for s in CATALOG if s.title.lower().startswith(query)]
    substring_matches = [
        s for s in CATALOG
        if not s.title.lower().startswith(query)
        and (
            query in s.title.lower()
            or query in s.subtitle.lower()
            or query in s.completion.lower()
        )
    ]

    results = []
    seen = set()
    for suggestion in prefix_matches + substring_matches:
        if suggestion.title in seen:
            continue
        seen.add(suggestion.title)
        results.append(suggestion)
        if len(results) == limit:
            break
    return results


def suggestions_for_category(category: Category) -> List[Suggestion]:
    return [s for s in CATALOG if s.category == category]


def all_suggestions() -> List[Suggestion]:
    return list(CATALOG)


def function_completions(text: str, cursor: int) -> List[Suggestion]:
    """Functions matching the identifier being typed just before ``cursor``."""
    match = PARTIAL_IDENTIFIER.search(text[:cursor])
    if match is None:
        return []

    partial = match.group(0).lower()
    return [
        s for s in FUNCTIONS
        if s.title.lower().startswith(partial) or s.completion.lower().startswith(partial)
    ]


def variable_completions(names: Iterable[str], prefix: str) -> List[str]:
    """Names starting with ``prefix``, case-insensitive, in the given order."""
    lowered = prefix.lower()
    return [name for name in names if name.lower().startswith(lowered)]
