"""
LaTeX-like markup for expressions.

The renderer walks the same tree the evaluator uses, so what is displayed
is exactly what was computed. Output is inline math wrapped in ``$...$``.
"""

import math
from typing import Dict

from fincalc.errors import ExpressionError
from fincalc.expressions.functions import get_function
from fincalc.expressions.parser import (
    BinaryOp,
    FunctionCall,
    Literal,
    Node,
    UnaryOp,
    VariableRef,
    parse,
)

GREEK_LETTERS = (
    "alpha", "beta", "gamma", "delta", "epsilon", "zeta", "eta", "theta",
    "iota", "kappa", "lambda", "mu", "nu", "xi", "pi", "rho", "sigma", "tau",
    "upsilon", "phi", "chi", "psi", "omega",
    "Gamma", "Delta", "Theta", "Lambda", "Xi", "Pi", "Sigma", "Upsilon",
    "Phi", "Psi", "Omega",
)

UNICODE_SYMBOLS: Dict[str, str] = {
    "α": "\\alpha", "β": "\\beta", "γ": "\\gamma", "δ": "\\delta",
    "ε": "\\epsilon", "θ": "\\theta", "λ": "\\lambda", "μ": "\\mu",
    "π": "\\pi", "ρ": "\\rho", "σ": "\\sigma", "τ": "\\tau", "φ": "\\phi",
    "ω": "\\omega", "Δ": "\\Delta", "Σ": "\\Sigma", "Ω": "\\Omega",
    "∞": "\\infty",
}

SPECIAL_CHARACTERS: Dict[str, str] = {
    "\\": "\\backslash{}",
    "{": "\\{",
    "}": "\\}",
    "$": "\\$",
    "&": "\\&",
    "#": "\\#",
    "%": "\\%",
    "_": "\\_",
    "^": "\\^{}",
    "~": "\\~{}",
}

# Binding strength, higher binds tighter
PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, "^": 4}
UNARY_MINUS_PRECEDENCE = 3
ATOM_PRECEDENCE = 5


def escape(text: str) -> str:
    """Backslash-escape characters that are special in the markup."""
    return "".join(SPECIAL_CHARACTERS.get(ch, ch) for ch in text)


def _wrap(text: str) -> str:
    return "\\left(" + text + "\\right)"


def render_name(name: str) -> str:
    """
    Render an identifier.

    Greek names become their commands (``pi`` -> ``\\pi``), the part after
    the first underscore becomes a subscript and other multi-letter names
    are set upright.
    """
    if "_" in name.strip("_"):
        head, tail = name.strip("_").split("_", 1)
        return render_name(head) + "_{" + render_name(tail) + "}"

    if name in GREEK_LETTERS:
        return "\\" + name
    if name in UNICODE_SYMBOLS:
        return UNICODE_SYMBOLS[name]
    if len(name) == 1:
        return escape(name)
    return "\\mathrm{" + escape(name) + "}"


def number_markup(value: float) -> str:
    if math.isnan(value):
        return "\\mathrm{NaN}"
    if math.isinf(value):
        return "\\infty" if value > 0 else "-\\infty"

    text = "%.15g" % value
    if "e" in text:
        mantissa, exponent = text.split("e")
        return mantissa + " \\times 10^{" + str(int(exponent)) + "}"
    return text


def precedence(node: Node) -> int:
    if isinstance(node, BinaryOp):
        return PRECEDENCE[node.op]
    if isinstance(node, UnaryOp) and node.op == "-":
        return UNARY_MINUS_PRECEDENCE
    return ATOM_PRECEDENCE


def render(node: Node) -> str:
    """Render a tree without the surrounding ``$`` delimiters."""
    if isinstance(node, Literal):
        return number_markup(node.value)

    if isinstance(node, VariableRef):
        return render_name(node.name)

    if isinstance(node, UnaryOp):
        operand = render(node.operand)
        if node.op == "-":
            if precedence(node.operand) <= UNARY_MINUS_PRECEDENCE:
                operand = _wrap(operand)
            return "-" + operand
        if not isinstance(node.operand, (Literal, VariableRef)):
            operand = _wrap(operand)
        return operand + "!"

    if isinstance(node, BinaryOp):
        return _render_binary(node)

    if isinstance(node, FunctionCall):
        return _render_call(node)

    raise TypeError(f"Unknown node type: {type(node).__name__}")


def _render_binary(node: BinaryOp) -> str:
    left = render(node.left)
    right = render(node.right)

    if node.op == "/":
        return "\\frac{" + left + "}{" + right + "}"

    if node.op == "^":
        if precedence(node.left) < ATOM_PRECEDENCE or "^" in left or "\\times" in left:
            left = _wrap(left)
        return "{" + left + "}^{" + right + "}"

    own = PRECEDENCE[node.op]
    if precedence(node.left) < own:
        left = _wrap(left)
    # Left-associative: a right operand of equal strength needs parentheses
    if precedence(node.right) <= own or (isinstance(node.right, UnaryOp) and node.right.op == "-"):
        right = _wrap(right)

    symbol = " \\cdot " if node.op == "*" else f" {node.op} "
    return left + symbol + right


def _render_call(node: FunctionCall) -> str:
    args = [render(arg) for arg in node.args]
    spec = get_function(node.name)
    if spec is not None and spec.markup is not None:
        return spec.markup(args, node.args)
    return "\\operatorname{" + escape(node.name) + "}\\left(" + ", ".join(args) + "\\right)"


def strip_delimiters(markup: str) -> str:
    """Remove one pair of surrounding inline-math delimiters, if present."""
    if len(markup) >= 2 and markup.startswith("$") and markup.endswith("$"):
        return markup[1:-1]
    return markup


def to_markup(source: str) -> str:
    """
    Convert an expression to inline markup.

    Never raises: text that does not parse is echoed back escaped.
    """
    try:
        tree = parse(source)
    except ExpressionError:
        return "$" + escape(source.strip()) + "$"
    return "$" + render(tree) + "$"
