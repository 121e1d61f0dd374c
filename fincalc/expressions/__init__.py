"""
Expression Engine

Tokenizer, parser, evaluator and markup renderer for calculator
expressions, plus the variable store identifiers resolve against.
"""

from fincalc.expressions.evaluator import EvaluationResult, Evaluator, evaluate
from fincalc.expressions.functions import FunctionSpec, get_function, register_function
from fincalc.expressions.markup import to_markup
from fincalc.expressions.parser import parse
from fincalc.expressions.variables import BUILTIN_CONSTANTS, VariableStore

__all__ = [
    "BUILTIN_CONSTANTS",
    "EvaluationResult",
    "Evaluator",
    "FunctionSpec",
    "VariableStore",
    "evaluate",
    "get_function",
    "parse",
    "register_function",
    "to_markup",
]
