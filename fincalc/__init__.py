"""
fincalc

Expression evaluation, time-value-of-money solving, loan amortization and
formula autocomplete for a financial calculator.
"""

from fincalc.autocomplete import Suggestion, get_suggestions
from fincalc.calculations.amortization import generate_schedule
from fincalc.calculations.tvm import solve
from fincalc.document import EquationDocument, EquationLine
from fincalc.errors import (
    ConvergenceError,
    DomainError,
    ExpressionError,
    ExpressionSyntaxError,
    FinCalcError,
    InvalidInputError,
    NonAmortizingLoanError,
    UndefinedFunctionError,
    UndefinedVariableError,
    UnsolvableError,
)
from fincalc.expressions import EvaluationResult, VariableStore, evaluate, parse, to_markup
from fincalc.models import (
    AmortizationResult,
    AmortizationRow,
    LoanDefinition,
    PaymentFrequency,
    TvmInputs,
    TvmResult,
    TvmVariable,
    Variable,
)

__version__ = "0.1.0"

__all__ = [
    "AmortizationResult",
    "AmortizationRow",
    "ConvergenceError",
    "DomainError",
    "EquationDocument",
    "EquationLine",
    "EvaluationResult",
    "ExpressionError",
    "ExpressionSyntaxError",
    "FinCalcError",
    "InvalidInputError",
    "LoanDefinition",
    "NonAmortizingLoanError",
    "PaymentFrequency",
    "Suggestion",
    "TvmInputs",
    "TvmResult",
    "TvmVariable",
    "UndefinedFunctionError",
    "UndefinedVariableError",
    "UnsolvableError",
    "Variable",
    "VariableStore",
    "evaluate",
    "generate_schedule",
    "get_suggestions",
    "parse",
    "solve",
    "to_markup",
]
