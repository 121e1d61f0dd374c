"""
Error taxonomy for the calculation engine.

Every error is raised synchronously by the failing operation and carries a
human-readable message. Expression errors also carry the character offset
of the offending input when it is known.
"""

from typing import Optional


class FinCalcError(ValueError):
    """Base class for all engine errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ExpressionError(FinCalcError):
    """Failure while parsing or evaluating an expression."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.position = position

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (at position {self.position})"


class ExpressionSyntaxError(ExpressionError):
    """Malformed expression: unbalanced parentheses, unexpected token, bad arity."""


class UndefinedVariableError(ExpressionError):
    """Identifier is neither a built-in constant nor a user variable."""

    def __init__(self, name: str, position: Optional[int] = None):
        super().__init__(f"Undefined variable: {name}", position)
        self.name = name


class UndefinedFunctionError(UndefinedVariableError):
    """Identifier called as a function is not in the function table."""

    def __init__(self, name: str, position: Optional[int] = None):
        super().__init__(name, position)
        self.message = f"Undefined function: {name}"
        self.args = (self.message,)


class DomainError(ExpressionError):
    """Mathematically invalid operation, e.g. factorial of a negative number."""


class InvalidInputError(FinCalcError):
    """Precondition of a calculation request was violated."""


class UnsolvableError(FinCalcError):
    """The requested unknown has no solution for the given inputs."""


class ConvergenceError(FinCalcError):
    """An iterative solver did not converge within its iteration bound."""


class NonAmortizingLoanError(FinCalcError):
    """The periodic payment does not cover the interest of the first period."""

    def __init__(self, message: str, interest: float, payment: float):
        super().__init__(message)
        self.interest = interest
        self.payment = payment
