"""
Variable Store

Name -> value mapping used to resolve identifiers in expressions. Built-in
constants are seeded at creation and can be shadowed by user variables of
the same name; the most recent write wins. Removing such a user variable
makes the constant visible again.

The store is not synchronized. Callers that share one store between
threads must serialize writes themselves.
"""

import math
from typing import Dict, List, Optional

from fincalc.errors import InvalidInputError, UndefinedVariableError
from fincalc.expressions.markup import number_markup, render_name, strip_delimiters
from fincalc.models import Variable

BUILTIN_CONSTANTS: Dict[str, float] = {
    "pi": math.pi,
    "π": math.pi,
    "tau": math.tau,
    "e": math.e,
    "sqrt2": math.sqrt(2),
    "phi": (1 + math.sqrt(5)) / 2,  # Golden ratio
    "φ": (1 + math.sqrt(5)) / 2,
    "euler": 0.57721566490153286061,  # Euler-Mascheroni constant
    "γ": 0.57721566490153286061,
    "inf": math.inf,
    "∞": math.inf,
    "c": 299792458.0,  # Speed of light in m/s
    "h": 6.62607015e-34,  # Planck constant
    "k": 1.380649e-23,  # Boltzmann constant
    "G": 6.67430e-11,  # Gravitational constant
    "R": 8.314462618,  # Universal gas constant
}


class VariableStore:
    """Holds user variables on top of the built-in constants."""

    def __init__(self, constants: Optional[Dict[str, float]] = None):
        self._constants: Dict[str, Variable] = {
            name: Variable(name=name, value=value, expression=name)
            for name, value in (BUILTIN_CONSTANTS if constants is None else constants).items()
        }
        self._variables: Dict[str, Variable] = {}

    def set_variable(
        self,
        name: str,
        value: float,
        expression: Optional[str] = None,
        markup: Optional[str] = None,
    ) -> Variable:
        """Insert or overwrite a user variable."""
        if not name:
            raise InvalidInputError("Variable name must not be empty")
        variable = Variable(
            name=name, value=value, expression=expression, markup=markup
        )
        self._variables[name] = variable
        return variable

    def get_value(self, name: str) -> float:
        return self.get_variable(name).value

    def get_variable(self, name: str) -> Variable:
        """Return the user variable, else the built-in constant."""
        variable = self._variables.get(name) or self._constants.get(name)
        if variable is None:
            raise UndefinedVariableError(name)
        return variable

    def get_user_variable(self, name: str) -> Optional[Variable]:
        return self._variables.get(name)

    def restore_variable(self, variable: Variable) -> None:
        """Put back a previously captured user variable as it was."""
        self._variables[variable.name] = variable

    def has_variable(self, name: str) -> bool:
        return name in self._variables or name in self._constants

    def is_builtin(self, name: str) -> bool:
        return name in self._constants

    def remove_variable(self, name: str) -> bool:
        """Remove a user variable. Built-in constants cannot be removed."""
        return self._variables.pop(name, None) is not None

    def clear_user_variables(self) -> None:
        self._variables.clear()

    def list_user_variables(self) -> List[Variable]:
        """User variables sorted by name; built-in constants are excluded."""
        return [self._variables[name] for name in sorted(self._variables)]

    def list_all_variables(self) -> List[Variable]:
        """Every visible variable sorted by name, user overrides included."""
        return [self.get_variable(name) for name in self.variable_names()]

    def variable_names(self) -> List[str]:
        return sorted(set(self._variables) | set(self._constants))

    def variables_markup(self) -> str:
        """Render the user variables as an align block."""
        variables = self.list_user_variables()
        if not variables:
            return ""

        lines = []
        for variable in variables:
            name = render_name(variable.name)
            value = number_markup(variable.value)
            markup = strip_delimiters(variable.markup or "")
            if markup and markup != name and markup != value:
                lines.append(f"{name} &= {markup} = {value}")
            else:
                lines.append(f"{name} &= {value}")
        return "\\begin{align}\n" + " \\\\\n".join(lines) + "\n\\end{align}"
