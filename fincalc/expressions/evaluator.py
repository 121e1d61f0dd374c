"""
Expression evaluation against a variable store.
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import numpy as np

from fincalc.errors import (
    ExpressionError,
    ExpressionSyntaxError,
    UndefinedFunctionError,
    UndefinedVariableError,
)
from fincalc.expressions.functions import factorial_value, get_function
from fincalc.expressions.markup import render
from fincalc.expressions.parser import (
    BinaryOp,
    FunctionCall,
    Literal,
    Node,
    UnaryOp,
    VariableRef,
    parse,
)
from fincalc.expressions.variables import VariableStore

BINARY_OPERATORS = {
    "+": np.add,
    "-": np.subtract,
    "*": np.multiply,
    "/": np.divide,
    "^": np.power,
}


@dataclass(frozen=True)
class EvaluationResult:
    value: float
    markup: str


class Evaluator:
    """Evaluates expression trees, resolving identifiers through a store."""

    def __init__(self, store: Optional[VariableStore] = None):
        self.store = store if store is not None else VariableStore()

    def evaluate(self, source: str) -> EvaluationResult:
        """
        Parse and evaluate an expression.

        Args:
            source: Expression text, e.g. "fv(0.05, 10, 0, 1000)"

        Returns:
            EvaluationResult with the value and the markup of the same tree

        Raises:
            ExpressionSyntaxError: If the source is malformed
            UndefinedVariableError: If an identifier cannot be resolved
            DomainError: If an operation is mathematically invalid
        """
        tree = parse(source)
        value = self.evaluate_tree(tree)
        return EvaluationResult(value=value, markup=render(tree))

    def evaluate_tree(self, tree: Node) -> float:
        with np.errstate(all="ignore"):
            return float(self.evaluate_node(tree, {}))

    def evaluate_node(self, node: Node, bindings: Mapping[str, float]) -> np.float64:
        """Evaluate one node; ``bindings`` shadow the store (index variables)."""
        if isinstance(node, Literal):
            return np.float64(node.value)

        if isinstance(node, VariableRef):
            if node.name in bindings:
                return bindings[node.name]
            try:
                return np.float64(self.store.get_value(node.name))
            except UndefinedVariableError:
                raise UndefinedVariableError(node.name, node.position) from None

        if isinstance(node, UnaryOp):
            operand = self.evaluate_node(node.operand, bindings)
            if node.op == "-":
                return np.negative(operand)
            return np.float64(factorial_value(operand, node.position))

        if isinstance(node, BinaryOp):
            left = self.evaluate_node(node.left, bindings)
            right = self.evaluate_node(node.right, bindings)
            return np.float64(BINARY_OPERATORS[node.op](left, right))

        if isinstance(node, FunctionCall):
            return self._call(node, bindings)

        raise TypeError(f"Unknown node type: {type(node).__name__}")

    def _call(self, call: FunctionCall, bindings: Mapping[str, float]) -> np.float64:
        spec = get_function(call.name)
        if spec is None:
            raise UndefinedFunctionError(call.name, call.position)

        if not spec.accepts(len(call.args)):
            raise ExpressionSyntaxError(
                f"{call.name}() takes {spec.arity_text()} argument(s), "
                f"got {len(call.args)}",
                call.position,
            )

        try:
            if spec.lazy:
                return np.float64(spec.rule(self, call, bindings))
            args = [self.evaluate_node(arg, bindings) for arg in call.args]
            return np.float64(spec.rule(*args))
        except ExpressionError as exc:
            if exc.position is None:
                exc.position = call.position
            raise


_default_store: Optional[VariableStore] = None


def evaluate(source: str, store: Optional[VariableStore] = None) -> EvaluationResult:
    """
    Evaluate an expression.

    Without a store, identifiers resolve against the built-in constants only.
    """
    global _default_store
    if store is None:
        if _default_store is None:
            _default_store = VariableStore()
        store = _default_store
    return Evaluator(store).evaluate(source)


def evaluate_value(source: str, variables: Optional[Dict[str, float]] = None) -> float:
    """Evaluate with a throwaway store holding ``variables``."""
    store = VariableStore()
    for name, value in (variables or {}).items():
        store.set_variable(name, value)
    return Evaluator(store).evaluate(source).value
