"""
Equation Document

An ordered worksheet of expression lines evaluated top to bottom against
one variable store. A line of the form ``name = expression`` assigns its
value so that later lines can refer to it.
"""

import logging
import re
from typing import Dict, List, Optional

from pydantic import BaseModel

from fincalc.errors import FinCalcError
from fincalc.expressions.evaluator import Evaluator
from fincalc.expressions.markup import render_name, strip_delimiters, to_markup
from fincalc.expressions.variables import VariableStore
from fincalc.formatting import ERROR_TEXT, format_number
from fincalc.models import Variable

logger = logging.getLogger(__name__)

ASSIGNMENT = re.compile(r"^\s*([A-Za-z_]\w*)\s*=\s*(.+)$", re.DOTALL)


class EquationLine(BaseModel):
    """One line of a document and the outcome of its last evaluation."""

    expression: str
    markup: str = ""
    result: str = ""
    value: Optional[float] = None
    is_variable: bool = False
    variable_name: str = ""
    error: Optional[str] = None


class EquationDocument:
    """Lines evaluated in order; assignments write into the shared store."""

    def __init__(
        self,
        store: Optional[VariableStore] = None,
        title: str = "Untitled Document",
        subtitle: str = "",
    ):
        self.store = store if store is not None else VariableStore()
        self.title = title
        self.subtitle = subtitle
        self.lines: List[EquationLine] = []
        # Names assigned by the document -> the user variable they replaced
        self._assigned: Dict[str, Optional[Variable]] = {}

    # =========================================================================
    # EDITING
    # =========================================================================

    def add_line(self, expression: str) -> EquationLine:
        line = EquationLine(expression=expression)
        self.lines.append(line)
        self.recalculate()
        return line

    def insert_line(self, index: int, expression: str) -> EquationLine:
        """Insert before ``index``; out-of-range indices are clamped."""
        index = max(0, min(index, len(self.lines)))
        line = EquationLine(expression=expression)
        self.lines.insert(index, line)
        self.recalculate()
        return line

    def remove_line(self, index: int) -> EquationLine:
        """
        Remove and return the line at ``index``.

        Raises:
            IndexError: If there is no such line
        """
        line = self.lines.pop(index)
        self.recalculate()
        return line

    def move_line(self, source: int, destination: int) -> None:
        if not (0 <= source < len(self.lines) and 0 <= destination < len(self.lines)):
            raise IndexError(f"Cannot move line {source} to {destination}")
        line = self.lines.pop(source)
        self.lines.insert(destination, line)
        self.recalculate()

    # =========================================================================
    # EVALUATION
    # =========================================================================

    def recalculate(self) -> None:
        """
        Re-evaluate every line from the top.

        Variables assigned by a previous pass are removed first so that
        deleted or reordered assignments do not leave stale values behind.
        A user variable the document had overwritten is put back.
        """
        for name, previous in self._assigned.items():
            self.store.remove_variable(name)
            if previous is not None:
                self.store.restore_variable(previous)
        self._assigned = {}

        evaluator = Evaluator(self.store)
        failures = 0
        for line in self.lines:
            self._evaluate_line(evaluator, line)
            if line.error is not None:
                failures += 1

        logger.debug(f"Recalculated {len(self.lines)} lines, {failures} failed")

    def _evaluate_line(self, evaluator: Evaluator, line: EquationLine) -> None:
        match = ASSIGNMENT.match(line.expression)
        if match:
            name, source = match.group(1), match.group(2).strip()
        else:
            name, source = "", line.expression.strip()

        line.is_variable = bool(name)
        line.variable_name = name

        try:
            outcome = evaluator.evaluate(source)
        except FinCalcError as exc:
            line.markup = strip_delimiters(to_markup(source))
            line.result = ERROR_TEXT
            line.value = None
            line.error = str(exc)
            return

        line.markup = outcome.markup
        line.value = outcome.value
        line.result = format_number(outcome.value)
        line.error = None

        if name:
            if name not in self._assigned:
                self._assigned[name] = self.store.get_user_variable(name)
            self.store.set_variable(
                name, outcome.value, expression=source, markup=outcome.markup
            )

    # =========================================================================
    # EXPORT
    # =========================================================================

    def _align_rows(self) -> List[str]:
        rows = []
        for line in self.lines:
            if not line.markup:
                continue
            if line.is_variable:
                rows.append(f"{render_name(line.variable_name)} &= {line.markup} = {line.result}")
            else:
                rows.append(f"{line.markup} &= {line.result}")
        return rows

    def to_markup(self) -> str:
        """All lines as one align block, empty for an empty document."""
        rows = self._align_rows()
        if not rows:
            return ""
        return "\\begin{align}\n" + " \\\\\n".join(rows) + "\n\\end{align}"

    def to_latex_document(self) -> str:
        title = self.title
        if self.subtitle:
            title += "\\\\ \\large " + self.subtitle

        parts = [
            "\\documentclass{article}",
            "\\usepackage{amsmath}",
            "\\usepackage{amssymb}",
            "\\begin{document}",
            "",
            "\\title{" + title + "}",
            "\\date{}",
            "\\maketitle",
            "",
        ]
        body = self.to_markup()
        if body:
            parts.append(body)
            parts.append("")
        parts.append("\\end{document}")
        return "\n".join(parts) + "\n"

    def _text_line(self, line: EquationLine, bold_names: bool) -> str:
        if line.is_variable:
            source = ASSIGNMENT.match(line.expression).group(2).strip()
            name = f"**{line.variable_name}**" if bold_names else line.variable_name
            text = f"{name} = {source}"
        else:
            text = line.expression.strip()
        if line.result:
            text += f" = {line.result}"
        return text

    def to_markdown(self) -> str:
        text = f"# {self.title}\n\n"
        if self.subtitle:
            text += f"## {self.subtitle}\n\n"
        for line in self.lines:
            text += self._text_line(line, bold_names=True) + "\n\n"
        return text

    def to_plain_text(self) -> str:
        text = f"{self.title}\n" + "=" * len(self.title) + "\n\n"
        if self.subtitle:
            text += f"{self.subtitle}\n\n"
        for line in self.lines:
            text += self._text_line(line, bold_names=False) + "\n"
        return text
