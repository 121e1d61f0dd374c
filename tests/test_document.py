"""
Tests for equation documents.
"""

import math

import pytest

from fincalc.document import EquationDocument


@pytest.fixture
def document(store):
    return EquationDocument(store)


class TestEvaluation:
    """Test line evaluation and assignment."""

    def test_assignment_feeds_later_lines(self, document, store):
        """Test an assigned variable is visible to the next line."""
        document.add_line("r = 0.05")
        line = document.add_line("fv(r, 10, 0, 1000)")
        assert store.get_value("r") == 0.05
        assert abs(line.value - 1628.894627) < 1e-6
        assert line.error is None

    def test_assignment_line_fields(self, document, store):
        """Test an assignment records its name, markup and result."""
        line = document.add_line("area = pi * 2^2")
        assert line.is_variable
        assert line.variable_name == "area"
        assert line.markup == "\\pi \\cdot {2}^{2}"
        assert store.get_variable("area").expression == "pi * 2^2"

    def test_failing_line(self, document, store):
        """Test an error is recorded and nothing is stored."""
        line = document.add_line("x = 1/")
        assert line.result == "Error"
        assert line.value is None
        assert "Unexpected end" in line.error
        assert not store.has_variable("x")

    def test_undefined_reference(self, document):
        """Test an unknown name is reported on the line."""
        line = document.add_line("y + 1")
        assert "Undefined variable: y" in line.error

    def test_non_finite_result(self, document):
        """Test division by zero shows the error sentinel without failing."""
        line = document.add_line("1/0")
        assert line.value == math.inf
        assert line.result == "Error"
        assert line.error is None

    def test_external_variables_kept(self, document, store):
        """Test recalculation leaves variables the document did not assign."""
        store.set_variable("z", 4)
        document.add_line("z * 2")
        document.recalculate()
        assert store.get_value("z") == 4
        assert document.lines[0].value == 8


    def test_overwritten_variable_restored(self, document, store):
        """Test removing an assignment puts back the value it replaced."""
        store.set_variable("rate", 0.07, expression="0.07")
        document.add_line("rate = 0.05")
        assert store.get_value("rate") == 0.05

        document.recalculate()
        assert store.get_value("rate") == 0.05

        document.remove_line(0)
        assert store.get_value("rate") == 0.07
        assert store.get_variable("rate").expression == "0.07"

    def test_shadowed_constant_restored(self, document, store):
        """Test a constant hidden by an assignment is visible again."""
        document.add_line("pi = 3")
        assert store.get_value("pi") == 3
        document.remove_line(0)
        assert store.get_value("pi") == math.pi


class TestEditing:
    """Test line editing triggers recalculation."""

    def test_remove_assignment(self, document, store):
        """Test removing an assignment unbinds its variable."""
        document.add_line("a = 2")
        document.add_line("a * 3")
        document.remove_line(0)
        assert not store.has_variable("a")
        assert document.lines[0].error is not None

    def test_move_line(self, document):
        """Test reordering resolves a forward reference."""
        document.add_line("b = a + 1")
        document.add_line("a = 1")
        assert document.lines[0].error is not None
        document.move_line(1, 0)
        assert document.lines[1].value == 2

    def test_move_line_out_of_range(self, document):
        """Test invalid indices raise."""
        document.add_line("1")
        with pytest.raises(IndexError):
            document.move_line(0, 3)

    def test_insert_line_clamps(self, document):
        """Test insertion indices are clamped to the document."""
        document.add_line("a * 2")
        document.insert_line(-5, "a = 4")
        document.insert_line(99, "a + 1")
        assert [line.expression for line in document.lines] == ["a = 4", "a * 2", "a + 1"]
        assert document.lines[1].value == 8
        assert document.lines[2].value == 5


class TestExport:
    """Test document export formats."""

    def test_markup(self, document):
        """Test the align block."""
        assert document.to_markup() == ""
        document.add_line("a = 2")
        document.add_line("a * 3")
        assert document.to_markup() == (
            "\\begin{align}\n"
            "a &= 2 = 2 \\\\\n"
            "a \\cdot 3 &= 6\n"
            "\\end{align}"
        )

    def test_plain_text(self, document):
        """Test the plain-text export."""
        document.add_line("a = 2")
        document.add_line("a * 3")
        assert document.to_plain_text() == (
            "Untitled Document\n"
            "=================\n\n"
            "a = 2 = 2\n"
            "a * 3 = 6\n"
        )

    def test_markdown(self, store):
        """Test the markdown export with a subtitle."""
        document = EquationDocument(store, title="Loan", subtitle="Monthly")
        document.add_line("x = 1/")
        assert document.to_markdown() == "# Loan\n\n## Monthly\n\n**x** = 1/ = Error\n\n"

    def test_latex_document(self, document):
        """Test the standalone LaTeX export."""
        document.add_line("a = 2")
        latex = document.to_latex_document()
        assert latex.startswith("\\documentclass{article}")
        assert "\\title{Untitled Document}" in latex
        assert "a &= 2 = 2" in latex
        assert latex.rstrip().endswith("\\end{document}")

    def test_lines_serialize(self, document):
        """Test lines dump to plain dictionaries."""
        document.add_line("a = 2")
        dumped = document.lines[0].model_dump()
        assert dumped["variable_name"] == "a"
        assert dumped["value"] == 2
