"""
Tests for NPV and IRR calculations.
"""

import pytest

from fincalc.calculations.cashflows import calculate_irr, calculate_multiple, calculate_npv
from fincalc.errors import InvalidInputError


class TestIRRCalculations:
    """Test IRR calculation functions."""

    def test_calculate_irr_simple(self):
        """Test IRR calculation with simple cash flows."""
        # Investment of 100, returns of 110 after 1 year = 10% return
        cash_flows = [-100, 110]
        irr = calculate_irr(cash_flows)
        assert abs(irr - 0.10) < 0.001

    def test_calculate_irr_multi_period(self):
        """Test IRR with multiple periods."""
        # Investment of 100, annual returns of 20, sale of 100 at end
        cash_flows = [-100, 20, 20, 20, 20, 120]
        irr = calculate_irr(cash_flows)
        assert abs(irr - 0.20) < 0.01  # ~20% IRR

    def test_irr_negative_returns(self):
        """Test IRR with negative return scenario."""
        cash_flows = [-100, 40, 40, 10]  # Total return < investment
        irr = calculate_irr(cash_flows)
        assert irr < 0  # Should be negative IRR

    def test_irr_zeroes_npv(self):
        """Test NPV at the IRR is zero."""
        cash_flows = [-1000, 300, 400, 500]
        irr = calculate_irr(cash_flows)
        assert abs(calculate_npv(cash_flows, irr)) < 1e-3

    def test_irr_requires_sign_change(self):
        """Test all-positive flows have no IRR."""
        with pytest.raises(InvalidInputError):
            calculate_irr([100, 110])

    def test_irr_requires_two_flows(self):
        """Test a single flow has no IRR."""
        with pytest.raises(InvalidInputError):
            calculate_irr([-100])


class TestNPV:
    """Test NPV and multiple."""

    def test_calculate_npv(self):
        """Test NPV calculation."""
        cash_flows = [-100, 50, 50, 50]
        npv = calculate_npv(cash_flows, 0.10)
        # NPV should be positive since returns exceed cost
        assert npv > 0
        assert abs(npv - 24.3426) < 1e-4

    def test_npv_at_zero_rate(self):
        """Test NPV without discounting is the plain sum."""
        assert calculate_npv([-100, 60, 60], 0) == 20

    def test_multiple(self):
        """Test equity multiple."""
        assert calculate_multiple([-100, 50, 150]) == 2.0

    def test_multiple_without_investment(self):
        """Test a multiple needs an outflow."""
        with pytest.raises(InvalidInputError):
            calculate_multiple([100, 50])
