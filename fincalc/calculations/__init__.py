"""
Financial Calculation Engine

Time-value-of-money solving, loan amortization and cash-flow metrics.
"""

from fincalc.calculations import annuity, cashflows, tvm, amortization

__all__ = ["annuity", "cashflows", "tvm", "amortization"]
