"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fincalc.config import get_settings
from fincalc.expressions.variables import VariableStore
from fincalc.models import LoanDefinition, PaymentFrequency


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings so environment overrides never leak between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store():
    """Variable store holding only the built-in constants."""
    return VariableStore()


@pytest.fixture
def mortgage():
    """$200k loan at 6% for 30 years, paid monthly."""
    return LoanDefinition(
        principal=200000,
        annual_rate=0.06,
        term_years=30,
        frequency=PaymentFrequency.monthly,
    )
