"""
Tests for engine settings.
"""

import math

from fincalc.config import EngineSettings, get_settings
from fincalc.expressions.evaluator import evaluate


class TestSettings:
    """Test defaults and environment overrides."""

    def test_defaults(self):
        """Test the documented defaults."""
        settings = EngineSettings()
        assert settings.newton_initial_guess == 0.1
        assert settings.newton_tolerance == 1e-9
        assert settings.newton_max_iterations == 100
        assert settings.balance_epsilon == 0.01
        assert settings.factorial_limit == 170

    def test_cached(self):
        """Test settings are built once."""
        assert get_settings() is get_settings()

    def test_environment_override(self, monkeypatch):
        """Test FINCALC_ variables override defaults."""
        monkeypatch.setenv("FINCALC_BALANCE_EPSILON", "0.5")
        monkeypatch.setenv("FINCALC_NEWTON_MAX_ITERATIONS", "25")
        settings = get_settings()
        assert settings.balance_epsilon == 0.5
        assert settings.newton_max_iterations == 25

    def test_factorial_limit_applies(self, monkeypatch):
        """Test the factorial limit is read at evaluation time."""
        monkeypatch.setenv("FINCALC_FACTORIAL_LIMIT", "200")
        assert evaluate("171!").value == math.inf
