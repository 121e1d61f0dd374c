"""
Engine configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from pydantic_settings import BaseSettings


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("FINCALC_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class EngineSettings(BaseSettings):
    """Numeric engine settings loaded from environment variables."""

    # TVM rate solver (Newton-Raphson)
    newton_initial_guess: float = 0.1
    newton_tolerance: float = 1e-9
    newton_max_iterations: int = 100

    # Amortization
    balance_epsilon: float = 0.01

    # Expression evaluation
    factorial_limit: int = 170
    integral_intervals: int = 1000
    max_series_terms: int = 100_000

    # Autocomplete
    autocomplete_limit: int = 10

    class Config:
        env_prefix = "FINCALC_"
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> EngineSettings:
    """Get cached settings instance."""
    return EngineSettings()
