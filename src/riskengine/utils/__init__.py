"""Utility modules for riskengine."""

from riskengine.utils.exceptions import (
    ConfigurationError,
    RiskEngineError,
)

__all__ = [
    "RiskEngineError",
    "ConfigurationError",
]
