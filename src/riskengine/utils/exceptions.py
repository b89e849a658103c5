"""Custom exceptions for riskengine."""


class RiskEngineError(Exception):
    """Base exception for all riskengine errors."""

    pass


class ConfigurationError(RiskEngineError):
    """Error in configuration or settings."""

    pass
