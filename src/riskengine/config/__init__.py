"""Configuration module for riskengine."""

from riskengine.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
