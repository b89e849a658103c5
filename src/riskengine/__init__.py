"""Risk scoring and premium pricing engine for insurance quotes."""

__version__ = "0.1.0"
