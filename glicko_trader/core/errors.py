# glicko_trader/core/errors.py
from __future__ import annotations


class GlickoTraderError(Exception):
    """Base exception for rating and backtest failures."""


class InvalidRecordError(GlickoTraderError, ValueError):
    """Raised when an input record is malformed or out of order."""


class ConfigurationError(GlickoTraderError):
    """Raised when a configuration file cannot be loaded."""
