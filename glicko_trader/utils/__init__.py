# glicko_trader/utils/__init__.py
"""
Utility functions and helpers.

``config_loader`` and ``logging_config`` depend on the models package and are
imported from their modules directly.
"""

from .time_helpers import months_to_ms, parse_timestamp

__all__ = [
    "months_to_ms",
    "parse_timestamp",
]
