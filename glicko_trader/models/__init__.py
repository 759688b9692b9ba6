# glicko_trader/models/__init__.py
"""
Data models for the rating engine and the backtester.
"""

from .config import AppConfig, BacktestConfig, GlickoConfig, LoggingConfig, ScoringMethod
from .market_data import Candle
from .orders import Order, OrderReason, OrderSide, Signal, SignalAction
from .ratings import HybridScore, PlayerState, RatingSnapshot, ScoreConfidence
from .results import BacktestResult, EquityPoint, PerformanceMetrics, WindowSummary, json_safe

__all__ = [
    "AppConfig",
    "BacktestConfig",
    "GlickoConfig",
    "LoggingConfig",
    "ScoringMethod",
    "Candle",
    "Order",
    "OrderReason",
    "OrderSide",
    "Signal",
    "SignalAction",
    "HybridScore",
    "PlayerState",
    "RatingSnapshot",
    "ScoreConfidence",
    "BacktestResult",
    "EquityPoint",
    "PerformanceMetrics",
    "WindowSummary",
    "json_safe",
]
