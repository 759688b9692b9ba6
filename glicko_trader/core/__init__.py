# glicko_trader/core/__init__.py
"""
Core rating and backtesting components.
"""

from .errors import ConfigurationError, GlickoTraderError, InvalidRecordError
from .glicko import RatingEngine, calculate_glicko_ratings, solve_volatility, update_rating
from .hybrid_score import calculate_hybrid_score
from .metrics import PerformanceAnalyzer
from .portfolio import Portfolio, Position
from .signals import SignalGenerator
from .simulator import PortfolioSimulator, run_backtest
from .windowed import WindowedBacktestOrchestrator, run_windowed_backtest, summarize_windows

__all__ = [
    "ConfigurationError",
    "GlickoTraderError",
    "InvalidRecordError",
    "RatingEngine",
    "calculate_glicko_ratings",
    "solve_volatility",
    "update_rating",
    "calculate_hybrid_score",
    "PerformanceAnalyzer",
    "Portfolio",
    "Position",
    "SignalGenerator",
    "PortfolioSimulator",
    "run_backtest",
    "WindowedBacktestOrchestrator",
    "run_windowed_backtest",
    "summarize_windows",
]
