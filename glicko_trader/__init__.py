# glicko_trader/__init__.py
"""
Glicko-2 market ratings and z-score backtesting.
"""

from .core import (
    PerformanceAnalyzer,
    PortfolioSimulator,
    RatingEngine,
    SignalGenerator,
    WindowedBacktestOrchestrator,
    calculate_glicko_ratings,
    run_backtest,
    run_windowed_backtest,
)
from .models import BacktestConfig, Candle, GlickoConfig, RatingSnapshot

__version__ = "0.1.0"

__all__ = [
    "PerformanceAnalyzer",
    "PortfolioSimulator",
    "RatingEngine",
    "SignalGenerator",
    "WindowedBacktestOrchestrator",
    "calculate_glicko_ratings",
    "run_backtest",
    "run_windowed_backtest",
    "BacktestConfig",
    "Candle",
    "GlickoConfig",
    "RatingSnapshot",
]
