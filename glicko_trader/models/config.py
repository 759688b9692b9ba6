# glicko_trader/models/config.py
"""
Configuration models for the rating engine and the backtester.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.time_helpers import parse_timestamp


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ScoringMethod(str, Enum):
    """How a candle is turned into a game result."""
    DISCRETE = "discrete"
    CONTINUOUS = "continuous"


class GlickoConfig(BaseModel):
    """Glicko-2 system constants."""

    model_config = ConfigDict(frozen=True)

    initial_rating: float = Field(default=1500.0, description="Rating of a new symbol")
    initial_rd: float = Field(default=350.0, gt=0, description="Rating deviation of a new symbol")
    initial_volatility: float = Field(default=0.06, gt=0, description="Volatility of a new symbol")
    benchmark_rating: float = Field(default=1500.0, description="Fixed opponent rating")
    benchmark_rd: float = Field(default=50.0, gt=0, description="Fixed opponent rating deviation")
    tau: float = Field(default=0.5, gt=0, description="System constant constraining volatility change")
    epsilon: float = Field(default=1e-6, gt=0, description="Convergence tolerance of the volatility solve")
    max_iterations: int = Field(default=50, ge=1, description="Iteration budget of the volatility solve")
    scale: float = Field(default=173.7178, gt=0, description="Glicko-2 scale factor")
    scoring_method: ScoringMethod = Field(default=ScoringMethod.DISCRETE, description="Hybrid score variant")
    draw_threshold: float = Field(default=0.001, ge=0, description="Relative change treated as a draw")


class BacktestConfig(BaseModel):
    """Parameters of a single z-score backtest run."""

    model_config = ConfigDict(frozen=True)

    base_asset: str = Field(..., min_length=1, description="Base asset, e.g. BTC")
    quote_asset: str = Field(default="USDT", min_length=1, description="Quote asset")
    z_score_threshold: float = Field(..., ge=0, description="Signal band half-width")
    moving_averages: int = Field(..., ge=1, description="Rolling window length in observations")
    profit_percent: float = Field(..., gt=0, description="Take-profit distance in percent")
    stop_loss_percent: float = Field(..., gt=0, lt=100, description="Stop-loss distance in percent")
    start_time: int = Field(..., description="Run start (ms)")
    end_time: int = Field(..., description="Run end (ms)")
    window_size: Optional[int] = Field(default=None, ge=1, description="Walk-forward window in months")
    initial_cash: float = Field(default=10000.0, gt=0, description="Starting cash")
    allocation_fraction: float = Field(default=0.95, gt=0, le=1, description="Share of cash committed per entry")

    @field_validator('base_asset', 'quote_asset')
    @classmethod
    def normalize_asset(cls, v):
        return v.strip().upper()

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def parse_time(cls, v):
        return parse_timestamp(v)

    @model_validator(mode='after')
    def validate_time_range(self):
        if self.end_time < self.start_time:
            raise ValueError(f"end_time ({self.end_time}) is before start_time ({self.start_time})")
        return self

    @property
    def symbol(self) -> str:
        """Traded pair symbol."""
        return f"{self.base_asset}{self.quote_asset}"

    def for_window(self, start_time: int, end_time: int) -> 'BacktestConfig':
        """Copy of this config narrowed to a time range."""
        return self.model_copy(update={'start_time': start_time, 'end_time': end_time})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump(mode='python')


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log format")
    file: Optional[str] = Field(default=None, description="Log file path")
    max_bytes: int = Field(default=10 * 1024 * 1024, gt=0, description="Log file size before rotation")
    backup_count: int = Field(default=5, ge=0, description="Rotated log files to keep")

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(LOG_LEVELS)}, got {v!r}")
        return level


class AppConfig(BaseModel):
    """Main application configuration."""
    glicko: GlickoConfig = Field(default_factory=GlickoConfig)
    backtest: Optional[BacktestConfig] = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    max_workers: Optional[int] = Field(default=None, ge=1, description="Processes for windowed runs")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump(mode='python')

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'AppConfig':
        """Create from dictionary."""
        return cls(**config_dict)
