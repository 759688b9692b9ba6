# glicko_trader/models/ratings.py
"""
Rating models produced by the Glicko-2 engine.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ScoreConfidence(str, Enum):
    """Confidence class of a hybrid performance score."""
    HIGH = "High"
    LOW = "Low"
    NEUTRAL = "Neutral"


class HybridScore(BaseModel):
    """Per-candle performance score fed into the rating update."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(..., ge=0.0, le=1.0, description="Game result in [0, 1]")
    confidence: ScoreConfidence = Field(..., description="Confidence class")
    price_up: bool = Field(..., description="Close above open")
    price_unchanged: bool = Field(..., description="Change below the draw threshold")
    taker_buy_dominant: bool = Field(..., description="Taker buys exceed taker sells")


class RatingSnapshot(BaseModel):
    """Post-update rating of one symbol at one candle."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., min_length=1, description="Trading symbol")
    timestamp: int = Field(..., description="Candle open time (ms)")
    rating: float = Field(..., description="Glicko rating")
    rating_deviation: float = Field(..., ge=0, description="Rating deviation (RD)")
    volatility: float = Field(..., ge=0, description="Rating volatility (sigma)")
    performance_score: float = Field(..., ge=0.0, le=1.0, description="Hybrid score used for the update")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return self.model_dump(mode="python")


@dataclass
class PlayerState:
    """Mutable Glicko-2 state of a single symbol."""
    rating: float
    rating_deviation: float
    volatility: float
