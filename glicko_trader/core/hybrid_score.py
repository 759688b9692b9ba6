# glicko_trader/core/hybrid_score.py
"""
Hybrid performance score combining price direction and taker-volume dominance.
"""

from ..models.config import ScoringMethod
from ..models.ratings import HybridScore, ScoreConfidence


DRAW_THRESHOLD = 0.001  # 0.1% relative change

# (price_up, taker_buy_dominant) -> (score, confidence)
DISCRETE_SCORES = {
    (True, True): (1.0, ScoreConfidence.HIGH),
    (True, False): (0.75, ScoreConfidence.LOW),
    (False, True): (0.25, ScoreConfidence.LOW),
    (False, False): (0.0, ScoreConfidence.HIGH),
}


def calculate_hybrid_score(
    open_price: float,
    close_price: float,
    taker_buy_volume: float,
    taker_sell_volume: float,
    method: ScoringMethod = ScoringMethod.DISCRETE,
    draw_threshold: float = DRAW_THRESHOLD,
) -> HybridScore:
    """
    Score a candle as a game result against the benchmark.

    Args:
        open_price: Candle open
        close_price: Candle close
        taker_buy_volume: Base volume bought by takers
        taker_sell_volume: Base volume sold by takers
        method: Discrete lookup table or continuous price scaling
        draw_threshold: Relative change below which the candle is a draw

    Returns:
        HybridScore with score in [0, 1] and a confidence class
    """
    price_change = (close_price - open_price) / open_price if open_price else 0.0
    price_up = close_price > open_price
    price_unchanged = abs(price_change) < draw_threshold
    taker_buy_dominant = taker_buy_volume > taker_sell_volume

    if method == ScoringMethod.CONTINUOUS:
        score, confidence = _continuous_score(price_change, price_unchanged)
    elif price_unchanged:
        score, confidence = 0.5, ScoreConfidence.NEUTRAL
    else:
        score, confidence = DISCRETE_SCORES[(price_up, taker_buy_dominant)]

    return HybridScore(
        score=score,
        confidence=confidence,
        price_up=price_up,
        price_unchanged=price_unchanged,
        taker_buy_dominant=taker_buy_dominant,
    )


def _continuous_score(price_change: float, price_unchanged: bool):
    """Map price change linearly onto [0, 1]; 1% move = 0.5 score units."""
    if price_unchanged:
        score = 0.5
    else:
        score = min(1.0, max(0.0, 0.5 + price_change * 50))

    distance = abs(score - 0.5)
    if distance < 0.1:
        confidence = ScoreConfidence.NEUTRAL
    elif distance < 0.25:
        confidence = ScoreConfidence.LOW
    else:
        confidence = ScoreConfidence.HIGH
    return score, confidence
