# glicko_trader/core/glicko.py
"""
Glicko-2 rating engine adapted to markets.

Every candle is a game between a symbol and a fixed benchmark opponent. The
candle's hybrid score is the game result, and the symbol's rating, rating
deviation and volatility are updated once per candle following
http://www.glicko.net/glicko/glicko2.pdf with the Illinois variant of
regula falsi for the volatility step.
"""

import logging
import math
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from pydantic import ValidationError
from tqdm import tqdm

from ..models.config import GlickoConfig
from ..models.market_data import Candle
from ..models.ratings import PlayerState, RatingSnapshot
from .errors import InvalidRecordError
from .hybrid_score import calculate_hybrid_score


logger = logging.getLogger(__name__)


GLICKO2_SCALE = 173.7178
DEFAULT_RATING = 1500.0
DEFAULT_RD = 350.0
DEFAULT_VOLATILITY = 0.06
BENCHMARK_RATING = 1500.0
BENCHMARK_RD = 50.0
TAU = 0.5
EPSILON = 1e-6
MAX_ITERATIONS = 50


class VolatilitySolution(NamedTuple):
    """Result of the bounded volatility root solve."""
    volatility: float
    iterations: int
    converged: bool


def to_glicko2_scale(
    rating: float,
    rating_deviation: float,
    scale: float = GLICKO2_SCALE,
    base_rating: float = DEFAULT_RATING,
) -> Tuple[float, float]:
    """Convert rating/RD to the internal (mu, phi) scale."""
    return (rating - base_rating) / scale, rating_deviation / scale


def from_glicko2_scale(
    mu: float,
    phi: float,
    scale: float = GLICKO2_SCALE,
    base_rating: float = DEFAULT_RATING,
) -> Tuple[float, float]:
    """Convert internal (mu, phi) back to rating/RD."""
    return scale * mu + base_rating, scale * phi


def g(phi: float) -> float:
    """Weight of a game given the opponent's deviation."""
    return 1.0 / math.sqrt(1.0 + 3.0 * phi ** 2 / math.pi ** 2)


def expected_score(mu: float, mu_j: float, g_phi_j: float) -> float:
    """Expected result against an opponent."""
    return 1.0 / (1.0 + math.exp(-g_phi_j * (mu - mu_j)))


def volatility_objective(
    x: float,
    delta_squared: float,
    phi_squared: float,
    v: float,
    a: float,
    tau_squared: float,
) -> float:
    """f(x) whose root gives ln(sigma'^2)."""
    ex = math.exp(x)
    numerator = ex * (delta_squared - phi_squared - v - ex)
    denominator = 2.0 * (phi_squared + v + ex) ** 2
    return numerator / denominator - (x - a) / tau_squared


def solve_volatility(
    sigma: float,
    delta: float,
    phi: float,
    v: float,
    tau: float = TAU,
    epsilon: float = EPSILON,
    max_iterations: int = MAX_ITERATIONS,
) -> VolatilitySolution:
    """
    Find the new volatility with the Illinois algorithm.

    Stops as soon as |f(C)| < epsilon. When the iteration budget is spent the
    retained bracket endpoint A is accepted, so output stays deterministic.

    Args:
        sigma: Current volatility
        delta: Estimated improvement
        phi: Current deviation on the Glicko-2 scale
        v: Estimated variance
        tau: System constant
        epsilon: Convergence tolerance on |f|
        max_iterations: Iteration budget

    Returns:
        VolatilitySolution with the new volatility
    """
    a = math.log(sigma ** 2)
    tau_squared = tau ** 2
    delta_squared = delta ** 2
    phi_squared = phi ** 2

    def f(x: float) -> float:
        return volatility_objective(x, delta_squared, phi_squared, v, a, tau_squared)

    big_a = a
    if delta_squared > phi_squared + v:
        big_b = math.log(delta_squared - phi_squared - v)
    else:
        # f grows without bound as x decreases, so this terminates
        k = 1
        while f(a - k * tau) < 0:
            k += 1
        big_b = a - k * tau

    f_a = f(big_a)
    f_b = f(big_b)

    for iteration in range(1, max_iterations + 1):
        if f_b == f_a:
            return VolatilitySolution(math.exp(big_a / 2), iteration - 1, False)

        big_c = big_a + (big_a - big_b) * f_a / (f_b - f_a)
        f_c = f(big_c)

        if abs(f_c) < epsilon:
            return VolatilitySolution(math.exp(big_c / 2), iteration, True)

        if f_c * f_b < 0:
            big_a, f_a = big_b, f_b
        else:
            f_a /= 2.0

        big_b, f_b = big_c, f_c

    return VolatilitySolution(math.exp(big_a / 2), max_iterations, False)


def update_rating(
    state: PlayerState,
    opponent_rating: float,
    opponent_rd: float,
    score: float,
    config: Optional[GlickoConfig] = None,
) -> Tuple[PlayerState, VolatilitySolution]:
    """
    Apply one Glicko-2 game to a player.

    Args:
        state: Player before the game
        opponent_rating: Opponent rating
        opponent_rd: Opponent rating deviation
        score: Game result in [0, 1]
        config: System constants (defaults when omitted)

    Returns:
        Tuple of (new player state, volatility solution)
    """
    config = config or GlickoConfig()
    scale, base = config.scale, config.initial_rating

    mu, phi = to_glicko2_scale(state.rating, state.rating_deviation, scale, base)
    mu_j, phi_j = to_glicko2_scale(opponent_rating, opponent_rd, scale, base)

    g_phi_j = g(phi_j)
    e = expected_score(mu, mu_j, g_phi_j)

    variance_denominator = g_phi_j ** 2 * e * (1.0 - e)
    if variance_denominator == 0:
        # Saturated expectation carries no information
        unchanged = VolatilitySolution(state.volatility, 0, True)
        return PlayerState(state.rating, state.rating_deviation, state.volatility), unchanged

    v = 1.0 / variance_denominator
    delta = v * g_phi_j * (score - e)

    solution = solve_volatility(
        state.volatility, delta, phi, v,
        tau=config.tau, epsilon=config.epsilon, max_iterations=config.max_iterations,
    )
    new_volatility = solution.volatility

    phi_star = math.sqrt(phi ** 2 + new_volatility ** 2)
    new_phi = 1.0 / math.sqrt(1.0 / phi_star ** 2 + 1.0 / v)
    new_mu = mu + new_phi ** 2 * g_phi_j * (score - e)

    rating, rating_deviation = from_glicko2_scale(new_mu, new_phi, scale, base)
    return PlayerState(rating, rating_deviation, new_volatility), solution


class RatingEngine:
    """
    Maintains one Glicko-2 player per symbol and rates candles in time order.

    Players are created lazily at the configured initial values and are owned
    by the engine for the duration of one ``calculate_ratings`` call.
    """

    def __init__(self, config: Optional[GlickoConfig] = None):
        """
        Initialize rating engine.

        Args:
            config: Glicko-2 constants, defaults when omitted
        """
        self.config = config or GlickoConfig()
        self.players: Dict[str, PlayerState] = {}
        self.unconverged_solves = 0

    def get_player(self, symbol: str) -> Optional[PlayerState]:
        """Current state of a symbol, or None if never rated."""
        return self.players.get(symbol)

    def reset(self) -> None:
        """Drop all player state."""
        self.players.clear()
        self.unconverged_solves = 0

    def _get_or_create_player(self, symbol: str) -> PlayerState:
        player = self.players.get(symbol)
        if player is None:
            player = PlayerState(
                rating=self.config.initial_rating,
                rating_deviation=self.config.initial_rd,
                volatility=self.config.initial_volatility,
            )
            self.players[symbol] = player
        return player

    def update(self, symbol: str, score: float) -> PlayerState:
        """
        Play one game for a symbol against the benchmark opponent.

        Args:
            symbol: Symbol to update
            score: Game result in [0, 1]

        Returns:
            The symbol's updated state
        """
        player = self._get_or_create_player(symbol)
        new_state, solution = update_rating(
            player,
            self.config.benchmark_rating,
            self.config.benchmark_rd,
            score,
            self.config,
        )

        if not solution.converged:
            self.unconverged_solves += 1
            logger.debug(f"Volatility solve for {symbol} stopped after {solution.iterations} iterations")

        player.rating = new_state.rating
        player.rating_deviation = new_state.rating_deviation
        player.volatility = new_state.volatility
        return player

    def calculate_ratings(
        self,
        candles: Iterable[Union[Candle, dict]],
        show_progress: bool = False,
    ) -> List[RatingSnapshot]:
        """
        Rate every candle, oldest first.

        Args:
            candles: Candles in any order (dicts are validated into Candle)
            show_progress: Display a progress bar

        Returns:
            One RatingSnapshot per candle in processing order

        Raises:
            InvalidRecordError: If a candle is malformed
        """
        ordered = sorted(coerce_candles(candles), key=lambda c: c.open_time)
        self.reset()

        snapshots: List[RatingSnapshot] = []
        for candle in tqdm(ordered, desc="Rating", disable=not show_progress):
            hybrid = calculate_hybrid_score(
                candle.open,
                candle.close,
                candle.taker_buy_volume,
                candle.taker_sell_volume,
                method=self.config.scoring_method,
                draw_threshold=self.config.draw_threshold,
            )
            player = self.update(candle.symbol, hybrid.score)

            snapshots.append(RatingSnapshot(
                symbol=candle.symbol,
                timestamp=candle.open_time,
                rating=player.rating,
                rating_deviation=player.rating_deviation,
                volatility=player.volatility,
                performance_score=hybrid.score,
            ))

        if self.unconverged_solves:
            logger.warning(f"{self.unconverged_solves} volatility solves hit the {self.config.max_iterations}-iteration budget")

        logger.info(f"Calculated {len(snapshots)} ratings for {len(self.players)} symbols")
        return snapshots


def coerce_candles(candles: Iterable[Union[Candle, dict]]) -> List[Candle]:
    """Validate raw candle records, naming the first bad one."""
    result = []
    for index, candle in enumerate(candles):
        if isinstance(candle, Candle):
            result.append(candle)
            continue
        try:
            result.append(Candle.model_validate(candle))
        except ValidationError as e:
            raise InvalidRecordError(f"Invalid candle at index {index}: {e}") from e
    return result


def calculate_glicko_ratings(
    candles: Iterable[Union[Candle, dict]],
    config: Optional[GlickoConfig] = None,
    show_progress: bool = False,
) -> List[RatingSnapshot]:
    """Compute ratings for a batch of candles with a fresh engine."""
    return RatingEngine(config).calculate_ratings(candles, show_progress=show_progress)
