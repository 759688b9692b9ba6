import math

import pytest

from conftest import HOUR_MS, make_candle
from glicko_trader.core import glicko
from glicko_trader.core.errors import InvalidRecordError
from glicko_trader.core.glicko import (
    RatingEngine,
    calculate_glicko_ratings,
    expected_score,
    from_glicko2_scale,
    g,
    solve_volatility,
    to_glicko2_scale,
    update_rating,
    volatility_objective,
)
from glicko_trader.models import GlickoConfig, PlayerState


def test_scale_round_trip():
    mu, phi = to_glicko2_scale(1723.4, 87.2)
    rating, rd = from_glicko2_scale(mu, phi)

    assert rating == pytest.approx(1723.4, abs=1e-6)
    assert rd == pytest.approx(87.2, abs=1e-6)


def test_g_and_expected_score():
    assert g(0.0) == 1.0
    assert g(1.0) < 1.0
    assert expected_score(0.0, 0.0, g(0.5)) == pytest.approx(0.5)
    assert expected_score(1.0, 0.0, 1.0) == pytest.approx(1 / (1 + math.exp(-1.0)))


def test_solve_volatility_matches_reference_example():
    solution = solve_volatility(sigma=0.06, delta=-0.4834, phi=1.1513, v=1.7785)

    assert solution.converged
    assert solution.volatility == pytest.approx(0.05999, abs=1e-4)


def test_solve_volatility_reports_exhausted_budget():
    solution = solve_volatility(sigma=0.06, delta=-0.4834, phi=1.1513, v=1.7785,
                                epsilon=1e-300, max_iterations=1)

    assert not solution.converged
    assert solution.volatility > 0


def test_solve_volatility_with_direct_upper_bound():
    # delta^2 exceeds phi^2 + v, so the bracket is [ln sigma^2, ln(delta^2 - phi^2 - v)]
    sigma, delta, phi, v = 0.06, 2.0, 0.1, 0.5

    solution = solve_volatility(sigma=sigma, delta=delta, phi=phi, v=v)

    assert solution.converged
    assert sigma < solution.volatility < math.exp(math.log(delta ** 2 - phi ** 2 - v) / 2)
    residual = volatility_objective(
        2 * math.log(solution.volatility), delta ** 2, phi ** 2, v, math.log(sigma ** 2), 0.5 ** 2)
    assert abs(residual) < 1e-6


def test_win_raises_rating_and_narrows_deviation():
    state = PlayerState(rating=1500.0, rating_deviation=350.0, volatility=0.06)

    new_state, _ = update_rating(state, 1500.0, 50.0, 1.0)

    assert new_state.rating > 1500.0
    assert new_state.rating_deviation < 350.0


def test_loss_lowers_rating_and_narrows_deviation():
    state = PlayerState(rating=1500.0, rating_deviation=350.0, volatility=0.06)

    new_state, _ = update_rating(state, 1500.0, 50.0, 0.0)

    assert new_state.rating < 1500.0
    assert new_state.rating_deviation < 350.0


def test_module_constants_match_config_defaults():
    config = GlickoConfig()

    assert config.scale == glicko.GLICKO2_SCALE
    assert config.initial_rating == glicko.DEFAULT_RATING
    assert config.initial_rd == glicko.DEFAULT_RD
    assert config.initial_volatility == glicko.DEFAULT_VOLATILITY
    assert config.benchmark_rating == glicko.BENCHMARK_RATING
    assert config.benchmark_rd == glicko.BENCHMARK_RD
    assert config.tau == glicko.TAU
    assert config.epsilon == glicko.EPSILON
    assert config.max_iterations == glicko.MAX_ITERATIONS


def test_empty_input_returns_no_ratings():
    assert calculate_glicko_ratings([]) == []


def test_single_up_candle_with_buy_pressure():
    candles = [make_candle(0, 100.0, 110.0, taker_buy=8.0)]

    ratings = calculate_glicko_ratings(candles)

    assert len(ratings) == 1
    snapshot = ratings[0]
    assert snapshot.symbol == "BTCUSDT"
    assert snapshot.timestamp == 0
    assert snapshot.performance_score == 1.0
    assert snapshot.rating > 1500.0
    assert snapshot.rating_deviation < 350.0


def test_candles_are_rated_in_time_order():
    candles = [
        make_candle(2 * HOUR_MS, 100.0, 90.0, taker_buy=1.0),
        make_candle(0, 100.0, 110.0, taker_buy=9.0),
        make_candle(HOUR_MS, 100.0, 110.0, taker_buy=9.0),
    ]

    ratings = calculate_glicko_ratings(candles)

    assert [r.timestamp for r in ratings] == [0, HOUR_MS, 2 * HOUR_MS]
    assert ratings[1].rating > ratings[0].rating
    assert ratings[2].rating < ratings[1].rating


def test_symbols_are_rated_independently():
    candles = [
        make_candle(0, 100.0, 110.0, taker_buy=9.0, symbol="BTCUSDT"),
        make_candle(0, 100.0, 90.0, taker_buy=1.0, symbol="ETHUSDT"),
    ]
    engine = RatingEngine()

    ratings = engine.calculate_ratings(candles)

    by_symbol = {r.symbol: r for r in ratings}
    assert by_symbol["BTCUSDT"].rating > 1500.0
    assert by_symbol["ETHUSDT"].rating < 1500.0
    assert engine.get_player("BTCUSDT").rating == by_symbol["BTCUSDT"].rating


def test_repeated_runs_are_identical():
    candles = [make_candle(i * HOUR_MS, 100.0, 100.0 + i, taker_buy=5.0 + i) for i in range(5)]
    engine = RatingEngine()

    assert engine.calculate_ratings(candles) == engine.calculate_ratings(candles)


def test_invalid_candle_names_its_index():
    candles = [make_candle(0, 100.0, 110.0, taker_buy=8.0), {"symbol": "BTCUSDT", "open": -1}]

    with pytest.raises(InvalidRecordError, match="index 1"):
        calculate_glicko_ratings(candles)


def test_taker_buy_volume_above_total_volume_is_rejected():
    candles = [make_candle(0, 100.0, 110.0, taker_buy=12.0, volume=10.0)]

    with pytest.raises(InvalidRecordError, match="taker_buy_volume"):
        calculate_glicko_ratings(candles)
