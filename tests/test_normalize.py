"""Price normalization and derived metrics."""

import pytest

from oddsbridge.core import metrics
from oddsbridge.core.normalize import (
    american_to_decimal,
    complement_price,
    from_probability,
    no_price_cents,
    to_probability,
    yes_price_cents,
)
from oddsbridge.models import PriceRepresentation


def test_cents_and_decimal_odds():
    assert to_probability(32, PriceRepresentation.CENTS) == pytest.approx(0.32)
    assert to_probability(2.5, PriceRepresentation.DECIMAL_ODDS) == pytest.approx(0.4)
    assert to_probability(0.61, PriceRepresentation.PROBABILITY) == 0.61


def test_decimal_odds_strictly_decreasing():
    odds = [1.1, 1.5, 2.0, 3.25, 10.0]
    probs = [to_probability(o, PriceRepresentation.DECIMAL_ODDS) for o in odds]
    assert all(a > b for a, b in zip(probs, probs[1:]))


def test_from_probability_inverts():
    for rep, price in [
        (PriceRepresentation.CENTS, 47.0),
        (PriceRepresentation.DECIMAL_ODDS, 1.85),
        (PriceRepresentation.PROBABILITY, 0.3),
    ]:
        assert from_probability(to_probability(price, rep), rep) == pytest.approx(price)


def test_complement_price():
    assert complement_price(32, PriceRepresentation.CENTS) == 68
    assert complement_price(0.25, PriceRepresentation.PROBABILITY) == pytest.approx(0.75)
    assert complement_price(2.0, PriceRepresentation.DECIMAL_ODDS) == pytest.approx(2.0)
    assert complement_price(1.0, PriceRepresentation.DECIMAL_ODDS) == 0.0


def test_american_to_decimal():
    assert american_to_decimal(150) == pytest.approx(2.5)
    assert american_to_decimal(-200) == pytest.approx(1.5)


def test_kalshi_price_fallbacks():
    assert yes_price_cents({"yes_ask": 32, "last_price": 30}) == 32
    assert yes_price_cents({"yes_ask": 0, "last_price": 30}) == 30
    assert yes_price_cents({}) == 50
    assert no_price_cents({"yes_ask": 32, "no_ask": 70}) == 70
    assert no_price_cents({"yes_ask": 32}) == 68


def test_vig_on_sum_not_rounded_outcomes():
    assert metrics.vig_percent([0.48, 0.55]) == pytest.approx(3.0)
    assert metrics.cents_vig([48, 55]) == 3
    assert metrics.efficiency_rating(3) == "good"
    assert metrics.efficiency_rating(-0.5) == "excellent"
    assert metrics.efficiency_rating(12) == "exploitable"


def test_remove_vig_sums_to_one():
    fair = metrics.remove_vig([0.55, 0.52])
    assert sum(fair) == pytest.approx(1.0)
    assert metrics.remove_vig([0.0, 0.0]) == [0.0, 0.0]


def test_bookmaker_efficiency_bands():
    assert metrics.bookmaker_efficiency(1.5) == "excellent"
    assert metrics.bookmaker_efficiency(3.0) == "good"
    assert metrics.bookmaker_efficiency(6.0) == "average"
    assert metrics.bookmaker_efficiency(9.0) == "poor"


def test_spread_and_zscore():
    absolute, percent = metrics.spread(40, 44)
    assert absolute == 4
    assert percent == pytest.approx(10.0)
    assert metrics.spread(0, 3) == (3, 0.0)
    assert metrics.spread_bps(99, 101) == pytest.approx(200.0)
    assert metrics.zscore(5, [1, 1, 1]) == 0.0
    assert metrics.zscore(4, [1, 3]) == pytest.approx(2.0)
    assert metrics.zscore_significance(3.1) == "extreme"
    assert metrics.zscore_significance(2.6) == "significant"
    assert metrics.zscore_significance(2.1) == "notable"


def test_arbitrage_math():
    implied = [0.45, 0.5]
    total = sum(implied)
    assert metrics.arbitrage_profit_percent(total) == pytest.approx((1 / 0.95 - 1) * 100)
    stakes = metrics.arbitrage_stakes(implied)
    assert sum(stakes) == pytest.approx(100.0)


def test_liquidity_score():
    assert metrics.liquidity_score(60000, 1) == "excellent"
    assert metrics.liquidity_score(60000, 5) == "moderate"
    assert metrics.liquidity_score(2000, 10) == "poor"
    assert metrics.liquidity_score(10, 1) == "illiquid"
