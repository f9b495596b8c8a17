"""Derived metrics on normalized probabilities and quotes: vig, spread, z-score, arbitrage."""

from __future__ import annotations

import math
from collections.abc import Sequence


def overround(probabilities: Sequence[float]) -> float:
    """Amount by which implied probabilities sum above 1.0."""
    return sum(probabilities) - 1


def vig_percent(probabilities: Sequence[float]) -> float:
    """Overround as a percentage, computed on the sum (outcomes are not rounded first)."""
    return overround(probabilities) * 100


def remove_vig(probabilities: Sequence[float]) -> list[float]:
    """Rescale implied probabilities so they sum to 1."""
    total = sum(probabilities)
    if total <= 0:
        return [0.0 for _ in probabilities]
    return [p / total for p in probabilities]


def cents_vig(yes_prices: Sequence[float]) -> float:
    """Sum of YES prices in cents minus 100. Negative means buying every outcome locks in profit."""
    return sum(yes_prices) - 100


def efficiency_rating(vig_cents: float) -> str:
    v = abs(vig_cents)
    if v <= 1:
        return "excellent"
    if v <= 3:
        return "good"
    if v <= 5:
        return "fair"
    if v <= 10:
        return "poor"
    return "exploitable"


def bookmaker_efficiency(vig_pct: float) -> str:
    if vig_pct < 2:
        return "excellent"
    if vig_pct < 4:
        return "good"
    if vig_pct > 8:
        return "poor"
    return "average"


def spread(bid: float, ask: float) -> tuple[float, float]:
    """Return (absolute spread, spread as percent of bid). Percent is 0 when bid is 0."""
    absolute = ask - bid
    percent = (absolute / bid) * 100 if bid > 0 else 0.0
    return absolute, percent


def spread_bps(bid: float, ask: float) -> float:
    """Spread relative to mid, in basis points."""
    mid = (bid + ask) / 2
    if mid <= 0:
        return 0.0
    return (ask - bid) / mid * 10000


def mean_std(values: Sequence[float]) -> tuple[float, float]:
    """Mean and population standard deviation."""
    if not values:
        return 0.0, 0.0
    mean = sum(values) / len(values)
    var = sum((v - mean) ** 2 for v in values) / len(values)
    return mean, math.sqrt(var)


def zscore(current: float, history: Sequence[float]) -> float:
    """Standard score of `current` against `history`; 0 when history has no spread."""
    mean, std = mean_std(history)
    if std <= 0:
        return 0.0
    return (current - mean) / std


def zscore_significance(z: float) -> str:
    if z > 3:
        return "extreme"
    if z > 2.5:
        return "significant"
    return "notable"


def arbitrage_profit_percent(implied_total: float) -> float:
    """Guaranteed return when best-price implied probabilities sum below 1."""
    return (1 / implied_total - 1) * 100


def arbitrage_stakes(implied: Sequence[float]) -> list[float]:
    """Stake split (percent of bankroll per leg) that equalizes payout across outcomes."""
    total = sum(implied)
    return [p / total * 100 for p in implied]


def liquidity_score(depth_usd: float, spread_cents: float) -> str:
    if depth_usd > 50000 and spread_cents <= 2:
        return "excellent"
    if depth_usd > 20000 and spread_cents <= 4:
        return "good"
    if depth_usd > 5000 and spread_cents <= 6:
        return "moderate"
    if depth_usd > 1000:
        return "poor"
    return "illiquid"
