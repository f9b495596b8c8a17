"""Source-native price -> probability in [0, 1]. One rule per representation.

Nothing is clamped or validated; callers feed well-formed upstream values.
"""

from __future__ import annotations

from typing import Any

from oddsbridge.models import PriceRepresentation

DEFAULT_CENTS_PRICE = 50.0


def to_probability(price: float, representation: PriceRepresentation) -> float:
    """Cents -> price/100, decimal odds -> 1/odds, probability -> unchanged."""
    if representation is PriceRepresentation.CENTS:
        return price / 100
    if representation is PriceRepresentation.DECIMAL_ODDS:
        return 1 / price
    return price


def from_probability(probability: float, representation: PriceRepresentation) -> float:
    """Inverse of to_probability."""
    if representation is PriceRepresentation.CENTS:
        return probability * 100
    if representation is PriceRepresentation.DECIMAL_ODDS:
        return 1 / probability
    return probability


def complement_price(price: float, representation: PriceRepresentation) -> float:
    """Source-unit price of the other side of a binary listing."""
    if representation is PriceRepresentation.CENTS:
        return 100 - price
    if representation is PriceRepresentation.DECIMAL_ODDS:
        rest = 1 - to_probability(price, representation)
        return 1 / rest if rest > 0 else 0.0
    return 1 - price


def american_to_decimal(american: float) -> float:
    """+150 -> 2.5, -200 -> 1.5."""
    if american > 0:
        return american / 100 + 1
    return 100 / abs(american) + 1


def yes_price_cents(raw: dict[str, Any], default: float = DEFAULT_CENTS_PRICE) -> float:
    """Kalshi YES price: ask, else last trade, else `default`.

    The default of 50 reads a missing price as a coin flip.
    """
    return float(raw.get("yes_ask") or raw.get("last_price") or default)


def no_price_cents(raw: dict[str, Any], default: float = DEFAULT_CENTS_PRICE) -> float:
    """Kalshi NO price: ask, else complement of the YES price."""
    no_ask = raw.get("no_ask")
    if no_ask:
        return float(no_ask)
    return 100 - yes_price_cents(raw, default)
