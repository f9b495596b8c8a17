"""Canonical schema (Pydantic) - Listing, NormalizedOutcome, ComparableMarket."""

from oddsbridge.models.market import (
    EVENT_CATEGORIES,
    CamelModel,
    ComparableMarket,
    Listing,
    NormalizedOutcome,
    PriceRepresentation,
)

__all__ = [
    "EVENT_CATEGORIES",
    "CamelModel",
    "ComparableMarket",
    "Listing",
    "NormalizedOutcome",
    "PriceRepresentation",
]
