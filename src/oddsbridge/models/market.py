"""Listing, NormalizedOutcome, ComparableMarket - source-agnostic entities."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EVENT_CATEGORIES = ("sports", "politics", "crypto", "business", "other")


class PriceRepresentation(str, Enum):
    """How a source quotes a price."""

    CENTS = "cents"  # 0-100, Yes/No binary contracts
    DECIMAL_ODDS = "decimal_odds"  # >= 1.0, sportsbook convention
    PROBABILITY = "probability"  # already 0-1


class Listing(BaseModel):
    """One tradable instrument on a source platform, prices in source-native units."""

    source: str
    listing_id: str  # source-native ticker/id, not unique across sources
    title: str = ""
    subtitle: str = ""
    event_id: str | None = None  # listings sharing it merge into one multi-outcome market
    event_title: str | None = None
    outcome_label: str | None = None  # candidate/team name inside a multi-outcome event
    source_category: str | None = None
    price: float = 0.0
    representation: PriceRepresentation = PriceRepresentation.PROBABILITY
    no_price: float | None = None
    close_time: str | None = None
    volume: float = 0.0
    liquidity: float = 0.0
    resolved: bool = False
    url: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)


class CamelModel(BaseModel):
    """Frozen model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class NormalizedOutcome(CamelModel):
    """One side of a binary or multi-way listing after normalization."""

    name: str
    normalized_probability: float = Field(..., description="0-1, comparable across platforms")
    raw_price: float = Field(..., description="Original source-unit value")


class ComparableMarket(CamelModel):
    """Unit handed to a consumer for cross-platform comparison. Built fresh per tool call."""

    title: str
    description: str = ""
    event_category: str = "other"
    keywords: list[str] = Field(default_factory=list)
    teams: list[str] = Field(default_factory=list)
    outcomes: list[NormalizedOutcome] = Field(default_factory=list)
    match_key: str = ""
    outcome_names: list[str] = Field(default_factory=list)
    volume: float = 0.0
    liquidity: float = 0.0
    close_time: str | None = None
    url: str | None = None
    platform_market_id: str = ""
    is_multi_outcome: bool = False
