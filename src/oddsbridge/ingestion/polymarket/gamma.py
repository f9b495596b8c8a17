"""Polymarket Gamma API client - events and markets. Prices are already 0-1."""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from oddsbridge.ingestion.base import RestConnector
from oddsbridge.models import Listing, PriceRepresentation

log = structlog.get_logger(__name__)

POLYMARKET_EVENT_URL = "https://polymarket.com/event"
DEFAULT_BINARY_PRICE = 0.5


def _parse_json_list(value: str | list[Any] | None) -> list[Any]:
    """Gamma sends some list fields as JSON strings; accept either form."""
    if isinstance(value, list):
        return value
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return []
    return parsed if isinstance(parsed, list) else []


def parse_prices(value: str | list[Any] | None) -> list[float]:
    prices = []
    for p in _parse_json_list(value):
        try:
            prices.append(float(p))
        except (TypeError, ValueError):
            prices.append(0.0)
    return prices


def event_url(event: dict[str, Any]) -> str | None:
    slug = event.get("slug")
    return f"{POLYMARKET_EVENT_URL}/{slug}" if slug else None


def is_market_resolved(market: dict[str, Any]) -> bool:
    return market.get("closed") is True or market.get("umaResolutionStatus") == "resolved"


def to_listings(event: dict[str, Any]) -> list[Listing]:
    """One Listing per child market of a Gamma event.

    Prices come from outcomePrices. A price of 0 is a real quote. Only a missing
    entry takes a default: 0.5 for a lone binary market, 0 for a child of a
    multi-outcome event.
    """
    markets = event.get("markets") or []
    event_id = str(event.get("id") or event.get("slug") or "")
    title = event.get("title") or ""
    description = event.get("description") or ""
    close_time = event.get("endDate") or event.get("endDateIso")
    default = DEFAULT_BINARY_PRICE if len(markets) == 1 else 0.0
    listings = []
    for market in markets:
        prices = parse_prices(market.get("outcomePrices"))
        yes = prices[0] if prices else default
        no = prices[1] if len(prices) > 1 else 1.0 - yes
        question = market.get("question") or market.get("title") or ""
        listings.append(
            Listing(
                source="polymarket",
                listing_id=str(market.get("conditionId") or market.get("id") or ""),
                title=question or title,
                subtitle=description,
                event_id=event_id,
                event_title=title,
                outcome_label=market.get("groupItemTitle") or question or None,
                source_category=event.get("category"),
                price=yes,
                representation=PriceRepresentation.PROBABILITY,
                no_price=no,
                close_time=close_time,
                volume=float(market.get("volume") or market.get("volumeNum") or 0),
                liquidity=float(market.get("liquidity") or market.get("liquidityNum") or 0),
                resolved=event.get("closed") is True or is_market_resolved(market),
                url=event_url(event),
                extra={"slug": event.get("slug")},
            )
        )
    if len(listings) == 1:
        # Binary event: the event's title and totals describe the one market
        only = listings[0]
        listings[0] = only.model_copy(
            update={
                "title": title or only.title,
                "volume": float(event.get("volume") or only.volume),
                "liquidity": float(event.get("liquidity") or only.liquidity),
            }
        )
    return listings


def summarize_event(event: dict[str, Any], query_words: list[str] | None = None) -> dict[str, Any]:
    """Search result row. With query words, report the child market whose question matches."""
    markets = event.get("markets") or []
    matched = markets[0] if markets else {}
    if query_words and len(markets) > 1:
        for market in markets:
            text = f"{market.get('question') or ''} {market.get('title') or ''}".lower()
            if any(word in text for word in query_words):
                matched = market
                break
    prices = parse_prices(matched.get("outcomePrices"))
    return {
        "title": event.get("title"),
        "url": event_url(event),
        "slug": event.get("slug"),
        "status": "resolved" if event.get("closed") is True else "live",
        "category": event.get("category"),
        "conditionId": matched.get("conditionId"),
        "matchedOutcome": matched.get("question") or matched.get("title"),
        "outcomePrice": prices[0] if prices else None,
        "volume": float(event.get("volume") or 0),
        "liquidity": float(event.get("liquidity") or 0),
        "endDate": event.get("endDate") or event.get("endDateIso"),
    }


class GammaClient(RestConnector):
    source = "Gamma"

    def __init__(self, base_url: str, timeout: float = 30.0, client: httpx.AsyncClient | None = None):
        super().__init__(base_url, timeout=timeout, headers={"Accept": "application/json"}, client=client)

    async def list_events(
        self,
        closed: bool = False,
        limit: int = 100,
        order: str = "volume",
        category: str | None = None,
    ) -> list[dict[str, Any]]:
        data = await self.get_json(
            "/events",
            {"closed": closed, "limit": limit, "order": order, "ascending": False, "category": category},
        )
        if not isinstance(data, list):
            data = data.get("data", []) if isinstance(data, dict) else []
        return data

    async def search(self, query: str, limit: int = 20, status: str | None = None) -> list[dict[str, Any]]:
        """Server-side text search over events."""
        events_status = {"live": "active", "resolved": "closed"}.get(status or "")
        data = await self.get_json(
            "/public-search", {"q": query, "limit_per_type": limit, "events_status": events_status}
        )
        events = data.get("events") if isinstance(data, dict) else None
        log.debug("gamma_search", query=query, hits=len(events or []))
        return events or []
