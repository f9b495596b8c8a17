"""Kalshi trade API v2 (public market data). Prices are cents 0-100."""

from __future__ import annotations

import re
from typing import Any

import httpx

from oddsbridge.core.normalize import no_price_cents, yes_price_cents
from oddsbridge.core.taxonomy import category_from_series
from oddsbridge.ingestion.base import RestConnector
from oddsbridge.models import Listing, PriceRepresentation

KALSHI_WEB_URL = "https://kalshi.com/markets"
RESOLVED_STATUSES = frozenset({"closed", "settled", "finalized", "determined"})

_SERIES_SUFFIX = re.compile(r"-\d+$")


def series_url(event_ticker: str) -> str:
    """KXNEWPOPE-70 -> https://kalshi.com/markets/kxnewpope"""
    return f"{KALSHI_WEB_URL}/{_SERIES_SUFFIX.sub('', event_ticker or '').lower()}"


def market_title(raw: dict[str, Any]) -> str:
    return raw.get("title") or raw.get("yes_sub_title") or raw.get("ticker", "")


def to_listing(raw: dict[str, Any], event: dict[str, Any] | None = None) -> Listing:
    """Kalshi market (optionally with its parent event) -> Listing."""
    event = event or {}
    ticker = raw.get("ticker", "")
    event_ticker = raw.get("event_ticker") or event.get("event_ticker")
    return Listing(
        source="kalshi",
        listing_id=ticker,
        title=market_title(raw),
        subtitle=raw.get("subtitle") or raw.get("rules_primary") or "",
        event_id=event_ticker,
        event_title=event.get("title"),
        outcome_label=raw.get("yes_sub_title"),
        source_category=raw.get("category") or event.get("category") or category_from_series(ticker),
        price=yes_price_cents(raw),
        representation=PriceRepresentation.CENTS,
        no_price=no_price_cents(raw),
        close_time=raw.get("close_time"),
        volume=float(raw.get("volume") or 0),
        liquidity=float(raw.get("liquidity") or 0),
        resolved=(raw.get("status") or "open") in RESOLVED_STATUSES,
        url=series_url(event_ticker or ""),
        extra={"volume_24h": raw.get("volume_24h") or 0, "open_interest": raw.get("open_interest") or 0},
    )


class KalshiClient(RestConnector):
    source = "Kalshi"

    def __init__(self, base_url: str, timeout: float = 15.0, client: httpx.AsyncClient | None = None):
        super().__init__(base_url, timeout=timeout, client=client)

    async def list_markets(
        self,
        status: str | None = "open",
        limit: int = 100,
        category: str | None = None,
        event_ticker: str | None = None,
        cursor: str | None = None,
    ) -> list[dict[str, Any]]:
        data = await self.get_json(
            "/markets",
            {
                "limit": limit,
                "status": None if status == "all" else status,
                "category": category,
                "event_ticker": event_ticker,
                "cursor": cursor,
            },
        )
        return data.get("markets") or []

    async def get_market(self, ticker: str) -> dict[str, Any]:
        data = await self.get_json(f"/markets/{ticker}")
        return data.get("market") or {}

    async def get_orderbook(self, ticker: str, depth: int = 50) -> dict[str, Any]:
        data = await self.get_json(f"/markets/{ticker}/orderbook", {"depth": depth})
        return data.get("orderbook") or {}

    async def list_events(
        self,
        status: str | None = "open",
        limit: int = 50,
        with_nested_markets: bool = False,
        cursor: str | None = None,
    ) -> tuple[list[dict[str, Any]], str]:
        """Return (events, next cursor)."""
        data = await self.get_json(
            "/events",
            {
                "limit": limit,
                "status": None if status == "all" else status,
                "with_nested_markets": with_nested_markets,
                "cursor": cursor,
            },
        )
        return data.get("events") or [], data.get("cursor") or ""

    async def get_event(self, event_ticker: str, with_nested_markets: bool = True) -> dict[str, Any]:
        data = await self.get_json(
            f"/events/{event_ticker}", {"with_nested_markets": with_nested_markets}
        )
        event = data.get("event") or {}
        # Some responses carry markets beside the event rather than nested in it
        if with_nested_markets and not event.get("markets") and data.get("markets"):
            event = {**event, "markets": data["markets"]}
        return event
