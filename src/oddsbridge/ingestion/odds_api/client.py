"""The Odds API v4 client. Prices requested as decimal odds."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx

from oddsbridge.ingestion.base import RestConnector
from oddsbridge.models import Listing, PriceRepresentation


def outcome_key(outcome: dict[str, Any]) -> str:
    """'Lakers', or 'Lakers (+3.5)' / 'Over (-1.5)' for point-based markets."""
    point = outcome.get("point")
    if point is None:
        return outcome.get("name", "")
    sign = "+" if point > 0 else ""
    return f"{outcome.get('name', '')} ({sign}{point:g})"


def best_prices(event: dict[str, Any], market: str = "h2h") -> dict[str, tuple[float, str]]:
    """Outcome key -> (highest decimal price, bookmaker title) across all bookmakers."""
    best: dict[str, tuple[float, str]] = {}
    for bookmaker in event.get("bookmakers") or []:
        mkt = next((m for m in bookmaker.get("markets") or [] if m.get("key") == market), None)
        if mkt is None:
            continue
        for outcome in mkt.get("outcomes") or []:
            key = outcome_key(outcome)
            price = float(outcome.get("price") or 0)
            if key not in best or price > best[key][0]:
                best[key] = (price, bookmaker.get("title", ""))
    return best


def is_outright(event: dict[str, Any], market: str = "h2h") -> bool:
    return market == "outrights" or not event.get("home_team") or not event.get("away_team")


def event_title(event: dict[str, Any], market: str = "h2h") -> str:
    if is_outright(event, market):
        return event.get("sport_title") or event.get("sport_key", "").replace("_", " ")
    return f"{event['away_team']} @ {event['home_team']}"


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def is_finished(event: dict[str, Any], now: datetime | None = None) -> bool:
    """Completed, or already started."""
    if event.get("completed") is True:
        return True
    commence = _parse_time(event.get("commence_time"))
    now = now or datetime.now(timezone.utc)
    return commence is not None and commence <= now


def to_listings(
    event: dict[str, Any], market: str = "h2h", now: datetime | None = None
) -> list[Listing]:
    """One Listing per outcome, priced at the best decimal odds on offer."""
    title = event_title(event, market)
    resolved = is_finished(event, now)
    description = f"{event.get('sport_title', '')} - {market.upper()} market"
    listings = []
    for key, (price, bookmaker) in best_prices(event, market).items():
        if price <= 0:
            continue
        listings.append(
            Listing(
                source="odds_api",
                listing_id=f"{event.get('id', '')}:{key}",
                title=key,
                subtitle=description,
                event_id=event.get("id"),
                event_title=title,
                outcome_label=key,
                source_category="sports",
                price=price,
                representation=PriceRepresentation.DECIMAL_ODDS,
                close_time=event.get("commence_time"),
                resolved=resolved,
                extra={"bookmaker": bookmaker, "sport": event.get("sport_key")},
            )
        )
    return listings


class OddsApiClient(RestConnector):
    source = "Odds"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        regions: list[str] | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, timeout=timeout, headers={"Accept": "application/json"}, client=client)
        self.api_key = api_key
        self.regions = regions or ["us"]

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await super().get_json(path, {"apiKey": self.api_key, **(params or {})})

    async def list_sports(self, all_sports: bool = False) -> list[dict[str, Any]]:
        return await self.get_json("/sports", {"all": True if all_sports else None})

    async def get_odds(
        self,
        sport: str,
        markets: list[str] | str = "h2h",
        regions: list[str] | None = None,
        bookmakers: list[str] | None = None,
        event_ids: list[str] | None = None,
        odds_format: str = "decimal",
    ) -> list[dict[str, Any]]:
        return await self.get_json(
            f"/sports/{sport}/odds",
            {
                "regions": None if bookmakers else (regions or self.regions),
                "markets": markets,
                "oddsFormat": odds_format,
                "bookmakers": bookmakers,
                "eventIds": event_ids,
            },
        )

    async def get_event_odds(
        self, sport: str, event_id: str, markets: list[str] | str = "h2h"
    ) -> dict[str, Any]:
        return await self.get_json(
            f"/sports/{sport}/events/{event_id}/odds",
            {"regions": self.regions, "markets": markets, "oddsFormat": "decimal"},
        )

    async def get_scores(
        self, sport: str, days_from: int | None = None, event_ids: list[str] | None = None
    ) -> list[dict[str, Any]]:
        return await self.get_json(f"/sports/{sport}/scores", {"daysFrom": days_from, "eventIds": event_ids})
