"""Polymarket tool server (Gamma API): event search and comparable markets."""

from __future__ import annotations

import re
from typing import Any

from oddsbridge.core.args import float_arg, int_arg
from oddsbridge.core.assembler import ComparableQuery, assemble, comparable_payload
from oddsbridge.ingestion.polymarket.gamma import GammaClient, summarize_event, to_listings
from oddsbridge.servers.base import ToolServer, object_schema

# Dropped from search text when picking the child market a query refers to
SEARCH_STOPWORDS = frozenset({
    "the", "a", "an", "in", "on", "at", "to", "for", "of", "and", "or", "is", "will", "be",
    "by", "win", "presidential", "nomination", "president", "democratic", "republican",
})
_DIGITS = re.compile(r"^\d+$")


def search_words(query: str) -> list[str]:
    return [
        w
        for w in (query or "").lower().split()
        if len(w) > 2 and w not in SEARCH_STOPWORDS and not _DIGITS.match(w)
    ]


class PolymarketServer(ToolServer):
    name = "polymarket"

    def __init__(self, client: GammaClient):
        self.client = client
        super().__init__(connectors=[client])

    def register_tools(self) -> None:
        self.add_tool(
            "search_markets",
            "Search Polymarket events by text; reports the child market matching the query.",
            object_schema(
                {
                    "query": {"type": "string"},
                    "category": {"type": "string"},
                    "status": {"type": "string", "enum": ["live", "resolved", "all"]},
                    "limit": {"type": "number"},
                }
            ),
            self.search_markets,
        )
        self.add_tool(
            "get_comparable_markets",
            "Polymarket events in the cross-platform comparable format (prices are already 0-1).",
            object_schema(
                {
                    "category": {
                        "type": "string",
                        "enum": ["sports", "politics", "crypto", "business", "other", "all"],
                    },
                    "keywords": {"type": "string"},
                    "minVolume": {"type": "number"},
                    "limit": {"type": "number"},
                    "includeResolved": {"type": "boolean"},
                }
            ),
            self.get_comparable_markets,
            output_schema=object_schema({"platform": {"type": "string"}, "markets": {"type": "array"}}),
        )

    async def _browse(self, status: str, limit: int, category: str | None) -> list[dict[str, Any]]:
        if status == "all":
            live = await self.client.list_events(closed=False, limit=limit, category=category)
            resolved = await self.client.list_events(closed=True, limit=limit, category=category)
            return live + resolved
        return await self.client.list_events(closed=status == "resolved", limit=limit, category=category)

    async def search_markets(self, args: dict[str, Any]) -> dict[str, Any]:
        query = args.get("query") or ""
        status = args.get("status") or "live"
        limit = int_arg(args, "limit", 20, 50)
        events: list[dict[str, Any]] = []
        if query:
            events = await self.client.search(query, limit=limit * 2, status=status)
        used_search = bool(events)
        if not used_search:
            events = await self._browse(status, limit * 5, args.get("category"))
        if used_search and status != "all":
            want_closed = status == "resolved"
            events = [e for e in events if (e.get("closed") is True) == want_closed]
        words = search_words(query)
        results = [summarize_event(e, words) for e in events[:limit]]
        live = sum(1 for r in results if r["status"] == "live")
        return {
            "results": results,
            "count": len(results),
            "searchMethod": "public-search API" if used_search else "events listing",
            "statusBreakdown": {"live": live, "resolved": len(results) - live},
        }

    async def get_comparable_markets(self, args: dict[str, Any]) -> dict[str, Any]:
        query = ComparableQuery.from_args(args, default_limit=30)
        query = query.model_copy(
            update={"limit": min(query.limit, 100), "min_volume": float_arg(args, "minVolume", 1000)}
        )
        # Gamma's own category filter is unreliable, so fetch wide and filter locally
        fetch_limit = 500 if query.category else query.limit * 5
        events = await self.client.list_events(closed=query.include_resolved, limit=fetch_limit)
        listings = [item for event in events for item in to_listings(event)]
        markets = assemble(listings, query)
        payload = comparable_payload("polymarket", markets)
        payload["hint"] = (
            f"Returned {len(markets)} Polymarket events. Prices are already probabilities (0-1). "
            "Multi-outcome events list one outcome per candidate or team."
        )
        return payload
