"""Kalshi tool server: discovery, efficiency/liquidity analysis, comparable markets."""

from __future__ import annotations

import asyncio
from typing import Any

from oddsbridge.core import metrics
from oddsbridge.core.args import float_arg, int_arg
from oddsbridge.core.assembler import ComparableQuery, assemble, comparable_payload
from oddsbridge.core.normalize import no_price_cents, to_probability, yes_price_cents
from oddsbridge.errors import ToolInputError
from oddsbridge.ingestion.kalshi.client import KalshiClient, market_title, series_url, to_listing
from oddsbridge.models import PriceRepresentation
from oddsbridge.servers.base import ToolServer, object_schema, require

SORT_FIELDS = {
    "volume": "volume",
    "volume_24h": "volume_24h",
    "liquidity": "liquidity",
    "open_interest": "open_interest",
}

# Bucket name -> inclusive YES price range in cents
PROBABILITY_RANGES = {
    "very_unlikely": (1, 15),
    "unlikely": (15, 35),
    "coinflip": (35, 65),
    "likely": (65, 85),
    "very_likely": (85, 95),
}

SLIPPAGE_SIZES = (100, 500, 1000)

_CATEGORY = {"type": "string", "description": "Kalshi category, e.g. Politics, Economics"}
_LIMIT = {"type": "number", "description": "Maximum results"}
_TICKER = {"type": "string", "description": "Market ticker"}


def _market_row(m: dict[str, Any]) -> dict[str, Any]:
    event_ticker = m.get("event_ticker") or ""
    return {
        "title": market_title(m),
        "ticker": m.get("ticker"),
        "eventTicker": event_ticker,
        "url": series_url(event_ticker),
        "yesPrice": m.get("yes_ask") or m.get("last_price") or 0,
        "noPrice": no_price_cents(m),
        "volume24h": m.get("volume_24h") or 0,
        "volume": m.get("volume") or 0,
        "category": m.get("category") or "Unknown",
        "status": m.get("status") or "open",
        "closeTime": m.get("close_time") or "",
    }


def simulate_slippage(
    size: float, levels: list[list[float]], yes_bid: float, yes_ask: float, is_buy: bool = True
) -> dict[str, Any]:
    """Walk (price cents, qty) levels until `size` dollars are filled."""
    remaining = float(size)
    total = 0.0
    worst = 0.0
    for price, qty in levels:
        available = price / 100 * qty
        fill = min(remaining, available)
        total += fill
        remaining -= fill
        worst = price
        if remaining <= 0:
            break
    avg_price = total / size * 100 if size > 0 else 0.0
    slip = avg_price - yes_ask if is_buy else yes_bid - avg_price
    return {
        "canFill": remaining <= 0,
        "avgPrice": round(avg_price, 1),
        "worstPrice": worst,
        "slippagePercent": round(slip / yes_ask * 100, 2) if yes_ask else 0.0,
    }


def _depth_usd(levels: list[list[float]]) -> float:
    return sum(price / 100 * qty for price, qty in levels)


class KalshiServer(ToolServer):
    name = "kalshi"

    def __init__(self, client: KalshiClient):
        self.client = client
        super().__init__(connectors=[client])

    def register_tools(self) -> None:
        self.add_tool(
            "discover_trending_markets",
            "Top open Kalshi markets ranked by volume, 24h volume, liquidity or open interest.",
            object_schema(
                {
                    "category": _CATEGORY,
                    "sortBy": {"type": "string", "enum": list(SORT_FIELDS)},
                    "limit": _LIMIT,
                }
            ),
            self.discover_trending_markets,
        )
        self.add_tool(
            "search_markets",
            "Search Kalshi markets by title text, category and status.",
            object_schema(
                {
                    "query": {"type": "string"},
                    "category": _CATEGORY,
                    "status": {"type": "string", "description": "open, closed, settled or all"},
                    "limit": _LIMIT,
                }
            ),
            self.search_markets,
        )
        self.add_tool(
            "get_market",
            "Full detail for one Kalshi market.",
            object_schema({"ticker": _TICKER}, required=["ticker"]),
            self.get_market,
        )
        self.add_tool(
            "get_event",
            "A Kalshi event with its nested markets.",
            object_schema(
                {"eventTicker": {"type": "string"}, "withNestedMarkets": {"type": "boolean"}},
                required=["eventTicker"],
            ),
            self.get_event,
        )
        self.add_tool(
            "get_markets_by_probability",
            "Open markets whose YES price falls in a probability bucket.",
            object_schema(
                {
                    "probability": {"type": "string", "enum": list(PROBABILITY_RANGES)},
                    "category": _CATEGORY,
                    "limit": _LIMIT,
                },
                required=["probability"],
            ),
            self.get_markets_by_probability,
        )
        self.add_tool(
            "check_market_efficiency",
            "Vig of a market or multi-outcome event: sum of YES prices minus 100 cents.",
            object_schema({"ticker": _TICKER, "eventTicker": {"type": "string"}}),
            self.check_market_efficiency,
        )
        self.add_tool(
            "analyze_market_liquidity",
            "Spread, orderbook depth and simulated slippage for one market.",
            object_schema({"ticker": _TICKER}, required=["ticker"]),
            self.analyze_market_liquidity,
        )
        self.add_tool(
            "find_arbitrage_opportunities",
            "Markets where YES ask + NO ask < 100 cents, plus wide-spread markets.",
            object_schema(
                {
                    "category": _CATEGORY,
                    "minEdge": {"type": "number", "description": "Minimum edge in cents (default 1)"},
                    "limit": _LIMIT,
                }
            ),
            self.find_arbitrage_opportunities,
        )
        self.add_tool(
            "get_comparable_markets",
            "Kalshi events in the cross-platform comparable format: 0-1 probabilities, "
            "keywords, teams and category.",
            object_schema(
                {
                    "category": {
                        "type": "string",
                        "enum": ["sports", "politics", "crypto", "business", "other", "all"],
                    },
                    "keywords": {"type": "string"},
                    "minVolume": {"type": "number"},
                    "limit": _LIMIT,
                    "includeResolved": {"type": "boolean"},
                }
            ),
            self.get_comparable_markets,
            output_schema=object_schema({"platform": {"type": "string"}, "markets": {"type": "array"}}),
        )

    async def discover_trending_markets(self, args: dict[str, Any]) -> dict[str, Any]:
        category = args.get("category")
        sort_field = SORT_FIELDS.get(args.get("sortBy") or "", "volume_24h")
        limit = int_arg(args, "limit", 20, 100)
        markets = await self.client.list_markets(status="open", limit=limit, category=category)
        ranked = sorted(markets, key=lambda m: m.get(sort_field) or 0, reverse=True)
        rows = []
        for rank, m in enumerate(ranked, start=1):
            row = _market_row(m)
            row.update(
                rank=rank,
                openInterest=m.get("open_interest") or 0,
                liquidity=m.get("liquidity") or 0,
            )
            rows.append(row)
        total_volume = sum(r["volume24h"] for r in rows)
        scope = f" in {category}" if category else ""
        return {
            "marketSummary": f"Found {len(rows)} active markets{scope}. Total 24h volume: ${total_volume:,}",
            "trendingMarkets": rows,
            "totalActive": len(markets),
        }

    async def search_markets(self, args: dict[str, Any]) -> dict[str, Any]:
        query = (args.get("query") or "").lower()
        limit = int_arg(args, "limit", 20, 50)
        markets = await self.client.list_markets(
            status=args.get("status") or "open", limit=limit, category=args.get("category")
        )
        if query:
            markets = [m for m in markets if query in market_title(m).lower()]
        results = [_market_row(m) for m in markets]
        return {"results": results, "count": len(results)}

    async def get_market(self, args: dict[str, Any]) -> dict[str, Any]:
        ticker = require(args, "ticker")
        m = await self.client.get_market(ticker)
        row = _market_row(m)
        row.update(
            subtitle=m.get("subtitle") or m.get("no_sub_title") or "",
            yesBid=m.get("yes_bid") or 0,
            yesAsk=m.get("yes_ask") or 0,
            lastPrice=m.get("last_price") or 0,
            openInterest=m.get("open_interest") or 0,
            liquidity=m.get("liquidity") or 0,
            rules=m.get("rules_primary") or "",
            impliedProbability=to_probability(yes_price_cents(m), PriceRepresentation.CENTS),
        )
        return {"market": row}

    async def get_event(self, args: dict[str, Any]) -> dict[str, Any]:
        event_ticker = require(args, "eventTicker")
        with_nested = args.get("withNestedMarkets") is not False
        event = await self.client.get_event(event_ticker, with_nested_markets=with_nested)
        markets = [
            {
                "ticker": m.get("ticker"),
                "title": market_title(m),
                "yesPrice": m.get("yes_ask") or m.get("last_price") or 0,
                "noPrice": no_price_cents(m),
                "volume": m.get("volume") or 0,
                "status": m.get("status") or "open",
            }
            for m in event.get("markets") or []
        ]
        return {
            "event": {
                "eventTicker": event.get("event_ticker") or event_ticker,
                "title": event.get("title") or event_ticker,
                "category": event.get("category") or "Unknown",
                "status": event.get("status") or "open",
                "url": series_url(event.get("event_ticker") or event_ticker),
            },
            "markets": markets,
        }

    async def get_markets_by_probability(self, args: dict[str, Any]) -> dict[str, Any]:
        bucket = require(args, "probability")
        low, high = PROBABILITY_RANGES.get(bucket, (0, 100))
        limit = int_arg(args, "limit", 10, 30)
        markets = await self.client.list_markets(status="open", limit=100, category=args.get("category"))
        in_range = [m for m in markets if low <= yes_price_cents(m) <= high]
        in_range.sort(key=lambda m: m.get("volume_24h") or 0, reverse=True)
        in_range = in_range[:limit]
        rows = []
        for m in in_range:
            price = yes_price_cents(m)
            row = _market_row(m)
            row.update(
                yesPrice=price,
                impliedProbability=f"{price:g}%",
                potentialReturn=f"{(100 / price - 1) * 100:.0f}%" if price > 0 else "0%",
            )
            rows.append(row)
        avg_price = sum(yes_price_cents(m) for m in in_range) / len(in_range) if in_range else 0
        avg_return = (100 / avg_price - 1) * 100 if avg_price > 0 else 0
        return {
            "markets": rows,
            "summary": {
                "probabilityRange": f"{low}-{high}%",
                "marketsFound": len(rows),
                "avgReturn": f"{avg_return:.0f}%",
            },
        }

    async def check_market_efficiency(self, args: dict[str, Any]) -> dict[str, Any]:
        ticker = args.get("ticker")
        event_ticker = args.get("eventTicker")
        if not ticker and not event_ticker:
            raise ToolInputError("Either ticker or eventTicker is required")
        if event_ticker:
            event = await self.client.get_event(event_ticker, with_nested_markets=True)
            markets = event.get("markets") or []
        else:
            markets = [await self.client.get_market(ticker)]

        outcomes = []
        for m in markets:
            yes = yes_price_cents(m)
            outcomes.append(
                {
                    "ticker": m.get("ticker"),
                    "title": market_title(m),
                    "yesPrice": yes,
                    "noPrice": no_price_cents(m),
                    "impliedProbability": to_probability(yes, PriceRepresentation.CENTS),
                }
            )
        yes_prices = [o["yesPrice"] for o in outcomes]
        total = sum(yes_prices)
        vig = metrics.cents_vig(yes_prices)
        true_probs = metrics.remove_vig(yes_prices)
        if vig < -2:
            recommendation = (
                f"OPPORTUNITY: Sum of prices is {total:g}c < 100c. "
                f"Buying all outcomes guarantees {abs(vig):.0f}c profit."
            )
        elif vig > 5:
            recommendation = f"HIGH VIG: Market has {vig:.0f}c overround. Consider this when sizing positions."
        else:
            recommendation = "Market is efficiently priced."
        return {
            "market": event_ticker or ticker,
            "outcomes": outcomes,
            "efficiency": {
                "sumOfYesPrices": total,
                "vig": vig,
                "vigPercent": f"{vig:.2f}%",
                "isEfficient": abs(vig) <= 3,
                "rating": metrics.efficiency_rating(vig),
            },
            "trueProbabilities": [
                {"ticker": o["ticker"], "adjustedProbability": round(p * 100, 2)}
                for o, p in zip(outcomes, true_probs)
            ],
            "recommendation": recommendation,
        }

    async def analyze_market_liquidity(self, args: dict[str, Any]) -> dict[str, Any]:
        ticker = require(args, "ticker")
        market, book = await asyncio.gather(
            self.client.get_market(ticker), self.client.get_orderbook(ticker, depth=50)
        )
        yes_bid = market.get("yes_bid") or 0
        yes_ask = market.get("yes_ask") or 0
        no_bid = market.get("no_bid") or 0
        no_ask = market.get("no_ask") or 0
        bids = book.get("yes") or []
        # The NO side of a Kalshi book is the ask side for YES
        asks = book.get("no") or []
        bid_depth = _depth_usd(bids)
        ask_depth = _depth_usd(asks)
        yes_spread, yes_spread_pct = metrics.spread(yes_bid, yes_ask)
        no_spread, no_spread_pct = metrics.spread(no_bid, no_ask)
        score = metrics.liquidity_score(bid_depth + ask_depth, yes_spread)
        if score in ("excellent", "good"):
            recommendation = "Good liquidity - can enter/exit positions with minimal slippage"
        elif score == "moderate":
            recommendation = "Moderate liquidity - use limit orders to avoid slippage"
        else:
            recommendation = "Low liquidity - be cautious with position sizing, may be difficult to exit"
        return {
            "market": market.get("title") or ticker,
            "ticker": ticker,
            "currentPrices": {
                "yesBid": yes_bid,
                "yesAsk": yes_ask,
                "noBid": no_bid,
                "noAsk": no_ask,
                "lastPrice": market.get("last_price") or 0,
            },
            "spread": {
                "yesCents": yes_spread,
                "yesPercent": round(yes_spread_pct, 2),
                "noCents": no_spread,
                "noPercent": round(no_spread_pct, 2),
            },
            "depth": {
                "bidDepthUsd": round(bid_depth),
                "askDepthUsd": round(ask_depth),
                "totalDepthUsd": round(bid_depth + ask_depth),
            },
            "slippageSimulation": {
                f"buy{size}": simulate_slippage(size, asks, yes_bid, yes_ask) for size in SLIPPAGE_SIZES
            },
            "liquidityScore": score,
            "recommendation": recommendation,
        }

    async def find_arbitrage_opportunities(self, args: dict[str, Any]) -> dict[str, Any]:
        min_edge = float_arg(args, "minEdge", 1)
        limit = int_arg(args, "limit", 50, 100)
        markets = await self.client.list_markets(status="open", limit=limit, category=args.get("category"))
        arbitrage = []
        wide = []
        for m in markets:
            yes_ask = m.get("yes_ask") or 0
            no_ask = m.get("no_ask") or 0
            total_cost = yes_ask + no_ask
            if 0 < total_cost < 100 - min_edge:
                edge = 100 - total_cost
                arbitrage.append(
                    {
                        "market": m.get("title") or m.get("ticker"),
                        "ticker": m.get("ticker"),
                        "eventTicker": m.get("event_ticker"),
                        "yesAsk": yes_ask,
                        "noAsk": no_ask,
                        "totalCost": total_cost,
                        "potentialEdge": edge,
                        "edgePercent": f"{edge / total_cost * 100:.2f}%",
                        "url": series_url(m.get("event_ticker") or ""),
                    }
                )
            yes_bid = m.get("yes_bid") or 0
            width = yes_ask - yes_bid
            if width >= 5:
                mid = (yes_ask + yes_bid) / 2
                wide.append(
                    {
                        "market": m.get("title") or m.get("ticker"),
                        "ticker": m.get("ticker"),
                        "spread": width,
                        "spreadPercent": f"{metrics.spread_bps(yes_bid, yes_ask) / 100:.2f}%",
                        "midPrice": mid,
                    }
                )
        arbitrage.sort(key=lambda a: a["potentialEdge"], reverse=True)
        wide.sort(key=lambda w: w["spread"], reverse=True)
        best = (
            f"{arbitrage[0]['market']}: {arbitrage[0]['potentialEdge']}c edge"
            if arbitrage
            else "No arbitrage opportunities found"
        )
        return {
            "scannedMarkets": len(markets),
            "arbitrageOpportunities": arbitrage[:10],
            "wideSpreadMarkets": wide[:10],
            "summary": {
                "arbitrageCount": len(arbitrage),
                "wideSpreadCount": len(wide),
                "bestOpportunity": best,
            },
        }

    async def get_comparable_markets(self, args: dict[str, Any]) -> dict[str, Any]:
        query = ComparableQuery.from_args(args, default_limit=30)
        query = query.model_copy(update={"limit": min(query.limit, 100)})
        status = None if query.include_resolved else "open"
        events, _ = await self.client.list_events(
            status=status, limit=200, with_nested_markets=True
        )
        listings = [to_listing(m, event) for event in events for m in event.get("markets") or []]
        markets = assemble(listings, query)
        payload = comparable_payload("kalshi", markets)
        payload["hint"] = (
            f"Returned {len(markets)} Kalshi markets. Prices are cents converted to 0-1 "
            "(price/100); a missing price defaults to 50c."
        )
        return payload
