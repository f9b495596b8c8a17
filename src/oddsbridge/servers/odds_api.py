"""The Odds API tool server: sports, odds, scores, bookmaker efficiency, arbitrage, comparable markets."""

from __future__ import annotations

import math
from typing import Any

from oddsbridge.core import metrics
from oddsbridge.core.args import float_arg, int_arg
from oddsbridge.core.assembler import ComparableQuery, assemble, comparable_payload
from oddsbridge.core.normalize import american_to_decimal, to_probability
from oddsbridge.ingestion.odds_api.client import (
    OddsApiClient,
    best_prices,
    event_title,
    outcome_key,
    to_listings,
)
from oddsbridge.models import PriceRepresentation
from oddsbridge.servers.base import ToolServer, object_schema, require

_SPORT = {"type": "string", "description": "Sport key, e.g. basketball_nba, or 'upcoming'"}
_MARKET = {"type": "string", "description": "h2h, spreads, totals or outrights"}


def _as_list(value: Any, default: list[str]) -> list[str]:
    if not value:
        return default
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return list(value)


def implied_probability(price: float, odds_format: str = "decimal") -> float | None:
    """1/decimal odds; american prices are converted to decimal first."""
    if not price:
        return None
    decimal = american_to_decimal(price) if odds_format == "american" else price
    if decimal <= 0:
        return None
    return round(to_probability(decimal, PriceRepresentation.DECIMAL_ODDS), 4)


def _with_implied(markets: list[dict[str, Any]] | None, odds_format: str) -> list[dict[str, Any]]:
    return [
        {
            **market,
            "outcomes": [
                {**o, "impliedProbability": implied_probability(float(o.get("price") or 0), odds_format)}
                for o in market.get("outcomes") or []
            ],
        }
        for market in markets or []
    ]


def _score(event: dict[str, Any], team: str | None) -> str | None:
    return next((s.get("score") for s in event.get("scores") or [] if s.get("name") == team), None)


def bookmaker_breakdown(event: dict[str, Any], market: str) -> tuple[list[dict[str, Any]], dict[str, float]]:
    """Per-bookmaker vig and vig-free consensus probabilities for one event."""
    rows = []
    implied_by_outcome: dict[str, list[float]] = {}
    for bookmaker in event.get("bookmakers") or []:
        mkt = next((m for m in bookmaker.get("markets") or [] if m.get("key") == market), None)
        if mkt is None:
            continue
        implied = []
        for outcome in mkt.get("outcomes") or []:
            price = float(outcome.get("price") or 0)
            if price <= 0:
                continue
            p = to_probability(price, PriceRepresentation.DECIMAL_ODDS)
            implied.append(p)
            implied_by_outcome.setdefault(outcome_key(outcome), []).append(p)
        vig = metrics.vig_percent(implied)
        rows.append(
            {
                "bookmaker": bookmaker.get("title", ""),
                "totalImpliedOdds": round(sum(implied), 4),
                "vigPercent": round(vig, 2),
                "efficiency": metrics.bookmaker_efficiency(vig),
            }
        )
    rows.sort(key=lambda r: r["vigPercent"])
    names = list(implied_by_outcome)
    averages = [sum(v) / len(v) for v in implied_by_outcome.values()]
    consensus = {name: round(p, 4) for name, p in zip(names, metrics.remove_vig(averages))}
    return rows, consensus


class OddsApiServer(ToolServer):
    name = "odds_api"

    def __init__(self, client: OddsApiClient):
        self.client = client
        super().__init__(connectors=[client])

    def register_tools(self) -> None:
        self.add_tool(
            "get_sports",
            "List in-season sports (or all sports) and their keys.",
            object_schema({"all": {"type": "boolean"}}),
            self.get_sports,
        )
        self.add_tool(
            "get_odds",
            "Bookmaker odds for a sport's upcoming events.",
            object_schema(
                {
                    "sport": _SPORT,
                    "regions": {"type": "array", "items": {"type": "string"}},
                    "markets": {"type": "array", "items": {"type": "string"}},
                    "oddsFormat": {"type": "string", "enum": ["decimal", "american"]},
                    "bookmakers": {"type": "array", "items": {"type": "string"}},
                    "eventIds": {"type": "array", "items": {"type": "string"}},
                },
                required=["sport"],
            ),
            self.get_odds,
        )
        self.add_tool(
            "get_scores",
            "Live scores and recently completed results (up to 3 days back).",
            object_schema(
                {
                    "sport": _SPORT,
                    "daysFrom": {"type": "number", "description": "Days of completed games to include (1-3)"},
                    "eventIds": {"type": "array", "items": {"type": "string"}},
                },
                required=["sport"],
            ),
            self.get_scores,
            output_schema=object_schema(
                {
                    "games": {"type": "array"},
                    "liveGames": {"type": "number"},
                    "completedGames": {"type": "number"},
                },
                required=["games"],
            ),
        )
        self.add_tool(
            "analyze_market_efficiency",
            "Per-bookmaker vig and vig-free consensus probabilities for a sport or one event.",
            object_schema(
                {"sport": _SPORT, "eventId": {"type": "string"}, "market": _MARKET},
                required=["sport"],
            ),
            self.analyze_market_efficiency,
        )
        self.add_tool(
            "find_arbitrage_opportunities",
            "Events where best prices across bookmakers imply a total below 100%.",
            object_schema(
                {
                    "sport": _SPORT,
                    "minProfitPercent": {"type": "number"},
                    "maxResults": {"type": "number"},
                }
            ),
            self.find_arbitrage_opportunities,
        )
        self.add_tool(
            "get_comparable_markets",
            "Sportsbook events in the cross-platform comparable format: best-price odds "
            "converted to 0-1 probabilities (1/odds).",
            object_schema(
                {
                    "sport": _SPORT,
                    "market": _MARKET,
                    "category": {"type": "string", "description": "Category filter; sportsbook events are all 'sports'"},
                    "keywords": {"type": "string"},
                    "minVolume": {"type": "number"},
                    "limit": {"type": "number"},
                    "includeCompleted": {"type": "boolean"},
                }
            ),
            self.get_comparable_markets,
            output_schema=object_schema({"platform": {"type": "string"}, "markets": {"type": "array"}}),
        )

    async def get_sports(self, args: dict[str, Any]) -> dict[str, Any]:
        sports = await self.client.list_sports(all_sports=bool(args.get("all")))
        rows = [
            {
                "key": s.get("key"),
                "group": s.get("group"),
                "title": s.get("title"),
                "description": s.get("description"),
                "active": s.get("active"),
                "hasOutrights": s.get("has_outrights"),
            }
            for s in sports
        ]
        active = sum(1 for s in sports if s.get("active"))
        return {"sports": rows, "totalActive": active, "totalInactive": len(sports) - active}

    async def get_odds(self, args: dict[str, Any]) -> dict[str, Any]:
        sport = require(args, "sport", "sport parameter is required")
        regions = _as_list(args.get("regions"), ["us"])
        markets = _as_list(args.get("markets"), ["h2h"])
        bookmakers = _as_list(args.get("bookmakers"), []) or None
        odds_format = args.get("oddsFormat") or "decimal"
        data = await self.client.get_odds(
            sport,
            markets=markets,
            regions=regions,
            bookmakers=bookmakers,
            event_ids=_as_list(args.get("eventIds"), []) or None,
            odds_format=odds_format,
        )
        regions_used = math.ceil(len(bookmakers) / 10) if bookmakers else len(regions)
        events = [
            {
                "id": e.get("id"),
                "sportKey": e.get("sport_key"),
                "sportTitle": e.get("sport_title"),
                "commenceTime": e.get("commence_time"),
                "homeTeam": e.get("home_team"),
                "awayTeam": e.get("away_team"),
                "bookmakers": [
                    {
                        "key": b.get("key"),
                        "title": b.get("title"),
                        "lastUpdate": b.get("last_update"),
                        "markets": _with_implied(b.get("markets"), odds_format),
                    }
                    for b in e.get("bookmakers") or []
                ],
            }
            for e in data
        ]
        return {"events": events, "oddsFormat": odds_format, "quotaCost": len(markets) * regions_used}

    async def get_scores(self, args: dict[str, Any]) -> dict[str, Any]:
        sport = require(args, "sport", "sport parameter is required")
        days_from = int_arg(args, "daysFrom", 0, maximum=3, minimum=0) or None
        data = await self.client.get_scores(
            sport, days_from=days_from, event_ids=_as_list(args.get("eventIds"), []) or None
        )
        games = [
            {
                "id": e.get("id"),
                "sportKey": e.get("sport_key"),
                "commenceTime": e.get("commence_time"),
                "completed": bool(e.get("completed")),
                "homeTeam": e.get("home_team"),
                "awayTeam": e.get("away_team"),
                "homeScore": _score(e, e.get("home_team")),
                "awayScore": _score(e, e.get("away_team")),
                "lastUpdate": e.get("last_update"),
            }
            for e in data
        ]
        return {
            "games": games,
            "liveGames": sum(1 for g in games if not g["completed"] and g["homeScore"] is not None),
            "completedGames": sum(1 for g in games if g["completed"]),
        }

    async def analyze_market_efficiency(self, args: dict[str, Any]) -> dict[str, Any]:
        sport = require(args, "sport", "sport parameter is required")
        market = args.get("market") or "h2h"
        event_id = args.get("eventId")
        if event_id:
            data = [await self.client.get_event_odds(sport, event_id, markets=market)]
        else:
            data = await self.client.get_odds(sport, markets=market)
        events = []
        for event in data:
            rows, consensus = bookmaker_breakdown(event, market)
            average_vig = sum(r["vigPercent"] for r in rows) / len(rows) if rows else 0.0
            events.append(
                {
                    "eventId": event.get("id"),
                    "event": event_title(event, market),
                    "commenceTime": event.get("commence_time"),
                    "market": market,
                    "bookmakerEfficiency": rows,
                    "consensusProbabilities": consensus,
                    "lowestVigBookmaker": rows[0]["bookmaker"] if rows else "",
                    "averageVig": round(average_vig, 2),
                }
            )
        if events and events[0]["bookmakerEfficiency"]:
            first = events[0]
            recommendation = (
                f"For best value, prefer bookmakers with lowest vig. {first['lowestVigBookmaker']} offers "
                f"the most efficient odds at {first['bookmakerEfficiency'][0]['vigPercent']:.2f}% vig. "
                "Consensus probabilities are vig-adjusted and comparable to prediction market prices."
            )
        else:
            recommendation = "No events found for analysis."
        return {"events": events, "recommendation": recommendation}

    async def find_arbitrage_opportunities(self, args: dict[str, Any]) -> dict[str, Any]:
        sport = args.get("sport") or "upcoming"
        min_profit = float_arg(args, "minProfitPercent", 0.5)
        max_results = int_arg(args, "maxResults", 10)
        data = await self.client.get_odds(sport, markets="h2h")
        opportunities = []
        books_scanned = 0
        for event in data:
            books_scanned += len(event.get("bookmakers") or [])
            best = best_prices(event, "h2h")
            if len(best) < 2:
                continue
            names = list(best)
            implied = [to_probability(best[n][0], PriceRepresentation.DECIMAL_ODDS) for n in names]
            total = sum(implied)
            if total >= 1:
                continue
            profit = metrics.arbitrage_profit_percent(total)
            if profit < min_profit:
                continue
            stakes = metrics.arbitrage_stakes(implied)
            opportunities.append(
                {
                    "event": event_title(event, "h2h"),
                    "eventId": event.get("id"),
                    "sport": event.get("sport_key"),
                    "commenceTime": event.get("commence_time"),
                    "market": "h2h",
                    "profitPercent": round(profit, 2),
                    "totalImpliedOdds": round(total, 4),
                    "legs": [
                        {
                            "outcome": n,
                            "bookmaker": best[n][1],
                            "price": best[n][0],
                            "impliedProbability": p,
                            "stakePercent": s,
                        }
                        for n, p, s in zip(names, implied, stakes)
                    ],
                }
            )
        opportunities.sort(key=lambda o: o["profitPercent"], reverse=True)
        top = opportunities[:max_results]
        if top:
            recommendation = (
                f"Found {len(top)} arbitrage opportunities. Best opportunity: "
                f"{top[0]['profitPercent']:.2f}% guaranteed profit on {top[0]['event']}."
            )
        else:
            recommendation = (
                "No arbitrage opportunities found meeting the minimum profit threshold. "
                "Markets are efficiently priced."
            )
        return {
            "opportunities": top,
            "totalScanned": books_scanned,
            "eventsAnalyzed": len(data),
            "recommendation": recommendation,
        }

    async def get_comparable_markets(self, args: dict[str, Any]) -> dict[str, Any]:
        sport = args.get("sport") or "upcoming"
        market = args.get("market") or "h2h"
        query = ComparableQuery.from_args(args, default_limit=30)
        query = query.model_copy(update={"limit": min(query.limit, 50)})
        data = await self.client.get_odds(sport, markets=market)
        listings = [item for event in data for item in to_listings(event, market)]
        markets = assemble(listings, query)
        payload = comparable_payload("odds_api", markets)
        payload["hint"] = (
            f"Returned {len(markets)} sports events. Probabilities are 1/decimal odds at the best "
            "available price; sportsbook probabilities often sum above 1 because of vig."
        )
        return payload
