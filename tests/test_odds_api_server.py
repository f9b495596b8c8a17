"""The Odds API tool server against a mocked upstream."""

import asyncio

import httpx
import pytest

from oddsbridge.ingestion.odds_api.client import (
    OddsApiClient,
    best_prices,
    event_title,
    is_finished,
    outcome_key,
    to_listings,
)
from oddsbridge.servers.odds_api import OddsApiServer, bookmaker_breakdown, implied_probability

FUTURE = "2099-01-01T00:00:00Z"


def _book(title, prices, market="h2h"):
    return {
        "key": title.lower(),
        "title": title,
        "markets": [{"key": market, "outcomes": [{"name": n, "price": p} for n, p in prices.items()]}],
    }


LAL_BOS = {
    "id": "ev1",
    "sport_key": "basketball_nba",
    "sport_title": "NBA",
    "commence_time": FUTURE,
    "home_team": "Los Angeles Lakers",
    "away_team": "Boston Celtics",
    "bookmakers": [
        _book("DraftKings", {"Los Angeles Lakers": 2.10, "Boston Celtics": 1.80}),
        _book("FanDuel", {"Los Angeles Lakers": 2.20, "Boston Celtics": 1.75}),
    ],
}
ARB = {
    "id": "ev2",
    "sport_key": "basketball_nba",
    "sport_title": "NBA",
    "commence_time": FUTURE,
    "home_team": "Denver Nuggets",
    "away_team": "Miami Heat",
    "bookmakers": [
        _book("BookA", {"Denver Nuggets": 2.2, "Miami Heat": 1.9}),
        _book("BookB", {"Denver Nuggets": 2.0, "Miami Heat": 2.1}),
    ],
}

SCORES = [
    {
        "id": "ev0",
        "sport_key": "basketball_nba",
        "commence_time": "2026-10-16T00:00:00Z",
        "completed": True,
        "home_team": "Denver Nuggets",
        "away_team": "Miami Heat",
        "scores": [{"name": "Denver Nuggets", "score": "112"}, {"name": "Miami Heat", "score": "104"}],
        "last_update": "2026-10-16T03:00:00Z",
    },
    {
        "id": "ev1",
        "sport_key": "basketball_nba",
        "commence_time": "2026-10-17T00:00:00Z",
        "completed": False,
        "home_team": "Los Angeles Lakers",
        "away_team": "Boston Celtics",
        "scores": [{"name": "Los Angeles Lakers", "score": "51"}, {"name": "Boston Celtics", "score": "48"}],
    },
    {"id": "ev2", "sport_key": "basketball_nba", "completed": False, "home_team": "A", "away_team": "B", "scores": None},
]


def _server(handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://test")
    return OddsApiServer(OddsApiClient("https://test", "secret", client=http))


def _route(request: httpx.Request) -> httpx.Response:
    assert request.url.params["apiKey"] == "secret"
    path = request.url.path
    if path == "/sports":
        return httpx.Response(200, json=[
            {"key": "basketball_nba", "group": "Basketball", "title": "NBA", "active": True, "has_outrights": False},
            {"key": "golf_masters", "group": "Golf", "title": "Masters", "active": False, "has_outrights": True},
        ])
    if path == "/sports/basketball_nba/odds":
        return httpx.Response(200, json=[LAL_BOS, ARB])
    if path == "/sports/basketball_nba/events/ev1/odds":
        return httpx.Response(200, json=LAL_BOS)
    if path == "/sports/basketball_nba/scores":
        return httpx.Response(200, json=SCORES)
    return httpx.Response(404, json={"message": "Unknown sport"})


def _call(server, tool, args=None):
    return asyncio.run(server.call_tool(tool, args or {}))


def test_outcome_key_with_point():
    assert outcome_key({"name": "Lakers"}) == "Lakers"
    assert outcome_key({"name": "Lakers", "point": 3.5}) == "Lakers (+3.5)"
    assert outcome_key({"name": "Over", "point": -1.5}) == "Over (-1.5)"


def test_best_prices_and_title():
    best = best_prices(LAL_BOS)
    assert best["Los Angeles Lakers"] == (2.2, "FanDuel")
    assert best["Boston Celtics"] == (1.8, "DraftKings")
    assert event_title(LAL_BOS) == "Boston Celtics @ Los Angeles Lakers"
    assert event_title({"sport_title": "Masters Tournament Winner"}, "outrights") == "Masters Tournament Winner"


def test_started_events_are_finished():
    assert is_finished({"commence_time": "2000-01-01T00:00:00Z"})
    assert is_finished({"completed": True, "commence_time": FUTURE})
    assert not is_finished({"commence_time": FUTURE})


def test_bookmaker_breakdown():
    rows, consensus = bookmaker_breakdown(LAL_BOS, "h2h")
    assert [r["bookmaker"] for r in rows] == ["FanDuel", "DraftKings"]
    assert rows[1]["vigPercent"] == pytest.approx((1 / 2.1 + 1 / 1.8 - 1) * 100, abs=0.01)
    assert sum(consensus.values()) == pytest.approx(1.0, abs=1e-3)


def test_sport_required():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=[])

    result = _call(_server(handler), "get_odds")
    assert result.isError
    assert result.structuredContent["error"] == "sport parameter is required"
    assert calls == []


def test_upstream_error():
    result = _call(_server(_route), "get_odds", {"sport": "curling"})
    assert result.isError
    assert "Odds API error (404)" in result.structuredContent["error"]


def test_get_sports():
    data = _call(_server(_route), "get_sports").structuredContent
    assert data["totalActive"] == 1
    assert data["totalInactive"] == 1
    assert data["sports"][1]["hasOutrights"] is True


def test_get_odds_quota_cost():
    data = _call(_server(_route), "get_odds", {"sport": "basketball_nba", "markets": ["h2h", "spreads"]}).structuredContent
    assert data["quotaCost"] == 2
    assert data["events"][0]["homeTeam"] == "Los Angeles Lakers"
    data = _call(
        _server(_route),
        "get_odds",
        {"sport": "basketball_nba", "bookmakers": [f"b{i}" for i in range(12)]},
    ).structuredContent
    assert data["quotaCost"] == 2


def test_efficiency_for_one_event():
    data = _call(
        _server(_route), "analyze_market_efficiency", {"sport": "basketball_nba", "eventId": "ev1"}
    ).structuredContent
    assert len(data["events"]) == 1
    assert data["events"][0]["lowestVigBookmaker"] == "FanDuel"
    assert "FanDuel" in data["recommendation"]


def test_arbitrage():
    data = _call(_server(_route), "find_arbitrage_opportunities", {"sport": "basketball_nba"}).structuredContent
    assert data["eventsAnalyzed"] == 2
    assert data["totalScanned"] == 4
    [opp] = data["opportunities"]
    assert opp["eventId"] == "ev2"
    assert opp["profitPercent"] == pytest.approx((1 / (1 / 2.2 + 1 / 2.1) - 1) * 100, abs=0.01)
    assert {leg["bookmaker"] for leg in opp["legs"]} == {"BookA", "BookB"}
    assert sum(leg["stakePercent"] for leg in opp["legs"]) == pytest.approx(100.0)


def test_comparable_markets():
    data = _call(_server(_route), "get_comparable_markets", {"sport": "basketball_nba"}).structuredContent
    assert data["platform"] == "odds_api"
    assert data["totalCount"] == 2
    first = data["markets"][0]
    assert first["title"] == "Boston Celtics @ Los Angeles Lakers"
    assert first["eventCategory"] == "sports"
    assert first["isMultiOutcome"]
    assert [o["name"] for o in first["outcomes"]] == ["Boston Celtics", "Los Angeles Lakers"]
    assert first["outcomes"][0]["normalizedProbability"] == pytest.approx(round(1 / 1.8, 4))
    assert first["outcomes"][0]["rawPrice"] == 1.8
    assert set(first["teams"]) == {"Lakers", "Celtics"}


def test_comparable_markets_keyword_filter():
    data = _call(
        _server(_route), "get_comparable_markets", {"sport": "basketball_nba", "keywords": "nuggets"}
    ).structuredContent
    assert [m["platformMarketId"] for m in data["markets"]] == ["ev2"]


def test_client_scores_and_outright_listings():
    def handler(request):
        assert request.url.params["daysFrom"] == "3"
        return httpx.Response(200, json=[{"id": "ev1", "completed": True, "scores": []}])

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://test")
    scores = asyncio.run(OddsApiClient("https://test", "secret", client=http).get_scores("basketball_nba", days_from=3))
    assert scores[0]["completed"] is True

    outright = {
        "id": "gm1",
        "sport_title": "Masters Tournament Winner",
        "commence_time": FUTURE,
        "bookmakers": [_book("BookA", {"Scottie Scheffler": 4.0, "Rory McIlroy": 8.0}, market="outrights")],
    }
    listings = to_listings(outright, "outrights")
    assert {item.event_title for item in listings} == {"Masters Tournament Winner"}
    assert [item.price for item in listings] == [4.0, 8.0]


def test_get_scores():
    seen = []

    def handler(request):
        seen.append(request)
        return _route(request)

    data = _call(_server(handler), "get_scores", {"sport": "basketball_nba", "daysFrom": 7}).structuredContent
    assert seen[0].url.params["daysFrom"] == "3"
    assert data["completedGames"] == 1
    assert data["liveGames"] == 1
    final, live, pending = data["games"]
    assert (final["homeScore"], final["awayScore"]) == ("112", "104")
    assert final["lastUpdate"] == "2026-10-16T03:00:00Z"
    assert live["homeTeam"] == "Los Angeles Lakers"
    assert live["homeScore"] == "51"
    assert pending["homeScore"] is None


def test_get_scores_requires_sport():
    result = _call(_server(_route), "get_scores", {"daysFrom": 1})
    assert result.isError
    assert result.structuredContent["error"] == "sport parameter is required"


def test_implied_probability_by_format():
    assert implied_probability(2.5) == pytest.approx(0.4)
    assert implied_probability(150, "american") == pytest.approx(0.4)
    assert implied_probability(-200, "american") == pytest.approx(0.6667)
    assert implied_probability(0) is None


def test_get_odds_american_format():
    american = {
        **LAL_BOS,
        "bookmakers": [_book("DraftKings", {"Los Angeles Lakers": 150, "Boston Celtics": -200})],
    }

    def handler(request):
        assert request.url.params["oddsFormat"] == "american"
        return httpx.Response(200, json=[american])

    data = _call(_server(handler), "get_odds", {"sport": "basketball_nba", "oddsFormat": "american"}).structuredContent
    assert data["oddsFormat"] == "american"
    outcomes = data["events"][0]["bookmakers"][0]["markets"][0]["outcomes"]
    assert outcomes[0]["price"] == 150
    assert outcomes[0]["impliedProbability"] == pytest.approx(0.4)
    assert outcomes[1]["impliedProbability"] == pytest.approx(0.6667)


def test_comparable_markets_schema_and_filters():
    server = _server(_route)
    [tool] = [t for t in server.list_tools() if t.name == "get_comparable_markets"]
    assert {"category", "minVolume", "keywords", "limit"} <= set(tool.inputSchema["properties"])
    data = _call(server, "get_comparable_markets", {"sport": "basketball_nba", "category": "politics"}).structuredContent
    assert data["markets"] == []
    data = _call(_server(_route), "get_comparable_markets", {"sport": "basketball_nba", "category": "sports"}).structuredContent
    assert data["totalCount"] == 2
    data = _call(_server(_route), "get_comparable_markets", {"sport": "basketball_nba", "minVolume": 1}).structuredContent
    assert data["markets"] == []
