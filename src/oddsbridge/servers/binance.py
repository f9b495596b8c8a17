"""Binance tool server: orderbook depth, trades, tickers, klines, anomaly scan, funding arbitrage."""

from __future__ import annotations

from typing import Any

from oddsbridge.core import metrics
from oddsbridge.core.args import float_arg, int_arg
from oddsbridge.ingestion.binance.client import (
    TOP_ASSETS,
    BinanceClient,
    daily_notional,
    daily_range_percent,
    parse_kline,
)
from oddsbridge.servers.base import ToolServer, object_schema, require

_SYMBOL = {"type": "string", "description": "Trading pair, e.g. BTCUSDT"}
FUNDING_PERIODS_PER_YEAR = 3 * 365


def market_context(anomalies: list[dict[str, Any]]) -> str:
    extreme = sum(1 for a in anomalies if a["significance"] == "extreme")
    if extreme >= 3:
        return "HIGH ALERT: Multiple extreme anomalies detected. Potential market-wide event or regime change."
    if extreme >= 1:
        return "Notable: Some extreme anomalies present. Monitor for breakouts."
    if anomalies:
        return "Moderate: Some statistical anomalies detected."
    return "Quiet: No significant anomalies. Market in consolidation."


def scan_klines(symbol: str, klines: list[list[Any]], threshold: float) -> dict[str, Any] | None:
    """Z-score the last daily candle against the ones before it. None when nothing is anomalous."""
    volumes = [daily_notional(k) for k in klines]
    ranges = [daily_range_percent(k) for k in klines]
    current_volume, history_volume = volumes[-1], volumes[:-1]
    current_range, history_range = ranges[-1], ranges[:-1]
    volume_z = metrics.zscore(current_volume, history_volume)
    range_z = metrics.zscore(current_range, history_range)
    volume_hit = volume_z > threshold
    range_hit = range_z > threshold
    if not (volume_hit or range_hit):
        return None
    if volume_hit and range_hit:
        kind = "both"
    elif volume_hit:
        kind = "volume_spike"
    else:
        kind = "volatility_spike"
    return {
        "symbol": symbol,
        "volumeZScore": round(volume_z, 2),
        "volatilityZScore": round(range_z, 2),
        "currentVolume": current_volume,
        "avgVolume": metrics.mean_std(history_volume)[0],
        "currentVolatility": current_range,
        "avgVolatility": metrics.mean_std(history_range)[0],
        "anomalyType": kind,
        "significance": metrics.zscore_significance(max(volume_z, range_z)),
    }


def funding_opportunity(
    mark: dict[str, Any], ticker: dict[str, Any] | None, min_yield: float
) -> dict[str, Any] | None:
    """Annualized funding carry for one perpetual. None below `min_yield` percent or with no funding."""
    rate = float(mark.get("lastFundingRate") or 0)
    if rate == 0:
        return None
    annualized = abs(rate) * FUNDING_PERIODS_PER_YEAR * 100
    if annualized < min_yield:
        return None
    mark_price = float(mark.get("markPrice") or 0)
    index_price = float(mark.get("indexPrice") or 0)
    volume = float((ticker or {}).get("quoteVolume") or 0)
    if volume > 100_000_000:
        risk = "low"
    elif volume > 10_000_000:
        risk = "medium"
    else:
        risk = "high"
    return {
        "symbol": mark.get("symbol"),
        "currentFundingRate": rate,
        "annualizedYield": round(annualized, 2),
        "basisSpread": round((mark_price - index_price) / index_price * 100, 4) if index_price else 0.0,
        # positive funding: longs pay shorts
        "direction": "short_perp" if rate > 0 else "long_perp",
        "volume24h": volume,
        "riskLevel": risk,
    }


class BinanceServer(ToolServer):
    name = "binance"

    def __init__(self, client: BinanceClient):
        self.client = client
        super().__init__(connectors=[client])

    def register_tools(self) -> None:
        self.add_tool(
            "get_orderbook_depth",
            "Spot orderbook with bid/ask totals and spread in basis points.",
            object_schema({"symbol": _SYMBOL, "limit": {"type": "number"}}, required=["symbol"]),
            self.get_orderbook_depth,
        )
        self.add_tool(
            "get_recent_trades",
            "Recent executed spot trades (the tape) for a symbol.",
            object_schema(
                {"symbol": _SYMBOL, "limit": {"type": "number", "description": "Default 500, max 1000"}},
                required=["symbol"],
            ),
            self.get_recent_trades,
            output_schema=object_schema(
                {"symbol": {"type": "string"}, "trades": {"type": "array"}, "count": {"type": "number"}},
                required=["symbol", "trades", "count"],
            ),
        )
        self.add_tool(
            "get_ticker_24hr",
            "24-hour spot statistics for one symbol, or every symbol when omitted.",
            object_schema({"symbol": _SYMBOL}),
            self.get_ticker_24hr,
            output_schema=object_schema({"tickers": {"type": "array"}}, required=["tickers"]),
        )
        self.add_tool(
            "find_funding_arbitrage",
            "Perpetuals ranked by annualized funding yield, with basis spread and a volume-based risk level.",
            object_schema(
                {
                    "minAnnualizedYield": {"type": "number", "description": "Percent, default 10"},
                    "topN": {"type": "number", "description": "Default 10"},
                }
            ),
            self.find_funding_arbitrage,
            output_schema=object_schema(
                {"opportunities": {"type": "array"}, "marketStats": {"type": "object"}},
                required=["opportunities", "marketStats"],
            ),
        )
        self.add_tool(
            "get_historical_klines",
            "Spot candles for a symbol and interval.",
            object_schema(
                {
                    "symbol": _SYMBOL,
                    "interval": {"type": "string", "description": "1m, 1h, 1d, ..."},
                    "limit": {"type": "number"},
                    "startTime": {"type": "number"},
                    "endTime": {"type": "number"},
                },
                required=["symbol", "interval"],
            ),
            self.get_historical_klines,
        )
        self.add_tool(
            "scan_volatility_anomalies",
            "Z-score today's notional volume and daily range against a lookback window.",
            object_schema(
                {
                    "symbols": {"type": "array", "items": {"type": "string"}},
                    "zScoreThreshold": {"type": "number"},
                    "lookbackDays": {"type": "number"},
                }
            ),
            self.scan_volatility_anomalies,
        )

    async def get_orderbook_depth(self, args: dict[str, Any]) -> dict[str, Any]:
        symbol = require(args, "symbol")
        book = await self.client.depth(symbol, limit=int_arg(args, "limit", 100))
        bids = book.get("bids") or []
        asks = book.get("asks") or []
        best_bid = float(bids[0][0]) if bids else 0.0
        best_ask = float(asks[0][0]) if asks else 0.0
        return {
            "symbol": symbol,
            "lastUpdateId": book.get("lastUpdateId"),
            "bids": bids,
            "asks": asks,
            "bidTotal": sum(float(q) for _, q in bids),
            "askTotal": sum(float(q) for _, q in asks),
            "spreadBps": round(metrics.spread_bps(best_bid, best_ask), 2),
        }

    async def get_recent_trades(self, args: dict[str, Any]) -> dict[str, Any]:
        symbol = require(args, "symbol")
        trades = await self.client.recent_trades(symbol, limit=int_arg(args, "limit", 500, 1000))
        return {"symbol": symbol, "trades": trades, "count": len(trades)}

    async def get_ticker_24hr(self, args: dict[str, Any]) -> dict[str, Any]:
        tickers = await self.client.ticker_24h(args.get("symbol") or None)
        return {"tickers": tickers, "count": len(tickers)}

    async def find_funding_arbitrage(self, args: dict[str, Any]) -> dict[str, Any]:
        min_yield = float_arg(args, "minAnnualizedYield", 10, minimum=0)
        top_n = int_arg(args, "topN", 10, 100)
        marks = await self.client.premium_index()
        tickers = {t.get("symbol"): t for t in await self.client.futures_ticker_24h()}
        rates = [float(m.get("lastFundingRate") or 0) for m in marks]
        nonzero = [r for r in rates if r != 0]
        opportunities = []
        for mark in marks:
            found = funding_opportunity(mark, tickers.get(mark.get("symbol")), min_yield)
            if found is not None:
                opportunities.append(found)
        opportunities.sort(key=lambda o: o["annualizedYield"], reverse=True)
        return {
            "opportunities": opportunities[:top_n],
            "marketStats": {
                "avgFundingRate": sum(nonzero) / len(nonzero) if nonzero else 0.0,
                "positiveFundingCount": sum(1 for r in nonzero if r > 0),
                "negativeFundingCount": sum(1 for r in nonzero if r < 0),
            },
        }

    async def get_historical_klines(self, args: dict[str, Any]) -> dict[str, Any]:
        symbol = require(args, "symbol")
        interval = require(args, "interval")
        data = await self.client.klines(
            symbol,
            interval,
            limit=int_arg(args, "limit", 100, 1000),
            start_time=args.get("startTime"),
            end_time=args.get("endTime"),
        )
        candles = [parse_kline(k) for k in data]
        return {"symbol": symbol, "interval": interval, "candles": candles, "count": len(candles)}

    async def scan_volatility_anomalies(self, args: dict[str, Any]) -> dict[str, Any]:
        symbols = list(args.get("symbols") or TOP_ASSETS)
        threshold = float_arg(args, "zScoreThreshold", 2.0, minimum=0)
        lookback = int_arg(args, "lookbackDays", 30, 90)
        anomalies = []
        for symbol in symbols:
            klines = await self.client.klines(symbol, "1d", limit=lookback + 1)
            if len(klines) < lookback:
                continue
            found = scan_klines(symbol, klines, threshold)
            if found is not None:
                anomalies.append(found)
        anomalies.sort(key=lambda a: max(a["volumeZScore"], a["volatilityZScore"]), reverse=True)
        return {
            "anomalies": anomalies,
            "scannedSymbols": len(symbols),
            "anomaliesFound": len(anomalies),
            "zScoreThreshold": threshold,
            "lookbackDays": lookback,
            "marketContext": market_context(anomalies),
        }
