"""Binance public spot/futures REST client."""

from __future__ import annotations

from typing import Any

import httpx

from oddsbridge.ingestion.base import RestConnector

TOP_ASSETS = (
    "BTCUSDT", "ETHUSDT", "BNBUSDT", "SOLUSDT", "XRPUSDT",
    "DOGEUSDT", "ADAUSDT", "AVAXUSDT", "LINKUSDT", "DOTUSDT",
    "MATICUSDT", "LTCUSDT", "SHIBUSDT", "ATOMUSDT", "UNIUSDT",
    "XLMUSDT", "NEARUSDT", "APTUSDT", "ARBUSDT", "OPUSDT",
)


def parse_kline(k: list[Any]) -> dict[str, Any]:
    """Positional kline array -> named candle. Price fields stay strings as Binance sends them."""
    return {
        "openTime": k[0],
        "open": k[1],
        "high": k[2],
        "low": k[3],
        "close": k[4],
        "volume": k[5],
        "closeTime": k[6],
        "quoteVolume": k[7],
        "trades": k[8],
        "takerBuyBaseVolume": k[9],
        "takerBuyQuoteVolume": k[10],
    }


def daily_notional(k: list[Any]) -> float:
    """Base volume times close."""
    return float(k[5]) * float(k[4])


def daily_range_percent(k: list[Any]) -> float:
    """(high - low) / close as a percent."""
    close = float(k[4])
    if close <= 0:
        return 0.0
    return (float(k[2]) - float(k[3])) / close * 100


class BinanceClient(RestConnector):
    source = "Binance"

    def __init__(
        self,
        base_url: str,
        futures_base_url: str = "https://fapi.binance.com",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, timeout=timeout, client=client)
        self.futures_base_url = futures_base_url.rstrip("/")

    async def klines(
        self,
        symbol: str,
        interval: str,
        limit: int = 100,
        start_time: int | None = None,
        end_time: int | None = None,
    ) -> list[list[Any]]:
        return await self.get_json(
            "/api/v3/klines",
            {
                "symbol": symbol,
                "interval": interval,
                "limit": limit,
                "startTime": start_time,
                "endTime": end_time,
            },
        )

    async def depth(self, symbol: str, limit: int = 100) -> dict[str, Any]:
        return await self.get_json("/api/v3/depth", {"symbol": symbol, "limit": limit})

    async def recent_trades(self, symbol: str, limit: int = 500) -> list[dict[str, Any]]:
        return await self.get_json("/api/v3/trades", {"symbol": symbol, "limit": limit})

    async def ticker_24h(self, symbol: str | None = None) -> list[dict[str, Any]]:
        data = await self.get_json("/api/v3/ticker/24hr", {"symbol": symbol})
        return data if isinstance(data, list) else [data]

    async def premium_index(self, symbol: str | None = None) -> list[dict[str, Any]]:
        """Futures mark price and funding rate."""
        data = await self.get_json(f"{self.futures_base_url}/fapi/v1/premiumIndex", {"symbol": symbol})
        return data if isinstance(data, list) else [data]

    async def futures_ticker_24h(self) -> list[dict[str, Any]]:
        """24h stats for every perpetual contract."""
        data = await self.get_json(f"{self.futures_base_url}/fapi/v1/ticker/24hr")
        return data if isinstance(data, list) else [data]
