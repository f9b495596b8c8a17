"""Coinglass tool server: reference data, sentiment, funding, volume anomalies."""

from __future__ import annotations

from typing import Any

from oddsbridge.core.args import float_arg
from oddsbridge.ingestion.coinglass.client import CoinglassClient
from oddsbridge.servers.base import ToolServer, object_schema

MAX_ANOMALIES = 15


def fear_greed_label(value: float) -> str:
    if value >= 75:
        return "Extreme Greed"
    if value >= 55:
        return "Greed"
    if value >= 45:
        return "Neutral"
    if value >= 25:
        return "Fear"
    return "Extreme Fear"


def volume_anomalies(rows: list[dict[str, Any]], threshold: float) -> list[dict[str, Any]]:
    """Coins whose 1h volume change exceeds (threshold - 1) * 100 percent in either direction."""
    cutoff = (threshold - 1) * 100
    hits = []
    for row in rows:
        change = row.get("volume_change_percent_1h") or 0
        if abs(change) <= cutoff:
            continue
        hits.append(
            {
                "symbol": row.get("symbol"),
                "currentPrice": row.get("current_price"),
                "volume1h": row.get("volume_usd_1h"),
                "volume24h": row.get("volume_usd_24h"),
                "volumeChange1h": change,
                "volumeChange24h": row.get("volume_change_percent_24h"),
                "significance": "extreme" if abs(change) > 200 else "notable",
            }
        )
    hits.sort(key=lambda h: abs(h["volumeChange1h"]), reverse=True)
    return hits[:MAX_ANOMALIES]


class CoinglassServer(ToolServer):
    name = "coinglass"

    def __init__(self, client: CoinglassClient):
        self.client = client
        super().__init__(connectors=[client])

    def register_tools(self) -> None:
        self.add_tool(
            "get_supported_coins",
            "Coins with futures data on Coinglass.",
            object_schema(),
            self.get_supported_coins,
        )
        self.add_tool(
            "get_fear_greed_index",
            "Crypto fear & greed index history with the latest reading labelled.",
            object_schema(),
            self.get_fear_greed_index,
        )
        self.add_tool(
            "get_funding_rates",
            "Perpetual funding rates per exchange for one coin.",
            object_schema({"symbol": {"type": "string", "description": "Coin, e.g. BTC (default)"}}),
            self.get_funding_rates,
        )
        self.add_tool(
            "scan_volume_anomalies",
            "Spot coins with unusual 1h volume change.",
            object_schema({"threshold": {"type": "number", "description": "Multiple of normal (default 2)"}}),
            self.scan_volume_anomalies,
        )

    async def get_supported_coins(self, args: dict[str, Any]) -> dict[str, Any]:
        coins = await self.client.supported_coins()
        return {"coins": coins, "count": len(coins)}

    async def get_fear_greed_index(self, args: dict[str, Any]) -> dict[str, Any]:
        data = await self.client.fear_greed()
        result: dict[str, Any] = {"data": data}
        values = data.get("data_list") if isinstance(data, dict) else None
        if values:
            latest = values[-1]
            result["latest"] = {"value": latest, "sentiment": fear_greed_label(latest)}
        return result

    async def get_funding_rates(self, args: dict[str, Any]) -> dict[str, Any]:
        symbol = (args.get("symbol") or "BTC").upper()
        data = await self.client.funding_rates(symbol)
        return {"symbol": symbol, "data": data}

    async def scan_volume_anomalies(self, args: dict[str, Any]) -> dict[str, Any]:
        threshold = float_arg(args, "threshold", 2, minimum=0)
        rows = await self.client.coins_markets(page=1, per_page=50)
        anomalies = volume_anomalies(rows, threshold)
        extreme = sum(1 for a in anomalies if a["significance"] == "extreme")
        if extreme >= 3:
            context = "HIGH ALERT: Multiple extreme volume anomalies. Potential market-wide event."
        elif len(anomalies) > 5:
            context = "Elevated activity: Several coins showing unusual volume."
        else:
            context = "Normal conditions with some localized activity."
        return {
            "anomalies": anomalies,
            "scannedCoins": len(rows),
            "anomaliesFound": len(anomalies),
            "threshold": f"{threshold:g}x normal",
            "marketContext": context,
        }
