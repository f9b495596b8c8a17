"""Coinglass v4 open API client. Responses wrap data in {code, msg, data}."""

from __future__ import annotations

from typing import Any

import httpx

from oddsbridge.errors import UpstreamError
from oddsbridge.ingestion.base import RestConnector


class CoinglassClient(RestConnector):
    source = "Coinglass"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(
            base_url,
            timeout=timeout,
            headers={"accept": "application/json", "CG-API-KEY": api_key},
            client=client,
        )

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Unwrap the envelope; any code other than "0" is an upstream error."""
        cleaned = {k: v for k, v in (params or {}).items() if v != ""}
        body = await self.get_json(endpoint, cleaned)
        if not isinstance(body, dict):
            raise UpstreamError(self.source, "unexpected response shape")
        if str(body.get("code")) != "0":
            raise UpstreamError(self.source, body.get("msg") or "Unknown")
        return body.get("data")

    async def supported_coins(self) -> list[Any]:
        data = await self.get("/api/futures/supported-coins")
        return data if isinstance(data, list) else []

    async def fear_greed(self) -> Any:
        return await self.get("/api/index/fear-greed-history")

    async def funding_rates(self, symbol: str = "BTC") -> Any:
        return await self.get("/api/futures/fundingRate/exchange-list", {"symbol": symbol.upper()})

    async def coins_markets(self, page: int = 1, per_page: int = 50) -> list[dict[str, Any]]:
        data = await self.get("/api/spot/coins-markets", {"page": page, "per_page": per_page})
        return data if isinstance(data, list) else []
