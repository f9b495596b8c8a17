"""Build every tool server from settings."""

from __future__ import annotations

from oddsbridge.config import Settings
from oddsbridge.ingestion.binance.client import BinanceClient
from oddsbridge.ingestion.coinglass.client import CoinglassClient
from oddsbridge.ingestion.kalshi.client import KalshiClient
from oddsbridge.ingestion.odds_api.client import OddsApiClient
from oddsbridge.ingestion.polymarket.gamma import GammaClient
from oddsbridge.servers.base import ToolServer
from oddsbridge.servers.binance import BinanceServer
from oddsbridge.servers.coinglass import CoinglassServer
from oddsbridge.servers.compare import CompareServer
from oddsbridge.servers.kalshi import KalshiServer
from oddsbridge.servers.odds_api import OddsApiServer
from oddsbridge.servers.polymarket import PolymarketServer

SERVER_NAMES = ("kalshi", "odds_api", "polymarket", "binance", "coinglass", "compare")


def build_server(name: str, settings: Settings) -> ToolServer:
    if name == "kalshi":
        return KalshiServer(KalshiClient(settings.kalshi_api_base, timeout=settings.kalshi_timeout_sec))
    if name == "odds_api":
        return OddsApiServer(
            OddsApiClient(
                settings.odds_api_base,
                settings.odds_api_key,
                regions=settings.odds_api_regions,
                timeout=settings.odds_api_timeout_sec,
            )
        )
    if name == "polymarket":
        return PolymarketServer(GammaClient(settings.gamma_api_base, timeout=settings.polymarket_timeout_sec))
    if name == "binance":
        return BinanceServer(
            BinanceClient(
                settings.binance_spot_api_base,
                futures_base_url=settings.binance_futures_api_base,
                timeout=settings.binance_timeout_sec,
            )
        )
    if name == "coinglass":
        return CoinglassServer(
            CoinglassClient(
                settings.coinglass_api_base,
                settings.coinglass_api_key,
                timeout=settings.coinglass_timeout_sec,
            )
        )
    if name == "compare":
        return CompareServer()
    raise KeyError(name)


def build_servers(settings: Settings) -> dict[str, ToolServer]:
    return {name: build_server(name, settings) for name in SERVER_NAMES}
