"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import os
import sys
import tomllib
from pathlib import Path
from typing import Any

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    directory = _find_config_dir(config_dir)
    default_path = directory / "default.toml"
    if not default_path.exists():
        return {}
    base = _load_toml(default_path)
    if profile:
        profile_path = directory / f"{profile}.toml"
        if profile_path.exists():
            overlay = _load_toml(profile_path)
            base = _deep_merge(base, overlay)
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    raw = load_config(profile, config_dir)
    return Settings.from_dict(raw)


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        server: dict[str, Any] | None = None,
        kalshi: dict[str, Any] | None = None,
        odds_api: dict[str, Any] | None = None,
        polymarket: dict[str, Any] | None = None,
        binance: dict[str, Any] | None = None,
        coinglass: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.server = server or {}
        self.kalshi = kalshi or {}
        self.odds_api = odds_api or {}
        self.polymarket = polymarket or {}
        self.binance = binance or {}
        self.coinglass = coinglass or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            server=raw.get("server"),
            kalshi=raw.get("kalshi"),
            odds_api=raw.get("odds_api"),
            polymarket=raw.get("polymarket"),
            binance=raw.get("binance"),
            coinglass=raw.get("coinglass"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def host(self) -> str:
        return self.server.get("host", "127.0.0.1")

    @property
    def port(self) -> int:
        return int(self.server.get("port", 8000))

    @property
    def session_idle_timeout_sec(self) -> float:
        return float(self.server.get("session_idle_timeout_sec", 1800))

    @property
    def kalshi_api_base(self) -> str:
        return os.environ.get("KALSHI_API_BASE_URL") or self.kalshi.get(
            "api_base", "https://api.elections.kalshi.com/trade-api/v2"
        )

    @property
    def kalshi_timeout_sec(self) -> float:
        return float(self.kalshi.get("timeout_sec", 15.0))

    @property
    def odds_api_base(self) -> str:
        return self.odds_api.get("api_base", "https://api.the-odds-api.com/v4")

    @property
    def odds_api_key(self) -> str:
        return os.environ.get("ODDS_API_KEY") or self.odds_api.get("api_key", "")

    @property
    def odds_api_timeout_sec(self) -> float:
        return float(self.odds_api.get("timeout_sec", 30.0))

    @property
    def odds_api_regions(self) -> list[str]:
        return list(self.odds_api.get("regions") or ["us", "us2", "eu", "uk", "au"])

    @property
    def gamma_api_base(self) -> str:
        return self.polymarket.get("gamma_api_base", "https://gamma-api.polymarket.com")

    @property
    def polymarket_timeout_sec(self) -> float:
        return float(self.polymarket.get("timeout_sec", 30.0))

    @property
    def binance_spot_api_base(self) -> str:
        return self.binance.get("spot_api_base", "https://api.binance.com")

    @property
    def binance_futures_api_base(self) -> str:
        return self.binance.get("futures_api_base", "https://fapi.binance.com")

    @property
    def binance_timeout_sec(self) -> float:
        return float(self.binance.get("timeout_sec", 30.0))

    @property
    def coinglass_api_base(self) -> str:
        return self.coinglass.get("api_base", "https://open-api-v4.coinglass.com")

    @property
    def coinglass_api_key(self) -> str:
        return os.environ.get("COINGLASS_API_KEY") or self.coinglass.get("api_key", "")

    @property
    def coinglass_timeout_sec(self) -> float:
        return float(self.coinglass.get("timeout_sec", 30.0))

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def configure_logging(settings: Settings, stream: Any = None) -> None:
    """Configure structlog with settings. Call once at application entry.

    Pass stream=sys.stderr when stdout carries the MCP stdio protocol.
    """
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=True,
    )
