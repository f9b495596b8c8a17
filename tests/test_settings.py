"""Config loading, profile overlay and env fallbacks."""

from oddsbridge.config import Settings, get_settings, load_config
from oddsbridge.servers import SERVER_NAMES, build_servers


def _write(path, text):
    path.write_text(text, encoding="utf-8")


def test_profile_overlays_default(tmp_path):
    _write(tmp_path / "default.toml", '[server]\nport = 8000\n[logging]\nlevel = "INFO"\nformat = "json"\n')
    _write(tmp_path / "dev.toml", '[logging]\nlevel = "debug"\n')
    settings = get_settings("dev", tmp_path)
    assert settings.port == 8000
    assert settings.logging_level == "DEBUG"
    assert settings.logging_format == "json"


def test_missing_config_dir_gives_defaults(tmp_path):
    assert load_config(None, tmp_path) == {}
    settings = get_settings(None, tmp_path)
    assert settings.kalshi_api_base.startswith("https://")
    assert settings.session_idle_timeout_sec == 1800


def test_api_keys_from_env(monkeypatch):
    monkeypatch.setenv("ODDS_API_KEY", "odds-key")
    monkeypatch.setenv("COINGLASS_API_KEY", "cg-key")
    settings = Settings(odds_api={"api_key": ""})
    assert settings.odds_api_key == "odds-key"
    assert settings.coinglass_api_key == "cg-key"


def test_build_every_server():
    servers = build_servers(Settings())
    assert tuple(servers) == SERVER_NAMES
    assert all(s.tools for s in servers.values())
