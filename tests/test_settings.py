"""Config loading, profile overlay and accessor defaults."""

from pathlib import Path

import pytest

from betwixt.config import Settings, get_settings, load_config


def test_profile_overlay_deep_merges(tmp_path: Path):
    (tmp_path / "default.toml").write_text(
        '[markets]\nmarkets_limit = 100\nevents_limit = 50\n[logging]\nlevel = "INFO"\n'
    )
    (tmp_path / "dev.toml").write_text('[markets]\nevents_limit = 10\n[logging]\nlevel = "debug"\n')
    raw = load_config("dev", tmp_path)
    assert raw["markets"] == {"markets_limit": 100, "events_limit": 10}
    settings = get_settings("dev", tmp_path)
    assert settings.events_limit == 10
    assert settings.logging_level == "DEBUG"


def test_missing_config_dir_gives_defaults(tmp_path: Path):
    assert load_config(None, tmp_path) == {}
    s = get_settings(None, tmp_path)
    assert s.gamma_api_base == "https://gamma-api.polymarket.com"
    assert s.clob_api_base == "https://clob.polymarket.com"
    assert s.refresh_interval_sec == 30
    assert s.chunk_timeout_sec == 15.0


def test_groq_key_from_env(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "from-env")
    assert Settings().groq_api_key == "from-env"
    assert Settings(insights={"groq_api_key": "cfg"}).groq_api_key == "cfg"


def test_profile_from_environment(tmp_path: Path, monkeypatch):
    (tmp_path / "default.toml").write_text('[logging]\nformat = "console"\n')
    (tmp_path / "prod.toml").write_text('[logging]\nformat = "json"\n')
    monkeypatch.setenv("BETWIXT_PROFILE", "prod")
    assert get_settings(None, tmp_path).logging_format == "json"
    assert get_settings("dev", tmp_path).logging_format == "console"


def test_unknown_section_rejected():
    with pytest.raises(TypeError):
        Settings(storage={})
