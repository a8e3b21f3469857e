"""TOML config loading, profiles and structlog setup."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

_PACKAGE_CONFIG = Path(__file__).resolve().parents[3] / "config"
_SECTIONS = ("polymarket", "markets", "history", "insights", "logging")


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge overlay into a copy of base; nested tables merge key by key."""
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        merged[key] = _merge(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


def _resolve_config_dir(config_dir: Path | None) -> Path:
    if config_dir is not None:
        return config_dir
    env_dir = os.environ.get("BETWIXT_CONFIG_DIR")
    if env_dir:
        return Path(env_dir)
    cwd_dir = Path.cwd() / "config"
    return cwd_dir if cwd_dir.is_dir() else _PACKAGE_CONFIG


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """default.toml with config/<profile>.toml deep-merged on top. Missing files give {}."""
    directory = _resolve_config_dir(config_dir)
    raw = _read_toml(directory / "default.toml")
    if raw and profile:
        raw = _merge(raw, _read_toml(directory / f"{profile}.toml"))
    return raw


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    profile = profile or os.environ.get("BETWIXT_PROFILE") or None
    return Settings.from_dict(load_config(profile, config_dir))


class Settings:
    """Application settings, one dict per TOML section.

    Accessors fall back to built-in defaults, so an empty Settings() is usable in tests.
    """

    def __init__(self, **sections: dict[str, Any] | None):
        unknown = set(sections) - set(_SECTIONS)
        if unknown:
            raise TypeError(f"unknown config sections: {sorted(unknown)}")
        for name in _SECTIONS:
            setattr(self, name, dict(sections.get(name) or {}))

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(**{name: raw.get(name) for name in _SECTIONS})

    def _get(self, section: str, key: str, default: Any) -> Any:
        value = getattr(self, section).get(key)
        return default if value is None else value

    @property
    def gamma_api_base(self) -> str:
        return self._get("polymarket", "gamma_api_base", "https://gamma-api.polymarket.com")

    @property
    def clob_api_base(self) -> str:
        return self._get("polymarket", "clob_api_base", "https://clob.polymarket.com")

    @property
    def http_timeout_sec(self) -> float:
        return float(self._get("polymarket", "timeout_sec", 30.0))

    @property
    def markets_limit(self) -> int:
        return int(self._get("markets", "markets_limit", 100))

    @property
    def events_limit(self) -> int:
        return int(self._get("markets", "events_limit", 50))

    @property
    def refresh_interval_sec(self) -> float:
        return float(self._get("markets", "refresh_interval_sec", 30))

    @property
    def default_filter(self) -> str:
        return self._get("markets", "default_filter", "trending")

    @property
    def default_limit(self) -> int:
        return int(self._get("markets", "default_limit", 20))

    @property
    def chunk_timeout_sec(self) -> float:
        return float(self._get("history", "chunk_timeout_sec", 15.0))

    @property
    def groq_api_base(self) -> str:
        return self._get("insights", "groq_api_base", "https://api.groq.com/openai/v1")

    @property
    def groq_api_key(self) -> str:
        return self._get("insights", "groq_api_key", "") or os.environ.get("GROQ_API_KEY", "")

    @property
    def insight_model(self) -> str:
        return self._get("insights", "model", "llama-3.3-70b-versatile")

    @property
    def insight_cache_ttl_sec(self) -> float:
        return float(self._get("insights", "cache_ttl_sec", 300))

    @property
    def insight_cache_max_entries(self) -> int:
        return int(self._get("insights", "cache_max_entries", 512))

    @property
    def insight_timeout_sec(self) -> float:
        return float(self._get("insights", "timeout_sec", 30.0))

    @property
    def logging_level(self) -> str:
        return str(self._get("logging", "level", "INFO")).upper()

    @property
    def logging_format(self) -> str:
        return self._get("logging", "format", "console")

    @property
    def logging_level_num(self) -> int:
        return logging.getLevelNamesMapping().get(self.logging_level, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """Configure structlog once at process entry (CLI callback or API startup)."""
    import structlog

    if settings.logging_format == "json":
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer()]
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *renderers,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
