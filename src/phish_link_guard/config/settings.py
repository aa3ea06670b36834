"""Config loader from env + yaml."""

from __future__ import annotations

from pathlib import Path
import os
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from phish_link_guard.config.reference import DEFAULT_REFERENCE_PATH
from phish_link_guard.core.errors import ConfigError

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = PACKAGE_ROOT / "config" / "defaults.yaml"
ENV_PREFIX = "PHISH_LINK_GUARD_"


class AppConfig(BaseModel):

    reference_data_path: str = Field(default=str(DEFAULT_REFERENCE_PATH))
    cache_ttl_safe_s: float = Field(default=86_400.0, gt=0)
    cache_ttl_suspicious_s: float = Field(default=3_600.0, gt=0)
    cache_ttl_dangerous_s: float = Field(default=604_800.0, gt=0)
    cache_max_entries: int = Field(default=1000, gt=0)
    reverify_dangerous_s: float = Field(default=3_600.0, gt=0)
    reverify_suspicious_s: float = Field(default=21_600.0, gt=0)
    store_timeout_s: float = Field(default=2.0, gt=0)
    list_match_mode: Literal["substring", "suffix"] = Field(default="substring")
    feed_url: str | None = Field(default=None)
    feed_timeout_s: float = Field(default=10.0, gt=0)
    feed_max_retries: int = Field(default=2, ge=0)
    feed_backoff_base_s: float = Field(default=1.0, ge=0)
    feed_max_entries: int = Field(default=100_000, gt=0)
    feed_refresh_interval_s: float = Field(default=86_400.0, gt=0)
    feedback_log_size: int = Field(default=1000, gt=0)
    batch_workers: int = Field(default=4, gt=0)
    log_level: str = Field(default="WARNING")
    default_config_path: str = Field(default=str(DEFAULT_CONFIG_PATH))


def load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}
    try:
        payload = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"config file is not valid yaml: {p}") from exc
    return payload if isinstance(payload, dict) else {}


def _pick_env(name: str, fallback: Any) -> Any:
    value = os.getenv(ENV_PREFIX + name)
    return value if value not in (None, "") else fallback


def _parse_int(raw: Any, fallback: int, *, minimum: int = 1) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return fallback
    return value if value >= minimum else fallback


def _parse_float(raw: Any, fallback: float) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return fallback
    return value if value >= 0 else fallback


def _parse_str(raw: Any, fallback: str) -> str:
    value = str(raw if raw is not None else "").strip()
    return value or fallback


def _parse_optional_str(raw: Any) -> str | None:
    value = str(raw if raw is not None else "").strip()
    return value or None


def _resolve_default_config_path(path: str | Path | None) -> Path:
    if path is not None:
        return Path(path)
    env_default_path = os.getenv(ENV_PREFIX + "CONFIG_PATH")
    if env_default_path:
        return Path(env_default_path)
    return DEFAULT_CONFIG_PATH


def load_config(path: str | Path | None = None) -> AppConfig:
    default_path = _resolve_default_config_path(path)
    merged = load_yaml(default_path)
    defaults = AppConfig()

    def _float(key: str) -> float:
        fallback = getattr(defaults, key)
        return _parse_float(_pick_env(key.upper(), merged.get(key, fallback)), fallback)

    def _int(key: str, *, minimum: int = 1) -> int:
        fallback = getattr(defaults, key)
        return _parse_int(_pick_env(key.upper(), merged.get(key, fallback)), fallback, minimum=minimum)

    payload = {
        "reference_data_path": _parse_str(
            _pick_env("REFERENCE_DATA_PATH", merged.get("reference_data_path")),
            defaults.reference_data_path,
        ),
        "cache_ttl_safe_s": _float("cache_ttl_safe_s"),
        "cache_ttl_suspicious_s": _float("cache_ttl_suspicious_s"),
        "cache_ttl_dangerous_s": _float("cache_ttl_dangerous_s"),
        "cache_max_entries": _int("cache_max_entries"),
        "reverify_dangerous_s": _float("reverify_dangerous_s"),
        "reverify_suspicious_s": _float("reverify_suspicious_s"),
        "store_timeout_s": _float("store_timeout_s"),
        "list_match_mode": _parse_str(
            _pick_env("LIST_MATCH_MODE", merged.get("list_match_mode")),
            defaults.list_match_mode,
        ).lower(),
        "feed_url": _parse_optional_str(_pick_env("FEED_URL", merged.get("feed_url"))),
        "feed_timeout_s": _float("feed_timeout_s"),
        "feed_max_retries": _int("feed_max_retries", minimum=0),
        "feed_backoff_base_s": _float("feed_backoff_base_s"),
        "feed_max_entries": _int("feed_max_entries"),
        "feed_refresh_interval_s": _float("feed_refresh_interval_s"),
        "feedback_log_size": _int("feedback_log_size"),
        "batch_workers": _int("batch_workers"),
        "log_level": _parse_str(_pick_env("LOG_LEVEL", merged.get("log_level")), defaults.log_level).upper(),
        "default_config_path": str(default_path),
    }
    try:
        return AppConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration from {default_path}: {exc}") from exc
