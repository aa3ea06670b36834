"""Reference data (domain lists, keyword tables) loaded from yaml."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from phish_link_guard.core.errors import ConfigError

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_REFERENCE_PATH = PACKAGE_ROOT / "config" / "reference_data.yaml"


def _lower_tuple(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = [raw]
    items = (str(item).strip().lower() for item in raw)
    return tuple(dict.fromkeys(item for item in items if item))


class EmailVocabulary(BaseModel):
    """Keyword and brand lists used by the email metadata checks."""

    model_config = ConfigDict(frozen=True)

    risky_sender_tlds: tuple[str, ...] = ()
    urgency_keywords: tuple[str, ...] = ()
    financial_keywords: tuple[str, ...] = ()
    suspicious_phrases: tuple[str, ...] = ()
    personal_info_terms: tuple[str, ...] = ()
    impersonated_brands: tuple[str, ...] = ()

    @field_validator("*", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> tuple[str, ...]:
        return tuple(item.lstrip(".") for item in _lower_tuple(value))


class ReferenceData(BaseModel):
    """Read-only lookup tables shared by every analyzer."""

    model_config = ConfigDict(frozen=True)

    legitimate_domains: tuple[str, ...] = ()
    suspicious_tlds: tuple[str, ...] = ()
    url_shorteners: tuple[str, ...] = ()
    typosquatting_targets: tuple[str, ...] = ()
    typosquatting_tlds: tuple[str, ...] = ("com", "net", "org", "co", "io")
    impersonation_brands: tuple[str, ...] = ()
    path_spoofing_domains: tuple[str, ...] = ()
    confusables: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    leet_substitutions: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    phishing_keywords: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    spam_indicators: tuple[str, ...] = ()
    email: EmailVocabulary = Field(default_factory=EmailVocabulary)

    @field_validator(
        "legitimate_domains",
        "url_shorteners",
        "typosquatting_targets",
        "typosquatting_tlds",
        "impersonation_brands",
        "path_spoofing_domains",
        "spam_indicators",
        mode="before",
    )
    @classmethod
    def _normalize_list(cls, value: Any) -> tuple[str, ...]:
        return _lower_tuple(value)

    @field_validator("suspicious_tlds", mode="before")
    @classmethod
    def _normalize_tlds(cls, value: Any) -> tuple[str, ...]:
        return tuple(tld if tld.startswith(".") else f".{tld}" for tld in _lower_tuple(value))

    @field_validator("leet_substitutions", "phishing_keywords", mode="before")
    @classmethod
    def _normalize_table(cls, value: Any) -> dict[str, tuple[str, ...]]:
        if not isinstance(value, dict):
            return {}
        return {str(key).strip().lower(): _lower_tuple(items) for key, items in value.items()}

    @field_validator("confusables", mode="before")
    @classmethod
    def _normalize_confusables(cls, value: Any) -> dict[str, tuple[str, ...]]:
        # Lookalikes keep their case: uppercase Cyrillic soft sign is a "b" lookalike.
        if not isinstance(value, dict):
            return {}
        table: dict[str, tuple[str, ...]] = {}
        for key, items in value.items():
            chars = tuple(dict.fromkeys(str(item) for item in (items or []) if str(item)))
            table[str(key).strip().lower()] = tuple(char for char in chars if not char.isascii())
        return table

    @property
    def confusable_chars(self) -> frozenset[str]:
        return frozenset(char for chars in self.confusables.values() for char in chars)


def load_reference_data(path: str | Path | None = None) -> ReferenceData:
    target = Path(path) if path is not None else DEFAULT_REFERENCE_PATH
    if not target.exists():
        raise ConfigError(f"reference data file not found: {target}")
    try:
        payload = yaml.safe_load(target.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"reference data is not valid yaml: {target}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"reference data must be a mapping: {target}")
    try:
        return ReferenceData.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"invalid reference data in {target}: {exc}") from exc


@lru_cache(maxsize=1)
def default_reference_data() -> ReferenceData:
    return load_reference_data(DEFAULT_REFERENCE_PATH)
