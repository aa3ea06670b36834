"""Core primitives shared across layers."""

from phish_link_guard.core.errors import (
    ConfigError,
    InputFileError,
    InvalidUrlError,
    PhishLinkGuardError,
    StoreUnavailableError,
    UpstreamUnavailableError,
)

__all__ = [
    "PhishLinkGuardError",
    "ConfigError",
    "InputFileError",
    "InvalidUrlError",
    "StoreUnavailableError",
    "UpstreamUnavailableError",
]
