"""Custom exceptions for phish-link-guard."""


class PhishLinkGuardError(Exception):
    """Base exception for application-level errors."""


class ConfigError(PhishLinkGuardError):
    """Raised when configuration or reference data cannot be loaded or validated."""


class InvalidUrlError(PhishLinkGuardError):
    """Raised when a link cannot be parsed into a URL record."""

    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"invalid url {url!r}" + (f": {reason}" if reason else ""))


class StoreUnavailableError(PhishLinkGuardError):
    """Raised when a cache, list or reputation store fails or times out."""


class UpstreamUnavailableError(PhishLinkGuardError):
    """Raised when the reputation feed cannot be fetched or decoded."""


class InputFileError(PhishLinkGuardError):
    """Raised when an input file (e.g. email metadata) is missing or malformed."""
