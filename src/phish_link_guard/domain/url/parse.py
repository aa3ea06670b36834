"""Parse raw link strings into immutable URL records."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from phish_link_guard.core.errors import InvalidUrlError
from phish_link_guard.domain.url.models import UrlRecord

_SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.\-]*$")
_HIERARCHICAL_SCHEMES = {"http", "https", "ftp", "ws", "wss"}
_FORBIDDEN_HOST_CHARS = set(" \t\r\n<>\"{}|\\^`%")


def registrable_domain(host: str) -> str:
    """Naive registrable domain: the last two DNS labels of the host."""

    parts = (host or "").lower().split(".")
    if len(parts) < 2:
        return (host or "").lower()
    return ".".join(parts[-2:])


def parse_url(url: str) -> UrlRecord:
    raw = (url or "").strip()
    if not raw:
        raise InvalidUrlError(url, "empty")
    try:
        parts = urlsplit(raw)
    except ValueError as exc:
        raise InvalidUrlError(url, str(exc)) from exc

    scheme = parts.scheme.lower()
    if not scheme or not _SCHEME_PATTERN.match(scheme):
        raise InvalidUrlError(url, "missing scheme")

    try:
        host = (parts.hostname or "").lower()
        port = parts.port
    except ValueError as exc:
        raise InvalidUrlError(url, str(exc)) from exc

    if scheme in _HIERARCHICAL_SCHEMES and not host:
        raise InvalidUrlError(url, "missing host")
    if any(char in _FORBIDDEN_HOST_CHARS for char in host):
        raise InvalidUrlError(url, "invalid host characters")

    userinfo = parts.netloc.rpartition("@")[0] if "@" in parts.netloc else ""
    return UrlRecord(
        raw=raw,
        scheme=scheme,
        host=host,
        registrable_domain=registrable_domain(host),
        port=port,
        path=parts.path,
        query=parts.query,
        fragment=parts.fragment,
        userinfo=userinfo,
    )


def try_parse_url(url: str) -> UrlRecord | None:
    try:
        return parse_url(url)
    except InvalidUrlError:
        return None
