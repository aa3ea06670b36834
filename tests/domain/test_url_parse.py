import pytest

from phish_link_guard.core.errors import InvalidUrlError
from phish_link_guard.domain.url.parse import parse_url, registrable_domain, try_parse_url


def test_parse_url_splits_components_and_lowercases_host():
    record = parse_url("HTTPS://Mail.Google.com:8443/path?q=1#frag")
    assert record.scheme == "https"
    assert record.host == "mail.google.com"
    assert record.registrable_domain == "google.com"
    assert record.port == 8443
    assert record.path == "/path"
    assert record.query == "q=1"
    assert record.fragment == "frag"
    assert record.userinfo == ""


def test_parse_url_keeps_userinfo_separate_from_host():
    record = parse_url("http://user:pw@evil.com/")
    assert record.userinfo == "user:pw"
    assert record.host == "evil.com"


def test_parse_url_accepts_opaque_scheme_without_host():
    record = parse_url("javascript:alert(1)")
    assert record.scheme == "javascript"
    assert record.host == ""


@pytest.mark.parametrize("raw", ["", "   ", "not a url", "http://", "http://example.com:99999"])
def test_parse_url_rejects_malformed_input(raw):
    with pytest.raises(InvalidUrlError) as excinfo:
        parse_url(raw)
    assert excinfo.value.url == raw


def test_registrable_domain_is_last_two_labels():
    assert registrable_domain("a.b.example.com") == "example.com"
    assert registrable_domain("localhost") == "localhost"
    # Multi-label public suffixes are not special-cased.
    assert registrable_domain("shop.example.co.uk") == "co.uk"


def test_try_parse_url_returns_none_instead_of_raising():
    assert try_parse_url("no-scheme.example.com") is None
    assert try_parse_url("https://example.com").host == "example.com"
