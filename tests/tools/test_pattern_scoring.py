import pytest

from phish_link_guard.tools.scoring.patterns import (
    FeatureVector,
    analyze_patterns,
    classify,
    extract_features,
    match_patterns,
    score_features,
    shannon_entropy,
)


def test_extract_features_counts_url_structure():
    features = extract_features("https://Sub.Example.co/Path_Here?a=1&b=2&a=3")
    assert features is not None
    assert features.domain_length == 14
    assert features.subdomain_count == 1
    assert features.param_count == 3
    assert features.uppercase_count == 4
    assert features.tld == "co"
    assert features.is_common_tld is False
    assert features.is_https is True
    assert features.has_underscore is False


def test_extract_features_returns_none_for_unparseable_url():
    assert extract_features("not a url") is None
    analysis = analyze_patterns("not a url")
    assert analysis.score == 0
    assert analysis.features is None
    assert analysis.classification is None


def test_keyword_only_url_scores_low():
    features = extract_features("https://example.com/login")
    assert features.suspicious_keywords == 1
    assert score_features(features) == 2


def test_ip_login_url_scores_as_phishing():
    analysis = analyze_patterns("http://192.168.1.1/login")
    assert analysis.base_score == 12
    assert [match.pattern_id for match in analysis.patterns] == ["ip_host_auth_keyword"]
    assert analysis.pattern_score == 15
    assert analysis.score == 27
    assert analysis.classification.classification == "phishing"
    assert analysis.classification.confidence == 1.0
    assert analysis.classification.threat_level == "dangerous"


def test_base_score_is_capped():
    assert score_features(FeatureVector(suspicious_keywords=60)) == 100
    assert score_features(None) == 0


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("http://login-secure.tk", ["fake_login_risky_tld"]),
        ("https://paypal.account-verify.xyz", ["brand_risky_tld"]),
        ("https://a.b.c.paypal.com", ["multi_subdomain_brand"]),
        ("https://example.com/secure/update?id=12345", ["data_collection_page"]),
        ("https://example.com/about", []),
    ],
)
def test_known_pattern_matches(url, expected):
    assert [match.pattern_id for match in match_patterns(url)] == expected


def test_classification_bands():
    assert classify(40).confidence == 1.0
    assert classify(15).classification == "phishing"
    assert classify(15).confidence == pytest.approx(0.75)
    assert classify(8).classification == "suspicious"
    assert classify(8).confidence == pytest.approx(8 / 15)
    assert classify(4).classification == "potentially_suspicious"
    assert classify(4).threat_level == "suspicious"
    assert classify(3).classification == "legitimate"
    assert classify(3).confidence == pytest.approx(0.7)
    assert classify(0).threat_level == "safe"


def test_shannon_entropy():
    assert shannon_entropy("") == 0.0
    assert shannon_entropy("aaaa") == 0.0
    assert shannon_entropy("ab") == pytest.approx(1.0)
    assert shannon_entropy("abcd") == pytest.approx(2.0)
