import pytest

from phish_link_guard.config.reference import ReferenceData, default_reference_data, load_reference_data
from phish_link_guard.core.errors import ConfigError


def test_packaged_reference_tables():
    data = default_reference_data()
    assert "google.com" in data.legitimate_domains
    assert all(tld.startswith(".") for tld in data.suspicious_tlds)
    assert "creditsuisse" in data.typosquatting_targets
    assert "bit.ly" in data.url_shorteners
    assert "urgency" in data.phishing_keywords
    assert "verify" in data.phishing_keywords["account_lockout"]
    assert "paypal" in data.email.impersonated_brands
    assert data.email.risky_sender_tlds[0] == "tk"
    assert "а" in data.confusable_chars


def test_reference_lists_are_normalized():
    data = ReferenceData(
        legitimate_domains=["Example.COM", "example.com", " "],
        suspicious_tlds=["tk", ".ML"],
        phishing_keywords={"Urgency": ["URGENT", "urgent"]},
    )
    assert data.legitimate_domains == ("example.com",)
    assert data.suspicious_tlds == (".tk", ".ml")
    assert data.phishing_keywords == {"urgency": ("urgent",)}


def test_missing_reference_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_reference_data(tmp_path / "missing.yaml")


@pytest.mark.parametrize("content", ["legitimate_domains: [a,\n", "- just\n- a list\n"])
def test_malformed_reference_file_raises(tmp_path, content):
    path = tmp_path / "reference.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_reference_data(path)
