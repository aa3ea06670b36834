from phish_link_guard.tools.text.context import context_hits, context_issue, normalize_text, score_context


def test_empty_context_scores_zero(reference):
    assert score_context("", reference) == 0
    assert score_context(None, reference) == 0


def test_each_keyword_counts_once(reference):
    assert score_context("verify verify verify", reference) == 1


def test_keywords_across_categories(reference):
    hits = context_hits("Urgent: verify your account now", reference)
    assert hits["keywords"] == {"account_lockout": ["verify", "account"], "urgency": ["urgent"]}
    assert hits["spam_indicators"] == []
    assert score_context("Urgent: verify your account now", reference) == 3


def test_spam_indicators_weigh_three(reference):
    assert score_context("Make money with bitcoin", reference) == 6


def test_prize_scam_with_spam_crosses_dangerous_threshold(reference):
    text = "Congratulations winner! Claim your prize and make money with bitcoin"
    assert score_context(text, reference) == 10


def test_normalize_text_collapses_whitespace():
    assert normalize_text("  Hello\n\tWORLD  ") == "hello world"


def test_context_issue_severity_bands():
    assert context_issue(0) is None
    assert context_issue(2).severity == "low"
    assert context_issue(3).severity == "medium"
    assert context_issue(4).severity == "medium"
    assert context_issue(5).severity == "high"
    spam = context_issue(9)
    assert spam.severity == "high"
    assert spam.message.startswith("SPAM")
    assert spam.type == "suspicious_context"
