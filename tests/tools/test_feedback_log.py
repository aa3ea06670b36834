from phish_link_guard.tools.scoring.feedback import FeedbackLog


def test_feedback_log_is_bounded():
    log = FeedbackLog(max_entries=2, clock=lambda: 10.0)
    log.record("https://a.example/", "safe")
    log.record("https://b.example/", "safe")
    log.record("https://c.example/", "safe")
    assert len(log) == 2
    assert [entry.url for entry in log.records()] == ["https://b.example/", "https://c.example/"]


def test_feedback_record_captures_prediction_and_features():
    log = FeedbackLog(clock=lambda: 42.0)
    entry = log.record("http://192.168.1.1/login", "dangerous")
    assert entry.predicted_threat == "dangerous"
    assert entry.features is not None
    assert entry.features.has_ip is True
    assert entry.timestamp == 42.0


def test_feedback_stats_report_labels_and_agreement():
    log = FeedbackLog(max_entries=10, clock=lambda: 0.0)
    log.record("http://192.168.1.1/login", "dangerous")
    log.record("https://example.com/", "safe")
    log.record("https://example.com/", "dangerous")
    stats = log.stats()
    assert stats["total_samples"] == 3
    assert stats["phishing"] == 2
    assert stats["safe"] == 1
    assert stats["suspicious"] == 0
    assert stats["agreement"] == 0.667


def test_feedback_stats_on_empty_log():
    assert FeedbackLog().stats()["agreement"] == 0.0
