"""Tests for RelayStats."""

from __future__ import annotations

from firsthelp.core.stats import RelayStats


def test_initial_stats():
    snap = RelayStats().snapshot()
    assert snap["sos_received"] == 0
    assert snap["sos_sent"] == 0
    assert snap["seconds_since_last_sent"] is None


def test_sent_and_rejected_counters():
    stats = RelayStats()
    stats.record_received()
    stats.record_sent()
    stats.record_received()
    stats.record_rejected()
    stats.record_received()
    stats.record_failed()

    snap = stats.snapshot()
    assert snap["sos_received"] == 3
    assert snap["sos_sent"] == 1
    assert snap["sos_rejected"] == 1
    assert snap["sos_failed"] == 1
    assert snap["seconds_since_last_sent"] is not None


def test_test_sms_counters():
    stats = RelayStats()
    stats.record_test_sms(ok=True)
    stats.record_test_sms(ok=False)
    stats.record_test_sms(ok=False)

    snap = stats.snapshot()
    assert snap["test_sms_sent"] == 1
    assert snap["test_sms_failed"] == 2
    assert snap["sos_received"] == 0
