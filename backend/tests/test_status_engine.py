"""Tests for the on-ratio status decision and confidence grading."""

from datetime import datetime, timedelta

import pytest

from nepa_buddy.config import Settings
from nepa_buddy.services import status_engine
from nepa_buddy.services.status_engine import Tally

NOW = datetime(2024, 6, 3, 8, 0)


@pytest.fixture
def cfg():
    return Settings(_env_file=None)


def _tally(plugged: int, unplugged: int, buddies: int | None = None, age_minutes: float = 0) -> Tally:
    return Tally(
        plugged_count=plugged,
        unplugged_count=unplugged,
        buddy_count=plugged + unplugged if buddies is None else buddies,
        latest_report_at=NOW - timedelta(minutes=age_minutes) if plugged + unplugged else None,
    )


# --- Status ---

@pytest.mark.parametrize("plugged,unplugged,expected", [
    (10, 0, "on"),
    (0, 10, "off"),
    (5, 5, "recovering"),
    (7, 3, "on"),
    (3, 7, "off"),
    (4, 6, "recovering"),
    (6, 4, "recovering"),
    (1, 0, "on"),
    (0, 1, "off"),
])
def test_decide_status(cfg, plugged, unplugged, expected):
    assert status_engine.decide_status(_tally(plugged, unplugged), cfg) == expected


def test_no_reports_is_unknown(cfg):
    decision = status_engine.evaluate(Tally(), NOW, cfg)
    assert decision.status == "unknown"
    assert decision.confidence == "low"


def test_thresholds_from_settings():
    cfg = Settings(_env_file=None, on_ratio_threshold=0.6, off_ratio_threshold=0.4)
    assert status_engine.decide_status(_tally(6, 4), cfg) == "on"
    assert status_engine.decide_status(_tally(4, 6), cfg) == "off"
    assert status_engine.decide_status(_tally(5, 5), cfg) == "recovering"


# --- Confidence ---

def test_high_confidence(cfg):
    assert status_engine.decide_confidence(_tally(10, 0), NOW, cfg) == "high"
    assert status_engine.decide_confidence(_tally(8, 4, age_minutes=10), NOW, cfg) == "high"


def test_high_needs_recent_reports(cfg):
    assert status_engine.decide_confidence(_tally(10, 0, age_minutes=11), NOW, cfg) == "medium"


def test_medium_confidence(cfg):
    assert status_engine.decide_confidence(_tally(3, 0), NOW, cfg) == "medium"
    assert status_engine.decide_confidence(_tally(9, 0, age_minutes=25), NOW, cfg) == "medium"


def test_low_confidence(cfg):
    assert status_engine.decide_confidence(_tally(2, 0), NOW, cfg) == "low"
    assert status_engine.decide_confidence(_tally(5, 0, age_minutes=31), NOW, cfg) == "low"


def test_buddy_count_not_report_count(cfg):
    """Twelve reports from two phones is still low confidence."""
    assert status_engine.decide_confidence(_tally(6, 6, buddies=2), NOW, cfg) == "low"


def test_evaluate_scenario_seven_of_ten(cfg):
    decision = status_engine.evaluate(_tally(7, 3), NOW, cfg)
    assert decision == status_engine.Decision(status="on", confidence="high")
