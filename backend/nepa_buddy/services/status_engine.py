"""Zone status decision model.

Status from the on-ratio of the live tally:
  on_ratio >= 0.7  -> on
  on_ratio <= 0.3  -> off
  otherwise        -> recovering
  no reports       -> unknown

Confidence from buddy count and the age of the newest report:
  high:   >= 10 buddies, newest report <= 10 min old
  medium: >= 3 buddies, newest report <= 30 min old
  low:    everything else

All thresholds come from settings.
"""

from dataclasses import dataclass
from datetime import datetime

from nepa_buddy.config import Settings

@dataclass(frozen=True)
class Tally:
    plugged_count: int = 0
    unplugged_count: int = 0
    buddy_count: int = 0
    latest_report_at: datetime | None = None

    @property
    def total(self) -> int:
        return self.plugged_count + self.unplugged_count


@dataclass(frozen=True)
class Decision:
    status: str
    confidence: str


def decide_status(tally: Tally, settings: Settings) -> str:
    if tally.total <= 0:
        return "unknown"
    on_ratio = tally.plugged_count / tally.total
    if on_ratio >= settings.on_ratio_threshold:
        return "on"
    if on_ratio <= settings.off_ratio_threshold:
        return "off"
    return "recovering"


def decide_confidence(tally: Tally, now: datetime, settings: Settings) -> str:
    if tally.total <= 0 or tally.latest_report_at is None:
        return "low"

    age_minutes = max((now - tally.latest_report_at).total_seconds(), 0.0) / 60
    if (tally.buddy_count >= settings.high_confidence_buddies
            and age_minutes <= settings.high_confidence_recency_minutes):
        return "high"
    if (tally.buddy_count >= settings.medium_confidence_buddies
            and age_minutes <= settings.medium_confidence_recency_minutes):
        return "medium"
    return "low"


def evaluate(tally: Tally, now: datetime, settings: Settings) -> Decision:
    return Decision(
        status=decide_status(tally, settings),
        confidence=decide_confidence(tally, now, settings),
    )
