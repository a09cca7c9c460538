from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from ..core.constants import ABSENT_AFTER_MINUTES, LATE_GRACE_MINUTES
from .strategies.base import CheckInStrategy
from .strategies.excessive_delay_strategy import ExcessiveDelayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


def delay_minutes(now: datetime, work_start: time) -> int:
    """Whole minutes between the shift start and ``now`` (negative when early)."""
    return (now.hour * 60 + now.minute) - (work_start.hour * 60 + work_start.minute)


@dataclass
class CheckInStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    grace_minutes: int = LATE_GRACE_MINUTES
    absent_after_minutes: int = ABSENT_AFTER_MINUTES

    def for_delay(self, minutes: int) -> CheckInStrategy:
        if minutes > self.absent_after_minutes:
            return ExcessiveDelayStrategy()
        if minutes > self.grace_minutes:
            return LateStrategy()
        return OnTimeStrategy()
