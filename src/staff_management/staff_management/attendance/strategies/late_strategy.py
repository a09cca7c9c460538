from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import CheckInStrategy, StatusDecision, describe_delay


class LateStrategy(CheckInStrategy):
    """Late check-in."""

    def decide(self, *, delay_minutes: int) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.LATE,
            note=f"Late arrival - {describe_delay(delay_minutes)} after start time",
        )
