from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import CheckInStrategy, StatusDecision


class OnTimeStrategy(CheckInStrategy):
    """Arrival within the grace period."""

    def decide(self, *, delay_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
