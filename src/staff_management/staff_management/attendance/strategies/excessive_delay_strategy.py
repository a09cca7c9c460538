from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import CheckInStrategy, StatusDecision, describe_delay


class ExcessiveDelayStrategy(CheckInStrategy):
    """Too late to check in: the day is recorded as absent and the check-in refused."""

    def decide(self, *, delay_minutes: int) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.ABSENT,
            accepted=False,
            note=f"Excessive delay - {describe_delay(delay_minutes)} late",
        )
