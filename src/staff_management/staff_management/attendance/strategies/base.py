from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    accepted: bool = True
    note: Optional[str] = None


def describe_delay(minutes: int) -> str:
    hours, mins = divmod(max(int(minutes), 0), 60)
    return f"{hours}h {mins}m" if hours else f"{mins}m"


class CheckInStrategy(ABC):
    """Strategy Pattern: decide the attendance status of a check-in."""

    @abstractmethod
    def decide(self, *, delay_minutes: int) -> StatusDecision:
        raise NotImplementedError
