from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import PerformanceStatus
from .model import PerformanceRecord


class PerformanceRepository(Protocol):
    def get(self, user_id: int, month: str) -> Optional[PerformanceRecord]:
        raise NotImplementedError

    def list_for_month(
        self, month: str, *, statuses: Optional[Sequence[PerformanceStatus]] = None
    ) -> Sequence[PerformanceRecord]:
        """Lowest overall score first."""
        raise NotImplementedError

    def list_for_user(self, user_id: int, months: Sequence[str]) -> Sequence[PerformanceRecord]:
        raise NotImplementedError

    def save(self, record: PerformanceRecord) -> PerformanceRecord:
        """Insert or replace the (user, month) record; returns it with its id."""
        raise NotImplementedError
