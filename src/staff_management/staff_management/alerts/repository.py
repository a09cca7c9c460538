from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import AlertPriority, AlertType
from .model import Alert, NewAlert


class AlertRepository(Protocol):
    def get_by_id(self, alert_id: int) -> Optional[Alert]:
        raise NotImplementedError

    def create_many(self, alerts: Sequence[NewAlert]) -> Sequence[int]:
        raise NotImplementedError

    def list_alerts(
        self,
        *,
        user_id: Optional[int] = None,
        alert_type: Optional[AlertType] = None,
        priority: Optional[AlertPriority] = None,
        is_read: Optional[bool] = None,
        active_at: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[Sequence[Alert], int]:
        """Newest first. ``active_at`` keeps only alerts that expire after it."""
        raise NotImplementedError

    def list_created_between(self, start: datetime, end: datetime) -> Sequence[Alert]:
        raise NotImplementedError

    def count_overview(self, now: datetime) -> dict:
        """Counts of total, unread, urgent, action_required and expired alerts."""
        raise NotImplementedError

    def mark_read(self, alert_ids: Sequence[int]) -> int:
        raise NotImplementedError

    def mark_all_read(self, user_id: int, *, now: datetime) -> int:
        raise NotImplementedError

    def delete_many(self, alert_ids: Sequence[int]) -> int:
        raise NotImplementedError

    def delete_expired(self, now: datetime) -> int:
        raise NotImplementedError
