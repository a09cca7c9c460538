from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AlertPriority, AlertType


@dataclass(frozen=True)
class Alert:
    alert_id: int
    type: AlertType
    user_id: int
    title: str
    message: str
    expires_at: datetime
    priority: AlertPriority = AlertPriority.MEDIUM
    is_read: bool = False
    action_required: bool = False
    action_url: Optional[str] = None
    related_id: Optional[int] = None
    related_model: Optional[str] = None
    created_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class NewAlert:
    """Alert content before it is stored."""

    type: AlertType
    user_id: int
    title: str
    message: str
    expires_at: datetime
    priority: AlertPriority = AlertPriority.MEDIUM
    action_required: bool = False
    action_url: Optional[str] = None
    related_id: Optional[int] = None
    related_model: Optional[str] = None
