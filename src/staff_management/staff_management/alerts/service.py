from __future__ import annotations

import logging
from collections import Counter
from dataclasses import asdict, replace
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.pagination import Page
from ..common.rounding import round_half_up
from ..common.validators import optional_enum, parse_bool, require_enum, require_id, require_max_length
from ..core.constants import DEFAULT_ALERT_EXPIRY_DAYS, MY_ALERTS_LIMIT
from ..core.enums import AlertPriority, AlertType, Department, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import ProfileRepository, UserRepository
from .model import Alert, NewAlert
from .repository import AlertRepository

logger = logging.getLogger(__name__)

BULK_ACTIONS = ("mark-read", "delete")


def _expiry_days(value: Any) -> int:
    if value in (None, ""):
        return DEFAULT_ALERT_EXPIRY_DAYS
    try:
        days = int(value)
    except (TypeError, ValueError):
        raise ValidationError("expires_in_days must be a whole number")
    if days < 1:
        raise ValidationError("expires_in_days must be at least 1")
    return days


class AlertService:
    def __init__(
        self,
        alerts: AlertRepository,
        users: UserRepository,
        profiles: ProfileRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._alerts = alerts
        self._users = users
        self._profiles = profiles
        self._clock = clock

    def _build(
        self,
        *,
        alert_type: Any,
        user_id: int,
        title: Optional[str],
        message: Optional[str],
        priority: Any = None,
        action_required: bool = False,
        action_url: Optional[str] = None,
        related_id: Optional[int] = None,
        related_model: Optional[str] = None,
        expires_in_days: Any = None,
    ) -> NewAlert:
        title = require_max_length(title, "Title", 100).strip()
        message = require_max_length(message, "Message", 500).strip()
        return NewAlert(
            type=require_enum(AlertType, alert_type, "alert type"),
            user_id=require_id(user_id, "user_id"),
            title=title,
            message=message,
            expires_at=self._clock() + timedelta(days=_expiry_days(expires_in_days)),
            priority=optional_enum(AlertPriority, priority, "priority") or AlertPriority.MEDIUM,
            action_required=bool(action_required),
            action_url=action_url or None,
            related_id=related_id,
            related_model=related_model,
        )

    def create_system_alert(
        self,
        alert_type: AlertType,
        user_id: int,
        title: str,
        message: str,
        *,
        priority: AlertPriority = AlertPriority.MEDIUM,
        action_required: bool = False,
        action_url: Optional[str] = None,
        related_id: Optional[int] = None,
        related_model: Optional[str] = None,
        expires_in_days: int = DEFAULT_ALERT_EXPIRY_DAYS,
    ) -> Alert:
        """Raise an alert on behalf of another module (swaps, tasks, reviews)."""
        new = self._build(
            alert_type=alert_type,
            user_id=user_id,
            title=title,
            message=message,
            priority=priority,
            action_required=action_required,
            action_url=action_url,
            related_id=related_id,
            related_model=related_model,
            expires_in_days=expires_in_days,
        )
        (alert_id,) = self._alerts.create_many([new])
        logger.debug("System alert id=%s type=%s user id=%s", alert_id, new.type.value, user_id)
        return Alert(alert_id=alert_id, **asdict(new), created_at=self._clock())

    def my_alerts(
        self, user_id: int, *, is_read: Any = None, alert_type: Any = None, priority: Any = None
    ) -> dict:
        alerts, _ = self._alerts.list_alerts(
            user_id=user_id,
            alert_type=optional_enum(AlertType, alert_type, "alert type"),
            priority=optional_enum(AlertPriority, priority, "priority"),
            is_read=parse_bool(is_read),
            active_at=self._clock(),
            limit=MY_ALERTS_LIMIT,
        )
        grouped = {p.value: [a for a in alerts if a.priority == p] for p in reversed(list(AlertPriority))}
        return {
            "alerts": list(alerts),
            "grouped_alerts": grouped,
            "unread_count": sum(1 for a in alerts if not a.is_read),
            "total": len(alerts),
        }

    def mark_read(self, alert_id: int, *, user_id: int) -> Alert:
        alert = self._alerts.get_by_id(alert_id)
        if not alert:
            raise NotFoundError("Alert not found")
        if alert.user_id != user_id:
            raise AuthorizationError("You can only mark your own alerts as read")
        self._alerts.mark_read([alert_id])
        return replace(alert, is_read=True)

    def mark_all_read(self, user_id: int) -> int:
        return self._alerts.mark_all_read(user_id, now=self._clock())

    def delete(self, alert_id: int, *, user_id: Optional[int], is_admin: bool) -> None:
        alert = self._alerts.get_by_id(alert_id)
        if not alert:
            raise NotFoundError("Alert not found")
        if alert.user_id != user_id and not is_admin:
            raise AuthorizationError("You can only delete your own alerts")
        self._alerts.delete_many([alert_id])

    def create(self, payload: dict) -> Alert:
        if not all(payload.get(k) for k in ("type", "user_id", "title", "message")):
            raise ValidationError("Required fields: type, user_id, title, message")
        user_id = require_id(payload["user_id"], "user_id")
        if not self._users.get_by_id(user_id):
            raise NotFoundError("User not found")
        new = self._build(
            alert_type=payload.get("type"),
            user_id=user_id,
            title=payload.get("title"),
            message=payload.get("message"),
            priority=payload.get("priority"),
            action_required=bool(payload.get("action_required")),
            action_url=payload.get("action_url"),
            related_id=require_id(payload["related_id"], "related_id") if payload.get("related_id") else None,
            related_model=payload.get("related_model"),
            expires_in_days=payload.get("expires_in_days"),
        )
        (alert_id,) = self._alerts.create_many([new])
        return Alert(alert_id=alert_id, **asdict(new), created_at=self._clock())

    def broadcast(self, payload: dict) -> dict:
        if not all(payload.get(k) for k in ("type", "title", "message")):
            raise ValidationError("Required fields: type, title, message")
        department = optional_enum(Department, payload.get("department"), "department")
        if department:
            targets = [p.user_id for p in self._profiles.list_all() if p.department == department]
        else:
            targets = [u.user_id for u in self._users.list_users(role=Role.USER, verified=True)]

        # one validated alert, copied per recipient
        template = self._build(
            alert_type=payload.get("type"),
            user_id=0,
            title=payload.get("title"),
            message=payload.get("message"),
            priority=payload.get("priority"),
            action_required=bool(payload.get("action_required")),
            action_url=payload.get("action_url"),
            expires_in_days=payload.get("expires_in_days"),
        )
        alerts = [replace(template, user_id=user_id) for user_id in targets]
        created = self._alerts.create_many(alerts) if alerts else []
        logger.info("Broadcast alert to %s users (department=%s)", len(created), department)
        return {
            "alerts_created": len(created),
            "target_department": department.value if department else "all",
        }

    def admin_all(self, args: dict) -> dict:
        paging = Page.from_args(args.get("page"), args.get("limit"))
        user_id = args.get("user_id")
        alerts, total = self._alerts.list_alerts(
            user_id=require_id(user_id, "user_id") if user_id else None,
            alert_type=optional_enum(AlertType, args.get("type"), "alert type"),
            priority=optional_enum(AlertPriority, args.get("priority"), "priority"),
            is_read=parse_bool(args.get("is_read")),
            limit=paging.limit,
            offset=paging.offset,
        )
        users = self._users.list_by_ids(sorted({a.user_id for a in alerts}))
        items = []
        for alert in alerts:
            user = users.get(alert.user_id)
            items.append(
                {
                    "alert": alert,
                    "user": {"username": user.username, "email": user.email} if user else None,
                }
            )
        return {
            "alerts": items,
            "pagination": paging.describe(total),
            "stats": self._alerts.count_overview(self._clock()),
            "total_alerts": total,
        }

    def statistics(self, days: Any = 7) -> dict:
        try:
            span = max(int(days or 7), 1)
        except (TypeError, ValueError):
            raise ValidationError("days must be a whole number")
        end = self._clock()
        start = end - timedelta(days=span)
        alerts = self._alerts.list_created_between(start, end)
        return self.summarize(alerts, start=start, end=end, now=end)

    @staticmethod
    def summarize(alerts: Sequence[Alert], *, start: datetime, end: datetime, now: datetime) -> dict:
        read = sum(1 for a in alerts if a.is_read)
        by_type: dict = {}
        for alert in alerts:
            entry = by_type.setdefault(alert.type.value, {"total": 0, "read": 0, "unread": 0})
            entry["total"] += 1
            entry["read" if alert.is_read else "unread"] += 1
        return {
            "period": {"start_date": start.date(), "end_date": end.date(), "days": (end - start).days},
            "totals": {
                "created": len(alerts),
                "read": read,
                "unread": len(alerts) - read,
                "expired": sum(1 for a in alerts if a.is_expired(now)),
            },
            "by_type": by_type,
            "by_priority": dict(Counter(a.priority.value for a in alerts)),
            "read_rate": round_half_up(read / len(alerts) * 100) if alerts else 0,
        }

    def cleanup_expired(self) -> int:
        deleted = self._alerts.delete_expired(self._clock())
        logger.info("Removed %s expired alerts", deleted)
        return deleted

    def bulk_action(self, alert_ids: Any, action: Optional[str]) -> int:
        if not isinstance(alert_ids, list) or not action:
            raise ValidationError("alert_ids array and action are required")
        if action not in BULK_ACTIONS:
            raise ValidationError("Invalid action. Must be 'mark-read' or 'delete'")
        try:
            ids = [int(a) for a in alert_ids]
        except (TypeError, ValueError):
            raise ValidationError("alert_ids must contain numeric ids")
        if action == "mark-read":
            return self._alerts.mark_read(ids)
        return self._alerts.delete_many(ids)
