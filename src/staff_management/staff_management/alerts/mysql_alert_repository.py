from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence, Tuple

from ..core.enums import AlertPriority, AlertType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone, in_clause
from .model import Alert, NewAlert
from .repository import AlertRepository

_COLUMNS = """
    alert_id, type, user_id, title, message, priority, is_read, action_required,
    action_url, related_id, related_model, expires_at, created_at
"""


def _row_to_alert(r: dict) -> Alert:
    return Alert(
        alert_id=int(r["alert_id"]),
        type=AlertType(r["type"]),
        user_id=int(r["user_id"]),
        title=r["title"],
        message=r["message"],
        expires_at=r["expires_at"],
        priority=AlertPriority(r["priority"]),
        is_read=bool(r["is_read"]),
        action_required=bool(r["action_required"]),
        action_url=r.get("action_url"),
        related_id=r.get("related_id"),
        related_model=r.get("related_model"),
        created_at=r.get("created_at"),
    )


class MySQLAlertRepository(AlertRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, alert_id: int) -> Optional[Alert]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM alerts WHERE alert_id=%s", (int(alert_id),))
            r = fetchone(cur)
            return _row_to_alert(r) if r else None

    def create_many(self, alerts: Sequence[NewAlert]) -> Sequence[int]:
        ids = []
        with db_cursor(self._conn_factory) as (_, cur):
            for a in alerts:
                cur.execute(
                    """
                    INSERT INTO alerts(type, user_id, title, message, priority, action_required,
                                       action_url, related_id, related_model, expires_at)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        a.type.value,
                        int(a.user_id),
                        a.title,
                        a.message,
                        a.priority.value,
                        int(a.action_required),
                        a.action_url,
                        a.related_id,
                        a.related_model,
                        a.expires_at,
                    ),
                )
                ids.append(int(cur.lastrowid))
        return ids

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
        where, params = build_where(
            [
                ("user_id=%s", user_id),
                ("type=%s", alert_type.value if alert_type else None),
                ("priority=%s", priority.value if priority else None),
                ("is_read=%s", None if is_read is None else int(is_read)),
                ("expires_at>%s", active_at),
            ]
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM alerts{where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"SELECT {_COLUMNS} FROM alerts{where} ORDER BY created_at DESC, alert_id DESC LIMIT %s OFFSET %s",
                tuple(params) + (int(limit), int(offset)),
            )
            return [_row_to_alert(r) for r in fetchall(cur)], total

    def list_created_between(self, start: datetime, end: datetime) -> Sequence[Alert]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM alerts WHERE created_at BETWEEN %s AND %s",
                (start, end),
            )
            return [_row_to_alert(r) for r in fetchall(cur)]

    def count_overview(self, now: datetime) -> dict:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(is_read=0), 0) AS unread,
                       COALESCE(SUM(priority='urgent'), 0) AS urgent,
                       COALESCE(SUM(action_required=1), 0) AS action_required,
                       COALESCE(SUM(expires_at<=%s), 0) AS expired
                FROM alerts
                """,
                (now,),
            )
            r = fetchone(cur) or {}
            return {k: int(r.get(k) or 0) for k in ("total", "unread", "urgent", "action_required", "expired")}

    def mark_read(self, alert_ids: Sequence[int]) -> int:
        if not alert_ids:
            return 0
        placeholders, params = in_clause([int(a) for a in alert_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE alerts SET is_read=1 WHERE is_read=0 AND alert_id IN ({placeholders})", params)
            return int(cur.rowcount)

    def mark_all_read(self, user_id: int, *, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE alerts SET is_read=1 WHERE user_id=%s AND is_read=0 AND expires_at>%s",
                (int(user_id), now),
            )
            return int(cur.rowcount)

    def delete_many(self, alert_ids: Sequence[int]) -> int:
        if not alert_ids:
            return 0
        placeholders, params = in_clause([int(a) for a in alert_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM alerts WHERE alert_id IN ({placeholders})", params)
            return int(cur.rowcount)

    def delete_expired(self, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM alerts WHERE expires_at<=%s", (now,))
            return int(cur.rowcount)
