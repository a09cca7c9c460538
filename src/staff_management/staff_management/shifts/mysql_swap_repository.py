from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence, Tuple

from ..core.enums import ApprovalStatus, SwapStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone, in_clause
from .model import ShiftSwap
from .repository import SwapRepository

_COLUMNS = """
    swap_id, requester_id, target_user_id, requester_schedule_id, target_schedule_id, reason,
    status, response_message, admin_approval_required, admin_approval_status, approved_by,
    approval_date, approval_notes, expires_at, created_at
"""


def _row_to_swap(r: dict) -> ShiftSwap:
    return ShiftSwap(
        swap_id=int(r["swap_id"]),
        requester_id=int(r["requester_id"]),
        target_user_id=int(r["target_user_id"]),
        requester_schedule_id=int(r["requester_schedule_id"]),
        target_schedule_id=int(r["target_schedule_id"]),
        reason=r["reason"],
        expires_at=r["expires_at"],
        status=SwapStatus(r["status"]),
        response_message=r.get("response_message"),
        admin_approval_required=bool(r.get("admin_approval_required", 1)),
        admin_approval_status=ApprovalStatus(r["admin_approval_status"]) if r.get("admin_approval_status") else None,
        approved_by=r.get("approved_by"),
        approval_date=r.get("approval_date"),
        approval_notes=r.get("approval_notes"),
        created_at=r.get("created_at"),
    )


class MySQLSwapRepository(SwapRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, swap_id: int) -> Optional[ShiftSwap]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shift_swaps WHERE swap_id=%s", (int(swap_id),))
            r = fetchone(cur)
            return _row_to_swap(r) if r else None

    def create_swap(
        self,
        *,
        requester_id: int,
        target_user_id: int,
        requester_schedule_id: int,
        target_schedule_id: int,
        reason: str,
        expires_at: datetime,
        admin_approval_required: bool = True,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shift_swaps(requester_id, target_user_id, requester_schedule_id, target_schedule_id,
                                        reason, expires_at, admin_approval_required)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(requester_id),
                    int(target_user_id),
                    int(requester_schedule_id),
                    int(target_schedule_id),
                    reason,
                    expires_at,
                    int(admin_approval_required),
                ),
            )
            return int(cur.lastrowid)

    def find_pending_for_schedules(self, schedule_ids: Sequence[int]) -> Sequence[ShiftSwap]:
        if not schedule_ids:
            return []
        placeholders, params = in_clause([int(s) for s in schedule_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM shift_swaps
                WHERE status='pending'
                  AND (requester_schedule_id IN ({placeholders}) OR target_schedule_id IN ({placeholders}))
                """,
                params + params,
            )
            return [_row_to_swap(r) for r in fetchall(cur)]

    def list_for_user(self, user_id: int) -> Sequence[ShiftSwap]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM shift_swaps
                WHERE requester_id=%s OR target_user_id=%s
                ORDER BY created_at DESC
                """,
                (int(user_id), int(user_id)),
            )
            return [_row_to_swap(r) for r in fetchall(cur)]

    def list_awaiting_admin(self) -> Sequence[ShiftSwap]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM shift_swaps
                WHERE status='accepted' AND admin_approval_status='pending'
                ORDER BY created_at DESC
                """
            )
            return [_row_to_swap(r) for r in fetchall(cur)]

    def list_swaps(
        self, *, status: Optional[SwapStatus] = None, limit: int = 20, offset: int = 0
    ) -> Tuple[Sequence[ShiftSwap], int]:
        where, params = build_where([("status=%s", status.value if status else None)])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM shift_swaps{where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"SELECT {_COLUMNS} FROM shift_swaps{where} ORDER BY created_at DESC LIMIT %s OFFSET %s",
                tuple(params) + (int(limit), int(offset)),
            )
            return [_row_to_swap(r) for r in fetchall(cur)], total

    def update_status(
        self,
        swap_id: int,
        *,
        status: SwapStatus,
        response_message: Optional[str] = None,
        admin_approval_status: Optional[ApprovalStatus] = None,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shift_swaps
                SET status=%s,
                    response_message=COALESCE(%s, response_message),
                    admin_approval_status=COALESCE(%s, admin_approval_status)
                WHERE swap_id=%s
                """,
                (
                    status.value,
                    response_message,
                    admin_approval_status.value if admin_approval_status else None,
                    int(swap_id),
                ),
            )

    def record_admin_decision(
        self,
        swap_id: int,
        *,
        approval_status: ApprovalStatus,
        approved_by: int,
        at: datetime,
        notes: str,
        status: SwapStatus,
        response_message: Optional[str] = None,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shift_swaps
                SET admin_approval_status=%s, approved_by=%s, approval_date=%s, approval_notes=%s,
                    status=%s, response_message=COALESCE(%s, response_message)
                WHERE swap_id=%s
                """,
                (approval_status.value, int(approved_by), at, notes, status.value, response_message, int(swap_id)),
            )
