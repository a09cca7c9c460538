from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ScheduleStatus, ShiftType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone, hhmm
from .model import Schedule
from .repository import ScheduleRepository

_COLUMNS = """
    schedule_id, user_id, work_date, shift, start_time, end_time, department,
    assigned_by, status, swap_request_id, notes, created_at
"""


def _row_to_schedule(r: dict) -> Schedule:
    return Schedule(
        schedule_id=int(r["schedule_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        shift=ShiftType(r["shift"]),
        start_time=hhmm(r["start_time"]) or "",
        end_time=hhmm(r["end_time"]) or "",
        department=r["department"],
        assigned_by=r.get("assigned_by"),
        status=ScheduleStatus(r["status"]),
        swap_request_id=r.get("swap_request_id"),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedules WHERE schedule_id=%s", (int(schedule_id),))
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def get_for_user_and_date(self, *, user_id: int, work_date: date) -> Optional[Schedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM schedules WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def list_for_user(
        self, user_id: int, *, start: Optional[date] = None, end: Optional[date] = None
    ) -> Sequence[Schedule]:
        where, params = build_where(
            [("user_id=%s", int(user_id)), ("work_date>=%s", start), ("work_date<=%s", end)]
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedules{where} ORDER BY work_date", tuple(params))
            return [_row_to_schedule(r) for r in fetchall(cur)]

    def list_for_date(self, work_date: date, *, status: Optional[ScheduleStatus] = None) -> Sequence[Schedule]:
        where, params = build_where(
            [("work_date=%s", work_date), ("status=%s", status.value if status else None)]
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedules{where} ORDER BY start_time", tuple(params))
            return [_row_to_schedule(r) for r in fetchall(cur)]

    def create_schedule(
        self,
        *,
        user_id: int,
        work_date: date,
        shift: ShiftType,
        start_time: str,
        end_time: str,
        department: str,
        assigned_by: Optional[int],
        notes: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO schedules(user_id, work_date, shift, start_time, end_time, department, assigned_by, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), work_date, shift.value, start_time, end_time, department, assigned_by, notes),
            )
            return int(cur.lastrowid)

    def exchange(self, first_id: int, second_id: int, *, swap_id: int) -> None:
        # Both rows are rewritten inside one transaction.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM schedules WHERE schedule_id IN (%s,%s) FOR UPDATE",
                (int(first_id), int(second_id)),
            )
            rows = {int(r["schedule_id"]): r for r in fetchall(cur)}
            first, second = rows[int(first_id)], rows[int(second_id)]
            for row, other in ((first, second), (second, first)):
                cur.execute(
                    """
                    UPDATE schedules
                    SET work_date=%s, shift=%s, start_time=%s, end_time=%s, department=%s,
                        status='swapped', swap_request_id=%s
                    WHERE schedule_id=%s
                    """,
                    (
                        other["work_date"],
                        other["shift"],
                        other["start_time"],
                        other["end_time"],
                        other["department"],
                        int(swap_id),
                        int(row["schedule_id"]),
                    ),
                )
