from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence, Tuple

from ..core.enums import AttendanceStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, work_date, status, check_in_time, check_in_location, check_in_ip,
    check_in_device, check_out_time, check_out_location, working_minutes, notes, absent_reason,
    leave_reason, leave_type, is_approved, approved_by, approval_date, approval_notes,
    is_manual_entry, created_by, created_at
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    approved = r.get("is_approved")
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        check_in_time=r.get("check_in_time"),
        check_in_location=r.get("check_in_location"),
        check_in_ip=r.get("check_in_ip"),
        check_in_device=r.get("check_in_device"),
        check_out_time=r.get("check_out_time"),
        check_out_location=r.get("check_out_location"),
        working_minutes=int(r.get("working_minutes") or 0),
        notes=r.get("notes"),
        absent_reason=r.get("absent_reason"),
        leave_reason=r.get("leave_reason"),
        leave_type=LeaveType(r["leave_type"]) if r.get("leave_type") else None,
        is_approved=None if approved is None else bool(approved),
        approved_by=r.get("approved_by"),
        approval_date=r.get("approval_date"),
        approval_notes=r.get("approval_notes"),
        is_manual_entry=bool(r.get("is_manual_entry")),
        created_by=r.get("created_by"),
        created_at=r.get("created_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_for_user(
        self,
        user_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[Sequence[AttendanceRecord], int]:
        where, params = build_where(
            [
                ("user_id=%s", int(user_id)),
                ("work_date>=%s", start),
                ("work_date<=%s", end),
            ]
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance{where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)

            sql = f"SELECT {_COLUMNS} FROM attendance{where} ORDER BY work_date DESC"
            query_params = list(params)
            if limit is not None:
                sql += " LIMIT %s OFFSET %s"
                query_params.extend([int(limit), int(offset)])
            cur.execute(sql, tuple(query_params))
            return [_row_to_record(r) for r in fetchall(cur)], total

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE work_date=%s", (work_date,))
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_pending_leaves(self, *, from_date: Optional[date] = None) -> Sequence[AttendanceRecord]:
        where, params = build_where([("work_date>=%s", from_date)])
        where = (where + " AND" if where else " WHERE") + " status='leave' AND is_approved IS NULL"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance{where} ORDER BY work_date ASC", tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]

    def save_check_in(
        self,
        *,
        user_id: int,
        work_date: date,
        status: AttendanceStatus,
        check_in_time: datetime,
        location: str,
        ip_address: Optional[str],
        device_info: Optional[str],
        notes: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(user_id, work_date, status, check_in_time, check_in_location,
                                       check_in_ip, check_in_device, notes, created_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status), check_in_time=VALUES(check_in_time),
                    check_in_location=VALUES(check_in_location), check_in_ip=VALUES(check_in_ip),
                    check_in_device=VALUES(check_in_device), notes=VALUES(notes), absent_reason=NULL,
                    attendance_id=LAST_INSERT_ID(attendance_id)
                """,
                (int(user_id), work_date, status.value, check_in_time, location, ip_address, device_info, notes, int(user_id)),
            )
            return int(cur.lastrowid)

    def mark_absent(self, *, user_id: int, work_date: date, reason: str, notes: str, manual: bool) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(user_id, work_date, status, absent_reason, notes, is_manual_entry, working_minutes)
                VALUES(%s,%s,'absent',%s,%s,%s,0)
                ON DUPLICATE KEY UPDATE
                    status='absent', absent_reason=VALUES(absent_reason), notes=VALUES(notes),
                    is_manual_entry=VALUES(is_manual_entry), check_in_time=NULL, check_out_time=NULL,
                    working_minutes=0, attendance_id=LAST_INSERT_ID(attendance_id)
                """,
                (int(user_id), work_date, reason, notes, int(manual)),
            )
            return int(cur.lastrowid)

    def save_check_out(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        location: str,
        working_minutes: int,
        notes: Optional[str],
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET check_out_time=%s, check_out_location=%s, working_minutes=%s, notes=%s
                WHERE attendance_id=%s
                """,
                (check_out_time, location, int(working_minutes), notes, int(attendance_id)),
            )

    def create_leave(
        self,
        *,
        user_id: int,
        work_date: date,
        leave_type: LeaveType,
        reason: str,
        notes: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(user_id, work_date, status, leave_type, leave_reason, notes, is_approved, created_by)
                VALUES(%s,%s,'leave',%s,%s,%s,NULL,%s)
                """,
                (int(user_id), work_date, leave_type.value, reason, notes, int(user_id)),
            )
            return int(cur.lastrowid)

    def approve_leave(self, attendance_id: int, *, approved_by: int, at: datetime, notes: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET is_approved=1, approved_by=%s, approval_date=%s, approval_notes=%s
                WHERE attendance_id=%s AND status='leave' AND is_approved IS NULL
                """,
                (int(approved_by), at, notes, int(attendance_id)),
            )
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0
