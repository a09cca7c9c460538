from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import AttendanceStatus, LeaveType
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Repository interface for daily attendance rows."""

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user(
        self,
        user_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[Sequence[AttendanceRecord], int]:
        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_pending_leaves(self, *, from_date: Optional[date] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

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
        raise NotImplementedError

    def mark_absent(self, *, user_id: int, work_date: date, reason: str, notes: str, manual: bool) -> int:
        raise NotImplementedError

    def save_check_out(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        location: str,
        working_minutes: int,
        notes: Optional[str],
    ) -> None:
        raise NotImplementedError

    def create_leave(
        self,
        *,
        user_id: int,
        work_date: date,
        leave_type: LeaveType,
        reason: str,
        notes: str,
    ) -> int:
        raise NotImplementedError

    def approve_leave(self, attendance_id: int, *, approved_by: int, at: datetime, notes: Optional[str]) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError
