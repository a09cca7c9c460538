from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, LeaveType


@dataclass(frozen=True)
class AttendanceRecord:
    """One attendance row per (user, work_date)."""

    attendance_id: int
    user_id: int
    work_date: date
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_in_location: Optional[str] = None
    check_in_ip: Optional[str] = None
    check_in_device: Optional[str] = None
    check_out_time: Optional[datetime] = None
    check_out_location: Optional[str] = None
    working_minutes: int = 0
    notes: Optional[str] = None
    absent_reason: Optional[str] = None
    leave_reason: Optional[str] = None
    leave_type: Optional[LeaveType] = None
    is_approved: Optional[bool] = None
    approved_by: Optional[int] = None
    approval_date: Optional[datetime] = None
    approval_notes: Optional[str] = None
    is_manual_entry: bool = False
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_approved_leave(self) -> bool:
        return self.status == AttendanceStatus.LEAVE and self.is_approved is True

    @property
    def day_state(self) -> str:
        """Display state for the today view."""
        if self.status == AttendanceStatus.ABSENT:
            return "absent"
        if self.status == AttendanceStatus.LEAVE:
            return "leave"
        if self.check_in_time is not None:
            return "checked-out" if self.check_out_time is not None else "checked-in"
        return "not-checked-in"


@dataclass(frozen=True)
class CheckInContext:
    location: str = "Office"
    ip_address: Optional[str] = None
    device_info: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class TodaySummary:
    date: date
    total_staff: int
    present: int
    late: int
    checked_out: int
    still_working: int
    absent: int
    approved_leave: int
    pending_leave: int
    not_marked: int
    attendance_rate: int
    punctuality_rate: int
