from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ApprovalStatus, ScheduleStatus, ShiftType, SwapStatus


@dataclass(frozen=True)
class Schedule:
    schedule_id: int
    user_id: int
    work_date: date
    shift: ShiftType
    start_time: str
    end_time: str
    department: str
    assigned_by: Optional[int] = None
    status: ScheduleStatus = ScheduleStatus.SCHEDULED
    swap_request_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ShiftSwap:
    """A request to exchange two scheduled shifts between staff members."""

    swap_id: int
    requester_id: int
    target_user_id: int
    requester_schedule_id: int
    target_schedule_id: int
    reason: str
    expires_at: datetime
    status: SwapStatus = SwapStatus.PENDING
    response_message: Optional[str] = None
    admin_approval_required: bool = True
    admin_approval_status: Optional[ApprovalStatus] = None
    approved_by: Optional[int] = None
    approval_date: Optional[datetime] = None
    approval_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    @property
    def awaiting_admin(self) -> bool:
        return self.status == SwapStatus.ACCEPTED and self.admin_approval_status == ApprovalStatus.PENDING
