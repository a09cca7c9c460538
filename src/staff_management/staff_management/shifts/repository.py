from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import ApprovalStatus, ScheduleStatus, ShiftType, SwapStatus
from .model import Schedule, ShiftSwap


class ScheduleRepository(Protocol):
    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        raise NotImplementedError

    def get_for_user_and_date(self, *, user_id: int, work_date: date) -> Optional[Schedule]:
        raise NotImplementedError

    def list_for_user(
        self, user_id: int, *, start: Optional[date] = None, end: Optional[date] = None
    ) -> Sequence[Schedule]:
        raise NotImplementedError

    def list_for_date(self, work_date: date, *, status: Optional[ScheduleStatus] = None) -> Sequence[Schedule]:
        raise NotImplementedError

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
        raise NotImplementedError

    def exchange(self, first_id: int, second_id: int, *, swap_id: int) -> None:
        """Exchange shift details between two schedules and mark both swapped."""
        raise NotImplementedError


class SwapRepository(Protocol):
    def get_by_id(self, swap_id: int) -> Optional[ShiftSwap]:
        raise NotImplementedError

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
        raise NotImplementedError

    def find_pending_for_schedules(self, schedule_ids: Sequence[int]) -> Sequence[ShiftSwap]:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[ShiftSwap]:
        raise NotImplementedError

    def list_awaiting_admin(self) -> Sequence[ShiftSwap]:
        raise NotImplementedError

    def list_swaps(
        self, *, status: Optional[SwapStatus] = None, limit: int = 20, offset: int = 0
    ) -> Tuple[Sequence[ShiftSwap], int]:
        raise NotImplementedError

    def update_status(
        self,
        swap_id: int,
        *,
        status: SwapStatus,
        response_message: Optional[str] = None,
        admin_approval_status: Optional[ApprovalStatus] = None,
    ) -> None:
        raise NotImplementedError

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
        raise NotImplementedError
