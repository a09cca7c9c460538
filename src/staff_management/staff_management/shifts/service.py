from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Sequence

from ..alerts.service import AlertService
from ..common.datetime_utils import now_local, parse_iso_date
from ..common.pagination import Page
from ..common.validators import optional_enum, require_enum, require_hhmm, require_id, require_max_length, require_non_empty
from ..core.constants import SWAP_EXPIRY_HOURS
from ..core.enums import AlertPriority, AlertType, ApprovalStatus, ScheduleStatus, ShiftType, SwapStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.repository import ProfileRepository, UserRepository
from .model import Schedule, ShiftSwap
from .repository import ScheduleRepository, SwapRepository

logger = logging.getLogger(__name__)

RESPONSES = ("accepted", "rejected")
ADMIN_DECISIONS = ("approved", "rejected")


class ShiftService:
    """Schedules and the shift swap workflow.

    A swap moves through ``pending`` (waiting for the target) to ``accepted``
    (waiting for an admin when approval is required) and is executed on
    approval. Executing a swap exchanges the shift details of the two
    schedules so each (user, date) pair stays unique.
    """

    def __init__(
        self,
        schedules: ScheduleRepository,
        swaps: SwapRepository,
        users: UserRepository,
        profiles: ProfileRepository,
        alerts: AlertService,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._schedules = schedules
        self._swaps = swaps
        self._users = users
        self._profiles = profiles
        self._alerts = alerts
        self._clock = clock

    # schedules

    def create_schedule(self, payload: dict, *, assigned_by: int) -> Schedule:
        for key in ("user_id", "date", "shift", "start_time", "end_time", "department"):
            if not payload.get(key):
                raise ValidationError("Required fields: user_id, date, shift, start_time, end_time, department")
        user_id = require_id(payload.get("user_id"), "user_id")
        if not self._users.get_by_id(user_id):
            raise NotFoundError("User not found")
        work_date = parse_iso_date(payload["date"])
        shift = require_enum(ShiftType, payload.get("shift"), "shift")
        start = require_hhmm(payload.get("start_time"), "Start time")
        end = require_hhmm(payload.get("end_time"), "End time")
        department = require_max_length(require_non_empty(payload.get("department"), "Department"), "Department", 50)
        notes = require_max_length(payload.get("notes"), "Notes", 500) or None

        if self._schedules.get_for_user_and_date(user_id=user_id, work_date=work_date):
            raise ConflictError("User already has a schedule on this date")

        schedule_id = self._schedules.create_schedule(
            user_id=user_id,
            work_date=work_date,
            shift=shift,
            start_time=start,
            end_time=end,
            department=department,
            assigned_by=assigned_by,
            notes=notes,
        )
        self._alerts.create_system_alert(
            AlertType.SHIFT_REMINDER,
            user_id,
            "Upcoming Shift Reminder",
            f"You have a shift scheduled for {work_date.isoformat()} at {start}. Please be on time!",
            action_required=True,
            related_id=schedule_id,
            related_model="Schedule",
            expires_in_days=1,
        )
        return Schedule(
            schedule_id=schedule_id,
            user_id=user_id,
            work_date=work_date,
            shift=shift,
            start_time=start,
            end_time=end,
            department=department,
            assigned_by=assigned_by,
            notes=notes,
        )

    def my_schedules(self, user_id: int, *, start: Optional[str] = None, end: Optional[str] = None) -> list:
        return list(
            self._schedules.list_for_user(
                user_id,
                start=parse_iso_date(start) if start else None,
                end=parse_iso_date(end) if end else None,
            )
        )

    # swap requests

    def _busy(self, schedule_ids: Sequence[int]) -> bool:
        return bool(self._swaps.find_pending_for_schedules(schedule_ids))

    def _view(self, swap: ShiftSwap) -> dict:
        users = self._users.list_by_ids([swap.requester_id, swap.target_user_id])

        def who(user_id: int) -> Optional[dict]:
            user = users.get(user_id)
            return {"id": user.user_id, "username": user.username, "email": user.email} if user else None

        return {
            "swap": swap,
            "requester": who(swap.requester_id),
            "target_user": who(swap.target_user_id),
            "requester_schedule": self._schedules.get_by_id(swap.requester_schedule_id),
            "target_schedule": self._schedules.get_by_id(swap.target_schedule_id),
        }

    def request_swap(self, requester_id: int, payload: dict) -> dict:
        fields = ("target_user_id", "requester_schedule_id", "target_schedule_id", "reason")
        if not all(payload.get(k) for k in fields):
            raise ValidationError(
                "All fields are required: target_user_id, requester_schedule_id, target_schedule_id, reason"
            )
        target_user_id = require_id(payload["target_user_id"], "target_user_id")
        requester_schedule_id = require_id(payload["requester_schedule_id"], "requester_schedule_id")
        target_schedule_id = require_id(payload["target_schedule_id"], "target_schedule_id")
        reason = require_max_length(require_non_empty(payload.get("reason"), "Reason"), "Reason", 500)

        if target_user_id == requester_id:
            raise ValidationError("Cannot request shift swap with yourself")

        mine = self._schedules.get_by_id(requester_schedule_id)
        theirs = self._schedules.get_by_id(target_schedule_id)
        if not mine or not theirs:
            raise NotFoundError("One or both schedules not found")
        if mine.user_id != requester_id:
            raise AuthorizationError("You can only swap your own shifts")
        if theirs.user_id != target_user_id:
            raise AuthorizationError("Target schedule doesn't belong to specified user")
        if self._busy([mine.schedule_id, theirs.schedule_id]):
            raise ValidationError("One or both shifts are already involved in a pending swap request")
        if mine.department != theirs.department:
            logger.warning(
                "Shift swap requested between departments %s and %s", mine.department, theirs.department
            )

        swap_id = self._swaps.create_swap(
            requester_id=requester_id,
            target_user_id=target_user_id,
            requester_schedule_id=mine.schedule_id,
            target_schedule_id=theirs.schedule_id,
            reason=reason,
            expires_at=self._clock() + timedelta(hours=SWAP_EXPIRY_HOURS),
        )
        requester = self._users.get_by_id(requester_id)
        self._alerts.create_system_alert(
            AlertType.SWAP_REQUEST,
            target_user_id,
            "Shift Swap Request",
            f"{requester.username if requester else 'A colleague'} has requested to swap shifts with you "
            f"for {theirs.work_date.isoformat()}. Please review and respond.",
            priority=AlertPriority.HIGH,
            action_required=True,
            related_id=swap_id,
            related_model="ShiftSwap",
            expires_in_days=2,
        )
        return self._view(self._swaps.get_by_id(swap_id))

    def my_requests(self, user_id: int, *, status: Any = None) -> dict:
        wanted = optional_enum(SwapStatus, status, "status")
        swaps = [s for s in self._swaps.list_for_user(user_id) if wanted is None or s.status == wanted]
        views = [self._view(s) for s in swaps]
        return {
            "requests": {
                "sent": [v for v in views if v["swap"].requester_id == user_id],
                "received": [v for v in views if v["swap"].target_user_id == user_id],
            },
            "total": len(swaps),
        }

    def _execute(self, swap: ShiftSwap) -> None:
        mine = self._schedules.get_by_id(swap.requester_schedule_id)
        theirs = self._schedules.get_by_id(swap.target_schedule_id)
        if not mine or not theirs:
            raise NotFoundError("One or both schedules not found")
        if mine.work_date != theirs.work_date:
            if self._schedules.get_for_user_and_date(user_id=mine.user_id, work_date=theirs.work_date):
                raise ConflictError("Requester already has a schedule on the target date")
            if self._schedules.get_for_user_and_date(user_id=theirs.user_id, work_date=mine.work_date):
                raise ConflictError("Target user already has a schedule on the requester's date")
        self._schedules.exchange(mine.schedule_id, theirs.schedule_id, swap_id=swap.swap_id)
        logger.info("Executed shift swap id=%s", swap.swap_id)

    def respond(self, swap_id: int, *, user_id: int, action: Any, message: Optional[str] = None) -> dict:
        if action not in RESPONSES:
            raise ValidationError("Action must be 'accepted' or 'rejected'")
        swap = self._swaps.get_by_id(swap_id)
        if not swap:
            raise NotFoundError("Swap request not found")
        if swap.target_user_id != user_id:
            raise AuthorizationError("You can only respond to swap requests sent to you")
        if swap.status != SwapStatus.PENDING:
            raise ValidationError("This swap request has already been processed")
        if swap.is_expired(self._clock()):
            self._swaps.update_status(swap_id, status=SwapStatus.CANCELLED)
            raise ValidationError("This swap request has expired")

        message = message or ""
        if action == "rejected":
            self._swaps.update_status(swap_id, status=SwapStatus.REJECTED, response_message=message)
            text = "Swap request rejected."
        elif swap.admin_approval_required:
            self._swaps.update_status(
                swap_id,
                status=SwapStatus.ACCEPTED,
                response_message=message,
                admin_approval_status=ApprovalStatus.PENDING,
            )
            text = "Swap request accepted. Waiting for admin approval."
        else:
            self._execute(swap)
            self._swaps.update_status(swap_id, status=SwapStatus.ACCEPTED, response_message=message)
            text = "Swap request accepted and schedules have been updated."
        return {"message": text, **self._view(self._swaps.get_by_id(swap_id))}

    def admin_approve(self, swap_id: int, *, admin_id: int, action: Any, notes: Optional[str] = None) -> dict:
        if action not in ADMIN_DECISIONS:
            raise ValidationError("Action must be 'approved' or 'rejected'")
        swap = self._swaps.get_by_id(swap_id)
        if not swap:
            raise NotFoundError("Swap request not found")
        if swap.admin_approval_status != ApprovalStatus.PENDING:
            raise ValidationError("This swap request is not pending admin approval")

        if action == "approved":
            self._execute(swap)
            self._swaps.record_admin_decision(
                swap_id,
                approval_status=ApprovalStatus.APPROVED,
                approved_by=admin_id,
                at=self._clock(),
                notes=notes or "",
                status=SwapStatus.ACCEPTED,
            )
        else:
            self._swaps.record_admin_decision(
                swap_id,
                approval_status=ApprovalStatus.REJECTED,
                approved_by=admin_id,
                at=self._clock(),
                notes=notes or "",
                status=SwapStatus.REJECTED,
                response_message=f"Rejected by admin: {notes or 'No reason provided'}",
            )
        logger.info("Swap id=%s %s by admin id=%s", swap_id, action, admin_id)
        return {"message": f"Shift swap {action} successfully", **self._view(self._swaps.get_by_id(swap_id))}

    def cancel(self, swap_id: int, *, user_id: int) -> None:
        swap = self._swaps.get_by_id(swap_id)
        if not swap:
            raise NotFoundError("Swap request not found")
        if swap.requester_id != user_id:
            raise AuthorizationError("You can only cancel your own swap requests")
        if swap.status != SwapStatus.PENDING:
            raise ValidationError("Can only cancel pending swap requests")
        self._swaps.update_status(swap_id, status=SwapStatus.CANCELLED)

    def available_partners(self, schedule_id: int, *, user_id: int) -> dict:
        mine = self._schedules.get_by_id(schedule_id)
        if not mine:
            raise NotFoundError("Schedule not found")
        if mine.user_id != user_id:
            raise AuthorizationError("You can only find partners for your own shifts")

        others = [
            s
            for s in self._schedules.list_for_date(mine.work_date, status=ScheduleStatus.SCHEDULED)
            if s.user_id != user_id and not self._busy([s.schedule_id])
        ]
        users = self._users.list_by_ids([s.user_id for s in others])
        profiles = self._profiles.list_by_users([s.user_id for s in others])
        partners = []
        for schedule in others:
            user = users.get(schedule.user_id)
            profile = profiles.get(schedule.user_id)
            partners.append(
                {
                    "schedule": schedule,
                    "user": {"id": schedule.user_id, "username": user.username, "email": user.email}
                    if user
                    else None,
                    "profile": {
                        "name": profile.name,
                        "department": profile.department,
                        "job_title": profile.job_title,
                        "shift": profile.shift,
                        "skills": profile.skills,
                    }
                    if profile
                    else None,
                }
            )
        return {"available_partners": partners, "total": len(partners), "user_schedule": mine}

    def admin_pending(self) -> dict:
        views = [self._view(s) for s in self._swaps.list_awaiting_admin()]
        return {"pending_approvals": views, "total": len(views)}

    def admin_all(self, args: Dict[str, Any]) -> dict:
        paging = Page.from_args(args.get("page"), args.get("limit"))
        swaps, total = self._swaps.list_swaps(
            status=optional_enum(SwapStatus, args.get("status"), "status"),
            limit=paging.limit,
            offset=paging.offset,
        )
        return {
            "swap_requests": [self._view(s) for s in swaps],
            "pagination": paging.describe(total),
            "total_requests": total,
        }
