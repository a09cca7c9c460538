from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional, Set

from ..common.datetime_utils import month_bounds, now_local, parse_hhmm, parse_iso_date, resolve_month
from ..common.pagination import Page
from ..common.rounding import round_half_up
from ..common.validators import require_enum, require_max_length, require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_WORK_END, DEFAULT_WORK_START, URGENT_LEAVE_DAYS
from ..core.enums import AttendanceStatus, LeaveType, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..notifications.mailer import Mailer
from ..users.repository import ProfileRepository, UserRepository
from .factory import CheckInStrategyFactory, delay_minutes
from .model import AttendanceRecord, CheckInContext, TodaySummary
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        profiles: ProfileRepository,
        mailer: Mailer,
        *,
        strategy_factory: CheckInStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._profiles = profiles
        self._mailer = mailer
        self._factory = strategy_factory or CheckInStrategyFactory()
        self._clock = clock

    def working_hours(self, user_id: int) -> dict:
        profile = self._profiles.get_by_user(user_id)
        if not profile:
            return {"start": DEFAULT_WORK_START, "end": DEFAULT_WORK_END}
        return profile.working_hours

    def check_in(self, user_id: int, *, context: CheckInContext | None = None, now: datetime | None = None) -> dict:
        context = context or CheckInContext()
        now = now or self._clock()
        today = now.date()

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        existing = self._attendance.get_for_user_and_date(user_id, today)
        if existing:
            if existing.status == AttendanceStatus.LEAVE:
                raise ValidationError("Cannot check in - you have approved leave for today")
            if existing.status == AttendanceStatus.ABSENT and existing.is_manual_entry:
                raise ValidationError("Cannot check in - you are marked absent for today")
            if existing.check_in_time is not None:
                raise ValidationError("Already checked in today", check_in_time=existing.check_in_time.isoformat())

        hours = self.working_hours(user_id)
        delay = delay_minutes(now, parse_hhmm(hours["start"]))
        decision = self._factory.for_delay(delay).decide(delay_minutes=delay)

        if not decision.accepted:
            self._attendance.mark_absent(
                user_id=user_id,
                work_date=today,
                reason=decision.note or "Excessive delay",
                notes=f"Attempted check-in at {now.strftime('%H:%M:%S')} - marked absent due to excessive delay",
                manual=True,
            )
            logger.info("User id=%s marked absent after check-in %s minutes late", user_id, delay)
            raise ValidationError(
                f"Cannot check in - marked as absent due to excessive delay ({decision.note}). "
                "Contact admin for manual correction."
            )

        notes = decision.note
        if context.notes:
            notes = f"{notes}\n{context.notes}" if notes else context.notes
        attendance_id = self._attendance.save_check_in(
            user_id=user_id,
            work_date=today,
            status=decision.status,
            check_in_time=now,
            location=context.location or "Office",
            ip_address=context.ip_address,
            device_info=context.device_info,
            notes=notes,
        )

        is_late = decision.status == AttendanceStatus.LATE
        message = f"Checked in {'late ' if is_late else 'successfully '}at {now.strftime('%H:%M:%S')}"
        return {
            "message": message,
            "attendance": {
                "id": attendance_id,
                "check_in_time": now,
                "status": decision.status,
                "is_late": is_late,
                "working_hours": hours,
            },
        }

    def check_out(
        self,
        user_id: int,
        *,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        record = self._attendance.get_for_user_and_date(user_id, now.date())
        if not record or record.check_in_time is None:
            raise ValidationError("No check-in record found for today")
        if record.check_out_time is not None:
            raise ValidationError("Already checked out today", check_out_time=record.check_out_time.isoformat())

        minutes = max(int((now - record.check_in_time).total_seconds() // 60), 0)
        merged_notes = record.notes
        if notes:
            merged_notes = f"{record.notes}\n{notes}" if record.notes else notes

        self._attendance.save_check_out(
            attendance_id=record.attendance_id,
            check_out_time=now,
            location=location or "Office",
            working_minutes=minutes,
            notes=merged_notes,
        )
        return replace(
            record,
            check_out_time=now,
            check_out_location=location or "Office",
            working_minutes=minutes,
            notes=merged_notes,
        )

    def apply_leave(
        self,
        user_id: int,
        *,
        reason: Optional[str],
        leave_date: Optional[str],
        leave_type: Optional[str],
        now: datetime | None = None,
    ) -> AttendanceRecord:
        if not reason or not leave_date or not leave_type:
            raise ValidationError("Reason, date, and leave type are required")
        reason = require_max_length(require_non_empty(reason, "Reason"), "Reason", 500)
        kind = require_enum(LeaveType, leave_type, "leave type")
        day = parse_iso_date(leave_date)

        now = now or self._clock()
        if day <= now.date():
            raise ValidationError(
                "Leave can only be applied for future dates. For today or past dates, contact your admin directly."
            )

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if self._attendance.get_for_user_and_date(user_id, day):
            raise ValidationError("Attendance already marked for this date")

        notes = f"Leave Application - Type: {kind.value}, Reason: {reason}"
        attendance_id = self._attendance.create_leave(
            user_id=user_id, work_date=day, leave_type=kind, reason=reason, notes=notes
        )
        self._mailer.send(
            to=user.email,
            subject="Leave application received",
            body=f"Your {kind.value} leave request for {day.isoformat()} is pending approval.",
        )
        return AttendanceRecord(
            attendance_id=attendance_id,
            user_id=user_id,
            work_date=day,
            status=AttendanceStatus.LEAVE,
            leave_reason=reason,
            leave_type=kind,
            notes=notes,
            created_by=user_id,
        )

    def _past_grace(self, user_id: int, now: datetime) -> bool:
        start = self.working_hours(user_id)["start"]
        return delay_minutes(now, parse_hhmm(start)) > self._factory.grace_minutes

    def _auto_mark(self, user_id: int, now: datetime) -> bool:
        if self._attendance.get_for_user_and_date(user_id, now.date()) or not self._past_grace(user_id, now):
            return False
        start = self.working_hours(user_id)["start"]
        self._attendance.mark_absent(
            user_id=user_id,
            work_date=now.date(),
            reason="Auto-marked for late arrival",
            notes=f"Auto-marked absent - No check-in after {start} + {self._factory.grace_minutes} min grace period",
            manual=False,
        )
        return True

    def auto_mark_absent(self, user_id: int, *, now: datetime | None = None) -> Optional[AttendanceRecord]:
        """Today's record for ``user_id``, recording an absence once the check-in grace period has passed.

        Automatic absences are not manual entries, so a late check-in still replaces them.
        """
        now = now or self._clock()
        if self._auto_mark(user_id, now):
            logger.info("User id=%s auto-marked absent for %s", user_id, now.date())
        return self._attendance.get_for_user_and_date(user_id, now.date())

    def auto_mark_absent_all(self, *, now: datetime | None = None) -> dict:
        now = now or self._clock()
        staff = self._users.list_users(role=Role.USER, verified=True)
        marked = [u.user_id for u in staff if self._auto_mark(u.user_id, now)]
        if marked:
            logger.info("Auto-marked %s staff absent for %s", len(marked), now.date())
        return {"date": now.date(), "checked": len(staff), "marked_absent": marked, "count": len(marked)}

    def today(self, user_id: int, *, now: datetime | None = None) -> dict:
        now = now or self._clock()
        record = self.auto_mark_absent(user_id, now=now)
        return {
            "attendance": record,
            "status": record.day_state if record else "not-checked-in",
            "working_hours": self.working_hours(user_id),
        }

    def history(
        self,
        user_id: int,
        *,
        page: Optional[str] = None,
        limit: Optional[str] = None,
        month: Optional[str] = None,
        year: Optional[str] = None,
    ) -> dict:
        paging = Page.from_args(page, limit, default_limit=DEFAULT_HISTORY_LIMIT)
        start = end = None
        if month and year:
            start, end = month_bounds(resolve_month(month, year))
        records, total = self._attendance.list_for_user(
            user_id, start=start, end=end, limit=paging.limit, offset=paging.offset
        )
        return {"attendance": list(records), "pagination": paging.describe(total)}

    def decide_leave(
        self,
        *,
        attendance_id: int,
        is_approved: object,
        admin_id: int,
        notes: Optional[str] = None,
    ) -> dict:
        if not isinstance(is_approved, bool):
            raise ValidationError("is_approved must be true or false")
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        if record.status != AttendanceStatus.LEAVE:
            raise ValidationError("This is not a leave request")
        if record.is_approved is not None:
            raise ValidationError(f"Leave request already {'approved' if record.is_approved else 'rejected'}")

        user = self._users.get_by_id(record.user_id)
        verdict = "approved" if is_approved else "rejected"
        if is_approved:
            self._attendance.approve_leave(attendance_id, approved_by=admin_id, at=self._clock(), notes=notes or "")
        else:
            self._attendance.delete(attendance_id)

        if user:
            self._mailer.send(
                to=user.email,
                subject=f"Leave request {verdict}",
                body=f"Your leave request for {record.work_date.isoformat()} was {verdict}. Notes: {notes or 'None'}",
            )
        logger.info("Leave id=%s %s by admin id=%s", attendance_id, verdict, admin_id)
        return {"action": verdict, "attendance_id": attendance_id}

    def pending_leaves(self, *, now: datetime | None = None) -> dict:
        today = (now or self._clock()).date()
        leaves = self._attendance.list_pending_leaves()
        users = self._users.list_by_ids([l.user_id for l in leaves])
        profiles = self._profiles.list_by_users([l.user_id for l in leaves])

        items = []
        for leave in leaves:
            user = users.get(leave.user_id)
            profile = profiles.get(leave.user_id)
            items.append(
                {
                    "leave": leave,
                    "user_details": {
                        "username": user.username if user else None,
                        "email": user.email if user else None,
                        "name": profile.name if profile else (user.username if user else None),
                        "department": profile.department.value if profile else "Not Set",
                        "job_title": profile.job_title.value if profile else "Not Set",
                    },
                    "days_until_leave": (leave.work_date - today).days,
                }
            )
        items.sort(key=lambda i: i["days_until_leave"])
        return {
            "pending_leaves": items,
            "count": len(items),
            "summary": {
                "total": len(items),
                "urgent": sum(1 for i in items if i["days_until_leave"] <= URGENT_LEAVE_DAYS),
                "this_week": sum(1 for i in items if i["days_until_leave"] <= 7),
            },
        }

    def today_summary(self, *, now: datetime | None = None) -> TodaySummary:
        today = (now or self._clock()).date()
        records = self._attendance.list_for_date(today)
        total = len(self._users.list_users(role=Role.USER, verified=True))

        present = sum(1 for r in records if r.check_in_time is not None)
        late = sum(1 for r in records if r.status == AttendanceStatus.LATE)
        checked_out = sum(1 for r in records if r.check_out_time is not None)
        absent = sum(1 for r in records if r.status == AttendanceStatus.ABSENT)
        approved_leave = sum(1 for r in records if r.is_approved_leave)
        pending_leave = sum(1 for r in records if r.status == AttendanceStatus.LEAVE and r.is_approved is None)
        marked = present + absent + approved_leave

        return TodaySummary(
            date=today,
            total_staff=total,
            present=present,
            late=late,
            checked_out=checked_out,
            still_working=present - checked_out,
            absent=absent,
            approved_leave=approved_leave,
            pending_leave=pending_leave,
            not_marked=max(total - len(records), 0),
            attendance_rate=round_half_up(marked / total * 100) if total else 0,
            punctuality_rate=round_half_up((present - late) / present * 100) if present else 0,
        )

    def absent_user_ids(self, work_date: date) -> Set[int]:
        """Users who will not work on ``work_date``: absent or on approved leave."""
        return {
            r.user_id
            for r in self._attendance.list_for_date(work_date)
            if r.status == AttendanceStatus.ABSENT or r.is_approved_leave
        }
