from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Dict, List, Optional

import pytest

from src.staff_management.staff_management.alerts.model import Alert, NewAlert
from src.staff_management.staff_management.attendance.model import AttendanceRecord
from src.staff_management.staff_management.core.enums import (
    AttendanceStatus,
    Department,
    JobTitle,
    Role,
    ScheduleStatus,
    ShiftType,
    SwapStatus,
    TaskPriority,
    TaskStatus,
    VerificationTaskStatus,
)
from src.staff_management.staff_management.notifications.mailer import LoggingMailer
from src.staff_management.staff_management.performance.model import PerformanceRecord
from src.staff_management.staff_management.shifts.model import Schedule, ShiftSwap
from src.staff_management.staff_management.tasks.model import NewTask, ReassignmentEntry, Task, TaskQuery
from src.staff_management.staff_management.users.model import EmergencyContact, StaffProfile, User
from src.staff_management.staff_management.verification.model import SecretTeam, TeamMember, VerificationTask

NOW = datetime(2025, 3, 10, 9, 0, 0)

PRIORITY_ORDER = {TaskPriority.URGENT: 0, TaskPriority.HIGH: 1, TaskPriority.MEDIUM: 2, TaskPriority.LOW: 3}


class FakeUserRepo:
    def __init__(self):
        self.users: Dict[int, User] = {}
        self._next_id = 1

    def add(self, username: str, **kwargs) -> User:
        user_id = kwargs.pop("user_id", self._next_id)
        self._next_id = max(self._next_id, user_id) + 1
        kwargs.setdefault("email", f"{username}@example.com")
        kwargs.setdefault("password_hash", "x")
        kwargs.setdefault("verified", True)
        user = User(user_id=user_id, username=username, **kwargs)
        self.users[user_id] = user
        return user

    def _update(self, user_id: int, **changes) -> None:
        self.users[user_id] = replace(self.users[user_id], **changes)

    def get_by_id(self, user_id):
        return self.users.get(int(user_id))

    def get_by_email(self, email):
        return next((u for u in self.users.values() if u.email == email), None)

    def get_by_reset_token(self, token):
        return next((u for u in self.users.values() if u.reset_password_token == token), None)

    def list_users(self, *, role=None, verified=None):
        return [
            u
            for u in self.users.values()
            if (role is None or u.role == role) and (verified is None or u.verified == verified)
        ]

    def list_by_ids(self, user_ids):
        return {int(i): self.users[int(i)] for i in user_ids if int(i) in self.users}

    def create_user(self, *, username, email, password_hash, verification_code, verification_code_expires):
        user = self.add(
            username,
            email=email,
            password_hash=password_hash,
            verified=False,
            verification_code=verification_code,
            verification_code_expires=verification_code_expires,
        )
        return user.user_id

    def set_verification_code(self, user_id, *, code, expires):
        self._update(user_id, verification_code=code, verification_code_expires=expires)

    def mark_verified(self, user_id):
        self._update(user_id, verified=True, verification_code=None, verification_code_expires=None)

    def record_failed_login(self, user_id, *, attempts, locked):
        self._update(user_id, login_attempts=attempts, account_locked=locked)

    def record_login(self, user_id, *, at):
        self._update(user_id, login_attempts=0, last_login=at)

    def set_reset_token(self, user_id, *, token, expires):
        self._update(user_id, reset_password_token=token, reset_password_expires=expires)

    def update_password(self, user_id, *, password_hash):
        self._update(
            user_id,
            password_hash=password_hash,
            reset_password_token=None,
            reset_password_expires=None,
            login_attempts=0,
            account_locked=False,
        )

    def delete_by_id(self, user_id):
        return self.users.pop(int(user_id), None) is not None


class FakeProfileRepo:
    def __init__(self):
        self.profiles: Dict[int, StaffProfile] = {}

    def add(self, user_id: int, **kwargs) -> StaffProfile:
        kwargs.setdefault("name", f"Staff {user_id}")
        kwargs.setdefault("phone", "+15550000")
        kwargs.setdefault("department", Department.CLEANING_STAFF)
        kwargs.setdefault("job_title", JobTitle.CLASSROOM_CLEANER)
        kwargs.setdefault("shift", ShiftType.MORNING)
        kwargs.setdefault("emergency_contact", EmergencyContact("Kin", "Sibling", "+15550001"))
        profile = StaffProfile(user_id=user_id, **kwargs)
        self.profiles[user_id] = profile
        return profile

    def get_by_user(self, user_id):
        return self.profiles.get(int(user_id))

    def list_all(self):
        return list(self.profiles.values())

    def list_by_users(self, user_ids):
        return {int(i): self.profiles[int(i)] for i in user_ids if int(i) in self.profiles}

    def upsert(self, profile):
        self.profiles[profile.user_id] = profile

    def delete_by_user(self, user_id):
        return self.profiles.pop(int(user_id), None) is not None


class FakeAlertRepo:
    def __init__(self, clock=lambda: NOW):
        self.alerts: Dict[int, Alert] = {}
        self._next_id = 1
        self._clock = clock

    def get_by_id(self, alert_id):
        return self.alerts.get(int(alert_id))

    def create_many(self, alerts: List[NewAlert]):
        ids = []
        for new in alerts:
            alert = Alert(
                alert_id=self._next_id,
                type=new.type,
                user_id=new.user_id,
                title=new.title,
                message=new.message,
                expires_at=new.expires_at,
                priority=new.priority,
                action_required=new.action_required,
                action_url=new.action_url,
                related_id=new.related_id,
                related_model=new.related_model,
                created_at=self._clock(),
            )
            self.alerts[alert.alert_id] = alert
            ids.append(alert.alert_id)
            self._next_id += 1
        return ids

    def list_alerts(
        self, *, user_id=None, alert_type=None, priority=None, is_read=None, active_at=None, limit=50, offset=0
    ):
        found = [
            a
            for a in self.alerts.values()
            if (user_id is None or a.user_id == user_id)
            and (alert_type is None or a.type == alert_type)
            and (priority is None or a.priority == priority)
            and (is_read is None or a.is_read == is_read)
            and (active_at is None or a.expires_at > active_at)
        ]
        found.sort(key=lambda a: a.alert_id, reverse=True)
        return found[offset : offset + limit], len(found)

    def list_created_between(self, start, end):
        return [a for a in self.alerts.values() if start <= a.created_at <= end]

    def count_overview(self, now):
        values = list(self.alerts.values())
        return {
            "total": len(values),
            "unread": sum(1 for a in values if not a.is_read),
            "urgent": sum(1 for a in values if a.priority.value == "urgent"),
            "action_required": sum(1 for a in values if a.action_required),
            "expired": sum(1 for a in values if a.is_expired(now)),
        }

    def mark_read(self, alert_ids):
        count = 0
        for alert_id in alert_ids:
            if alert_id in self.alerts and not self.alerts[alert_id].is_read:
                self.alerts[alert_id] = replace(self.alerts[alert_id], is_read=True)
                count += 1
        return count

    def mark_all_read(self, user_id, *, now):
        ids = [a.alert_id for a in self.alerts.values() if a.user_id == user_id and a.expires_at > now]
        return self.mark_read(ids)

    def delete_many(self, alert_ids):
        return sum(1 for i in alert_ids if self.alerts.pop(int(i), None) is not None)

    def delete_expired(self, now):
        return self.delete_many([a.alert_id for a in list(self.alerts.values()) if a.is_expired(now)])


class FakeAttendanceRepo:
    def __init__(self):
        self.records: Dict[int, AttendanceRecord] = {}
        self._next_id = 1

    def add(self, user_id: int, work_date: date, status: AttendanceStatus, **kwargs) -> AttendanceRecord:
        record = AttendanceRecord(
            attendance_id=self._next_id, user_id=user_id, work_date=work_date, status=status, **kwargs
        )
        self.records[record.attendance_id] = record
        self._next_id += 1
        return record

    def get_by_id(self, attendance_id):
        return self.records.get(int(attendance_id))

    def get_for_user_and_date(self, user_id, work_date):
        return next((r for r in self.records.values() if r.user_id == user_id and r.work_date == work_date), None)

    def list_for_user(self, user_id, *, start=None, end=None, limit=None, offset=0):
        found = [
            r
            for r in self.records.values()
            if r.user_id == user_id
            and (start is None or r.work_date >= start)
            and (end is None or r.work_date <= end)
        ]
        found.sort(key=lambda r: r.work_date, reverse=True)
        page = found[offset:] if limit is None else found[offset : offset + limit]
        return page, len(found)

    def list_for_date(self, work_date):
        return [r for r in self.records.values() if r.work_date == work_date]

    def list_pending_leaves(self, *, from_date=None):
        return [
            r
            for r in self.records.values()
            if r.status == AttendanceStatus.LEAVE
            and r.is_approved is None
            and (from_date is None or r.work_date >= from_date)
        ]

    def save_check_in(self, *, user_id, work_date, status, check_in_time, location, ip_address, device_info, notes):
        existing = self.get_for_user_and_date(user_id, work_date)
        if existing:
            self.records[existing.attendance_id] = replace(
                existing,
                status=status,
                check_in_time=check_in_time,
                check_in_location=location,
                notes=notes,
                absent_reason=None,
            )
            return existing.attendance_id
        record = self.add(
            user_id,
            work_date,
            status,
            check_in_time=check_in_time,
            check_in_location=location,
            check_in_ip=ip_address,
            check_in_device=device_info,
            notes=notes,
        )
        return record.attendance_id

    def mark_absent(self, *, user_id, work_date, reason, notes, manual):
        existing = self.get_for_user_and_date(user_id, work_date)
        if existing:
            self.records[existing.attendance_id] = replace(
                existing,
                status=AttendanceStatus.ABSENT,
                absent_reason=reason,
                notes=notes,
                is_manual_entry=manual,
                check_in_time=None,
                check_out_time=None,
                working_minutes=0,
            )
            return existing.attendance_id
        return self.add(
            user_id, work_date, AttendanceStatus.ABSENT, absent_reason=reason, notes=notes, is_manual_entry=manual
        ).attendance_id

    def save_check_out(self, *, attendance_id, check_out_time, location, working_minutes, notes):
        self.records[attendance_id] = replace(
            self.records[attendance_id],
            check_out_time=check_out_time,
            check_out_location=location,
            working_minutes=working_minutes,
            notes=notes,
        )

    def create_leave(self, *, user_id, work_date, leave_type, reason, notes):
        return self.add(
            user_id, work_date, AttendanceStatus.LEAVE, leave_type=leave_type, leave_reason=reason, notes=notes
        ).attendance_id

    def approve_leave(self, attendance_id, *, approved_by, at, notes):
        self.records[attendance_id] = replace(
            self.records[attendance_id], is_approved=True, approved_by=approved_by, approval_date=at, approval_notes=notes
        )
        return True

    def delete(self, attendance_id):
        return self.records.pop(int(attendance_id), None) is not None


class FakeTaskRepo:
    def __init__(self):
        self.tasks: Dict[int, Task] = {}
        self._next_id = 1

    def add(self, title: str, assigned_to: int, task_date: date, category, **kwargs) -> Task:
        kwargs.setdefault("location", "Building A")
        kwargs.setdefault("created_at", NOW)
        task = Task(task_id=self._next_id, title=title, assigned_to=assigned_to, task_date=task_date, category=category, **kwargs)
        self.tasks[task.task_id] = task
        self._next_id += 1
        return task

    def get_by_id(self, task_id):
        return self.tasks.get(int(task_id))

    def create_task(self, task: NewTask):
        return self.add(
            task.title,
            task.assigned_to,
            task.task_date,
            task.category,
            location=task.location,
            description=task.description,
            assigned_by=task.assigned_by,
            priority=task.priority,
            estimated_duration=task.estimated_duration,
        ).task_id

    def update_fields(self, task_id, fields):
        self.tasks[int(task_id)] = replace(self.tasks[int(task_id)], **fields)

    def delete(self, task_id):
        return self.tasks.pop(int(task_id), None) is not None

    def _matches(self, t: Task, q: TaskQuery) -> bool:
        checks = [
            (q.assigned_to, t.assigned_to),
            (q.status, t.status),
            (q.task_date, t.task_date),
            (q.priority, t.priority),
            (q.category, t.category),
            (q.verifier_id, t.verifier_id),
            (q.verification_status, t.verification_status),
            (q.verification_result, t.verification_result),
            (q.is_reassigned, t.is_reassigned),
        ]
        if any(wanted is not None and wanted != actual for wanted, actual in checks):
            return False
        if q.statuses and t.status not in q.statuses:
            return False
        if q.date_from and t.task_date < q.date_from:
            return False
        if q.date_to and t.task_date > q.date_to:
            return False
        if q.created_since and (t.created_at is None or t.created_at < q.created_since):
            return False
        if q.search:
            needle = q.search.lower()
            if not any(needle in (v or "").lower() for v in (t.title, t.description, t.location)):
                return False
        return True

    def list_tasks(self, query, *, limit=None, offset=0):
        found = [t for t in self.tasks.values() if self._matches(t, query)]
        found.sort(key=lambda t: (-t.task_date.toordinal(), PRIORITY_ORDER[t.priority], t.task_id))
        page = found[offset:] if limit is None else found[offset : offset + limit]
        return page, len(found)

    def count_open_for_user(self, user_id, task_date):
        return sum(
            1
            for t in self.tasks.values()
            if t.assigned_to == user_id
            and t.task_date == task_date
            and t.status in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)
        )

    def distinct_categories(self):
        return sorted({t.category.value for t in self.tasks.values()})

    def reassign(self, task_id, *, from_user, to_user, reason, at, status=None):
        task = self.tasks[int(task_id)]
        self.tasks[task.task_id] = replace(
            task,
            original_assignee=task.original_assignee if task.is_reassigned else from_user,
            assigned_to=to_user,
            is_reassigned=True,
            reassignment_reason=reason,
            reassigned_at=at,
            status=status or task.status,
            reassignment_history=task.reassignment_history + (ReassignmentEntry(from_user, to_user, reason, at),),
        )

    def set_status_many(self, task_ids, *, status, completion_notes, completed_at):
        count = 0
        for task_id in task_ids:
            task = self.tasks.get(int(task_id))
            if task:
                self.tasks[task.task_id] = replace(
                    task,
                    status=status,
                    completed_at=completed_at,
                    completion_notes=completion_notes if completion_notes is not None else task.completion_notes,
                )
                count += 1
        return count


class FakeScheduleRepo:
    def __init__(self):
        self.schedules: Dict[int, Schedule] = {}
        self._next_id = 1

    def add(self, user_id: int, work_date: date, **kwargs) -> Schedule:
        kwargs.setdefault("shift", ShiftType.MORNING)
        kwargs.setdefault("start_time", "09:00")
        kwargs.setdefault("end_time", "17:00")
        kwargs.setdefault("department", Department.CLEANING_STAFF.value)
        schedule = Schedule(schedule_id=self._next_id, user_id=user_id, work_date=work_date, **kwargs)
        self.schedules[schedule.schedule_id] = schedule
        self._next_id += 1
        return schedule

    def get_by_id(self, schedule_id):
        return self.schedules.get(int(schedule_id))

    def get_for_user_and_date(self, *, user_id, work_date):
        return next(
            (s for s in self.schedules.values() if s.user_id == user_id and s.work_date == work_date), None
        )

    def list_for_user(self, user_id, *, start=None, end=None):
        found = [
            s
            for s in self.schedules.values()
            if s.user_id == user_id
            and (start is None or s.work_date >= start)
            and (end is None or s.work_date <= end)
        ]
        return sorted(found, key=lambda s: s.work_date)

    def list_for_date(self, work_date, *, status=None):
        return [
            s for s in self.schedules.values() if s.work_date == work_date and (status is None or s.status == status)
        ]

    def create_schedule(self, *, user_id, work_date, shift, start_time, end_time, department, assigned_by, notes=None):
        return self.add(
            user_id,
            work_date,
            shift=shift,
            start_time=start_time,
            end_time=end_time,
            department=department,
            assigned_by=assigned_by,
            notes=notes,
        ).schedule_id

    def exchange(self, first_id, second_id, *, swap_id):
        first, second = self.schedules[int(first_id)], self.schedules[int(second_id)]
        for row, other in ((first, second), (second, first)):
            self.schedules[row.schedule_id] = replace(
                row,
                work_date=other.work_date,
                shift=other.shift,
                start_time=other.start_time,
                end_time=other.end_time,
                department=other.department,
                status=ScheduleStatus.SWAPPED,
                swap_request_id=swap_id,
            )


class FakePerformanceRepo:
    def __init__(self):
        self.records: Dict[tuple, PerformanceRecord] = {}
        self._next_id = 1

    def get(self, user_id, month) -> Optional[PerformanceRecord]:
        return self.records.get((user_id, month))

    def list_for_month(self, month, *, statuses=None):
        found = [
            r for r in self.records.values() if r.month == month and (not statuses or r.status in statuses)
        ]
        return sorted(found, key=lambda r: r.overall_score)

    def list_for_user(self, user_id, months):
        return [r for (uid, month), r in self.records.items() if uid == user_id and month in months]

    def save(self, record: PerformanceRecord) -> PerformanceRecord:
        if record.record_id is None:
            existing = self.records.get((record.user_id, record.month))
            record = replace(record, record_id=existing.record_id if existing else self._next_id)
            if not existing:
                self._next_id += 1
        self.records[(record.user_id, record.month)] = record
        return record


class FakeSwapRepo:
    def __init__(self):
        self.swaps = {}
        self._next_id = 1

    def get_by_id(self, swap_id):
        return self.swaps.get(int(swap_id))

    def create_swap(
        self,
        *,
        requester_id,
        target_user_id,
        requester_schedule_id,
        target_schedule_id,
        reason,
        expires_at,
        admin_approval_required=True,
    ):
        swap = ShiftSwap(
            swap_id=self._next_id,
            requester_id=requester_id,
            target_user_id=target_user_id,
            requester_schedule_id=requester_schedule_id,
            target_schedule_id=target_schedule_id,
            reason=reason,
            expires_at=expires_at,
            admin_approval_required=admin_approval_required,
        )
        self.swaps[swap.swap_id] = swap
        self._next_id += 1
        return swap.swap_id

    def find_pending_for_schedules(self, schedule_ids):
        ids = set(schedule_ids)
        return [
            s
            for s in self.swaps.values()
            if s.status == SwapStatus.PENDING and {s.requester_schedule_id, s.target_schedule_id} & ids
        ]

    def list_for_user(self, user_id):
        return [s for s in self.swaps.values() if user_id in (s.requester_id, s.target_user_id)]

    def list_awaiting_admin(self):
        return [s for s in self.swaps.values() if s.awaiting_admin]

    def list_swaps(self, *, status=None, limit=20, offset=0):
        found = [s for s in self.swaps.values() if status is None or s.status == status]
        return found[offset : offset + limit], len(found)

    def update_status(self, swap_id, *, status, response_message=None, admin_approval_status=None):
        changes = {"status": status}
        if response_message is not None:
            changes["response_message"] = response_message
        if admin_approval_status is not None:
            changes["admin_approval_status"] = admin_approval_status
        self.swaps[swap_id] = replace(self.swaps[swap_id], **changes)

    def record_admin_decision(
        self, swap_id, *, approval_status, approved_by, at, notes, status, response_message=None
    ):
        changes = dict(
            admin_approval_status=approval_status,
            approved_by=approved_by,
            approval_date=at,
            approval_notes=notes,
            status=status,
        )
        if response_message is not None:
            changes["response_message"] = response_message
        self.swaps[swap_id] = replace(self.swaps[swap_id], **changes)


class FakeTeamRepo:
    def __init__(self):
        self.teams = {}
        self._next_id = 1

    def get_by_id(self, team_id):
        return self.teams.get(int(team_id))

    def code_exists(self, team_code):
        return any(t.team_code == team_code for t in self.teams.values())

    def list_teams(self, *, active=None):
        found = [t for t in self.teams.values() if active is None or t.is_active == active]
        return sorted(found, key=lambda t: t.team_id, reverse=True)

    def active_team_for_user(self, user_id):
        return next(
            (t for t in self.teams.values() if t.is_active and any(m.user_id == user_id for m in t.members)),
            None,
        )

    def users_in_active_teams(self, user_ids):
        return {m.user_id for t in self.teams.values() if t.is_active for m in t.members} & set(user_ids)

    def create_team(self, *, team_name, team_code, member_ids, created_by):
        team = SecretTeam(
            team_id=self._next_id,
            team_name=team_name,
            team_code=team_code,
            members=tuple(TeamMember(user_id=i, assigned_at=NOW) for i in member_ids),
            created_by=created_by,
            created_at=NOW,
        )
        self.teams[team.team_id] = team
        self._next_id += 1
        return team.team_id

    def set_active(self, team_id, *, is_active):
        if int(team_id) not in self.teams:
            return False
        self.teams[int(team_id)] = replace(self.teams[int(team_id)], is_active=is_active)
        return True


class FakeVerificationRepo:
    def __init__(self):
        self.items = {}
        self._next_id = 1

    def get_by_id(self, verification_id):
        return self.items.get(int(verification_id))

    def get_by_task(self, task_id):
        return next((v for v in self.items.values() if v.task_id == task_id), None)

    def create(self, new):
        item = VerificationTask(
            verification_id=self._next_id,
            task_id=new.task_id,
            original_staff_id=new.original_staff_id,
            assigned_verifier=new.assigned_verifier,
            assigned_team=new.assigned_team,
            location=new.location,
            assigned_at=new.assigned_at,
            deadline=new.deadline,
            priority=new.priority,
        )
        self.items[item.verification_id] = item
        self._next_id += 1
        return item.verification_id

    def team_counts(self, team_id):
        mine = [v for v in self.items.values() if v.assigned_team == team_id]
        open_ = [
            v for v in mine if v.status in (VerificationTaskStatus.PENDING, VerificationTaskStatus.IN_PROGRESS)
        ]
        return len(mine), len(open_)

    def list_for_verifier(self, verifier_id, *, status=None):
        found = [
            v
            for v in self.items.values()
            if v.assigned_verifier == verifier_id and (status is None or v.status == status)
        ]
        return sorted(found, key=lambda v: v.assigned_at, reverse=True)

    def list_assigned_since(self, since):
        return [v for v in self.items.values() if v.assigned_at >= since]

    def list_overdue(self, now):
        found = [v for v in self.items.values() if v.is_overdue(now)]
        return sorted(found, key=lambda v: v.deadline)

    def record_report(self, verification_id, report, *, verified_at):
        self.items[verification_id] = replace(
            self.items[verification_id],
            status=VerificationTaskStatus.COMPLETED,
            cleanliness=report.cleanliness,
            completeness=report.completeness,
            quality=report.quality,
            overall_score=report.overall_score,
            result=report.result,
            comments=report.comments,
            issues=report.issues,
            verified_at=verified_at,
        )


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def users_repo():
    return FakeUserRepo()


@pytest.fixture
def profiles_repo():
    return FakeProfileRepo()


@pytest.fixture
def alerts_repo():
    return FakeAlertRepo()


@pytest.fixture
def attendance_repo():
    return FakeAttendanceRepo()


@pytest.fixture
def tasks_repo():
    return FakeTaskRepo()


@pytest.fixture
def schedules_repo():
    return FakeScheduleRepo()


@pytest.fixture
def performance_repo():
    return FakePerformanceRepo()


@pytest.fixture
def mailer():
    return LoggingMailer()


@pytest.fixture
def staff(users_repo):
    """One verified staff account plus an unrelated second one."""
    return users_repo.add("alice", role=Role.USER), users_repo.add("bob", role=Role.USER)


@pytest.fixture
def swaps_repo():
    return FakeSwapRepo()


@pytest.fixture
def teams_repo():
    return FakeTeamRepo()


@pytest.fixture
def verifications_repo():
    return FakeVerificationRepo()
