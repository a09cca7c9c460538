from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional, Set

from ..common.datetime_utils import now_local
from ..core.enums import ReassignmentReason, TaskStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..users.model import StaffProfile, User
from ..users.repository import ProfileRepository, UserRepository
from .model import Task, TaskQuery
from .repository import TaskRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    user: User
    profile: StaffProfile
    open_tasks: int


@dataclass(frozen=True)
class ReassignmentOutcome:
    success: bool
    message: str
    task: Optional[Task] = None
    from_user: Optional[int] = None
    to_user: Optional[int] = None
    reason: Optional[ReassignmentReason] = None
    new_user_workload: Optional[int] = None


class TaskReassigner:
    """Moves pending work away from staff who are not present.

    Candidates carry the task category in their job title or department, are
    active, are present on the task date and are ordered by that day's open
    task count.
    """

    def __init__(
        self,
        tasks: TaskRepository,
        users: UserRepository,
        profiles: ProfileRepository,
        *,
        absent_on: Callable[[date], Set[int]],
        clock: Callable[[], datetime] = now_local,
    ):
        self._tasks = tasks
        self._users = users
        self._profiles = profiles
        self._absent_on = absent_on
        self._clock = clock

    def is_present(self, user_id: int, task_date: date) -> bool:
        return user_id not in self._absent_on(task_date)

    def candidates(self, category: str, task_date: date, *, exclude_user_id: Optional[int] = None) -> List[Candidate]:
        pattern = re.compile(re.escape(category), re.IGNORECASE)
        profiles = [
            p
            for p in self._profiles.list_all()
            if p.is_active and (pattern.search(p.job_title.value) or pattern.search(p.department.value))
        ]
        users = self._users.list_by_ids([p.user_id for p in profiles])
        absent = self._absent_on(task_date)

        found = []
        for profile in profiles:
            user = users.get(profile.user_id)
            if not user or not user.is_active or user.user_id == exclude_user_id or user.user_id in absent:
                continue
            found.append(Candidate(user, profile, self._tasks.count_open_for_user(user.user_id, task_date)))
        found.sort(key=lambda c: c.open_tasks)
        return found

    def auto_reassign(self, task_id: int, reason: ReassignmentReason = ReassignmentReason.USER_ABSENT) -> ReassignmentOutcome:
        task = self._tasks.get_by_id(task_id)
        if not task:
            raise NotFoundError("Task not found")
        if task.status != TaskStatus.PENDING:
            raise ValidationError("Can only reassign pending tasks")

        options = self.candidates(task.category.value, task.task_date, exclude_user_id=task.assigned_to)
        if not options:
            return ReassignmentOutcome(False, "No available users found for reassignment", task=task)

        chosen = options[0]
        self._tasks.reassign(
            task.task_id,
            from_user=task.assigned_to,
            to_user=chosen.user.user_id,
            reason=reason,
            at=self._clock(),
            status=TaskStatus.REASSIGNED,
        )
        previous = self._users.get_by_id(task.assigned_to)
        logger.info(
            "Task id=%s reassigned from user id=%s to user id=%s (%s)",
            task.task_id,
            task.assigned_to,
            chosen.user.user_id,
            reason.value,
        )
        return ReassignmentOutcome(
            True,
            f"Task reassigned from {previous.username if previous else task.assigned_to} to {chosen.user.username}",
            task=self._tasks.get_by_id(task.task_id),
            from_user=task.assigned_to,
            to_user=chosen.user.user_id,
            reason=reason,
            new_user_workload=chosen.open_tasks + 1,
        )

    def check_date(self, task_date: date) -> List[ReassignmentOutcome]:
        pending, _ = self._tasks.list_tasks(
            TaskQuery(task_date=task_date, status=TaskStatus.PENDING, is_reassigned=False)
        )
        absent = self._absent_on(task_date)
        results = []
        for task in pending:
            if task.assigned_to not in absent:
                continue
            logger.info("User id=%s absent for task id=%s on %s", task.assigned_to, task.task_id, task_date)
            try:
                results.append(self.auto_reassign(task.task_id))
            except (NotFoundError, ValidationError) as exc:
                results.append(
                    ReassignmentOutcome(False, f"Failed to reassign task {task.title}: {exc.message}", task=task)
                )
        return results

    def manual_reassign(
        self,
        task_id: int,
        new_user_id: int,
        reason: ReassignmentReason = ReassignmentReason.MANUAL_OVERRIDE,
    ) -> ReassignmentOutcome:
        task = self._tasks.get_by_id(task_id)
        new_user = self._users.get_by_id(new_user_id)
        if not task or not new_user:
            raise NotFoundError("Task or user not found")
        if task.assigned_to == new_user_id:
            raise ValidationError("Task is already assigned to this user")

        self._tasks.reassign(
            task.task_id, from_user=task.assigned_to, to_user=new_user_id, reason=reason, at=self._clock()
        )
        previous = self._users.get_by_id(task.assigned_to)
        return ReassignmentOutcome(
            True,
            f"Task manually reassigned from {previous.username if previous else task.assigned_to} "
            f"to {new_user.username}",
            task=self._tasks.get_by_id(task.task_id),
            from_user=task.assigned_to,
            to_user=new_user_id,
            reason=reason,
        )

    def stats(self, task_date: Optional[date] = None) -> dict:
        tasks, _ = self._tasks.list_tasks(TaskQuery(is_reassigned=True, task_date=task_date))
        return {
            "total": len(tasks),
            "by_reason": dict(
                Counter(t.reassignment_reason.value if t.reassignment_reason else "unknown" for t in tasks)
            ),
            "by_category": dict(Counter(t.category.value for t in tasks)),
            "by_date": dict(Counter(t.task_date.isoformat() for t in tasks)),
        }
