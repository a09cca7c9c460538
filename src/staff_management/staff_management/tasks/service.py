from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, time, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..alerts.service import AlertService
from ..common.datetime_utils import month_bounds, now_local, parse_iso_date, period_start, resolve_month
from ..common.pagination import Page
from ..common.validators import (
    optional_enum,
    parse_bool,
    require_enum,
    require_id,
    require_int_range,
    require_max_length,
    require_non_empty,
)
from ..core.constants import DEFAULT_TASK_DURATION_MINUTES, DEFAULT_UPCOMING_DAYS
from ..core.enums import (
    AlertPriority,
    AlertType,
    ReassignmentReason,
    TaskCategory,
    TaskPriority,
    TaskStatus,
    TaskVerificationStatus,
    VerificationResult,
)
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import ProfileRepository, UserRepository
from . import analytics
from .model import NewTask, Task, TaskQuery
from .reassignment import ReassignmentOutcome, TaskReassigner
from .repository import TaskRepository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "assigned_to", "date", "category", "location")
SETTABLE_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, TaskStatus.CANCELLED)
PERIOD_DAYS = {"week": 7, "month": 30, "quarter": 90, "year": 365}


def _settable_status(value: Any) -> TaskStatus:
    if not value:
        raise ValidationError("Status is required")
    status = optional_enum(TaskStatus, value, "status")
    if status not in SETTABLE_STATUSES:
        raise ValidationError("Invalid status. Must be one of: " + ", ".join(s.value for s in SETTABLE_STATUSES))
    return status


def _duration(value: Any) -> int:
    if value in (None, ""):
        return DEFAULT_TASK_DURATION_MINUTES
    return require_int_range(value, "Estimated duration", 1, 24 * 60)


def task_view(task: Task, users: Optional[Mapping[int, User]] = None) -> dict:
    """Task fields plus derived verification state and, when known, people."""
    view = asdict(task)
    view["final_verification_status"] = task.final_verification_status
    view["needs_verification"] = task.needs_verification
    view["is_verification_complete"] = task.verification_complete
    view["is_verification_pending"] = task.verification_pending
    if users is not None:
        for key in ("assigned_to", "assigned_by", "verifier_id", "original_assignee"):
            user = users.get(view[key]) if view[key] is not None else None
            view[f"{key}_user"] = {"id": user.user_id, "username": user.username, "email": user.email} if user else None
    return view


def reassignment_view(outcome: ReassignmentOutcome) -> dict:
    return {
        "success": outcome.success,
        "message": outcome.message,
        "task": task_view(outcome.task) if outcome.task else None,
        "reassignment_details": {
            "from": outcome.from_user,
            "to": outcome.to_user,
            "reason": outcome.reason,
            "new_user_workload": outcome.new_user_workload,
        }
        if outcome.success
        else None,
    }


class TaskService:
    def __init__(
        self,
        tasks: TaskRepository,
        users: UserRepository,
        profiles: ProfileRepository,
        alerts: AlertService,
        reassigner: TaskReassigner,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._tasks = tasks
        self._users = users
        self._profiles = profiles
        self._alerts = alerts
        self._reassigner = reassigner
        self._clock = clock

    # helpers

    def _require_task(self, task_id: int) -> Task:
        task = self._tasks.get_by_id(task_id)
        if not task:
            raise NotFoundError("Task not found")
        return task

    def _people(self, tasks: Sequence[Task]) -> Dict[int, User]:
        ids = set()
        for t in tasks:
            ids.update(i for i in (t.assigned_to, t.assigned_by, t.verifier_id, t.original_assignee) if i)
        return self._users.list_by_ids(sorted(ids))

    def _views(self, tasks: Sequence[Task]) -> List[dict]:
        people = self._people(tasks)
        return [task_view(t, people) for t in tasks]

    def _parse_new(self, payload: dict, *, assigned_by: Optional[int]) -> NewTask:
        if not all(payload.get(k) for k in REQUIRED_FIELDS):
            raise ValidationError("Required fields: title, assigned_to, date, category, location")
        assigned_to = require_id(payload.get("assigned_to"), "assigned_to")
        if not self._users.get_by_id(assigned_to):
            raise NotFoundError("Assigned user not found")
        return NewTask(
            title=require_max_length(require_non_empty(payload.get("title"), "Title"), "Title", 100),
            assigned_to=assigned_to,
            task_date=parse_iso_date(payload["date"]),
            category=require_enum(TaskCategory, payload.get("category"), "category"),
            location=require_max_length(require_non_empty(payload.get("location"), "Location"), "Location", 200),
            description=require_max_length(payload.get("description"), "Description", 500),
            assigned_by=assigned_by,
            priority=optional_enum(TaskPriority, payload.get("priority"), "priority") or TaskPriority.MEDIUM,
            estimated_duration=_duration(payload.get("estimated_duration")),
        )

    def _notify_assignee(self, task: Task) -> None:
        self._alerts.create_system_alert(
            AlertType.TASK_ASSIGNED,
            task.assigned_to,
            "New Task Assigned",
            f'You have been assigned a new task: "{task.title}". Due date: {task.task_date.isoformat()}',
            priority=AlertPriority.HIGH,
            action_required=True,
            related_id=task.task_id,
            related_model="Task",
            expires_in_days=3,
        )

    # create / update / delete

    def create(self, payload: dict, *, assigned_by: Optional[int], auto_reassign: bool = True) -> dict:
        new = self._parse_new(payload, assigned_by=assigned_by)
        task_id = self._tasks.create_task(new)

        outcome = None
        if auto_reassign and not self._reassigner.is_present(new.assigned_to, new.task_date):
            logger.info("Assignee id=%s absent on %s, attempting reassignment", new.assigned_to, new.task_date)
            outcome = self._reassigner.auto_reassign(task_id)

        task = self._require_task(task_id)
        self._notify_assignee(task)
        result = {"message": "Task created successfully", "task": self._views([task])[0]}
        if outcome and outcome.success:
            result["message"] = "Task created and automatically reassigned due to user absence"
            result["reassignment_details"] = reassignment_view(outcome)["reassignment_details"]
        return result

    def bulk_create(self, items: Any, *, assigned_by: Optional[int]) -> dict:
        if not isinstance(items, list) or not items:
            raise ValidationError("Tasks array is required")
        created, errors = [], []
        for index, payload in enumerate(items):
            if not isinstance(payload, dict):
                errors.append({"index": index, "message": "Task entry must be an object"})
                continue
            try:
                task_id = self._tasks.create_task(self._parse_new(payload, assigned_by=assigned_by))
            except (ValidationError, NotFoundError) as exc:
                errors.append({"index": index, "message": exc.message})
                continue
            task = self._require_task(task_id)
            self._notify_assignee(task)
            created.append(task)
        return {
            "message": f"{len(created)} tasks created successfully",
            "created_tasks": self._views(created),
            "errors": errors or None,
            "summary": {"total": len(items), "created": len(created), "failed": len(errors)},
        }

    def update(self, task_id: int, payload: dict) -> dict:
        task = self._require_task(task_id)
        fields: Dict[str, Any] = {}
        if "title" in payload:
            fields["title"] = require_max_length(require_non_empty(payload["title"], "Title"), "Title", 100)
        if "description" in payload:
            fields["description"] = require_max_length(payload["description"], "Description", 500)
        if payload.get("assigned_to"):
            assigned_to = require_id(payload["assigned_to"], "assigned_to")
            if not self._users.get_by_id(assigned_to):
                raise NotFoundError("Assigned user not found")
            fields["assigned_to"] = assigned_to
        if payload.get("date"):
            fields["task_date"] = parse_iso_date(payload["date"])
        if payload.get("priority"):
            fields["priority"] = require_enum(TaskPriority, payload["priority"], "priority")
        if payload.get("category"):
            fields["category"] = require_enum(TaskCategory, payload["category"], "category")
        if "location" in payload:
            fields["location"] = require_non_empty(payload["location"], "Location")
        if "estimated_duration" in payload:
            fields["estimated_duration"] = _duration(payload["estimated_duration"])
        if payload.get("status"):
            status = require_enum(TaskStatus, payload["status"], "status")
            fields.update(self._status_fields(task, status))
        if "completion_notes" in payload:
            fields["completion_notes"] = require_max_length(payload["completion_notes"], "Completion notes", 500)
        self._tasks.update_fields(task_id, fields)
        return self._views([self._require_task(task_id)])[0]

    def delete(self, task_id: int) -> dict:
        task = self._require_task(task_id)
        self._tasks.delete(task_id)
        return {
            "id": task.task_id,
            "title": task.title,
            "category": task.category,
            "assigned_to": task.assigned_to,
            "was_reassigned": task.is_reassigned,
        }

    # status, rating

    def _status_fields(self, task: Task, status: TaskStatus) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"status": status}
        if status == TaskStatus.COMPLETED and task.completed_at is None:
            fields["completed_at"] = self._clock()
        elif status != TaskStatus.COMPLETED and task.completed_at is not None:
            fields["completed_at"] = None
        return fields

    def update_status(
        self,
        task_id: int,
        *,
        user_id: Optional[int],
        is_admin: bool,
        status: Any,
        completion_notes: Optional[str] = None,
    ) -> dict:
        new_status = _settable_status(status)
        task = self._require_task(task_id)
        if task.assigned_to != user_id and not is_admin:
            raise AuthorizationError("You can only update tasks assigned to you")
        fields = self._status_fields(task, new_status)
        if completion_notes:
            fields["completion_notes"] = require_max_length(completion_notes, "Completion notes", 500)
        self._tasks.update_fields(task_id, fields)
        updated = self._require_task(task_id)
        return {"task": self._views([updated])[0], "verification_summary": updated.verification_summary()}

    def bulk_update_status(self, task_ids: Any, status: Any, completion_notes: Optional[str] = None) -> dict:
        if not isinstance(task_ids, list) or not task_ids:
            raise ValidationError("Task IDs array is required")
        new_status = _settable_status(status)
        ids = [require_id(t, "task id") for t in task_ids]
        modified = self._tasks.set_status_many(
            ids,
            status=new_status,
            completion_notes=completion_notes or None,
            completed_at=self._clock() if new_status == TaskStatus.COMPLETED else None,
        )
        tasks = [t for t in (self._tasks.get_by_id(i) for i in ids) if t]
        return {
            "message": f"{modified} tasks updated to {new_status.value}",
            "modified_count": modified,
            "tasks": self._views(tasks),
        }

    def rate(self, task_id: int, *, rating: Any, feedback: Optional[str], rated_by: int) -> dict:
        if not rating:
            raise ValidationError("Rating must be between 1 and 5")
        score = require_int_range(rating, "Rating", 1, 5)
        task = self._require_task(task_id)
        if task.status != TaskStatus.COMPLETED:
            raise ValidationError("Can only rate completed tasks")
        fields: Dict[str, Any] = {"rating": score, "rated_by": rated_by, "rated_at": self._clock()}
        if feedback:
            fields["feedback"] = require_max_length(feedback, "Feedback", 300)
        self._tasks.update_fields(task_id, fields)
        return self._views([self._require_task(task_id)])[0]

    # verification

    def assign_verifier(self, task_id: int, verifier_id: Any) -> dict:
        if not verifier_id:
            raise ValidationError("Verifier ID is required")
        verifier_id = require_id(verifier_id, "verifier_id")
        task = self._require_task(task_id)
        if task.status != TaskStatus.COMPLETED:
            raise ValidationError("Task must be completed before verification")
        if not self._users.get_by_id(verifier_id):
            raise NotFoundError("Verifier not found")
        if task.verifier_id is not None:
            raise ValidationError("Verification already assigned to this task")
        now = self._clock()
        self._tasks.update_fields(
            task_id,
            {
                "verification_status": TaskVerificationStatus.PENDING_VERIFICATION,
                "verifier_id": verifier_id,
                "verification_assigned_at": now,
            },
        )
        return {
            "id": task.task_id,
            "title": task.title,
            "verifier_id": verifier_id,
            "verification_status": TaskVerificationStatus.PENDING_VERIFICATION,
            "verification_assigned_at": now,
        }

    def needs_verification(self) -> List[dict]:
        completed, _ = self._tasks.list_tasks(
            TaskQuery(status=TaskStatus.COMPLETED, verification_status=TaskVerificationStatus.NONE)
        )
        pending = sorted(
            (t for t in completed if t.needs_verification),
            key=lambda t: t.completed_at or datetime.min,
            reverse=True,
        )
        people = self._people(pending)
        out = []
        for t in pending:
            user = people.get(t.assigned_to)
            out.append(
                {
                    "id": t.task_id,
                    "title": t.title,
                    "category": t.category,
                    "location": t.location,
                    "priority": t.priority,
                    "completed_at": t.completed_at,
                    "assigned_to": {"id": t.assigned_to, "username": user.username if user else None},
                    "needs_verification": True,
                }
            )
        return out

    def my_verification_tasks(self, user_id: int, *, status: Any = None) -> dict:
        tasks, _ = self._tasks.list_tasks(
            TaskQuery(
                verifier_id=user_id,
                verification_status=optional_enum(TaskVerificationStatus, status, "verification status"),
            )
        )
        tasks = sorted(tasks, key=lambda t: t.verification_assigned_at or datetime.min, reverse=True)
        now = self._clock()
        people = self._people(tasks)
        items = []
        for t in tasks:
            view = task_view(t, people)
            view["is_overdue"] = t.verification_overdue(now)
            items.append(view)
        return {
            "tasks": items,
            "total": len(items),
            "summary": {
                "pending": sum(1 for t in tasks if t.verification_status == TaskVerificationStatus.PENDING_VERIFICATION),
                "completed": sum(1 for t in tasks if t.verification_complete),
                "overdue": sum(1 for i in items if i["is_overdue"]),
            },
        }

    def submit_verification(
        self, task_id: int, *, user_id: int, score: Any, result: Any, notes: Optional[str] = None
    ) -> dict:
        if not score or not result:
            raise ValidationError("Score and result are required")
        value = require_int_range(score, "Score", 1, 5)
        if result not in [r.value for r in VerificationResult]:
            raise ValidationError("Result must be 'pass', 'fail', or 'recheck'")
        verdict = VerificationResult(result)
        task = self._require_task(task_id)
        if task.verifier_id != user_id:
            raise AuthorizationError("You are not assigned to verify this task")
        if task.verification_complete:
            raise ValidationError("Verification already completed for this task")
        self._tasks.update_fields(
            task_id,
            {
                "verification_status": TaskVerificationStatus.COMPLETED,
                "verification_score": value,
                "verification_result": verdict,
                "verification_notes": require_max_length(notes, "Notes", 500),
                "verified_at": self._clock(),
            },
        )
        updated = self._require_task(task_id)
        return {
            "task_id": updated.task_id,
            "task_title": updated.title,
            "score": updated.verification_score,
            "result": updated.verification_result,
            "notes": updated.verification_notes,
            "final_status": updated.final_verification_status,
        }

    def verification_status(self, task_id: int, *, user_id: Optional[int], is_admin: bool) -> dict:
        task = self._require_task(task_id)
        if not (is_admin or task.assigned_to == user_id or task.verifier_id == user_id):
            raise AuthorizationError("Access denied")
        return {
            "task": self._views([task])[0],
            "verification_summary": task.verification_summary(),
            "needs_verification": task.needs_verification,
            "is_verification_complete": task.verification_complete,
            "is_verification_pending": task.verification_pending,
        }

    # reassignment

    def check_reassignments(self, day: Optional[str]) -> dict:
        if not day:
            raise ValidationError("Date is required (YYYY-MM-DD format)")
        task_date = parse_iso_date(day)
        outcomes = self._reassigner.check_date(task_date)
        ok_count = sum(1 for o in outcomes if o.success)
        return {
            "message": f"Auto-reassignment check completed for {task_date.isoformat()}",
            "summary": {
                "total": len(outcomes),
                "successful": ok_count,
                "failed": len(outcomes) - ok_count,
                "date": task_date,
            },
            "results": [reassignment_view(o) for o in outcomes],
        }

    def manual_reassign(self, task_id: int, new_user_id: Any, reason: Any = None) -> dict:
        if not new_user_id:
            raise ValidationError("New user ID is required")
        why = optional_enum(ReassignmentReason, reason, "reason") or ReassignmentReason.MANUAL_OVERRIDE
        outcome = self._reassigner.manual_reassign(task_id, require_id(new_user_id, "new_user_id"), why)
        return reassignment_view(outcome)

    def reassignment_stats(self, day: Optional[str] = None) -> dict:
        return self._reassigner.stats(parse_iso_date(day) if day else None)

    # read views

    def my_tasks(self, user_id: int, args: Mapping[str, Any]) -> dict:
        query = TaskQuery(
            assigned_to=user_id,
            status=optional_enum(TaskStatus, args.get("status"), "status"),
            task_date=parse_iso_date(args["date"]) if args.get("date") else None,
            priority=optional_enum(TaskPriority, args.get("priority"), "priority"),
            category=optional_enum(TaskCategory, args.get("category"), "category"),
        )
        result: Dict[str, Any] = {}
        if args.get("page") or args.get("limit"):
            paging = Page.from_args(args.get("page"), args.get("limit"))
            tasks, total = self._tasks.list_tasks(query, limit=paging.limit, offset=paging.offset)
            result["pagination"] = paging.describe(total)
        else:
            tasks, total = self._tasks.list_tasks(query)
        result.update({"tasks": self._views(tasks), "total": total})
        if parse_bool(args.get("include_verification")):
            counts = analytics.verification_counts(tasks)
            result["verification_stats"] = {
                "needs_verification": counts["needs_verification"],
                "verification_complete": counts["verification_complete"],
                "verification_pending": counts["pending_verification"],
            }
        return result

    def today(self, user_id: int) -> dict:
        today = self._clock().date()
        tasks, _ = self._tasks.list_tasks(TaskQuery(assigned_to=user_id, task_date=today))
        people = self._people(tasks)
        grouped = analytics.group_by_status(tasks)
        counts = analytics.status_counts(tasks)
        return {
            "date": today,
            "tasks": [task_view(t, people) for t in tasks],
            "tasks_by_status": {k: [task_view(t, people) for t in v] for k, v in grouped.items()},
            "verification_stats": analytics.verification_counts(tasks),
            "stats": {
                "total": counts["total"],
                "completed": counts["completed"],
                "pending": counts["pending"] + counts["in_progress"],
                "reassigned": counts["reassigned"],
                "completion_rate": counts["completion_rate"],
            },
        }

    def upcoming(self, user_id: int, days: Any = None) -> dict:
        span = require_int_range(days or DEFAULT_UPCOMING_DAYS, "days", 1, 365)
        today = self._clock().date()
        until = today + timedelta(days=span)
        tasks, _ = self._tasks.list_tasks(
            TaskQuery(
                assigned_to=user_id,
                date_from=today + timedelta(days=1),
                date_to=until,
                statuses=(TaskStatus.PENDING, TaskStatus.IN_PROGRESS),
            )
        )
        tasks = sorted(tasks, key=lambda t: t.task_date)
        views = self._views(tasks)
        by_date: Dict[str, List[dict]] = {}
        for task, view in zip(tasks, views):
            by_date.setdefault(task.task_date.isoformat(), []).append(view)
        return {
            "tasks": views,
            "tasks_by_date": by_date,
            "period": {"from": today, "to": until, "days": span},
            "total": len(tasks),
        }

    def _since(self, period: str) -> Optional[datetime]:
        if period not in PERIOD_DAYS:
            return None
        return period_start(period, self._clock())

    def stats(self, user_id: int, period: str = "month") -> dict:
        since = self._since(period)
        tasks, _ = self._tasks.list_tasks(
            TaskQuery(assigned_to=user_id, date_from=since.date() if since else None)
        )
        scores = analytics.ratings(tasks)
        stats = analytics.status_counts(tasks)
        stats["average_rating"] = analytics.mean1(scores)
        return {
            "period": period,
            "stats": stats,
            "priority_stats": analytics.priority_counts(tasks),
            "category_stats": {k: v["total"] for k, v in analytics.category_breakdown(tasks).items()},
            "total_rated": len(scores),
        }

    def categories(self) -> List[str]:
        return sorted({c.value for c in TaskCategory} | set(self._tasks.distinct_categories()))

    def get_task(self, task_id: int, *, user_id: Optional[int], is_admin: bool) -> dict:
        task = self._require_task(task_id)
        if not is_admin and task.assigned_to != user_id:
            raise AuthorizationError("You can only view tasks assigned to you")
        return self._views([task])[0]

    # admin views

    def admin_all(self, args: Mapping[str, Any]) -> dict:
        paging = Page.from_args(args.get("page"), args.get("limit"))
        query = TaskQuery(
            assigned_to=require_id(args["assigned_to"], "assigned_to") if args.get("assigned_to") else None,
            status=optional_enum(TaskStatus, args.get("status"), "status"),
            task_date=parse_iso_date(args["date"]) if args.get("date") else None,
            priority=optional_enum(TaskPriority, args.get("priority"), "priority"),
            category=optional_enum(TaskCategory, args.get("category"), "category"),
            verification_status=optional_enum(
                TaskVerificationStatus, args.get("verification_status"), "verification status"
            ),
            verification_result=optional_enum(
                VerificationResult, args.get("verification_result"), "verification result"
            ),
            is_reassigned=parse_bool(args.get("show_reassigned")),
            search=args.get("search") or None,
        )
        tasks, total = self._tasks.list_tasks(query, limit=paging.limit, offset=paging.offset)
        everything, _ = self._tasks.list_tasks(query)
        return {
            "tasks": self._views(tasks),
            "summary": analytics.status_counts(everything),
            "pagination": paging.describe(total),
            "total_tasks": total,
        }

    def admin_today_summary(self) -> dict:
        now = self._clock()
        tasks, _ = self._tasks.list_tasks(TaskQuery(task_date=now.date()))
        people = self._people(tasks)
        summary = analytics.status_counts(tasks)
        summary["high_priority"] = sum(1 for t in tasks if analytics.is_high_priority(t))
        summary["overdue"] = sum(1 for t in tasks if t.is_overdue(now))
        by_user = analytics.board_counts(tasks, key=lambda t: t.assigned_to)
        for user_id, entry in by_user.items():
            user = people.get(user_id)
            entry["username"] = user.username if user else None
        return {
            "date": now.date(),
            "summary": summary,
            "tasks_by_category": analytics.board_counts(tasks, key=lambda t: t.category.value),
            "tasks_by_user": {str(k): v for k, v in by_user.items()},
            "recent_tasks": [task_view(t, people) for t in tasks[:10]],
        }

    def admin_analytics(self, args: Mapping[str, Any]) -> dict:
        period = args.get("period") or "month"
        start, end = args.get("start_date"), args.get("end_date")
        if start and end:
            query = TaskQuery(date_from=parse_iso_date(start), date_to=parse_iso_date(end))
        else:
            since = self._since(period)
            query = TaskQuery(date_from=since.date() if since else None)
        tasks, _ = self._tasks.list_tasks(query)

        completed = [t for t in tasks if t.status == TaskStatus.COMPLETED]
        scores = analytics.ratings(tasks)
        users = self._users.list_by_ids(sorted({t.assigned_to for t in tasks}))
        profiles = self._profiles.list_by_users(sorted(users))
        departments = {uid: p.department.value for uid, p in profiles.items()}
        return {
            "period": period,
            "analytics": {
                "overview": {
                    "total_tasks": len(tasks),
                    "completed_tasks": len(completed),
                    "completion_rate": analytics.rate(len(completed), len(tasks)),
                    "average_rating": analytics.mean1(scores),
                    "total_rated": len(scores),
                },
                "category_stats": analytics.category_breakdown(tasks),
                "top_performers": analytics.top_performers(tasks, users, departments),
                "completion_trend": analytics.completion_trend(tasks, self._clock().date()),
            },
        }

    def admin_dashboard(self, period: str = "today") -> dict:
        now = self._clock()
        if period == "week":
            since = now - timedelta(days=7)
        elif period == "month":
            since = now - timedelta(days=30)
        else:
            period = "today"
            since = datetime.combine(now.date(), time.min)
        tasks, _ = self._tasks.list_tasks(TaskQuery(created_since=since))
        tasks = sorted(tasks, key=lambda t: t.created_at or datetime.min, reverse=True)

        task_stats = analytics.status_counts(tasks)
        task_stats["auto_reassigned"] = sum(1 for t in tasks if t.is_reassigned)
        task_stats["high_priority"] = sum(1 for t in tasks if analytics.is_high_priority(t))
        task_stats["overdue"] = sum(1 for t in tasks if t.is_overdue(now))

        verification = analytics.verification_counts(tasks)
        verification["average_score"] = analytics.mean1(
            [t.verification_score for t in tasks if t.verification_score]
        )

        by_category: dict = {}
        for category in sorted({t.category.value for t in tasks}):
            subset = [t for t in tasks if t.category.value == category]
            verified = [t for t in subset if t.verification_complete]
            by_category[category] = {
                "total": len(subset),
                "completed": sum(1 for t in subset if t.status == TaskStatus.COMPLETED),
                "verified": len(verified),
                "avg_score": analytics.mean1([t.verification_score for t in verified if t.verification_score]),
            }

        people = self._people(tasks[:15])
        recent = []
        for t in tasks[:15]:
            user = people.get(t.assigned_to)
            recent.append(
                {
                    "id": t.task_id,
                    "title": t.title,
                    "category": t.category,
                    "status": t.status,
                    "priority": t.priority,
                    "assigned_to": user.username if user else "Unknown",
                    "verification_status": t.verification_status,
                    "verification_result": t.verification_result,
                    "verification_score": t.verification_score,
                    "final_verification_status": t.final_verification_status,
                    "needs_verification": t.needs_verification,
                    "is_verification_complete": t.verification_complete,
                    "date": t.task_date,
                    "completed_at": t.completed_at,
                }
            )
        return {
            "period": period,
            "task_stats": task_stats,
            "verification_stats": verification,
            "tasks_by_category": by_category,
            "recent_tasks": recent,
            "summary": {
                "completion_rate": analytics.rate(task_stats["completed"], task_stats["total"]),
                "verification_rate": analytics.rate(verification["verification_complete"], task_stats["completed"]),
                "approval_rate": analytics.rate(
                    verification["verification_approved"], verification["verification_complete"]
                ),
                "reassignment_rate": analytics.rate(task_stats["auto_reassigned"], task_stats["total"]),
            },
        }

    def user_performance(self, user_id: int, args: Mapping[str, Any]) -> dict:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        month, year = args.get("month"), args.get("year")
        period = args.get("period") or "month"
        if month and year:
            start, end = month_bounds(resolve_month(month, year))
            query = TaskQuery(assigned_to=user_id, date_from=start, date_to=end)
        else:
            days = PERIOD_DAYS.get(period, 30)
            query = TaskQuery(assigned_to=user_id, date_from=self._clock().date() - timedelta(days=days))
        tasks, _ = self._tasks.list_tasks(query)

        scores = analytics.ratings(tasks)
        performance = analytics.status_counts(tasks)
        performance["average_rating"] = analytics.mean1(scores)
        profile = self._profiles.get_by_user(user_id)
        return {
            "user": {
                "id": user.user_id,
                "username": user.username,
                "email": user.email,
                "department": profile.department if profile else None,
            },
            "period": {"type": period, "month": month or None, "year": year or None},
            "performance": performance,
            "category_performance": analytics.category_breakdown(tasks),
            "recent_tasks": self._views(tasks[:10]),
            "total_rated": len(scores),
        }
