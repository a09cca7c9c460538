"""Aggregations over task lists for dashboards and reports."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..common.rounding import round_half_up
from ..core.constants import TOP_PERFORMERS_LIMIT, TREND_DAYS
from ..core.enums import FinalVerificationStatus, TaskPriority, TaskStatus
from ..users.model import User
from .model import Task


def rate(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole else 0


def mean1(values: Sequence[float]) -> float:
    return round_half_up(sum(values) / len(values), 1) if values else 0


def ratings(tasks: Iterable[Task]) -> List[int]:
    return [t.rating for t in tasks if t.status == TaskStatus.COMPLETED and t.rating]


def group_by_status(tasks: Sequence[Task]) -> Dict[str, List[Task]]:
    return {s.value: [t for t in tasks if t.status == s] for s in TaskStatus}


def status_counts(tasks: Sequence[Task]) -> dict:
    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    return {
        "total": len(tasks),
        "pending": sum(1 for t in tasks if t.status == TaskStatus.PENDING),
        "in_progress": sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
        "completed": completed,
        "cancelled": sum(1 for t in tasks if t.status == TaskStatus.CANCELLED),
        "reassigned": sum(1 for t in tasks if t.status == TaskStatus.REASSIGNED),
        "completion_rate": rate(completed, len(tasks)),
    }


def verification_counts(tasks: Sequence[Task]) -> dict:
    return {
        "needs_verification": sum(1 for t in tasks if t.needs_verification),
        "pending_verification": sum(1 for t in tasks if t.verification_pending),
        "verification_complete": sum(1 for t in tasks if t.verification_complete),
        "verification_approved": sum(
            1 for t in tasks if t.final_verification_status == FinalVerificationStatus.APPROVED
        ),
        "verification_rejected": sum(
            1 for t in tasks if t.final_verification_status == FinalVerificationStatus.REJECTED
        ),
    }


def priority_counts(tasks: Sequence[Task]) -> dict:
    return {p.value: sum(1 for t in tasks if t.priority == p) for p in TaskPriority}


def is_high_priority(task: Task) -> bool:
    return task.priority in (TaskPriority.HIGH, TaskPriority.URGENT)


def category_breakdown(tasks: Sequence[Task]) -> dict:
    out: dict = {}
    for category in sorted({t.category.value for t in tasks}):
        subset = [t for t in tasks if t.category.value == category]
        completed = sum(1 for t in subset if t.status == TaskStatus.COMPLETED)
        out[category] = {
            "total": len(subset),
            "completed": completed,
            "completion_rate": rate(completed, len(subset)),
            "average_rating": mean1(ratings(subset)),
        }
    return out


def board_counts(tasks: Sequence[Task], key) -> dict:
    """Per-key totals split into completed, pending and in-progress."""
    out: dict = {}
    for task in tasks:
        entry = out.setdefault(key(task), {"total": 0, "completed": 0, "pending": 0, "in_progress": 0})
        entry["total"] += 1
        if task.status == TaskStatus.COMPLETED:
            entry["completed"] += 1
        elif task.status == TaskStatus.PENDING:
            entry["pending"] += 1
        elif task.status == TaskStatus.IN_PROGRESS:
            entry["in_progress"] += 1
    return out


def top_performers(
    tasks: Sequence[Task],
    users: Mapping[int, User],
    departments: Optional[Mapping[int, str]] = None,
    limit: int = TOP_PERFORMERS_LIMIT,
) -> List[dict]:
    departments = departments or {}
    rows = []
    for user_id in {t.assigned_to for t in tasks}:
        subset = [t for t in tasks if t.assigned_to == user_id]
        completed = sum(1 for t in subset if t.status == TaskStatus.COMPLETED)
        scores = ratings(subset)
        user = users.get(user_id)
        rows.append(
            {
                "user_id": user_id,
                "username": user.username if user else None,
                "email": user.email if user else None,
                "department": departments.get(user_id),
                "total": len(subset),
                "completed": completed,
                "completion_rate": rate(completed, len(subset)),
                "average_rating": mean1(scores),
                "total_rated": len(scores),
            }
        )
    rows.sort(key=lambda r: (r["completion_rate"], r["average_rating"]), reverse=True)
    return rows[:limit]


def completion_trend(tasks: Sequence[Task], today: date, days: int = TREND_DAYS) -> List[dict]:
    window = [today - timedelta(days=i) for i in range(days - 1, -1, -1)]
    trend = []
    for day in window:
        subset = [t for t in tasks if t.task_date == day]
        completed = sum(1 for t in subset if t.status == TaskStatus.COMPLETED)
        trend.append(
            {"date": day, "total": len(subset), "completed": completed, "completion_rate": rate(completed, len(subset))}
        )
    return trend
