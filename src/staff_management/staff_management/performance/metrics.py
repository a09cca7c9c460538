"""Monthly performance figures from raw attendance, task and schedule rows."""

from __future__ import annotations

from typing import Sequence

from ..attendance.model import AttendanceRecord
from ..common.rounding import round_half_up
from ..core.enums import AttendanceStatus, TaskStatus
from ..shifts.model import Schedule
from ..tasks.model import Task
from .model import PerformanceMetrics


def _pct(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole else 0


def compute_metrics(
    attendance: Sequence[AttendanceRecord],
    tasks: Sequence[Task],
    schedules: Sequence[Schedule],
) -> PerformanceMetrics:
    # Scheduled shifts define the expected work days; fall back to recorded days.
    work_days = len(schedules) or len(attendance)
    late = sum(1 for a in attendance if a.status == AttendanceStatus.LATE)
    present = sum(1 for a in attendance if a.status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE))
    minutes = sum(a.working_minutes or 0 for a in attendance)

    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    rated = [t.rating for t in tasks if t.status == TaskStatus.COMPLETED and t.rating and t.rating > 0]

    return PerformanceMetrics(
        attendance_score=_pct(present, work_days),
        punctuality_score=round_half_up((work_days - late) / work_days * 100) if work_days else 100,
        total_working_hours=round_half_up(minutes / 60, 1),
        late_arrivals=late,
        absences=sum(1 for a in attendance if a.status == AttendanceStatus.ABSENT),
        approved_leaves=sum(1 for a in attendance if a.is_approved_leave),
        total_work_days=work_days,
        present_days=present,
        task_completion_rate=_pct(completed, len(tasks)),
        average_task_rating=round_half_up(sum(rated) / len(rated), 1) if rated else 0,
        total_tasks=len(tasks),
        completed_tasks=completed,
        pending_tasks=sum(1 for t in tasks if t.status == TaskStatus.PENDING),
        in_progress_tasks=sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
        cancelled_tasks=sum(1 for t in tasks if t.status == TaskStatus.CANCELLED),
    )
