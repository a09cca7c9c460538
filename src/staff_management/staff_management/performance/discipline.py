"""Warning escalation and record bookkeeping for disciplinary actions."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..core.constants import AUTO_WARNING_ATTENDANCE, AUTO_WARNING_OVERALL, AUTO_WARNING_TASKS
from ..core.enums import PerformanceStatus, WarningLevel, DisciplinaryType
from ..core.exceptions import NotFoundError
from .model import DisciplinaryAction, PerformanceIssue, PerformanceMetrics, PerformanceRecord


def new_id() -> str:
    return uuid.uuid4().hex


def escalated_level(action_type: DisciplinaryType, warnings_count: int) -> WarningLevel:
    """Warning level once ``warnings_count`` includes the new warning."""
    if action_type == DisciplinaryType.FINAL_WARNING or warnings_count >= 3:
        return WarningLevel.FINAL_WARNING
    if warnings_count >= 2:
        return WarningLevel.SECOND_WARNING
    return WarningLevel.FIRST_WARNING


def apply_action(record: PerformanceRecord, action: DisciplinaryAction) -> PerformanceRecord:
    changes = {
        "disciplinary_actions": record.disciplinary_actions + (action,),
        "last_warning_date": action.effective_date,
        "status": PerformanceStatus.NEEDS_ATTENTION,
    }
    if action.type.counts_as_warning:
        count = record.warnings_count + 1
        changes.update(
            warnings_count=count,
            has_active_warnings=True,
            warning_level=escalated_level(action.type, count),
        )
    return replace(record, **changes)


def acknowledge(
    record: PerformanceRecord, action_id: str, *, comments: Optional[str], at: datetime
) -> PerformanceRecord:
    actions = []
    found = False
    for action in record.disciplinary_actions:
        if action.action_id == action_id:
            found = True
            action = replace(
                action,
                acknowledged_by_employee=True,
                acknowledged_at=at,
                employee_comments=comments or action.employee_comments,
            )
        actions.append(action)
    if not found:
        raise NotFoundError("Warning not found")
    return replace(record, disciplinary_actions=tuple(actions))


def add_issue(record: PerformanceRecord, issue: PerformanceIssue) -> PerformanceRecord:
    return replace(
        record,
        performance_issues=record.performance_issues + (issue,),
        status=PerformanceStatus.UNDER_REVIEW,
    )


def resolve_issue(
    record: PerformanceRecord, issue_id: str, *, notes: Optional[str], at: datetime
) -> PerformanceRecord:
    issues = []
    found = False
    for issue in record.performance_issues:
        if issue.issue_id == issue_id:
            found = True
            issue = replace(issue, resolved=True, resolved_at=at, resolution_notes=notes)
        issues.append(issue)
    if not found:
        raise NotFoundError("Performance issue not found")
    return replace(record, performance_issues=tuple(issues))


@dataclass(frozen=True)
class AutoWarning:
    reason: str
    level: WarningLevel
    overall_score: int


def auto_warning_reason(overall_score: int, metrics: PerformanceMetrics) -> Optional[str]:
    """Reason text when scores fall below the automatic warning thresholds."""
    if overall_score < AUTO_WARNING_OVERALL:
        return f"Overall performance critically low: {overall_score}%"
    if metrics.attendance_score < AUTO_WARNING_ATTENDANCE:
        return f"Attendance below acceptable level: {metrics.attendance_score}%"
    if metrics.task_completion_rate < AUTO_WARNING_TASKS:
        return f"Task completion rate too low: {metrics.task_completion_rate}%"
    return None


def auto_warning_for(record: PerformanceRecord) -> Optional[AutoWarning]:
    reason = auto_warning_reason(record.overall_score, record.metrics)
    if reason is None:
        return None
    if record.warnings_count >= 2:
        level = WarningLevel.FINAL_WARNING
    elif record.warnings_count >= 1:
        level = WarningLevel.SECOND_WARNING
    else:
        level = WarningLevel.FIRST_WARNING
    return AutoWarning(reason=reason, level=level, overall_score=record.overall_score)
