from __future__ import annotations

import logging
from dataclasses import asdict, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..alerts.service import AlertService
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import (
    add_months,
    month_bounds,
    now_local,
    parse_optional_date,
    previous_month,
    recent_months,
    resolve_month,
)
from ..common.rounding import round_half_up
from ..common.validators import (
    optional_enum,
    parse_bool,
    require_enum,
    require_id,
    require_int_range,
    require_max_length,
    require_month,
    require_non_empty,
)
from ..core.constants import DEFAULT_IMPROVEMENT_PLAN_MONTHS, HISTORY_MONTHS, LOW_PERFORMER_THRESHOLD, RECALCULATE_USER_LIMIT
from ..core.enums import (
    AchievementCategory,
    AlertPriority,
    AlertType,
    DisciplinaryType,
    GoalCategory,
    GoalPriority,
    ImprovementPriority,
    PerformanceIssueCategory,
    PerformanceIssueSeverity,
    PerformanceLevel,
    PerformanceStatus,
    RiskLevel,
    Role,
    WarningLevel,
)
from ..core.exceptions import NotFoundError, ValidationError
from ..notifications.mailer import Mailer
from ..shifts.repository import ScheduleRepository
from ..tasks.model import TaskQuery
from ..tasks.repository import TaskRepository
from ..users.model import StaffProfile, User
from ..users.repository import ProfileRepository, UserRepository
from . import discipline
from .calculator.base import PerformanceCalculator
from .calculator.standard_calculator import StandardPerformanceCalculator
from .metrics import compute_metrics
from .model import (
    Achievement,
    DisciplinaryAction,
    Goal,
    ImprovementArea,
    ImprovementPlan,
    PerformanceIssue,
    PerformanceMetrics,
    PerformanceRecord,
    PlanObjective,
)
from .repository import PerformanceRepository

logger = logging.getLogger(__name__)

REPORTED_STATUSES = (PerformanceStatus.FINALIZED, PerformanceStatus.REVIEWED)
LOW_PERFORMER_STATUSES = REPORTED_STATUSES + (PerformanceStatus.NEEDS_ATTENTION,)


def _label(value: str) -> str:
    return value.replace("_", " ", 1).upper()


def user_info(user: Optional[User], profile: Optional[StaffProfile]) -> dict:
    username = user.username if user else "Unknown"
    return {
        "username": username,
        "email": user.email if user else "Unknown",
        "name": profile.name if profile else username,
        "department": profile.department.value if profile else "Not Set",
        "job_title": profile.job_title.value if profile else "Not Set",
    }


def record_view(record: PerformanceRecord) -> dict:
    """Flat metrics plus the derived fields shown on dashboards."""
    view = {"user_id": record.user_id, "month": record.month, **asdict(record.metrics)}
    view.update(record.summary())
    view["calculated_at"] = record.calculated_at
    return view


class PerformanceService:
    """Monthly scoring, warnings and HR follow-up for staff members."""

    def __init__(
        self,
        records: PerformanceRepository,
        users: UserRepository,
        profiles: ProfileRepository,
        attendance: AttendanceRepository,
        tasks: TaskRepository,
        schedules: ScheduleRepository,
        alerts: AlertService,
        mailer: Mailer,
        *,
        calculator: Optional[PerformanceCalculator] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._records = records
        self._users = users
        self._profiles = profiles
        self._attendance = attendance
        self._tasks = tasks
        self._schedules = schedules
        self._alerts = alerts
        self._mailer = mailer
        self._calculator = calculator or StandardPerformanceCalculator()
        self._clock = clock

    # calculation

    def _month(self, month: Any, year: Any = None) -> str:
        return require_month(resolve_month(month, year, self._clock()))

    def metrics_for(self, user_id: int, month: str) -> PerformanceMetrics:
        start, end = month_bounds(month)
        attendance, _ = self._attendance.list_for_user(user_id, start=start, end=end)
        tasks, _ = self._tasks.list_tasks(TaskQuery(assigned_to=user_id, date_from=start, date_to=end))
        schedules = self._schedules.list_for_user(user_id, start=start, end=end)
        return compute_metrics(attendance, tasks, schedules)

    def calculate(self, user_id: int, month: str, *, calculated_by: Optional[int] = None) -> PerformanceRecord:
        metrics = self.metrics_for(user_id, month)
        existing = self._records.get(user_id, month) or PerformanceRecord(user_id=user_id, month=month)
        record = self._calculator.evaluate(
            replace(existing, metrics=metrics, calculated_at=self._clock(), calculated_by=calculated_by)
        )
        record = self._calculator.with_trends(record, self._records.get(user_id, previous_month(month)))
        saved = self._records.save(record)
        logger.debug("Performance for user id=%s %s: %s (%s)", user_id, month, saved.overall_score, saved.grade.value)
        return saved

    def _history(self, user_id: int, *, skip: Optional[str] = None) -> List[dict]:
        current = self._month(None)
        history = []
        for month in recent_months(current, HISTORY_MONTHS):
            if month == skip:
                continue
            history.append({"month": month, **asdict(self.metrics_for(user_id, month))})
        return sorted(history, key=lambda h: h["month"], reverse=True)

    # notifications

    def _notify(self, user_id: int, subject: str, lines: Sequence[str], *, priority: AlertPriority) -> None:
        user = self._users.get_by_id(user_id)
        if not user:
            return
        self._alerts.create_system_alert(
            AlertType.PERFORMANCE_REVIEW,
            user_id,
            subject[:100],
            " ".join(lines)[:500],
            priority=priority,
            action_required=priority in (AlertPriority.HIGH, AlertPriority.URGENT),
            related_model="Performance",
        )
        body = "\n".join([f"Dear {user.username},", ""] + list(lines) + ["", "Please log into your dashboard for more details."])
        if not self._mailer.send(to=user.email, subject=subject, body=body):
            logger.warning("Performance mail to user id=%s was not delivered", user_id)

    def _warn_mail_lines(self, record: PerformanceRecord) -> List[str]:
        return [
            f"Your performance for {record.month} requires immediate attention:",
            f"Overall Score: {record.overall_score}%",
            f"Attendance: {record.metrics.attendance_score}%",
            f"Task Completion: {record.metrics.task_completion_rate}%",
            f"Punctuality: {record.metrics.punctuality_score}%",
            "Action Required: Please schedule a meeting with your supervisor to discuss "
            "performance improvement strategies.",
        ]

    def _auto_warn(
        self, record: PerformanceRecord, *, issued_by: Optional[int], notify: bool = True
    ) -> Optional[discipline.AutoWarning]:
        warning = discipline.auto_warning_for(record)
        if warning is None:
            return None
        action = DisciplinaryAction(
            action_id=discipline.new_id(),
            type=DisciplinaryType.VERBAL_WARNING,
            reason=warning.reason,
            issued_by=issued_by,
            effective_date=self._clock(),
            description=(
                f"Automatic warning generated due to poor performance in {record.month}. "
                "Immediate improvement required."
            ),
        )
        updated = self._records.save(self._calculator.evaluate(discipline.apply_action(record, action)))
        logger.info("Automatic %s for user id=%s: %s", warning.level.value, record.user_id, warning.reason)
        if notify:
            self._notify(
                updated.user_id,
                f"Performance Warning - {_label(warning.level.value)}",
                self._warn_mail_lines(updated),
                priority=AlertPriority.HIGH,
            )
        return warning

    # employee views

    def my_performance(self, user_id: int, *, month: Any = None, year: Any = None) -> dict:
        target = self._month(month, year)
        record = self.calculate(user_id, target)
        user = self._users.get_by_id(user_id)
        profile = self._profiles.get_by_user(user_id)
        return {
            "performance": record_view(record),
            "performance_history": self._history(user_id, skip=target),
            "user_info": user_info(user, profile),
            "alerts": record.alert_flags,
            "achievements": record.achievements,
            "goals": record.goals,
        }

    def my_warnings(self, user_id: int, *, month: Any = None, year: Any = None) -> dict:
        target = self._month(month, year)
        record = self._records.get(user_id, target)
        if record is None:
            return {
                "month": target,
                "has_active_warnings": False,
                "warning_level": WarningLevel.NONE,
                "warnings_count": 0,
                "disciplinary_actions": [],
                "performance_issues": [],
                "improvement_plan": None,
                "alerts": {},
                "risk_level": RiskLevel.NONE,
            }
        return {
            "month": target,
            "has_active_warnings": record.has_active_warnings,
            "warning_level": record.warning_level,
            "warnings_count": record.warnings_count,
            "disciplinary_actions": record.disciplinary_actions,
            "performance_issues": [i for i in record.performance_issues if not i.resolved],
            "improvement_plan": record.improvement_plan,
            "alerts": record.alert_flags,
            "risk_level": record.risk_level,
        }

    def acknowledge_warning(self, user_id: int, payload: dict) -> None:
        month, warning_id = payload.get("month"), payload.get("warning_id")
        if not month or not warning_id:
            raise ValidationError("Missing required fields: month, warning_id")
        record = self._records.get(user_id, require_month(month))
        if record is None:
            raise NotFoundError("Performance record not found")
        comments = require_max_length(payload.get("comments"), "Comments", 1000) or None
        self._records.save(discipline.acknowledge(record, str(warning_id), comments=comments, at=self._clock()))

    # admin views

    def _staff(self) -> Sequence[User]:
        return self._users.list_users(role=Role.USER, verified=True)

    def admin_all_users(self, args: Mapping[str, Any], *, admin_id: Optional[int]) -> dict:
        target = self._month(args.get("month"), args.get("year"))
        department = args.get("department")
        level = optional_enum(PerformanceLevel, args.get("performance_level"), "performance level")
        warning = optional_enum(WarningLevel, args.get("warning_level"), "warning level")
        try:
            limit = max(int(args.get("limit") or 50), 1)
        except (TypeError, ValueError):
            limit = 50

        users = list(self._staff())[:limit]
        profiles = self._profiles.list_by_users([u.user_id for u in users])
        rows = []
        for user in users:
            profile = profiles.get(user.user_id)
            if department and department != "all" and (not profile or profile.department.value != department):
                continue
            record = self.calculate(user.user_id, target, calculated_by=admin_id)
            if level and record.performance_level != level:
                continue
            if warning and record.warning_level != warning:
                continue
            rows.append({**record_view(record), "user_info": user_info(user, profile)})

        start, end = month_bounds(target)
        return {
            "month": target,
            "performance": rows,
            "summary": {
                "total_users": len(rows),
                "date_range": {"start_date": start, "end_date": end},
                "department": department or "all",
                "excellent_performers": sum(1 for r in rows if r["performance_level"] == PerformanceLevel.EXCELLENT),
                "good_performers": sum(1 for r in rows if r["performance_level"] == PerformanceLevel.GOOD),
                "needs_attention": sum(
                    1 for r in rows if r["has_active_warnings"] or r["performance_level"] == PerformanceLevel.POOR
                ),
                "high_risk": sum(1 for r in rows if r["risk_level"] == RiskLevel.HIGH),
            },
        }

    def admin_user(self, user_id: int, *, month: Any = None, year: Any = None, admin_id: Optional[int]) -> dict:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        target = self._month(month, year)
        record = self.calculate(user_id, target, calculated_by=admin_id)
        return {
            "performance": record_view(record),
            "performance_history": self._history(user_id),
            "user_info": user_info(user, self._profiles.get_by_user(user_id)),
            "alerts": record.alert_flags,
            "disciplinary_actions": record.disciplinary_actions,
            "achievements": record.achievements,
            "areas_for_improvement": record.improvement_areas,
            "goals": record.goals,
            "performance_issues": record.performance_issues,
            "improvement_plan": record.improvement_plan,
            "trend": record.trend,
            "previous_month_comparison": record.previous_month_comparison or {},
        }

    def departments(self, *, month: Any = None, year: Any = None) -> dict:
        target = self._month(month, year)
        records = self._records.list_for_month(target, statuses=REPORTED_STATUSES)
        profiles = self._profiles.list_by_users([r.user_id for r in records])
        groups: Dict[str, List[PerformanceRecord]] = {}
        for record in records:
            profile = profiles.get(record.user_id)
            if profile:
                groups.setdefault(profile.department.value, []).append(record)

        def avg(values: Sequence[float]) -> float:
            return round_half_up(sum(values) / len(values), 1)

        rows = [
            {
                "department": name,
                "average_attendance": avg([r.metrics.attendance_score for r in group]),
                "average_task_completion": avg([r.metrics.task_completion_rate for r in group]),
                "average_punctuality": avg([r.metrics.punctuality_score for r in group]),
                "average_overall": avg([r.overall_score for r in group]),
                "employee_count": len(group),
                "top_score": max(r.overall_score for r in group),
                "low_score": min(r.overall_score for r in group),
                "warnings_count": sum(r.warnings_count for r in group),
                "improvement_plans_count": sum(
                    1 for r in group if r.improvement_plan and r.improvement_plan.is_active
                ),
            }
            for name, group in groups.items()
        ]
        rows.sort(key=lambda d: d["average_overall"], reverse=True)
        return {"month": target, "departments": rows}

    def _attention_view(self, records: Sequence[PerformanceRecord]) -> List[dict]:
        users = self._users.list_by_ids([r.user_id for r in records])
        out = []
        for record in records:
            user = users.get(record.user_id)
            out.append(
                {
                    **record.summary(),
                    "username": user.username if user else None,
                    "email": user.email if user else None,
                }
            )
        return out

    def needing_attention(self, *, month: Any = None, year: Any = None) -> dict:
        target = self._month(month, year)
        records = [r for r in self._records.list_for_month(target) if r.needs_attention]
        employees = self._attention_view(records)
        return {
            "month": target,
            "employees": employees,
            "summary": {
                "total": len(records),
                "high_risk": sum(1 for r in records if r.risk_level == RiskLevel.HIGH),
                "medium_risk": sum(1 for r in records if r.risk_level == RiskLevel.MEDIUM),
                "with_active_warnings": sum(1 for r in records if r.has_active_warnings),
                "poor_performance": sum(1 for r in records if r.overall_score < 60),
            },
        }

    def analytics(self, *, month: Any = None, year: Any = None) -> dict:
        target = self._month(month, year)
        reported = self._records.list_for_month(target, statuses=REPORTED_STATUSES)
        scores = [r.overall_score for r in reported]
        buckets = {}
        if reported:
            buckets = {
                "total_employees": len(reported),
                "average_overall_score": round_half_up(sum(scores) / len(scores), 1),
                "excellent_performers": sum(1 for s in scores if s >= 90),
                "good_performers": sum(1 for s in scores if 80 <= s < 90),
                "average_performers": sum(1 for s in scores if 70 <= s < 80),
                "below_average_performers": sum(1 for s in scores if 60 <= s < 70),
                "poor_performers": sum(1 for s in scores if s < 60),
                "total_warnings": sum(r.warnings_count for r in reported),
                "employees_with_warnings": sum(1 for r in reported if r.has_active_warnings),
                "active_improvement_plans": sum(
                    1 for r in reported if r.improvement_plan and r.improvement_plan.is_active
                ),
            }
        low = [
            r
            for r in self._records.list_for_month(target, statuses=LOW_PERFORMER_STATUSES)
            if r.overall_score < LOW_PERFORMER_THRESHOLD
        ]
        attention = [r for r in self._records.list_for_month(target) if r.needs_attention]
        return {
            "month": target,
            "analytics": buckets,
            "low_performers": self._attention_view(low),
            "employees_needing_attention": self._attention_view(attention),
            "summary": {
                "total_low_performers": len(low),
                "employees_needing_attention": len(attention),
                "critical_cases": sum(1 for r in attention if r.risk_level == RiskLevel.HIGH),
            },
        }

    def recalculate(self, payload: dict, *, admin_id: Optional[int]) -> dict:
        target = self._month(payload.get("month"), payload.get("year"))
        auto_warnings = bool(parse_bool(payload.get("auto_warnings")))
        if payload.get("user_id"):
            user = self._users.get_by_id(require_id(payload["user_id"], "user_id"))
            users = [user] if user else []
        else:
            users = list(self._staff())

        results = []
        for user in users[:RECALCULATE_USER_LIMIT]:
            record = self.calculate(user.user_id, target, calculated_by=admin_id)
            warning_result = None
            if auto_warnings:
                warning = self._auto_warn(record, issued_by=admin_id)
                warning_result = {"warning_created": warning is not None, "overall_score": record.overall_score}
                if warning:
                    warning_result.update(warning_level=warning.level, reason=warning.reason)
            results.append(
                {
                    "user_id": user.user_id,
                    "username": user.username,
                    "performance": asdict(record.metrics),
                    "overall_score": record.overall_score,
                    "warning_result": warning_result,
                    "status": "success",
                }
            )

        start, end = month_bounds(target)
        return {
            "message": f"Performance recalculated for {len(results)} users",
            "results": results,
            "month": target,
            "date_range": {"start_date": start, "end_date": end},
            "warnings_created": sum(1 for r in results if r["warning_result"] and r["warning_result"]["warning_created"]),
        }

    def auto_check_warnings(self, payload: dict, *, admin_id: Optional[int]) -> dict:
        target = self._month(payload.get("month"), payload.get("year"))
        dry_run = bool(parse_bool(payload.get("dry_run")))
        email = parse_bool(payload.get("email_notifications"))
        notify = True if email is None else email

        records = self._records.list_for_month(target, statuses=REPORTED_STATUSES)
        users = self._users.list_by_ids([r.user_id for r in records])
        results = []
        for record in records:
            username = users[record.user_id].username if record.user_id in users else None
            needs = discipline.auto_warning_for(record)
            if needs and not dry_run:
                self._auto_warn(record, issued_by=admin_id, notify=notify)
                results.append(
                    {
                        "user_id": record.user_id,
                        "username": username,
                        "overall_score": record.overall_score,
                        "warning_level": needs.level,
                        "reason": needs.reason,
                        "needs_warning": True,
                        "action": "warning_created",
                    }
                )
            else:
                results.append(
                    {
                        "user_id": record.user_id,
                        "username": username,
                        "overall_score": record.overall_score,
                        "needs_warning": needs is not None,
                        "action": "would_warn" if needs else "no_action",
                    }
                )

        created = sum(1 for r in results if r["action"] == "warning_created")
        return {
            "message": f"Auto-check completed. {created} warnings {'would be created' if dry_run else 'created'}",
            "results": results,
            "summary": {
                "total": len(results),
                "warnings_needed": sum(1 for r in results if r["needs_warning"]),
                "warnings_created": created,
                "errors": 0,
            },
        }

    # HR follow-up

    def _record_for(self, payload: dict, required: Sequence[str]) -> PerformanceRecord:
        missing = [name for name in ("user_id", "month") + tuple(required) if not payload.get(name)]
        if missing:
            raise ValidationError(
                "Missing required fields: " + ", ".join(("user_id", "month") + tuple(required))
            )
        record = self._records.get(require_id(payload["user_id"], "user_id"), require_month(payload["month"]))
        if record is None:
            raise NotFoundError("Performance record not found for this user and month")
        return record

    def add_achievement(self, payload: dict, *, admin_id: Optional[int]) -> Achievement:
        record = self._record_for(payload, ("title",))
        achievement = Achievement(
            achievement_id=discipline.new_id(),
            title=require_max_length(require_non_empty(payload["title"], "Title"), "Title", 100),
            awarded_at=self._clock(),
            description=require_max_length(payload.get("description"), "Description", 500),
            category=optional_enum(AchievementCategory, payload.get("category"), "category")
            or AchievementCategory.PERFORMANCE,
            points=max(require_id(payload.get("points") or 0, "points"), 0),
            added_by=admin_id,
        )
        self._records.save(replace(record, achievements=record.achievements + (achievement,)))
        lines = ["Congratulations! You have been recognized for:", achievement.title]
        if achievement.description:
            lines.append(achievement.description)
        lines.append(f"Category: {achievement.category.value}")
        if achievement.points > 0:
            lines.append(f"Points Awarded: {achievement.points}")
        self._notify(record.user_id, "Achievement Recognition", lines, priority=AlertPriority.MEDIUM)
        return achievement

    def add_improvement_area(self, payload: dict, *, admin_id: Optional[int]) -> ImprovementArea:
        record = self._record_for(payload, ("area",))
        now = self._clock()
        area = ImprovementArea(
            area_id=discipline.new_id(),
            area=require_max_length(require_non_empty(payload["area"], "Area"), "Area", 100),
            added_at=now,
            description=require_max_length(payload.get("description"), "Description", 500),
            priority=optional_enum(ImprovementPriority, payload.get("priority"), "priority")
            or ImprovementPriority.MEDIUM,
            target_date=parse_optional_date(payload.get("target_date")),
            added_by=admin_id,
        )
        self._records.save(replace(record, improvement_areas=record.improvement_areas + (area,)))
        return area

    def add_goal(self, payload: dict, *, admin_id: Optional[int]) -> Goal:
        record = self._record_for(payload, ("title",))
        target = payload.get("target")
        try:
            target = float(target) if target not in (None, "") else None
        except (TypeError, ValueError):
            raise ValidationError("Target must be a number")
        goal = Goal(
            goal_id=discipline.new_id(),
            title=require_max_length(require_non_empty(payload["title"], "Title"), "Title", 100),
            set_at=self._clock(),
            description=require_max_length(payload.get("description"), "Description", 500),
            category=optional_enum(GoalCategory, payload.get("category"), "category") or GoalCategory.PRODUCTIVITY,
            target=target,
            deadline=parse_optional_date(payload.get("deadline")),
            priority=optional_enum(GoalPriority, payload.get("priority"), "priority") or GoalPriority.MEDIUM,
            set_by=admin_id,
        )
        self._records.save(replace(record, goals=record.goals + (goal,)))
        return goal

    def add_issue(self, payload: dict, *, admin_id: Optional[int]) -> PerformanceIssue:
        record = self._record_for(payload, ("category", "description"))
        issue = PerformanceIssue(
            issue_id=discipline.new_id(),
            category=require_enum(PerformanceIssueCategory, payload["category"], "category"),
            description=require_max_length(payload["description"], "Description", 500),
            reported_at=self._clock(),
            severity=optional_enum(PerformanceIssueSeverity, payload.get("severity"), "severity")
            or PerformanceIssueSeverity.MODERATE,
            reported_by=admin_id,
        )
        self._records.save(self._calculator.evaluate(discipline.add_issue(record, issue)))
        self._notify(
            record.user_id,
            "Performance Issue Reported",
            [
                "A performance issue has been reported:",
                f"Category: {_label(issue.category.value)}",
                f"Severity: {issue.severity.value}",
                f"Description: {issue.description}",
                "Please contact your supervisor to discuss this matter.",
            ],
            priority=AlertPriority.HIGH,
        )
        return issue

    def resolve_issue(self, payload: dict) -> PerformanceIssue:
        record = self._record_for(payload, ("issue_id",))
        updated = discipline.resolve_issue(
            record,
            str(payload["issue_id"]),
            notes=require_max_length(payload.get("resolution_notes"), "Resolution notes", 500) or None,
            at=self._clock(),
        )
        self._records.save(updated)
        return next(i for i in updated.performance_issues if i.issue_id == str(payload["issue_id"]))

    def create_warning(self, payload: dict, *, admin_id: Optional[int]) -> DisciplinaryAction:
        record = self._record_for(payload, ("type", "reason"))
        action = DisciplinaryAction(
            action_id=discipline.new_id(),
            type=require_enum(DisciplinaryType, payload["type"], "type"),
            reason=require_max_length(payload["reason"], "Reason", 1000),
            issued_by=admin_id,
            effective_date=self._clock(),
            description=require_max_length(payload.get("description"), "Description", 2000),
            expiry_date=parse_optional_date(payload.get("expiry_date")),
        )
        self._records.save(self._calculator.evaluate(discipline.apply_action(record, action)))
        logger.info("Disciplinary action %s issued to user id=%s", action.type.value, record.user_id)

        lines = [
            "A disciplinary action has been taken:",
            f"Type: {_label(action.type.value)}",
            f"Reason: {action.reason}",
        ]
        if action.description:
            lines.append(f"Details: {action.description}")
        if action.expiry_date:
            lines.append(f"Expires: {action.expiry_date.isoformat()}")
        lines.append("Please acknowledge this action by logging into your dashboard.")
        self._notify(
            record.user_id,
            f"Disciplinary Action - {_label(action.type.value)}",
            lines,
            priority=AlertPriority.URGENT,
        )
        return action

    def create_improvement_plan(self, payload: dict, *, admin_id: Optional[int]) -> ImprovementPlan:
        objectives = payload.get("objectives")
        if not isinstance(objectives, list) or not objectives:
            raise ValidationError("Missing required fields: user_id, month, objectives (array)")
        record = self._record_for(payload, ())
        months = require_int_range(payload.get("duration") or DEFAULT_IMPROVEMENT_PLAN_MONTHS, "duration", 1, 24)
        start = self._clock().date()
        end = add_months(start, months)
        plan = ImprovementPlan(
            is_active=True,
            start_date=start,
            end_date=end,
            objectives=tuple(
                PlanObjective(
                    description=require_non_empty((o or {}).get("description"), "Objective description"),
                    target_date=parse_optional_date((o or {}).get("target_date")) or end,
                )
                for o in objectives
            ),
            created_by=admin_id,
        )
        self._records.save(replace(record, improvement_plan=plan))
        lines = [
            "A Performance Improvement Plan has been created for you:",
            f"Duration: {months} months",
            "Objectives:",
        ]
        lines += [f"- {o.description} (Target: {o.target_date.isoformat()})" for o in plan.objectives]
        lines.append("Please schedule a meeting with your supervisor to discuss the plan details.")
        self._notify(record.user_id, "Performance Improvement Plan Created", lines, priority=AlertPriority.HIGH)
        return plan
