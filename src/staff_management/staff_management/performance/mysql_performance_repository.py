from __future__ import annotations

from dataclasses import fields
from typing import Any, Optional, Sequence

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.serialization import to_json
from ..core.enums import (
    AchievementCategory,
    DisciplinaryType,
    GoalCategory,
    GoalPriority,
    GoalStatus,
    Grade,
    ImprovementPriority,
    ImprovementProgress,
    PerformanceIssueCategory,
    PerformanceIssueSeverity,
    PerformanceLevel,
    PerformanceStatus,
    Trend,
    WarningLevel,
)
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, in_clause, load_json
from .model import (
    Achievement,
    AlertFlags,
    DisciplinaryAction,
    Goal,
    ImprovementArea,
    ImprovementPlan,
    MonthComparison,
    PerformanceIssue,
    PerformanceMetrics,
    PerformanceRecord,
    PlanObjective,
    TrendSet,
)
from .repository import PerformanceRepository

_METRIC_COLUMNS = [f.name for f in fields(PerformanceMetrics)]

_JSON_COLUMNS = [
    "alert_flags",
    "trend",
    "previous_month_comparison",
    "disciplinary_actions",
    "achievements",
    "improvement_areas",
    "performance_issues",
    "goals",
    "improvement_plan",
]

_COLUMNS = (
    ["record_id", "user_id", "month"]
    + _METRIC_COLUMNS
    + [
        "overall_score",
        "grade",
        "performance_level",
        "status",
        "warnings_count",
        "warning_level",
        "has_active_warnings",
        "last_warning_date",
    ]
    + _JSON_COLUMNS
    + ["calculated_at", "calculated_by"]
)


def _dt(value: Any):
    return parse_iso_datetime(value) if value else None


def _d(value: Any):
    return parse_iso_date(value) if value else None


def _action(d: dict) -> DisciplinaryAction:
    return DisciplinaryAction(
        action_id=d["action_id"],
        type=DisciplinaryType(d["type"]),
        reason=d["reason"],
        issued_by=d.get("issued_by"),
        effective_date=_dt(d.get("effective_date")),
        description=d.get("description") or "",
        expiry_date=_d(d.get("expiry_date")),
        is_active=bool(d.get("is_active", True)),
        acknowledged_by_employee=bool(d.get("acknowledged_by_employee")),
        acknowledged_at=_dt(d.get("acknowledged_at")),
        employee_comments=d.get("employee_comments"),
    )


def _achievement(d: dict) -> Achievement:
    return Achievement(
        achievement_id=d["achievement_id"],
        title=d["title"],
        awarded_at=_dt(d.get("awarded_at")),
        description=d.get("description") or "",
        category=AchievementCategory(d.get("category") or "performance"),
        points=int(d.get("points") or 0),
        added_by=d.get("added_by"),
    )


def _area(d: dict) -> ImprovementArea:
    return ImprovementArea(
        area_id=d["area_id"],
        area=d["area"],
        added_at=_dt(d.get("added_at")),
        description=d.get("description") or "",
        priority=ImprovementPriority(d.get("priority") or "medium"),
        target_date=_d(d.get("target_date")),
        progress=ImprovementProgress(d.get("progress") or "not_started"),
        added_by=d.get("added_by"),
    )


def _issue(d: dict) -> PerformanceIssue:
    return PerformanceIssue(
        issue_id=d["issue_id"],
        category=PerformanceIssueCategory(d["category"]),
        description=d["description"],
        reported_at=_dt(d.get("reported_at")),
        severity=PerformanceIssueSeverity(d.get("severity") or "moderate"),
        reported_by=d.get("reported_by"),
        resolved=bool(d.get("resolved")),
        resolved_at=_dt(d.get("resolved_at")),
        resolution_notes=d.get("resolution_notes"),
    )


def _goal(d: dict) -> Goal:
    return Goal(
        goal_id=d["goal_id"],
        title=d["title"],
        set_at=_dt(d.get("set_at")),
        description=d.get("description") or "",
        category=GoalCategory(d.get("category") or "productivity"),
        target=d.get("target"),
        current_progress=d.get("current_progress") or 0,
        deadline=_d(d.get("deadline")),
        status=GoalStatus(d.get("status") or "not_started"),
        priority=GoalPriority(d.get("priority") or "medium"),
        set_by=d.get("set_by"),
    )


def _plan(d: Optional[dict]) -> Optional[ImprovementPlan]:
    if not d:
        return None
    return ImprovementPlan(
        is_active=bool(d.get("is_active")),
        start_date=_d(d.get("start_date")),
        end_date=_d(d.get("end_date")),
        objectives=tuple(
            PlanObjective(
                description=o.get("description") or "",
                target_date=_d(o.get("target_date")),
                completed=bool(o.get("completed")),
            )
            for o in d.get("objectives") or []
        ),
        created_by=d.get("created_by"),
    )


def _row_to_record(r: dict) -> PerformanceRecord:
    metrics = PerformanceMetrics(
        **{
            name: float(r[name]) if name in ("total_working_hours", "average_task_rating") else int(r[name])
            for name in _METRIC_COLUMNS
        }
    )
    flags = load_json(r.get("alert_flags"), {})
    trend = load_json(r.get("trend"), {})
    comparison = load_json(r.get("previous_month_comparison"), None)
    return PerformanceRecord(
        record_id=int(r["record_id"]),
        user_id=int(r["user_id"]),
        month=r["month"],
        metrics=metrics,
        overall_score=int(r["overall_score"]),
        grade=Grade(r["grade"]),
        performance_level=PerformanceLevel(r["performance_level"]),
        status=PerformanceStatus(r["status"]),
        warnings_count=int(r["warnings_count"]),
        warning_level=WarningLevel(r["warning_level"]),
        has_active_warnings=bool(r["has_active_warnings"]),
        last_warning_date=r.get("last_warning_date"),
        alert_flags=AlertFlags(**{k: bool(v) for k, v in flags.items()}),
        trend=TrendSet(**{k: Trend(v) for k, v in trend.items()}),
        previous_month_comparison=MonthComparison(**comparison) if comparison else None,
        disciplinary_actions=tuple(_action(d) for d in load_json(r.get("disciplinary_actions"), [])),
        achievements=tuple(_achievement(d) for d in load_json(r.get("achievements"), [])),
        improvement_areas=tuple(_area(d) for d in load_json(r.get("improvement_areas"), [])),
        performance_issues=tuple(_issue(d) for d in load_json(r.get("performance_issues"), [])),
        goals=tuple(_goal(d) for d in load_json(r.get("goals"), [])),
        improvement_plan=_plan(load_json(r.get("improvement_plan"), None)),
        calculated_at=r.get("calculated_at"),
        calculated_by=r.get("calculated_by"),
    )


def _record_values(record: PerformanceRecord) -> tuple:
    values = [record.user_id, record.month]
    values += [getattr(record.metrics, name) for name in _METRIC_COLUMNS]
    values += [
        record.overall_score,
        record.grade.value,
        record.performance_level.value,
        record.status.value,
        record.warnings_count,
        record.warning_level.value,
        int(record.has_active_warnings),
        record.last_warning_date,
    ]
    values += [dump_json(to_json(getattr(record, name))) for name in _JSON_COLUMNS]
    values += [record.calculated_at, record.calculated_by]
    return tuple(values)


class MySQLPerformanceRepository(PerformanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, user_id: int, month: str) -> Optional[PerformanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM performance_records WHERE user_id=%s AND month=%s",
                (int(user_id), month),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_for_month(
        self, month: str, *, statuses: Optional[Sequence[PerformanceStatus]] = None
    ) -> Sequence[PerformanceRecord]:
        sql = f"SELECT {', '.join(_COLUMNS)} FROM performance_records WHERE month=%s"
        params: tuple = (month,)
        if statuses:
            placeholders, values = in_clause([s.value for s in statuses])
            sql += f" AND status IN ({placeholders})"
            params += values
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY overall_score, user_id", params)
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_user(self, user_id: int, months: Sequence[str]) -> Sequence[PerformanceRecord]:
        if not months:
            return []
        placeholders, values = in_clause(list(months))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {', '.join(_COLUMNS)} FROM performance_records
                WHERE user_id=%s AND month IN ({placeholders})
                ORDER BY month
                """,
                (int(user_id),) + values,
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def save(self, record: PerformanceRecord) -> PerformanceRecord:
        columns = _COLUMNS[1:]
        updates = ", ".join(f"{c}=VALUES({c})" for c in columns[2:])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO performance_records({', '.join(columns)})
                VALUES({', '.join(['%s'] * len(columns))})
                ON DUPLICATE KEY UPDATE {updates}
                """,
                _record_values(record),
            )
            cur.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM performance_records WHERE user_id=%s AND month=%s",
                (int(record.user_id), record.month),
            )
            return _row_to_record(fetchone(cur))
