from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple

from ..common.rounding import round_half_up
from ..core.enums import (
    AchievementCategory,
    DisciplinaryType,
    Grade,
    GoalCategory,
    GoalPriority,
    GoalStatus,
    ImprovementPriority,
    ImprovementProgress,
    PerformanceIssueCategory,
    PerformanceIssueSeverity,
    PerformanceLevel,
    PerformanceStatus,
    RiskLevel,
    Trend,
    WarningLevel,
)


@dataclass(frozen=True)
class PerformanceMetrics:
    """Raw monthly figures gathered from attendance, tasks and schedules."""

    attendance_score: int = 0
    punctuality_score: int = 100
    total_working_hours: float = 0
    late_arrivals: int = 0
    absences: int = 0
    approved_leaves: int = 0
    total_work_days: int = 0
    present_days: int = 0
    task_completion_rate: int = 0
    average_task_rating: float = 0
    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    in_progress_tasks: int = 0
    cancelled_tasks: int = 0


@dataclass(frozen=True)
class AlertFlags:
    low_performance: bool = False
    attendance_issue: bool = False
    task_delay: bool = False
    improvement_required: bool = False
    review_due: bool = False


@dataclass(frozen=True)
class TrendSet:
    attendance: Trend = Trend.STABLE
    tasks: Trend = Trend.STABLE
    punctuality: Trend = Trend.STABLE
    overall: Trend = Trend.STABLE


@dataclass(frozen=True)
class MonthComparison:
    attendance_change: float
    task_change: float
    punctuality_change: float
    overall_change: float


@dataclass(frozen=True)
class DisciplinaryAction:
    action_id: str
    type: DisciplinaryType
    reason: str
    issued_by: Optional[int]
    effective_date: datetime
    description: str = ""
    expiry_date: Optional[date] = None
    is_active: bool = True
    acknowledged_by_employee: bool = False
    acknowledged_at: Optional[datetime] = None
    employee_comments: Optional[str] = None


@dataclass(frozen=True)
class Achievement:
    achievement_id: str
    title: str
    awarded_at: datetime
    description: str = ""
    category: AchievementCategory = AchievementCategory.PERFORMANCE
    points: int = 0
    added_by: Optional[int] = None


@dataclass(frozen=True)
class ImprovementArea:
    area_id: str
    area: str
    added_at: datetime
    description: str = ""
    priority: ImprovementPriority = ImprovementPriority.MEDIUM
    target_date: Optional[date] = None
    progress: ImprovementProgress = ImprovementProgress.NOT_STARTED
    added_by: Optional[int] = None


@dataclass(frozen=True)
class PerformanceIssue:
    issue_id: str
    category: PerformanceIssueCategory
    description: str
    reported_at: datetime
    severity: PerformanceIssueSeverity = PerformanceIssueSeverity.MODERATE
    reported_by: Optional[int] = None
    resolved: bool = False
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None


@dataclass(frozen=True)
class Goal:
    goal_id: str
    title: str
    set_at: datetime
    description: str = ""
    category: GoalCategory = GoalCategory.PRODUCTIVITY
    target: Optional[float] = None
    current_progress: float = 0
    deadline: Optional[date] = None
    status: GoalStatus = GoalStatus.NOT_STARTED
    priority: GoalPriority = GoalPriority.MEDIUM
    set_by: Optional[int] = None


@dataclass(frozen=True)
class PlanObjective:
    description: str
    target_date: date
    completed: bool = False


@dataclass(frozen=True)
class ImprovementPlan:
    is_active: bool
    start_date: date
    end_date: date
    objectives: Tuple[PlanObjective, ...] = ()
    created_by: Optional[int] = None


@dataclass(frozen=True)
class PerformanceRecord:
    """Stored monthly evaluation of one staff member.

    Note: Derived fields (score, grade, level, flags, status) are refreshed by
    ``PerformanceCalculator.evaluate`` whenever metrics or warnings change.
    """

    user_id: int
    month: str
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    record_id: Optional[int] = None
    overall_score: int = 0
    grade: Grade = Grade.F
    performance_level: PerformanceLevel = PerformanceLevel.POOR
    status: PerformanceStatus = PerformanceStatus.DRAFT
    warnings_count: int = 0
    warning_level: WarningLevel = WarningLevel.NONE
    has_active_warnings: bool = False
    last_warning_date: Optional[datetime] = None
    alert_flags: AlertFlags = field(default_factory=AlertFlags)
    trend: TrendSet = field(default_factory=TrendSet)
    previous_month_comparison: Optional[MonthComparison] = None
    disciplinary_actions: Tuple[DisciplinaryAction, ...] = ()
    achievements: Tuple[Achievement, ...] = ()
    improvement_areas: Tuple[ImprovementArea, ...] = ()
    performance_issues: Tuple[PerformanceIssue, ...] = ()
    goals: Tuple[Goal, ...] = ()
    improvement_plan: Optional[ImprovementPlan] = None
    calculated_at: Optional[datetime] = None
    calculated_by: Optional[int] = None

    @property
    def risk_level(self) -> RiskLevel:
        score, warnings = self.overall_score, self.warnings_count
        if score < 50 or warnings >= 3:
            return RiskLevel.HIGH
        if score < 70 or warnings >= 2:
            return RiskLevel.MEDIUM
        if score < 85 or warnings >= 1:
            return RiskLevel.LOW
        return RiskLevel.NONE

    @property
    def active_issues_count(self) -> int:
        return sum(1 for issue in self.performance_issues if not issue.resolved)

    @property
    def goals_completion_rate(self) -> int:
        if not self.goals:
            return 0
        done = sum(1 for goal in self.goals if goal.status == GoalStatus.COMPLETED)
        return round_half_up(done / len(self.goals) * 100)

    @property
    def needs_attention(self) -> bool:
        return (
            self.has_active_warnings
            or self.overall_score < 60
            or self.status == PerformanceStatus.NEEDS_ATTENTION
            or self.alert_flags.improvement_required
        )

    def summary(self) -> dict:
        return {
            "user_id": self.user_id,
            "month": self.month,
            "overall_score": self.overall_score,
            "grade": self.grade,
            "performance_level": self.performance_level,
            "attendance_score": self.metrics.attendance_score,
            "task_completion_rate": self.metrics.task_completion_rate,
            "punctuality_score": self.metrics.punctuality_score,
            "has_active_warnings": self.has_active_warnings,
            "warning_level": self.warning_level,
            "warnings_count": self.warnings_count,
            "active_issues_count": self.active_issues_count,
            "goals_completion_rate": self.goals_completion_rate,
            "risk_level": self.risk_level,
            "status": self.status,
        }
