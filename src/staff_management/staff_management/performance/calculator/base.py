from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional

from ...common.rounding import round_half_up
from ...core.constants import TREND_THRESHOLD
from ...core.enums import Grade, PerformanceLevel, PerformanceStatus, Trend
from ..model import AlertFlags, MonthComparison, PerformanceMetrics, PerformanceRecord, TrendSet


def trend_of(diff: float) -> Trend:
    if diff > TREND_THRESHOLD:
        return Trend.IMPROVING
    if diff < -TREND_THRESHOLD:
        return Trend.DECLINING
    return Trend.STABLE


class PerformanceCalculator(ABC):
    """Calculator interface (Strategy Pattern for performance scoring).

    Subclasses decide how metrics become a score, grade and level; flags,
    status and trends follow the same rules for every strategy.
    """

    @abstractmethod
    def overall_score(self, metrics: PerformanceMetrics) -> int:
        raise NotImplementedError

    @abstractmethod
    def grade(self, score: int) -> Grade:
        raise NotImplementedError

    @abstractmethod
    def level(self, score: int) -> PerformanceLevel:
        raise NotImplementedError

    def alert_flags(self, record: PerformanceRecord, score: int) -> AlertFlags:
        return AlertFlags(
            low_performance=score < 70,
            attendance_issue=record.metrics.attendance_score < 80,
            task_delay=record.metrics.task_completion_rate < 75,
            improvement_required=score < 60 or record.warnings_count > 0,
            review_due=record.alert_flags.review_due,
        )

    def next_status(self, record: PerformanceRecord, score: int) -> PerformanceStatus:
        if score < 50 or record.warnings_count >= 2:
            return PerformanceStatus.NEEDS_ATTENTION
        if record.status == PerformanceStatus.DRAFT and score > 0:
            return PerformanceStatus.FINALIZED
        return record.status

    def evaluate(self, record: PerformanceRecord) -> PerformanceRecord:
        """Refresh every derived field of ``record`` from its metrics and warnings."""
        score = self.overall_score(record.metrics)
        return replace(
            record,
            overall_score=score,
            grade=self.grade(score),
            performance_level=self.level(score),
            alert_flags=self.alert_flags(record, score),
            status=self.next_status(record, score),
        )

    def with_trends(self, record: PerformanceRecord, previous: Optional[PerformanceRecord]) -> PerformanceRecord:
        if previous is None:
            return record
        current, before = record.metrics, previous.metrics
        attendance = current.attendance_score - before.attendance_score
        tasks = current.task_completion_rate - before.task_completion_rate
        punctuality = current.punctuality_score - before.punctuality_score
        overall = record.overall_score - previous.overall_score
        return replace(
            record,
            trend=TrendSet(
                attendance=trend_of(attendance),
                tasks=trend_of(tasks),
                punctuality=trend_of(punctuality),
                overall=trend_of(overall),
            ),
            previous_month_comparison=MonthComparison(
                attendance_change=round_half_up(attendance, 1),
                task_change=round_half_up(tasks, 1),
                punctuality_change=round_half_up(punctuality, 1),
                overall_change=round_half_up(overall, 1),
            ),
        )
