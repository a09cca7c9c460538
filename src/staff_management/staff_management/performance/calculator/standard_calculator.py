from __future__ import annotations

from ...common.rounding import round_half_up
from ...core.constants import ATTENDANCE_WEIGHT, PUNCTUALITY_WEIGHT, TASK_WEIGHT
from ...core.enums import Grade, PerformanceLevel
from ..model import PerformanceMetrics
from .base import PerformanceCalculator

GRADE_THRESHOLDS = (
    (95, Grade.A_PLUS),
    (90, Grade.A),
    (80, Grade.B),
    (70, Grade.C),
    (60, Grade.D),
)

LEVEL_THRESHOLDS = (
    (90, PerformanceLevel.EXCELLENT),
    (80, PerformanceLevel.GOOD),
    (70, PerformanceLevel.SATISFACTORY),
    (60, PerformanceLevel.NEEDS_IMPROVEMENT),
)


class StandardPerformanceCalculator(PerformanceCalculator):
    """Standard rule: 40% attendance, 40% task completion, 20% punctuality."""

    def overall_score(self, metrics: PerformanceMetrics) -> int:
        return round_half_up(
            metrics.attendance_score * ATTENDANCE_WEIGHT
            + metrics.task_completion_rate * TASK_WEIGHT
            + metrics.punctuality_score * PUNCTUALITY_WEIGHT
        )

    def grade(self, score: int) -> Grade:
        for floor, grade in GRADE_THRESHOLDS:
            if score >= floor:
                return grade
        return Grade.F

    def level(self, score: int) -> PerformanceLevel:
        for floor, level in LEVEL_THRESHOLDS:
            if score >= floor:
                return level
        return PerformanceLevel.POOR
