from datetime import date

from src.staff_management.staff_management.attendance.model import AttendanceRecord
from src.staff_management.staff_management.core.enums import (
    AttendanceStatus,
    Grade,
    PerformanceLevel,
    PerformanceStatus,
    ShiftType,
    TaskCategory,
    TaskStatus,
    Trend,
)
from src.staff_management.staff_management.performance.calculator.standard_calculator import (
    StandardPerformanceCalculator,
)
from src.staff_management.staff_management.performance.metrics import compute_metrics
from src.staff_management.staff_management.performance.model import PerformanceMetrics, PerformanceRecord
from src.staff_management.staff_management.shifts.model import Schedule
from src.staff_management.staff_management.tasks.model import Task


def _record(**metrics):
    return PerformanceRecord(user_id=1, month="2025-03", metrics=PerformanceMetrics(**metrics))


def test_weighted_score_and_grade():
    calc = StandardPerformanceCalculator()

    record = calc.evaluate(_record(attendance_score=80, task_completion_rate=70, punctuality_score=90))

    assert record.overall_score == 78
    assert record.grade == Grade.C
    assert record.performance_level == PerformanceLevel.SATISFACTORY
    assert record.status == PerformanceStatus.FINALIZED
    assert record.alert_flags.task_delay is True
    assert record.alert_flags.attendance_issue is False
    assert record.alert_flags.low_performance is False


def test_grade_boundaries():
    calc = StandardPerformanceCalculator()
    assert calc.grade(95) == Grade.A_PLUS
    assert calc.grade(94) == Grade.A
    assert calc.grade(80) == Grade.B
    assert calc.grade(60) == Grade.D
    assert calc.grade(59) == Grade.F
    assert calc.level(90) == PerformanceLevel.EXCELLENT
    assert calc.level(59) == PerformanceLevel.POOR


def test_low_score_needs_attention():
    calc = StandardPerformanceCalculator()

    record = calc.evaluate(_record(attendance_score=40, task_completion_rate=40, punctuality_score=50))

    assert record.overall_score == 42
    assert record.status == PerformanceStatus.NEEDS_ATTENTION
    assert record.alert_flags.improvement_required is True


def test_warnings_push_status_to_needs_attention():
    calc = StandardPerformanceCalculator()
    warned = PerformanceRecord(
        user_id=1,
        month="2025-03",
        metrics=PerformanceMetrics(attendance_score=100, task_completion_rate=100, punctuality_score=100),
        warnings_count=2,
    )

    record = calc.evaluate(warned)

    assert record.overall_score == 100
    assert record.status == PerformanceStatus.NEEDS_ATTENTION
    assert record.alert_flags.improvement_required is True


def test_trends_compare_with_previous_month():
    calc = StandardPerformanceCalculator()
    previous = calc.evaluate(_record(attendance_score=70, task_completion_rate=80, punctuality_score=100))
    current = calc.evaluate(_record(attendance_score=80, task_completion_rate=80, punctuality_score=90))

    record = calc.with_trends(current, previous)

    assert record.trend.attendance == Trend.IMPROVING
    assert record.trend.tasks == Trend.STABLE
    assert record.trend.punctuality == Trend.DECLINING
    assert record.previous_month_comparison.attendance_change == 10
    assert record.previous_month_comparison.punctuality_change == -10
    assert calc.with_trends(current, None) is current


def test_compute_metrics_uses_schedules_as_work_days():
    day = date(2025, 3, 3)
    attendance = [
        AttendanceRecord(attendance_id=1, user_id=1, work_date=day, status=AttendanceStatus.PRESENT, working_minutes=480),
        AttendanceRecord(attendance_id=2, user_id=1, work_date=date(2025, 3, 4), status=AttendanceStatus.LATE, working_minutes=420),
        AttendanceRecord(attendance_id=3, user_id=1, work_date=date(2025, 3, 5), status=AttendanceStatus.ABSENT),
    ]
    schedules = [
        Schedule(schedule_id=i, user_id=1, work_date=date(2025, 3, i), shift=ShiftType.MORNING,
                 start_time="09:00", end_time="17:00", department="Cleaning Staff")
        for i in range(3, 7)
    ]
    tasks = [
        Task(task_id=1, title="A", assigned_to=1, task_date=day, category=TaskCategory.CLEANING, location="X",
             status=TaskStatus.COMPLETED, rating=4),
        Task(task_id=2, title="B", assigned_to=1, task_date=day, category=TaskCategory.CLEANING, location="X",
             status=TaskStatus.COMPLETED, rating=5),
        Task(task_id=3, title="C", assigned_to=1, task_date=day, category=TaskCategory.CLEANING, location="X"),
    ]

    metrics = compute_metrics(attendance, tasks, schedules)

    assert metrics.total_work_days == 4
    assert metrics.present_days == 2
    assert metrics.attendance_score == 50
    assert metrics.punctuality_score == 75
    assert metrics.late_arrivals == 1
    assert metrics.absences == 1
    assert metrics.total_working_hours == 15.0
    assert metrics.task_completion_rate == 67
    assert metrics.average_task_rating == 4.5
    assert metrics.pending_tasks == 1


def test_compute_metrics_without_data():
    metrics = compute_metrics([], [], [])
    assert metrics.attendance_score == 0
    assert metrics.punctuality_score == 100
    assert metrics.task_completion_rate == 0


def test_compute_metrics_rounds_halves_up():
    attendance = [
        AttendanceRecord(attendance_id=1, user_id=1, work_date=date(2025, 3, 3), status=AttendanceStatus.LATE)
    ] + [
        AttendanceRecord(attendance_id=i, user_id=1, work_date=date(2025, 3, i + 2), status=AttendanceStatus.ABSENT)
        for i in range(2, 9)
    ]

    metrics = compute_metrics(attendance, [], [])

    assert metrics.total_work_days == 8
    assert metrics.attendance_score == 13
    assert metrics.punctuality_score == 88
