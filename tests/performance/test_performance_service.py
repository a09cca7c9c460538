from __future__ import annotations

from datetime import date

import pytest

from src.staff_management.staff_management.alerts.service import AlertService
from src.staff_management.staff_management.core.enums import (
    AlertType,
    AttendanceStatus,
    DisciplinaryType,
    Grade,
    PerformanceStatus,
    TaskCategory,
    TaskStatus,
    WarningLevel,
)
from src.staff_management.staff_management.core.exceptions import NotFoundError, ValidationError
from src.staff_management.staff_management.performance.model import PerformanceMetrics, PerformanceRecord
from src.staff_management.staff_management.performance.service import PerformanceService

MONTH = "2025-03"


@pytest.fixture
def service(
    performance_repo, users_repo, profiles_repo, attendance_repo, tasks_repo, schedules_repo, alerts_repo, mailer, clock
):
    alerts = AlertService(alerts_repo, users_repo, profiles_repo, clock=clock)
    return PerformanceService(
        performance_repo,
        users_repo,
        profiles_repo,
        attendance_repo,
        tasks_repo,
        schedules_repo,
        alerts,
        mailer,
        clock=clock,
    )


@pytest.fixture
def perfect_alice(staff, profiles_repo, attendance_repo, tasks_repo, schedules_repo):
    """Alice worked every scheduled day in March and finished all her tasks."""
    alice, bob = staff
    profiles_repo.add(alice.user_id, name="Alice A")
    profiles_repo.add(bob.user_id, name="Bob B")
    for day in (3, 4, 5, 6):
        work_date = date(2025, 3, day)
        schedules_repo.add(alice.user_id, work_date)
        attendance_repo.add(alice.user_id, work_date, AttendanceStatus.PRESENT, working_minutes=480)
    tasks_repo.add("Mop", alice.user_id, date(2025, 3, 3), TaskCategory.CLEANING, status=TaskStatus.COMPLETED)
    tasks_repo.add("Dust", alice.user_id, date(2025, 3, 4), TaskCategory.CLEANING, status=TaskStatus.COMPLETED)
    return alice


def test_my_performance_scores_current_month(service, perfect_alice):
    result = service.my_performance(perfect_alice.user_id)

    performance = result["performance"]
    assert performance["month"] == MONTH
    assert performance["overall_score"] == 100
    assert performance["grade"] == Grade.A_PLUS
    assert performance["total_working_hours"] == 32.0
    assert result["user_info"]["name"] == "Alice A"
    assert [h["month"] for h in result["performance_history"]] == [
        "2025-02",
        "2025-01",
        "2024-12",
        "2024-11",
        "2024-10",
    ]


def test_calculate_keeps_single_record_per_month(service, perfect_alice, performance_repo):
    first = service.calculate(perfect_alice.user_id, MONTH)
    second = service.calculate(perfect_alice.user_id, MONTH)

    assert first.record_id == second.record_id
    assert len(performance_repo.records) == 1
    assert second.status == PerformanceStatus.FINALIZED


def test_calculate_compares_with_previous_month(service, perfect_alice, performance_repo):
    performance_repo.save(
        PerformanceRecord(
            user_id=perfect_alice.user_id,
            month="2025-02",
            metrics=PerformanceMetrics(attendance_score=80, task_completion_rate=100, punctuality_score=100),
            overall_score=92,
        )
    )

    record = service.calculate(perfect_alice.user_id, MONTH)

    assert record.previous_month_comparison.attendance_change == 20
    assert record.trend.attendance.value == "improving"
    assert record.trend.overall.value == "improving"


def test_recalculate_with_auto_warnings(service, perfect_alice, staff, alerts_repo, mailer, performance_repo):
    _, bob = staff

    result = service.recalculate({"month": MONTH, "auto_warnings": True}, admin_id=9)

    assert result["message"] == "Performance recalculated for 2 users"
    assert result["warnings_created"] == 1
    bob_row = next(r for r in result["results"] if r["user_id"] == bob.user_id)
    assert bob_row["warning_result"]["warning_level"] == WarningLevel.FIRST_WARNING
    assert bob_row["warning_result"]["reason"].startswith("Overall performance critically low")

    record = performance_repo.get(bob.user_id, MONTH)
    assert record.warnings_count == 1
    assert record.disciplinary_actions[0].type == DisciplinaryType.VERBAL_WARNING
    assert record.disciplinary_actions[0].issued_by == 9

    reviews = [a for a in alerts_repo.alerts.values() if a.type == AlertType.PERFORMANCE_REVIEW]
    assert [a.user_id for a in reviews] == [bob.user_id]
    assert mailer.outbox[-1][1] == "Performance Warning - FIRST WARNING"


def test_recalculate_single_user(service, perfect_alice):
    result = service.recalculate({"month": MONTH, "user_id": perfect_alice.user_id}, admin_id=9)
    assert [r["username"] for r in result["results"]] == ["alice"]
    assert result["results"][0]["warning_result"] is None


def test_auto_check_dry_run_does_not_warn(service, staff, performance_repo):
    alice, _ = staff
    performance_repo.save(
        PerformanceRecord(
            user_id=alice.user_id,
            month=MONTH,
            metrics=PerformanceMetrics(attendance_score=65, task_completion_rate=90, punctuality_score=90),
            overall_score=75,
            status=PerformanceStatus.FINALIZED,
        )
    )

    result = service.auto_check_warnings({"month": MONTH, "dry_run": True}, admin_id=9)

    assert result["summary"]["warnings_needed"] == 1
    assert result["summary"]["warnings_created"] == 0
    assert result["results"][0]["action"] == "would_warn"
    assert performance_repo.get(alice.user_id, MONTH).warnings_count == 0

    live = service.auto_check_warnings({"month": MONTH}, admin_id=9)
    assert live["summary"]["warnings_created"] == 1
    assert performance_repo.get(alice.user_id, MONTH).warnings_count == 1


def test_create_and_acknowledge_warning(service, perfect_alice, mailer):
    service.calculate(perfect_alice.user_id, MONTH)

    action = service.create_warning(
        {"user_id": perfect_alice.user_id, "month": MONTH, "type": "written_warning", "reason": "Left early"},
        admin_id=9,
    )

    assert mailer.outbox[-1][1] == "Disciplinary Action - WRITTEN WARNING"
    warnings = service.my_warnings(perfect_alice.user_id, month=MONTH)
    assert warnings["warnings_count"] == 1
    assert warnings["warning_level"] == WarningLevel.FIRST_WARNING

    service.acknowledge_warning(
        perfect_alice.user_id, {"month": MONTH, "warning_id": action.action_id, "comments": "Noted"}
    )
    acknowledged = service.my_warnings(perfect_alice.user_id, month=MONTH)["disciplinary_actions"][0]
    assert acknowledged.acknowledged_by_employee is True
    assert acknowledged.employee_comments == "Noted"


def test_my_warnings_without_record(service, staff):
    result = service.my_warnings(staff[0].user_id)
    assert result["month"] == MONTH
    assert result["warnings_count"] == 0
    assert result["disciplinary_actions"] == []


def test_follow_up_requires_existing_record(service, staff):
    alice, _ = staff
    with pytest.raises(ValidationError):
        service.add_achievement({"user_id": alice.user_id, "month": MONTH}, admin_id=9)
    with pytest.raises(NotFoundError):
        service.add_achievement({"user_id": alice.user_id, "month": MONTH, "title": "Star"}, admin_id=9)


def test_hr_follow_up_items(service, perfect_alice, performance_repo):
    service.calculate(perfect_alice.user_id, MONTH)
    base = {"user_id": perfect_alice.user_id, "month": MONTH}

    achievement = service.add_achievement({**base, "title": "Spotless", "points": 10}, admin_id=9)
    area = service.add_improvement_area({**base, "area": "Speed", "target_date": "2025-04-30"}, admin_id=9)
    goal = service.add_goal({**base, "title": "No late days", "target": "100"}, admin_id=9)
    issue = service.add_issue({**base, "category": "punctuality", "description": "Late twice"}, admin_id=9)
    resolved = service.resolve_issue({**base, "issue_id": issue.issue_id, "resolution_notes": "Fixed"})
    plan = service.create_improvement_plan(
        {**base, "objectives": [{"description": "Arrive by 9"}], "duration": 3}, admin_id=9
    )

    record = performance_repo.get(perfect_alice.user_id, MONTH)
    assert record.achievements[0].achievement_id == achievement.achievement_id
    assert record.achievements[0].points == 10
    assert record.improvement_areas[0].target_date == date(2025, 4, 30)
    assert record.goals[0].target == 100.0
    assert resolved.resolved is True
    assert record.active_issues_count == 0
    assert plan.end_date == date(2025, 6, 10)
    assert plan.objectives[0].target_date == date(2025, 6, 10)
    assert record.improvement_plan == plan
    assert area.area == "Speed"
    assert goal.set_by == 9


@pytest.mark.parametrize(
    "call, extra",
    [
        ("add_achievement", {"title": "Star", "points": "lots"}),
        ("add_goal", {"title": "Faster", "target": ["fast"]}),
        ("create_improvement_plan", {"objectives": [{"description": "x"}], "duration": {"months": 2}}),
        ("add_achievement", {"title": "Star", "user_id": "alice"}),
    ],
)
def test_follow_up_rejects_wrong_value_types(service, perfect_alice, call, extra):
    service.calculate(perfect_alice.user_id, MONTH)
    payload = {"user_id": perfect_alice.user_id, "month": MONTH, **extra}

    with pytest.raises(ValidationError):
        getattr(service, call)(payload, admin_id=9)


def test_improvement_plan_needs_objectives(service, perfect_alice):
    with pytest.raises(ValidationError):
        service.create_improvement_plan({"user_id": perfect_alice.user_id, "month": MONTH}, admin_id=9)


def test_admin_views(service, perfect_alice, staff):
    _, bob = staff
    service.recalculate({"month": MONTH}, admin_id=9)

    departments = service.departments(month=MONTH)
    assert departments["departments"][0]["department"] == "Cleaning Staff"
    assert departments["departments"][0]["employee_count"] == 1

    attention = service.needing_attention(month=MONTH)
    assert [e["user_id"] for e in attention["employees"]] == [bob.user_id]
    assert attention["summary"]["poor_performance"] == 1

    overview = service.analytics(month=MONTH)
    assert overview["analytics"]["excellent_performers"] == 1
    assert overview["summary"]["employees_needing_attention"] == 1
    assert overview["summary"]["total_low_performers"] == 1

    listing = service.admin_all_users({"month": MONTH, "department": "Cleaning Staff"}, admin_id=9)
    assert listing["summary"]["total_users"] == 2
    assert listing["summary"]["excellent_performers"] == 1

    detail = service.admin_user(bob.user_id, month=MONTH, admin_id=9)
    assert detail["user_info"]["name"] == "Bob B"
    with pytest.raises(NotFoundError):
        service.admin_user(404, admin_id=9)
