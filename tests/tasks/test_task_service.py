from __future__ import annotations

from datetime import date, timedelta

import pytest

from conftest import NOW
from src.staff_management.staff_management.alerts.service import AlertService
from src.staff_management.staff_management.core.enums import (
    AlertType,
    FinalVerificationStatus,
    TaskCategory,
    TaskPriority,
    TaskStatus,
    TaskVerificationStatus,
)
from src.staff_management.staff_management.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.staff_management.staff_management.tasks.reassignment import TaskReassigner
from src.staff_management.staff_management.tasks.service import TaskService

TODAY = NOW.date()


@pytest.fixture
def absent():
    return set()


@pytest.fixture
def service(tasks_repo, users_repo, profiles_repo, alerts_repo, absent, clock):
    alerts = AlertService(alerts_repo, users_repo, profiles_repo, clock=clock)
    reassigner = TaskReassigner(
        tasks_repo, users_repo, profiles_repo, absent_on=lambda _day: set(absent), clock=clock
    )
    return TaskService(tasks_repo, users_repo, profiles_repo, alerts, reassigner, clock=clock)


@pytest.fixture
def team(staff, profiles_repo):
    alice, bob = staff
    profiles_repo.add(alice.user_id)
    profiles_repo.add(bob.user_id)
    return alice, bob


def _payload(user_id, **overrides):
    payload = {
        "title": "Clean lab 2",
        "assigned_to": user_id,
        "date": TODAY.isoformat(),
        "category": "Cleaning",
        "location": "Block B",
    }
    payload.update(overrides)
    return payload


def test_create_task_notifies_assignee(service, team, alerts_repo):
    alice, _ = team

    result = service.create(_payload(alice.user_id, priority="high"), assigned_by=99)

    task = result["task"]
    assert result["message"] == "Task created successfully"
    assert task["assigned_to"] == alice.user_id
    assert task["priority"] == TaskPriority.HIGH
    assert task["estimated_duration"] == 60
    assert task["assigned_to_user"]["username"] == "alice"
    alerts = [a for a in alerts_repo.alerts.values() if a.type == AlertType.TASK_ASSIGNED]
    assert [a.user_id for a in alerts] == [alice.user_id]


def test_create_task_reassigns_when_assignee_absent(service, team, absent, tasks_repo):
    alice, bob = team
    absent.add(alice.user_id)

    result = service.create(_payload(alice.user_id), assigned_by=99)

    assert "automatically reassigned" in result["message"]
    assert result["reassignment_details"]["to"] == bob.user_id
    stored = tasks_repo.get_by_id(result["task"]["task_id"])
    assert stored.assigned_to == bob.user_id
    assert stored.original_assignee == alice.user_id


def test_create_task_without_reassignment(service, team, absent, tasks_repo):
    alice, _ = team
    absent.add(alice.user_id)

    result = service.create(_payload(alice.user_id), assigned_by=99, auto_reassign=False)

    assert tasks_repo.get_by_id(result["task"]["task_id"]).assigned_to == alice.user_id


def test_create_task_validation(service, team):
    alice, _ = team
    with pytest.raises(ValidationError):
        service.create(_payload(alice.user_id, location=""), assigned_by=1)
    with pytest.raises(ValidationError):
        service.create(_payload(alice.user_id, category="Gardening"), assigned_by=1)
    with pytest.raises(NotFoundError):
        service.create(_payload(404), assigned_by=1)


def test_bulk_create_reports_errors_per_item(service, team):
    alice, bob = team
    items = [_payload(alice.user_id), _payload(404), "nope", _payload(bob.user_id, title="Mop")]

    result = service.bulk_create(items, assigned_by=1)

    assert result["summary"] == {"total": 4, "created": 2, "failed": 2}
    assert [e["index"] for e in result["errors"]] == [1, 2]


def test_update_status_sets_and_clears_completion_time(service, team, tasks_repo):
    alice, bob = team
    task = tasks_repo.add("Mop", alice.user_id, TODAY, TaskCategory.CLEANING)

    done = service.update_status(task.task_id, user_id=alice.user_id, is_admin=False, status="completed")
    assert done["task"]["completed_at"] == NOW
    assert done["verification_summary"]["needs_verification"] is True

    service.update_status(task.task_id, user_id=alice.user_id, is_admin=False, status="in-progress")
    assert tasks_repo.get_by_id(task.task_id).completed_at is None

    with pytest.raises(AuthorizationError):
        service.update_status(task.task_id, user_id=bob.user_id, is_admin=False, status="completed")
    with pytest.raises(ValidationError):
        service.update_status(task.task_id, user_id=alice.user_id, is_admin=False, status="reassigned")


def test_rate_requires_completed_task(service, team, tasks_repo):
    alice, _ = team
    task = tasks_repo.add("Mop", alice.user_id, TODAY, TaskCategory.CLEANING)

    with pytest.raises(ValidationError):
        service.rate(task.task_id, rating=4, feedback=None, rated_by=9)

    tasks_repo.update_fields(task.task_id, {"status": TaskStatus.COMPLETED})
    view = service.rate(task.task_id, rating=4, feedback="Tidy", rated_by=9)
    assert view["rating"] == 4
    assert view["feedback"] == "Tidy"

    with pytest.raises(ValidationError):
        service.rate(task.task_id, rating=6, feedback=None, rated_by=9)


def test_verification_flow(service, team, tasks_repo):
    alice, bob = team
    task = tasks_repo.add("Mop", alice.user_id, TODAY, TaskCategory.CLEANING, status=TaskStatus.COMPLETED)

    assert [t["id"] for t in service.needs_verification()] == [task.task_id]

    service.assign_verifier(task.task_id, bob.user_id)
    assert service.needs_verification() == []
    with pytest.raises(ValidationError):
        service.assign_verifier(task.task_id, bob.user_id)

    with pytest.raises(AuthorizationError):
        service.submit_verification(task.task_id, user_id=alice.user_id, score=5, result="pass")

    result = service.submit_verification(task.task_id, user_id=bob.user_id, score=4, result="pass", notes="Good")
    assert result["final_status"] == FinalVerificationStatus.APPROVED
    assert tasks_repo.get_by_id(task.task_id).verification_status == TaskVerificationStatus.COMPLETED

    with pytest.raises(ValidationError):
        service.submit_verification(task.task_id, user_id=bob.user_id, score=4, result="pass")


def test_assign_verifier_requires_completed_task(service, team, tasks_repo):
    alice, bob = team
    task = tasks_repo.add("Mop", alice.user_id, TODAY, TaskCategory.CLEANING)
    with pytest.raises(ValidationError):
        service.assign_verifier(task.task_id, bob.user_id)


def test_submit_verification_rejects_unknown_result(service, team, tasks_repo):
    alice, bob = team
    task = tasks_repo.add("Mop", alice.user_id, TODAY, TaskCategory.CLEANING, status=TaskStatus.COMPLETED)
    service.assign_verifier(task.task_id, bob.user_id)
    with pytest.raises(ValidationError):
        service.submit_verification(task.task_id, user_id=bob.user_id, score=3, result="maybe")


def test_my_verification_tasks_flags_overdue(service, team, tasks_repo):
    alice, bob = team
    tasks_repo.add(
        "Old",
        alice.user_id,
        TODAY,
        TaskCategory.CLEANING,
        status=TaskStatus.COMPLETED,
        verifier_id=bob.user_id,
        verification_status=TaskVerificationStatus.PENDING_VERIFICATION,
        verification_assigned_at=NOW - timedelta(hours=30),
    )

    result = service.my_verification_tasks(bob.user_id)

    assert result["summary"] == {"pending": 1, "completed": 0, "overdue": 1}
    assert result["tasks"][0]["is_overdue"] is True


def test_today_groups_by_status(service, team, tasks_repo):
    alice, _ = team
    tasks_repo.add("A", alice.user_id, TODAY, TaskCategory.CLEANING, status=TaskStatus.COMPLETED)
    tasks_repo.add("B", alice.user_id, TODAY, TaskCategory.CLEANING)
    tasks_repo.add("C", alice.user_id, TODAY - timedelta(days=1), TaskCategory.CLEANING)

    result = service.today(alice.user_id)

    assert result["stats"]["total"] == 2
    assert result["stats"]["completion_rate"] == 50
    assert len(result["tasks_by_status"]["completed"]) == 1


def test_upcoming_excludes_today_and_closed_tasks(service, team, tasks_repo):
    alice, _ = team
    tasks_repo.add("Today", alice.user_id, TODAY, TaskCategory.CLEANING)
    tasks_repo.add("Tomorrow", alice.user_id, TODAY + timedelta(days=1), TaskCategory.CLEANING)
    tasks_repo.add("Done", alice.user_id, TODAY + timedelta(days=2), TaskCategory.CLEANING, status=TaskStatus.COMPLETED)
    tasks_repo.add("Far", alice.user_id, TODAY + timedelta(days=30), TaskCategory.CLEANING)

    result = service.upcoming(alice.user_id, 7)

    assert [t["title"] for t in result["tasks"]] == ["Tomorrow"]
    assert list(result["tasks_by_date"]) == [(TODAY + timedelta(days=1)).isoformat()]


def test_my_tasks_orders_by_priority_within_a_day(service, team, tasks_repo):
    alice, _ = team
    tasks_repo.add("Low", alice.user_id, TODAY, TaskCategory.CLEANING, priority=TaskPriority.LOW)
    tasks_repo.add("Urgent", alice.user_id, TODAY, TaskCategory.CLEANING, priority=TaskPriority.URGENT)

    result = service.my_tasks(alice.user_id, {})

    assert [t["title"] for t in result["tasks"]] == ["Urgent", "Low"]


def test_get_task_checks_ownership(service, team, tasks_repo):
    alice, bob = team
    task = tasks_repo.add("Mop", alice.user_id, TODAY, TaskCategory.CLEANING)
    assert service.get_task(task.task_id, user_id=bob.user_id, is_admin=True)["title"] == "Mop"
    with pytest.raises(AuthorizationError):
        service.get_task(task.task_id, user_id=bob.user_id, is_admin=False)


def test_categories_include_defaults(service):
    assert "Cleaning" in service.categories()
    assert "Emergency Response" in service.categories()


def test_admin_today_summary_counts(service, team, tasks_repo):
    alice, bob = team
    tasks_repo.add("A", alice.user_id, TODAY, TaskCategory.CLEANING, priority=TaskPriority.URGENT)
    tasks_repo.add("B", bob.user_id, TODAY, TaskCategory.MAINTENANCE, status=TaskStatus.COMPLETED)

    result = service.admin_today_summary()

    assert result["summary"]["total"] == 2
    assert result["summary"]["high_priority"] == 1
    assert result["summary"]["overdue"] == 0
    assert result["tasks_by_user"][str(alice.user_id)]["username"] == "alice"


def test_check_reassignments_requires_date(service):
    with pytest.raises(ValidationError):
        service.check_reassignments(None)


def test_check_reassignments_summary(service, team, tasks_repo, absent):
    alice, _ = team
    absent.add(alice.user_id)
    tasks_repo.add("Mop", alice.user_id, date(2025, 3, 11), TaskCategory.CLEANING)

    result = service.check_reassignments("2025-03-11")

    assert result["summary"]["total"] == 1
    assert result["summary"]["successful"] == 1
