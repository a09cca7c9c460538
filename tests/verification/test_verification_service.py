from __future__ import annotations

import random
from datetime import timedelta

import pytest

from conftest import NOW
from src.staff_management.staff_management.core.enums import (
    TaskCategory,
    TaskPriority,
    TaskStatus,
    VerificationResult,
    VerificationTaskStatus,
)
from src.staff_management.staff_management.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.staff_management.staff_management.verification.service import VerificationService


@pytest.fixture
def clock_box():
    return {"now": NOW}


@pytest.fixture
def service(teams_repo, verifications_repo, tasks_repo, users_repo, clock_box):
    return VerificationService(
        teams_repo,
        verifications_repo,
        tasks_repo,
        users_repo,
        clock=lambda: clock_box["now"],
        rng=random.Random(7),
    )


@pytest.fixture
def members(users_repo):
    return [users_repo.add(name) for name in ("ann", "ben", "cat")]


@pytest.fixture
def team(service, members):
    return service.create_team({"team_name": "Night Owls", "member_ids": [m.user_id for m in members]}, created_by=1)


@pytest.fixture
def done_task(tasks_repo, users_repo):
    worker = users_repo.add("worker")
    return tasks_repo.add(
        "Clean lab", worker.user_id, NOW.date(), TaskCategory.CLEANING, status=TaskStatus.COMPLETED, location="Lab 2"
    )


def test_create_team_assigns_code(team, members):
    assert team["team_name"] == "Night Owls"
    assert team["team_code"].startswith("ST") and len(team["team_code"]) == 5
    assert [m["username"] for m in team["members"]] == ["ann", "ben", "cat"]


def test_create_team_needs_three_distinct_known_users(service, members):
    ids = [m.user_id for m in members]
    with pytest.raises(ValidationError):
        service.create_team({"team_name": "Two", "member_ids": ids[:2]}, created_by=1)
    with pytest.raises(ValidationError):
        service.create_team({"team_name": "Dupes", "member_ids": [ids[0], ids[0], ids[1]]}, created_by=1)
    with pytest.raises(ValidationError):
        service.create_team({"team_name": "Ghost", "member_ids": [ids[0], ids[1], 999]}, created_by=1)


def test_member_cannot_join_two_active_teams(service, team, members, users_repo):
    extra = [users_repo.add(n).user_id for n in ("dan", "eve")]
    with pytest.raises(ValidationError):
        service.create_team({"team_name": "Second", "member_ids": [members[0].user_id] + extra}, created_by=1)


def test_assign_sends_task_to_team_member(service, team, done_task, members, verifications_repo):
    result = service.assign(done_task.task_id)

    assert result["team_code"] == team["team_code"]
    assert result["deadline"] == NOW + timedelta(hours=24)
    stored = verifications_repo.get_by_id(result["id"])
    assert stored.assigned_verifier in {m.user_id for m in members}
    assert stored.location == "Lab 2"
    assert stored.priority == TaskPriority.MEDIUM


def test_assign_prefers_least_loaded_team(service, team, members, users_repo, tasks_repo, verifications_repo):
    others = [users_repo.add(n).user_id for n in ("dan", "eve", "fay")]
    second = service.create_team({"team_name": "Early Birds", "member_ids": others}, created_by=1)
    worker = users_repo.add("worker")
    first_task = tasks_repo.add("A", worker.user_id, NOW.date(), TaskCategory.CLEANING, status=TaskStatus.COMPLETED)
    second_task = tasks_repo.add("B", worker.user_id, NOW.date(), TaskCategory.CLEANING, status=TaskStatus.COMPLETED)

    first = service.assign(first_task.task_id)
    following = service.assign(second_task.task_id)

    assert {first["team_code"], following["team_code"]} == {team["team_code"], second["team_code"]}


def test_assign_rules(service, done_task, tasks_repo, users_repo):
    with pytest.raises(ValidationError):
        service.assign(done_task.task_id)

    service.create_team(
        {"team_name": "Late", "member_ids": [users_repo.add(n).user_id for n in ("x1", "x2", "x3")]},
        created_by=None,
    )
    open_task = tasks_repo.add("Open", done_task.assigned_to, NOW.date(), TaskCategory.CLEANING)
    with pytest.raises(ValidationError):
        service.assign(open_task.task_id)

    service.assign(done_task.task_id)
    with pytest.raises(ValidationError):
        service.assign(done_task.task_id)


def test_urgent_task_keeps_urgent_priority(service, team, tasks_repo, done_task, verifications_repo):
    urgent = tasks_repo.add(
        "Spill",
        done_task.assigned_to,
        NOW.date(),
        TaskCategory.EMERGENCY_RESPONSE,
        status=TaskStatus.COMPLETED,
        priority=TaskPriority.URGENT,
    )
    result = service.assign(urgent.task_id)
    assert verifications_repo.get_by_id(result["id"]).priority == TaskPriority.URGENT


def test_submit_report_by_assigned_verifier(service, team, done_task, verifications_repo, members):
    verification_id = service.assign(done_task.task_id)["id"]
    verifier = verifications_repo.get_by_id(verification_id).assigned_verifier
    outsider = next(m.user_id for m in members if m.user_id != verifier)
    report = {"cleanliness": 4, "completeness": 3, "quality": 2}

    with pytest.raises(AuthorizationError):
        service.submit(verification_id, user_id=outsider, payload=report)

    result = service.submit(verification_id, user_id=verifier, payload=report)

    assert result["overall_score"] == 3.0
    assert result["verification_result"] == VerificationResult.RECHECK
    assert verifications_repo.get_by_id(verification_id).status == VerificationTaskStatus.COMPLETED
    with pytest.raises(ValidationError):
        service.submit(verification_id, user_id=verifier, payload=report)


def test_submit_unknown_verification(service):
    with pytest.raises(NotFoundError):
        service.submit(42, user_id=1, payload={"cleanliness": 4, "completeness": 4, "quality": 4})


def test_my_tasks_for_non_member(service, users_repo):
    outsider = users_repo.add("outsider")
    assert service.my_tasks(outsider.user_id)["is_verifier"] is False


def test_overdue_is_computed_from_deadline(service, team, done_task, verifications_repo, clock_box):
    verification_id = service.assign(done_task.task_id)["id"]
    verifier = verifications_repo.get_by_id(verification_id).assigned_verifier

    clock_box["now"] = NOW + timedelta(hours=27)

    overdue = service.overdue()
    assert overdue["total"] == 1
    assert overdue["overdue_tasks"][0]["hours_overdue"] == 3
    mine = service.my_tasks(verifier)
    assert mine["summary"]["overdue"] == 1
    assert mine["tasks"][0]["status"] == VerificationTaskStatus.PENDING


def test_dashboard_summarizes_results(service, team, done_task, verifications_repo):
    verification_id = service.assign(done_task.task_id)["id"]
    verifier = verifications_repo.get_by_id(verification_id).assigned_verifier
    service.submit(verification_id, user_id=verifier, payload={"cleanliness": 5, "completeness": 5, "quality": 4})

    board = service.dashboard("today")

    assert board["stats"]["total"] == 1
    assert board["stats"]["passed"] == 1
    assert board["stats"]["avg_score"] == 4.7
    assert board["category_stats"]["Cleaning"]["pass"] == 1
    assert board["summary"]["pass_rate"] == 100
    assert board["recent_tasks"][0]["staff"] == "worker"


def test_teams_listing_and_status_toggle(service, team):
    listing = service.teams()
    assert listing["summary"] == {"total": 1, "active": 1, "inactive": 0}

    result = service.set_team_status(team["id"], False)
    assert result["team"]["is_active"] is False
    assert service.teams()["summary"]["inactive"] == 1

    with pytest.raises(NotFoundError):
        service.set_team_status(99, True)
