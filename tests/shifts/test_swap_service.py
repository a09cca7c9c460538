from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta

import pytest

from conftest import NOW
from src.staff_management.staff_management.alerts.service import AlertService
from src.staff_management.staff_management.core.enums import (
    AlertType,
    ApprovalStatus,
    ScheduleStatus,
    ShiftType,
    SwapStatus,
)
from src.staff_management.staff_management.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.staff_management.staff_management.shifts.service import ShiftService


@pytest.fixture
def service(schedules_repo, swaps_repo, users_repo, profiles_repo, alerts_repo, clock):
    alerts = AlertService(alerts_repo, users_repo, profiles_repo, clock=clock)
    return ShiftService(schedules_repo, swaps_repo, users_repo, profiles_repo, alerts, clock=clock)


@pytest.fixture
def shifts(schedules_repo, staff):
    alice, bob = staff
    mine = schedules_repo.add(alice.user_id, date(2025, 3, 12), shift=ShiftType.MORNING)
    theirs = schedules_repo.add(
        bob.user_id, date(2025, 3, 13), shift=ShiftType.EVENING, start_time="16:00", end_time="23:00"
    )
    return mine, theirs


def _request(service, staff, shifts, **overrides):
    alice, bob = staff
    mine, theirs = shifts
    payload = {
        "target_user_id": bob.user_id,
        "requester_schedule_id": mine.schedule_id,
        "target_schedule_id": theirs.schedule_id,
        "reason": "Doctor appointment",
    }
    payload.update(overrides)
    return service.request_swap(alice.user_id, payload)


def test_create_schedule_alerts_user_and_rejects_duplicates(service, staff, alerts_repo):
    alice, _ = staff
    payload = {
        "user_id": alice.user_id,
        "date": "2025-03-20",
        "shift": "Morning",
        "start_time": "08:00",
        "end_time": "16:00",
        "department": "Cleaning Staff",
    }

    schedule = service.create_schedule(payload, assigned_by=99)

    assert schedule.work_date == date(2025, 3, 20)
    assert schedule.shift == ShiftType.MORNING
    reminders = [a for a in alerts_repo.alerts.values() if a.type == AlertType.SHIFT_REMINDER]
    assert [a.user_id for a in reminders] == [alice.user_id]

    with pytest.raises(ConflictError):
        service.create_schedule(payload, assigned_by=99)


def test_create_schedule_requires_all_fields(service, staff):
    with pytest.raises(ValidationError):
        service.create_schedule({"user_id": staff[0].user_id, "date": "2025-03-20"}, assigned_by=1)


def test_request_swap_notifies_target(service, staff, shifts, alerts_repo):
    _, bob = staff

    view = _request(service, staff, shifts)

    assert view["swap"].status == SwapStatus.PENDING
    assert view["swap"].expires_at == NOW + timedelta(hours=24)
    assert view["target_user"]["username"] == "bob"
    swap_alerts = [a for a in alerts_repo.alerts.values() if a.type == AlertType.SWAP_REQUEST]
    assert len(swap_alerts) == 1
    assert swap_alerts[0].user_id == bob.user_id
    assert swap_alerts[0].action_required is True


def test_request_swap_with_yourself_is_rejected(service, staff, shifts):
    with pytest.raises(ValidationError):
        _request(service, staff, shifts, target_user_id=staff[0].user_id)


def test_request_swap_requires_own_schedule(service, staff, shifts):
    _, theirs = shifts
    with pytest.raises(AuthorizationError):
        _request(service, staff, shifts, requester_schedule_id=theirs.schedule_id)


def test_request_swap_requires_target_schedule_of_target_user(service, staff, shifts):
    mine, _ = shifts
    with pytest.raises(AuthorizationError):
        _request(service, staff, shifts, target_schedule_id=mine.schedule_id)


def test_request_swap_unknown_schedule(service, staff, shifts):
    with pytest.raises(NotFoundError):
        _request(service, staff, shifts, target_schedule_id=999)


def test_shift_can_only_be_in_one_pending_swap(service, staff, shifts):
    _request(service, staff, shifts)
    with pytest.raises(ValidationError):
        _request(service, staff, shifts)


def test_target_acceptance_waits_for_admin(service, staff, shifts, swaps_repo, schedules_repo):
    _, bob = staff
    mine, _ = shifts
    swap_id = _request(service, staff, shifts)["swap"].swap_id

    result = service.respond(swap_id, user_id=bob.user_id, action="accepted", message="Sure")

    swap = swaps_repo.get_by_id(swap_id)
    assert swap.status == SwapStatus.ACCEPTED
    assert swap.admin_approval_status == ApprovalStatus.PENDING
    assert "admin approval" in result["message"]
    assert schedules_repo.get_by_id(mine.schedule_id).work_date == mine.work_date
    assert service.admin_pending()["total"] == 1


def test_admin_approval_exchanges_shifts(service, staff, shifts, swaps_repo, schedules_repo):
    alice, bob = staff
    mine, theirs = shifts
    swap_id = _request(service, staff, shifts)["swap"].swap_id
    service.respond(swap_id, user_id=bob.user_id, action="accepted")

    service.admin_approve(swap_id, admin_id=7, action="approved", notes="ok")

    swap = swaps_repo.get_by_id(swap_id)
    assert swap.admin_approval_status == ApprovalStatus.APPROVED
    assert swap.approved_by == 7
    assert swap.approval_date == NOW

    alice_row = schedules_repo.get_by_id(mine.schedule_id)
    bob_row = schedules_repo.get_by_id(theirs.schedule_id)
    assert alice_row.user_id == alice.user_id
    assert alice_row.work_date == theirs.work_date
    assert alice_row.shift == ShiftType.EVENING
    assert bob_row.work_date == mine.work_date
    assert bob_row.shift == ShiftType.MORNING
    assert alice_row.status == bob_row.status == ScheduleStatus.SWAPPED
    assert alice_row.swap_request_id == swap_id


def test_admin_rejection_leaves_schedules(service, staff, shifts, swaps_repo, schedules_repo):
    _, bob = staff
    mine, _ = shifts
    swap_id = _request(service, staff, shifts)["swap"].swap_id
    service.respond(swap_id, user_id=bob.user_id, action="accepted")

    service.admin_approve(swap_id, admin_id=7, action="rejected", notes="Short staffed")

    swap = swaps_repo.get_by_id(swap_id)
    assert swap.status == SwapStatus.REJECTED
    assert swap.response_message == "Rejected by admin: Short staffed"
    assert schedules_repo.get_by_id(mine.schedule_id).status == ScheduleStatus.SCHEDULED


def test_admin_cannot_decide_before_target_accepts(service, staff, shifts):
    swap_id = _request(service, staff, shifts)["swap"].swap_id
    with pytest.raises(ValidationError):
        service.admin_approve(swap_id, admin_id=7, action="approved")


def test_approval_conflicts_with_existing_schedule(service, staff, shifts, schedules_repo):
    alice, bob = staff
    _, theirs = shifts
    schedules_repo.add(alice.user_id, theirs.work_date)
    swap_id = _request(service, staff, shifts)["swap"].swap_id
    service.respond(swap_id, user_id=bob.user_id, action="accepted")

    with pytest.raises(ConflictError):
        service.admin_approve(swap_id, admin_id=7, action="approved")


def test_only_target_can_respond(service, staff, shifts):
    alice, _ = staff
    swap_id = _request(service, staff, shifts)["swap"].swap_id
    with pytest.raises(AuthorizationError):
        service.respond(swap_id, user_id=alice.user_id, action="accepted")


def test_respond_rejects_unknown_action(service, staff, shifts):
    swap_id = _request(service, staff, shifts)["swap"].swap_id
    with pytest.raises(ValidationError):
        service.respond(swap_id, user_id=staff[1].user_id, action="maybe")


def test_expired_request_is_cancelled_on_response(service, staff, shifts, swaps_repo):
    _, bob = staff
    swap_id = _request(service, staff, shifts)["swap"].swap_id
    swaps_repo.swaps[swap_id] = replace(swaps_repo.swaps[swap_id], expires_at=NOW - timedelta(minutes=1))

    with pytest.raises(ValidationError):
        service.respond(swap_id, user_id=bob.user_id, action="accepted")
    assert swaps_repo.get_by_id(swap_id).status == SwapStatus.CANCELLED


def test_cancel_only_own_pending_request(service, staff, shifts, swaps_repo):
    alice, bob = staff
    swap_id = _request(service, staff, shifts)["swap"].swap_id

    with pytest.raises(AuthorizationError):
        service.cancel(swap_id, user_id=bob.user_id)

    service.cancel(swap_id, user_id=alice.user_id)
    assert swaps_repo.get_by_id(swap_id).status == SwapStatus.CANCELLED

    with pytest.raises(ValidationError):
        service.cancel(swap_id, user_id=alice.user_id)


def test_my_requests_splits_sent_and_received(service, staff, shifts):
    alice, bob = staff
    _request(service, staff, shifts)

    mine = service.my_requests(alice.user_id)
    theirs = service.my_requests(bob.user_id)

    assert len(mine["requests"]["sent"]) == 1 and not mine["requests"]["received"]
    assert len(theirs["requests"]["received"]) == 1 and not theirs["requests"]["sent"]
    assert service.my_requests(alice.user_id, status="rejected")["total"] == 0


def test_available_partners_skips_busy_and_own_shifts(service, staff, users_repo, schedules_repo, profiles_repo):
    alice, bob = staff
    carol = users_repo.add("carol")
    profiles_repo.add(carol.user_id, name="Carol")
    day = date(2025, 3, 14)
    mine = schedules_repo.add(alice.user_id, day)
    schedules_repo.add(bob.user_id, day, status=ScheduleStatus.COMPLETED)
    schedules_repo.add(carol.user_id, day)

    result = service.available_partners(mine.schedule_id, user_id=alice.user_id)

    assert result["total"] == 1
    assert result["available_partners"][0]["user"]["username"] == "carol"
    assert result["available_partners"][0]["profile"]["name"] == "Carol"

    with pytest.raises(AuthorizationError):
        service.available_partners(mine.schedule_id, user_id=bob.user_id)
