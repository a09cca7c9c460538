from __future__ import annotations

import pytest
from werkzeug.security import generate_password_hash

from src.staff_management.staff_management.alerts.service import AlertService
from src.staff_management.staff_management.attendance.service import AttendanceService
from src.staff_management.staff_management.auth.guards import build_guards
from src.staff_management.staff_management.auth.tokens import KIND_ADMIN, KIND_USER, TokenService
from src.staff_management.staff_management.container import Container, Settings
from src.staff_management.staff_management.core.enums import Role
from src.staff_management.staff_management.main import create_app
from src.staff_management.staff_management.performance.service import PerformanceService
from src.staff_management.staff_management.shifts.service import ShiftService
from src.staff_management.staff_management.tasks.reassignment import TaskReassigner
from src.staff_management.staff_management.tasks.service import TaskService
from src.staff_management.staff_management.users.service import AdminService, AuthService, StaffService
from src.staff_management.staff_management.verification.service import VerificationService


class FakeConn:
    def __init__(self, alive: bool = True):
        self.alive = alive

    def ping(self) -> bool:
        return self.alive

    def wait_until_ready(self, **_kwargs) -> None:
        return None


class EmptyAdminRepo:
    def get_by_email(self, email):
        return None


@pytest.fixture
def settings():
    return Settings(
        secret_key="route-test-secret",
        environment="testing",
        cors_origins=["http://localhost:3000"],
        rate_limit_max_requests=5,
    )


@pytest.fixture
def container(
    settings,
    users_repo,
    profiles_repo,
    alerts_repo,
    attendance_repo,
    tasks_repo,
    schedules_repo,
    swaps_repo,
    teams_repo,
    verifications_repo,
    performance_repo,
    mailer,
    clock,
):
    tokens = TokenService(settings.secret_key)
    alerts = AlertService(alerts_repo, users_repo, profiles_repo, clock=clock)
    attendance = AttendanceService(attendance_repo, users_repo, profiles_repo, mailer, clock=clock)
    reassigner = TaskReassigner(tasks_repo, users_repo, profiles_repo, absent_on=attendance.absent_user_ids, clock=clock)
    return Container(
        settings=settings,
        conn=FakeConn(),
        tokens=tokens,
        guards=build_guards(tokens),
        mailer=mailer,
        auth_service=AuthService(
            users_repo,
            profiles_repo,
            tokens,
            mailer,
            verification_minutes=10,
            expose_codes=False,
            frontend_url="http://localhost:3000",
            clock=clock,
        ),
        admin_service=AdminService(EmptyAdminRepo(), tokens, clock=clock),
        staff_service=StaffService(users_repo, profiles_repo, clock=clock),
        attendance_service=attendance,
        alert_service=alerts,
        shift_service=ShiftService(schedules_repo, swaps_repo, users_repo, profiles_repo, alerts, clock=clock),
        task_service=TaskService(tasks_repo, users_repo, profiles_repo, alerts, reassigner, clock=clock),
        verification_service=VerificationService(teams_repo, verifications_repo, tasks_repo, users_repo, clock=clock),
        performance_service=PerformanceService(
            performance_repo,
            users_repo,
            profiles_repo,
            attendance_repo,
            tasks_repo,
            schedules_repo,
            alerts,
            mailer,
            clock=clock,
        ),
    )


@pytest.fixture
def client(container):
    return create_app(container).test_client()


@pytest.fixture
def user_token(container, users_repo):
    alice = users_repo.add("alice", password_hash=generate_password_hash("secret1"))
    return container.tokens.issue(subject_id=alice.user_id, email=alice.email, role=Role.USER)


@pytest.fixture
def admin_token(container):
    return container.tokens.issue(subject_id=1, email="admin@staff.local", role=Role.ADMIN, kind=KIND_ADMIN)


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_health_reports_database_state(client, container):
    body = client.get("/api/health").get_json()
    assert body["status"] == "OK"
    assert body["database"] == "connected"
    assert body["environment"] == "testing"

    container.conn.alive = False
    assert client.get("/api/health").get_json()["status"] == "DEGRADED"


def test_index_lists_endpoints_by_section(client):
    body = client.get("/api").get_json()
    assert "POST /api/auth/login" in body["endpoints"]["auth"]
    assert "GET /api/alerts/my-alerts" in body["endpoints"]["alerts"]


def test_unknown_route_and_wrong_method(client):
    missing = client.get("/api/nope")
    assert missing.status_code == 404
    assert missing.get_json() == {"success": False, "message": "Route not found"}
    assert client.get("/api/auth/login").status_code == 405


def test_guards(client, user_token):
    response = client.get("/api/alerts/my-alerts")
    assert response.status_code == 401
    assert response.get_json()["message"] == "Access token required"

    assert client.get("/api/alerts/my-alerts", headers=_auth("garbage")).status_code == 403

    forbidden = client.get("/api/alerts/admin/all", headers=_auth(user_token))
    assert forbidden.status_code == 403
    assert forbidden.get_json()["message"] == "Admin access required"


def test_login_and_profile(client, user_token):
    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret1"})
    assert response.status_code == 200
    token = response.get_json()["token"]

    profile = client.get("/api/auth/profile", headers=_auth(token)).get_json()
    assert profile["user"]["username"] == "alice"
    assert profile["profile"] is None

    wrong = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope"})
    assert wrong.status_code == 401
    assert wrong.get_json()["success"] is False


def test_domain_errors_become_json(client, admin_token, user_token):
    bad = client.post(
        "/api/alerts/create",
        headers=_auth(admin_token),
        json={"type": "party", "user_id": 1, "title": "x", "message": "y"},
    )
    assert bad.status_code == 400
    assert bad.get_json()["success"] is False

    created = client.post(
        "/api/alerts/create",
        headers=_auth(admin_token),
        json={"type": "shift_reminder", "user_id": 1, "title": "Shift", "message": "Starts at 9"},
    )
    assert created.status_code == 201

    mine = client.get("/api/alerts/my-alerts", headers=_auth(user_token)).get_json()
    assert mine["total"] == 1
    assert mine["grouped_alerts"]["medium"][0]["title"] == "Shift"


def test_rate_limit_applies_to_api_paths(client):
    for _ in range(5):
        assert client.get("/api/health").status_code == 200

    limited = client.get("/api/health")
    assert limited.status_code == 429
    assert int(limited.headers["Retry-After"]) >= 1
    assert limited.get_json()["retry_after"] >= 1


def test_cors_preflight_and_headers(client):
    preflight = client.open(
        "/api/tasks/create",
        method="OPTIONS",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
    )
    assert preflight.status_code == 200
    assert preflight.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
    assert preflight.headers["Access-Control-Allow-Credentials"] == "true"
    assert "POST" in preflight.headers["Access-Control-Allow-Methods"]

    other = client.get("/api/health", headers={"Origin": "http://evil.test"})
    assert "Access-Control-Allow-Origin" not in other.headers


def test_admin_token_cannot_act_as_staff_with_same_id(client, container, users_repo, profiles_repo):
    alice = users_repo.add("alice")
    admin = container.tokens.issue(subject_id=alice.user_id, email="admin@staff.local", role=Role.ADMIN, kind=KIND_ADMIN)

    read = client.get("/api/auth/profile", headers=_auth(admin))
    write = client.post("/api/auth/profile", headers=_auth(admin), json={"name": "Hijacked"})

    assert read.status_code == 403
    assert write.status_code == 403
    assert write.get_json()["message"] == "Staff access required"
    assert profiles_repo.get_by_user(alice.user_id) is None


def test_admin_role_on_staff_account_is_not_admin_access(client, container, users_repo):
    mallory = users_repo.add("mallory", role=Role.ADMIN)
    token = container.tokens.issue(subject_id=mallory.user_id, email=mallory.email, role=Role.ADMIN, kind=KIND_USER)

    assert client.get("/api/alerts/admin/all", headers=_auth(token)).status_code == 403
    assert client.post("/api/auth/attendance/admin/auto-mark-absent", headers=_auth(token)).status_code == 403


def test_admin_can_delete_any_alert(client, admin_token, user_token, alerts_repo):
    created = client.post(
        "/api/alerts/create",
        headers=_auth(admin_token),
        json={"type": "shift_reminder", "user_id": 1, "title": "Shift", "message": "Starts at 9"},
    )
    alert_id = created.get_json()["alert"]["alert_id"]

    response = client.delete(f"/api/alerts/delete/{alert_id}", headers=_auth(admin_token))

    assert response.status_code == 200
    assert alerts_repo.get_by_id(alert_id) is None


def test_admin_runs_auto_absent_for_all_staff(client, admin_token, users_repo):
    alice = users_repo.add("alice", role=Role.USER)

    response = client.post("/api/auth/attendance/admin/auto-mark-absent", headers=_auth(admin_token))

    body = response.get_json()
    assert response.status_code == 200
    assert body["checked"] == 1
    assert body["count"] == 0
    assert body["marked_absent"] == []
    assert body["date"] == "2025-03-10"


def test_wrong_json_types_are_client_errors(client):
    numeric = client.post(
        "/api/auth/register",
        json={"username": "numbers", "email": "numbers@example.com", "password": 12345678},
    )
    listed = client.post(
        "/api/auth/register",
        json={"username": "lists", "email": "lists@example.com", "password": ["secret12"]},
    )

    assert numeric.status_code == 201
    assert listed.status_code == 400
    assert listed.get_json()["message"] == "Password must be text"
