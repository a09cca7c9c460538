from datetime import datetime, timedelta, timezone

import pytest

from src.staff_management.staff_management.auth.tokens import KIND_ADMIN, KIND_USER, TokenService
from src.staff_management.staff_management.core.enums import Role
from src.staff_management.staff_management.core.exceptions import AuthorizationError, ValidationError


class MovableClock:
    def __init__(self):
        self.now = datetime.now(timezone.utc)

    def __call__(self):
        return self.now


def test_issue_and_decode_user_token():
    tokens = TokenService("secret")
    token = tokens.issue(subject_id=7, email="a@example.com", role=Role.USER)

    principal = tokens.decode(token)

    assert principal.id == 7
    assert principal.email == "a@example.com"
    assert principal.role == Role.USER
    assert principal.kind == KIND_USER
    assert not principal.is_admin


def test_admin_token_is_admin():
    tokens = TokenService("secret")
    token = tokens.issue(subject_id=1, email="boss@example.com", role=Role.SUPER_ADMIN, kind=KIND_ADMIN)

    principal = tokens.decode(token)

    assert principal.is_admin
    assert principal.user_id is None


def test_admin_role_on_staff_token_grants_nothing():
    tokens = TokenService("secret")
    token = tokens.issue(subject_id=4, email="a@example.com", role=Role.ADMIN)

    principal = tokens.decode(token)

    assert not principal.is_admin
    assert principal.user_id == 4


def test_token_signed_with_other_secret_is_rejected():
    token = TokenService("one").issue(subject_id=1, email="a@example.com", role=Role.USER)

    with pytest.raises(AuthorizationError):
        TokenService("two").decode(token)


def test_admin_token_expires_after_eight_hours():
    clock = MovableClock()
    tokens = TokenService("secret", clock=clock)
    admin = tokens.issue(subject_id=1, email="boss@example.com", role=Role.ADMIN, kind=KIND_ADMIN)
    user = tokens.issue(subject_id=2, email="a@example.com", role=Role.USER)

    clock.now += timedelta(hours=9)

    with pytest.raises(AuthorizationError):
        tokens.decode(admin)
    assert tokens.decode(user).id == 2


def test_reset_token_round_trip_and_salt_separation():
    tokens = TokenService("secret")
    reset = tokens.issue_reset_token(user_id=3, email="a@example.com")

    assert tokens.read_reset_token(reset)["id"] == 3
    with pytest.raises(AuthorizationError):
        tokens.decode(reset)
    with pytest.raises(ValidationError):
        tokens.read_reset_token("garbage")
    with pytest.raises(ValidationError):
        tokens.read_reset_token(None)
