from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError

ACCESS_SALT = "staff-management-access"
RESET_SALT = "staff-management-password-reset"

KIND_USER = "user"
KIND_ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    """Identity decoded from a bearer token."""

    id: int
    email: str
    role: Role
    kind: str

    @property
    def is_admin(self) -> bool:
        return self.kind == KIND_ADMIN

    @property
    def user_id(self) -> Optional[int]:
        """Staff user id; ``None`` for admin accounts, whose ids live in another table."""
        return self.id if self.kind == KIND_USER else None


class TokenService:
    """Signed, timestamped bearer tokens."""

    def __init__(
        self,
        secret_key: str,
        *,
        access_hours: int = 24,
        admin_hours: int = 8,
        reset_minutes: int = 60,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._access = URLSafeTimedSerializer(secret_key, salt=ACCESS_SALT)
        self._reset = URLSafeTimedSerializer(secret_key, salt=RESET_SALT)
        self._lifetimes = {
            KIND_USER: timedelta(hours=access_hours),
            KIND_ADMIN: timedelta(hours=admin_hours),
        }
        self._reset_minutes = int(reset_minutes)
        self._clock = clock

    @property
    def reset_minutes(self) -> int:
        return self._reset_minutes

    def lifetime(self, kind: str) -> timedelta:
        return self._lifetimes[kind]

    def issue(self, *, subject_id: int, email: str, role: Role, kind: str = KIND_USER) -> str:
        if kind not in self._lifetimes:
            raise ValueError(f"Unknown token kind: {kind}")
        payload = {"id": int(subject_id), "email": email, "role": role.value, "kind": kind}
        return self._access.dumps(payload)

    def decode(self, token: str) -> Principal:
        try:
            payload, issued_at = self._access.loads(token, return_timestamp=True)
        except BadSignature:
            raise AuthorizationError("Invalid or expired token")

        try:
            kind = payload["kind"]
            lifetime = self._lifetimes[kind]
            principal = Principal(
                id=int(payload["id"]),
                email=str(payload["email"]),
                role=Role(payload["role"]),
                kind=kind,
            )
        except (KeyError, TypeError, ValueError):
            raise AuthorizationError("Invalid or expired token")

        if issued_at.tzinfo is None:
            issued_at = issued_at.replace(tzinfo=timezone.utc)
        if self._clock() - issued_at > lifetime:
            raise AuthorizationError("Invalid or expired token")
        return principal

    def issue_reset_token(self, *, user_id: int, email: str) -> str:
        return self._reset.dumps({"id": int(user_id), "email": email})

    def read_reset_token(self, token: Optional[str]) -> dict:
        if not token:
            raise ValidationError("Reset token is required")
        try:
            return self._reset.loads(token, max_age=self._reset_minutes * 60)
        except SignatureExpired:
            raise ValidationError("Reset token has expired")
        except BadSignature:
            raise ValidationError("Invalid reset token")
