from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Protocol, Sequence

from ..core.enums import AdminPermission, Role
from .model import Admin, StaffProfile, User


class UserRepository(Protocol):
    """Repository interface for staff accounts."""

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_reset_token(self, token: str) -> Optional[User]:
        raise NotImplementedError

    def list_users(self, *, role: Optional[Role] = None, verified: Optional[bool] = None) -> Sequence[User]:
        raise NotImplementedError

    def list_by_ids(self, user_ids: Sequence[int]) -> Dict[int, User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        verification_code: str,
        verification_code_expires: datetime,
    ) -> int:
        raise NotImplementedError

    def set_verification_code(self, user_id: int, *, code: Optional[str], expires: Optional[datetime]) -> None:
        raise NotImplementedError

    def mark_verified(self, user_id: int) -> None:
        raise NotImplementedError

    def record_failed_login(self, user_id: int, *, attempts: int, locked: bool) -> None:
        raise NotImplementedError

    def record_login(self, user_id: int, *, at: datetime) -> None:
        raise NotImplementedError

    def set_reset_token(self, user_id: int, *, token: Optional[str], expires: Optional[datetime]) -> None:
        raise NotImplementedError

    def update_password(self, user_id: int, *, password_hash: str) -> None:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError


class AdminRepository(Protocol):
    def get_by_id(self, admin_id: int) -> Optional[Admin]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Admin]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Admin]:
        raise NotImplementedError

    def create_admin(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        role: Role,
        permissions: Sequence[AdminPermission],
        created_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def set_active(self, admin_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def record_login(self, admin_id: int, *, at: datetime) -> None:
        raise NotImplementedError


class ProfileRepository(Protocol):
    def get_by_user(self, user_id: int) -> Optional[StaffProfile]:
        raise NotImplementedError

    def list_all(self) -> Sequence[StaffProfile]:
        raise NotImplementedError

    def list_by_users(self, user_ids: Sequence[int]) -> Dict[int, StaffProfile]:
        raise NotImplementedError

    def upsert(self, profile: StaffProfile) -> None:
        raise NotImplementedError

    def delete_by_user(self, user_id: int) -> bool:
        raise NotImplementedError
