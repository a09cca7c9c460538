from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from ..core.constants import DEFAULT_WORK_END, DEFAULT_WORK_START
from ..core.enums import AdminPermission, Department, JobTitle, Role, ShiftType, Skill


@dataclass(frozen=True)
class User:
    """Staff login account.

    Note: Password hash and one-time codes never leave the service layer; use
    ``public_user`` when building responses.
    """

    user_id: int
    username: str
    email: str
    password_hash: str
    role: Role = Role.USER
    verified: bool = False
    is_active: bool = True
    verification_code: Optional[str] = None
    verification_code_expires: Optional[datetime] = None
    reset_password_token: Optional[str] = None
    reset_password_expires: Optional[datetime] = None
    login_attempts: int = 0
    account_locked: bool = False
    last_login: Optional[datetime] = None
    last_active: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Admin:
    admin_id: int
    username: str
    email: str
    password_hash: str
    role: Role = Role.ADMIN
    is_active: bool = True
    permissions: Tuple[AdminPermission, ...] = ()
    last_login: Optional[datetime] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class EmergencyContact:
    name: str
    relationship: str
    phone: str


@dataclass(frozen=True)
class StaffProfile:
    user_id: int
    name: str
    phone: str
    department: Department
    job_title: JobTitle
    shift: ShiftType
    emergency_contact: EmergencyContact
    work_start: str = DEFAULT_WORK_START
    work_end: str = DEFAULT_WORK_END
    skills: Tuple[Skill, ...] = ()
    years_worked: int = 0
    special_training: Tuple[str, ...] = ()
    shift_flexibility: bool = False
    notes: str = ""
    profile_picture: Optional[str] = None
    profile_complete: bool = False
    is_active: bool = True
    last_updated: Optional[datetime] = None

    @property
    def working_hours(self) -> dict:
        return {"start": self.work_start, "end": self.work_end}


def default_profile(user: User) -> StaffProfile:
    """Profile placeholder used when an admin edits staff that never filled one in."""
    return StaffProfile(
        user_id=user.user_id,
        name=user.username,
        phone="0000000000",
        department=Department.OFFICE_HELPERS,
        job_title=JobTitle.GENERAL_HELPER,
        shift=ShiftType.MORNING,
        emergency_contact=EmergencyContact(name="Not Set", relationship="Not Set", phone="0000000000"),
        notes="",
        profile_complete=False,
    )


def public_user(user: User) -> dict:
    return {
        "id": user.user_id,
        "username": user.username,
        "email": user.email,
        "role": user.role.value,
        "verified": user.verified,
        "is_active": user.is_active,
        "last_login": user.last_login.isoformat() if user.last_login else None,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def public_admin(admin: Admin) -> dict:
    return {
        "id": admin.admin_id,
        "username": admin.username,
        "email": admin.email,
        "role": admin.role.value,
        "is_active": admin.is_active,
        "permissions": [p.value for p in admin.permissions],
        "last_login": admin.last_login.isoformat() if admin.last_login else None,
        "created_at": admin.created_at.isoformat() if admin.created_at else None,
    }


@dataclass(frozen=True)
class StaffStats:
    total_staff: int
    verified_staff: int
    unverified_staff: int
    active_profiles: int
    recent_staff: int
    by_department: dict = field(default_factory=dict)
    by_shift: dict = field(default_factory=dict)
