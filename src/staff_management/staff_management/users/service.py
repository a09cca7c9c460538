from __future__ import annotations

import logging
import re
import secrets
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..auth.tokens import KIND_ADMIN, KIND_USER, TokenService
from ..common.datetime_utils import now_local
from ..common.validators import (
    require_email,
    require_enum,
    require_hhmm,
    require_int_range,
    require_length_between,
    require_max_length,
    require_min_length,
    require_non_empty,
    require_phone,
)
from ..core.constants import MAX_LOGIN_ATTEMPTS, RECENT_STAFF_DAYS, VERIFICATION_CODE_MINUTES
from ..core.enums import AdminPermission, Department, JobTitle, Role, ShiftType, Skill
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..notifications.mailer import Mailer
from .model import Admin, EmergencyContact, StaffProfile, StaffStats, User, default_profile, public_admin, public_user
from .repository import AdminRepository, ProfileRepository, UserRepository

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_PERMISSIONS = (AdminPermission.STAFF_MANAGEMENT, AdminPermission.DUTY_SCHEDULING)


def _safe_check(password_hash: str, password: str) -> bool:
    try:
        return check_password_hash(password_hash, password)
    except (ValueError, TypeError):
        # placeholder hashes such as 'CHANGE_ME'
        return False


def _new_code() -> str:
    return f"{secrets.randbelow(900000) + 100000}"


def apply_profile_payload(base: StaffProfile, payload: dict) -> StaffProfile:
    """Merge submitted profile fields into ``base`` and validate the result."""
    data: dict[str, Any] = {}

    if "name" in payload:
        data["name"] = require_max_length(require_non_empty(payload.get("name"), "Name"), "Name", 50)
    if "phone" in payload:
        data["phone"] = require_phone(payload.get("phone"))
    if "department" in payload:
        data["department"] = require_enum(Department, payload.get("department"), "department")
    if "job_title" in payload:
        data["job_title"] = require_enum(JobTitle, payload.get("job_title"), "job title")
    if "shift" in payload:
        data["shift"] = require_enum(ShiftType, payload.get("shift"), "shift")

    hours = payload.get("working_hours")
    if hours is not None:
        if not isinstance(hours, dict):
            raise ValidationError("Working hours must contain start and end")
        data["work_start"] = require_hhmm(hours.get("start"), "Working hours start")
        data["work_end"] = require_hhmm(hours.get("end"), "Working hours end")

    if "skills" in payload:
        skills = payload.get("skills") or []
        if not isinstance(skills, list):
            raise ValidationError("Skills must be a list")
        data["skills"] = tuple(require_enum(Skill, s, "skill") for s in skills)
    if "years_worked" in payload:
        data["years_worked"] = require_int_range(payload.get("years_worked") or 0, "Years worked", 0, 50)
    if "special_training" in payload:
        training = payload.get("special_training") or []
        if not isinstance(training, list):
            raise ValidationError("Special training must be a list")
        data["special_training"] = tuple(str(t).strip() for t in training if str(t).strip())
    if "shift_flexibility" in payload:
        data["shift_flexibility"] = bool(payload.get("shift_flexibility"))

    contact = payload.get("emergency_contact")
    if contact is not None:
        if not isinstance(contact, dict):
            raise ValidationError("Emergency contact must contain name, relationship and phone")
        data["emergency_contact"] = EmergencyContact(
            name=require_non_empty(contact.get("name"), "Emergency contact name"),
            relationship=require_non_empty(contact.get("relationship"), "Emergency contact relationship"),
            phone=require_phone(contact.get("phone"), "Emergency contact phone"),
        )

    if "notes" in payload:
        data["notes"] = require_max_length(payload.get("notes") or "", "Notes", 500)
    if "profile_picture" in payload:
        data["profile_picture"] = payload.get("profile_picture") or None

    return replace(base, **data)


def profile_view(user: User, profile: Optional[StaffProfile]) -> dict:
    """Staff listing row; fills 'Not Set' defaults when no profile exists."""
    view = {
        "id": user.user_id,
        "user_id": user.user_id,
        "username": user.username,
        "email": user.email,
        "verified": user.verified,
        "has_profile": profile is not None,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
    if profile is None:
        view.update(
            {
                "name": user.username,
                "phone": "N/A",
                "department": "Not Set",
                "job_title": "Not Set",
                "shift": "Not Set",
                "working_hours": {"start": "09:00", "end": "17:00"},
                "skills": [],
                "years_worked": 0,
                "special_training": [],
                "shift_flexibility": False,
                "emergency_contact": {"name": "Not Set", "relationship": "Not Set", "phone": "Not Set"},
                "notes": "",
                "profile_complete": False,
                "profile_picture": None,
                "last_updated": None,
            }
        )
        return view

    view.update(
        {
            "name": profile.name,
            "phone": profile.phone,
            "department": profile.department.value,
            "job_title": profile.job_title.value,
            "shift": profile.shift.value,
            "working_hours": profile.working_hours,
            "skills": [s.value for s in profile.skills],
            "years_worked": profile.years_worked,
            "special_training": list(profile.special_training),
            "shift_flexibility": profile.shift_flexibility,
            "emergency_contact": {
                "name": profile.emergency_contact.name,
                "relationship": profile.emergency_contact.relationship,
                "phone": profile.emergency_contact.phone,
            },
            "notes": profile.notes,
            "profile_complete": profile.profile_complete,
            "profile_picture": profile.profile_picture,
            "last_updated": profile.last_updated.isoformat() if profile.last_updated else None,
        }
    )
    return view


class AuthService:
    """Use cases: staff registration, email verification, login and password reset."""

    def __init__(
        self,
        users: UserRepository,
        profiles: ProfileRepository,
        tokens: TokenService,
        mailer: Mailer,
        *,
        verification_minutes: int = VERIFICATION_CODE_MINUTES,
        expose_codes: bool = False,
        frontend_url: str = "http://localhost:3000",
        code_factory: Callable[[], str] = _new_code,
        clock: Callable[[], datetime] = now_local,
    ):
        self._users = users
        self._profiles = profiles
        self._tokens = tokens
        self._mailer = mailer
        self._verification_minutes = int(verification_minutes)
        self._expose_codes = expose_codes
        self._frontend_url = frontend_url.rstrip("/")
        self._code_factory = code_factory
        self._clock = clock

    def _token_for(self, user: User) -> str:
        return self._tokens.issue(subject_id=user.user_id, email=user.email, role=user.role, kind=KIND_USER)

    def _send_code(self, user_email: str, username: str, code: str) -> None:
        self._mailer.send(
            to=user_email,
            subject="Verify your email",
            body=f"Hello {username},\nYour verification code is {code}. It expires in {self._verification_minutes} minutes.",
        )

    def register(self, *, username: Optional[str], email: Optional[str], password: Optional[str]) -> dict:
        username = require_length_between(username, "Username", 3, 30)
        email = require_email(email)
        password = require_min_length(password, "Password", 8)

        if self._users.get_by_email(email):
            raise ConflictError("User with this email already exists")

        code = self._code_factory()
        expires = self._clock() + timedelta(minutes=self._verification_minutes)
        user_id = self._users.create_user(
            username=username,
            email=email,
            password_hash=generate_password_hash(password),
            verification_code=code,
            verification_code_expires=expires,
        )
        self._send_code(email, username, code)
        logger.info("Registered user id=%s email=%s", user_id, email)

        result = {"user_id": user_id, "email": email, "username": username}
        if self._expose_codes:
            result["verification_code"] = code
        return result

    def verify_email(self, *, email: Optional[str], code: Optional[str]) -> dict:
        email = require_email(email)
        code = require_non_empty(code, "Verification code")
        if not re.fullmatch(r"\d{6}", code):
            raise ValidationError("Verification code must be 6 digits")

        user = self._users.get_by_email(email)
        if not user:
            raise NotFoundError("User not found")
        if user.verified:
            raise ValidationError("Email is already verified")
        if user.verification_code != code:
            raise ValidationError("Invalid verification code")
        if not user.verification_code_expires or user.verification_code_expires < self._clock():
            raise ValidationError("Verification code has expired")

        self._users.mark_verified(user.user_id)
        verified = replace(user, verified=True, verification_code=None, verification_code_expires=None)
        return {"token": self._token_for(verified), "user": public_user(verified)}

    def resend_verification(self, *, email: Optional[str]) -> dict:
        email = require_email(email)
        user = self._users.get_by_email(email)
        if not user:
            raise NotFoundError("User not found")
        if user.verified:
            raise ValidationError("Email is already verified")

        code = self._code_factory()
        self._users.set_verification_code(
            user.user_id,
            code=code,
            expires=self._clock() + timedelta(minutes=self._verification_minutes),
        )
        self._send_code(user.email, user.username, code)
        return {"verification_code": code} if self._expose_codes else {}

    def login(self, *, email: Optional[str], password: Optional[str]) -> dict:
        email = require_email(email)
        password = require_non_empty(password, "Password")

        user = self._users.get_by_email(email)
        if not user:
            raise AuthenticationError("Invalid email or password")
        if not user.verified:
            raise AuthorizationError("Please verify your email before logging in", is_verified=False)
        if user.account_locked or not user.is_active:
            raise AuthorizationError("Account is locked. Reset your password or contact an administrator")

        if not _safe_check(user.password_hash, password):
            attempts = user.login_attempts + 1
            locked = attempts >= MAX_LOGIN_ATTEMPTS
            self._users.record_failed_login(user.user_id, attempts=attempts, locked=locked)
            if locked:
                logger.warning("Account locked after %s failed logins: %s", attempts, user.email)
            raise AuthenticationError("Invalid email or password")

        now = self._clock()
        self._users.record_login(user.user_id, at=now)
        user = replace(user, login_attempts=0, last_login=now)
        return {"token": self._token_for(user), "user": public_user(user)}

    def forgot_password(self, *, email: Optional[str]) -> None:
        """Stores a reset token when the account exists; silent otherwise."""
        email = require_email(email)
        user = self._users.get_by_email(email)
        if not user:
            logger.info("Password reset requested for unknown email %s", email)
            return

        token = self._tokens.issue_reset_token(user_id=user.user_id, email=user.email)
        expires = self._clock() + timedelta(minutes=self._tokens.reset_minutes)
        self._users.set_reset_token(user.user_id, token=token, expires=expires)
        self._mailer.send(
            to=user.email,
            subject="Password reset",
            body=f"Hello {user.username},\nReset your password: {self._frontend_url}/reset-password/{token}",
        )

    def _user_for_reset(self, token: Optional[str]) -> User:
        payload = self._tokens.read_reset_token(token)
        user = self._users.get_by_reset_token(str(token))
        if not user or user.user_id != int(payload.get("id", 0)):
            raise ValidationError("Invalid reset token")
        if not user.reset_password_expires or user.reset_password_expires < self._clock():
            raise ValidationError("Reset token has expired")
        return user

    def validate_reset_token(self, *, token: Optional[str]) -> dict:
        user = self._user_for_reset(token)
        return {"email": user.email}

    def reset_password(self, *, token: Optional[str], password: Optional[str]) -> None:
        password = require_min_length(password, "Password", 8)
        user = self._user_for_reset(token)
        if _safe_check(user.password_hash, password):
            raise ValidationError("New password must be different from the current password")
        self._users.update_password(user.user_id, password_hash=generate_password_hash(password))
        logger.info("Password reset for user id=%s", user.user_id)

    def get_profile(self, *, user_id: int) -> dict:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        profile = self._profiles.get_by_user(user_id)
        return {"user": public_user(user), "profile": profile_view(user, profile) if profile else None}

    def save_profile(self, *, user_id: int, payload: dict) -> StaffProfile:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        existing = self._profiles.get_by_user(user_id)
        if existing is None:
            for key in ("name", "phone", "department", "job_title", "shift", "emergency_contact"):
                if payload.get(key) in (None, ""):
                    raise ValidationError(f"{key.replace('_', ' ').capitalize()} is required")
        profile = apply_profile_payload(existing or default_profile(user), payload)
        profile = replace(profile, profile_complete=True, last_updated=self._clock())
        self._profiles.upsert(profile)
        return profile


class AdminService:
    """Use cases: administrator accounts."""

    def __init__(self, admins: AdminRepository, tokens: TokenService, *, clock: Callable[[], datetime] = now_local):
        self._admins = admins
        self._tokens = tokens
        self._clock = clock

    def login(self, *, email: Optional[str], password: Optional[str]) -> dict:
        email = require_email(email)
        password = require_non_empty(password, "Password")
        admin = self._admins.get_by_email(email)
        if not admin or not _safe_check(admin.password_hash, password):
            raise AuthenticationError("Invalid admin credentials")
        if not admin.is_active:
            raise AuthorizationError("Admin account is deactivated")

        now = self._clock()
        self._admins.record_login(admin.admin_id, at=now)
        admin = replace(admin, last_login=now)
        token = self._tokens.issue(subject_id=admin.admin_id, email=admin.email, role=admin.role, kind=KIND_ADMIN)
        return {"token": token, "admin": public_admin(admin)}

    def get_profile(self, *, admin_id: int) -> Admin:
        admin = self._admins.get_by_id(admin_id)
        if not admin:
            raise NotFoundError("Admin not found")
        return admin

    def create_admin(
        self,
        *,
        current_role: Role,
        current_admin_id: int,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
        role: Any = None,
        permissions: Optional[Sequence[Any]] = None,
    ) -> Admin:
        if current_role != Role.SUPER_ADMIN:
            raise AuthorizationError("Only super admin can create admin accounts")

        username = require_length_between(username, "Username", 3, 30)
        email = require_email(email)
        password = require_min_length(password, "Password", 8)
        new_role = require_enum(Role, role or Role.ADMIN.value, "role")
        if not new_role.is_admin:
            raise ValidationError("Admin role must be admin or super_admin")
        perms = (
            tuple(require_enum(AdminPermission, p, "permission") for p in permissions)
            if permissions
            else DEFAULT_ADMIN_PERMISSIONS
        )

        if self._admins.get_by_email(email):
            raise ConflictError("Admin with this email already exists")

        admin_id = self._admins.create_admin(
            username=username,
            email=email,
            password_hash=generate_password_hash(password),
            role=new_role,
            permissions=perms,
            created_by=current_admin_id,
        )
        logger.info("Admin id=%s created by admin id=%s", admin_id, current_admin_id)
        return Admin(
            admin_id=admin_id,
            username=username,
            email=email,
            password_hash="",
            role=new_role,
            permissions=perms,
            created_by=current_admin_id,
            created_at=self._clock(),
        )

    def list_admins(self, *, current_role: Role) -> Sequence[Admin]:
        if current_role != Role.SUPER_ADMIN:
            raise AuthorizationError("Only super admin can list admin accounts")
        return self._admins.list_all()

    def toggle_status(self, *, current_role: Role, current_admin_id: int, admin_id: int) -> Admin:
        if current_role != Role.SUPER_ADMIN:
            raise AuthorizationError("Only super admin can change admin status")
        if int(admin_id) == int(current_admin_id):
            raise ValidationError("You cannot deactivate your own account")
        admin = self._admins.get_by_id(admin_id)
        if not admin:
            raise NotFoundError("Admin not found")
        self._admins.set_active(admin.admin_id, is_active=not admin.is_active)
        return replace(admin, is_active=not admin.is_active)


class StaffService:
    """Use cases: staff management from the admin dashboard."""

    def __init__(self, users: UserRepository, profiles: ProfileRepository, *, clock: Callable[[], datetime] = now_local):
        self._users = users
        self._profiles = profiles
        self._clock = clock

    def _staff_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Staff member not found")
        return user

    def list_staff(self) -> dict:
        users = self._users.list_users(role=Role.USER)
        profiles = self._profiles.list_by_users([u.user_id for u in users])
        staff = [profile_view(u, profiles.get(u.user_id)) for u in users]
        with_profiles = sum(1 for s in staff if s["has_profile"])
        return {
            "staff": staff,
            "total": len(staff),
            "with_profiles": with_profiles,
            "without_profiles": len(staff) - with_profiles,
        }

    def get_staff(self, *, user_id: int) -> dict:
        user = self._staff_user(user_id)
        return profile_view(user, self._profiles.get_by_user(user.user_id))

    def update_staff(self, *, user_id: int, payload: dict) -> StaffProfile:
        user = self._staff_user(user_id)
        if user.role.is_admin:
            raise AuthorizationError("Cannot modify admin accounts through this endpoint")

        base = self._profiles.get_by_user(user.user_id) or default_profile(user)
        profile = apply_profile_payload(base, payload)
        profile = replace(profile, profile_complete=True, last_updated=self._clock())
        self._profiles.upsert(profile)
        return profile

    def delete_staff(self, *, user_id: int) -> dict:
        user = self._staff_user(user_id)
        if user.role.is_admin:
            raise AuthorizationError("Cannot delete admin accounts")
        profile = self._profiles.get_by_user(user.user_id)
        self._profiles.delete_by_user(user.user_id)
        self._users.delete_by_id(user.user_id)
        logger.info("Deleted staff id=%s email=%s", user.user_id, user.email)
        return {
            "id": user.user_id,
            "username": user.username,
            "email": user.email,
            "name": profile.name if profile else user.username,
            "department": profile.department.value if profile else "Not Set",
        }

    def staff_stats(self) -> StaffStats:
        users = self._users.list_users(role=Role.USER)
        profiles = self._profiles.list_by_users([u.user_id for u in users])
        since = self._clock() - timedelta(days=RECENT_STAFF_DAYS)

        by_department: dict[str, int] = {}
        by_shift: dict[str, int] = {}
        for p in profiles.values():
            by_department[p.department.value] = by_department.get(p.department.value, 0) + 1
            by_shift[p.shift.value] = by_shift.get(p.shift.value, 0) + 1

        verified = sum(1 for u in users if u.verified)
        return StaffStats(
            total_staff=len(users),
            verified_staff=verified,
            unverified_staff=len(users) - verified,
            active_profiles=sum(1 for p in profiles.values() if p.is_active),
            recent_staff=sum(1 for u in users if u.created_at and u.created_at >= since),
            by_department=by_department,
            by_shift=by_shift,
        )

    def search_staff(self, *, query: Optional[str] = None, department: Optional[str] = None, shift: Optional[str] = None) -> list:
        pattern = re.compile(re.escape(query.strip()), re.IGNORECASE) if query and query.strip() else None
        profiles = [
            p
            for p in self._profiles.list_all()
            if (not department or p.department.value == department)
            and (not shift or p.shift.value == shift)
            and (pattern is None or pattern.search(p.name) or pattern.search(p.job_title.value))
        ]
        users = self._users.list_by_ids([p.user_id for p in profiles])
        return [profile_view(users[p.user_id], p) for p in profiles if p.user_id in users]
