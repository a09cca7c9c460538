from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import IssueCategory, IssueSeverity, TaskPriority, VerificationResult, VerificationTaskStatus


@dataclass(frozen=True)
class TeamMember:
    user_id: int
    assigned_at: Optional[datetime] = None
    is_active: bool = True


@dataclass(frozen=True)
class SecretTeam:
    """Three staff members who anonymously inspect completed work."""

    team_id: int
    team_name: str
    team_code: str
    members: Tuple[TeamMember, ...] = ()
    is_active: bool = True
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def active_members(self) -> Tuple[TeamMember, ...]:
        return tuple(m for m in self.members if m.is_active)


@dataclass(frozen=True)
class Issue:
    category: IssueCategory
    description: str
    severity: IssueSeverity = IssueSeverity.MEDIUM


@dataclass(frozen=True)
class VerificationTask:
    verification_id: int
    task_id: int
    original_staff_id: int
    assigned_verifier: int
    assigned_team: int
    location: str
    assigned_at: datetime
    deadline: datetime
    priority: TaskPriority = TaskPriority.MEDIUM
    status: VerificationTaskStatus = VerificationTaskStatus.PENDING
    cleanliness: Optional[int] = None
    completeness: Optional[int] = None
    quality: Optional[int] = None
    overall_score: Optional[float] = None
    result: Optional[VerificationResult] = None
    comments: str = ""
    issues: Tuple[Issue, ...] = ()
    verified_at: Optional[datetime] = None

    def is_overdue(self, now: datetime) -> bool:
        return self.status == VerificationTaskStatus.PENDING and now > self.deadline


@dataclass(frozen=True)
class NewVerificationTask:
    task_id: int
    original_staff_id: int
    assigned_verifier: int
    assigned_team: int
    location: str
    assigned_at: datetime
    deadline: datetime
    priority: TaskPriority = TaskPriority.MEDIUM


@dataclass(frozen=True)
class VerificationReport:
    """Scored inspection submitted by a team member."""

    cleanliness: int
    completeness: int
    quality: int
    overall_score: float
    result: VerificationResult
    comments: str = ""
    issues: Tuple[Issue, ...] = ()
