from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from ..core.constants import DEFAULT_TASK_DURATION_MINUTES, VERIFICATION_OVERDUE_HOURS
from ..core.enums import (
    FinalVerificationStatus,
    ReassignmentReason,
    TaskCategory,
    TaskPriority,
    TaskStatus,
    TaskVerificationStatus,
    VerificationResult,
)

_FINAL_STATUS = {
    VerificationResult.PASS: FinalVerificationStatus.APPROVED,
    VerificationResult.FAIL: FinalVerificationStatus.REJECTED,
    VerificationResult.RECHECK: FinalVerificationStatus.PENDING_RECHECK,
}


@dataclass(frozen=True)
class ReassignmentEntry:
    from_user: int
    to_user: int
    reason: ReassignmentReason
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class Task:
    """A unit of work assigned to one staff member for one day."""

    task_id: int
    title: str
    assigned_to: int
    task_date: date
    category: TaskCategory
    location: str
    description: str = ""
    assigned_by: Optional[int] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    estimated_duration: int = DEFAULT_TASK_DURATION_MINUTES
    status: TaskStatus = TaskStatus.PENDING
    completion_notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None
    rated_by: Optional[int] = None
    rated_at: Optional[datetime] = None
    verification_status: TaskVerificationStatus = TaskVerificationStatus.NONE
    verifier_id: Optional[int] = None
    verification_assigned_at: Optional[datetime] = None
    verification_result: Optional[VerificationResult] = None
    verification_score: Optional[int] = None
    verification_notes: str = ""
    verified_at: Optional[datetime] = None
    original_assignee: Optional[int] = None
    is_reassigned: bool = False
    reassignment_reason: Optional[ReassignmentReason] = None
    reassigned_at: Optional[datetime] = None
    reassignment_history: Tuple[ReassignmentEntry, ...] = ()
    created_at: Optional[datetime] = None

    @property
    def final_verification_status(self) -> Optional[FinalVerificationStatus]:
        if self.verification_result is None:
            return None
        return _FINAL_STATUS[self.verification_result]

    @property
    def needs_verification(self) -> bool:
        return (
            self.status == TaskStatus.COMPLETED
            and self.verification_status == TaskVerificationStatus.NONE
            and self.verifier_id is None
        )

    @property
    def verification_complete(self) -> bool:
        return self.verification_status == TaskVerificationStatus.COMPLETED

    @property
    def verification_pending(self) -> bool:
        return self.verification_status == TaskVerificationStatus.PENDING_VERIFICATION and self.verifier_id is not None

    def verification_overdue(self, now: datetime) -> bool:
        if self.verification_assigned_at is None or self.verification_complete:
            return False
        return now > self.verification_assigned_at + timedelta(hours=VERIFICATION_OVERDUE_HOURS)

    def is_overdue(self, now: datetime) -> bool:
        """Still pending after the end of its day."""
        return self.status == TaskStatus.PENDING and now.date() > self.task_date

    def verification_summary(self) -> dict:
        return {
            "task_id": self.task_id,
            "title": self.title,
            "status": self.status,
            "verification_status": self.verification_status,
            "verification_result": self.verification_result,
            "verification_score": self.verification_score,
            "final_status": self.final_verification_status,
            "verifier_id": self.verifier_id,
            "verification_assigned_at": self.verification_assigned_at,
            "verified_at": self.verified_at,
            "needs_verification": self.needs_verification,
            "is_complete": self.verification_complete,
            "is_pending": self.verification_pending,
        }


@dataclass(frozen=True)
class NewTask:
    title: str
    assigned_to: int
    task_date: date
    category: TaskCategory
    location: str
    description: str = ""
    assigned_by: Optional[int] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    estimated_duration: int = DEFAULT_TASK_DURATION_MINUTES


@dataclass(frozen=True)
class TaskQuery:
    """Filters for task listings; ``None`` means no filter."""

    assigned_to: Optional[int] = None
    status: Optional[TaskStatus] = None
    statuses: Optional[Tuple[TaskStatus, ...]] = None
    task_date: Optional[date] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    priority: Optional[TaskPriority] = None
    category: Optional[TaskCategory] = None
    verifier_id: Optional[int] = None
    verification_status: Optional[TaskVerificationStatus] = None
    verification_result: Optional[VerificationResult] = None
    is_reassigned: Optional[bool] = None
    search: Optional[str] = None
    created_since: Optional[datetime] = None
