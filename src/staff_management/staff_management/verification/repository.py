from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence, Set, Tuple

from ..core.enums import VerificationTaskStatus
from .model import NewVerificationTask, SecretTeam, VerificationReport, VerificationTask


class TeamRepository(Protocol):
    def get_by_id(self, team_id: int) -> Optional[SecretTeam]:
        raise NotImplementedError

    def code_exists(self, team_code: str) -> bool:
        raise NotImplementedError

    def list_teams(self, *, active: Optional[bool] = None) -> Sequence[SecretTeam]:
        """Newest first."""
        raise NotImplementedError

    def active_team_for_user(self, user_id: int) -> Optional[SecretTeam]:
        raise NotImplementedError

    def users_in_active_teams(self, user_ids: Sequence[int]) -> Set[int]:
        raise NotImplementedError

    def create_team(self, *, team_name: str, team_code: str, member_ids: Sequence[int], created_by: Optional[int]) -> int:
        raise NotImplementedError

    def set_active(self, team_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError


class VerificationRepository(Protocol):
    def get_by_id(self, verification_id: int) -> Optional[VerificationTask]:
        raise NotImplementedError

    def get_by_task(self, task_id: int) -> Optional[VerificationTask]:
        raise NotImplementedError

    def create(self, verification: NewVerificationTask) -> int:
        raise NotImplementedError

    def team_counts(self, team_id: int) -> Tuple[int, int]:
        """(total, open) where open means pending or in-progress."""
        raise NotImplementedError

    def list_for_verifier(
        self, verifier_id: int, *, status: Optional[VerificationTaskStatus] = None
    ) -> Sequence[VerificationTask]:
        """Most recently assigned first."""
        raise NotImplementedError

    def list_assigned_since(self, since: datetime) -> Sequence[VerificationTask]:
        raise NotImplementedError

    def list_overdue(self, now: datetime) -> Sequence[VerificationTask]:
        """Pending past their deadline, earliest deadline first."""
        raise NotImplementedError

    def record_report(self, verification_id: int, report: VerificationReport, *, verified_at: datetime) -> None:
        raise NotImplementedError
