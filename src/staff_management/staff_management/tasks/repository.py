from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

from ..core.enums import ReassignmentReason, TaskStatus
from .model import NewTask, Task, TaskQuery


class TaskRepository(Protocol):
    def get_by_id(self, task_id: int) -> Optional[Task]:
        raise NotImplementedError

    def create_task(self, task: NewTask) -> int:
        raise NotImplementedError

    def update_fields(self, task_id: int, fields: Dict[str, Any]) -> None:
        """Write the given ``Task`` attribute values; unknown keys are rejected."""
        raise NotImplementedError

    def delete(self, task_id: int) -> bool:
        raise NotImplementedError

    def list_tasks(
        self, query: TaskQuery, *, limit: Optional[int] = None, offset: int = 0
    ) -> Tuple[Sequence[Task], int]:
        """Ordered by date (newest first), then priority, then creation time."""
        raise NotImplementedError

    def count_open_for_user(self, user_id: int, task_date: date) -> int:
        """Pending plus in-progress tasks of a user on one day."""
        raise NotImplementedError

    def distinct_categories(self) -> Sequence[str]:
        raise NotImplementedError

    def reassign(
        self,
        task_id: int,
        *,
        from_user: int,
        to_user: int,
        reason: ReassignmentReason,
        at: datetime,
        status: Optional[TaskStatus] = None,
    ) -> None:
        """Move a task to ``to_user`` and append a history entry.

        The first reassignment records ``from_user`` as the original assignee.
        """
        raise NotImplementedError

    def set_status_many(
        self,
        task_ids: Sequence[int],
        *,
        status: TaskStatus,
        completion_notes: Optional[str],
        completed_at: Optional[datetime],
    ) -> int:
        raise NotImplementedError
