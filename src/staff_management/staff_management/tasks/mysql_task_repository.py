from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.enums import (
    ReassignmentReason,
    TaskCategory,
    TaskPriority,
    TaskStatus,
    TaskVerificationStatus,
    VerificationResult,
)
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone, in_clause
from .model import NewTask, ReassignmentEntry, Task, TaskQuery
from .repository import TaskRepository

_COLUMNS = """
    task_id, title, description, assigned_to, assigned_by, task_date, priority, category, location,
    estimated_duration, status, completion_notes, completed_at, rating, feedback, rated_by, rated_at,
    verification_status, verifier_id, verification_assigned_at, verification_result, verification_score,
    verification_notes, verified_at, original_assignee, is_reassigned, reassignment_reason, reassigned_at,
    created_at
"""

_ORDER = "ORDER BY task_date DESC, FIELD(priority,'urgent','high','medium','low'), created_at DESC, task_id DESC"

# Task attributes that update_fields may write.
_UPDATABLE = {
    "title",
    "description",
    "assigned_to",
    "task_date",
    "priority",
    "category",
    "location",
    "estimated_duration",
    "status",
    "completion_notes",
    "completed_at",
    "rating",
    "feedback",
    "rated_by",
    "rated_at",
    "verification_status",
    "verifier_id",
    "verification_assigned_at",
    "verification_result",
    "verification_score",
    "verification_notes",
    "verified_at",
}


def _optional(enum_cls, value):
    return enum_cls(value) if value else None


def _row_to_task(r: dict, history: Sequence[ReassignmentEntry] = ()) -> Task:
    return Task(
        task_id=int(r["task_id"]),
        title=r["title"],
        assigned_to=int(r["assigned_to"]),
        task_date=r["task_date"],
        category=TaskCategory(r["category"]),
        location=r["location"],
        description=r.get("description") or "",
        assigned_by=r.get("assigned_by"),
        priority=TaskPriority(r["priority"]),
        estimated_duration=int(r.get("estimated_duration") or 0),
        status=TaskStatus(r["status"]),
        completion_notes=r.get("completion_notes"),
        completed_at=r.get("completed_at"),
        rating=r.get("rating"),
        feedback=r.get("feedback"),
        rated_by=r.get("rated_by"),
        rated_at=r.get("rated_at"),
        verification_status=TaskVerificationStatus(r.get("verification_status") or "none"),
        verifier_id=r.get("verifier_id"),
        verification_assigned_at=r.get("verification_assigned_at"),
        verification_result=_optional(VerificationResult, r.get("verification_result")),
        verification_score=r.get("verification_score"),
        verification_notes=r.get("verification_notes") or "",
        verified_at=r.get("verified_at"),
        original_assignee=r.get("original_assignee"),
        is_reassigned=bool(r.get("is_reassigned")),
        reassignment_reason=_optional(ReassignmentReason, r.get("reassignment_reason")),
        reassigned_at=r.get("reassigned_at"),
        reassignment_history=tuple(history),
        created_at=r.get("created_at"),
    )


def _db_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _history(self, cur, task_ids: Sequence[int]) -> Dict[int, List[ReassignmentEntry]]:
        found: Dict[int, List[ReassignmentEntry]] = defaultdict(list)
        if not task_ids:
            return found
        placeholders, params = in_clause(list(task_ids))
        cur.execute(
            f"""
            SELECT task_id, from_user, to_user, reason, created_at
            FROM task_reassignments WHERE task_id IN ({placeholders})
            ORDER BY created_at, reassignment_id
            """,
            params,
        )
        for r in fetchall(cur):
            found[int(r["task_id"])].append(
                ReassignmentEntry(
                    from_user=int(r["from_user"]),
                    to_user=int(r["to_user"]),
                    reason=ReassignmentReason(r["reason"]),
                    timestamp=r.get("created_at"),
                )
            )
        return found

    def get_by_id(self, task_id: int) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM tasks WHERE task_id=%s", (int(task_id),))
            r = fetchone(cur)
            if not r:
                return None
            history = self._history(cur, [int(task_id)])
            return _row_to_task(r, history.get(int(task_id), ()))

    def create_task(self, task: NewTask) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO tasks(title, description, assigned_to, assigned_by, task_date, priority,
                                  category, location, estimated_duration)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    task.title,
                    task.description,
                    int(task.assigned_to),
                    task.assigned_by,
                    task.task_date,
                    task.priority.value,
                    task.category.value,
                    task.location,
                    int(task.estimated_duration),
                ),
            )
            return int(cur.lastrowid)

    def update_fields(self, task_id: int, fields: Dict[str, Any]) -> None:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update task fields: {', '.join(sorted(unknown))}")
        if not fields:
            return
        names = sorted(fields)
        assignments = ", ".join(f"{name}=%s" for name in names)
        params = tuple(_db_value(fields[name]) for name in names) + (int(task_id),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE tasks SET {assignments} WHERE task_id=%s", params)

    def delete(self, task_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM tasks WHERE task_id=%s", (int(task_id),))
            return cur.rowcount > 0

    def list_tasks(
        self, query: TaskQuery, *, limit: Optional[int] = None, offset: int = 0
    ) -> Tuple[Sequence[Task], int]:
        filters = [
            ("assigned_to=%s", query.assigned_to),
            ("status=%s", _db_value(query.status)),
            ("task_date=%s", query.task_date),
            ("task_date>=%s", query.date_from),
            ("task_date<=%s", query.date_to),
            ("priority=%s", _db_value(query.priority)),
            ("category=%s", _db_value(query.category)),
            ("verifier_id=%s", query.verifier_id),
            ("verification_status=%s", _db_value(query.verification_status)),
            ("verification_result=%s", _db_value(query.verification_result)),
            ("is_reassigned=%s", None if query.is_reassigned is None else int(query.is_reassigned)),
            ("created_at>=%s", query.created_since),
        ]
        where, params = build_where(filters)
        clauses = [where[len(" WHERE "):]] if where else []
        if query.statuses:
            placeholders, values = in_clause([s.value for s in query.statuses])
            clauses.append(f"status IN ({placeholders})")
            params.extend(values)
        if query.search:
            clauses.append("(title LIKE %s OR description LIKE %s OR location LIKE %s)")
            params.extend([f"%{query.search}%"] * 3)
        where = (" WHERE " + " AND ".join(clauses)) if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM tasks{where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            sql = f"SELECT {_COLUMNS} FROM tasks{where} {_ORDER}"
            page_params = tuple(params)
            if limit is not None:
                sql += " LIMIT %s OFFSET %s"
                page_params += (int(limit), int(offset))
            cur.execute(sql, page_params)
            rows = fetchall(cur)
            history = self._history(cur, [int(r["task_id"]) for r in rows])
            return [_row_to_task(r, history.get(int(r["task_id"]), ())) for r in rows], total

    def count_open_for_user(self, user_id: int, task_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total FROM tasks
                WHERE assigned_to=%s AND task_date=%s AND status IN ('pending','in-progress')
                """,
                (int(user_id), task_date),
            )
            return int((fetchone(cur) or {}).get("total") or 0)

    def distinct_categories(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT DISTINCT category FROM tasks")
            return [r["category"] for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE tasks
                SET original_assignee=IF(is_reassigned=1, original_assignee, %s),
                    assigned_to=%s, is_reassigned=1, reassignment_reason=%s, reassigned_at=%s,
                    status=COALESCE(%s, status)
                WHERE task_id=%s
                """,
                (int(from_user), int(to_user), reason.value, at, _db_value(status), int(task_id)),
            )
            cur.execute(
                "INSERT INTO task_reassignments(task_id, from_user, to_user, reason, created_at) VALUES(%s,%s,%s,%s,%s)",
                (int(task_id), int(from_user), int(to_user), reason.value, at),
            )

    def set_status_many(
        self,
        task_ids: Sequence[int],
        *,
        status: TaskStatus,
        completion_notes: Optional[str],
        completed_at: Optional[datetime],
    ) -> int:
        if not task_ids:
            return 0
        placeholders, params = in_clause([int(t) for t in task_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE tasks
                SET status=%s, completed_at=%s, completion_notes=COALESCE(%s, completion_notes)
                WHERE task_id IN ({placeholders})
                """,
                (status.value, completed_at, completion_notes) + params,
            )
            return int(cur.rowcount)
