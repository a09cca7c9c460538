from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Optional, Sequence, Tuple

from ..core.enums import IssueCategory, IssueSeverity, TaskPriority, VerificationResult, VerificationTaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import Issue, NewVerificationTask, VerificationReport, VerificationTask
from .repository import VerificationRepository

_COLUMNS = """
    verification_id, task_id, original_staff_id, assigned_verifier, assigned_team, location, priority, status,
    assigned_at, deadline, cleanliness, completeness, quality, overall_score, result, comments, issues, verified_at
"""


def _row_to_verification(r: dict) -> VerificationTask:
    issues = tuple(
        Issue(
            category=IssueCategory(i["category"]),
            description=i["description"],
            severity=IssueSeverity(i.get("severity") or "medium"),
        )
        for i in load_json(r.get("issues"), [])
    )
    score = r.get("overall_score")
    return VerificationTask(
        verification_id=int(r["verification_id"]),
        task_id=int(r["task_id"]),
        original_staff_id=int(r["original_staff_id"]),
        assigned_verifier=int(r["assigned_verifier"]),
        assigned_team=int(r["assigned_team"]),
        location=r["location"],
        assigned_at=r["assigned_at"],
        deadline=r["deadline"],
        priority=TaskPriority(r["priority"]),
        status=VerificationTaskStatus(r["status"]),
        cleanliness=r.get("cleanliness"),
        completeness=r.get("completeness"),
        quality=r.get("quality"),
        overall_score=float(score) if score is not None else None,
        result=VerificationResult(r["result"]) if r.get("result") else None,
        comments=r.get("comments") or "",
        issues=issues,
        verified_at=r.get("verified_at"),
    )


class MySQLVerificationRepository(VerificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, verification_id: int) -> Optional[VerificationTask]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM verification_tasks WHERE verification_id=%s", (int(verification_id),))
            r = fetchone(cur)
            return _row_to_verification(r) if r else None

    def get_by_task(self, task_id: int) -> Optional[VerificationTask]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM verification_tasks WHERE task_id=%s", (int(task_id),))
            r = fetchone(cur)
            return _row_to_verification(r) if r else None

    def create(self, verification: NewVerificationTask) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO verification_tasks(task_id, original_staff_id, assigned_verifier, assigned_team,
                                               location, priority, assigned_at, deadline)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(verification.task_id),
                    int(verification.original_staff_id),
                    int(verification.assigned_verifier),
                    int(verification.assigned_team),
                    verification.location,
                    verification.priority.value,
                    verification.assigned_at,
                    verification.deadline,
                ),
            )
            return int(cur.lastrowid)

    def team_counts(self, team_id: int) -> Tuple[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(status IN ('pending','in-progress')), 0) AS open_tasks
                FROM verification_tasks WHERE assigned_team=%s
                """,
                (int(team_id),),
            )
            r = fetchone(cur) or {}
            return int(r.get("total") or 0), int(r.get("open_tasks") or 0)

    def list_for_verifier(
        self, verifier_id: int, *, status: Optional[VerificationTaskStatus] = None
    ) -> Sequence[VerificationTask]:
        sql = f"SELECT {_COLUMNS} FROM verification_tasks WHERE assigned_verifier=%s"
        params: tuple = (int(verifier_id),)
        if status is not None:
            sql += " AND status=%s"
            params += (status.value,)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY assigned_at DESC", params)
            return [_row_to_verification(r) for r in fetchall(cur)]

    def list_assigned_since(self, since: datetime) -> Sequence[VerificationTask]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM verification_tasks WHERE assigned_at>=%s ORDER BY assigned_at DESC",
                (since,),
            )
            return [_row_to_verification(r) for r in fetchall(cur)]

    def list_overdue(self, now: datetime) -> Sequence[VerificationTask]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM verification_tasks
                WHERE status='pending' AND deadline<%s
                ORDER BY deadline
                """,
                (now,),
            )
            return [_row_to_verification(r) for r in fetchall(cur)]

    def record_report(self, verification_id: int, report: VerificationReport, *, verified_at: datetime) -> None:
        issues = [
            {**asdict(i), "category": i.category.value, "severity": i.severity.value} for i in report.issues
        ]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE verification_tasks
                SET cleanliness=%s, completeness=%s, quality=%s, overall_score=%s, result=%s,
                    comments=%s, issues=%s, status='completed', verified_at=%s
                WHERE verification_id=%s
                """,
                (
                    report.cleanliness,
                    report.completeness,
                    report.quality,
                    report.overall_score,
                    report.result.value,
                    report.comments,
                    dump_json(issues),
                    verified_at,
                    int(verification_id),
                ),
            )
