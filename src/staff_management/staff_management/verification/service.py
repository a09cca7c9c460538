from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..common.datetime_utils import now_local, period_start
from ..common.rounding import round_half_up
from ..common.validators import require_enum, require_id, require_max_length, require_non_empty
from ..core.constants import TEAM_SIZE, VERIFICATION_DEADLINE_HOURS
from ..core.enums import TaskPriority, TaskStatus, VerificationResult, VerificationTaskStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..tasks.repository import TaskRepository
from ..users.repository import UserRepository
from .model import NewVerificationTask, SecretTeam
from .repository import TeamRepository, VerificationRepository
from .scoring import build_report

logger = logging.getLogger(__name__)


def _mean1(values: Sequence[float]) -> float:
    return round_half_up(sum(values) / len(values), 1) if values else 0


def _pct(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole else 0


class VerificationService:
    """Secret-team inspections of completed tasks.

    Each inspection goes to a random active member of the active team with
    the fewest open inspections and is due 24 hours after assignment.
    """

    def __init__(
        self,
        teams: TeamRepository,
        verifications: VerificationRepository,
        tasks: TaskRepository,
        users: UserRepository,
        *,
        clock: Callable[[], datetime] = now_local,
        rng: Optional[random.Random] = None,
    ):
        self._teams = teams
        self._verifications = verifications
        self._tasks = tasks
        self._users = users
        self._clock = clock
        self._rng = rng or random.Random()

    def _new_code(self) -> str:
        while True:
            code = f"ST{self._rng.randint(100, 999)}"
            if not self._teams.code_exists(code):
                return code

    def _team_view(self, team: SecretTeam) -> dict:
        users = self._users.list_by_ids([m.user_id for m in team.members])
        return {
            "id": team.team_id,
            "team_name": team.team_name,
            "team_code": team.team_code,
            "is_active": team.is_active,
            "members": [
                {
                    "id": m.user_id,
                    "username": users[m.user_id].username if m.user_id in users else None,
                    "email": users[m.user_id].email if m.user_id in users else None,
                    "assigned_at": m.assigned_at,
                    "is_active": m.is_active,
                }
                for m in team.members
            ],
        }

    def create_team(self, payload: dict, *, created_by: Optional[int]) -> dict:
        name = payload.get("team_name")
        member_ids = payload.get("member_ids")
        if not name or not isinstance(member_ids, list) or len(member_ids) != TEAM_SIZE:
            raise ValidationError("Need team name and exactly 3 member IDs")
        try:
            ids = [int(m) for m in member_ids]
        except (TypeError, ValueError):
            raise ValidationError("Member IDs must be numbers")
        if len(set(ids)) != TEAM_SIZE or len(self._users.list_by_ids(ids)) != TEAM_SIZE:
            raise ValidationError("Some users not found or not regular staff")
        if self._teams.users_in_active_teams(ids):
            raise ValidationError("One or more users are already in an active team")

        team_id = self._teams.create_team(
            team_name=require_max_length(require_non_empty(name, "Team name"), "Team name", 50),
            team_code=self._new_code(),
            member_ids=ids,
            created_by=created_by,
        )
        team = self._teams.get_by_id(team_id)
        logger.info("Secret team %s created with members %s", team.team_code, ids)
        return self._team_view(team)

    def _pick_team(self) -> Optional[SecretTeam]:
        best, best_load = None, None
        for team in self._teams.list_teams(active=True):
            if not team.active_members:
                continue
            _, load = self._verifications.team_counts(team.team_id)
            if best is None or load < best_load:
                best, best_load = team, load
        return best

    def assign(self, task_id: Any) -> dict:
        if not task_id:
            raise ValidationError("Task ID required")
        task = self._tasks.get_by_id(require_id(task_id, "Task ID"))
        if not task or task.status != TaskStatus.COMPLETED:
            raise ValidationError("Task must be completed")
        if self._verifications.get_by_task(task.task_id):
            raise ValidationError("Verification already assigned for this task")
        team = self._pick_team()
        if not team:
            raise ValidationError("No active teams available")

        member = self._rng.choice(team.active_members)
        now = self._clock()
        verification_id = self._verifications.create(
            NewVerificationTask(
                task_id=task.task_id,
                original_staff_id=task.assigned_to,
                assigned_verifier=member.user_id,
                assigned_team=team.team_id,
                location=task.location,
                assigned_at=now,
                deadline=now + timedelta(hours=VERIFICATION_DEADLINE_HOURS),
                priority=TaskPriority.URGENT if task.priority == TaskPriority.URGENT else TaskPriority.MEDIUM,
            )
        )
        verification = self._verifications.get_by_id(verification_id)
        logger.info("Task id=%s sent to secret team %s", task.task_id, team.team_code)
        return {"id": verification_id, "team_code": team.team_code, "deadline": verification.deadline}

    def my_tasks(self, user_id: int, *, status: Any = None) -> dict:
        team = self._teams.active_team_for_user(user_id)
        if not team:
            return {"is_verifier": False, "message": "You are not part of any verification team", "tasks": []}

        wanted = require_enum(VerificationTaskStatus, status, "status") if status else None
        now = self._clock()
        items = []
        for v in self._verifications.list_for_verifier(user_id, status=wanted):
            task = self._tasks.get_by_id(v.task_id)
            items.append(
                {
                    "id": v.verification_id,
                    "task_title": task.title if task else "Unknown Task",
                    "category": task.category if task else "General",
                    "priority": v.priority,
                    "location": v.location,
                    "status": v.status,
                    "result": v.result,
                    "overall_score": v.overall_score,
                    "deadline": v.deadline,
                    "assigned_at": v.assigned_at,
                    "is_overdue": v.is_overdue(now),
                    "team_code": team.team_code,
                }
            )
        return {
            "is_verifier": True,
            "team_code": team.team_code,
            "tasks": items,
            "summary": {
                "total": len(items),
                "pending": sum(1 for i in items if i["status"] == VerificationTaskStatus.PENDING),
                "overdue": sum(1 for i in items if i["is_overdue"]),
                "completed": sum(1 for i in items if i["status"] == VerificationTaskStatus.COMPLETED),
            },
        }

    def submit(self, verification_id: int, *, user_id: int, payload: dict) -> dict:
        report = build_report(payload)
        verification = self._verifications.get_by_id(verification_id)
        if not verification:
            raise NotFoundError("Verification task not found")
        if verification.assigned_verifier != user_id:
            raise AuthorizationError("You can only submit reports for tasks assigned to you")
        if verification.status == VerificationTaskStatus.COMPLETED:
            raise ValidationError("Verification report already submitted")

        self._verifications.record_report(verification_id, report, verified_at=self._clock())
        task = self._tasks.get_by_id(verification.task_id)
        logger.info(
            "Verification id=%s scored %.1f (%s)", verification_id, report.overall_score, report.result.value
        )
        return {
            "task_title": task.title if task else None,
            "overall_score": report.overall_score,
            "verification_result": report.result,
            "breakdown": {
                "cleanliness": report.cleanliness,
                "completeness": report.completeness,
                "quality": report.quality,
            },
        }

    def dashboard(self, period: str = "today") -> dict:
        if period not in ("today", "week", "month"):
            period = "today"
        now = self._clock()
        found = self._verifications.list_assigned_since(period_start(period, now))
        tasks = {v.task_id: self._tasks.get_by_id(v.task_id) for v in found}
        scored = [v for v in found if v.overall_score]

        stats = {
            "total": len(found),
            "pending": sum(1 for v in found if v.status == VerificationTaskStatus.PENDING),
            "in_progress": sum(1 for v in found if v.status == VerificationTaskStatus.IN_PROGRESS),
            "completed": sum(1 for v in found if v.status == VerificationTaskStatus.COMPLETED),
            "overdue": sum(1 for v in found if v.is_overdue(now)),
            "passed": sum(1 for v in found if v.result == VerificationResult.PASS),
            "failed": sum(1 for v in found if v.result == VerificationResult.FAIL),
            "recheck": sum(1 for v in found if v.result == VerificationResult.RECHECK),
            "avg_score": _mean1([v.overall_score for v in scored]),
            "avg_cleanliness": _mean1([v.cleanliness for v in scored]),
            "avg_completeness": _mean1([v.completeness for v in scored]),
            "avg_quality": _mean1([v.quality for v in scored]),
        }

        category_stats: Dict[str, dict] = {}
        for v in found:
            task = tasks.get(v.task_id)
            if not task:
                continue
            entry = category_stats.setdefault(
                task.category.value, {"total": 0, "pass": 0, "fail": 0, "recheck": 0, "scores": []}
            )
            entry["total"] += 1
            if v.result:
                entry[v.result.value] += 1
            if v.overall_score:
                entry["scores"].append(v.overall_score)
        for entry in category_stats.values():
            entry["avg_score"] = _mean1(entry.pop("scores"))

        staff = self._users.list_by_ids(sorted({v.original_staff_id for v in found[:15]}))
        teams = {t.team_id: t for t in self._teams.list_teams()}
        recent = []
        for v in found[:15]:
            task = tasks.get(v.task_id)
            recent.append(
                {
                    "id": v.verification_id,
                    "task_title": task.title if task else "Unknown",
                    "category": task.category if task else "General",
                    "staff": staff[v.original_staff_id].username if v.original_staff_id in staff else "Unknown",
                    "team": teams[v.assigned_team].team_code if v.assigned_team in teams else "Unknown",
                    "result": v.result,
                    "score": v.overall_score,
                    "status": v.status,
                    "is_overdue": v.is_overdue(now),
                    "verified_at": v.verified_at,
                    "issues": len(v.issues),
                }
            )

        return {
            "period": period,
            "stats": stats,
            "category_stats": category_stats,
            "recent_tasks": recent,
            "summary": {
                "pass_rate": _pct(stats["passed"], stats["total"]),
                "completion_rate": _pct(stats["completed"], stats["total"]),
                "overdue_rate": _pct(stats["overdue"], stats["total"]),
            },
        }

    def teams(self) -> dict:
        teams = self._teams.list_teams()
        creators = self._users.list_by_ids(sorted({t.created_by for t in teams if t.created_by}))
        items = []
        for team in teams:
            total, pending = self._verifications.team_counts(team.team_id)
            view = self._team_view(team)
            view.update(
                {
                    "member_count": len(team.members),
                    "stats": {"total_tasks": total, "pending_tasks": pending, "completed_tasks": total - pending},
                    "created_by": creators[team.created_by].username if team.created_by in creators else "Unknown",
                    "created_at": team.created_at,
                }
            )
            items.append(view)
        active = sum(1 for t in teams if t.is_active)
        return {"teams": items, "summary": {"total": len(teams), "active": active, "inactive": len(teams) - active}}

    def overdue(self) -> dict:
        now = self._clock()
        found = self._verifications.list_overdue(now)
        people = self._users.list_by_ids(
            sorted({v.original_staff_id for v in found} | {v.assigned_verifier for v in found})
        )
        teams = {t.team_id: t for t in self._teams.list_teams()}
        items: List[dict] = []
        for v in found:
            task = self._tasks.get_by_id(v.task_id)
            items.append(
                {
                    "id": v.verification_id,
                    "task_title": task.title if task else "Unknown",
                    "staff": people[v.original_staff_id].username if v.original_staff_id in people else "Unknown",
                    "verifier": people[v.assigned_verifier].username if v.assigned_verifier in people else "Unknown",
                    "team": teams[v.assigned_team].team_code if v.assigned_team in teams else "Unknown",
                    "deadline": v.deadline,
                    "hours_overdue": int((now - v.deadline).total_seconds() // 3600),
                    "location": v.location,
                }
            )
        return {"overdue_tasks": items, "total": len(items)}

    def set_team_status(self, team_id: int, is_active: Any) -> dict:
        active = bool(is_active)
        if not self._teams.set_active(team_id, is_active=active):
            raise NotFoundError("Team not found")
        team = self._teams.get_by_id(team_id)
        return {
            "message": f"Team {'activated' if active else 'deactivated'} successfully",
            "team": {
                "id": team.team_id,
                "team_name": team.team_name,
                "team_code": team.team_code,
                "is_active": team.is_active,
            },
        }
