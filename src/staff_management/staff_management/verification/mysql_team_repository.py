from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Set

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import SecretTeam, TeamMember
from .repository import TeamRepository

_COLUMNS = "team_id, team_name, team_code, is_active, created_by, created_at"


def _row_to_team(r: dict, members: Sequence[TeamMember]) -> SecretTeam:
    return SecretTeam(
        team_id=int(r["team_id"]),
        team_name=r["team_name"],
        team_code=r["team_code"],
        members=tuple(members),
        is_active=bool(r["is_active"]),
        created_by=r.get("created_by"),
        created_at=r.get("created_at"),
    )


class MySQLTeamRepository(TeamRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _members(self, cur, team_ids: Sequence[int]) -> Dict[int, List[TeamMember]]:
        found: Dict[int, List[TeamMember]] = defaultdict(list)
        if not team_ids:
            return found
        placeholders, params = in_clause(list(team_ids))
        cur.execute(
            f"""
            SELECT team_id, user_id, is_active, assigned_at
            FROM secret_team_members WHERE team_id IN ({placeholders})
            ORDER BY assigned_at, user_id
            """,
            params,
        )
        for r in fetchall(cur):
            found[int(r["team_id"])].append(
                TeamMember(user_id=int(r["user_id"]), assigned_at=r.get("assigned_at"), is_active=bool(r["is_active"]))
            )
        return found

    def _load(self, cur, rows: List[dict]) -> List[SecretTeam]:
        members = self._members(cur, [int(r["team_id"]) for r in rows])
        return [_row_to_team(r, members.get(int(r["team_id"]), ())) for r in rows]

    def get_by_id(self, team_id: int) -> Optional[SecretTeam]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM secret_teams WHERE team_id=%s", (int(team_id),))
            r = fetchone(cur)
            return self._load(cur, [r])[0] if r else None

    def code_exists(self, team_code: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM secret_teams WHERE team_code=%s", (team_code,))
            return fetchone(cur) is not None

    def list_teams(self, *, active: Optional[bool] = None) -> Sequence[SecretTeam]:
        sql = f"SELECT {_COLUMNS} FROM secret_teams"
        params: tuple = ()
        if active is not None:
            sql += " WHERE is_active=%s"
            params = (int(active),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY created_at DESC, team_id DESC", params)
            return self._load(cur, fetchall(cur))

    def active_team_for_user(self, user_id: int) -> Optional[SecretTeam]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {', '.join('t.' + c.strip() for c in _COLUMNS.split(','))}
                FROM secret_teams t
                JOIN secret_team_members m ON m.team_id = t.team_id
                WHERE m.user_id=%s AND m.is_active=1 AND t.is_active=1
                LIMIT 1
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            return self._load(cur, [r])[0] if r else None

    def users_in_active_teams(self, user_ids: Sequence[int]) -> Set[int]:
        if not user_ids:
            return set()
        placeholders, params = in_clause([int(u) for u in user_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT DISTINCT m.user_id
                FROM secret_team_members m
                JOIN secret_teams t ON t.team_id = m.team_id
                WHERE t.is_active=1 AND m.user_id IN ({placeholders})
                """,
                params,
            )
            return {int(r["user_id"]) for r in fetchall(cur)}

    def create_team(self, *, team_name: str, team_code: str, member_ids: Sequence[int], created_by: Optional[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO secret_teams(team_name, team_code, created_by) VALUES(%s,%s,%s)",
                (team_name, team_code, created_by),
            )
            team_id = int(cur.lastrowid)
            cur.executemany(
                "INSERT INTO secret_team_members(team_id, user_id) VALUES(%s,%s)",
                [(team_id, int(u)) for u in member_ids],
            )
            return team_id

    def set_active(self, team_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE secret_teams SET is_active=%s WHERE team_id=%s", (int(is_active), int(team_id)))
            if cur.rowcount:
                return True
            cur.execute("SELECT 1 AS found FROM secret_teams WHERE team_id=%s", (int(team_id),))
            return fetchone(cur) is not None
