from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone, in_clause
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, username, email, password_hash, role, verified, is_active,
    verification_code, verification_code_expires, reset_password_token,
    reset_password_expires, login_attempts, account_locked, last_login,
    last_active, created_at
"""


def _row_to_user(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        username=r["username"],
        email=r["email"],
        password_hash=r["password_hash"],
        role=Role(r["role"]),
        verified=bool(r["verified"]),
        is_active=bool(r["is_active"]),
        verification_code=r.get("verification_code"),
        verification_code_expires=r.get("verification_code_expires"),
        reset_password_token=r.get("reset_password_token"),
        reset_password_expires=r.get("reset_password_expires"),
        login_attempts=int(r.get("login_attempts") or 0),
        account_locked=bool(r.get("account_locked")),
        last_login=r.get("last_login"),
        last_active=r.get("last_active"),
        created_at=r.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {where}", params)
            r = fetchone(cur)
            return _row_to_user(r) if r else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id=%s", (int(user_id),))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email=%s", (email.lower(),))

    def get_by_reset_token(self, token: str) -> Optional[User]:
        return self._get_one("reset_password_token=%s", (token,))

    def list_users(self, *, role: Optional[Role] = None, verified: Optional[bool] = None) -> Sequence[User]:
        where, params = build_where(
            [
                ("role=%s", role.value if role else None),
                ("verified=%s", None if verified is None else int(verified)),
            ]
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users{where} ORDER BY created_at DESC", tuple(params))
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_by_ids(self, user_ids: Sequence[int]) -> Dict[int, User]:
        ids = sorted({int(u) for u in user_ids})
        if not ids:
            return {}
        placeholders, params = in_clause(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id IN ({placeholders})", params)
            return {int(r["user_id"]): _row_to_user(r) for r in fetchall(cur)}

    def create_user(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        verification_code: str,
        verification_code_expires: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(username, email, password_hash, role, verified, verification_code, verification_code_expires)
                VALUES(%s,%s,%s,'user',0,%s,%s)
                """,
                (username, email, password_hash, verification_code, verification_code_expires),
            )
            return int(cur.lastrowid)

    def set_verification_code(self, user_id: int, *, code: Optional[str], expires: Optional[datetime]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET verification_code=%s, verification_code_expires=%s WHERE user_id=%s",
                (code, expires, int(user_id)),
            )

    def mark_verified(self, user_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET verified=1, verification_code=NULL, verification_code_expires=NULL
                WHERE user_id=%s
                """,
                (int(user_id),),
            )

    def record_failed_login(self, user_id: int, *, attempts: int, locked: bool) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET login_attempts=%s, account_locked=%s WHERE user_id=%s",
                (int(attempts), int(locked), int(user_id)),
            )

    def record_login(self, user_id: int, *, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET login_attempts=0, account_locked=0, last_login=%s, last_active=%s
                WHERE user_id=%s
                """,
                (at, at, int(user_id)),
            )

    def set_reset_token(self, user_id: int, *, token: Optional[str], expires: Optional[datetime]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET reset_password_token=%s, reset_password_expires=%s WHERE user_id=%s",
                (token, expires, int(user_id)),
            )

    def update_password(self, user_id: int, *, password_hash: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET password_hash=%s, reset_password_token=NULL, reset_password_expires=NULL,
                    login_attempts=0, account_locked=0
                WHERE user_id=%s
                """,
                (password_hash, int(user_id)),
            )

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0
