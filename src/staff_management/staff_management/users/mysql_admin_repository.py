from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AdminPermission, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import Admin
from .repository import AdminRepository

_COLUMNS = "admin_id, username, email, password_hash, role, is_active, permissions, last_login, created_by, created_at"


def _row_to_admin(r: dict) -> Admin:
    return Admin(
        admin_id=int(r["admin_id"]),
        username=r["username"],
        email=r["email"],
        password_hash=r["password_hash"],
        role=Role(r["role"]),
        is_active=bool(r["is_active"]),
        permissions=tuple(AdminPermission(p) for p in load_json(r.get("permissions"), [])),
        last_login=r.get("last_login"),
        created_by=r.get("created_by"),
        created_at=r.get("created_at"),
    )


class MySQLAdminRepository(AdminRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, admin_id: int) -> Optional[Admin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM admins WHERE admin_id=%s", (int(admin_id),))
            r = fetchone(cur)
            return _row_to_admin(r) if r else None

    def get_by_email(self, email: str) -> Optional[Admin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM admins WHERE email=%s", (email.lower(),))
            r = fetchone(cur)
            return _row_to_admin(r) if r else None

    def list_all(self) -> Sequence[Admin]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM admins ORDER BY created_at DESC")
            return [_row_to_admin(r) for r in fetchall(cur)]

    def create_admin(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        role: Role,
        permissions: Sequence[AdminPermission],
        created_by: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO admins(username, email, password_hash, role, permissions, created_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (username, email, password_hash, role.value, dump_json([p.value for p in permissions]), created_by),
            )
            return int(cur.lastrowid)

    def set_active(self, admin_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE admins SET is_active=%s WHERE admin_id=%s", (int(is_active), int(admin_id)))
            return cur.rowcount > 0

    def record_login(self, admin_id: int, *, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE admins SET last_login=%s WHERE admin_id=%s", (at, int(admin_id)))
