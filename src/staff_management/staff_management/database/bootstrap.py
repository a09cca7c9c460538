from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import mysql.connector
from werkzeug.security import generate_password_hash

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "staff_management_db")),
    )


def _connect(target: DBTarget, *, with_database: bool = True):
    kwargs = {
        "host": target.host,
        "port": target.port,
        "user": target.user,
        "password": target.password,
        "use_pure": True,
    }
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a schema/seed script on ``;`` outside quotes and ``--`` comments."""
    buf: list[str] = []
    in_single = False
    in_double = False
    in_comment = False
    escape = False
    prev = ""

    for ch in sql:
        if in_comment:
            if ch == "\n":
                in_comment = False
                buf.append(ch)
            prev = ch
            continue

        if escape:
            buf.append(ch)
            escape = False
            prev = ch
            continue

        if ch == "\\" and (in_single or in_double):
            buf.append(ch)
            escape = True
            prev = ch
            continue

        if ch == "-" and prev == "-" and not in_single and not in_double:
            buf.pop()
            in_comment = True
            prev = ""
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            prev = ch
            continue

        buf.append(ch)
        prev = ch

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _exec_sql(cur, sql: str) -> int:
    count = 0
    for stmt in iter_sql_statements(sql):
        cur.execute(stmt)
        count += 1
    return count


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def _apply_file(db_config: dict, path: Path) -> int:
    target = _as_target(db_config)
    sql = _strip_create_db_and_use(path.read_text(encoding="utf-8"))
    conn = _connect(target)
    try:
        cur = conn.cursor()
        count = _exec_sql(cur, sql)
        conn.commit()
    finally:
        conn.close()
    return count


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = _apply_file(db_config, Path(schema_path))
    logger.info("Applied %s schema statements from %s", count, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    count = _apply_file(db_config, Path(seed_path))
    logger.info("Applied %s seed statements from %s", count, seed_path)


def upsert_admin(
    db_config: dict, *, username: str, email: str, password: str, role: str = "admin", cur=None
) -> None:
    """Create an admin account or reset its password and reactivate it."""
    if cur is None:
        conn = _connect(_as_target(db_config))
        try:
            upsert_admin(db_config, username=username, email=email, password=password, role=role, cur=conn.cursor())
            conn.commit()
        finally:
            conn.close()
        return

    password_hash = generate_password_hash(password)
    cur.execute("SELECT admin_id FROM admins WHERE email=%s", (email,))
    if cur.fetchone():
        cur.execute(
            "UPDATE admins SET username=%s, password_hash=%s, role=%s, is_active=1 WHERE email=%s",
            (username, password_hash, role, email),
        )
    else:
        cur.execute(
            "INSERT INTO admins (username, email, password_hash, role) VALUES (%s, %s, %s, %s)",
            (username, email, password_hash, role),
        )


def _upsert_user(cur, *, username: str, email: str, password: str) -> None:
    password_hash = generate_password_hash(password)
    cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
    if cur.fetchone():
        cur.execute(
            """
            UPDATE users
            SET username=%s, password_hash=%s, verified=1, is_active=1, login_attempts=0, account_locked=0
            WHERE email=%s
            """,
            (username, password_hash, email),
        )
    else:
        cur.execute(
            "INSERT INTO users (username, email, password_hash, role, verified) VALUES (%s, %s, %s, 'user', 1)",
            (username, email, password_hash),
        )


def ensure_demo_accounts(db_config: dict, *, demo_password: Optional[str] = None) -> None:
    """Demo super admin, admin and staff logins for a freshly seeded database."""
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        upsert_admin(
            db_config,
            username="superadmin",
            email="superadmin@staff.local",
            password=demo_password or "super123",
            role="super_admin",
            cur=cur,
        )
        upsert_admin(
            db_config, username="admin", email="admin@staff.local", password=demo_password or "admin123", cur=cur
        )
        _upsert_user(cur, username="staffdemo", email="staff@staff.local", password=demo_password or "staff123")
        conn.commit()
    finally:
        conn.close()
    logger.info("Demo accounts ready")


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
