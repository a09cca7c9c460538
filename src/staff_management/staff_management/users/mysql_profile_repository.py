from __future__ import annotations

from typing import Dict, Optional, Sequence

from ..core.enums import Department, JobTitle, ShiftType, Skill
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, hhmm, in_clause, load_json
from .model import EmergencyContact, StaffProfile
from .repository import ProfileRepository

_COLUMNS = """
    user_id, name, phone, profile_picture, department, job_title, shift, work_start, work_end,
    skills, years_worked, special_training, shift_flexibility, emergency_name,
    emergency_relationship, emergency_phone, notes, profile_complete, is_active, last_updated
"""


def _row_to_profile(r: dict) -> StaffProfile:
    return StaffProfile(
        user_id=int(r["user_id"]),
        name=r["name"],
        phone=r["phone"],
        department=Department(r["department"]),
        job_title=JobTitle(r["job_title"]),
        shift=ShiftType(r["shift"]),
        emergency_contact=EmergencyContact(
            name=r["emergency_name"],
            relationship=r["emergency_relationship"],
            phone=r["emergency_phone"],
        ),
        work_start=hhmm(r.get("work_start")) or "09:00",
        work_end=hhmm(r.get("work_end")) or "17:00",
        skills=tuple(Skill(s) for s in load_json(r.get("skills"), [])),
        years_worked=int(r.get("years_worked") or 0),
        special_training=tuple(load_json(r.get("special_training"), [])),
        shift_flexibility=bool(r.get("shift_flexibility")),
        notes=r.get("notes") or "",
        profile_picture=r.get("profile_picture"),
        profile_complete=bool(r.get("profile_complete")),
        is_active=bool(r.get("is_active", 1)),
        last_updated=r.get("last_updated"),
    )


class MySQLProfileRepository(ProfileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_user(self, user_id: int) -> Optional[StaffProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM staff_profiles WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _row_to_profile(r) if r else None

    def list_all(self) -> Sequence[StaffProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM staff_profiles ORDER BY name")
            return [_row_to_profile(r) for r in fetchall(cur)]

    def list_by_users(self, user_ids: Sequence[int]) -> Dict[int, StaffProfile]:
        ids = sorted({int(u) for u in user_ids})
        if not ids:
            return {}
        placeholders, params = in_clause(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM staff_profiles WHERE user_id IN ({placeholders})", params)
            return {int(r["user_id"]): _row_to_profile(r) for r in fetchall(cur)}

    def upsert(self, profile: StaffProfile) -> None:
        p = profile
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO staff_profiles(
                    user_id, name, phone, profile_picture, department, job_title, shift, work_start, work_end,
                    skills, years_worked, special_training, shift_flexibility, emergency_name,
                    emergency_relationship, emergency_phone, notes, profile_complete, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    name=VALUES(name), phone=VALUES(phone), profile_picture=VALUES(profile_picture),
                    department=VALUES(department), job_title=VALUES(job_title), shift=VALUES(shift),
                    work_start=VALUES(work_start), work_end=VALUES(work_end), skills=VALUES(skills),
                    years_worked=VALUES(years_worked), special_training=VALUES(special_training),
                    shift_flexibility=VALUES(shift_flexibility), emergency_name=VALUES(emergency_name),
                    emergency_relationship=VALUES(emergency_relationship), emergency_phone=VALUES(emergency_phone),
                    notes=VALUES(notes), profile_complete=VALUES(profile_complete), is_active=VALUES(is_active)
                """,
                (
                    p.user_id,
                    p.name,
                    p.phone,
                    p.profile_picture,
                    p.department.value,
                    p.job_title.value,
                    p.shift.value,
                    p.work_start,
                    p.work_end,
                    dump_json([s.value for s in p.skills]),
                    p.years_worked,
                    dump_json(list(p.special_training)),
                    int(p.shift_flexibility),
                    p.emergency_contact.name,
                    p.emergency_contact.relationship,
                    p.emergency_contact.phone,
                    p.notes,
                    int(p.profile_complete),
                    int(p.is_active),
                ),
            )

    def delete_by_user(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM staff_profiles WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0
