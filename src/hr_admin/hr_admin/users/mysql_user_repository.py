from __future__ import annotations

from typing import Any, FrozenSet, Mapping, Optional, Sequence

from ..access.capabilities import CapabilityMatrix
from ..access.roles import Role
from ..core.enums import RoleName
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json_column
from .model import Department, Principal
from .repository import DepartmentRepository, UserDirectory

_PRINCIPAL_SELECT = """
    SELECT u.user_id, u.full_name, u.is_super_admin, u.is_active,
           r.name AS role_name, r.level AS role_level, r.description AS role_description,
           r.display_name AS role_display_name, r.permissions AS role_permissions
    FROM users u
    LEFT JOIN roles r ON r.role_id = u.role_id
"""


def _role_from_row(r: dict) -> Optional[Role]:
    if not r.get("role_name"):
        return None
    raw = from_json_column(r.get("role_permissions"))
    return Role(
        name=RoleName(r["role_name"]),
        level=r.get("role_level") or "employee",
        description=r.get("role_description") or "",
        display_name=r.get("role_display_name"),
        capabilities=CapabilityMatrix.from_mapping(raw),
    )


class MySQLUserDirectory(UserDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _departments(self, cur, user_id: int) -> FrozenSet[int]:
        cur.execute("SELECT dept_id FROM user_departments WHERE user_id=%s", (int(user_id),))
        return frozenset(int(r["dept_id"]) for r in fetchall(cur))

    def get_principal(self, user_id: int) -> Optional[Principal]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_PRINCIPAL_SELECT + " WHERE u.user_id=%s", (int(user_id),))
            r = fetchone(cur)
            if not r:
                return None
            return Principal(
                user_id=int(r["user_id"]),
                full_name=r["full_name"],
                role=_role_from_row(r),
                department_ids=self._departments(cur, int(r["user_id"])),
                is_super_admin=bool(r["is_super_admin"]),
                is_active=bool(r["is_active"]),
            )

    def department_ids_for(self, user_id: int) -> FrozenSet[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._departments(cur, user_id)

    def list_principals(self, *, active_only: bool = True) -> Sequence[Principal]:
        where = " WHERE u.is_active=1" if active_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_PRINCIPAL_SELECT + where + " ORDER BY u.full_name")
            rows = fetchall(cur)
            cur.execute("SELECT user_id, dept_id FROM user_departments")
            memberships: dict[int, set[int]] = {}
            for m in fetchall(cur):
                memberships.setdefault(int(m["user_id"]), set()).add(int(m["dept_id"]))
            return [
                Principal(
                    user_id=int(r["user_id"]),
                    full_name=r["full_name"],
                    role=_role_from_row(r),
                    department_ids=frozenset(memberships.get(int(r["user_id"]), ())),
                    is_super_admin=bool(r["is_super_admin"]),
                    is_active=bool(r["is_active"]),
                )
                for r in rows
            ]


_DEPARTMENT_SELECT = """
    SELECT d.dept_id, d.dept_name, d.description, d.is_active, COUNT(ud.user_id) AS member_count
    FROM departments d
    LEFT JOIN user_departments ud ON ud.dept_id = d.dept_id
"""
_DEPARTMENT_GROUP = " GROUP BY d.dept_id, d.dept_name, d.description, d.is_active"
_DEPARTMENT_COLUMNS = ("dept_name", "description", "is_active")


def _department_from_row(r: dict) -> Department:
    return Department(
        dept_id=int(r["dept_id"]),
        dept_name=r["dept_name"],
        description=r.get("description"),
        is_active=bool(r.get("is_active", 1)),
        member_count=int(r.get("member_count") or 0),
    )


class MySQLDepartmentRepository(DepartmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_DEPARTMENT_SELECT + _DEPARTMENT_GROUP + " ORDER BY d.dept_name")
            return [_department_from_row(r) for r in fetchall(cur)]

    def get(self, dept_id: int) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_DEPARTMENT_SELECT + " WHERE d.dept_id=%s" + _DEPARTMENT_GROUP, (int(dept_id),))
            r = fetchone(cur)
            return _department_from_row(r) if r else None

    def find_by_name(self, name: str) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_DEPARTMENT_SELECT + " WHERE d.dept_name=%s" + _DEPARTMENT_GROUP, (name,))
            r = fetchone(cur)
            return _department_from_row(r) if r else None

    def insert(self, department: Department) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO departments(dept_name, description, is_active) VALUES(%s,%s,%s)",
                (department.dept_name, department.description, 1 if department.is_active else 0),
            )
            return int(cur.lastrowid)

    def update(self, dept_id: int, changes: Mapping[str, Any]) -> bool:
        unknown = set(changes) - set(_DEPARTMENT_COLUMNS)
        if unknown:
            raise ValidationError("Unknown fields: " + ", ".join(sorted(unknown)))
        if not changes:
            return False
        assignments = ", ".join(f"{c}=%s" for c in changes)
        params = tuple((1 if v else 0) if c == "is_active" else v for c, v in changes.items())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE departments SET {assignments} WHERE dept_id=%s", params + (int(dept_id),))
            return cur.rowcount > 0

    def delete(self, dept_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM departments WHERE dept_id=%s", (int(dept_id),))
            return cur.rowcount > 0
