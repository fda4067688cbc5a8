from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import PaymentType
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import PayrollSetting
from .repository import PayrollSettingRepository

_SELECT = """
    SELECT setting_id, employee_id, amount, description, payroll_type, payment_type, is_active
    FROM payroll_settings
"""
_COLUMNS = ("employee_id", "amount", "description", "payroll_type", "payment_type", "is_active")


def _from_row(r: dict) -> PayrollSetting:
    return PayrollSetting(
        setting_id=int(r["setting_id"]),
        employee_id=int(r["employee_id"]),
        amount=Decimal(str(r["amount"])),
        description=r.get("description"),
        payroll_type=r.get("payroll_type") or "salary",
        payment_type=PaymentType(r.get("payment_type") or PaymentType.BANK_TRANSFER.value),
        is_active=bool(r.get("is_active", 1)),
    )


def _to_column(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return 1 if value else 0
    return value


class MySQLPayrollSettingRepository(PayrollSettingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_employee(self, employee_id: int) -> Optional[PayrollSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE employee_id=%s AND is_active=1 ORDER BY setting_id DESC LIMIT 1",
                (int(employee_id),),
            )
            r = fetchone(cur)
            return _from_row(r) if r else None

    def get(self, setting_id: int) -> Optional[PayrollSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE setting_id=%s", (int(setting_id),))
            r = fetchone(cur)
            return _from_row(r) if r else None

    def list(self, *, employee_id: Optional[int] = None) -> Sequence[PayrollSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            if employee_id is None:
                cur.execute(_SELECT + " ORDER BY setting_id DESC")
            else:
                cur.execute(_SELECT + " WHERE employee_id=%s ORDER BY setting_id DESC", (int(employee_id),))
            return [_from_row(r) for r in fetchall(cur)]

    def insert(self, setting: PayrollSetting) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO payroll_settings({', '.join(_COLUMNS)}) VALUES({','.join(['%s'] * len(_COLUMNS))})",
                tuple(_to_column(getattr(setting, c)) for c in _COLUMNS),
            )
            return int(cur.lastrowid)

    def update(self, setting_id: int, changes: Mapping[str, Any]) -> bool:
        unknown = set(changes) - set(_COLUMNS)
        if unknown:
            raise ValidationError("Unknown fields: " + ", ".join(sorted(unknown)))
        if not changes:
            return False
        assignments = ", ".join(f"{c}=%s" for c in changes)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE payroll_settings SET {assignments} WHERE setting_id=%s",
                tuple(_to_column(v) for v in changes.values()) + (int(setting_id),),
            )
            return cur.rowcount > 0

    def delete(self, setting_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM payroll_settings WHERE setting_id=%s", (int(setting_id),))
            return cur.rowcount > 0
