from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import AbstractSet, Any, Callable, Mapping, Optional, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import (
    LeaveStatus,
    LeaveType,
    PaymentCategory,
    PaymentStatus,
    PaymentType,
    PayrollStatus,
    RecordKind,
)
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json_column, to_json_column
from .model import AdditionalPayment, InventoryItem, LeaveRequest, PayrollItem, PayrollRecord
from .repository import RecordRepository


def _dec(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def _payroll_from_row(r: dict) -> PayrollRecord:
    items = tuple(
        PayrollItem(
            description=i.get("description") or "",
            amount=_dec(i.get("amount")),
            payroll_type=i.get("payroll_type") or "salary",
            payment_type=PaymentType(i.get("payment_type") or PaymentType.BANK_TRANSFER.value),
            payroll_setting_id=i.get("payroll_setting_id"),
        )
        for i in (from_json_column(r.get("items")) or [])
    )
    return PayrollRecord(
        record_id=int(r["payroll_id"]),
        employee_id=int(r["employee_id"]),
        month=str(r["month"]),
        year=int(r["year"]),
        status=PayrollStatus(r["status"]),
        created_at=r["created_at"],
        items=items,
        bonus_amount=_dec(r.get("bonus_amount")),
        deduction_amount=_dec(r.get("deduction_amount")),
        adjustment_note=r.get("adjustment_note") or "",
        total_amount=_dec(r.get("total_amount")),
        payment_date=r.get("payment_date"),
        payment_reference=r.get("payment_reference"),
        payment_notes=r.get("payment_notes"),
        updated_at=r.get("updated_at"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        processed_by=r.get("processed_by"),
        processed_at=r.get("processed_at"),
    )


def _payment_from_row(r: dict) -> AdditionalPayment:
    return AdditionalPayment(
        record_id=int(r["payment_id"]),
        employee_id=int(r["employee_id"]),
        category=PaymentCategory(r["category"]),
        description=r["description"],
        amount=_dec(r["amount"]),
        month=str(r["month"]),
        year=int(r["year"]),
        status=PaymentStatus(r["status"]),
        created_at=r["created_at"],
        payment_type=PaymentType(r.get("payment_type") or PaymentType.BANK_TRANSFER.value),
        payment_date=r.get("payment_date"),
        notes=r.get("notes"),
        updated_at=r.get("updated_at"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        processed_by=r.get("processed_by"),
        processed_at=r.get("processed_at"),
    )


def _leave_from_row(r: dict) -> LeaveRequest:
    return LeaveRequest(
        record_id=int(r["leave_id"]),
        user_id=int(r["user_id"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        created_at=r["created_at"],
        total_days=int(r.get("total_days") or 0),
        note=r.get("note"),
        updated_at=r.get("updated_at"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        processed_by=r.get("processed_by"),
        processed_at=r.get("processed_at"),
    )


def _inventory_from_row(r: dict) -> InventoryItem:
    return InventoryItem(
        record_id=int(r["item_id"]),
        name=r["name"],
        holder_id=r.get("holder_id"),
        serial_number=r.get("serial_number"),
    )


@dataclass(frozen=True)
class _Table:
    name: str
    id_column: str
    owner_column: str
    record_type: type
    from_row: Callable[[dict], Any]

    @property
    def columns(self) -> list[str]:
        return [f.name for f in fields(self.record_type) if f.name != "record_id"]


_TABLES = {
    RecordKind.PAYROLL: _Table("payroll_records", "payroll_id", "employee_id", PayrollRecord, _payroll_from_row),
    RecordKind.ADDITIONAL_PAYMENT: _Table(
        "additional_payments", "payment_id", "employee_id", AdditionalPayment, _payment_from_row
    ),
    RecordKind.LEAVE: _Table("leave_requests", "leave_id", "user_id", LeaveRequest, _leave_from_row),
    RecordKind.INVENTORY: _Table("inventory_items", "item_id", "holder_id", InventoryItem, _inventory_from_row),
}


def _table(kind: RecordKind) -> _Table:
    try:
        return _TABLES[RecordKind(kind)]
    except (KeyError, ValueError):
        raise ValidationError(f"No record storage for {kind}")


def _to_column(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return to_json_column([_item_to_json(v) for v in value])
    return value


def _item_to_json(item: PayrollItem) -> dict:
    return {
        "description": item.description,
        "amount": str(item.amount),
        "payroll_type": item.payroll_type,
        "payment_type": item.payment_type.value,
        "payroll_setting_id": item.payroll_setting_id,
    }


class MySQLRecordRepository(RecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, t: _Table) -> str:
        return f"SELECT {t.id_column}, {', '.join(t.columns)} FROM {t.name}"

    def get(self, kind: RecordKind, record_id: int) -> Optional[Any]:
        t = _table(kind)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(self._select(t) + f" WHERE {t.id_column}=%s", (int(record_id),))
            r = fetchone(cur)
            return t.from_row(r) if r else None

    def list(
        self,
        kind: RecordKind,
        *,
        owner_id: Optional[int] = None,
        owner_department_ids: Optional[AbstractSet[int]] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[Any]:
        t = _table(kind)
        clauses = ["1=1"]
        params: list[object] = []
        if owner_id is not None:
            clauses.append(f"{t.owner_column}=%s")
            params.append(int(owner_id))
        if owner_department_ids is not None:
            dept_ids = sorted(int(d) for d in owner_department_ids)
            if not dept_ids:
                return []
            placeholders = ",".join(["%s"] * len(dept_ids))
            clauses.append(
                f"{t.owner_column} IN (SELECT user_id FROM user_departments WHERE dept_id IN ({placeholders}))"
            )
            params.extend(dept_ids)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                self._select(t) + f" WHERE {where} ORDER BY {t.id_column} DESC LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return [t.from_row(r) for r in fetchall(cur)]

    def insert(self, kind: RecordKind, record: Any) -> int:
        t = _table(kind)
        cols = t.columns
        placeholders = ",".join(["%s"] * len(cols))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO {t.name}({', '.join(cols)}) VALUES({placeholders})",
                tuple(_to_column(getattr(record, c)) for c in cols),
            )
            return int(cur.lastrowid)

    def _update(self, t: _Table, record_id: int, changes: Mapping[str, Any], extra_where: str, extra: tuple) -> bool:
        unknown = set(changes) - set(t.columns)
        if unknown:
            raise ValidationError("Unknown fields: " + ", ".join(sorted(unknown)))
        if not changes:
            return False
        assignments = ", ".join(f"{c}=%s" for c in changes)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE {t.name} SET {assignments} WHERE {t.id_column}=%s{extra_where}",
                tuple(_to_column(v) for v in changes.values()) + (int(record_id),) + extra,
            )
            return cur.rowcount > 0

    def update_fields(self, kind: RecordKind, record_id: int, changes: Mapping[str, Any]) -> bool:
        return self._update(_table(kind), record_id, changes, "", ())

    def update_status(
        self,
        kind: RecordKind,
        record_id: int,
        *,
        expected_status: str,
        changes: Mapping[str, Any],
    ) -> bool:
        return self._update(_table(kind), record_id, changes, " AND status=%s", (str(expected_status),))

    def delete(self, kind: RecordKind, record_id: int) -> bool:
        t = _table(kind)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM {t.name} WHERE {t.id_column}=%s", (int(record_id),))
            return cur.rowcount > 0

    def find_payroll(self, *, employee_id: int, month: str, year: int) -> Optional[PayrollRecord]:
        t = _TABLES[RecordKind.PAYROLL]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                self._select(t) + " WHERE employee_id=%s AND month=%s AND year=%s LIMIT 1",
                (int(employee_id), str(month), int(year)),
            )
            r = fetchone(cur)
            return t.from_row(r) if r else None

    def list_approved_leaves(self, *, user_id: int, start: date, end: date) -> Sequence[LeaveRequest]:
        t = _TABLES[RecordKind.LEAVE]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                self._select(t) + " WHERE user_id=%s AND status=%s AND start_date<=%s AND end_date>=%s",
                (int(user_id), LeaveStatus.APPROVED.value, end, start),
            )
            return [t.from_row(r) for r in fetchall(cur)]
