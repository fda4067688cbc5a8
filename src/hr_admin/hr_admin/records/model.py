from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Protocol

from ..core.enums import (
    LeaveStatus,
    LeaveType,
    PaymentCategory,
    PaymentStatus,
    PaymentType,
    PayrollStatus,
)


class LifecycleRecord(Protocol):
    """Shape shared by every record that goes through a status workflow."""

    record_id: int
    status: Enum
    created_at: datetime
    updated_at: Optional[datetime]
    reviewed_by: Optional[int]
    reviewed_at: Optional[datetime]
    processed_by: Optional[int]
    processed_at: Optional[datetime]

    @property
    def owner_id(self) -> int: ...


@dataclass(frozen=True)
class PayrollItem:
    description: str
    amount: Decimal
    payroll_type: str = "salary"
    payment_type: PaymentType = PaymentType.BANK_TRANSFER
    payroll_setting_id: Optional[int] = None


@dataclass(frozen=True)
class PayrollRecord:
    record_id: int
    employee_id: int
    month: str
    year: int
    status: PayrollStatus
    created_at: datetime
    items: tuple[PayrollItem, ...] = ()
    bonus_amount: Decimal = Decimal("0")
    deduction_amount: Decimal = Decimal("0")
    adjustment_note: str = ""
    total_amount: Decimal = Decimal("0")
    payment_date: Optional[date] = None
    payment_reference: Optional[str] = None
    payment_notes: Optional[str] = None
    updated_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None

    @property
    def owner_id(self) -> int:
        return self.employee_id


@dataclass(frozen=True)
class AdditionalPayment:
    record_id: int
    employee_id: int
    category: PaymentCategory
    description: str
    amount: Decimal
    month: str
    year: int
    status: PaymentStatus
    created_at: datetime
    payment_type: PaymentType = PaymentType.BANK_TRANSFER
    payment_date: Optional[date] = None
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None

    @property
    def owner_id(self) -> int:
        return self.employee_id


@dataclass(frozen=True)
class LeaveRequest:
    record_id: int
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    created_at: datetime
    total_days: int = 0
    note: Optional[str] = None
    updated_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None

    @property
    def owner_id(self) -> int:
        return self.user_id


@dataclass(frozen=True)
class InventoryItem:
    record_id: int
    name: str
    holder_id: Optional[int] = None
    serial_number: Optional[str] = None

    @property
    def owner_id(self) -> Optional[int]:
        return self.holder_id


AUDIT_FIELDS = frozenset(
    {"record_id", "status", "created_at", "updated_at", "reviewed_by", "reviewed_at", "processed_by", "processed_at"}
)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (tuple, list)):
        return [_plain(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_plain(v) for v in value)
    if hasattr(value, "__dataclass_fields__"):
        return record_to_dict(value)
    return value


def record_to_dict(record: Any) -> dict:
    """JSON-friendly representation used by the HTTP layer."""
    out = {f.name: _plain(getattr(record, f.name)) for f in fields(record)}
    if hasattr(record, "owner_id") and "owner_id" not in out:
        out["owner_id"] = record.owner_id
    return out
