from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping, Optional

from ..access.roles import can, is_super_admin
from ..access.scope import ScopeFilter
from ..common.datetime_utils import inclusive_days, now_local, parse_iso_date
from ..common.validators import (
    require_amount,
    require_enum,
    require_month,
    require_non_empty,
    require_year,
)
from ..core.constants import DEFAULT_LIST_LIMIT, STATUS_UPDATE_ATTEMPTS
from ..core.enums import (
    Action,
    LeaveStatus,
    LeaveType,
    PaymentCategory,
    PaymentStatus,
    PaymentType,
    PayrollStatus,
    RecordKind,
    Resource,
    Scope,
)
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..lifecycle.lock import LockPolicy
from ..lifecycle.state_machine import LifecycleStateMachine
from ..payroll.calculator.base import PayrollCalculator
from ..payroll.calculator.standard_calculator import StandardPayrollCalculator
from ..users.model import Principal
from ..users.repository import DepartmentRepository, UserDirectory
from .model import AUDIT_FIELDS, AdditionalPayment, LeaveRequest, PayrollItem, PayrollRecord
from .repository import RecordRepository

logger = logging.getLogger(__name__)

_OWNER_FIELDS = frozenset({"employee_id", "user_id"})


def _as_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def _as_id(value: Any, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is required")


def _as_items(value: Any) -> tuple[PayrollItem, ...]:
    out: list[PayrollItem] = []
    for raw in value or ():
        if isinstance(raw, PayrollItem):
            out.append(raw)
            continue
        if not isinstance(raw, Mapping):
            raise ValidationError("items must be a list of objects")
        out.append(
            PayrollItem(
                description=str(raw.get("description") or "Monthly Salary"),
                amount=require_amount(raw.get("amount"), "item amount"),
                payroll_type=str(raw.get("payroll_type") or "salary"),
                payment_type=require_enum(
                    raw.get("payment_type") or PaymentType.BANK_TRANSFER.value, PaymentType, label="payment type"
                ),
                payroll_setting_id=raw.get("payroll_setting_id"),
            )
        )
    return tuple(out)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip() or None


# Converters for fields editable through ``edit_record``.
_FIELD_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "month": require_month,
    "year": require_year,
    "items": _as_items,
    "bonus_amount": lambda v: require_amount(v, "bonus_amount"),
    "deduction_amount": lambda v: require_amount(v, "deduction_amount"),
    "amount": lambda v: require_amount(v, "amount"),
    "adjustment_note": lambda v: str(v or ""),
    "payment_reference": _optional_text,
    "payment_notes": _optional_text,
    "notes": _optional_text,
    "note": _optional_text,
    "description": lambda v: require_non_empty(v, "description"),
    "reason": lambda v: require_non_empty(v, "reason"),
    "name": lambda v: require_non_empty(v, "name"),
    "serial_number": _optional_text,
    "holder_id": lambda v: _as_id(v, "holder_id") if v is not None else None,
    "payment_date": lambda v: _as_date(v, "payment_date"),
    "start_date": lambda v: _as_date(v, "start_date"),
    "end_date": lambda v: _as_date(v, "end_date"),
    "leave_type": lambda v: require_enum(v, LeaveType, label="leave type"),
    "category": lambda v: require_enum(v, PaymentCategory, label="category"),
    "payment_type": lambda v: require_enum(v, PaymentType, label="payment type"),
}


class RecordService:
    """Use cases over payroll records, additional payments, leave requests and inventory.

    Every operation runs the same gatekeeping: an authenticated principal, scope
    (can the principal see the record), a role gate for the action, and, for
    mutations, the lock on terminal records.
    """

    def __init__(
        self,
        records: RecordRepository,
        directory: UserDirectory,
        *,
        scope: ScopeFilter,
        machine: LifecycleStateMachine,
        lock: LockPolicy,
        departments: Optional[DepartmentRepository] = None,
        calculator: Optional[PayrollCalculator] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._records = records
        self._directory = directory
        self._scope = scope
        self._machine = machine
        self._lock = lock
        self._departments = departments
        self._calculator = calculator or StandardPayrollCalculator()
        self._clock = clock

    # -------- helpers --------
    @staticmethod
    def _require_principal(principal: Optional[Principal]) -> Principal:
        if principal is None:
            raise AuthenticationError("Unauthenticated")
        return principal

    @staticmethod
    def _kind(kind: Any) -> RecordKind:
        try:
            return RecordKind(kind)
        except ValueError:
            raise ValidationError(
                "Invalid resource kind. Must be one of: " + ", ".join(k.value for k in RecordKind)
            )

    @staticmethod
    def _can_manage_payroll(principal: Principal) -> bool:
        return can(principal, Resource.PAYROLL, Action.CREATE) or can(principal, Resource.PAYROLL, Action.EDIT)

    def _load(self, kind: RecordKind, record_id: int) -> Any:
        if kind == RecordKind.USERS:
            record = self._directory.get_principal(int(record_id))
        elif kind == RecordKind.DEPARTMENTS:
            record = self._departments.get(int(record_id)) if self._departments else None
        else:
            record = self._records.get(kind, int(record_id))
        if record is None:
            raise NotFoundError(f"{kind.value} #{record_id} not found")
        return record

    def _deny(self, principal: Principal, message: str, *, kind: RecordKind, record_id: Any) -> AuthorizationError:
        logger.warning("denied user %s on %s #%s: %s", principal.user_id, kind.value, record_id, message)
        return AuthorizationError(message)

    # -------- read path --------
    def list_records(self, principal: Optional[Principal], kind: Any, *, limit: int = DEFAULT_LIST_LIMIT) -> list:
        principal = self._require_principal(principal)
        kind = self._kind(kind)
        if limit < 1:
            raise ValidationError("limit must be a positive number")
        scope = self._scope.scope_for(principal, kind)
        if scope == Scope.NONE:
            return []

        if kind == RecordKind.USERS:
            candidates: Iterable[Any] = self._directory.list_principals(active_only=False)
        elif kind == RecordKind.DEPARTMENTS:
            candidates = self._departments.list_all() if self._departments else []
        elif scope == Scope.OWN:
            candidates = self._records.list(kind, owner_id=principal.user_id, limit=limit)
        elif scope == Scope.DEPARTMENT:
            # limit counts visible rows only
            candidates = self._records.list(kind, owner_department_ids=principal.department_ids, limit=limit)
        else:
            candidates = self._records.list(kind, limit=limit)

        return self._scope.visible_records(principal, kind, candidates)

    def get_record(self, principal: Optional[Principal], kind: Any, record_id: int) -> Any:
        principal = self._require_principal(principal)
        kind = self._kind(kind)
        record = self._load(kind, record_id)
        if not self._scope.can_view(principal, kind, record):
            raise self._deny(principal, "You do not have access to this record", kind=kind, record_id=record_id)
        return record

    # -------- status workflow --------
    def _ensure_can_change_status(self, principal: Principal, kind: RecordKind, record: Any, target: Any) -> None:
        if kind == RecordKind.LEAVE:
            if can(principal, Resource.LEAVES, Action.APPROVE):
                return
            # Requesters may withdraw their own request, nothing more.
            if record.owner_id == principal.user_id and target == LeaveStatus.CANCELLED:
                return
            raise self._deny(principal, "Only leave approvers can change this status", kind=kind, record_id=record.record_id)

        if not self._can_manage_payroll(principal):
            raise self._deny(principal, "Only payroll managers can change this status", kind=kind, record_id=record.record_id)

    def update_status(self, principal: Optional[Principal], kind: Any, record_id: int, status: Any) -> Any:
        """Move a record to ``status`` and return the updated record.

        The stored row is updated only if its status is still the one the transition was
        computed from; if another writer got there first the transition is re-evaluated
        against the fresh row once more before giving up with ConflictError.
        """
        principal = self._require_principal(principal)
        kind = self._kind(kind)
        target = self._machine.validate_status(kind, status)

        for _ in range(STATUS_UPDATE_ATTEMPTS):
            record = self.get_record(principal, kind, record_id)
            self._ensure_can_change_status(principal, kind, record, target)
            transition = self._machine.apply(kind, record, target, principal, now=self._clock())

            ok = self._records.update_status(
                kind,
                int(record_id),
                expected_status=transition.previous_status,
                changes=transition.changes,
            )
            if ok:
                return transition.record
            logger.warning("%s #%s changed while updating status; re-reading", kind.value, record_id)

        raise ConflictError(f"{kind.value} #{record_id} was modified concurrently, please retry")

    # -------- create --------
    def create_leave(
        self,
        principal: Optional[Principal],
        *,
        leave_type: Any,
        start_date: Any,
        end_date: Any,
        reason: str,
        note: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> LeaveRequest:
        principal = self._require_principal(principal)
        if not can(principal, Resource.LEAVES, Action.CREATE):
            raise self._deny(principal, "You cannot request leave", kind=RecordKind.LEAVE, record_id="new")

        owner = _as_id(user_id, "user_id") if user_id is not None else principal.user_id
        if owner != principal.user_id and not can(principal, Resource.LEAVES, Action.APPROVE):
            raise self._deny(principal, "You can only request leave for yourself", kind=RecordKind.LEAVE, record_id="new")

        start = _as_date(start_date, "start_date")
        end = _as_date(end_date, "end_date")
        if start is None or end is None:
            raise ValidationError("start_date and end_date are required")
        if end < start:
            raise ValidationError("end_date must be on or after start_date")

        now = self._clock()
        record = LeaveRequest(
            record_id=0,
            user_id=owner,
            leave_type=require_enum(leave_type, LeaveType, label="leave type"),
            start_date=start,
            end_date=end,
            reason=require_non_empty(reason, "reason"),
            status=LeaveStatus.REQUESTED,
            created_at=now,
            total_days=inclusive_days(start, end),
            note=_optional_text(note),
            updated_at=now,
        )
        new_id = self._records.insert(RecordKind.LEAVE, record)
        logger.info("leave #%s requested for user %s by %s", new_id, owner, principal.user_id)
        return dataclasses.replace(record, record_id=new_id)

    def create_payroll(
        self,
        principal: Optional[Principal],
        *,
        employee_id: int,
        month: str,
        year: int,
        items: Iterable[Any] = (),
        bonus_amount: Any = 0,
        deduction_amount: Any = 0,
        adjustment_note: str = "",
    ) -> PayrollRecord:
        principal = self._require_principal(principal)
        if not can(principal, Resource.PAYROLL, Action.CREATE):
            raise self._deny(principal, "You cannot create payroll", kind=RecordKind.PAYROLL, record_id="new")

        employee_id = _as_id(employee_id, "employee_id")
        month = require_month(month)
        year = require_year(year)
        if self._records.find_payroll(employee_id=employee_id, month=month, year=year):
            raise ValidationError(f"Payroll for {month}/{year} already exists for this employee")

        parsed_items = _as_items(items)
        bonus = require_amount(bonus_amount, "bonus_amount")
        deduction = require_amount(deduction_amount, "deduction_amount")
        now = self._clock()
        record = PayrollRecord(
            record_id=0,
            employee_id=employee_id,
            month=month,
            year=year,
            status=PayrollStatus.GENERATED,
            created_at=now,
            items=parsed_items,
            bonus_amount=bonus,
            deduction_amount=deduction,
            adjustment_note=adjustment_note or "",
            total_amount=self._calculator.total_amount(parsed_items, bonus=bonus, deduction=deduction),
            updated_at=now,
        )
        new_id = self._records.insert(RecordKind.PAYROLL, record)
        logger.info("payroll #%s created for employee %s (%s/%s)", new_id, employee_id, month, year)
        return dataclasses.replace(record, record_id=new_id)

    def create_additional_payment(
        self,
        principal: Optional[Principal],
        *,
        employee_id: int,
        category: Any,
        description: str,
        amount: Any,
        month: str,
        year: int,
        payment_type: Any = PaymentType.BANK_TRANSFER,
        notes: Optional[str] = None,
    ) -> AdditionalPayment:
        principal = self._require_principal(principal)
        if not can(principal, Resource.PAYROLL, Action.CREATE):
            raise self._deny(
                principal, "You cannot create additional payments", kind=RecordKind.ADDITIONAL_PAYMENT, record_id="new"
            )

        now = self._clock()
        record = AdditionalPayment(
            record_id=0,
            employee_id=_as_id(employee_id, "employee_id"),
            category=require_enum(category, PaymentCategory, label="category"),
            description=require_non_empty(description, "description"),
            amount=require_amount(amount, "amount"),
            month=require_month(month),
            year=require_year(year),
            status=PaymentStatus.GENERATED,
            created_at=now,
            payment_type=require_enum(payment_type, PaymentType, label="payment type"),
            notes=_optional_text(notes),
            updated_at=now,
        )
        new_id = self._records.insert(RecordKind.ADDITIONAL_PAYMENT, record)
        logger.info("additional payment #%s created for employee %s", new_id, employee_id)
        return dataclasses.replace(record, record_id=new_id)

    # -------- edit / delete --------
    def _ensure_can_edit(self, principal: Principal, kind: RecordKind, record: Any) -> None:
        if kind in (RecordKind.PAYROLL, RecordKind.ADDITIONAL_PAYMENT):
            allowed = self._can_manage_payroll(principal)
        elif kind == RecordKind.LEAVE:
            allowed = can(principal, Resource.LEAVES, Action.APPROVE) or record.owner_id == principal.user_id
        elif kind == RecordKind.INVENTORY:
            allowed = can(principal, Resource.INVENTORY, Action.CREATE) or can(principal, Resource.INVENTORY, Action.EDIT)
        else:
            raise ValidationError(f"{kind.value} records cannot be edited here")
        if not allowed:
            raise self._deny(principal, "You cannot edit this record", kind=kind, record_id=record.record_id)

    def _ensure_can_delete(self, principal: Principal, kind: RecordKind, record: Any) -> None:
        if kind in (RecordKind.PAYROLL, RecordKind.ADDITIONAL_PAYMENT):
            allowed = self._can_manage_payroll(principal)
        elif kind == RecordKind.LEAVE:
            allowed = can(principal, Resource.LEAVES, Action.DELETE) or record.owner_id == principal.user_id
        elif kind == RecordKind.INVENTORY:
            allowed = can(principal, Resource.INVENTORY, Action.DELETE)
        else:
            raise ValidationError(f"{kind.value} records cannot be deleted here")
        if not allowed:
            raise self._deny(principal, "You cannot delete this record", kind=kind, record_id=record.record_id)

    def _prepare_changes(self, kind: RecordKind, record: Any, changes: Mapping[str, Any]) -> dict[str, Any]:
        forbidden = sorted(set(changes) & (AUDIT_FIELDS | _OWNER_FIELDS))
        if "status" in forbidden:
            raise ValidationError("status can only be changed through the status update")
        if forbidden:
            raise ValidationError("Read-only fields: " + ", ".join(forbidden))

        known = {f.name for f in dataclasses.fields(record)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValidationError("Unknown fields: " + ", ".join(unknown))

        out: dict[str, Any] = {}
        for name, value in changes.items():
            convert = _FIELD_CONVERTERS.get(name)
            out[name] = convert(value) if convert else value

        merged = dataclasses.replace(record, **out)
        if kind == RecordKind.LEAVE and ({"start_date", "end_date"} & set(out)):
            if merged.end_date < merged.start_date:
                raise ValidationError("end_date must be on or after start_date")
            out["total_days"] = inclusive_days(merged.start_date, merged.end_date)
        if kind == RecordKind.PAYROLL and ({"items", "bonus_amount", "deduction_amount"} & set(out)):
            out["total_amount"] = self._calculator.total_amount(
                merged.items, bonus=Decimal(merged.bonus_amount), deduction=Decimal(merged.deduction_amount)
            )
        if "updated_at" in known:
            out["updated_at"] = self._clock()
        return out

    def edit_record(self, principal: Optional[Principal], kind: Any, record_id: int, changes: Mapping[str, Any]) -> Any:
        principal = self._require_principal(principal)
        kind = self._kind(kind)
        record = self.get_record(principal, kind, record_id)
        self._ensure_can_edit(principal, kind, record)
        if kind == RecordKind.INVENTORY and "holder_id" in changes and not can(principal, Resource.INVENTORY, Action.ASSIGN):
            raise self._deny(principal, "You cannot assign inventory", kind=kind, record_id=record_id)

        def write() -> dict[str, Any]:
            prepared = self._prepare_changes(kind, record, changes)
            if not self._records.update_fields(kind, int(record_id), prepared):
                raise NotFoundError(f"{kind.value} #{record_id} not found")
            return prepared

        prepared = self._lock.edit(kind, record, write)
        logger.info("%s #%s edited by user %s (%s)", kind.value, record_id, principal.user_id, ", ".join(sorted(prepared)))
        return dataclasses.replace(record, **prepared)

    def delete_record(self, principal: Optional[Principal], kind: Any, record_id: int) -> None:
        principal = self._require_principal(principal)
        kind = self._kind(kind)
        record = self.get_record(principal, kind, record_id)
        self._ensure_can_delete(principal, kind, record)

        ok = self._lock.delete(kind, record, lambda: self._records.delete(kind, int(record_id)))
        if not ok:
            raise NotFoundError(f"{kind.value} #{record_id} not found")
        logger.info(
            "%s #%s deleted by user %s%s",
            kind.value,
            record_id,
            principal.user_id,
            " (super admin)" if is_super_admin(principal) else "",
        )
