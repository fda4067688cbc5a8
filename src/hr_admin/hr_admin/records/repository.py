from __future__ import annotations

from datetime import date
from typing import AbstractSet, Any, Mapping, Optional, Protocol, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import RecordKind
from .model import LeaveRequest, PayrollRecord


class RecordRepository(Protocol):
    """Storage for payroll records, additional payments, leave requests and inventory.

    The core never talks to storage directly; the record service does, through this interface.
    """

    def get(self, kind: RecordKind, record_id: int) -> Optional[Any]:
        raise NotImplementedError

    def list(
        self,
        kind: RecordKind,
        *,
        owner_id: Optional[int] = None,
        owner_department_ids: Optional[AbstractSet[int]] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[Any]:
        """Newest records first, at most ``limit`` of them.

        ``owner_department_ids`` keeps records whose owner belongs to any of those
        departments; the limit is applied after that filter.
        """

        raise NotImplementedError

    def insert(self, kind: RecordKind, record: Any) -> int:
        """Persist a new record (its ``record_id`` is ignored) and return the new id."""

        raise NotImplementedError

    def update_fields(self, kind: RecordKind, record_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def update_status(
        self,
        kind: RecordKind,
        record_id: int,
        *,
        expected_status: str,
        changes: Mapping[str, Any],
    ) -> bool:
        """Apply ``changes`` only if the stored status still equals ``expected_status``.

        Returns False when the row is gone or its status moved on.
        """

        raise NotImplementedError

    def delete(self, kind: RecordKind, record_id: int) -> bool:
        raise NotImplementedError

    def find_payroll(self, *, employee_id: int, month: str, year: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def list_approved_leaves(self, *, user_id: int, start: date, end: date) -> Sequence[LeaveRequest]:
        """Approved leave requests of ``user_id`` overlapping [start, end]."""

        raise NotImplementedError
