"""Per-resource workflow configuration.

A single engine (see ``state_machine``) is driven by one ``WorkflowConfig`` per
record kind: the status vocabulary, the initial status, the terminal statuses
and the finalizing statuses that carry the "processed" stamp.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Type

from ..common.validators import require_one_of
from ..core.enums import LeaveStatus, PaymentStatus, PayrollStatus, RecordKind
from ..core.exceptions import ValidationError


def status_value(status: Any) -> str:
    if isinstance(status, Enum):
        return str(status.value)
    return status


@dataclass(frozen=True)
class WorkflowConfig:
    kind: RecordKind
    status_enum: Type[Enum]
    initial: str
    terminal: frozenset[str]
    finalizing: frozenset[str]

    @property
    def statuses(self) -> tuple[str, ...]:
        return tuple(m.value for m in self.status_enum)

    def contains(self, status: Any) -> bool:
        return status_value(status) in self.statuses

    def is_initial(self, status: Any) -> bool:
        return status_value(status) == self.initial

    def is_terminal(self, status: Any) -> bool:
        return status_value(status) in self.terminal

    def is_finalizing(self, status: Any) -> bool:
        return status_value(status) in self.finalizing

    def coerce(self, status: Any) -> Enum:
        """Validate ``status`` against the vocabulary and return the enum member."""
        raw = status_value(status) if status is not None else None
        raw = require_one_of(raw if isinstance(raw, str) else None, self.statuses, label="status")
        return self.status_enum(raw)


PAYROLL_WORKFLOW = WorkflowConfig(
    kind=RecordKind.PAYROLL,
    status_enum=PayrollStatus,
    initial=PayrollStatus.GENERATED.value,
    terminal=frozenset({PayrollStatus.PAID.value, PayrollStatus.CANCELLED.value}),
    finalizing=frozenset({PayrollStatus.PAID.value, PayrollStatus.CANCELLED.value}),
)

ADDITIONAL_PAYMENT_WORKFLOW = WorkflowConfig(
    kind=RecordKind.ADDITIONAL_PAYMENT,
    status_enum=PaymentStatus,
    initial=PaymentStatus.GENERATED.value,
    terminal=frozenset({PaymentStatus.PAID.value, PaymentStatus.CANCELLED.value}),
    finalizing=frozenset({PaymentStatus.PAID.value, PaymentStatus.CANCELLED.value}),
)

# A leave cancelled by its requester is closed, but nobody processed it.
LEAVE_WORKFLOW = WorkflowConfig(
    kind=RecordKind.LEAVE,
    status_enum=LeaveStatus,
    initial=LeaveStatus.REQUESTED.value,
    terminal=frozenset({LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value, LeaveStatus.CANCELLED.value}),
    finalizing=frozenset({LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value}),
)

WORKFLOWS: dict[RecordKind, WorkflowConfig] = {
    w.kind: w for w in (PAYROLL_WORKFLOW, ADDITIONAL_PAYMENT_WORKFLOW, LEAVE_WORKFLOW)
}


def get_workflow(kind: Any) -> WorkflowConfig:
    try:
        return WORKFLOWS[RecordKind(kind)]
    except (KeyError, ValueError):
        raise ValidationError(f"{status_value(kind)} records have no status workflow")
