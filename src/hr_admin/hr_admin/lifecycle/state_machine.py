from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..audit.stamper import AuditStamper
from ..core.exceptions import AuthenticationError, InvalidTransitionError, ValidationError
from ..records.model import LifecycleRecord
from .workflow import WORKFLOWS, WorkflowConfig, get_workflow, status_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """Outcome of a successful ``apply``: the new record and the fields that changed."""

    record: Any
    previous_status: str
    changes: dict[str, Any]


class LifecycleStateMachine:
    """Generic transition engine, parameterized by a workflow per record kind.

    The graph is permissive: any move into a declared status is allowed as long as
    the record is not already in a terminal status.
    """

    def __init__(
        self,
        stamper: Optional[AuditStamper] = None,
        workflows: Optional[Mapping[Any, WorkflowConfig]] = None,
    ):
        self._stamper = stamper or AuditStamper()
        self._workflows = dict(workflows or WORKFLOWS)

    def workflow(self, kind: Any) -> WorkflowConfig:
        wf = self._workflows.get(kind)
        return wf if wf is not None else get_workflow(kind)

    def has_workflow(self, kind: Any) -> bool:
        try:
            self.workflow(kind)
        except ValidationError:
            return False
        return True

    def is_terminal(self, kind: Any, status: Any) -> bool:
        return self.workflow(kind).is_terminal(status)

    def validate_status(self, kind: Any, value: Any):
        return self.workflow(kind).coerce(value)

    def can_transition(self, kind: Any, from_status: Any, to_status: Any) -> bool:
        wf = self.workflow(kind)
        if not wf.contains(to_status) or not wf.contains(from_status):
            return False
        return not wf.is_terminal(from_status)

    def apply(
        self,
        kind: Any,
        record: LifecycleRecord,
        to_status: Any,
        actor: Any,
        *,
        now: Optional[datetime] = None,
    ) -> Transition:
        if actor is None:
            raise AuthenticationError("Unauthenticated")

        wf = self.workflow(kind)
        target = wf.coerce(to_status)
        current = status_value(record.status)

        if wf.is_terminal(current):
            raise InvalidTransitionError(
                f"Cannot change status of {current} {wf.kind.value} record",
                current_status=current,
            )

        changes: dict[str, Any] = {"status": target}
        changes.update(
            self._stamper.stamp(
                wf,
                previous_status=current,
                new_status=target,
                actor_id=actor.user_id,
                record=record,
                now=now,
            )
        )
        logger.info(
            "%s #%s: %s -> %s by user %s",
            wf.kind.value,
            getattr(record, "record_id", "?"),
            current,
            target.value,
            actor.user_id,
        )
        return Transition(record=dataclasses.replace(record, **changes), previous_status=current, changes=changes)
