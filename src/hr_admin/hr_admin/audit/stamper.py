from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional

from ..common.datetime_utils import now_local
from ..lifecycle.workflow import WorkflowConfig


class AuditStamper:
    """Compute the audit fields a successful transition adds to a record.

    Side-effect free apart from reading the clock; the caller persists the
    returned fields together with the status change.

    * ``updated_at`` on every transition;
    * ``reviewed_by``/``reviewed_at`` when the record leaves its initial status,
      unless the record was already reviewed;
    * ``processed_by``/``processed_at`` when the record enters a finalizing
      status, unless it was already processed.
    """

    def __init__(self, clock: Callable[[], datetime] = now_local):
        self._clock = clock

    def stamp(
        self,
        workflow: WorkflowConfig,
        *,
        previous_status: Any,
        new_status: Any,
        actor_id: Any,
        record: Any = None,
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        now = now or self._clock()
        fields: dict[str, Any] = {"updated_at": now}

        if (
            workflow.is_initial(previous_status)
            and not workflow.is_initial(new_status)
            and getattr(record, "reviewed_by", None) is None
        ):
            fields["reviewed_by"] = actor_id
            fields["reviewed_at"] = now

        if workflow.is_finalizing(new_status) and getattr(record, "processed_at", None) is None:
            fields["processed_by"] = actor_id
            fields["processed_at"] = now

        return fields
