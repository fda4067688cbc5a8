from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from ..core.exceptions import AuthorizationError
from .state_machine import LifecycleStateMachine
from .workflow import status_value

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LockPolicy:
    """Rejects edits and deletes of records sitting in a terminal status.

    Runs in addition to role/scope checks; both have to pass.
    """

    def __init__(self, machine: LifecycleStateMachine):
        self._machine = machine

    def is_locked(self, kind: Any, record: Any) -> bool:
        if not self._machine.has_workflow(kind):
            return False
        return self._machine.is_terminal(kind, record.status)

    def ensure_mutable(self, kind: Any, record: Any) -> None:
        if self.is_locked(kind, record):
            status = status_value(record.status)
            logger.info("refused to modify %s record #%s", status, getattr(record, "record_id", "?"))
            raise AuthorizationError(f"Cannot modify {status} record")

    def edit(self, kind: Any, record: Any, delegate: Callable[[], T]) -> T:
        self.ensure_mutable(kind, record)
        return delegate()

    def delete(self, kind: Any, record: Any, delegate: Callable[[], T]) -> T:
        self.ensure_mutable(kind, record)
        return delegate()
