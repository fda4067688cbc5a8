from __future__ import annotations

import logging
from typing import Any, FrozenSet, Iterable, Optional, TypeVar

from ..core.enums import Action, RecordKind, Scope
from ..core.exceptions import AuthenticationError, ValidationError
from ..users.model import Principal
from ..users.repository import UserDirectory
from .capabilities import resolve_capability
from .roles import can, is_hr, is_super_admin

logger = logging.getLogger(__name__)

R = TypeVar("R")


def _kind(kind: Any) -> RecordKind:
    try:
        return RecordKind(kind)
    except ValueError:
        raise ValidationError(
            "Invalid resource kind. Must be one of: " + ", ".join(k.value for k in RecordKind)
        )


class ScopeFilter:
    """Decides which records of a kind a principal may see.

    Rules are tried in order and the first one that applies wins:

    1. super admin, or ``viewAll`` on the resource: everything;
    2. ``viewDepartment`` and the principal belongs to at least one department:
       records whose owner shares any department with the principal;
    3. ``viewOwn``: records owned by the principal;
    4. nothing.
    """

    def __init__(self, directory: UserDirectory):
        self._directory = directory

    def scope_for(self, principal: Optional[Principal], kind: Any) -> Scope:
        if principal is None:
            raise AuthenticationError("Unauthenticated")
        kind = _kind(kind)

        if is_super_admin(principal):
            return Scope.ALL

        role = principal.role
        resource = kind.resource

        # Departments are not owned by anyone: either the whole list or nothing.
        if kind == RecordKind.DEPARTMENTS:
            if can(principal, resource, Action.VIEW) or is_hr(principal):
                return Scope.ALL
            return Scope.NONE

        if resolve_capability(role, resource, Action.VIEW_ALL):
            return Scope.ALL
        if resolve_capability(role, resource, Action.VIEW_DEPARTMENT) and principal.department_ids:
            return Scope.DEPARTMENT
        if resolve_capability(role, resource, Action.VIEW_OWN):
            return Scope.OWN
        return Scope.NONE

    def visible_records(self, principal: Optional[Principal], kind: Any, candidates: Iterable[R]) -> list[R]:
        scope = self.scope_for(principal, kind)
        items = list(candidates)

        if scope == Scope.ALL:
            return items
        if scope == Scope.NONE:
            logger.debug("user %s has no %s visibility", principal.user_id, _kind(kind).value)
            return []
        if scope == Scope.OWN:
            return [r for r in items if r.owner_id == principal.user_id]

        owner_departments: dict[int, FrozenSet[int]] = {}
        out: list[R] = []
        for r in items:
            owner = r.owner_id
            if owner is None:
                continue
            if owner not in owner_departments:
                owner_departments[owner] = frozenset(self._directory.department_ids_for(owner))
            if principal.department_ids & owner_departments[owner]:
                out.append(r)
        return out

    def can_view(self, principal: Optional[Principal], kind: Any, record: Any) -> bool:
        return bool(self.visible_records(principal, kind, [record]))
