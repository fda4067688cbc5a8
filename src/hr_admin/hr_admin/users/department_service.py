from __future__ import annotations

import dataclasses
import logging
from typing import Any, Mapping, Optional

from ..access.roles import can
from ..common.validators import require_non_empty
from ..core.constants import DEPARTMENT_NAME_MAX_LENGTH
from ..core.enums import Action, Resource
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import Department, Principal
from .repository import DepartmentRepository

logger = logging.getLogger(__name__)

# request field -> column
_EDITABLE = {"name": "dept_name", "dept_name": "dept_name", "description": "description", "is_active": "is_active"}


def _department_name(value: Any) -> str:
    name = require_non_empty(value, "Department name")
    if len(name) > DEPARTMENT_NAME_MAX_LENGTH:
        raise ValidationError(f"Department name must be {DEPARTMENT_NAME_MAX_LENGTH} characters or less")
    return name


def _description(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("description must be text")
    return value.strip() or None


class DepartmentService:
    """Create, rename, (de)activate and remove departments.

    Every mutation needs the matching ``departments`` capability. Names are unique;
    a department that still has members cannot be deleted.
    """

    def __init__(self, departments: DepartmentRepository):
        self._departments = departments

    def _gate(self, principal: Optional[Principal], action: Action) -> Principal:
        if principal is None:
            raise AuthenticationError("Unauthenticated")
        if not can(principal, Resource.DEPARTMENTS, action):
            logger.warning("denied user %s departments.%s", principal.user_id, action.value)
            raise AuthorizationError("You cannot manage departments")
        return principal

    def _get(self, dept_id: Any) -> Department:
        try:
            dept_id = int(dept_id)
        except (TypeError, ValueError):
            raise ValidationError("department id must be a number")
        department = self._departments.get(dept_id)
        if department is None:
            raise NotFoundError("Department not found")
        return department

    def _ensure_unique(self, name: str, *, except_id: Optional[int] = None) -> None:
        existing = self._departments.find_by_name(name)
        if existing is not None and existing.dept_id != except_id:
            raise ValidationError("A department with this name already exists")

    def create_department(
        self,
        principal: Optional[Principal],
        *,
        name: Any,
        description: Any = None,
        is_active: Any = True,
    ) -> Department:
        principal = self._gate(principal, Action.CREATE)
        name = _department_name(name)
        self._ensure_unique(name)

        department = Department(
            dept_id=0,
            dept_name=name,
            description=_description(description),
            is_active=bool(is_active) if is_active is not None else True,
        )
        new_id = self._departments.insert(department)
        logger.info("department #%s (%s) created by user %s", new_id, name, principal.user_id)
        return dataclasses.replace(department, dept_id=new_id)

    def update_department(self, principal: Optional[Principal], dept_id: Any, changes: Mapping[str, Any]) -> Department:
        principal = self._gate(principal, Action.EDIT)
        department = self._get(dept_id)

        unknown = sorted(set(changes) - set(_EDITABLE))
        if unknown:
            raise ValidationError("Unknown fields: " + ", ".join(unknown))

        out: dict[str, Any] = {}
        for key, value in changes.items():
            column = _EDITABLE[key]
            if column == "dept_name":
                out[column] = _department_name(value)
            elif column == "description":
                out[column] = _description(value)
            else:
                out[column] = bool(value)
        if "dept_name" in out:
            self._ensure_unique(out["dept_name"], except_id=department.dept_id)

        if out:
            self._departments.update(department.dept_id, out)
            logger.info("department #%s updated by user %s (%s)", department.dept_id, principal.user_id, ", ".join(sorted(out)))
        return dataclasses.replace(department, **out)

    def delete_department(self, principal: Optional[Principal], dept_id: Any) -> None:
        principal = self._gate(principal, Action.DELETE)
        department = self._get(dept_id)
        if department.member_count > 0:
            raise ValidationError(
                f"Cannot delete department with {department.member_count} assigned user(s). "
                "Please reassign users first."
            )
        if not self._departments.delete(department.dept_id):
            raise NotFoundError("Department not found")
        logger.info("department #%s deleted by user %s", department.dept_id, principal.user_id)
