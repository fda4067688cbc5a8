from __future__ import annotations

from typing import Any, FrozenSet, Mapping, Optional, Protocol, Sequence

from .model import Department, Principal


class UserDirectory(Protocol):
    """Read-only view of users, roles and department memberships.

    Note (DIP): access and service layers depend on this interface, not on a concrete DB.
    """

    def get_principal(self, user_id: int) -> Optional[Principal]:
        raise NotImplementedError

    def department_ids_for(self, user_id: int) -> FrozenSet[int]:
        raise NotImplementedError

    def list_principals(self, *, active_only: bool = True) -> Sequence[Principal]:
        raise NotImplementedError


class DepartmentRepository(Protocol):
    """Departments with their current member count."""

    def list_all(self) -> Sequence[Department]:
        raise NotImplementedError

    def get(self, dept_id: int) -> Optional[Department]:
        raise NotImplementedError

    def find_by_name(self, name: str) -> Optional[Department]:
        raise NotImplementedError

    def insert(self, department: Department) -> int:
        raise NotImplementedError

    def update(self, dept_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, dept_id: int) -> bool:
        raise NotImplementedError
