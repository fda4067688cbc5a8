from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Union

from ..core.enums import Action, Resource, RoleLevel, RoleName
from .capabilities import CapabilityMatrix, resolve_capability

if TYPE_CHECKING:
    from ..users.model import Principal


@dataclass(frozen=True)
class Role:
    name: RoleName
    level: str = RoleLevel.EMPLOYEE.value
    description: str = ""
    capabilities: CapabilityMatrix = field(default_factory=CapabilityMatrix)
    display_name: Optional[str] = None


def _role(principal: Optional["Principal"]) -> Optional[Role]:
    if principal is None:
        return None
    return principal.role


def is_super_admin(principal: Optional["Principal"]) -> bool:
    return bool(principal is not None and principal.is_super_admin is True)


def is_admin(principal: Optional["Principal"]) -> bool:
    role = _role(principal)
    return role is not None and role.name == RoleName.ADMIN


def is_manager(principal: Optional["Principal"]) -> bool:
    role = _role(principal)
    return role is not None and role.name == RoleName.MANAGER


def is_employee(principal: Optional["Principal"]) -> bool:
    role = _role(principal)
    return role is not None and role.name == RoleName.EMPLOYEE


def has_full_access(principal: Optional["Principal"]) -> bool:
    return is_admin(principal) or is_manager(principal)


def is_hr(principal: Optional["Principal"]) -> bool:
    """HR staff are principals whose role carries the admin level."""
    role = _role(principal)
    return role is not None and role.level == RoleLevel.ADMIN.value


def is_department_manager(principal: Optional["Principal"]) -> bool:
    role = _role(principal)
    return role is not None and role.level == RoleLevel.MANAGER.value


def is_listed_as_employee(principal: Optional["Principal"]) -> bool:
    """Managers and employees show up in staff listings; admins do not."""
    return is_manager(principal) or is_employee(principal)


def can(
    principal: Optional["Principal"],
    resource: Union[Resource, str],
    action: Union[Action, str],
) -> bool:
    """Capability check with the super-admin override applied first."""
    if principal is None:
        return False
    if is_super_admin(principal):
        return True
    return resolve_capability(principal.role, resource, action)


def role_redirect_path(principal: Optional["Principal"]) -> str:
    if principal is None:
        return "/login"
    if is_employee(principal):
        return "/profile"
    return "/"


def role_display_name(principal: Optional["Principal"]) -> str:
    role = _role(principal)
    if role is None:
        return "No Role"
    return role.display_name or role.name.value.title()


def role_summary(principal: Optional["Principal"]) -> str:
    if principal is None:
        return "Not authenticated"
    if is_admin(principal):
        return "Administrator - Full Access"
    if is_manager(principal):
        return "Manager - Full Access"
    if is_employee(principal):
        return "Employee - Profile Access Only"
    return "Unknown Role"


def permission_summary(principal: Optional["Principal"]) -> list[str]:
    if principal is None or principal.role is None:
        return ["No permissions"]

    out: list[str] = []
    if is_hr(principal):
        out.append("Full system access (HR)")
    elif is_department_manager(principal):
        out.append("Department manager access")
    else:
        out.append("Standard employee access")

    role = principal.role
    if resolve_capability(role, Resource.USERS, Action.VIEW_ALL):
        out.append("View all users")
    if resolve_capability(role, Resource.USERS, Action.VIEW_DEPARTMENT):
        out.append("View department users")
    if resolve_capability(role, Resource.LEAVES, Action.APPROVE):
        out.append("Approve leaves")
    if resolve_capability(role, Resource.PAYROLL, Action.MANAGE_SETTINGS):
        out.append("Manage payroll settings")
    return out
