"""Capability matrix: what a role may do, per resource.

The matrix has a fixed shape (one frozen dataclass per resource) and every flag
defaults to False, so anything not granted explicitly is denied.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Mapping, Optional, Union

from ..core.enums import Action, Resource


@dataclass(frozen=True)
class UserCapabilities:
    view_all: bool = False
    view_department: bool = False
    view_own: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False


@dataclass(frozen=True)
class PayrollCapabilities:
    view_all: bool = False
    view_department: bool = False
    view_own: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False
    manage_settings: bool = False


@dataclass(frozen=True)
class LeaveCapabilities:
    view_all: bool = False
    view_department: bool = False
    view_own: bool = False
    create: bool = False
    approve: bool = False
    delete: bool = False


@dataclass(frozen=True)
class InventoryCapabilities:
    view_all: bool = False
    view_own: bool = False
    create: bool = False
    edit: bool = False
    assign: bool = False
    delete: bool = False


@dataclass(frozen=True)
class DepartmentCapabilities:
    view: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False


@dataclass(frozen=True)
class SystemCapabilities:
    manage_roles: bool = False
    view_reports: bool = False
    system_settings: bool = False


_ACTION_FIELDS = {
    Action.VIEW_ALL: "view_all",
    Action.VIEW_DEPARTMENT: "view_department",
    Action.VIEW_OWN: "view_own",
    Action.VIEW: "view",
    Action.APPROVE: "approve",
    Action.MANAGE_SETTINGS: "manage_settings",
    Action.CREATE: "create",
    Action.EDIT: "edit",
    Action.DELETE: "delete",
    Action.ASSIGN: "assign",
    Action.MANAGE_ROLES: "manage_roles",
    Action.VIEW_REPORTS: "view_reports",
    Action.SYSTEM_SETTINGS: "system_settings",
}
_FIELD_ACTIONS = {v: k for k, v in _ACTION_FIELDS.items()}


@dataclass(frozen=True)
class CapabilityMatrix:
    users: UserCapabilities = field(default_factory=UserCapabilities)
    payroll: PayrollCapabilities = field(default_factory=PayrollCapabilities)
    leaves: LeaveCapabilities = field(default_factory=LeaveCapabilities)
    inventory: InventoryCapabilities = field(default_factory=InventoryCapabilities)
    departments: DepartmentCapabilities = field(default_factory=DepartmentCapabilities)
    system: SystemCapabilities = field(default_factory=SystemCapabilities)

    def allows(self, resource: Resource, action: Action) -> bool:
        group = getattr(self, resource.value)
        return bool(getattr(group, _ACTION_FIELDS[action], False))

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "CapabilityMatrix":
        """Build a matrix from the stored form, e.g. ``{"payroll": {"viewAll": true}}``.

        Unknown resources and actions are ignored; missing ones stay denied.
        """
        data = data or {}
        groups: dict[str, Any] = {}
        for f in fields(cls):
            group_cls = f.default_factory  # type: ignore[misc]
            raw = data.get(f.name) or {}
            known = {g.name for g in fields(group_cls)}
            flags: dict[str, bool] = {}
            for key, value in raw.items():
                try:
                    name = _ACTION_FIELDS[Action(key)]
                except ValueError:
                    continue
                if name in known:
                    flags[name] = value is True
            groups[f.name] = group_cls(**flags)
        return cls(**groups)

    def to_mapping(self) -> dict[str, dict[str, bool]]:
        out: dict[str, dict[str, bool]] = {}
        for resource, flags in asdict(self).items():
            out[resource] = {_FIELD_ACTIONS[name].value: value for name, value in flags.items()}
        return out


def resolve_capability(
    role,
    resource: Union[Resource, str],
    action: Union[Action, str],
) -> bool:
    """True only if ``role`` explicitly grants ``action`` on ``resource``."""
    if role is None or getattr(role, "capabilities", None) is None:
        return False
    try:
        resource = Resource(resource)
        action = Action(action)
    except ValueError:
        return False
    return role.capabilities.allows(resource, action)
