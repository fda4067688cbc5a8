"""Default roles mirroring the stock role set (HR manager, department manager, employee)."""

from __future__ import annotations

from ..core.enums import RoleLevel, RoleName
from .capabilities import CapabilityMatrix
from .roles import Role

HR_MANAGER = Role(
    name=RoleName.ADMIN,
    level=RoleLevel.ADMIN.value,
    display_name="HR Manager",
    description="Full access to all system features including user management, payroll, leaves, and inventory",
    capabilities=CapabilityMatrix.from_mapping(
        {
            "users": {"viewAll": True, "viewDepartment": True, "viewOwn": True, "create": True, "edit": True, "delete": True},
            "payroll": {
                "viewAll": True,
                "viewDepartment": True,
                "viewOwn": True,
                "create": True,
                "edit": True,
                "delete": True,
                "manageSettings": True,
            },
            "leaves": {"viewAll": True, "viewDepartment": True, "viewOwn": True, "create": True, "approve": True, "delete": True},
            "inventory": {"viewAll": True, "viewOwn": True, "create": True, "edit": True, "assign": True, "delete": True},
            "departments": {"view": True, "create": True, "edit": True, "delete": True},
            "system": {"manageRoles": True, "viewReports": True, "systemSettings": True},
        }
    ),
)

DEPARTMENT_MANAGER = Role(
    name=RoleName.MANAGER,
    level=RoleLevel.MANAGER.value,
    display_name="Department Manager",
    description="Manages their department, can view and approve leaves, view department payroll and users",
    capabilities=CapabilityMatrix.from_mapping(
        {
            "users": {"viewDepartment": True, "viewOwn": True},
            "payroll": {"viewDepartment": True, "viewOwn": True},
            "leaves": {"viewDepartment": True, "viewOwn": True, "create": True, "approve": True},
            "inventory": {"viewOwn": True},
            "departments": {"view": True},
            "system": {"viewReports": True},
        }
    ),
)

EMPLOYEE = Role(
    name=RoleName.EMPLOYEE,
    level=RoleLevel.EMPLOYEE.value,
    display_name="Employee",
    description="Standard employee with view-only access to their own information",
    capabilities=CapabilityMatrix.from_mapping(
        {
            "users": {"viewOwn": True},
            "payroll": {"viewOwn": True},
            "leaves": {"viewOwn": True, "create": True},
            "inventory": {"viewOwn": True},
        }
    ),
)

DEFAULT_ROLES = (HR_MANAGER, DEPARTMENT_MANAGER, EMPLOYEE)
