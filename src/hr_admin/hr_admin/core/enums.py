from __future__ import annotations

from enum import Enum


class RoleName(str, Enum):
    """Role names used for coarse permission checks."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class RoleLevel(str, Enum):
    """Base permission level of a role, used for routing decisions."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    RESTRICTED = "restricted"


class Resource(str, Enum):
    """Top-level groups of the capability matrix."""

    USERS = "users"
    PAYROLL = "payroll"
    LEAVES = "leaves"
    INVENTORY = "inventory"
    DEPARTMENTS = "departments"
    SYSTEM = "system"


class Action(str, Enum):
    VIEW_ALL = "viewAll"
    VIEW_DEPARTMENT = "viewDepartment"
    VIEW_OWN = "viewOwn"
    VIEW = "view"
    APPROVE = "approve"
    MANAGE_SETTINGS = "manageSettings"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    ASSIGN = "assign"
    MANAGE_ROLES = "manageRoles"
    VIEW_REPORTS = "viewReports"
    SYSTEM_SETTINGS = "systemSettings"


class RecordKind(str, Enum):
    """Resource kinds a request can target."""

    PAYROLL = "payroll"
    ADDITIONAL_PAYMENT = "additional-payment"
    LEAVE = "leave"
    INVENTORY = "inventory"
    USERS = "users"
    DEPARTMENTS = "departments"

    @property
    def resource(self) -> Resource:
        return _KIND_RESOURCE[self]


_KIND_RESOURCE = {
    RecordKind.PAYROLL: Resource.PAYROLL,
    RecordKind.ADDITIONAL_PAYMENT: Resource.PAYROLL,
    RecordKind.LEAVE: Resource.LEAVES,
    RecordKind.INVENTORY: Resource.INVENTORY,
    RecordKind.USERS: Resource.USERS,
    RecordKind.DEPARTMENTS: Resource.DEPARTMENTS,
}


class Scope(str, Enum):
    """Breadth of visibility a principal has over a resource kind."""

    ALL = "all"
    DEPARTMENT = "department"
    OWN = "own"
    NONE = "none"


class PayrollStatus(str, Enum):
    GENERATED = "generated"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Status of an additional (ad-hoc) payment."""

    GENERATED = "generated"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class LeaveStatus(str, Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class LeaveType(str, Enum):
    ANNUAL = "annual"
    SICK = "sick"
    UNPAID = "unpaid"
    OTHER = "other"


class PaymentCategory(str, Enum):
    BONUS = "bonus"
    DEDUCTION = "deduction"
    ADVANCE = "advance"
    COMMISSION = "commission"
    ALLOWANCE = "allowance"
    OTHER = "other"


class PaymentType(str, Enum):
    BANK_TRANSFER = "bankTransfer"
    CASH = "cash"
    CHEQUE = "cheque"
