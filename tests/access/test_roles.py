from src.hr_admin.hr_admin.access.presets import DEFAULT_ROLES, DEPARTMENT_MANAGER, EMPLOYEE, HR_MANAGER
from src.hr_admin.hr_admin.access.roles import (
    can,
    has_full_access,
    is_admin,
    is_department_manager,
    is_employee,
    is_hr,
    is_listed_as_employee,
    is_manager,
    is_super_admin,
    permission_summary,
    role_display_name,
    role_redirect_path,
    role_summary,
)
from src.hr_admin.hr_admin.core.enums import Action, Resource
from src.hr_admin.hr_admin.users.model import Principal


def test_role_predicates():
    hr = Principal(user_id=1, role=HR_MANAGER)
    manager = Principal(user_id=2, role=DEPARTMENT_MANAGER)
    employee = Principal(user_id=3, role=EMPLOYEE)

    assert is_admin(hr) and is_hr(hr) and has_full_access(hr)
    assert is_manager(manager) and is_department_manager(manager) and has_full_access(manager)
    assert is_employee(employee) and not has_full_access(employee)
    assert is_listed_as_employee(manager) and is_listed_as_employee(employee)
    assert not is_listed_as_employee(hr)


def test_predicates_are_false_without_principal_or_role():
    nobody = Principal(user_id=9)
    for check in (is_admin, is_manager, is_employee, is_hr, is_department_manager, is_super_admin):
        assert check(None) is False
        assert check(nobody) is False


def test_super_admin_overrides_capabilities():
    root = Principal(user_id=1, is_super_admin=True)
    assert can(root, Resource.SYSTEM, Action.MANAGE_ROLES)
    assert can(root, Resource.PAYROLL, Action.DELETE)


def test_can_follows_role_matrix():
    manager = Principal(user_id=2, role=DEPARTMENT_MANAGER)
    assert can(manager, Resource.LEAVES, Action.APPROVE)
    assert not can(manager, Resource.PAYROLL, Action.CREATE)
    assert not can(None, Resource.LEAVES, Action.VIEW_OWN)


def test_redirect_and_display_helpers():
    employee = Principal(user_id=3, role=EMPLOYEE)
    assert role_redirect_path(None) == "/login"
    assert role_redirect_path(employee) == "/profile"
    assert role_redirect_path(Principal(user_id=1, role=HR_MANAGER)) == "/"
    assert role_display_name(employee) == "Employee"
    assert role_display_name(Principal(user_id=4)) == "No Role"
    assert role_summary(None) == "Not authenticated"
    assert role_summary(employee) == "Employee - Profile Access Only"


def test_permission_summary_lists_granted_features():
    summary = permission_summary(Principal(user_id=2, role=DEPARTMENT_MANAGER))
    assert summary[0] == "Department manager access"
    assert "Approve leaves" in summary
    assert "Manage payroll settings" not in summary
    assert permission_summary(None) == ["No permissions"]


def test_every_preset_sees_its_own_records():
    for role in DEFAULT_ROLES:
        principal = Principal(user_id=1, role=role)
        for resource in (Resource.USERS, Resource.PAYROLL, Resource.LEAVES, Resource.INVENTORY):
            assert can(principal, resource, Action.VIEW_OWN), (role.display_name, resource)
    assert [r for r in DEFAULT_ROLES if can(Principal(user_id=1, role=r), Resource.SYSTEM, Action.MANAGE_ROLES)] == [
        HR_MANAGER
    ]
