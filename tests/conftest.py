from __future__ import annotations

import dataclasses
from datetime import datetime

import pytest

from src.hr_admin.hr_admin.access.presets import DEPARTMENT_MANAGER, EMPLOYEE, HR_MANAGER
from src.hr_admin.hr_admin.access.scope import ScopeFilter
from src.hr_admin.hr_admin.audit.stamper import AuditStamper
from src.hr_admin.hr_admin.core.enums import LeaveStatus, RecordKind
from src.hr_admin.hr_admin.lifecycle.lock import LockPolicy
from src.hr_admin.hr_admin.lifecycle.state_machine import LifecycleStateMachine
from src.hr_admin.hr_admin.records.service import RecordService
from src.hr_admin.hr_admin.users.model import Department, Principal

FIXED_NOW = datetime(2026, 3, 10, 9, 30, 0)


class FakeDirectory:
    def __init__(self, principals=()):
        self._principals = {p.user_id: p for p in principals}

    def add(self, principal: Principal) -> Principal:
        self._principals[principal.user_id] = principal
        return principal

    def get_principal(self, user_id):
        return self._principals.get(int(user_id))

    def department_ids_for(self, user_id):
        p = self._principals.get(int(user_id))
        return p.department_ids if p else frozenset()

    def list_principals(self, *, active_only=True):
        return [p for p in self._principals.values() if p.is_active or not active_only]


class FakeDepartments:
    """Departments whose member count follows the directory."""

    def __init__(self, departments=(), directory=None):
        self._departments = {d.dept_id: d for d in departments}
        self._directory = directory
        self._next_id = max(self._departments, default=0) + 1

    def _with_count(self, department):
        if self._directory is None:
            return department
        members = sum(
            1 for p in self._directory.list_principals(active_only=False) if department.dept_id in p.department_ids
        )
        return dataclasses.replace(department, member_count=members)

    def list_all(self):
        return [self._with_count(d) for d in sorted(self._departments.values(), key=lambda d: d.dept_name)]

    def get(self, dept_id):
        d = self._departments.get(int(dept_id))
        return self._with_count(d) if d else None

    def find_by_name(self, name):
        return next((self._with_count(d) for d in self._departments.values() if d.dept_name == name), None)

    def insert(self, department):
        new_id = self._next_id
        self._next_id += 1
        self._departments[new_id] = dataclasses.replace(department, dept_id=new_id)
        return new_id

    def update(self, dept_id, changes):
        if int(dept_id) not in self._departments:
            return False
        self._departments[int(dept_id)] = dataclasses.replace(self._departments[int(dept_id)], **changes)
        return True

    def delete(self, dept_id):
        return self._departments.pop(int(dept_id), None) is not None


class FakePayrollSettings:
    def __init__(self, settings=()):
        self._rows = {s.setting_id: s for s in settings}
        self._next_id = max(self._rows, default=0) + 1

    def get_for_employee(self, employee_id):
        active = [s for s in self._rows.values() if s.employee_id == int(employee_id) and s.is_active]
        return max(active, key=lambda s: s.setting_id) if active else None

    def get(self, setting_id):
        return self._rows.get(int(setting_id))

    def list(self, *, employee_id=None):
        rows = sorted(self._rows.values(), key=lambda s: s.setting_id, reverse=True)
        return [s for s in rows if employee_id is None or s.employee_id == employee_id]

    def insert(self, setting):
        new_id = self._next_id
        self._next_id += 1
        self._rows[new_id] = dataclasses.replace(setting, setting_id=new_id)
        return new_id

    def update(self, setting_id, changes):
        if int(setting_id) not in self._rows:
            return False
        self._rows[int(setting_id)] = dataclasses.replace(self._rows[int(setting_id)], **changes)
        return True

    def delete(self, setting_id):
        return self._rows.pop(int(setting_id), None) is not None


class FakeRecordRepo:
    """In-memory storage honouring the conditional status update."""

    def __init__(self, directory=None):
        self._directory = directory
        self._next_id = 1
        self._rows: dict[tuple[str, int], object] = {}
        self.writes = 0

    def seed(self, kind, record):
        rid = record.record_id or self._next_id
        self._next_id = max(self._next_id, rid + 1)
        record = dataclasses.replace(record, record_id=rid)
        self._rows[(RecordKind(kind).value, rid)] = record
        return record

    def get(self, kind, record_id):
        return self._rows.get((RecordKind(kind).value, int(record_id)))

    def list(self, kind, *, owner_id=None, owner_department_ids=None, limit=200):
        kind = RecordKind(kind).value
        # newest first, like the SQL implementation
        out = [r for (k, _), r in sorted(self._rows.items(), key=lambda kv: kv[0][1], reverse=True) if k == kind]
        if owner_id is not None:
            out = [r for r in out if r.owner_id == owner_id]
        if owner_department_ids is not None:
            out = [
                r
                for r in out
                if r.owner_id is not None
                and set(owner_department_ids) & self._directory.department_ids_for(r.owner_id)
            ]
        return out[:limit]

    def insert(self, kind, record):
        rid = self._next_id
        self._next_id += 1
        self._rows[(RecordKind(kind).value, rid)] = dataclasses.replace(record, record_id=rid)
        self.writes += 1
        return rid

    def update_fields(self, kind, record_id, changes):
        key = (RecordKind(kind).value, int(record_id))
        if key not in self._rows:
            return False
        self._rows[key] = dataclasses.replace(self._rows[key], **changes)
        self.writes += 1
        return True

    def update_status(self, kind, record_id, *, expected_status, changes):
        row = self.get(kind, record_id)
        if row is None or row.status.value != str(expected_status):
            return False
        return self.update_fields(kind, record_id, changes)

    def delete(self, kind, record_id):
        self.writes += 1
        return self._rows.pop((RecordKind(kind).value, int(record_id)), None) is not None

    def find_payroll(self, *, employee_id, month, year):
        for r in self.list(RecordKind.PAYROLL):
            if r.employee_id == employee_id and r.month == month and r.year == year:
                return r
        return None

    def list_approved_leaves(self, *, user_id, start, end):
        return [
            r
            for r in self.list(RecordKind.LEAVE, owner_id=user_id)
            if r.status == LeaveStatus.APPROVED and r.start_date <= end and r.end_date >= start
        ]


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def people():
    return {
        "root": Principal(user_id=1, full_name="Root", is_super_admin=True),
        "hr": Principal(user_id=2, full_name="Hana HR", role=HR_MANAGER, department_ids=frozenset({10})),
        "manager": Principal(user_id=3, full_name="Minh Manager", role=DEPARTMENT_MANAGER, department_ids=frozenset({20})),
        "alice": Principal(user_id=4, full_name="Alice", role=EMPLOYEE, department_ids=frozenset({20})),
        "bob": Principal(user_id=5, full_name="Bob", role=EMPLOYEE, department_ids=frozenset({30})),
        "carol": Principal(user_id=6, full_name="Carol", role=EMPLOYEE, department_ids=frozenset({30, 20})),
    }


@pytest.fixture
def directory(people):
    return FakeDirectory(people.values())


@pytest.fixture
def departments(directory):
    return FakeDepartments(
        [Department(10, "HR"), Department(20, "Engineering"), Department(30, "Sales")], directory=directory
    )


@pytest.fixture
def records(directory):
    return FakeRecordRepo(directory)


@pytest.fixture
def machine(fixed_now):
    return LifecycleStateMachine(AuditStamper(clock=lambda: fixed_now))


@pytest.fixture
def service(records, directory, departments, machine, fixed_now):
    return RecordService(
        records,
        directory,
        scope=ScopeFilter(directory),
        machine=machine,
        lock=LockPolicy(machine),
        departments=departments,
        clock=lambda: fixed_now,
    )


@pytest.fixture
def payroll_settings():
    return FakePayrollSettings()
