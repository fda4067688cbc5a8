from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .access.scope import ScopeFilter
from .audit.stamper import AuditStamper
from .common.rate_limit import AttemptThrottle
from .core.constants import DEFAULT_UPLOAD_MAX_ATTEMPTS, DEFAULT_UPLOAD_WINDOW_SECONDS
from .database.connection import DatabaseConnection
from .lifecycle.lock import LockPolicy
from .lifecycle.state_machine import LifecycleStateMachine
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.mysql_payroll_setting_repository import MySQLPayrollSettingRepository
from .payroll.repository import PayrollSettingRepository
from .payroll.service import PayrollGenerationService
from .payroll.settings_service import PayrollSettingService
from .records.mysql_record_repository import MySQLRecordRepository
from .records.repository import RecordRepository
from .records.service import RecordService
from .users.department_service import DepartmentService
from .users.mysql_user_repository import MySQLDepartmentRepository, MySQLUserDirectory
from .users.repository import DepartmentRepository, UserDirectory


@dataclass(frozen=True)
class Container:
    directory: UserDirectory
    departments_repo: DepartmentRepository
    records_repo: RecordRepository
    payroll_settings_repo: PayrollSettingRepository

    scope_filter: ScopeFilter
    state_machine: LifecycleStateMachine
    lock_policy: LockPolicy

    record_service: RecordService
    payroll_service: PayrollGenerationService
    payroll_settings_service: PayrollSettingService
    department_service: DepartmentService
    upload_throttle: AttemptThrottle


def wire(
    *,
    directory: UserDirectory,
    departments_repo: DepartmentRepository,
    records_repo: RecordRepository,
    payroll_settings_repo: PayrollSettingRepository,
    upload_throttle: AttemptThrottle,
    stamper: Optional[AuditStamper] = None,
) -> Container:
    """Build the services on top of already constructed repositories."""
    calculator = StandardPayrollCalculator()
    scope_filter = ScopeFilter(directory)
    state_machine = LifecycleStateMachine(stamper or AuditStamper())
    lock_policy = LockPolicy(state_machine)

    record_service = RecordService(
        records_repo,
        directory,
        scope=scope_filter,
        machine=state_machine,
        lock=lock_policy,
        departments=departments_repo,
        calculator=calculator,
    )
    payroll_service = PayrollGenerationService(
        records_repo,
        directory,
        payroll_settings_repo,
        calculator=calculator,
    )

    return Container(
        directory=directory,
        departments_repo=departments_repo,
        records_repo=records_repo,
        payroll_settings_repo=payroll_settings_repo,
        scope_filter=scope_filter,
        state_machine=state_machine,
        lock_policy=lock_policy,
        record_service=record_service,
        payroll_service=payroll_service,
        payroll_settings_service=PayrollSettingService(payroll_settings_repo),
        department_service=DepartmentService(departments_repo),
        upload_throttle=upload_throttle,
    )


def build_container(
    *,
    db_config: dict,
    upload_max_attempts: int = DEFAULT_UPLOAD_MAX_ATTEMPTS,
    upload_window_seconds: int = DEFAULT_UPLOAD_WINDOW_SECONDS,
) -> Container:
    conn = DatabaseConnection.from_settings(db_config)

    return wire(
        directory=MySQLUserDirectory(conn),
        departments_repo=MySQLDepartmentRepository(conn),
        records_repo=MySQLRecordRepository(conn),
        payroll_settings_repo=MySQLPayrollSettingRepository(conn),
        upload_throttle=AttemptThrottle(max_attempts=upload_max_attempts, window_seconds=upload_window_seconds),
    )
