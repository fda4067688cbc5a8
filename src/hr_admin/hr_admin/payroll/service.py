from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Optional

from ..access.roles import can
from ..common.datetime_utils import inclusive_days, month_bounds, now_local
from ..common.validators import require_month, require_year
from ..core.enums import Action, LeaveType, PayrollStatus, RecordKind, Resource
from ..core.exceptions import AuthenticationError, AuthorizationError
from ..records.model import PayrollItem, PayrollRecord
from ..records.repository import RecordRepository
from ..users.model import Principal
from ..users.repository import UserDirectory
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .repository import PayrollSettingRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    created: list[PayrollRecord] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)


class PayrollGenerationService:
    """Creates the monthly payroll of every active employee from their pay settings."""

    def __init__(
        self,
        records: RecordRepository,
        directory: UserDirectory,
        settings: PayrollSettingRepository,
        *,
        calculator: Optional[PayrollCalculator] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._records = records
        self._directory = directory
        self._settings = settings
        self._calculator = calculator or StandardPayrollCalculator()
        self._clock = clock

    def unpaid_leave_days(self, user_id: int, month: str, year: int) -> int:
        """Days of approved unpaid leave of ``user_id`` falling inside the month."""
        first, last = month_bounds(month, year)
        days = 0
        for leave in self._records.list_approved_leaves(user_id=user_id, start=first, end=last):
            if leave.leave_type != LeaveType.UNPAID:
                continue
            start = max(leave.start_date, first)
            end = min(leave.end_date, last)
            if end >= start:
                days += inclusive_days(start, end)
        return days

    def generate_monthly(self, principal: Optional[Principal], month: str, year: int) -> GenerationResult:
        if principal is None:
            raise AuthenticationError("Unauthenticated")
        if not can(principal, Resource.PAYROLL, Action.CREATE):
            raise AuthorizationError("You cannot generate payroll")

        month = require_month(month)
        year = require_year(year)

        working_days = self._calculator.working_days(month, year)
        result = GenerationResult()
        now = self._clock()

        for employee in self._directory.list_principals(active_only=True):
            if self._records.find_payroll(employee_id=employee.user_id, month=month, year=year):
                result.skipped.append({"employee_id": employee.user_id, "reason": "exists"})
                continue
            setting = self._settings.get_for_employee(employee.user_id)
            if setting is None:
                result.skipped.append({"employee_id": employee.user_id, "reason": "no salary setting"})
                continue

            unpaid = self.unpaid_leave_days(employee.user_id, month, year)
            days_worked = max(working_days - unpaid, 0)
            amount = self._calculator.prorate(setting.amount, days_worked=days_worked, working_days=working_days)
            items = (
                PayrollItem(
                    description=setting.description or "Monthly Salary",
                    amount=amount,
                    payroll_type=setting.payroll_type,
                    payment_type=setting.payment_type,
                    payroll_setting_id=setting.setting_id,
                ),
            )
            record = PayrollRecord(
                record_id=0,
                employee_id=employee.user_id,
                month=month,
                year=year,
                status=PayrollStatus.GENERATED,
                created_at=now,
                items=items,
                adjustment_note=f"Prorated for {days_worked}/{working_days} working days ({unpaid} unpaid leave days)",
                total_amount=self._calculator.total_amount(items, bonus=0, deduction=0),
                updated_at=now,
            )
            new_id = self._records.insert(RecordKind.PAYROLL, record)
            result.created.append(replace(record, record_id=new_id))

        logger.info(
            "payroll %s/%s generated by user %s: %d created, %d skipped",
            month,
            year,
            principal.user_id,
            len(result.created),
            len(result.skipped),
        )
        return result
