from __future__ import annotations

import dataclasses
import logging
from decimal import Decimal
from typing import Any, Mapping, Optional

from ..access.roles import can, is_hr, is_super_admin
from ..common.validators import require_amount, require_enum, require_non_empty
from ..core.enums import Action, PaymentType, Resource
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..users.model import Principal
from .model import PayrollSetting
from .repository import PayrollSettingRepository

logger = logging.getLogger(__name__)


def _as_setting_amount(value: Any) -> Decimal:
    amount = require_amount(value, "amount")
    if amount < 0:
        raise ValidationError("amount must not be negative")
    return amount


def _as_description(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("description must be text")
    return value.strip() or None


_CONVERTERS = {
    "amount": _as_setting_amount,
    "description": _as_description,
    "payroll_type": lambda v: require_non_empty(v, "payroll_type"),
    "payment_type": lambda v: require_enum(v, PaymentType, label="payment type"),
    "is_active": bool,
}


class PayrollSettingService:
    """Maintains the per-employee pay settings monthly generation starts from.

    Reading: super admins and HR see every setting, anyone else only their own.
    Writing needs ``payroll.create`` or ``payroll.edit``.
    """

    def __init__(self, settings: PayrollSettingRepository):
        self._settings = settings

    @staticmethod
    def _require_principal(principal: Optional[Principal]) -> Principal:
        if principal is None:
            raise AuthenticationError("Unauthenticated")
        return principal

    @staticmethod
    def _sees_all(principal: Principal) -> bool:
        return is_super_admin(principal) or is_hr(principal)

    def _require_manager(self, principal: Optional[Principal]) -> Principal:
        principal = self._require_principal(principal)
        if not (can(principal, Resource.PAYROLL, Action.CREATE) or can(principal, Resource.PAYROLL, Action.EDIT)):
            logger.warning("denied user %s payroll settings change", principal.user_id)
            raise AuthorizationError("Only payroll managers can change payroll settings")
        return principal

    def _get(self, setting_id: Any) -> PayrollSetting:
        try:
            setting_id = int(setting_id)
        except (TypeError, ValueError):
            raise ValidationError("setting id must be a number")
        setting = self._settings.get(setting_id)
        if setting is None:
            raise NotFoundError("Payroll setting not found")
        return setting

    def list_settings(self, principal: Optional[Principal]) -> list[PayrollSetting]:
        principal = self._require_principal(principal)
        if self._sees_all(principal):
            return list(self._settings.list())
        return list(self._settings.list(employee_id=principal.user_id))

    def get_setting(self, principal: Optional[Principal], setting_id: Any) -> PayrollSetting:
        principal = self._require_principal(principal)
        setting = self._get(setting_id)
        if not self._sees_all(principal) and setting.employee_id != principal.user_id:
            raise AuthorizationError("You do not have access to this payroll setting")
        return setting

    def create_setting(
        self,
        principal: Optional[Principal],
        *,
        employee_id: Any,
        amount: Any,
        description: Any = None,
        payroll_type: Any = "salary",
        payment_type: Any = PaymentType.BANK_TRANSFER,
    ) -> PayrollSetting:
        principal = self._require_manager(principal)
        try:
            employee_id = int(employee_id)
        except (TypeError, ValueError):
            raise ValidationError("employee_id is required")

        setting = PayrollSetting(
            setting_id=0,
            employee_id=employee_id,
            amount=_as_setting_amount(amount),
            description=_as_description(description),
            payroll_type=require_non_empty(payroll_type, "payroll_type"),
            payment_type=require_enum(payment_type, PaymentType, label="payment type"),
        )
        new_id = self._settings.insert(setting)
        logger.info("payroll setting #%s created for employee %s by %s", new_id, employee_id, principal.user_id)
        return dataclasses.replace(setting, setting_id=new_id)

    def update_setting(self, principal: Optional[Principal], setting_id: Any, changes: Mapping[str, Any]) -> PayrollSetting:
        principal = self._require_manager(principal)
        setting = self._get(setting_id)

        if "employee_id" in changes or "setting_id" in changes:
            raise ValidationError("Read-only fields: employee_id, setting_id")
        unknown = sorted(set(changes) - set(_CONVERTERS))
        if unknown:
            raise ValidationError("Unknown fields: " + ", ".join(unknown))

        out = {name: _CONVERTERS[name](value) for name, value in changes.items()}
        if out:
            self._settings.update(setting.setting_id, out)
            logger.info("payroll setting #%s updated by user %s", setting.setting_id, principal.user_id)
        return dataclasses.replace(setting, **out)

    def delete_setting(self, principal: Optional[Principal], setting_id: Any) -> None:
        principal = self._require_manager(principal)
        setting = self._get(setting_id)
        if not self._settings.delete(setting.setting_id):
            raise NotFoundError("Payroll setting not found")
        logger.info("payroll setting #%s deleted by user %s", setting.setting_id, principal.user_id)
