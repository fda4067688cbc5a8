from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..core.enums import PaymentType


@dataclass(frozen=True)
class PayrollSetting:
    """Monthly pay agreed for an employee; the base for generated payrolls."""

    setting_id: int
    employee_id: int
    amount: Decimal
    description: Optional[str] = None
    payroll_type: str = "salary"
    payment_type: PaymentType = PaymentType.BANK_TRANSFER
    is_active: bool = True
