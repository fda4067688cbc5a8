from __future__ import annotations

import calendar
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ...core.constants import MONEY_PLACES
from ...records.model import PayrollItem
from .base import PayrollCalculator

_CENTS = Decimal(1).scaleb(-MONEY_PLACES)


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: sum(items) + bonus - deduction, rounded to cents.

    Working days are approximated as calendar days minus two days per full week.
    """

    def total_amount(self, items: Iterable[PayrollItem], *, bonus: Decimal, deduction: Decimal) -> Decimal:
        total = sum((Decimal(i.amount or 0) for i in items), Decimal("0"))
        return _money(total + Decimal(bonus or 0) - Decimal(deduction or 0))

    def working_days(self, month: str, year: int) -> int:
        days = calendar.monthrange(int(year), int(month))[1]
        return days - (days // 7) * 2

    def prorate(self, amount: Decimal, *, days_worked: int, working_days: int) -> Decimal:
        if working_days <= 0:
            return _money(Decimal("0"))
        days_worked = min(max(int(days_worked), 0), working_days)
        return _money(Decimal(amount) * days_worked / working_days)
