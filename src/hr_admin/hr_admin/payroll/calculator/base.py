from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable

from ...records.model import PayrollItem


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def total_amount(self, items: Iterable[PayrollItem], *, bonus: Decimal, deduction: Decimal) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def working_days(self, month: str, year: int) -> int:
        raise NotImplementedError

    @abstractmethod
    def prorate(self, amount: Decimal, *, days_worked: int, working_days: int) -> Decimal:
        raise NotImplementedError
