from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import PayrollSetting


class PayrollSettingRepository(Protocol):
    def get_for_employee(self, employee_id: int) -> Optional[PayrollSetting]:
        """The newest active setting of ``employee_id``."""

        raise NotImplementedError

    def get(self, setting_id: int) -> Optional[PayrollSetting]:
        raise NotImplementedError

    def list(self, *, employee_id: Optional[int] = None) -> Sequence[PayrollSetting]:
        raise NotImplementedError

    def insert(self, setting: PayrollSetting) -> int:
        raise NotImplementedError

    def update(self, setting_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, setting_id: int) -> bool:
        raise NotImplementedError
