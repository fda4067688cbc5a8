from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..access.roles import Role


@dataclass(frozen=True)
class Principal:
    """An authenticated actor, as handed to the core by the request layer.

    Note: Plain data object (no DB access). Credentials are verified elsewhere.
    """

    user_id: int
    full_name: str = ""
    role: Optional[Role] = None
    department_ids: frozenset[int] = field(default_factory=frozenset)
    is_super_admin: bool = False
    is_active: bool = True

    @property
    def owner_id(self) -> int:
        return self.user_id


@dataclass(frozen=True)
class Department:
    dept_id: int
    dept_name: str
    description: Optional[str] = None
    is_active: bool = True
    member_count: int = 0
