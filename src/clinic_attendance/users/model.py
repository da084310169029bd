from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import ADMIN_ROLES


@dataclass(frozen=True)
class User:
    """Domain entity: clinic staff member.

    Note: plain data object, no DB access here. ``role`` is kept as the raw role slug so
    roles unknown to the engine still flow through permission checks.
    """

    user_id: int
    name: str
    role: str
    is_active: bool = True
    work_location_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES
