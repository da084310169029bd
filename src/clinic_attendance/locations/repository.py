from __future__ import annotations

from typing import Optional, Protocol

from .model import WorkLocation


class WorkLocationRepository(Protocol):
    def get_by_id(self, location_id: int) -> Optional[WorkLocation]:
        raise NotImplementedError

    def first_active(self) -> Optional[WorkLocation]:
        raise NotImplementedError
