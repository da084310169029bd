from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ShiftTemplate


class ShiftTemplateRepository(Protocol):
    def list_all(self) -> Sequence[ShiftTemplate]:
        raise NotImplementedError

    def get_by_id(self, template_id: int) -> Optional[ShiftTemplate]:
        raise NotImplementedError
