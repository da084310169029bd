from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .enums import ValidationCode


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation step: accept/reject plus a diagnostic data bag."""

    valid: bool
    code: ValidationCode
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def accept(cls, code: ValidationCode, message: str, **data: Any) -> "ValidationResult":
        return cls(valid=True, code=code, message=message, data=data)

    @classmethod
    def reject(cls, code: ValidationCode, message: str, **data: Any) -> "ValidationResult":
        return cls(valid=False, code=code, message=message, data=data)

    def with_data(self, **extra: Any) -> "ValidationResult":
        merged = dict(self.data)
        merged.update(extra)
        return ValidationResult(valid=self.valid, code=self.code, message=self.message, data=merged)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "code": self.code.value, "message": self.message, "data": dict(self.data)}

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self.data.get(key, default)
