from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

from ..core.config import AttendanceConfig
from ..core.enums import AttendanceAction, ToleranceScope, ToleranceSource


@dataclass(frozen=True)
class ToleranceSetting:
    """Domain entity: admin-maintained tolerance rule for a scope (global, a role, or one user)."""

    setting_id: int
    setting_name: str
    scope: ToleranceScope
    scope_value: Optional[str] = None
    priority: int = 0
    is_active: bool = True

    check_in_early_tolerance: Optional[int] = None
    check_in_late_tolerance: Optional[int] = None
    check_out_early_tolerance: Optional[int] = None
    check_out_late_tolerance: Optional[int] = None

    allow_early_checkin: bool = True
    allow_late_checkin: bool = True
    allow_early_checkout: bool = False
    allow_late_checkout: bool = True

    weekend_different_tolerance: bool = False
    weekend_check_in_tolerance: Optional[int] = None
    weekend_check_out_tolerance: Optional[int] = None
    holiday_different_tolerance: bool = False
    holiday_check_in_tolerance: Optional[int] = None
    holiday_check_out_tolerance: Optional[int] = None

    require_schedule_match: bool = True
    allow_emergency_override: bool = False

    def tolerance_for(
        self, action: AttendanceAction, *, is_weekend: bool = False, is_holiday: bool = False
    ) -> tuple[Optional[int], Optional[int]]:
        """(early, late) minutes for an action; holiday/weekend variants replace both bounds."""
        checkin = action == AttendanceAction.CHECKIN

        if is_holiday and self.holiday_different_tolerance:
            special = self.holiday_check_in_tolerance if checkin else self.holiday_check_out_tolerance
            if special is not None:
                return special, special

        if is_weekend and self.weekend_different_tolerance:
            special = self.weekend_check_in_tolerance if checkin else self.weekend_check_out_tolerance
            if special is not None:
                return special, special

        if checkin:
            return self.check_in_early_tolerance, self.check_in_late_tolerance
        return self.check_out_early_tolerance, self.check_out_late_tolerance

    def allows(self, action: AttendanceAction, *, early: bool) -> bool:
        if action == AttendanceAction.CHECKIN:
            return self.allow_early_checkin if early else self.allow_late_checkin
        return self.allow_early_checkout if early else self.allow_late_checkout

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["scope"] = self.scope.value
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ToleranceSetting":
        data = dict(payload)
        data["scope"] = ToleranceScope(data["scope"])
        return cls(**data)


@dataclass(frozen=True)
class ToleranceDefaults:
    """Hard-coded last-resort tolerances, per action."""

    checkin_early: int
    checkin_late: int
    checkout_early: int
    checkout_late: int

    def for_action(self, action: AttendanceAction) -> tuple[int, int]:
        if action == AttendanceAction.CHECKIN:
            return self.checkin_early, self.checkin_late
        return self.checkout_early, self.checkout_late

    @classmethod
    def from_config(cls, config: AttendanceConfig) -> "ToleranceDefaults":
        return cls(
            checkin_early=config.checkin_tolerance_early,
            checkin_late=config.checkin_tolerance_late,
            checkout_early=config.checkout_tolerance_early,
            checkout_late=config.checkout_tolerance_late,
        )


# Defaults of the schedule-based validator. They intentionally differ from the legacy
# config defaults (30/60 for check-in) built by ToleranceDefaults.from_config.
SCHEDULE_DEFAULTS = ToleranceDefaults(checkin_early=15, checkin_late=15, checkout_early=30, checkout_late=60)


@dataclass(frozen=True)
class ToleranceResult:
    action: AttendanceAction
    early_minutes: int
    late_minutes: int
    source: ToleranceSource
    source_id: Optional[int] = None
    source_name: Optional[str] = None
    is_weekend: bool = False
    is_holiday: bool = False

    # Gates from a matched setting for punches outside the window; None keeps the built-in rule.
    allow_early: Optional[bool] = None
    allow_late: Optional[bool] = None
    allow_emergency_override: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "early_minutes": self.early_minutes,
            "late_minutes": self.late_minutes,
            "source": self.source.value,
            "source_id": self.source_id,
            "source_name": self.source_name,
            "is_weekend": self.is_weekend,
            "is_holiday": self.is_holiday,
            "allow_early": self.allow_early,
            "allow_late": self.allow_late,
        }
