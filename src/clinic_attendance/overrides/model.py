from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..core.enums import AttendanceAction


@dataclass(frozen=True)
class ToleranceOverride:
    """Admin-issued tolerance exception for one user, valid until the end of ``work_date``."""

    user_id: int
    admin_id: int
    admin_name: str
    work_date: date
    created_at: datetime
    expires_at: datetime
    checkin_early: Optional[int] = None
    checkin_late: Optional[int] = None
    checkout_early: Optional[int] = None
    checkout_late: Optional[int] = None
    reason: str = ""

    def minutes_for(self, action: AttendanceAction) -> tuple[Optional[int], Optional[int]]:
        if action == AttendanceAction.CHECKIN:
            return self.checkin_early, self.checkin_late
        return self.checkout_early, self.checkout_late

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["work_date"] = self.work_date.isoformat()
        payload["created_at"] = self.created_at.isoformat()
        payload["expires_at"] = self.expires_at.isoformat()
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ToleranceOverride":
        data = dict(payload)
        data["work_date"] = date.fromisoformat(data["work_date"])
        data["created_at"] = datetime.fromisoformat(data["created_at"])
        data["expires_at"] = datetime.fromisoformat(data["expires_at"])
        return cls(**data)


@dataclass(frozen=True)
class GpsOverride:
    """Admin-issued geofence bypass for one user, valid until the end of ``work_date``."""

    user_id: int
    admin_id: int
    admin_name: str
    work_date: date
    latitude: float
    longitude: float
    reason: str
    created_at: datetime
    expires_at: datetime

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["work_date"] = self.work_date.isoformat()
        payload["created_at"] = self.created_at.isoformat()
        payload["expires_at"] = self.expires_at.isoformat()
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "GpsOverride":
        data = dict(payload)
        data["work_date"] = date.fromisoformat(data["work_date"])
        data["created_at"] = datetime.fromisoformat(data["created_at"])
        data["expires_at"] = datetime.fromisoformat(data["expires_at"])
        return cls(**data)
