from datetime import date, datetime

import pytest

from clinic_attendance.cache.store import InMemoryCacheStore
from clinic_attendance.core.enums import AttendanceAction
from clinic_attendance.core.exceptions import AuthorizationError, ValidationError
from clinic_attendance.overrides.service import OverrideService, gps_override_key, tolerance_override_key
from clinic_attendance.users.model import User
from tests.fakes import FixedClock

NOW = datetime(2025, 7, 15, 9, 0)
ADMIN = User(user_id=1, name="Admin Klinik", role="admin")
SUPER = User(user_id=2, name="Root", role="super-admin")
NURSE = User(user_id=7, name="Yaya", role="perawat")


def _service(clock=None):
    cache = InMemoryCacheStore()
    return OverrideService(cache, clock=clock or FixedClock(NOW)), cache


def test_keys_are_day_scoped():
    assert tolerance_override_key(7, date(2025, 7, 15)) == "tolerance_override_7_2025-07-15"
    assert gps_override_key(7, date(2025, 7, 15)) == "gps_override_7_2025-07-15"


def test_admin_creates_tolerance_override_valid_until_end_of_day():
    service, cache = _service()

    override = service.create_tolerance_override(SUPER, NURSE, checkout_early=90, reason="Anak sakit")
    stored = service.get_tolerance_override(NURSE.user_id, NOW)

    assert stored == override
    assert stored.expires_at == datetime(2025, 7, 15, 23, 59, 59)
    assert stored.minutes_for(AttendanceAction.CHECKOUT) == (90, None)
    assert cache.get(tolerance_override_key(NURSE.user_id, NOW.date())) is not None


def test_non_admin_cannot_create_overrides():
    service, _ = _service()

    with pytest.raises(AuthorizationError):
        service.create_tolerance_override(NURSE, NURSE, checkin_late=60)
    with pytest.raises(AuthorizationError):
        service.create_gps_override(NURSE, NURSE, latitude=0.0, longitude=0.0, reason="x")


@pytest.mark.parametrize("kwargs", [{}, {"checkin_late": -5}])
def test_tolerance_override_requires_non_negative_minutes(kwargs):
    service, _ = _service()

    with pytest.raises(ValidationError):
        service.create_tolerance_override(ADMIN, NURSE, **kwargs)


def test_gps_override_requires_reason():
    service, _ = _service()

    with pytest.raises(ValidationError):
        service.create_gps_override(ADMIN, NURSE, latitude=-7.9, longitude=111.9, reason="  ")


def test_expired_override_is_discarded_on_read():
    service, cache = _service()
    service.create_gps_override(ADMIN, NURSE, latitude=-7.9, longitude=111.9, reason="GPS HP rusak")

    late_night = datetime(2025, 7, 15, 23, 59, 59, 500000)

    assert service.get_gps_override(NURSE.user_id, NOW).reason == "GPS HP rusak"
    assert service.get_gps_override(NURSE.user_id, late_night) is None
    assert cache.get(gps_override_key(NURSE.user_id, NOW.date())) is None


def test_revoke():
    service, _ = _service()
    service.create_tolerance_override(ADMIN, NURSE, checkin_early=60)

    service.revoke_tolerance_override(NURSE.user_id, NOW.date())

    assert service.get_tolerance_override(NURSE.user_id, NOW) is None
