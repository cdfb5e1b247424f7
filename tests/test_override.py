from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from profile_detect.models import UserLocationRecord
from profile_detect.override import (
    OverrideState,
    active_override,
    clear_manual_override,
    override_remaining_seconds,
    override_state,
    record_location_observation,
    set_manual_override,
)

NOW = datetime(2025, 7, 23, 8, 0, tzinfo=UTC)
FIX = UserLocationRecord(latitude=59.3105, longitude=18.1640, accuracy_m=12.0, timestamp=NOW - timedelta(minutes=5))


def test_no_record_is_inactive():
    assert override_state(None, NOW) is OverrideState.INACTIVE
    assert active_override(None, NOW) is None
    assert override_remaining_seconds(None, NOW) == 0.0


def test_set_override_defaults_to_sixty_minutes():
    rec = set_manual_override(None, "Home", NOW)
    assert rec.manual_override == "Home"
    assert rec.override_until == NOW + timedelta(minutes=60)
    assert override_state(rec, NOW) is OverrideState.ACTIVE
    assert not rec.has_fix


def test_set_override_keeps_gps_fields():
    rec = set_manual_override(FIX, "Work", NOW, 30)
    assert (rec.latitude, rec.longitude, rec.accuracy_m, rec.timestamp) == (
        FIX.latitude,
        FIX.longitude,
        FIX.accuracy_m,
        FIX.timestamp,
    )
    assert rec.override_until == NOW + timedelta(minutes=30)
    # input is not mutated
    assert FIX.manual_override is None


def test_reinvoking_resets_timer_and_profile():
    first = set_manual_override(FIX, "Home", NOW, 120)
    later = NOW + timedelta(minutes=100)
    second = set_manual_override(first, "Work", later, 15)
    assert second.manual_override == "Work"
    assert second.override_until == later + timedelta(minutes=15)
    assert override_remaining_seconds(second, later) == pytest.approx(15 * 60)


def test_expired_override_becomes_active_again_when_set():
    expired = set_manual_override(None, "Home", NOW - timedelta(hours=3), 60)
    assert override_state(expired, NOW) is OverrideState.INACTIVE
    assert override_state(set_manual_override(expired, "Home", NOW), NOW) is OverrideState.ACTIVE


def test_passive_expiry_at_exact_deadline():
    rec = set_manual_override(None, "Home", NOW, 10)
    deadline = NOW + timedelta(minutes=10)
    assert active_override(rec, deadline - timedelta(milliseconds=1)) == "Home"
    assert active_override(rec, deadline) is None
    assert override_remaining_seconds(rec, deadline + timedelta(seconds=1)) == 0.0


@pytest.mark.parametrize(
    "name,minutes", [("", 10), ("   ", 10), ("Home", 0), ("Home", -5), ("Home", 1e12), ("Home", float("inf"))]
)
def test_invalid_override_arguments(name, minutes):
    with pytest.raises(ValueError):
        set_manual_override(FIX, name, NOW, minutes)


def test_gps_update_leaves_override_alone():
    with_override = set_manual_override(FIX, "Home", NOW, 60)
    later = NOW + timedelta(minutes=10)
    moved = record_location_observation(with_override, 59.3326, 18.0649, 8.0, later)
    assert (moved.latitude, moved.longitude, moved.accuracy_m, moved.timestamp) == (59.3326, 18.0649, 8.0, later)
    assert moved.manual_override == "Home"
    assert moved.override_until == with_override.override_until


def test_gps_update_creates_record():
    rec = record_location_observation(None, 59.3, 18.0, None, NOW)
    assert rec.has_fix
    assert rec.manual_override is None
    assert override_state(rec, NOW) is OverrideState.INACTIVE


def test_clear_override_keeps_fix():
    rec = clear_manual_override(set_manual_override(FIX, "Home", NOW))
    assert rec.manual_override is None
    assert rec.override_until is None
    assert rec.latitude == FIX.latitude
