"""Manual override lifecycle and GPS observation updates.

A record's override is ACTIVE while manual_override is set and
override_until lies strictly after now; otherwise it is INACTIVE. There is
no timer: expiry is evaluated lazily whenever a caller asks.

Transitions return new records and never mutate their input.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timedelta
from enum import Enum

from profile_detect.models import DEFAULT_OVERRIDE_MINUTES, UserLocationRecord
from profile_detect.timeutils import as_aware

logger = logging.getLogger(__name__)


class OverrideState(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


def override_state(record: UserLocationRecord | None, now: datetime) -> OverrideState:
    """Evaluate the override state at now (strict expiry: until == now is inactive)."""

    if record is None or not record.manual_override or record.override_until is None:
        return OverrideState.INACTIVE
    if as_aware(record.override_until) > as_aware(now):
        return OverrideState.ACTIVE
    return OverrideState.INACTIVE


def active_override(record: UserLocationRecord | None, now: datetime) -> str | None:
    """Profile name of the active override, or None."""

    if override_state(record, now) is OverrideState.ACTIVE:
        return record.manual_override
    return None


def override_remaining_seconds(record: UserLocationRecord | None, now: datetime) -> float:
    """Seconds left on the active override (0.0 when inactive)."""

    if override_state(record, now) is OverrideState.INACTIVE:
        return 0.0
    return max(0.0, (as_aware(record.override_until) - as_aware(now)).total_seconds())


def set_manual_override(
    record: UserLocationRecord | None,
    profile_name: str,
    now: datetime,
    duration_minutes: float | None = None,
) -> UserLocationRecord:
    """Activate (or restart) a manual override.

    Always ends ACTIVE regardless of the previous state; re-invoking resets
    the timer and/or profile. GPS fields are carried over untouched.

    Args:
        record: Current record, or None if nothing was stored yet.
        profile_name: Name of the profile to force.
        now: Current time.
        duration_minutes: Override length; defaults to 60 minutes.

    Raises:
        ValueError: If profile_name is empty or duration is not positive
            or too long to represent.
    """

    name = profile_name.strip() if profile_name else ""
    if not name:
        raise ValueError("profile name for manual override must not be empty")
    minutes = DEFAULT_OVERRIDE_MINUTES if duration_minutes is None else duration_minutes
    if minutes <= 0:
        raise ValueError(f"override duration must be positive, got {minutes!r} minutes")

    base = record if record is not None else UserLocationRecord()
    try:
        until = now + timedelta(minutes=minutes)
    except OverflowError as exc:
        raise ValueError(f"override duration too long: {minutes!r} minutes") from exc
    logger.info("manual override -> %r until %s", name, until.isoformat())
    return dataclasses.replace(base, manual_override=name, override_until=until)


def clear_manual_override(record: UserLocationRecord | None) -> UserLocationRecord:
    """Return the record with no override (back to automatic detection)."""

    base = record if record is not None else UserLocationRecord()
    return dataclasses.replace(base, manual_override=None, override_until=None)


def record_location_observation(
    record: UserLocationRecord | None,
    lat: float,
    lng: float,
    accuracy_m: float | None,
    now: datetime,
) -> UserLocationRecord:
    """Store a fresh GPS fix; the override fields are left as they are."""

    base = record if record is not None else UserLocationRecord()
    return dataclasses.replace(base, latitude=lat, longitude=lng, accuracy_m=accuracy_m, timestamp=now)
