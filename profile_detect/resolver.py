"""Active profile detection.

Tiers are evaluated in a fixed order and the first match wins:

1. manual override (confidence 100) while it has not expired,
2. location: first profile whose geofence contains the observed point (90),
3. time of day: first profile whose time window contains now (80),
4. default: the "Auto" profile, else the first profile (60), else a
   built-in fallback (50).

Among profiles, list order is the only precedence; priority is not used.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from profile_detect.geo import is_inside_circle
from profile_detect.models import (
    AUTO_PROFILE_NAME,
    FALLBACK_RESULT,
    DetectionReason,
    ProfileDetectionResult,
    TransportProfile,
    UserLocationRecord,
)
from profile_detect.override import active_override
from profile_detect.timeutils import iso_weekday_and_hhmm, local_wall_clock

logger = logging.getLogger(__name__)


def match_manual(
    profiles: Sequence[TransportProfile],
    location: UserLocationRecord | None,
    now: datetime,
) -> TransportProfile | None:
    """Profile named by a non-expired manual override, if it exists."""

    name = active_override(location, now)
    if name is None:
        return None
    for profile in profiles:
        if profile.name == name:
            return profile
    logger.debug("manual override %r names no configured profile, ignoring", name)
    return None


def match_location(
    profiles: Sequence[TransportProfile],
    observed: tuple[float, float],
) -> TransportProfile | None:
    """First profile (in list order) whose geofence contains the observed point."""

    lat, lng = observed
    for profile in profiles:
        fence = profile.geofence
        if fence is None:
            continue
        if is_inside_circle(lat, lng, fence.center_lat, fence.center_lon, fence.radius_m):
            return profile
    return None


def match_time(profiles: Sequence[TransportProfile], local_now: datetime) -> TransportProfile | None:
    """First profile (in list order) whose time window contains local_now."""

    weekday, hhmm = iso_weekday_and_hhmm(local_now)
    for profile in profiles:
        window = profile.time_window
        if window is not None and window.contains(weekday, hhmm):
            return profile
    return None


def default_profile(profiles: Sequence[TransportProfile]) -> TransportProfile | None:
    """The profile named "Auto", else the first profile, else None."""

    for profile in profiles:
        if profile.name == AUTO_PROFILE_NAME:
            return profile
    return profiles[0] if profiles else None


def resolve_active_profile(
    profiles: Sequence[TransportProfile],
    location: UserLocationRecord | None,
    now: datetime,
    observed: tuple[float, float] | None = None,
    *,
    tz_name: str | None = None,
) -> ProfileDetectionResult:
    """Decide which profile is active.

    This is a pure function of its inputs and always returns a result.

    Args:
        profiles: Configured profiles; order is precedence within a tier.
        location: Latest location/override record, or None.
        now: Current time. Aware datetimes are converted to tz_name (if given)
            before the time-of-day match; naive ones are used as wall-clock.
        observed: Optional (lat, lng) supplied by the caller. The location
            tier is skipped without it.
        tz_name: IANA timezone of the dashboard.

    Returns:
        ProfileDetectionResult.
    """

    profile = match_manual(profiles, location, now)
    if profile is not None:
        return ProfileDetectionResult.for_profile(profile, DetectionReason.MANUAL)

    if observed is not None:
        profile = match_location(profiles, observed)
        if profile is not None:
            return ProfileDetectionResult.for_profile(profile, DetectionReason.LOCATION)

    profile = match_time(profiles, local_wall_clock(now, tz_name))
    if profile is not None:
        return ProfileDetectionResult.for_profile(profile, DetectionReason.TIME)

    profile = default_profile(profiles)
    if profile is not None:
        return ProfileDetectionResult.for_profile(profile, DetectionReason.DEFAULT)
    return FALLBACK_RESULT
