"""Request-level entry points around the resolver.

DetectionService reads a snapshot of profiles and the location record from
an injected store, validates caller input, and writes the location/override
transitions back. The resolver itself stays a pure function.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from profile_detect.geo import parse_lat_lng
from profile_detect.models import (
    DetectorConfig,
    ProfileDetectionResult,
    TransportStop,
    UserLocationRecord,
)
from profile_detect.override import (
    OverrideState,
    clear_manual_override,
    override_remaining_seconds,
    override_state,
    record_location_observation,
    set_manual_override,
)
from profile_detect.resolver import resolve_active_profile
from profile_detect.storage import ProfileStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DetectionStatus:
    """Snapshot of the detection state for display."""

    result: ProfileDetectionResult
    override_state: OverrideState
    override_profile: str | None
    override_remaining_s: float
    location: UserLocationRecord | None
    stops: tuple[TransportStop, ...]


class DetectionService:
    """Detect the active profile and apply location/override updates."""

    def __init__(self, store: ProfileStore, config: DetectorConfig | None = None) -> None:
        self._store = store
        self._cfg = config or DetectorConfig()

    @property
    def config(self) -> DetectorConfig:
        return self._cfg

    def detect(
        self,
        lat: str | float | None = None,
        lng: str | float | None = None,
        now: datetime | None = None,
    ) -> ProfileDetectionResult:
        """Resolve the active profile for an incoming request.

        Args:
            lat: Observed latitude (e.g. raw query parameter), optional.
            lng: Observed longitude, optional. Only used together with lat.
            now: Current time; defaults to the current UTC time.

        Raises:
            InvalidCoordinateError: If lat/lng are given but malformed.
        """

        now = now or datetime.now(UTC)
        observed = self._observed(lat, lng)
        profiles = self._store.list_profiles()
        location = self._store.get_location()
        result = resolve_active_profile(profiles, location, now, observed, tz_name=self._cfg.tz_name)
        logger.info(
            "active profile %r (%s, confidence=%s) from %s profiles",
            result.profile_name,
            result.reason.value,
            result.confidence,
            len(profiles),
        )
        return result

    def record_location_observation(
        self,
        lat: str | float,
        lng: str | float,
        accuracy: float | None = None,
        now: datetime | None = None,
    ) -> UserLocationRecord:
        """Store a GPS fix; an active override is left alone."""

        lat_f, lng_f = parse_lat_lng(lat, lng)
        if accuracy is not None and accuracy < 0:
            raise ValueError(f"accuracy must not be negative, got {accuracy!r}")
        record = record_location_observation(
            self._store.get_location(), lat_f, lng_f, accuracy, now or datetime.now(UTC)
        )
        self._store.save_location(record)
        logger.info("location recorded: %.5f,%.5f (accuracy=%s m)", lat_f, lng_f, accuracy)
        return record

    def set_manual_profile_override(
        self,
        profile_name: str,
        duration_minutes: float | None = None,
        now: datetime | None = None,
    ) -> UserLocationRecord:
        """Force a profile for duration_minutes (config default when omitted).

        The name is not checked against the configured profiles; a dangling
        override is ignored when resolving.
        """

        minutes = self._cfg.default_override_minutes if duration_minutes is None else duration_minutes
        record = set_manual_override(self._store.get_location(), profile_name, now or datetime.now(UTC), minutes)
        self._store.save_location(record)
        if not any(p.name == record.manual_override for p in self._store.list_profiles()):
            logger.warning("override %r does not match any configured profile", record.manual_override)
        return record

    def clear_manual_profile_override(self) -> UserLocationRecord:
        record = clear_manual_override(self._store.get_location())
        self._store.save_location(record)
        logger.info("manual override cleared")
        return record

    def stops_for(self, result: ProfileDetectionResult) -> tuple[TransportStop, ...]:
        """Stops to show for a detection result.

        Falls back to the configured default stops when the profile is not
        stored (built-in fallback) or has no stops of its own.
        """

        for profile in self._store.list_profiles():
            if profile.profile_id == result.profile_id and profile.transport_stops:
                return profile.transport_stops
        return self._cfg.default_stops

    def status(
        self,
        lat: str | float | None = None,
        lng: str | float | None = None,
        now: datetime | None = None,
    ) -> DetectionStatus:
        now = now or datetime.now(UTC)
        result = self.detect(lat, lng, now)
        location = self._store.get_location()
        state = override_state(location, now)
        return DetectionStatus(
            result=result,
            override_state=state,
            override_profile=location.manual_override if state is OverrideState.ACTIVE else None,
            override_remaining_s=override_remaining_seconds(location, now),
            location=location,
            stops=self.stops_for(result),
        )

    @staticmethod
    def _observed(lat: str | float | None, lng: str | float | None) -> tuple[float, float] | None:
        missing_lat = lat is None or lat == ""
        missing_lng = lng is None or lng == ""
        if missing_lat and missing_lng:
            return None
        if missing_lat or missing_lng:
            logger.warning("ignoring partial coordinates lat=%r lng=%r", lat, lng)
            return None
        return parse_lat_lng(lat, lng)
