"""Data models for transport profiles, the location record and detection results."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Final, Sequence

from profile_detect.geo import InvalidCoordinateError, parse_coordinate
from profile_detect.timeutils import normalize_hhmm, parse_iso

logger = logging.getLogger(__name__)

DEFAULT_TZ: Final[str] = "Europe/Stockholm"
DEFAULT_RADIUS_M: Final[float] = 200.0
DEFAULT_OVERRIDE_MINUTES: Final[int] = 60
DEFAULT_ICON: Final[str] = "🔄"
DEFAULT_COLOR: Final[str] = "#6B7280"
AUTO_PROFILE_NAME: Final[str] = "Auto"
ALL_WEEKDAYS: Final[tuple[int, ...]] = (1, 2, 3, 4, 5, 6, 7)
STOP_TYPES: Final[frozenset[str]] = frozenset({"bus", "boat", "metro", "train", "tram"})


class DetectionReason(str, Enum):
    """Which detection tier produced the active profile."""

    MANUAL = "manual"
    LOCATION = "location"
    TIME = "time"
    DEFAULT = "default"


CONFIDENCE: Final[dict[DetectionReason, int]] = {
    DetectionReason.MANUAL: 100,
    DetectionReason.LOCATION: 90,
    DetectionReason.TIME: 80,
    DetectionReason.DEFAULT: 60,
}
FALLBACK_CONFIDENCE: Final[int] = 50


@dataclass(frozen=True, slots=True)
class TransportStop:
    """A stop whose departures are shown while a profile is active."""

    stop_id: str
    name: str
    type: str = "bus"
    active: bool = True

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> TransportStop:
        stop_type = str(raw.get("type", "bus") or "bus")
        if stop_type not in STOP_TYPES:
            logger.warning("unknown stop type %r for stop %r, using bus", stop_type, raw.get("id"))
            stop_type = "bus"
        return cls(
            stop_id=str(raw["id"]),
            name=str(raw.get("name", "") or ""),
            type=stop_type,
            active=bool(raw.get("active", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.stop_id, "name": self.name, "type": self.type, "active": self.active}


@dataclass(frozen=True, slots=True)
class GeofenceCircle:
    """A circle geofence (center + radius)."""

    center_lat: float
    center_lon: float
    radius_m: float


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """A same-day time window on a set of weekdays.

    Attributes:
        start: Zero-padded "HH:MM", inclusive.
        end: Zero-padded "HH:MM", inclusive.
        weekdays: Weekday numbers, Monday=1 .. Sunday=7.
    """

    start: str
    end: str
    weekdays: frozenset[int]

    def contains(self, weekday: int, hhmm: str) -> bool:
        """Check whether weekday/"HH:MM" falls in the window (both ends inclusive)."""

        return weekday in self.weekdays and self.start <= hhmm <= self.end


@dataclass(frozen=True, slots=True)
class TransportProfile:
    """A named rule bundling a stop list with activation conditions.

    The location rule applies only when both latitude and longitude are set;
    the time rule applies only when start_time, end_time and weekdays are all
    set. A partially configured rule is simply not applicable.

    Note:
        priority is stored but not consulted when resolving; list order is
        the precedence among profiles.
    """

    profile_id: str
    name: str
    icon: str = DEFAULT_ICON
    color: str = DEFAULT_COLOR
    start_time: str | None = None
    end_time: str | None = None
    weekdays: tuple[int, ...] | None = None
    location_name: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    radius_m: float | None = None
    transport_stops: tuple[TransportStop, ...] = ()
    priority: int = 0

    @property
    def geofence(self) -> GeofenceCircle | None:
        if self.latitude is None or self.longitude is None:
            return None
        radius = self.radius_m if self.radius_m else DEFAULT_RADIUS_M
        return GeofenceCircle(center_lat=self.latitude, center_lon=self.longitude, radius_m=radius)

    @property
    def time_window(self) -> TimeWindow | None:
        if not self.start_time or not self.end_time or self.weekdays is None:
            return None
        return TimeWindow(start=self.start_time, end=self.end_time, weekdays=frozenset(self.weekdays))

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> TransportProfile:
        """Build a profile from its stored/wire form.

        Malformed rule fields are dropped with a warning so the rule becomes
        not applicable.

        Raises:
            KeyError: If "id" or "name" is missing.
        """

        profile_id = str(raw["id"])
        name = str(raw["name"])
        return cls(
            profile_id=profile_id,
            name=name,
            icon=str(raw.get("icon") or DEFAULT_ICON),
            color=str(raw.get("color") or DEFAULT_COLOR),
            start_time=_optional_hhmm(raw.get("startTime"), name, "startTime"),
            end_time=_optional_hhmm(raw.get("endTime"), name, "endTime"),
            weekdays=_optional_weekdays(raw.get("weekdays"), name),
            location_name=raw.get("locationName") or None,
            latitude=_optional_coordinate(raw.get("latitude"), name, "latitude"),
            longitude=_optional_coordinate(raw.get("longitude"), name, "longitude"),
            radius_m=_optional_radius(raw.get("radius"), name),
            transport_stops=tuple(TransportStop.from_dict(s) for s in raw.get("transportStops") or ()),
            priority=_optional_priority(raw.get("priority"), name),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.profile_id,
            "name": self.name,
            "icon": self.icon,
            "color": self.color,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "weekdays": list(self.weekdays) if self.weekdays is not None else None,
            "locationName": self.location_name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius": self.radius_m,
            "transportStops": [s.to_dict() for s in self.transport_stops],
            "priority": self.priority,
        }


def _optional_hhmm(value: Any, profile: str, key: str) -> str | None:
    if value is None or value == "":
        return None
    try:
        return normalize_hhmm(str(value))
    except ValueError:
        logger.warning("profile %r: ignoring malformed %s=%r", profile, key, value)
        return None


def _optional_coordinate(value: Any, profile: str, kind: str) -> float | None:
    if value is None or value == "":
        return None
    try:
        return parse_coordinate(value, kind)
    except InvalidCoordinateError:
        logger.warning("profile %r: ignoring malformed %s=%r", profile, kind, value)
        return None


def _optional_radius(value: Any, profile: str) -> float | None:
    if value is None or value == "":
        return None
    try:
        radius = float(value)
    except (TypeError, ValueError):
        logger.warning("profile %r: ignoring malformed radius=%r", profile, value)
        return None
    if radius <= 0:
        logger.warning("profile %r: ignoring non-positive radius=%r", profile, value)
        return None
    return radius


def _optional_priority(value: Any, profile: str) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("profile %r: ignoring malformed priority=%r", profile, value)
        return 0


def _optional_weekdays(value: Any, profile: str) -> tuple[int, ...] | None:
    if value is None:
        return None
    if not isinstance(value, Sequence) or isinstance(value, str):
        logger.warning("profile %r: ignoring malformed weekdays=%r", profile, value)
        return None
    days: list[int] = []
    for item in value:
        try:
            day = int(item)
        except (TypeError, ValueError):
            day = 0
        if not 1 <= day <= 7:
            logger.warning("profile %r: ignoring malformed weekdays=%r", profile, value)
            return None
        days.append(day)
    return tuple(days)


@dataclass(frozen=True, slots=True)
class UserLocationRecord:
    """The last known GPS fix plus the manual override state.

    GPS fields and override fields are independent: a GPS update never
    touches the override and an override never touches the GPS fields.
    """

    latitude: float | None = None
    longitude: float | None = None
    accuracy_m: float | None = None
    timestamp: datetime | None = None
    manual_override: str | None = None
    override_until: datetime | None = None

    @property
    def has_fix(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> UserLocationRecord:
        lat = raw.get("latitude")
        lon = raw.get("longitude")
        accuracy = raw.get("accuracy")
        return cls(
            latitude=parse_coordinate(lat, "latitude") if lat is not None else None,
            longitude=parse_coordinate(lon, "longitude") if lon is not None else None,
            accuracy_m=float(accuracy) if accuracy is not None else None,
            timestamp=parse_iso(raw.get("timestamp")),
            manual_override=raw.get("manualOverride") or None,
            override_until=parse_iso(raw.get("overrideUntil")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy_m,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "manualOverride": self.manual_override,
            "overrideUntil": self.override_until.isoformat() if self.override_until else None,
        }


@dataclass(frozen=True, slots=True)
class ProfileDetectionResult:
    """The resolver's output. Derived on every request, never persisted."""

    profile_id: str
    profile_name: str
    reason: DetectionReason
    confidence: int
    icon: str = DEFAULT_ICON
    color: str = DEFAULT_COLOR

    @classmethod
    def for_profile(cls, profile: TransportProfile, reason: DetectionReason) -> ProfileDetectionResult:
        return cls(
            profile_id=profile.profile_id,
            profile_name=profile.name,
            reason=reason,
            confidence=CONFIDENCE[reason],
            icon=profile.icon,
            color=profile.color,
        )

    def describe(self) -> str:
        """Short human-readable label for the reason."""

        if self.reason is DetectionReason.LOCATION:
            return f"Location ({self.confidence}%)"
        if self.reason is DetectionReason.TIME:
            return f"Time ({self.confidence}%)"
        if self.reason is DetectionReason.MANUAL:
            return "Manual"
        return "Default"

    def to_dict(self) -> dict[str, Any]:
        return {
            "profileId": self.profile_id,
            "profileName": self.profile_name,
            "reason": self.reason.value,
            "confidence": self.confidence,
            "icon": self.icon,
            "color": self.color,
        }


FALLBACK_RESULT: Final[ProfileDetectionResult] = ProfileDetectionResult(
    profile_id="1",
    profile_name=AUTO_PROFILE_NAME,
    reason=DetectionReason.DEFAULT,
    confidence=FALLBACK_CONFIDENCE,
)


@dataclass(frozen=True, slots=True)
class DetectorConfig:
    """Runtime settings for the detection service."""

    tz_name: str = DEFAULT_TZ
    default_override_minutes: int = DEFAULT_OVERRIDE_MINUTES
    # Stops shown when the active profile has none (or is the built-in fallback).
    default_stops: tuple[TransportStop, ...] = field(default_factory=tuple)
