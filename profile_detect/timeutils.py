"""Time parsing and formatting utilities."""

from __future__ import annotations

import re
from datetime import UTC, datetime, tzinfo

from zoneinfo import ZoneInfo

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def tzinfo_from_name(tz_name: str) -> tzinfo:
    """Create tzinfo from an IANA timezone name.

    Args:
        tz_name: Timezone name like "Europe/Stockholm".

    Returns:
        tzinfo instance.

    Raises:
        ValueError: If timezone name is invalid on this system.
    """

    try:
        return ZoneInfo(tz_name)
    except Exception as exc:  # ZoneInfo raises KeyError / ZoneInfoNotFoundError (platform dependent)
        raise ValueError(f"invalid timezone: {tz_name!r}, e.g. Europe/Stockholm") from exc


def as_aware(dt: datetime) -> datetime:
    """Return dt as a timezone-aware datetime; naive values are treated as UTC."""

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def parse_dt(text: str, tz_name: str) -> datetime:
    """Parse user-provided datetime text to a timezone-aware datetime.

    Supported formats:
      - "YYYY-MM-DD HH:MM[:SS]"
      - "YYYY-MM-DDTHH:MM[:SS]"
      - with optional timezone offset, e.g. "+02:00" or "Z"

    If timezone is missing, it will be assumed to be tz_name.

    Raises:
        ValueError: If cannot parse.
    """

    s = text.strip().replace("T", " ")
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    tz = tzinfo_from_name(tz_name)
    try:
        dt = datetime.fromisoformat(s)
    except ValueError as exc:
        raise ValueError(f"cannot parse datetime: {text!r}, expected e.g. 2025-07-22 08:30") from exc

    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def parse_iso(text: str | None) -> datetime | None:
    """Parse a stored ISO 8601 timestamp; None/empty stays None."""

    if not text:
        return None
    return datetime.fromisoformat(str(text).replace("Z", "+00:00"))


def normalize_hhmm(text: str) -> str:
    """Normalize "H:MM"/"HH:MM" to zero-padded "HH:MM".

    Zero padding keeps lexical comparison equivalent to numeric comparison.

    Raises:
        ValueError: If text is not a valid time of day.
    """

    m = _HHMM_RE.match(text.strip())
    if m is None:
        raise ValueError(f"invalid time of day: {text!r}, expected HH:MM")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"invalid time of day: {text!r}")
    return f"{hour:02d}:{minute:02d}"


def local_wall_clock(now: datetime, tz_name: str | None = None) -> datetime:
    """Return now as local wall-clock time.

    Aware datetimes are converted to tz_name when given; naive datetimes are
    already wall-clock and are returned unchanged.
    """

    if now.tzinfo is not None and tz_name:
        return now.astimezone(tzinfo_from_name(tz_name))
    return now


def iso_weekday_and_hhmm(now: datetime) -> tuple[int, str]:
    """Weekday (Monday=1 .. Sunday=7) and zero-padded "HH:MM" of now."""

    return now.isoweekday(), f"{now.hour:02d}:{now.minute:02d}"
