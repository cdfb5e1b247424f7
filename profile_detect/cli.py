"""Command-line interface for profile_detect.

Run:
    python -m profile_detect detect --lat 59.3293 --lng 18.0686
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import UTC, datetime

from profile_detect.geo import parse_lat_lng
from profile_detect.models import (
    ALL_WEEKDAYS,
    DEFAULT_COLOR,
    DEFAULT_ICON,
    DEFAULT_OVERRIDE_MINUTES,
    DEFAULT_TZ,
    DetectorConfig,
    TransportProfile,
    TransportStop,
)
from profile_detect.service import DetectionService
from profile_detect.storage import JsonFileStore
from profile_detect.timeutils import normalize_hhmm, parse_dt, tzinfo_from_name


def _service(args: argparse.Namespace) -> DetectionService:
    store = JsonFileStore(args.store)
    cfg = DetectorConfig(tz_name=args.tz, default_override_minutes=args.default_override_minutes)
    return DetectionService(store, cfg)


def _now(args: argparse.Namespace) -> datetime:
    at = getattr(args, "at", None)
    if at:
        return parse_dt(at, args.tz)
    return datetime.now(UTC)


def _cmd_detect(args: argparse.Namespace) -> int:
    svc = _service(args)
    result = svc.detect(args.lat, args.lng, _now(args))
    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return 0
    print(f"{result.icon} {result.profile_name}  [{result.describe()}]")
    for stop in svc.stops_for(result):
        print(f"  - {stop.name} ({stop.type}, id={stop.stop_id})")
    return 0


def _cmd_locate(args: argparse.Namespace) -> int:
    record = _service(args).record_location_observation(args.lat, args.lng, args.accuracy, _now(args))
    print(f"location recorded: {record.latitude},{record.longitude}")
    return 0


def _cmd_override(args: argparse.Namespace) -> int:
    record = _service(args).set_manual_profile_override(args.profile, args.minutes, _now(args))
    until = record.override_until.astimezone(tzinfo_from_name(args.tz))
    print(f"override: {record.manual_override} until {until.isoformat(sep=' ', timespec='minutes')}")
    return 0


def _cmd_clear_override(args: argparse.Namespace) -> int:
    _service(args).clear_manual_profile_override()
    print("override cleared")
    return 0


def _cmd_status(args: argparse.Namespace) -> int:
    st = _service(args).status(args.lat, args.lng, _now(args))
    if args.json:
        payload = {
            "result": st.result.to_dict(),
            "override": {
                "state": st.override_state.value,
                "profile": st.override_profile,
                "remainingSeconds": round(st.override_remaining_s, 1),
            },
            "location": st.location.to_dict() if st.location is not None else None,
            "stops": [s.to_dict() for s in st.stops],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    print("### Active profile")
    print(f"{st.result.icon} {st.result.profile_name}  [{st.result.describe()}]")
    print()
    print("### Override")
    if st.override_profile is not None:
        print(f"{st.override_profile}, {st.override_remaining_s / 60.0:.1f} min left")
    else:
        print("inactive")
    print()
    print("### Last GPS fix")
    if st.location is not None and st.location.has_fix:
        ts = st.location.timestamp.isoformat(sep=" ", timespec="seconds") if st.location.timestamp else "?"
        print(f"{st.location.latitude},{st.location.longitude} accuracy={st.location.accuracy_m} at {ts}")
    else:
        print("none")
    return 0


def _cmd_profiles_list(args: argparse.Namespace) -> int:
    profiles = JsonFileStore(args.store).list_profiles()
    if args.json:
        print(json.dumps([p.to_dict() for p in profiles], ensure_ascii=False, indent=2))
        return 0
    for p in profiles:
        rules: list[str] = []
        if p.geofence is not None:
            fence = p.geofence
            rules.append(f"within {fence.radius_m:.0f} m of {fence.center_lat},{fence.center_lon}")
        if p.time_window is not None:
            days = ",".join(str(d) for d in sorted(p.time_window.weekdays))
            rules.append(f"{p.start_time}-{p.end_time} on {days}")
        print(f"{p.profile_id}\t{p.icon} {p.name}\t{'; '.join(rules) or 'no rules'}\t{len(p.transport_stops)} stops")
    return 0


def _parse_stop(text: str) -> TransportStop:
    """Parse "ID:NAME[:TYPE]"."""

    parts = text.split(":")
    if len(parts) < 2 or not parts[0]:
        raise ValueError(f"invalid stop {text!r}, expected ID:NAME[:TYPE]")
    raw = {"id": parts[0], "name": parts[1]}
    if len(parts) > 2:
        raw["type"] = parts[2]
    return TransportStop.from_dict(raw)


def _cmd_profiles_add(args: argparse.Namespace) -> int:
    if (args.lat is None) != (args.lng is None):
        raise ValueError("--lat and --lng must be given together")
    if (args.start is None) != (args.end is None):
        raise ValueError("--start and --end must be given together")
    if args.radius_m is not None and args.radius_m <= 0:
        raise ValueError("--radius-m must be positive")
    raw = {
        "id": args.id or "",
        "name": args.name,
        "icon": args.icon,
        "color": args.color,
        "locationName": args.location_name,
        "radius": args.radius_m,
        "priority": args.priority,
        "transportStops": [_parse_stop(s).to_dict() for s in args.stop],
    }
    if args.lat is not None:
        raw["latitude"], raw["longitude"] = parse_lat_lng(args.lat, args.lng)
    if args.start is not None:
        raw["startTime"] = normalize_hhmm(args.start)
        raw["endTime"] = normalize_hhmm(args.end)
        raw["weekdays"] = args.weekdays or list(ALL_WEEKDAYS)
    profile = JsonFileStore(args.store).create_profile(TransportProfile.from_dict(raw))
    print(f"created profile {profile.profile_id}: {profile.name}")
    return 0


def _cmd_profiles_remove(args: argparse.Namespace) -> int:
    JsonFileStore(args.store).delete_profile(args.id)
    print(f"deleted profile {args.id}")
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--store", type=str, default="profiles_store.json", help="JSON store path")
    p.add_argument("--tz", type=str, default=DEFAULT_TZ, help="Timezone (IANA), default Europe/Stockholm")
    p.add_argument(
        "--default-override-minutes",
        type=float,
        default=DEFAULT_OVERRIDE_MINUTES,
        help="Override length when --minutes is not given",
    )


def _add_observed(p: argparse.ArgumentParser) -> None:
    p.add_argument("--lat", type=str, default=None, help="Observed latitude")
    p.add_argument("--lng", type=str, default=None, help="Observed longitude")
    p.add_argument("--at", type=str, default=None, help="Evaluate at this time instead of now (e.g. 2025-07-23 10:00)")


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="profile_detect")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_det = sub.add_parser("detect", help="Show the active transport profile")
    _add_common(p_det)
    _add_observed(p_det)
    p_det.add_argument("--json", action="store_true", help="Print the detection payload as JSON")
    p_det.set_defaults(func=_cmd_detect)

    p_loc = sub.add_parser("locate", help="Record a GPS fix")
    _add_common(p_loc)
    p_loc.add_argument("--lat", type=str, required=True, help="Latitude")
    p_loc.add_argument("--lng", type=str, required=True, help="Longitude")
    p_loc.add_argument("--accuracy", type=float, default=None, help="GPS accuracy (meters)")
    p_loc.add_argument("--at", type=str, default=None, help="Fix time instead of now")
    p_loc.set_defaults(func=_cmd_locate)

    p_ov = sub.add_parser("override", help="Force a profile for a while")
    _add_common(p_ov)
    p_ov.add_argument("--profile", type=str, required=True, help="Profile name")
    p_ov.add_argument("--minutes", type=float, default=None, help="Override duration (minutes)")
    p_ov.add_argument("--at", type=str, default=None, help="Start time instead of now")
    p_ov.set_defaults(func=_cmd_override)

    p_clr = sub.add_parser("clear-override", help="Return to automatic detection")
    _add_common(p_clr)
    p_clr.set_defaults(func=_cmd_clear_override)

    p_st = sub.add_parser("status", help="Active profile, override countdown and last GPS fix")
    _add_common(p_st)
    _add_observed(p_st)
    p_st.add_argument("--json", action="store_true", help="Print as JSON")
    p_st.set_defaults(func=_cmd_status)

    p_prof = sub.add_parser("profiles", help="Manage transport profiles")
    prof_sub = p_prof.add_subparsers(dest="profiles_cmd", required=True)

    p_pl = prof_sub.add_parser("list", help="List profiles in precedence order")
    _add_common(p_pl)
    p_pl.add_argument("--json", action="store_true", help="Print as JSON")
    p_pl.set_defaults(func=_cmd_profiles_list)

    p_pa = prof_sub.add_parser("add", help="Add a profile (appended, so it has the lowest precedence)")
    _add_common(p_pa)
    p_pa.add_argument("--name", type=str, required=True, help="Unique profile name")
    p_pa.add_argument("--id", type=str, default=None, help="Profile id (default: next number)")
    p_pa.add_argument("--icon", type=str, default=DEFAULT_ICON)
    p_pa.add_argument("--color", type=str, default=DEFAULT_COLOR)
    p_pa.add_argument("--start", type=str, default=None, help="Time window start HH:MM")
    p_pa.add_argument("--end", type=str, default=None, help="Time window end HH:MM (inclusive)")
    p_pa.add_argument(
        "--weekdays",
        type=int,
        nargs="+",
        choices=ALL_WEEKDAYS,
        default=None,
        help="Weekdays for the time window, Monday=1 .. Sunday=7 (default: all)",
    )
    p_pa.add_argument("--location-name", type=str, default=None)
    p_pa.add_argument("--lat", type=str, default=None, help="Geofence center latitude")
    p_pa.add_argument("--lng", type=str, default=None, help="Geofence center longitude")
    p_pa.add_argument("--radius-m", type=float, default=None, help="Geofence radius (default 200 m)")
    p_pa.add_argument("--priority", type=int, default=0, help="Stored only; list order decides")
    p_pa.add_argument("--stop", action="append", default=[], help="Stop as ID:NAME[:TYPE], repeatable")
    p_pa.set_defaults(func=_cmd_profiles_add)

    p_pr = prof_sub.add_parser("remove", help="Delete a profile")
    _add_common(p_pr)
    p_pr.add_argument("--id", type=str, required=True, help="Profile id")
    p_pr.set_defaults(func=_cmd_profiles_remove)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except (KeyError, ValueError) as exc:
        msg = exc.args[0] if exc.args else str(exc)
        print(f"error: {msg}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
