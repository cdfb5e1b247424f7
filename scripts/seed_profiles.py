from __future__ import annotations

import argparse
from pathlib import Path

from profile_detect.models import TransportProfile, TransportStop
from profile_detect.storage import JsonFileStore


def sample_profiles() -> list[TransportProfile]:
    """Stockholm-area demo profiles; list order is detection precedence."""

    return [
        TransportProfile(
            profile_id="1",
            name="Hemma",
            icon="🏠",
            color="#10B981",
            start_time="06:00",
            end_time="09:00",
            weekdays=(1, 2, 3, 4, 5),
            location_name="Hemma",
            latitude=59.3105,
            longitude=18.1640,
            radius_m=250.0,
            transport_stops=(
                TransportStop("740024853", "Jarlaberg (Nacka kn)", "bus"),
                TransportStop("9001", "Nacka Strand", "boat"),
            ),
            priority=2,
        ),
        TransportProfile(
            profile_id="2",
            name="Jobbet",
            icon="💼",
            color="#3B82F6",
            start_time="16:00",
            end_time="18:30",
            weekdays=(1, 2, 3, 4, 5),
            location_name="Jobbet",
            latitude=59.3326,
            longitude=18.0649,
            radius_m=200.0,
            transport_stops=(
                TransportStop("740020749", "Stockholm T-Centralen", "metro"),
                TransportStop("740000001", "Stockholm Centralstation", "train"),
            ),
            priority=1,
        ),
        TransportProfile(
            profile_id="3",
            name="Auto",
            weekdays=(1, 2, 3, 4, 5, 6, 7),
            transport_stops=(
                TransportStop("740000001", "Stockholm Centralstation", "train"),
                TransportStop("740024853", "Jarlaberg (Nacka kn)", "bus"),
                TransportStop("740020749", "Stockholm T-Centralen", "metro"),
            ),
        ),
    ]


def main() -> int:
    p = argparse.ArgumentParser(description="Write a demo profile store for trying out detection.")
    p.add_argument("--out", type=str, default="profiles_store.json", help="Store path")
    p.add_argument("--force", action="store_true", help="Overwrite an existing store")
    args = p.parse_args()

    out_path = Path(args.out)
    if out_path.exists():
        if not args.force:
            print(f"{out_path} already exists, use --force to overwrite")
            return 1
        out_path.unlink()

    store = JsonFileStore(out_path)
    for profile in sample_profiles():
        store.create_profile(profile)

    print(f"Generated: {out_path} (profiles={len(store.list_profiles())})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
