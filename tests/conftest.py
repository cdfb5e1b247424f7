from __future__ import annotations

from datetime import datetime

import pytest

from profile_detect.models import TransportProfile, TransportStop

# Wednesday
WED_10 = datetime(2025, 7, 23, 10, 0)

HOME = (59.3105, 18.1640)
WORK = (59.3326, 18.0649)


@pytest.fixture
def profiles() -> list[TransportProfile]:
    return [
        TransportProfile(
            profile_id="1",
            name="Home",
            icon="🏠",
            color="#10B981",
            start_time="06:00",
            end_time="09:00",
            weekdays=(1, 2, 3, 4, 5),
            latitude=HOME[0],
            longitude=HOME[1],
            radius_m=250.0,
            transport_stops=(TransportStop("740024853", "Jarlaberg (Nacka kn)", "bus"),),
        ),
        TransportProfile(
            profile_id="2",
            name="Work",
            icon="💼",
            color="#3B82F6",
            start_time="09:00",
            end_time="17:00",
            weekdays=(1, 2, 3, 4, 5),
            latitude=WORK[0],
            longitude=WORK[1],
            transport_stops=(TransportStop("740020749", "Stockholm T-Centralen", "metro"),),
        ),
        TransportProfile(profile_id="3", name="Auto"),
    ]
