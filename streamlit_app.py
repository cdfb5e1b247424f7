from __future__ import annotations

from datetime import datetime
from pathlib import Path

import streamlit as st

from profile_detect.geo import InvalidCoordinateError
from profile_detect.models import DEFAULT_OVERRIDE_MINUTES, DEFAULT_TZ, DetectorConfig
from profile_detect.override import OverrideState
from profile_detect.service import DetectionService
from profile_detect.storage import JsonFileStore
from profile_detect.timeutils import tzinfo_from_name


def _mmss(seconds: float) -> str:
    s = int(round(max(0.0, seconds)))
    return f"{s // 60:d}:{s % 60:02d}"


def _service(store_path: str, tz_name: str) -> DetectionService:
    # A fresh store per rerun so edits made through the CLI show up.
    return DetectionService(JsonFileStore(store_path), DetectorConfig(tz_name=tz_name))


def main() -> None:
    st.set_page_config(page_title="Transport profile", layout="wide")
    st.title("Transport profile detection")

    with st.sidebar:
        st.subheader("Store and timezone")
        tz_name = st.text_input("Timezone (IANA)", value=DEFAULT_TZ)
        store_path = st.text_input("Store path", value="profiles_store.json")

        st.subheader("Observed position (optional)")
        lat = st.text_input("Latitude", value="")
        lng = st.text_input("Longitude", value="")
        accuracy = st.number_input("Accuracy (m)", value=20.0, step=5.0)
        record_fix = st.button("Record as GPS fix", use_container_width=True)

    if not Path(store_path).exists():
        st.warning(f"Store {store_path!r} does not exist yet; only the built-in Auto profile is available.")

    try:
        tzinfo = tzinfo_from_name(tz_name)
    except ValueError as exc:
        st.error(str(exc))
        return

    svc = _service(store_path, tz_name)
    if record_fix:
        try:
            svc.record_location_observation(lat, lng, float(accuracy))
            st.success("GPS fix recorded")
        except InvalidCoordinateError as exc:
            st.error(str(exc))

    try:
        status = svc.status(lat or None, lng or None)
    except InvalidCoordinateError as exc:
        st.error(str(exc))
        return

    res = status.result
    c1, c2, c3 = st.columns(3)
    c1.metric("Active profile", f"{res.icon} {res.profile_name}")
    c2.metric("Reason", res.describe())
    if status.override_state is OverrideState.ACTIVE:
        c3.metric("Override left (min:s)", _mmss(status.override_remaining_s))
    else:
        c3.metric("Override", "inactive")

    st.subheader("Stops")
    if status.stops:
        st.dataframe([s.to_dict() for s in status.stops], use_container_width=True)
    else:
        st.info("No stops configured for this profile.")

    st.subheader("Manual override")
    profiles = JsonFileStore(store_path).list_profiles()
    names = [p.name for p in profiles]
    if names:
        col_a, col_b = st.columns(2)
        choice = col_a.selectbox("Profile", names)
        minutes = col_b.number_input("Minutes", value=float(DEFAULT_OVERRIDE_MINUTES), min_value=1.0, step=15.0)
        if st.button("Set override", type="primary"):
            svc.set_manual_profile_override(choice, float(minutes))
            st.rerun()
    if status.override_state is OverrideState.ACTIVE and st.button("Back to automatic"):
        svc.clear_manual_profile_override()
        st.rerun()

    with st.expander("Last GPS fix", expanded=False):
        loc = status.location
        if loc is not None and loc.has_fix:
            ts = loc.timestamp.astimezone(tzinfo).isoformat(sep=" ", timespec="seconds") if loc.timestamp else "?"
            st.write(f"{loc.latitude}, {loc.longitude} (accuracy {loc.accuracy_m} m) at {ts}")
        else:
            st.write("none")

    st.caption(f"Evaluated at {datetime.now(tzinfo).isoformat(sep=' ', timespec='seconds')}")


if __name__ == "__main__":
    main()
