from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

import pytest

from profile_detect.models import TransportProfile, UserLocationRecord
from profile_detect.storage import DuplicateProfileError, JsonFileStore, MemoryStore, ProfileNotFoundError


def test_memory_store_assigns_ids_and_keeps_order():
    store = MemoryStore()
    a = store.create_profile(TransportProfile(profile_id="", name="Home"))
    b = store.create_profile(TransportProfile(profile_id="", name="Work"))
    assert (a.profile_id, b.profile_id) == ("1", "2")
    assert [p.name for p in store.list_profiles()] == ["Home", "Work"]


def test_duplicate_name_rejected():
    store = MemoryStore([TransportProfile(profile_id="1", name="Home")])
    with pytest.raises(DuplicateProfileError):
        store.create_profile(TransportProfile(profile_id="", name="Home"))
    with pytest.raises(DuplicateProfileError):
        store.create_profile(TransportProfile(profile_id="1", name="Other"))


def test_update_and_delete():
    store = MemoryStore([TransportProfile(profile_id="1", name="Home"), TransportProfile(profile_id="2", name="Work")])
    updated = store.update_profile("1", start_time="06:00", profile_id="99")
    assert updated.profile_id == "1"
    assert store.get_profile("1").start_time == "06:00"
    with pytest.raises(DuplicateProfileError):
        store.update_profile("1", name="Work")
    store.delete_profile("1")
    assert [p.name for p in store.list_profiles()] == ["Work"]
    with pytest.raises(ProfileNotFoundError):
        store.delete_profile("1")
    with pytest.raises(KeyError):
        store.get_profile("404")


def test_json_store_persists_profiles_and_location(tmp_path):
    path = tmp_path / "store.json"
    store = JsonFileStore(path)
    store.create_profile(TransportProfile(profile_id="", name="Home", latitude=59.3, longitude=18.1))
    store.save_location(UserLocationRecord(manual_override="Home", override_until=datetime(2025, 7, 23, 9, tzinfo=UTC)))

    reopened = JsonFileStore(path)
    assert [p.name for p in reopened.list_profiles()] == ["Home"]
    assert reopened.get_profile("1").geofence is not None
    assert reopened.get_location().manual_override == "Home"
    assert not path.with_suffix(".json.tmp").exists()


def test_json_store_reads_text_coordinates(tmp_path):
    path = tmp_path / "store.json"
    doc = {
        "profiles": [
            {"id": 1, "name": "Hemma", "latitude": "59.3105", "longitude": "18.1640", "radius": 200},
            {"name": "missing id"},
        ],
        "location": None,
    }
    path.write_text(json.dumps(doc), encoding="utf-8")
    store = JsonFileStore(path)
    profiles = store.list_profiles()
    assert [p.name for p in profiles] == ["Hemma"]
    assert profiles[0].latitude == 59.3105
    assert store.get_location() is None


def test_corrupted_store_is_backed_up(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileStore(path)
    assert store.list_profiles() == []
    assert (tmp_path / "store.json.broken").read_text(encoding="utf-8") == "{not json"


def test_missing_store_file_is_empty(tmp_path):
    store = JsonFileStore(tmp_path / "nope.json")
    assert store.list_profiles() == []
    assert store.get_location() is None


def test_json_store_update_keeps_id(tmp_path):
    path = tmp_path / "store.json"
    store = JsonFileStore(path)
    store.create_profile(TransportProfile(profile_id="", name="Home"))
    store.update_profile("1", profile_id="7", name="Hemma")
    reopened = JsonFileStore(path)
    assert [(p.profile_id, p.name) for p in reopened.list_profiles()] == [("1", "Hemma")]


@pytest.mark.parametrize(
    "location",
    [
        {"manualOverride": "Home", "overrideUntil": "tomorrow"},
        {"manualOverride": "Home", "overrideUntil": 1753257600},
        {"latitude": "abc", "longitude": "18.0"},
        {"latitude": 59.3, "longitude": 18.0, "accuracy": "far"},
    ],
)
def test_unreadable_location_record_is_ignored(tmp_path, caplog, location):
    path = tmp_path / "store.json"
    doc = {"profiles": [{"id": "1", "name": "Home"}], "location": location}
    path.write_text(json.dumps(doc), encoding="utf-8")
    store = JsonFileStore(path)
    with caplog.at_level(logging.WARNING):
        assert store.get_location() is None
    assert [p.name for p in store.list_profiles()] == ["Home"]
    assert "unreadable location record" in caplog.text
