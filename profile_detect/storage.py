"""Profile and location persistence.

The detection service only depends on the ProfileStore protocol, so tests
and embedders can pass a MemoryStore while the CLI and the panel use a
JsonFileStore on disk.

Concurrent writers are not coordinated: the last write wins.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Any, Protocol

from profile_detect.models import TransportProfile, UserLocationRecord

logger = logging.getLogger(__name__)


class ProfileNotFoundError(KeyError):
    """No profile with the given id."""


class DuplicateProfileError(ValueError):
    """A profile with the same name already exists."""


class ProfileStore(Protocol):
    def list_profiles(self) -> list[TransportProfile]: ...

    def get_profile(self, profile_id: str) -> TransportProfile: ...

    def create_profile(self, profile: TransportProfile) -> TransportProfile: ...

    def update_profile(self, profile_id: str, /, **changes: Any) -> TransportProfile: ...

    def delete_profile(self, profile_id: str) -> None: ...

    def get_location(self) -> UserLocationRecord | None: ...

    def save_location(self, record: UserLocationRecord) -> None: ...


class MemoryStore:
    """Dict-backed store; insertion order is kept as profile order."""

    def __init__(
        self,
        profiles: list[TransportProfile] | None = None,
        location: UserLocationRecord | None = None,
    ) -> None:
        self._profiles: dict[str, TransportProfile] = {}
        self._location = location
        for p in profiles or ():
            self.create_profile(p)

    def list_profiles(self) -> list[TransportProfile]:
        return list(self._profiles.values())

    def get_profile(self, profile_id: str) -> TransportProfile:
        try:
            return self._profiles[str(profile_id)]
        except KeyError:
            raise ProfileNotFoundError(f"no profile with id {profile_id!r}") from None

    def create_profile(self, profile: TransportProfile) -> TransportProfile:
        """Add a profile; an empty id gets the next free numeric id.

        Raises:
            DuplicateProfileError: If the name or id is already taken.
        """

        if any(p.name == profile.name for p in self._profiles.values()):
            raise DuplicateProfileError(f"profile named {profile.name!r} already exists")
        if not profile.profile_id:
            profile = dataclasses.replace(profile, profile_id=self._next_id())
        elif profile.profile_id in self._profiles:
            raise DuplicateProfileError(f"profile id {profile.profile_id!r} already exists")
        self._profiles[profile.profile_id] = profile
        logger.info("created profile %s (%r)", profile.profile_id, profile.name)
        return profile

    def update_profile(self, profile_id: str, /, **changes: Any) -> TransportProfile:
        """Replace fields of a stored profile (the id cannot change)."""

        current = self.get_profile(profile_id)
        changes.pop("profile_id", None)
        new_name = changes.get("name")
        if new_name is not None and new_name != current.name:
            if any(p.name == new_name for p in self._profiles.values()):
                raise DuplicateProfileError(f"profile named {new_name!r} already exists")
        updated = dataclasses.replace(current, **changes)
        self._profiles[current.profile_id] = updated
        logger.info("updated profile %s (%s)", current.profile_id, ", ".join(sorted(changes)))
        return updated

    def delete_profile(self, profile_id: str) -> None:
        self.get_profile(profile_id)
        del self._profiles[str(profile_id)]
        logger.info("deleted profile %s", profile_id)

    def get_location(self) -> UserLocationRecord | None:
        return self._location

    def save_location(self, record: UserLocationRecord) -> None:
        self._location = record

    def _next_id(self) -> str:
        numeric = [int(k) for k in self._profiles if k.isdigit()]
        return str(max(numeric, default=0) + 1)

    def to_document(self) -> dict[str, Any]:
        return {
            "profiles": [p.to_dict() for p in self._profiles.values()],
            "location": self._location.to_dict() if self._location is not None else None,
        }


class JsonFileStore(MemoryStore):
    """A MemoryStore persisted as one JSON document on disk.

    Layout: {"profiles": [...], "location": {...} | null}. Every write
    persists the whole document atomically (temp file, then replace).
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self._path = Path(path)
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        """Load the document from disk (no-op if the file does not exist)."""

        if self._loaded:
            return
        self._loaded = True
        if not self._path.exists():
            return
        text = self._path.read_text(encoding="utf-8").strip()
        if not text:
            return
        try:
            doc = json.loads(text)
        except json.JSONDecodeError:
            # Store file corrupted: keep a backup and start fresh
            backup = self._path.with_suffix(self._path.suffix + ".broken")
            backup.write_text(text, encoding="utf-8")
            logger.warning("store %s is not valid JSON, moved aside to %s", self._path, backup)
            return

        for raw in doc.get("profiles") or ():
            try:
                profile = TransportProfile.from_dict(raw)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("skipping unreadable profile %r: %s", raw, exc)
                continue
            self._profiles[profile.profile_id] = profile
        raw_location = doc.get("location")
        if raw_location:
            try:
                self._location = UserLocationRecord.from_dict(raw_location)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("ignoring unreadable location record %r: %s", raw_location, exc)

    def flush(self) -> None:
        """Persist the whole document to disk (atomic-ish)."""

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(self.to_document(), ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self._path)

    def list_profiles(self) -> list[TransportProfile]:
        self.load()
        return super().list_profiles()

    def get_profile(self, profile_id: str) -> TransportProfile:
        self.load()
        return super().get_profile(profile_id)

    def create_profile(self, profile: TransportProfile) -> TransportProfile:
        self.load()
        created = super().create_profile(profile)
        self.flush()
        return created

    def update_profile(self, profile_id: str, /, **changes: Any) -> TransportProfile:
        self.load()
        updated = super().update_profile(profile_id, **changes)
        self.flush()
        return updated

    def delete_profile(self, profile_id: str) -> None:
        self.load()
        super().delete_profile(profile_id)
        self.flush()

    def get_location(self) -> UserLocationRecord | None:
        self.load()
        return super().get_location()

    def save_location(self, record: UserLocationRecord) -> None:
        self.load()
        super().save_location(record)
        self.flush()
