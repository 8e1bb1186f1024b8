"""
Tool: Profile Store
Purpose: Durable load/save of the UserProfile

The stored file wraps the profile in a small versioned envelope:

    {"schema_version": 1, "saved_at": "<iso>", "profile": {...}}

A bare profile object (no envelope) is accepted on load as well. Loading
never raises: a missing, unreadable, or corrupt file yields a fresh default
profile and a warning in the log. Saving writes atomically and reports
success as a bool.

Usage:
    from sherpa.learning.profile_store import ProfileStore

    store = ProfileStore(Path.home() / ".sherpa")
    profile = store.load()
    store.save(profile)

Dependencies:
    - json (stdlib)
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from sherpa.learning.models import UserProfile
from sherpa.learning.serialization import format_timestamp, write_json_atomic
from sherpa.logging_config import get_logger

logger = get_logger(__name__)

PROFILE_FILENAME = "user-profile.json"
SCHEMA_VERSION = 1


class ProfileStore:
    def __init__(self, root_dir: str | Path | None = None):
        self.root_dir = Path(root_dir) if root_dir is not None else None

    @property
    def path(self) -> Path | None:
        if self.root_dir is None:
            return None
        return self.root_dir / PROFILE_FILENAME

    def exists(self) -> bool:
        return self.path is not None and self.path.exists()

    def load(self) -> UserProfile:
        path = self.path
        if path is None or not path.exists():
            return UserProfile.create_default()

        try:
            with open(path, encoding="utf-8") as f:
                data: Any = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("profile_load_failed", path=str(path), error=str(e))
            return UserProfile.create_default()

        if isinstance(data, dict) and "profile" in data:
            version = data.get("schema_version")
            if version != SCHEMA_VERSION:
                logger.warning("profile_schema_mismatch", path=str(path), found=version)
            data = data["profile"]

        if not isinstance(data, dict):
            logger.warning("profile_load_failed", path=str(path), error="profile is not a JSON object")
            return UserProfile.create_default()

        profile = UserProfile.from_dict(data)
        logger.debug(
            "profile_loaded",
            user_id=profile.user_id,
            workflow_patterns=len(profile.workflow_patterns),
            achievements=len(profile.achievements),
        )
        return profile

    def save(self, profile: UserProfile) -> bool:
        path = self.path
        if path is None:
            return False

        envelope = {
            "schema_version": SCHEMA_VERSION,
            "saved_at": format_timestamp(datetime.now()),
            "profile": profile.to_dict(),
        }
        try:
            write_json_atomic(path, envelope)
        except (OSError, TypeError) as e:
            logger.error("profile_save_failed", path=str(path), error=str(e))
            return False
        return True
