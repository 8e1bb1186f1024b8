"""Timestamp conversion across the persistence boundary.

Every timestamp the learning subsystem writes to disk goes through
``format_timestamp`` and every timestamp it reads back goes through
``parse_timestamp``. The model ``from_dict`` methods call nothing else for
date fields, nested ones included.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any


def parse_timestamp(value: Any, default: datetime | None = None) -> datetime | None:
    """Turn a stored value back into a datetime.

    Accepts datetimes (returned as-is), ISO-8601 strings (a trailing "Z" is
    understood), and epoch milliseconds. Anything else yields ``default``.
    Timezone-aware values are converted to naive local time so they compare
    cleanly with ``datetime.now()``.
    """
    parsed: datetime | None = None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            parsed = None
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            parsed = None

    if parsed is None:
        return default
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(data: Any) -> str:
    return json.dumps(data, indent=2, default=_json_default)


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON via temp file + rename so readers never see a partial file.

    Raises OSError (or TypeError for unserializable data); callers decide
    whether that is fatal.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = dumps(data)

    fd, temp_path = tempfile.mkstemp(suffix=".json", prefix=f"{path.stem}_", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        # Clean up temp file on failure
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise
