"""String-keyed JSON blob stores.

A store holds a handful of JSON-serialisable values (slot roster, active slot
id, preference flags). Reads never fail: a missing, unreadable or corrupt
value reads as None, which callers treat as "no data yet".
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


def _safe_key(key: str) -> str:
    """Map a key to a filesystem-safe file stem."""
    text = re.sub(r"[^A-Za-z0-9_-]+", "-", key).strip("-")
    return text or "blob"


class JsonFileStore:
    """One `{key}.json` file per key under a base directory.

    Directory layout:

        {base}/
          game_slots.json      ← slot roster (list of slot records)
          active_slot_id.json  ← id of the selected slot
          preferences.json     ← UI preference flags
    """

    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._base.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self._base / f"{_safe_key(key)}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.is_file():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Unreadable blob %s treated as empty: %s", path.name, e)
            return None

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(value, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class MemoryStore:
    """In-process store; values are JSON round-tripped like the file store."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, ensure_ascii=False)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)
