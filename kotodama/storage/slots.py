"""Save-slot roster persistence and legacy schema upgrade.

The roster is stored as one blob (a list of slot records) and is always
rewritten whole. Records written by older clients are upgraded on read:

  actions{date, count}                          -> actionBudget
  actions{lastUpdateTimestamp, current, limit}  -> actionBudget
  dailyActions{lastRecovery, current, limit}    -> actionBudget
  history[{role, parts: [{text}]}]              -> history[{role, text}]
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from kotodama.clock import to_ms
from kotodama.config import INITIAL_ACTIONS, MAX_ACTIONS, MAX_SAVE_SLOTS
from kotodama.models import SaveSlot

from .core import KeyValueStore

logger = logging.getLogger(__name__)

SLOTS_KEY = "game_slots"
ACTIVE_SLOT_KEY = "active_slot_id"

_LEGACY_BUDGET_KEYS = ("dailyActions", "actions")


def _parse_legacy_date(value: Any) -> int:
    """Best-effort epoch ms for a stored date string; 0 if unparseable."""
    if not isinstance(value, str) or not value.strip():
        return 0
    text = value.strip()
    try:
        moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            moment = datetime.strptime(text, "%a %b %d %Y")
        except ValueError:
            return 0
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return to_ms(moment)


def _legacy_budget(old: dict[str, Any]) -> dict[str, Any]:
    if "count" in old and "current" not in old:
        return {
            "current": old.get("count", INITIAL_ACTIONS),
            "limit": MAX_ACTIONS,
            "lastRecovery": _parse_legacy_date(old.get("date")),
        }
    return {
        "current": old.get("current", INITIAL_ACTIONS),
        "limit": old.get("limit", MAX_ACTIONS),
        "lastRecovery": old.get("lastRecovery", old.get("lastUpdateTimestamp", 0)) or 0,
    }


def upgrade_legacy_record(record: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of `record` in the canonical slot schema."""
    upgraded = dict(record)

    legacy = {k: upgraded.pop(k) for k in _LEGACY_BUDGET_KEYS if k in upgraded}
    if "actionBudget" not in upgraded:
        for key in _LEGACY_BUDGET_KEYS:
            old = legacy.get(key)
            if isinstance(old, dict):
                logger.info("Upgrading legacy %s on slot %s", key, upgraded.get("id"))
                upgraded["actionBudget"] = _legacy_budget(old)
                break

    history = upgraded.get("history")
    if isinstance(history, list):
        valid = [t for t in history if isinstance(t, dict) and t.get("role") in ("user", "model")]
        if len(valid) != len(history):
            logger.warning(
                "Dropped %d malformed history turns from slot %s",
                len(history) - len(valid), upgraded.get("id"),
            )
        upgraded["history"] = valid

    if upgraded.get("name") in (None, ""):
        upgraded.pop("name", None)
    return upgraded


def parse_slot_record(raw: Any) -> SaveSlot | None:
    """Validate one stored or imported record; None if it is not a slot."""
    if not isinstance(raw, dict):
        return None
    try:
        return SaveSlot.model_validate(upgrade_legacy_record(raw))
    except ValidationError as e:
        logger.warning("Invalid slot record %r skipped: %s", raw.get("id"), e.error_count())
        return None


class SlotRepository:
    """Maps the slot roster and active-slot selection onto a key-value store."""

    def __init__(self, kv: KeyValueStore, max_slots: int = MAX_SAVE_SLOTS) -> None:
        self._kv = kv
        self.max_slots = max_slots

    @property
    def kv(self) -> KeyValueStore:
        return self._kv

    def load_roster(self) -> list[SaveSlot]:
        raw = self._kv.get(SLOTS_KEY)
        if not isinstance(raw, list):
            return []
        slots = []
        for record in raw:
            slot = parse_slot_record(record)
            if slot is not None:
                slots.append(slot)
        return slots

    def save_roster(self, slots: list[SaveSlot]) -> None:
        self._kv.set(SLOTS_KEY, [s.to_record() for s in slots])

    def get_active_slot_id(self) -> int | None:
        value = self._kv.get(ACTIVE_SLOT_KEY)
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    def set_active_slot_id(self, slot_id: int | None) -> None:
        if slot_id is None:
            self._kv.delete(ACTIVE_SLOT_KEY)
        else:
            self._kv.set(ACTIVE_SLOT_KEY, slot_id)
