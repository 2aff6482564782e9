"""UI preference flags (hint visibility and friends)."""

from typing import Any

from .core import KeyValueStore

PREFERENCES_KEY = "preferences"

_PREFERENCE_DEFAULTS: dict[str, Any] = {
    "hints_visible": False,
}


def get_preferences(kv: KeyValueStore) -> dict[str, Any]:
    """Read preferences, returning defaults merged with stored values."""
    prefs = dict(_PREFERENCE_DEFAULTS)
    stored = kv.get(PREFERENCES_KEY)
    if isinstance(stored, dict):
        for key, value in stored.items():
            if key in prefs:
                prefs[key] = value
    return prefs


def update_preferences(kv: KeyValueStore, fields: dict[str, Any]) -> dict[str, Any]:
    """Merge known fields into preferences and persist. Returns the full set."""
    prefs = get_preferences(kv)
    for key, value in fields.items():
        if key in prefs:
            prefs[key] = value
    kv.set(PREFERENCES_KEY, prefs)
    return prefs
