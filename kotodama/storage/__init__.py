"""Persistence for save slots, the active-slot selection and preferences.

Everything is kept in a string-keyed JSON blob store:
  game_slots       List of slot records (the roster, rewritten whole on save)
  active_slot_id   Id of the selected slot
  preferences      UI flags (hints_visible)

Slot records use the at-rest schema
  {id, name, stats, history, inventory, actionBudget, modified, scenarioType}
and older record shapes are upgraded when read (see slots.py).
"""

# Re-export the public surface so `from kotodama import storage` is enough.

from .core import (  # noqa: F401
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
)

from .slots import (  # noqa: F401
    SlotRepository,
    parse_slot_record,
    upgrade_legacy_record,
)

from .preferences import (  # noqa: F401
    get_preferences,
    update_preferences,
)

from .transcript import (  # noqa: F401
    build_log,
    export_transcript,
    slot_from_transcript,
)
