"""Game State Store — the live state of the active slot plus the slot roster.

One store instance owns everything the game mutates between saves:

  roster        every SaveSlot, in creation order (at most max_slots)
  active slot   id of the slot being played, or None
  live fields   history, stats, inventory, name, modified, scenario type,
                and an ActionLedger wrapping the slot's budget

Live fields are deep copies of the slot record; nothing reaches the roster
until save_active_slot() writes them back, and the roster is then persisted
whole through the SlotRepository.
"""

from __future__ import annotations

import copy
import logging
import random
from collections.abc import Callable
from typing import Any

from kotodama.budget import ActionLedger, BudgetPolicy, new_budget
from kotodama.clock import now_ms
from kotodama.config import MAX_INVENTORY, UNSET_NAME
from kotodama.models import (
    GameState,
    HitPoints,
    ImportResult,
    ParsedDirectives,
    Role,
    SaveSlot,
    Turn,
)
from kotodama.pipeline.directives import parse_directives, preview_directives
from kotodama.prompts import build_priming_text
from kotodama.scenarios import Scenario, get_scenario
from kotodama.stats import calculate_modifier, generate_stats
from kotodama.storage.slots import SlotRepository, parse_slot_record

logger = logging.getLogger(__name__)


class SlotCapacityError(RuntimeError):
    """Raised when a slot is created while the roster is already full."""


class GameStateStore:
    def __init__(
        self,
        repository: SlotRepository,
        policy: BudgetPolicy | None = None,
        clock: Callable[[], int] = now_ms,
        rng: random.Random | None = None,
        max_items: int = MAX_INVENTORY,
    ) -> None:
        self._repo = repository
        self._policy = policy or BudgetPolicy()
        self._clock = clock
        self._rng = rng or random.Random()
        self.max_items = max_items

        self.slots: list[SaveSlot] = []
        self.active_slot_id: int | None = None
        self._reset_live()

    def _reset_live(self) -> None:
        self.history: list[Turn] = []
        self.stats: dict[str, int | HitPoints] = {}
        self.inventory: list[str] = []
        self.name: str = UNSET_NAME
        self.modified: set[str] = set()
        self.scenario_type: str = "fantasy"
        self.ledger = ActionLedger(new_budget(0, self._policy), self._policy, self._clock)

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    @property
    def max_slots(self) -> int:
        return self._repo.max_slots

    @property
    def repository(self) -> SlotRepository:
        return self._repo

    def load_slots(self) -> list[SaveSlot]:
        """Read the roster and the remembered active-slot id from storage."""
        self.slots = self._repo.load_roster()
        remembered = self._repo.get_active_slot_id()
        self.active_slot_id = remembered if self.get_slot(remembered) else None
        return self.slots

    def get_slot(self, slot_id: int | None) -> SaveSlot | None:
        if slot_id is None:
            return None
        for slot in self.slots:
            if slot.id == slot_id:
                return slot
        return None

    def has_free_slot(self) -> bool:
        return len(self.slots) < self.max_slots

    @property
    def scenario(self) -> Scenario:
        return get_scenario(self.scenario_type)

    def _next_slot_id(self) -> int:
        candidate = self._clock()
        if self.slots:
            candidate = max(candidate, max(s.id for s in self.slots) + 1)
        return candidate

    def set_active_slot(self, slot_id: int | None) -> None:
        self.active_slot_id = slot_id
        self._repo.set_active_slot_id(slot_id)

    # ------------------------------------------------------------------
    # Slot lifecycle
    # ------------------------------------------------------------------

    def create_new_game(self, scenario_type: str, priming_text: str | None = None) -> GameState:
        """Roll a character, seed history with the rulebook and make it active.

        Callers check has_free_slot() first; a full roster here is a bug.
        """
        if not self.has_free_slot():
            raise SlotCapacityError(f"At most {self.max_slots} save slots are allowed")

        scenario = get_scenario(scenario_type)
        now = self._clock()
        stats = generate_stats(self._rng)
        rulebook = priming_text if priming_text is not None else scenario.rulebook
        slot = SaveSlot(
            id=self._next_slot_id(),
            stats=stats,
            history=[Turn(role="user", text=build_priming_text(rulebook, stats))],
            action_budget=new_budget(now, self._policy),
            scenario_type=scenario.type,
        )
        self.slots.append(slot)
        logger.info("Created slot %s scenario=%s", slot.id, scenario.type)

        self.set_active_slot(slot.id)
        self.load_game(slot.id)
        self.save_active_slot()
        return self.snapshot()

    def load_game(self, slot_id: int) -> GameState | None:
        """Copy a slot into the live fields, reconciling its budget."""
        slot = self.get_slot(slot_id)
        if slot is None:
            return None

        self.active_slot_id = slot.id
        self.history = copy.deepcopy(slot.history)
        self.stats = copy.deepcopy(slot.stats)
        self.inventory = list(slot.inventory)
        self.name = slot.name or UNSET_NAME
        self.modified = set(slot.modified)
        self.scenario_type = slot.scenario_type or "fantasy"
        self.ledger = ActionLedger(slot.action_budget, self._policy, self._clock)
        self.ledger.reconcile()
        return self.snapshot()

    def save_active_slot(self) -> None:
        """Write the live fields into the active slot and persist the roster."""
        slot = self.get_slot(self.active_slot_id)
        if slot is not None:
            slot.history = copy.deepcopy(self.history)
            slot.stats = copy.deepcopy(self.stats)
            slot.inventory = list(self.inventory)
            slot.name = self.name
            slot.modified = sorted(self.modified)
            slot.scenario_type = self.scenario_type
            slot.action_budget = self.ledger.budget
        self._repo.save_roster(self.slots)

    def delete_slot(self, slot_id: int) -> bool:
        if self.get_slot(slot_id) is None:
            return False
        self.slots = [s for s in self.slots if s.id != slot_id]
        if self.active_slot_id == slot_id:
            self.set_active_slot(None)
            self._reset_live()
        self._repo.save_roster(self.slots)
        logger.info("Deleted slot %s", slot_id)
        return True

    def import_slot(self, record: dict[str, Any]) -> ImportResult:
        """Restore over a slot with the same id, or add a new one if room remains."""
        if not isinstance(record, dict) or "id" not in record or "history" not in record:
            return ImportResult(accepted=False, reason="invalid")
        slot = parse_slot_record(record)
        if slot is None:
            return ImportResult(accepted=False, reason="invalid")

        for i, existing in enumerate(self.slots):
            if existing.id == slot.id:
                self.slots[i] = slot
                break
        else:
            if not self.has_free_slot():
                return ImportResult(accepted=False, reason="slot_full", slot_id=slot.id)
            self.slots.append(slot)

        if self.active_slot_id == slot.id:
            self.load_game(slot.id)
        self._repo.save_roster(self.slots)
        logger.info("Imported slot %s", slot.id)
        return ImportResult(accepted=True, slot_id=slot.id)

    def export_active_slot(self) -> dict[str, Any] | None:
        slot = self.get_slot(self.active_slot_id)
        if slot is None:
            return None
        self.save_active_slot()
        return slot.to_record()

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def add_history(self, role: Role, text: str) -> Turn:
        turn = Turn(role=role, text=text)
        self.history.append(turn)
        return turn

    def apply_narration(self, text: str) -> ParsedDirectives:
        """Record a model turn and fold its directives into the live state."""
        self.add_history("model", text)
        parsed = parse_directives(
            text, self.stats, self.inventory, self.modified, max_items=self.max_items
        )
        if parsed.name is not None:
            self.name = parsed.name
        return parsed

    def last_directives(self) -> ParsedDirectives | None:
        """Re-read the newest model turn without re-applying its effects."""
        for turn in reversed(self.history):
            if turn.role == "model":
                return preview_directives(turn.text, self.stats, self.inventory)
        return None

    # ------------------------------------------------------------------
    # Action budget
    # ------------------------------------------------------------------

    def has_actions_left(self) -> bool:
        return self.ledger.has_remaining()

    def consume_action(self) -> None:
        self.ledger.consume()

    def recover_actions(self, amount: int) -> None:
        self.ledger.grant(amount)
        self.save_active_slot()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> GameState:
        modifiers = {
            key: calculate_modifier(value)
            for key, value in self.stats.items()
            if key in self.modified and isinstance(value, int)
        }
        return GameState(
            active_slot_id=self.active_slot_id,
            name=self.name,
            stats=copy.deepcopy(self.stats),
            modifiers=modifiers,
            inventory=list(self.inventory),
            action_budget=self.ledger.budget,
            modified=sorted(self.modified),
            scenario_type=self.scenario_type,
            history=copy.deepcopy(self.history),
        )
