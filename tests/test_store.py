"""Tests for the live game state store and its slot lifecycle."""

import random

import pytest

from conftest import BASE_TIME
from kotodama.clock import DAY_MS, HOUR_MS
from kotodama.config import UNSET_NAME
from kotodama.models import HitPoints
from kotodama.storage import JsonFileStore, SlotRepository
from kotodama.store import GameStateStore, SlotCapacityError


# ── create_new_game ──────────────────────────────────────────


def test_new_game_is_active_and_persisted(store, repository):
    state = store.create_new_game("fantasy")
    assert store.has_actions_left() is True
    assert state.active_slot_id == BASE_TIME
    assert state.name == UNSET_NAME
    assert state.action_budget.current == 50
    assert state.action_budget.last_recovery == BASE_TIME
    assert repository.get_active_slot_id() == BASE_TIME
    assert [s.id for s in repository.load_roster()] == [BASE_TIME]


def test_new_game_history_is_priming_turn(store):
    store.create_new_game("sf")
    assert len(store.history) == 1
    priming = store.history[0]
    assert priming.role == "user"
    assert "Neo-TOKYO" in priming.text
    assert '"HP":{"current":100,"max":100}' in priming.text


def test_new_game_custom_priming_text(store):
    store.create_new_game("fantasy", priming_text="Custom rules.")
    assert store.history[0].text.startswith("Custom rules.")


def test_new_game_stats(store):
    store.create_new_game("fantasy")
    assert store.stats["HP"] == HitPoints(current=100, max=100)
    assert set(store.stats) == {"HP", "STR", "DEX", "CON", "INT", "WIS", "CHA"}


def test_slot_ids_stay_unique_within_same_ms(store):
    store.create_new_game("fantasy")
    store.create_new_game("sf")
    ids = [s.id for s in store.slots]
    assert ids == [BASE_TIME, BASE_TIME + 1]
    assert store.active_slot_id == BASE_TIME + 1


def test_roster_full_raises(store):
    for _ in range(3):
        store.create_new_game("fantasy")
    assert store.has_free_slot() is False
    with pytest.raises(SlotCapacityError):
        store.create_new_game("fantasy")
    assert len(store.slots) == 3


# ── load / save ──────────────────────────────────────────────


def test_live_fields_are_copies_until_saved(store):
    store.create_new_game("fantasy")
    slot = store.get_slot(store.active_slot_id)
    store.inventory.append("Rope")
    store.stats["HP"].current = 10
    assert slot.inventory == []
    assert slot.stats["HP"].current == 100
    store.save_active_slot()
    assert slot.inventory == ["Rope"]
    assert slot.stats["HP"].current == 10


def test_load_game_unknown_slot(store):
    assert store.load_game(12345) is None


def test_load_game_reconciles_budget(store, clock):
    store.create_new_game("fantasy")
    slot_id = store.active_slot_id
    for _ in range(40):
        store.consume_action()
    store.save_active_slot()

    clock.advance(DAY_MS)
    state = store.load_game(slot_id)
    assert state.action_budget.current == 30
    assert state.action_budget.last_recovery == clock.now


def test_reload_from_disk(store, repository, clock):
    store.create_new_game("fantasy")
    store.stats["STR"] = 10
    store.apply_narration("[NAME] Aria\n[ITEM_ADD] Torch\n[STAT] STR = 18")
    store.consume_action()
    store.save_active_slot()

    fresh = GameStateStore(SlotRepository(repository.kv), clock=clock)
    fresh.load_slots()
    assert fresh.active_slot_id == store.active_slot_id
    state = fresh.load_game(fresh.active_slot_id)
    assert state.name == "Aria"
    assert state.inventory == ["Torch"]
    assert state.stats["STR"] == 18
    assert state.modified == ["STR"]
    assert state.action_budget.current == 49
    assert [t.role for t in state.history] == ["user", "model"]


def test_load_slots_drops_dangling_active_id(store, repository):
    repository.set_active_slot_id(999)
    store.load_slots()
    assert store.active_slot_id is None


# ── delete ───────────────────────────────────────────────────


def test_delete_active_slot_clears_live_state(store, repository):
    store.create_new_game("fantasy")
    slot_id = store.active_slot_id
    assert store.delete_slot(slot_id) is True
    assert store.active_slot_id is None
    assert store.history == []
    assert repository.get_active_slot_id() is None
    assert repository.load_roster() == []


def test_delete_other_slot_keeps_active(store, clock):
    store.create_new_game("fantasy")
    first = store.active_slot_id
    clock.advance(1)
    store.create_new_game("sf")
    second = store.active_slot_id
    assert store.delete_slot(first) is True
    assert store.active_slot_id == second
    assert len(store.history) == 1


def test_delete_unknown_slot(store):
    assert store.delete_slot(1) is False


# ── import / export ──────────────────────────────────────────


def test_export_then_import_into_fresh_store(store, tmp_path, clock):
    store.create_new_game("guildKURAGE")
    store.apply_narration("[ITEM_ADD] Guild badge")
    record = store.export_active_slot()
    assert record["scenarioType"] == "guildKURAGE"
    assert record["inventory"] == ["Guild badge"]

    other = GameStateStore(SlotRepository(JsonFileStore(tmp_path / "other")), clock=clock)
    result = other.import_slot(record)
    assert result.accepted is True
    assert result.slot_id == record["id"]
    assert other.get_slot(record["id"]).inventory == ["Guild badge"]


def test_import_overwrites_same_id_even_when_full(store):
    for _ in range(3):
        store.create_new_game("fantasy")
    record = store.slots[0].to_record()
    record["name"] = "Restored"
    result = store.import_slot(record)
    assert result.accepted is True
    assert store.slots[0].name == "Restored"
    assert len(store.slots) == 3


def test_import_new_id_rejected_when_full(store):
    for _ in range(3):
        store.create_new_game("fantasy")
    result = store.import_slot({"id": 1, "history": []})
    assert result.accepted is False
    assert result.reason == "slot_full"
    assert len(store.slots) == 3


@pytest.mark.parametrize(
    "record",
    [{"history": []}, {"id": 1}, {"id": "abc", "history": []}, ["not", "a", "dict"]],
)
def test_import_invalid_records(store, record):
    result = store.import_slot(record)
    assert result.accepted is False
    assert result.reason == "invalid"


def test_import_over_active_slot_reloads_live_state(store):
    store.create_new_game("fantasy")
    record = store.export_active_slot()
    record["inventory"] = ["Imported"]
    store.import_slot(record)
    assert store.inventory == ["Imported"]


def test_import_legacy_record(store):
    legacy = {
        "id": 42,
        "name": "Old save",
        "stats": {"HP": {"current": 70, "max": 100}, "STR": 11},
        "history": [{"role": "user", "parts": [{"text": "start"}]}],
        "inventory": [],
        "actions": {"date": "Wed Jan 10 2024", "count": 12},
    }
    assert store.import_slot(legacy).accepted is True
    slot = store.get_slot(42)
    assert slot.action_budget.current == 12
    assert slot.history[0].text == "start"


def test_export_without_active_slot(store):
    assert store.export_active_slot() is None


# ── Turns / budget ───────────────────────────────────────────


def test_apply_narration_sets_name_and_records_turn(store):
    store.create_new_game("fantasy")
    parsed = store.apply_narration("[NAME] Aria\nWelcome.")
    assert parsed.narrative_text == "Welcome."
    assert store.name == "Aria"
    assert store.history[-1].role == "model"
    assert store.history[-1].text == "[NAME] Aria\nWelcome."


def test_last_directives_does_not_reapply(store):
    store.create_new_game("fantasy")
    store.apply_narration("Ouch.\n[DAMAGE] 10\n[ACTION] Run")
    assert store.stats["HP"].current == 90
    parsed = store.last_directives()
    assert parsed.actions == ["Run"]
    assert store.stats["HP"].current == 90


def test_last_directives_without_model_turn(store):
    store.create_new_game("fantasy")
    assert store.last_directives() is None


def test_recover_actions_capped_and_saved(store, repository):
    store.create_new_game("fantasy")
    for _ in range(3):
        store.consume_action()
    store.recover_actions(5)
    assert store.ledger.budget.current == 50
    assert repository.load_roster()[0].action_budget.current == 50


def test_has_actions_left_after_exhaustion_and_dawn(store, clock):
    store.create_new_game("fantasy")
    for _ in range(50):
        store.consume_action()
    assert store.has_actions_left() is False
    clock.advance(17 * HOUR_MS)  # 05:00 JST next day
    assert store.has_actions_left() is True
    assert store.ledger.budget.current == 20


# ── snapshot ─────────────────────────────────────────────────


def test_snapshot_modifiers_only_for_modified_stats(store):
    store.create_new_game("fantasy")
    store.stats.update(STR=10, DEX=12)
    store.apply_narration("[STAT] STR +4\n[STAT] DEX -2")
    state = store.snapshot()
    assert state.modifiers == {"STR": "+2", "DEX": ""}


def test_snapshot_is_detached(store):
    store.create_new_game("fantasy")
    state = store.snapshot()
    state.inventory.append("x")
    state.history.clear()
    assert store.inventory == []
    assert len(store.history) == 1


def test_seeded_rng_reproducible(repository, clock):
    a = GameStateStore(repository, clock=clock, rng=random.Random(5))
    a.create_new_game("fantasy")
    b = GameStateStore(repository, clock=clock, rng=random.Random(5))
    b.create_new_game("fantasy")
    assert a.stats == b.stats


def test_import_null_text_part_is_handled(store):
    result = store.import_slot({"id": 5, "history": [{"role": "user", "parts": [{"text": None}]}]})
    assert result.accepted is True
    assert store.get_slot(5).history[0].text == ""


def test_unknown_scenario_stored_as_fallback(store, repository):
    state = store.create_new_game("garbage")
    assert state.scenario_type == "fantasy"
    assert repository.load_roster()[0].scenario_type == "fantasy"
