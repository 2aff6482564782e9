"""Turn orchestrator — drives one player command end-to-end.

Turn flow:
  1. Gate: an active slot, a non-blank command, no turn already in flight,
     and (unless the scenario is exempt) an action left after reconciling.
  2. Consume one action, append the command as a user turn, persist.
  3. Call the narrator with the full history. This is the only suspend point;
     commands arriving meanwhile are rejected with reason "busy".
  4. Append the response as a model turn, apply its directives, persist.

Failures never raise out of this module. Every call returns a TurnResult
whose status is "ok", "rejected" (the turn never started) or "error" (the
narration failed; the committed user turn stays in history and a retry is a
new command).
"""

from __future__ import annotations

import logging

from kotodama.config import REWARD_RECOVERY
from kotodama.llm import LLMError, Narrator
from kotodama.models import TurnResult
from kotodama.store import GameStateStore

logger = logging.getLogger(__name__)


class TurnOrchestrator:
    def __init__(self, store: GameStateStore, narrator: Narrator) -> None:
        self.store = store
        self.narrator = narrator
        self._in_flight = False

    @property
    def busy(self) -> bool:
        return self._in_flight

    def _rejected(self, reason: str, message: str) -> TurnResult:
        return TurnResult(status="rejected", reason=reason, message=message,
                          state=self.store.snapshot())

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def submit_command(self, command: str) -> TurnResult:
        """Handle one player command and narrate the outcome."""
        store = self.store
        if store.active_slot_id is None:
            return self._rejected(
                "no_active_slot", "Start a new adventure or load a save first."
            )
        command = (command or "").strip()
        if not command:
            return self._rejected("empty_command", "Type a command first.")
        if self._in_flight:
            return self._rejected("busy", "The narrator is still answering.")

        scenario = store.scenario
        if scenario.consumes_actions:
            if not store.has_actions_left():
                return self._rejected("out_of_actions", scenario.exhaustion_message)
            store.consume_action()

        store.add_history("user", command)
        store.save_active_slot()
        return await self.run_turn()

    async def start_new_game(self, scenario_type: str) -> TurnResult:
        store = self.store
        if self._in_flight:
            return self._rejected("busy", "The narrator is still answering.")
        if not store.has_free_slot():
            return self._rejected(
                "slot_full", f"You can keep at most {store.max_slots} save slots."
            )
        store.create_new_game(scenario_type)
        return await self.run_turn()

    async def resume(self, slot_id: int) -> TurnResult:
        """Load a slot and pick up where it was left."""
        store = self.store
        if self._in_flight:
            return self._rejected("busy", "The narrator is still answering.")
        if store.load_game(slot_id) is None:
            return TurnResult(status="rejected", reason="not_found",
                              message="That save slot does not exist.")
        store.set_active_slot(slot_id)

        last = store.history[-1] if store.history else None
        if last is not None and last.role == "user":
            return await self.run_turn()

        result = TurnResult(status="ok", state=store.snapshot())
        parsed = store.last_directives()
        if parsed is not None:
            result.narrative_text = parsed.narrative_text
            result.actions = parsed.actions
            result.scene_complete = parsed.scene_complete
        return result

    def recover_actions(self, amount: int = REWARD_RECOVERY) -> TurnResult:
        """Grant reward-driven recovery to the active slot."""
        if self.store.active_slot_id is None:
            return self._rejected(
                "no_active_slot", "Start a new adventure or load a save first."
            )
        self.store.recover_actions(amount)
        return TurnResult(
            status="ok",
            message=f"[System] {amount} actions have been restored.",
            state=self.store.snapshot(),
        )

    # ------------------------------------------------------------------
    # Narration
    # ------------------------------------------------------------------

    async def run_turn(self) -> TurnResult:
        """Narrate the pending user turn of the active slot."""
        store = self.store
        history = store.history
        if not history or history[-1].role != "user":
            logger.error("Refusing narration: history is empty or does not end with a user turn")
            return TurnResult(
                status="error", reason="invalid_history",
                message="An error occurred: there is no conversation history to send.",
                state=store.snapshot(),
            )

        self._in_flight = True
        try:
            text = await self.narrator(list(history))
        except LLMError as e:
            logger.warning("Narration failed for slot %s: %s", store.active_slot_id, e)
            return TurnResult(
                status="error", reason="narration_failed",
                message=f"An error occurred: {e}",
                state=store.snapshot(),
            )
        finally:
            self._in_flight = False

        parsed = store.apply_narration(text)
        store.save_active_slot()
        return TurnResult(
            status="ok",
            narrative_text=parsed.narrative_text,
            actions=parsed.actions,
            stat_changes=parsed.stat_changes,
            scene_complete=parsed.scene_complete,
            state=store.snapshot(),
        )
