"""Core domain models.

Every layer (parser, store, repository, routes) operates on these types.
Pydantic validates and serialises at each data boundary. Persisted records
keep the camelCase keys of the at-rest slot schema via field aliases:

    {id, name, stats, history, inventory, actionBudget, modified, scenarioType}
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from kotodama.config import INITIAL_ACTIONS, MAX_ACTIONS, UNSET_NAME

Role = Literal["user", "model"]


class Turn(BaseModel):
    """One entry of conversation history."""

    role: Role
    text: str

    @model_validator(mode="before")
    @classmethod
    def _accept_parts_shape(cls, data: Any) -> Any:
        # Older saves store {"role": ..., "parts": [{"text": ...}]}
        if isinstance(data, dict) and "text" not in data and "parts" in data:
            parts = data.get("parts") or []
            text = "".join(
                p["text"] for p in parts
                if isinstance(p, dict) and isinstance(p.get("text"), str)
            )
            return {"role": data.get("role"), "text": text}
        return data

    def to_parts(self) -> dict[str, Any]:
        """The provider wire shape: {"role", "parts": [{"text"}]}."""
        return {"role": self.role, "parts": [{"text": self.text}]}


class HitPoints(BaseModel):
    current: int
    max: int

    @model_validator(mode="after")
    def _clamp(self) -> HitPoints:
        self.current = max(0, min(self.current, self.max))
        return self


class ActionBudget(BaseModel):
    """Per-slot rate limiter. Invariant: 0 <= current <= limit."""

    model_config = ConfigDict(populate_by_name=True)

    current: int = INITIAL_ACTIONS
    limit: int = MAX_ACTIONS
    last_recovery: int = Field(default=0, alias="lastRecovery")  # epoch ms

    @model_validator(mode="after")
    def _clamp(self) -> ActionBudget:
        self.limit = max(0, self.limit)
        self.current = max(0, min(self.current, self.limit))
        return self


class SaveSlot(BaseModel):
    """One persisted adventure."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str = UNSET_NAME
    stats: dict[str, int | HitPoints] = Field(default_factory=dict)
    history: list[Turn] = Field(default_factory=list)
    inventory: list[str] = Field(default_factory=list)
    action_budget: ActionBudget = Field(default_factory=ActionBudget, alias="actionBudget")
    modified: list[str] = Field(default_factory=list)
    scenario_type: str = Field(default="fantasy", alias="scenarioType")

    def to_record(self) -> dict[str, Any]:
        """Serialise to the at-rest schema."""
        return self.model_dump(by_alias=True, mode="json")


class ParsedDirectives(BaseModel):
    """Summary of one narration response after directive extraction."""

    narrative_text: str
    actions: list[str] = Field(default_factory=list)
    stat_changes: dict[str, str] = Field(default_factory=dict)
    scene_complete: bool = False
    name: str | None = None  # present only when a [NAME] directive matched


class ImportResult(BaseModel):
    accepted: bool
    reason: str | None = None  # "slot_full" | "invalid"
    slot_id: int | None = None


class GameState(BaseModel):
    """Read-only view of the live state of the active slot."""

    active_slot_id: int | None
    name: str
    stats: dict[str, int | HitPoints]
    modifiers: dict[str, str] = Field(default_factory=dict)
    inventory: list[str]
    action_budget: ActionBudget
    modified: list[str]
    scenario_type: str
    history: list[Turn]


TurnStatus = Literal["ok", "rejected", "error"]


class TurnResult(BaseModel):
    """Outcome of one orchestrated turn; never raised, always returned."""

    status: TurnStatus
    reason: str | None = None
    message: str = ""
    narrative_text: str = ""
    actions: list[str] = Field(default_factory=list)
    stat_changes: dict[str, str] = Field(default_factory=dict)
    scene_complete: bool = False
    state: GameState | None = None
