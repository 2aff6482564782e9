"""Pydantic request bodies for API endpoints."""

from typing import Any

from pydantic import BaseModel


class NewGameBody(BaseModel):
    scenario_type: str = "fantasy"


class CommandBody(BaseModel):
    command: str


class RecoverBody(BaseModel):
    amount: int | None = None


class TranscriptBody(BaseModel):
    text: str


class NarrationRequest(BaseModel):
    history: Any = None


class UpdateSettings(BaseModel):
    hints_visible: bool | None = None
