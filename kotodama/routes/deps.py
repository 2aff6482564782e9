"""Accessors for the per-app game objects stored on app.state."""

from fastapi import Request

from kotodama.llm import Narrator
from kotodama.pipeline.orchestrator import TurnOrchestrator
from kotodama.store import GameStateStore


def get_orchestrator(request: Request) -> TurnOrchestrator:
    return request.app.state.orchestrator


def get_store(request: Request) -> GameStateStore:
    return request.app.state.orchestrator.store


def get_narrator(request: Request) -> Narrator:
    return request.app.state.narrator
