"""Play endpoints: live state, rebuilt log, commands and action recovery."""

from fastapi import APIRouter, Depends

from kotodama.pipeline.orchestrator import TurnOrchestrator
from kotodama.storage import build_log
from kotodama.store import GameStateStore

from .deps import get_orchestrator, get_store
from .models import CommandBody, RecoverBody

router = APIRouter()


@router.get("/state")
async def get_state(store: GameStateStore = Depends(get_store)):
    """Live state of the active slot."""
    return store.snapshot()


@router.get("/log")
async def get_log(store: GameStateStore = Depends(get_store)):
    """Narrative log of the active slot, directives stripped."""
    return build_log(store.history)


@router.post("/command")
async def send_command(body: CommandBody, orchestrator: TurnOrchestrator = Depends(get_orchestrator)):
    """Send a player command and narrate the outcome."""
    return await orchestrator.submit_command(body.command)


@router.post("/actions/recover")
async def recover_actions(body: RecoverBody, orchestrator: TurnOrchestrator = Depends(get_orchestrator)):
    """Grant reward-driven action recovery to the active slot."""
    if body.amount is None:
        return orchestrator.recover_actions()
    return orchestrator.recover_actions(body.amount)
