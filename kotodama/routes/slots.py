"""Save-slot endpoints: list, new game, load, delete, import and export."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from kotodama.pipeline.orchestrator import TurnOrchestrator
from kotodama.scenarios import SCENARIOS
from kotodama.storage import export_transcript, slot_from_transcript
from kotodama.store import GameStateStore

from .deps import get_orchestrator, get_store
from .models import NewGameBody, TranscriptBody

router = APIRouter()


@router.get("/scenarios")
async def list_scenarios():
    """Scenarios a new game can start from."""
    return [
        {"type": s.type, "title": s.title, "description": s.description}
        for s in SCENARIOS.values()
    ]


@router.get("/slots")
async def list_slots(store: GameStateStore = Depends(get_store)):
    """List save slots with the slot ceiling and current selection."""
    return {
        "slots": [
            {"id": s.id, "name": s.name, "scenarioType": s.scenario_type}
            for s in store.slots
        ],
        "max_slots": store.max_slots,
        "active_slot_id": store.active_slot_id,
    }


@router.post("/slots")
async def new_game(body: NewGameBody, orchestrator: TurnOrchestrator = Depends(get_orchestrator)):
    """Start a new adventure and narrate its opening."""
    return await orchestrator.start_new_game(body.scenario_type)


@router.post("/slots/import")
async def import_slot(record: dict, store: GameStateStore = Depends(get_store)):
    """Import an exported slot record (restores over a slot with the same id)."""
    return store.import_slot(record)


@router.post("/slots/import-transcript")
async def import_transcript(body: TranscriptBody, store: GameStateStore = Depends(get_store)):
    """Create a slot from a plain-text adventure log."""
    return store.import_slot(slot_from_transcript(body.text))


@router.get("/slots/active/export")
async def export_active(store: GameStateStore = Depends(get_store)):
    """Full record of the active slot, in the at-rest schema."""
    record = store.export_active_slot()
    if record is None:
        raise HTTPException(404, "No active slot")
    return record


@router.get("/slots/active/transcript", response_class=PlainTextResponse)
async def active_transcript(store: GameStateStore = Depends(get_store)):
    """Plain-text log of the active slot."""
    if store.active_slot_id is None:
        raise HTTPException(404, "No active slot")
    return export_transcript(store.history, store.name)


@router.post("/slots/{slot_id}/load")
async def load_slot(slot_id: int, orchestrator: TurnOrchestrator = Depends(get_orchestrator)):
    """Load a slot and resume it."""
    result = await orchestrator.resume(slot_id)
    if result.reason == "not_found":
        raise HTTPException(404, "Slot not found")
    return result


@router.delete("/slots/{slot_id}")
async def delete_slot(slot_id: int, store: GameStateStore = Depends(get_store)):
    """Delete a slot."""
    if not store.delete_slot(slot_id):
        raise HTTPException(404, "Slot not found")
    return {"ok": True}
