"""Health check and preference endpoints."""

from fastapi import APIRouter, Depends

from kotodama import storage
from kotodama.store import GameStateStore

from .deps import get_store
from .models import UpdateSettings

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings(store: GameStateStore = Depends(get_store)):
    """Get UI preference flags."""
    return storage.get_preferences(store.repository.kv)


@router.patch("/settings")
async def update_settings(body: UpdateSettings, store: GameStateStore = Depends(get_store)):
    """Update UI preference flags (partial merge)."""
    return storage.update_preferences(store.repository.kv, body.model_dump(exclude_none=True))
