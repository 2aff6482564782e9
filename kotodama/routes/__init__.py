"""FastAPI API endpoints under /api.

Endpoint groups: slots (list, new game, load, delete, import, export),
play (state, log, command, action recovery), settings (health, preference
flags) and the narration proxy (callai).
"""

from fastapi import APIRouter

from .play import router as play_router
from .proxy import router as proxy_router
from .settings import router as settings_router
from .slots import router as slots_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(slots_router)
router.include_router(play_router)
router.include_router(proxy_router)
