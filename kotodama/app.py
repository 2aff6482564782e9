import logging
from pathlib import Path

from fastapi import FastAPI

from kotodama import config
from kotodama.llm import HttpNarrator, Narrator
from kotodama.pipeline.orchestrator import TurnOrchestrator
from kotodama.routes import router
from kotodama.storage import JsonFileStore, SlotRepository
from kotodama.store import GameStateStore

logger = logging.getLogger(__name__)


def create_app(data_dir: Path | None = None, narrator: Narrator | None = None) -> FastAPI:
    resolved = data_dir or config.data_dir()
    repository = SlotRepository(JsonFileStore(resolved))
    store = GameStateStore(repository)
    store.load_slots()
    if store.active_slot_id is not None:
        store.load_game(store.active_slot_id)
    logger.info("Loaded %d save slots from %s", len(store.slots), resolved)

    narrator = narrator or HttpNarrator(**config.narrator_settings())

    app = FastAPI(title="Kotodama Protocol")
    app.state.narrator = narrator
    app.state.orchestrator = TurnOrchestrator(store, narrator)
    app.include_router(router, prefix="/api")
    return app
