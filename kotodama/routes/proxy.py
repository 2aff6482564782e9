"""Narration proxy: forwards a conversation to the provider with the server-side key.

Request:  {"history": [{"role": "user"|"model", "parts": [{"text": ...}]}, ...]}
Response: {"candidates": [{"content": {"parts": [{"text": ...}]}}]}
Errors:   {"error": {"message": ...}}  (400 malformed request, 502 provider failure)
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter, ValidationError

from kotodama.llm import LLMError, Narrator
from kotodama.models import Turn

from .deps import get_narrator
from .models import NarrationRequest

logger = logging.getLogger(__name__)

router = APIRouter()

_history_adapter = TypeAdapter(list[Turn])


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": {"message": message}})


@router.post("/callai")
async def call_ai(body: NarrationRequest, narrator: Narrator = Depends(get_narrator)):
    """Generate the next narration for a conversation history."""
    if not isinstance(body.history, list) or not body.history:
        return _error(400, "The conversation history sent by the client is empty or invalid.")
    try:
        history = _history_adapter.validate_python(body.history)
    except ValidationError:
        return _error(400, "The conversation history sent by the client is empty or invalid.")

    try:
        text = await narrator(history)
    except LLMError as e:
        logger.warning("Proxy narration failed: %s", e)
        return _error(502, str(e))

    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}
