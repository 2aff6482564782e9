"""Plain-text adventure logs: rebuild, export, and import as a new slot.

Text format, one entry per line:

    > look around          player command
    The forest is dark.    narration
"""

from __future__ import annotations

import random
import re
from datetime import datetime, timezone
from typing import Any

from kotodama.clock import now_ms
from kotodama.config import INITIAL_ACTIONS, MAX_ACTIONS, UNSET_NAME
from kotodama.models import Turn
from kotodama.pipeline.directives import preview_directives
from kotodama.prompts import build_priming_text
from kotodama.scenarios import detect_scenario
from kotodama.stats import generate_stats

COMMAND_PREFIX = "> "

_NAME_DIRECTIVE_RE = re.compile(r"\[NAME\][ \t]*(\S.*)")
_QUOTED_NAME_RE = re.compile(r"「(.+?)」")
NAME_CUES = ("良い名だ", "登録完了", "A fine name", "Registration complete")


def build_log(history: list[Turn]) -> list[dict[str, str]]:
    """Player-facing log entries; the priming turn is never shown."""
    entries: list[dict[str, str]] = []
    for turn in history[1:]:
        if turn.role == "user":
            entries.append({"role": "user", "text": f"{COMMAND_PREFIX}{turn.text}"})
        else:
            narrative = preview_directives(turn.text, {}, []).narrative_text
            entries.append({"role": "model", "text": narrative})
    return entries


def export_transcript(history: list[Turn], name: str = UNSET_NAME) -> str:
    lines: list[str] = []
    if name and name != UNSET_NAME:
        lines.append(f"[NAME] {name}")
    for entry in build_log(history):
        if entry["text"]:
            lines.append(entry["text"])
    return "\n".join(lines) + "\n"


def _extract_name(lines: list[str]) -> str | None:
    for line in lines:
        match = _NAME_DIRECTIVE_RE.search(line)
        if match:
            return match.group(1).strip()
    for line in lines:
        if any(cue in line for cue in NAME_CUES):
            match = _QUOTED_NAME_RE.search(line)
            if match:
                return f"{match.group(1)}_txt"
    return None


def slot_from_transcript(
    text: str, now: int | None = None, rng: random.Random | None = None
) -> dict[str, Any]:
    """Build a slot record from a pasted log.

    The record uses the legacy `actions` budget shape and goes through the
    same upgrade path as any other imported save.
    """
    now = now_ms() if now is None else now
    lines = text.splitlines()
    scenario = detect_scenario(text)
    stats = generate_stats(rng)

    history: list[Turn] = [Turn(role="user", text=build_priming_text(scenario.rulebook, stats))]
    for line in lines:
        if line.startswith(COMMAND_PREFIX):
            history.append(Turn(role="user", text=line[len(COMMAND_PREFIX):]))
        elif line.strip():
            if history[-1].role == "model":
                history[-1].text += "\n" + line
            else:
                history.append(Turn(role="model", text=line))

    name = _extract_name(lines)
    if name is None:
        stamp = datetime.fromtimestamp(now / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
        name = f"(from TXT) {stamp}"

    return {
        "id": now,
        "name": name,
        "stats": {k: v if isinstance(v, int) else v.model_dump() for k, v in stats.items()},
        "history": [t.model_dump() for t in history],
        "inventory": [],
        "actions": {"lastUpdateTimestamp": now, "current": INITIAL_ACTIONS, "limit": MAX_ACTIONS},
        "modified": [],
        "scenarioType": scenario.type,
    }
