"""Directive extraction from narrator output.

The narrator mixes bracket-tagged directives into free prose:

  [SCENE_COMPLETE]                  scene reached a designed stopping point
  [NAME] <name>                     player name (first non-empty match wins)
  [STAT] <KEY> <+|-|=|''> <N>       adjust or set an existing integer stat
  [DAMAGE] <N>                      HP.current -= N, floored at 0
  [HEAL] <N>                        HP.current += N, capped at HP.max
  [ITEM_ADD] <label>                append unless the inventory is full
  [ITEM_REMOVE] <label>             drop every exactly-matching entry
  [ACTION] <command>                suggested next command (one per line)

Extractors run in that order, each scanning the text the previous one left
behind and returning (matches, remaining_text). No pattern spans a newline,
so line positions survive every removal; lines that held only directives are
dropped from the narrative, prose blank lines are kept.

Parsing never fails. Unknown or malformed tags are left in the prose.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from kotodama.config import MAX_INVENTORY
from kotodama.models import HitPoints, ParsedDirectives

SCENE_COMPLETE_TOKENS = ("[SCENE_COMPLETE]", "[SHOW_AD_BUTTON]")
ACTION_PREFIX = "[ACTION]"

_SCENE_RE = re.compile("|".join(re.escape(t) for t in SCENE_COMPLETE_TOKENS))
_NAME_RE = re.compile(r"\[NAME\][ \t]*(.*)")
_STAT_RE = re.compile(r"\[STAT\][ \t]*(\w+)[ \t]*([+\-=]?)[ \t]*(\d+)")
_DAMAGE_RE = re.compile(r"\[DAMAGE\][ \t]*(\d+)")
_HEAL_RE = re.compile(r"\[HEAL\][ \t]*(\d+)")
_ITEM_ADD_RE = re.compile(r"\[ITEM_ADD\][ \t]*(.*)")
_ITEM_REMOVE_RE = re.compile(r"\[ITEM_REMOVE\][ \t]*(.*)")


@dataclass
class _TurnEffects:
    """Mutable targets plus the summary being built for one response."""

    stats: dict[str, int | HitPoints]
    inventory: list[str]
    modified: set[str]
    max_items: int
    baseline: dict[str, int] = field(default_factory=dict)
    name: str | None = None
    scene_complete: bool = False


def _scan(pattern: re.Pattern[str], text: str) -> tuple[list[re.Match[str]], str]:
    return list(pattern.finditer(text)), pattern.sub("", text)


def _is_int_stat(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ── Extractors ───────────────────────────────────────────


def _extract_scene_marker(text: str, fx: _TurnEffects) -> str:
    matches, text = _scan(_SCENE_RE, text)
    if matches:
        fx.scene_complete = True
    return text


def _extract_name(text: str, fx: _TurnEffects) -> str:
    matches, text = _scan(_NAME_RE, text)
    for match in matches:
        name = match.group(1).strip()
        if name:
            fx.name = name
            break
    return text


def _extract_stats(text: str, fx: _TurnEffects) -> str:
    matches, text = _scan(_STAT_RE, text)
    for match in matches:
        key, operator, raw = match.groups()
        old = fx.stats.get(key)
        if not _is_int_stat(old):
            continue  # stat namespace is fixed at character creation
        value = int(raw)
        fx.baseline.setdefault(key, old)
        if operator == "+":
            fx.stats[key] = old + value
        elif operator == "-":
            fx.stats[key] = old - value
        else:
            fx.stats[key] = value
    return text


def _extract_damage(text: str, fx: _TurnEffects) -> str:
    matches, text = _scan(_DAMAGE_RE, text)
    hp = fx.stats.get("HP")
    if isinstance(hp, HitPoints):
        for match in matches:
            hp.current = max(0, hp.current - int(match.group(1)))
    return text


def _extract_heal(text: str, fx: _TurnEffects) -> str:
    matches, text = _scan(_HEAL_RE, text)
    hp = fx.stats.get("HP")
    if isinstance(hp, HitPoints):
        for match in matches:
            hp.current = min(hp.max, hp.current + int(match.group(1)))
    return text


def _extract_item_add(text: str, fx: _TurnEffects) -> str:
    matches, text = _scan(_ITEM_ADD_RE, text)
    for match in matches:
        item = match.group(1).strip()
        if item and len(fx.inventory) < fx.max_items:
            fx.inventory.append(item)
    return text


def _extract_item_remove(text: str, fx: _TurnEffects) -> str:
    matches, text = _scan(_ITEM_REMOVE_RE, text)
    for match in matches:
        item = match.group(1).strip()
        if item in fx.inventory:
            fx.inventory[:] = [i for i in fx.inventory if i != item]
    return text


Extractor = Callable[[str, _TurnEffects], str]

EXTRACTORS: tuple[Extractor, ...] = (
    _extract_scene_marker,
    _extract_name,
    _extract_stats,
    _extract_damage,
    _extract_heal,
    _extract_item_add,
    _extract_item_remove,
)


# ── Public API ───────────────────────────────────────────


def _split_actions(original: str, remaining: str) -> tuple[list[str], str]:
    """Pull [ACTION] lines out and drop lines emptied by directive removal."""
    actions: list[str] = []
    kept: list[str] = []
    for before, after in zip(original.split("\n"), remaining.split("\n")):
        stripped = after.strip()
        if stripped.startswith(ACTION_PREFIX):
            action = stripped[len(ACTION_PREFIX):].strip()
            if action:
                actions.append(action)
            continue
        if not stripped and before.strip():
            continue
        kept.append(after)
    return actions, "\n".join(kept).strip()


def parse_directives(
    raw_text: str,
    stats: dict[str, int | HitPoints],
    inventory: list[str],
    modified: set[str] | None = None,
    *,
    max_items: int = MAX_INVENTORY,
) -> ParsedDirectives:
    """Apply every directive in `raw_text` to `stats`/`inventory` in place.

    `modified` collects the keys of stats whose net change this turn is
    nonzero. The player name is reported, not applied: the caller owns it.
    """
    fx = _TurnEffects(
        stats=stats,
        inventory=inventory,
        modified=modified if modified is not None else set(),
        max_items=max_items,
    )
    text = raw_text or ""
    for extract in EXTRACTORS:
        text = extract(text, fx)

    stat_changes: dict[str, str] = {}
    for key, before in fx.baseline.items():
        diff = fx.stats[key] - before
        if diff != 0:
            stat_changes[key] = f"+{diff}" if diff > 0 else str(diff)
            fx.modified.add(key)

    actions, narrative = _split_actions(raw_text or "", text)
    return ParsedDirectives(
        narrative_text=narrative,
        actions=actions,
        stat_changes=stat_changes,
        scene_complete=fx.scene_complete,
        name=fx.name,
    )


def preview_directives(
    raw_text: str, stats: dict[str, int | HitPoints], inventory: list[str]
) -> ParsedDirectives:
    """Parse against throwaway copies; live state is left untouched."""
    return parse_directives(raw_text, copy.deepcopy(stats), list(inventory))
