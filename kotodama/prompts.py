"""Handlebars rendering for the opening (priming) turn of a new game."""

import json
from collections.abc import Callable
from typing import Any

import pybars

from kotodama.models import HitPoints

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}

# Triple-stash: the rulebook and the stats literal must not be HTML-escaped.
PRIMING_TEMPLATE = """\
{{{rulebook}}}

Your ability scores are {{{stats_json}}}. Taking these into account, act as \
the game master and begin the game, following the rules strictly.\
"""


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def stats_literal(stats: dict[str, int | HitPoints]) -> str:
    """Compact JSON description of a character sheet, e.g. {"HP":{"current":100,...},"STR":12}."""
    plain = {
        key: value.model_dump() if isinstance(value, HitPoints) else value
        for key, value in stats.items()
    }
    return json.dumps(plain, separators=(",", ":"), ensure_ascii=False)


def build_priming_text(
    rulebook: str,
    stats: dict[str, int | HitPoints],
    template: str = PRIMING_TEMPLATE,
) -> str:
    return render_prompt(template, {"rulebook": rulebook, "stats_json": stats_literal(stats)})
