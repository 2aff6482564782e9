"""Narration turn pipeline.

  directives    — parse narrator output into state mutations, actions and
                  the player-facing narrative
  orchestrator  — single-flight turn driver (command -> narration -> state)

Narrator output format (parsed by parse_directives):
  Narrative prose, interleaved with bracket directives such as
  [STAT] STR +1, [ITEM_ADD] Rope and [ACTION] Climb the wall.
"""

from .directives import (  # noqa: F401
    EXTRACTORS,
    parse_directives,
    preview_directives,
)
