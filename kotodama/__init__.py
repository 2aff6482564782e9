"""Kotodama Protocol — an LLM-narrated text adventure.

The narrator's replies carry bracket directives ([STAT], [ITEM_ADD], ...)
that the game folds into the player's save slot; a daily action budget
limits how many commands a slot may send.
"""

__version__ = "0.1.0"
