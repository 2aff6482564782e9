"""Selectable scenarios: rulebooks, budget-exhausted copy, transcript keywords.

The `type` tags are persisted in every save and must not be renamed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DIRECTIVE_RULES = """\
## Output rules
Write the story in the second person. After the prose, emit game directives,
each on its own line, using exactly this vocabulary:
[NAME] <name>                 when the player tells you their name
[STAT] <KEY> <+|-|=> <N>      to change STR, DEX, CON, INT, WIS or CHA
[DAMAGE] <N>                  when the player is hurt
[HEAL] <N>                    when the player recovers
[ITEM_ADD] <item>             when the player obtains an item (they carry at most 5)
[ITEM_REMOVE] <item>          when an item is used up or lost
[ACTION] <command>            two to four suggested next commands
[SCENE_COMPLETE]              only when the scenario reaches its ending
Never explain the directives to the player.\
"""


@dataclass(frozen=True)
class Scenario:
    type: str
    title: str
    description: str
    setting: str
    exhaustion_message: str
    consumes_actions: bool = True
    keywords: tuple[str, ...] = field(default_factory=tuple)

    @property
    def rulebook(self) -> str:
        return f"{self.setting}\n\n{DIRECTIVE_RULES}"


FANTASY = Scenario(
    type="fantasy",
    title="A World of Sword and Sorcery",
    description="Search a cursed forest for the Core of your lost memories. Classic fantasy.",
    setting=(
        "You are the game master of a text adventure. The player wakes beside a "
        "moss-covered monolith in a cursed forest with no memory of who they are. "
        "Their goal is to recover the Core that holds their memories. Begin by "
        "asking the player for their name."
    ),
    exhaustion_message=(
        "The curse over the night forest gnaws at your reason... Going further is "
        "too dangerous. Hide and rest your mind for now. Your path will open again "
        "with the dawn (4:00 AM), when the curse weakens."
    ),
)

SCI_FI = Scenario(
    type="sf",
    title="A Future Run by AI",
    description="Search a vast cyber city for the Medium that holds your lost memories.",
    setting=(
        "You are the game master of a text adventure set in Neo-TOKYO, a megacity "
        "administered by an AI called the Matrix. The player is a courier who has "
        "lost the Medium storing their memories. Begin by asking for the player's "
        "callsign."
    ),
    exhaustion_message=(
        "WARNING: Mental load has reached critical levels. Further connection to "
        "the Matrix will cause a psychological collapse. Network re-access will be "
        "permitted after daily system maintenance (4:00 AM) completes."
    ),
    keywords=("Neo-TOKYO", "callsign", "Matrix", "Medium",
              "ネオ・TOKYO", "コールサイン", "マトリクス", "媒体"),
)

GUILD = Scenario(
    type="guildKURAGE",
    title="Take a Request at the Guild",
    description="Something new has been pinned to the guild's request board today.",
    setting=(
        "You are the game master of a text adventure. The player is a newly "
        "registered adventurer standing before the request board of a bustling "
        "guild hall. Offer them a handful of requests to choose from."
    ),
    exhaustion_message=(
        "The sun is setting and guild hours are over for today. Activities resume "
        "tomorrow morning (4:00 AM)."
    ),
)

TRIAL = Scenario(
    type="testS",
    title="Quick Play",
    description="A wolf is trapped in the forest. What will you do? A short taste of the game.",
    setting=(
        "You are the game master of a very short text adventure. The player finds "
        "a wolf caught in a hunter's trap in the forest. Resolve the encounter in a "
        "few turns, then end the scenario."
    ),
    exhaustion_message="Thanks for trying the game! Return to the scenario selection to play more.",
    consumes_actions=False,
)

SCENARIOS: dict[str, Scenario] = {s.type: s for s in (TRIAL, GUILD, FANTASY, SCI_FI)}
DEFAULT_SCENARIO = FANTASY


def get_scenario(scenario_type: str | None) -> Scenario:
    """Look up a scenario; unknown or missing tags fall back to fantasy."""
    return SCENARIOS.get(scenario_type or "", DEFAULT_SCENARIO)


def detect_scenario(text: str) -> Scenario:
    """Guess which scenario produced a plain-text transcript."""
    for scenario in SCENARIOS.values():
        if scenario.keywords and any(k in text for k in scenario.keywords):
            return scenario
    return DEFAULT_SCENARIO
