import random
from datetime import datetime, timezone

import pytest

from kotodama.clock import to_ms
from kotodama.models import Turn
from kotodama.storage import JsonFileStore, SlotRepository
from kotodama.store import GameStateStore

# 2024-01-10 12:00 JST, eight hours after that day's 04:00 reset
BASE_TIME = to_ms(datetime(2024, 1, 10, 3, 0, tzinfo=timezone.utc))


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = BASE_TIME) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class StubNarrator:
    """Narrator double: returns canned responses in order and records each history."""

    def __init__(self, responses=None, error: Exception | None = None) -> None:
        self.responses = list(responses or [])
        self.error = error
        self.calls: list[list[Turn]] = []

    async def __call__(self, history: list[Turn]) -> str:
        self.calls.append(list(history))
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return "Nothing happens."


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv(tmp_path):
    """Fresh file store per test under tmp_path."""
    return JsonFileStore(tmp_path / "data")


@pytest.fixture
def repository(kv):
    return SlotRepository(kv)


@pytest.fixture
def store(repository, clock):
    return GameStateStore(repository, clock=clock, rng=random.Random(7))
