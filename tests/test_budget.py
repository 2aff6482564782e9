"""Tests for the daily action budget."""

from datetime import datetime, timezone

import pytest

from conftest import BASE_TIME, FakeClock
from kotodama.budget import (
    ActionLedger,
    BudgetPolicy,
    consume_action,
    grant_actions,
    new_budget,
    reconcile_budget,
)
from kotodama.clock import DAY_MS, HOUR_MS, last_reset_boundary, to_ms
from kotodama.models import ActionBudget

BOUNDARY = last_reset_boundary(BASE_TIME)  # 2024-01-10 04:00 JST


def _budget(current: int, last_recovery: int, limit: int = 50) -> ActionBudget:
    return ActionBudget(current=current, limit=limit, last_recovery=last_recovery)


# ── reconcile_budget ─────────────────────────────────────────


def test_same_window_grants_nothing():
    result = reconcile_budget(_budget(10, BASE_TIME), BASE_TIME + 2 * HOUR_MS)
    assert result.current == 10
    assert result.last_recovery == BASE_TIME + 2 * HOUR_MS


def test_one_boundary_grants_daily_recovery():
    result = reconcile_budget(_budget(10, BASE_TIME), BOUNDARY + DAY_MS + 60_000)
    assert result.current == 30


def test_recovery_capped_at_limit():
    result = reconcile_budget(_budget(45, BASE_TIME), BOUNDARY + DAY_MS)
    assert result.current == 50


@pytest.mark.parametrize("days,expected", [(1, 20), (2, 40), (3, 50), (10, 50)])
def test_k_boundaries_from_empty(days, expected):
    result = reconcile_budget(_budget(0, BOUNDARY), BOUNDARY + days * DAY_MS)
    assert result.current == expected


def test_short_gap_across_boundary_counts_a_day():
    # 03:00 JST -> 05:00 JST next morning: two hours, one reset
    last = BOUNDARY + 23 * HOUR_MS
    result = reconcile_budget(_budget(0, last), last + 2 * HOUR_MS)
    assert result.current == 20


def test_long_gap_inside_window_counts_nothing():
    # 04:30 JST -> 03:30 JST next day: 23 hours, no reset
    last = BOUNDARY + HOUR_MS // 2
    result = reconcile_budget(_budget(0, last), last + 23 * HOUR_MS)
    assert result.current == 0


def test_idempotent_within_window():
    stale = _budget(5, BASE_TIME - 3 * DAY_MS)
    first = reconcile_budget(stale, BASE_TIME)
    second = reconcile_budget(first, BASE_TIME + 6 * HOUR_MS)
    assert first.current == 50
    assert second.current == first.current
    assert second.last_recovery == BASE_TIME + 6 * HOUR_MS


def test_idempotent_partial_stock():
    stale = _budget(0, BASE_TIME - DAY_MS)
    first = reconcile_budget(stale, BASE_TIME)
    second = reconcile_budget(first, BASE_TIME + HOUR_MS)
    assert first.current == second.current == 20


def test_clock_moving_backwards_grants_nothing():
    result = reconcile_budget(_budget(3, BASE_TIME), BASE_TIME - 2 * DAY_MS)
    assert result.current == 3


def test_legacy_zero_anchor_fills_budget():
    result = reconcile_budget(_budget(0, 0), BASE_TIME)
    assert result.current == 50


def test_reconcile_does_not_mutate_input():
    budget = _budget(0, BOUNDARY)
    reconcile_budget(budget, BOUNDARY + DAY_MS)
    assert budget.current == 0
    assert budget.last_recovery == BOUNDARY


def test_custom_policy():
    policy = BudgetPolicy(daily_recovery=5, reset_hour=0, tz_offset_minutes=0)
    midnight = to_ms(datetime(2024, 1, 10, tzinfo=timezone.utc))
    result = reconcile_budget(_budget(0, midnight - 1), midnight, policy)
    assert result.current == 5


# ── consume / grant ──────────────────────────────────────────


def test_consume_decrements():
    assert consume_action(_budget(3, BASE_TIME)).current == 2


def test_consume_floors_at_zero():
    assert consume_action(_budget(0, BASE_TIME)).current == 0


def test_grant_capped_at_limit():
    assert grant_actions(_budget(48, BASE_TIME), 5).current == 50


def test_grant_adds():
    assert grant_actions(_budget(10, BASE_TIME), 5).current == 15


def test_new_budget_uses_policy():
    budget = new_budget(BASE_TIME)
    assert budget.current == 50
    assert budget.limit == 50
    assert budget.last_recovery == BASE_TIME


# ── ActionLedger ─────────────────────────────────────────────


def test_has_remaining_reconciles_first():
    clock = FakeClock(BASE_TIME)
    ledger = ActionLedger(_budget(0, BASE_TIME - DAY_MS), clock=clock)
    assert ledger.has_remaining() is True
    assert ledger.budget.current == 20
    assert ledger.budget.last_recovery == BASE_TIME


def test_has_remaining_false_when_empty_in_window():
    clock = FakeClock(BASE_TIME)
    ledger = ActionLedger(_budget(0, BASE_TIME - HOUR_MS), clock=clock)
    assert ledger.has_remaining() is False


def test_ledger_consume_then_recover_next_day():
    clock = FakeClock(BASE_TIME)
    ledger = ActionLedger(_budget(1, BASE_TIME), clock=clock)
    ledger.consume()
    assert ledger.has_remaining() is False
    clock.advance(DAY_MS)
    assert ledger.has_remaining() is True
    assert ledger.budget.current == 20


def test_ledger_budget_is_a_copy():
    ledger = ActionLedger(_budget(10, BASE_TIME), clock=FakeClock())
    snapshot = ledger.budget
    snapshot.current = 0
    assert ledger.budget.current == 10


def test_ledger_grant():
    ledger = ActionLedger(_budget(49, BASE_TIME), clock=FakeClock())
    assert ledger.grant(5).current == 50
