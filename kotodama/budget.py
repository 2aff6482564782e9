"""Daily action budget: elapsed-boundary recovery, gating and consumption.

Recovery rule (evaluated on load and before every gate check):

  last  = last_reset_boundary(budget.last_recovery)
  now_b = last_reset_boundary(now)
  if now_b > last:
      current = min(limit, current + floor((now_b - last) / day) * daily_recovery)
  last_recovery = now

Because both anchors snap to reset boundaries, reconciling twice inside the
same reset window grants nothing the second time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel

from kotodama.clock import DAY_MS, last_reset_boundary, now_ms
from kotodama.config import (
    DAILY_RECOVERY,
    INITIAL_ACTIONS,
    MAX_ACTIONS,
    RESET_HOUR,
    RESET_TZ_OFFSET_MINUTES,
)
from kotodama.models import ActionBudget

logger = logging.getLogger(__name__)


class BudgetPolicy(BaseModel):
    daily_recovery: int = DAILY_RECOVERY
    limit: int = MAX_ACTIONS
    initial: int = INITIAL_ACTIONS
    reset_hour: int = RESET_HOUR
    tz_offset_minutes: int = RESET_TZ_OFFSET_MINUTES


def new_budget(now: int, policy: BudgetPolicy | None = None) -> ActionBudget:
    policy = policy or BudgetPolicy()
    return ActionBudget(current=policy.initial, limit=policy.limit, last_recovery=now)


def reconcile_budget(
    budget: ActionBudget, now: int, policy: BudgetPolicy | None = None
) -> ActionBudget:
    """Return a copy of `budget` with elapsed-day recovery applied."""
    policy = policy or BudgetPolicy()
    last = last_reset_boundary(budget.last_recovery, policy.reset_hour, policy.tz_offset_minutes)
    current_boundary = last_reset_boundary(now, policy.reset_hour, policy.tz_offset_minutes)

    current = budget.current
    if current_boundary > last:
        days = (current_boundary - last) // DAY_MS
        current = min(budget.limit, current + days * policy.daily_recovery)
        logger.debug("budget recovery days=%d current=%d->%d", days, budget.current, current)

    return budget.model_copy(update={"current": current, "last_recovery": now})


def grant_actions(budget: ActionBudget, amount: int) -> ActionBudget:
    return budget.model_copy(
        update={"current": max(0, min(budget.limit, budget.current + amount))}
    )


def consume_action(budget: ActionBudget) -> ActionBudget:
    if budget.current <= 0:
        logger.debug("consume_action called on an empty budget")
        return budget.model_copy()
    return budget.model_copy(update={"current": budget.current - 1})


class ActionLedger:
    """Owns one slot's budget; every gate check reconciles first.

    Args:
        budget: Starting budget (copied, never shared).
        policy: Recovery policy. Defaults to the game constants.
        clock:  Millisecond clock, injectable for tests.
    """

    def __init__(
        self,
        budget: ActionBudget,
        policy: BudgetPolicy | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._budget = budget.model_copy()
        self._policy = policy or BudgetPolicy()
        self._clock = clock

    @property
    def budget(self) -> ActionBudget:
        return self._budget.model_copy()

    def reconcile(self, now: int | None = None) -> ActionBudget:
        self._budget = reconcile_budget(
            self._budget, self._clock() if now is None else now, self._policy
        )
        return self.budget

    def has_remaining(self, now: int | None = None) -> bool:
        return self.reconcile(now).current > 0

    def consume(self) -> ActionBudget:
        self._budget = consume_action(self._budget)
        return self.budget

    def grant(self, amount: int) -> ActionBudget:
        self._budget = grant_actions(self._budget, amount)
        return self.budget
