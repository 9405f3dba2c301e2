"""
GATE SEQUENCER
Ordered confirmation gates guarding a weekly save

WEEK_CONFIRMATION → LABOR_RATE_CONFIRMATION → BUDGET_VALIDATION → READY

RULES:
✅ Transitions only move toward READY (cancel ends the session)
✅ A gate satisfied in this session never fires again
✅ Only reset() (a new week selection) clears satisfaction
✅ Invalid actions are no-ops, never exceptions
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence, Tuple

from restaurant_ops.domain.models import DayRecord, Gate, GateAction
from restaurant_ops.utils.money import ZERO

logger = logging.getLogger(__name__)

_ALLOWED_ACTIONS = {
    Gate.WEEK_CONFIRMATION: frozenset({GateAction.PROCEED, GateAction.CANCEL}),
    Gate.LABOR_RATE_CONFIRMATION: frozenset({
        GateAction.USE_PREVIOUS_RATE,
        GateAction.USE_CURRENT_RATE,
        GateAction.CONTINUE_WITH_CURRENT,
    }),
    Gate.BUDGET_VALIDATION: frozenset({GateAction.ADD_BUDGETS, GateAction.SAVE_ANYWAY}),
    Gate.READY: frozenset(),
}


@dataclass(frozen=True)
class GateContext:
    """Session facts the automatic gate checks depend on."""
    is_current_week: bool
    is_new_entry: bool
    forward_previous_week_rate: bool


@dataclass(frozen=True)
class GateTransition:
    previous: Gate
    current: Gate
    action: Optional[GateAction] = None
    accepted: bool = True
    cancelled: bool = False
    offending_days: Tuple[int, ...] = ()
    focus_day: Optional[int] = None


class GateSequencer:
    """
    Explicit state machine; the orchestrator is always on exactly one gate
    """

    def __init__(self, context: GateContext):
        self._context = context
        self._state = Gate.WEEK_CONFIRMATION
        self._satisfied: set = set()
        self._cancelled = False
        self._offending: Tuple[int, ...] = ()

    @property
    def state(self) -> Gate:
        return self._state

    @property
    def context(self) -> GateContext:
        return self._context

    @property
    def satisfied(self) -> FrozenSet[Gate]:
        return frozenset(self._satisfied)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def awaiting_budget_decision(self) -> bool:
        return bool(self._offending)

    @property
    def offending_days(self) -> Tuple[int, ...]:
        return self._offending

    def reset(self, context: GateContext) -> None:
        """New week selected: every gate is armed again."""
        self._context = context
        self._state = Gate.WEEK_CONFIRMATION
        self._satisfied.clear()
        self._cancelled = False
        self._offending = ()

    def evaluate(self) -> Gate:
        """
        Auto-satisfy gates whose conditions already hold.

        Safe to call any number of times.
        """
        if self._cancelled:
            return self._state

        if self._state == Gate.WEEK_CONFIRMATION and (
            self._context.is_current_week or Gate.WEEK_CONFIRMATION in self._satisfied
        ):
            self._advance(Gate.WEEK_CONFIRMATION, Gate.LABOR_RATE_CONFIRMATION, reason="auto")

        if self._state == Gate.LABOR_RATE_CONFIRMATION and (
            not self._context.is_new_entry
            or self._context.forward_previous_week_rate
            or Gate.LABOR_RATE_CONFIRMATION in self._satisfied
        ):
            self._advance(Gate.LABOR_RATE_CONFIRMATION, Gate.BUDGET_VALIDATION, reason="auto")

        return self._state

    def is_allowed(self, action: GateAction) -> bool:
        if self._cancelled:
            return False
        if self._state == Gate.BUDGET_VALIDATION and not self._offending:
            return False
        return action in _ALLOWED_ACTIONS[self._state]

    def resolve(self, action: GateAction) -> GateTransition:
        """Apply a user exit for the current gate."""
        previous = self._state
        if not self.is_allowed(action):
            logger.debug("Ignoring %s while on %s", action.value, previous.value)
            return GateTransition(previous=previous, current=previous, action=action, accepted=False)

        if action == GateAction.CANCEL:
            self._cancelled = True
            logger.info("Week confirmation cancelled")
            return GateTransition(previous=previous, current=previous, action=action, cancelled=True)

        if previous == Gate.WEEK_CONFIRMATION:
            self._advance(previous, Gate.LABOR_RATE_CONFIRMATION, reason=action.value)
            self.evaluate()
        elif previous == Gate.LABOR_RATE_CONFIRMATION:
            self._advance(previous, Gate.BUDGET_VALIDATION, reason=action.value)
        elif action == GateAction.ADD_BUDGETS:
            focus = self._offending[0]
            self._offending = ()
            return GateTransition(previous=previous, current=self._state, action=action, focus_day=focus)
        else:
            offending = self._offending
            self._offending = ()
            self._advance(previous, Gate.READY, reason=action.value)
            return GateTransition(
                previous=previous, current=self._state, action=action, offending_days=offending
            )

        return GateTransition(previous=previous, current=self._state, action=action)

    def check_budgets(self, days: Sequence[DayRecord]) -> GateTransition:
        """
        Submit-time budget completeness check.

        Open days with no budgeted sales halt the sequence; closed days
        are exempt.
        """
        previous = self._state
        if self._cancelled or previous != Gate.BUDGET_VALIDATION:
            return GateTransition(previous=previous, current=previous, accepted=previous == Gate.READY)

        offending = self.find_missing_budgets(days)
        if offending:
            self._offending = offending
            logger.info("Budget validation halted: %d open day(s) without budget", len(offending))
            return GateTransition(
                previous=previous,
                current=previous,
                offending_days=offending,
                focus_day=offending[0],
            )

        self._advance(previous, Gate.READY, reason="budgets complete")
        return GateTransition(previous=previous, current=self._state)

    @staticmethod
    def find_missing_budgets(days: Sequence[DayRecord]) -> Tuple[int, ...]:
        return tuple(
            index for index, day in enumerate(days)
            if day.is_open and day.budgeted_sales <= ZERO
        )

    def _advance(self, gate: Gate, target: Gate, reason: str) -> None:
        self._satisfied.add(gate)
        self._state = target
        logger.info("Gate %s satisfied (%s) -> %s", gate.value, reason, target.value)
