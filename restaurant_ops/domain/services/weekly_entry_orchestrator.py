"""
WEEKLY ENTRY ORCHESTRATOR
Single-session driver of the weekly sales entry workflow

FLOW:
week selected → DayRecordStore initialized → edits recompute totals →
submit intent runs the gates → SubmissionBuilder saves → data-saved hook → close

RULES:
✅ One logical thread (asyncio); suspension only on collaborator awaits
✅ Gates satisfied in a session never re-fire; only select_week() re-arms them
✅ One in-flight save, one rate fetch per week, one pending debounce
✅ close() cancels every timer and resets every one-shot guard
"""

import inspect
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from restaurant_ops.config import settings
from restaurant_ops.domain.errors import RemoteFetchError, SubmissionError
from restaurant_ops.domain.models import (
    CategorySummary,
    DayField,
    DayRecord,
    EditRejected,
    Gate,
    GateAction,
    LaborRateSource,
    LaborRateState,
    PromptKind,
    ProviderConfig,
    SubmitStatus,
    WeeklyTotals,
    WeekSelection,
)
from restaurant_ops.domain.services.aggregation_engine import AggregationEngine
from restaurant_ops.domain.services.day_record_store import DayRecordChange, DayRecordStore, ExistingDay
from restaurant_ops.domain.services.gate_sequencer import GateContext, GateSequencer, GateTransition
from restaurant_ops.domain.services.submission_builder import SubmissionBuilder
from restaurant_ops.infrastructure.cache.summary_cache import CostDeltas, RemoteSummaryCache
from restaurant_ops.realtime.debounce import KeyedTimers, SingleSlotTimer
from restaurant_ops.utils.money import ZERO, format_currency, normalize_flag, to_decimal
from restaurant_ops.utils.time import WEEKDAY_NAMES, today_local

logger = logging.getLogger(__name__)


class DashboardGateway(Protocol):
    """Backend collaborators consumed by the workflow - ASYNC"""

    async def fetch_category_summary(self, start_date: date, end_date: date) -> Mapping[str, Any]:
        ...

    async def fetch_dashboard_summary(self, start_date: date, end_date: date, group_by: str = "daily") -> Mapping[str, Any]:
        ...

    async def save_weekly_data(self, payload: Dict[str, Any]) -> Any:
        ...

    async def get_restaurant_goals(self) -> Mapping[str, Any]:
        ...

    async def get_provider_config(self) -> List[Mapping[str, Any]]:
        ...


@dataclass(frozen=True)
class Prompt:
    """Something the UI should show the user."""
    kind: PromptKind
    gate: Optional[Gate] = None
    day_index: Optional[int] = None
    offending_days: Tuple[int, ...] = ()
    detail: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SubmitOutcome:
    status: SubmitStatus
    gate: Optional[Gate] = None
    offending_days: Tuple[int, ...] = ()
    focus_day: Optional[int] = None
    payload: Optional[Dict[str, Any]] = None
    response: Any = None


@dataclass(frozen=True)
class ActionResult:
    transition: GateTransition
    submission: Optional[SubmitOutcome] = None
    manual_rate_requested: bool = False


@dataclass
class EntryHooks:
    """
    Optional callbacks. `on_prompt` and `on_closed` are called synchronously;
    `on_data_saved` may be a coroutine function.
    """
    on_prompt: Optional[Callable[[Prompt], None]] = None
    on_data_saved: Optional[Callable[[Any], Any]] = None
    on_closed: Optional[Callable[[], None]] = None


def closed_days_from_goals(goals: Mapping[str, Any]) -> Tuple[str, ...]:
    """
    `restaurant_days` lists the OPEN weekdays; return the complement.

    A missing or empty list means the restaurant is open every day.
    """
    open_days = goals.get("restaurant_days")
    if not isinstance(open_days, (list, tuple)) or not open_days:
        return ()
    normalized = {str(name).strip().lower() for name in open_days if name}
    return tuple(name for name in WEEKDAY_NAMES if name.lower() not in normalized)


def _positive_rate(value: Any) -> Optional[Decimal]:
    rate = to_decimal(value)
    return rate if rate > ZERO else None


class WeeklyEntryOrchestrator:
    """
    Weekly Entry Orchestrator
    Owns one editing session; create one per open entry dialog
    """

    def __init__(
        self,
        gateway: DashboardGateway,
        hooks: Optional[EntryHooks] = None,
        today: Callable[[], date] = today_local,
        debounce_seconds: Optional[float] = None,
        labor_prompt_delay: Optional[float] = None,
        budget_notice_delay: Optional[float] = None,
        engine: Optional[AggregationEngine] = None,
    ):
        self._gateway = gateway
        self._hooks = hooks or EntryHooks()
        self._today = today
        self._engine = engine or AggregationEngine()
        self._builder = SubmissionBuilder(self._engine)

        self._store = DayRecordStore()
        self._store.subscribe(self._on_day_changed)
        self._summary_cache = RemoteSummaryCache(
            gateway,
            totals_source=lambda: self._totals,
            deltas_source=self._cost_deltas,
            debounce_seconds=debounce_seconds,
        )
        self._labor_prompt_timer = SingleSlotTimer(
            settings.LABOR_RATE_PROMPT_DELAY_SECONDS if labor_prompt_delay is None else labor_prompt_delay
        )
        self._budget_notices: KeyedTimers[int] = KeyedTimers(
            settings.BUDGET_NOTICE_DELAY_SECONDS if budget_notice_delay is None else budget_notice_delay
        )

        self._generation = 0
        self._closed = True
        self._reset_session()

    # ------------------------------------------------------------------
    # STATE
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return not self._closed

    @property
    def week(self) -> Optional[WeekSelection]:
        return self._week

    @property
    def gate(self) -> Optional[Gate]:
        return self._sequencer.state if self._sequencer else None

    @property
    def sequencer(self) -> Optional[GateSequencer]:
        return self._sequencer

    @property
    def days(self) -> Tuple[DayRecord, ...]:
        return self._store.days

    @property
    def providers(self) -> ProviderConfig:
        return self._store.providers

    @property
    def totals(self) -> WeeklyTotals:
        return self._totals

    @property
    def labor_rate(self) -> LaborRateState:
        return self._labor_rate

    @property
    def previous_week_rate(self) -> Optional[Decimal]:
        return self._previous_rate

    @property
    def current_rate(self) -> Optional[Decimal]:
        return self._current_rate

    @property
    def submitting(self) -> bool:
        return self._submitting

    @property
    def prompts(self) -> Tuple[Prompt, ...]:
        return tuple(self._prompts)

    @property
    def summary(self) -> CategorySummary:
        return self._summary_cache.current

    @property
    def summary_cache(self) -> RemoteSummaryCache:
        return self._summary_cache

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    async def open(self, week: WeekSelection, existing_data: Optional[Sequence[ExistingDay]] = None) -> Gate:
        """
        Open the session for `week`.

        Re-opening the week that is already open (e.g. a refresh after a
        save round trip) only re-evaluates the gates; nothing re-fires.
        """
        if self.is_open and self._week == week and self._sequencer is not None:
            return self.refresh_gates()
        return await self.select_week(week, existing_data)

    async def select_week(self, week: WeekSelection, existing_data: Optional[Sequence[ExistingDay]] = None) -> Gate:
        """Explicit week selection: discard the session and re-arm every gate."""
        if self.is_open:
            self._teardown()
        self._reset_session()
        self._closed = False
        self._week = week
        generation = self._generation

        self._goals = await self._load_goals()
        providers = await self._load_providers()
        if generation != self._generation:
            return self.gate or Gate.WEEK_CONFIRMATION

        self._store.initialize(week, existing_data, providers, closed_days_from_goals(self._goals))
        self._recompute()
        await self.ensure_labor_rates()
        if generation != self._generation:
            return self.gate or Gate.WEEK_CONFIRMATION

        context = GateContext(
            is_current_week=week.contains(self._today()),
            is_new_entry=not existing_data,
            forward_previous_week_rate=bool(normalize_flag(self._goals.get("forward_previous_week_rate"), default=False)),
        )
        self._sequencer = GateSequencer(context)
        logger.info(
            "Opened weekly entry for %s (current_week=%s, new_entry=%s, forward_rate=%s)",
            week.key, context.is_current_week, context.is_new_entry, context.forward_previous_week_rate,
        )
        return self.refresh_gates()

    def close(self) -> None:
        """Cancel every timer, discard all day data and reset the guards."""
        if self._closed:
            return
        self._teardown()
        self._reset_session()
        self._closed = True
        logger.info("Weekly entry session closed")
        if self._hooks.on_closed:
            self._hooks.on_closed()

    def _teardown(self) -> None:
        self._summary_cache.reset()
        self._labor_prompt_timer.cancel()
        self._budget_notices.cancel_all()

    def _reset_session(self) -> None:
        self._generation += 1
        self._store.clear()
        self._week: Optional[WeekSelection] = None
        self._sequencer: Optional[GateSequencer] = None
        self._goals: Dict[str, Any] = {}
        self._totals = self._engine.compute_weekly_totals([], ProviderConfig())
        self._labor_rate = LaborRateState.unset()
        self._labor_settled = False
        self._previous_rate: Optional[Decimal] = None
        self._current_rate: Optional[Decimal] = None
        self._dashboard_rows: List[Mapping[str, Any]] = []
        self._rates_loaded_for: Optional[str] = None
        self._rates_in_progress = False
        self._prompted: set = set()
        self._prompts: List[Prompt] = []
        self._submitting = False

    # ------------------------------------------------------------------
    # COLLABORATOR BOOTSTRAP
    # ------------------------------------------------------------------

    async def _load_goals(self) -> Dict[str, Any]:
        try:
            goals = await self._gateway.get_restaurant_goals()
        except RemoteFetchError as exc:
            logger.warning("Restaurant goals unavailable, using defaults: %s", exc.message)
            return {}
        return dict(goals or {})

    async def _load_providers(self) -> ProviderConfig:
        try:
            entries = await self._gateway.get_provider_config()
        except RemoteFetchError as exc:
            logger.warning("Provider config unavailable, base channels only: %s", exc.message)
            return ProviderConfig()
        return ProviderConfig.from_payload(entries)

    async def ensure_labor_rates(self) -> None:
        """
        Fetch the average hourly rates once per week.

        A second call while the fetch is running, or after it succeeded
        for this week, does nothing.
        """
        week = self._week
        if week is None or self._rates_in_progress or self._rates_loaded_for == week.key:
            return

        generation = self._generation
        self._rates_in_progress = True
        try:
            summary = await self._gateway.fetch_dashboard_summary(week.start_date, week.end_date, "daily")
        except RemoteFetchError as exc:
            logger.warning("Hourly rate fetch failed for %s: %s", week.key, exc.message)
            summary = None
        finally:
            if generation == self._generation:
                self._rates_in_progress = False

        if generation != self._generation:
            return

        summary = summary or {}
        if summary:
            self._rates_loaded_for = week.key
        rows = summary.get("data")
        self._dashboard_rows = list(rows) if isinstance(rows, list) else []
        self._previous_rate = _positive_rate(summary.get("previous_week_average_hourly_rate"))
        self._current_rate = (
            _positive_rate(summary.get("average_hourly_rate"))
            or _positive_rate(self._goals.get("avg_hourly_rate"))
        )

    def _cost_deltas(self) -> CostDeltas:
        return CostDeltas.from_dashboard_rows(self._dashboard_rows)

    # ------------------------------------------------------------------
    # GATES
    # ------------------------------------------------------------------

    def refresh_gates(self) -> Gate:
        """Re-evaluate automatic gates; safe on every re-render."""
        if self._sequencer is None:
            return Gate.WEEK_CONFIRMATION
        state = self._sequencer.evaluate()
        if Gate.LABOR_RATE_CONFIRMATION in self._sequencer.satisfied and not self._labor_settled:
            self._settle_labor_rate(None)
        self._announce(state)
        return state

    def _announce(self, state: Gate) -> None:
        if state != Gate.LABOR_RATE_CONFIRMATION:
            self._labor_prompt_timer.cancel()

        if state == Gate.WEEK_CONFIRMATION and PromptKind.CONFIRM_WEEK not in self._prompted:
            self._prompted.add(PromptKind.CONFIRM_WEEK)
            self._emit(Prompt(
                kind=PromptKind.CONFIRM_WEEK,
                gate=state,
                detail={
                    "week_start": self._week.start_date.isoformat(),
                    "week_end": self._week.end_date.isoformat(),
                },
            ))
        elif (
            state == Gate.LABOR_RATE_CONFIRMATION
            and PromptKind.CONFIRM_LABOR_RATE not in self._prompted
            and not self._labor_prompt_timer.pending
        ):
            self._labor_prompt_timer.schedule(self._fire_labor_prompt)

    def _fire_labor_prompt(self) -> None:
        if self.gate != Gate.LABOR_RATE_CONFIRMATION or PromptKind.CONFIRM_LABOR_RATE in self._prompted:
            return
        self._prompted.add(PromptKind.CONFIRM_LABOR_RATE)
        self._emit(Prompt(
            kind=PromptKind.CONFIRM_LABOR_RATE,
            gate=Gate.LABOR_RATE_CONFIRMATION,
            detail={
                "previous_week_rate": format_currency(self._previous_rate) if self._previous_rate else None,
                "current_rate": format_currency(self._current_rate) if self._current_rate else None,
            },
        ))

    async def resolve(self, action: GateAction) -> ActionResult:
        """Apply a gate exit chosen by the user."""
        if self._sequencer is None or self._closed:
            gate = self.gate or Gate.WEEK_CONFIRMATION
            return ActionResult(GateTransition(previous=gate, current=gate, action=action, accepted=False))

        transition = self._sequencer.resolve(action)
        if not transition.accepted:
            return ActionResult(transition)
        if transition.cancelled:
            self.close()
            return ActionResult(transition)

        manual = False
        if transition.previous == Gate.LABOR_RATE_CONFIRMATION:
            manual = self._settle_labor_rate(action)
        self.refresh_gates()

        if action == GateAction.SAVE_ANYWAY and transition.current == Gate.READY:
            return ActionResult(transition, submission=await self._save())
        return ActionResult(transition, manual_rate_requested=manual)

    def _settle_labor_rate(self, action: Optional[GateAction]) -> bool:
        """
        Set LaborRateState for the satisfied labor gate.

        Returns True when the user has to type the rate in by hand.
        """
        self._labor_settled = True
        if self._labor_rate.source == LaborRateSource.USER_OVERRIDE:
            return False

        previous, current = self._previous_rate, self._current_rate
        context = self._sequencer.context

        if action is None:
            if context.is_new_entry and context.forward_previous_week_rate and previous is not None:
                self._labor_rate = LaborRateState.from_prior_week(previous)
            elif current is not None:
                self._labor_rate = LaborRateState.from_current_entry(current)
            return False

        if action == GateAction.USE_PREVIOUS_RATE:
            chosen = LaborRateState.from_prior_week(previous) if previous is not None else None
        elif action == GateAction.USE_CURRENT_RATE:
            chosen = LaborRateState.from_current_entry(current) if current is not None else None
        else:
            if not self._labor_rate.is_set and current is not None:
                self._labor_rate = LaborRateState.from_current_entry(current)
            return False

        if chosen is not None:
            self._labor_rate = chosen
            return False

        logger.info("No rate available for %s, asking for manual entry", action.value)
        self._labor_rate = LaborRateState.unset()
        self._emit(Prompt(kind=PromptKind.MANUAL_LABOR_RATE, gate=self.gate))
        return True

    def set_labor_rate(self, rate: Any) -> bool:
        """Manual override of the average hourly rate."""
        value = _positive_rate(rate)
        if self._closed or value is None:
            return False
        self._labor_rate = LaborRateState.user_override(value)
        return True

    # ------------------------------------------------------------------
    # EDITS
    # ------------------------------------------------------------------

    def set_field(
        self,
        day_index: int,
        field: DayField,
        value: Any,
        channel_id: Optional[str] = None,
    ) -> Optional[EditRejected]:
        if self._closed:
            return EditRejected(day_index=day_index, field=str(getattr(field, "value", field)), reason="session closed")
        return self._store.set_field(day_index, field, value, channel_id)

    def _on_day_changed(self, change: DayRecordChange) -> None:
        self._recompute()
        if change.field == DayField.BUDGETED_SALES and change.record.budgeted_sales > ZERO:
            record = change.record
            self._budget_notices.schedule(
                change.day_index,
                lambda: self._emit(Prompt(
                    kind=PromptKind.BUDGET_ADDED,
                    day_index=change.day_index,
                    detail={
                        "date": record.date.isoformat(),
                        "day": record.day_name,
                        "amount": format_currency(record.budgeted_sales),
                    },
                )),
            )

    def _recompute(self) -> None:
        self._totals = self._engine.compute_weekly_totals(self._store.days, self._store.providers)

    # ------------------------------------------------------------------
    # CATEGORY SUMMARY
    # ------------------------------------------------------------------

    def on_range_change(self, start: date, end: date) -> bool:
        if self._closed:
            return False
        return self._summary_cache.on_range_change(start, end)

    async def fetch_summary(self, start: date, end: date) -> CategorySummary:
        """On-demand fetch; close() cancels it and nothing lands afterwards."""
        if self._closed:
            return self._summary_cache.current
        return await self._summary_cache.fetch(start, end)

    # ------------------------------------------------------------------
    # SUBMISSION
    # ------------------------------------------------------------------

    async def submit(self) -> SubmitOutcome:
        """
        Submit intent.

        Raises:
            ValidationError: nothing to save / no budgeted sales
            SubmissionError: the save call failed (state kept for retry)
        """
        if self._closed or self._sequencer is None:
            return SubmitOutcome(status=SubmitStatus.CLOSED)
        if self._submitting:
            logger.debug("Submit ignored, save already in flight")
            return SubmitOutcome(status=SubmitStatus.IN_FLIGHT, gate=self.gate)

        state = self.refresh_gates()
        if state in (Gate.WEEK_CONFIRMATION, Gate.LABOR_RATE_CONFIRMATION):
            return SubmitOutcome(status=SubmitStatus.BLOCKED_BY_GATE, gate=state)

        transition = self._sequencer.check_budgets(self._store.days)
        if transition.current != Gate.READY:
            self._emit(Prompt(
                kind=PromptKind.MISSING_BUDGETS,
                gate=transition.current,
                day_index=transition.focus_day,
                offending_days=transition.offending_days,
            ))
            return SubmitOutcome(
                status=SubmitStatus.BUDGETS_MISSING,
                gate=transition.current,
                offending_days=transition.offending_days,
                focus_day=transition.focus_day,
            )
        return await self._save()

    async def _save(self) -> SubmitOutcome:
        if self._submitting:
            return SubmitOutcome(status=SubmitStatus.IN_FLIGHT, gate=self.gate)

        generation = self._generation
        self._submitting = True
        try:
            payload = self._builder.build(
                self._week, self._store.days, self._store.providers, self._totals, self._labor_rate
            )
            response = await self._builder.save(payload, self._gateway.save_weekly_data)
        except SubmissionError as exc:
            logger.error("Save failed for %s, keeping entries for retry: %s", self._week.key, exc.message)
            raise
        finally:
            if generation == self._generation:
                self._submitting = False

        try:
            if self._hooks.on_data_saved:
                result = self._hooks.on_data_saved(response)
                if inspect.isawaitable(result):
                    await result
        finally:
            self.close()
        return SubmitOutcome(status=SubmitStatus.SAVED, gate=Gate.READY, payload=payload, response=response)

    def _emit(self, prompt: Prompt) -> None:
        self._prompts.append(prompt)
        logger.debug("Prompt %s", prompt.kind.value)
        if self._hooks.on_prompt:
            self._hooks.on_prompt(prompt)
