"""
Debounced, deduplicated cache of the profit/loss category breakdown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Protocol, Tuple

from restaurant_ops.config import settings
from restaurant_ops.domain.errors import RemoteFetchError
from restaurant_ops.domain.models import Category, CategorySummary, WeeklyTotals
from restaurant_ops.realtime.debounce import Debouncer
from restaurant_ops.utils.money import ZERO, to_decimal
from restaurant_ops.utils.time import range_key

logger = logging.getLogger(__name__)


class CategorySummaryFetcher(Protocol):
    async def fetch_category_summary(self, start_date: date, end_date: date) -> Mapping[str, Any]:
        ...


@dataclass(frozen=True)
class CostDeltas:
    """Budget minus actual for labor and food cost (positive = under budget)."""
    labor: Decimal = ZERO
    food_cost: Decimal = ZERO

    @staticmethod
    def from_dashboard_rows(rows: Optional[Iterable[Mapping[str, Any]]]) -> "CostDeltas":
        labor = ZERO
        food_cost = ZERO
        for row in rows or []:
            if not isinstance(row, Mapping):
                continue
            labor += to_decimal(row.get("budgeted_labor_dollars")) - to_decimal(row.get("actual_labor_dollars"))
            food_cost += to_decimal(row.get("cogs_budget")) - to_decimal(row.get("cogs_actual"))
        return CostDeltas(labor=labor, food_cost=food_cost)


def fallback_categories(totals: WeeklyTotals, deltas: CostDeltas) -> Tuple[Category, ...]:
    """Local sales / labor / food cost split; always three categories."""
    return (
        Category(label="Sales", value=totals.net_sales_actual - totals.budgeted_sales),
        Category(label="Labor", value=deltas.labor),
        Category(label="Food Cost", value=deltas.food_cost),
    )


def parse_categories(payload: Optional[Mapping[str, Any]]) -> Tuple[Category, ...]:
    """Categories live at `categories` or `data.categories`."""
    if not isinstance(payload, Mapping):
        return ()
    raw = payload.get("categories")
    if not raw and isinstance(payload.get("data"), Mapping):
        raw = payload["data"].get("categories")
    categories = []
    for entry in raw or []:
        if not isinstance(entry, Mapping) or not entry.get("label"):
            continue
        categories.append(Category(label=str(entry["label"]), value=to_decimal(entry.get("value"))))
    return tuple(categories)


class RemoteSummaryCache:
    """
    Category breakdown per (start, end) range.

    Range changes are debounced. A range whose fetch already succeeded is
    served from the cache without a network call, and repeating the range
    that is being fetched leaves that fetch running. Failures and empty
    answers fall back to the locally computed breakdown, which is never
    cached as a success. reset() drops everything, and a fetch cut short by
    it never writes back.
    """

    def __init__(
        self,
        fetcher: CategorySummaryFetcher,
        totals_source: Callable[[], WeeklyTotals],
        deltas_source: Callable[[], CostDeltas] = CostDeltas,
        debounce_seconds: Optional[float] = None,
    ):
        self._fetcher = fetcher
        self._totals_source = totals_source
        self._deltas_source = deltas_source
        delay = settings.SUMMARY_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        self._debouncer: Debouncer[str] = Debouncer(delay, self._issue)
        self._ranges: Dict[str, Tuple[date, date]] = {}
        self._entries: Dict[str, CategorySummary] = {}
        self._current: Optional[CategorySummary] = None
        self._requested_key = ""
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    @property
    def current(self) -> CategorySummary:
        """Latest result, or the local fallback when nothing landed yet."""
        if self._current is None:
            return self._fallback(self._requested_key)
        return self._current

    def latest(self, start: date, end: date) -> Optional[CategorySummary]:
        """Most recent successful payload for exactly this range."""
        return self._entries.get(range_key(start, end))

    def on_range_change(self, start: date, end: date) -> bool:
        """
        Schedule a fetch for the new range after the debounce window.

        Returns False when the range is cached or already being fetched.
        """
        key = self._remember(start, end)
        if self._serve_cached(key):
            return False
        return self._debouncer.trigger(key)

    async def fetch(self, start: date, end: date) -> CategorySummary:
        """Fetch now (no debounce); cached ranges make no network call."""
        key = self._remember(start, end)
        if self._serve_cached(key):
            return self._entries[key]
        await self._debouncer.run_now(key)
        return self._entries.get(key) or self.current

    async def wait(self) -> None:
        await self._debouncer.wait()

    def cancel(self) -> None:
        """Drop the pending timer and any in-flight fetch."""
        self._debouncer.cancel()

    def reset(self) -> None:
        self._generation += 1
        self._debouncer.reset()
        self._ranges.clear()
        self._entries.clear()
        self._current = None
        self._requested_key = ""

    def _remember(self, start: date, end: date) -> str:
        key = range_key(start, end)
        self._ranges[key] = (start, end)
        self._requested_key = key
        return key

    def _serve_cached(self, key: str) -> bool:
        summary = self._entries.get(key)
        if summary is None:
            return False
        # Whatever is pending or in flight belongs to an older range
        self._debouncer.cancel()
        self._current = summary
        return True

    async def _issue(self, key: str) -> bool:
        start, end = self._ranges[key]
        generation = self._generation
        logger.debug("Fetching category summary for %s", key)
        try:
            payload = await self._fetcher.fetch_category_summary(start, end)
        except RemoteFetchError as exc:
            if generation != self._generation:
                return False
            logger.warning("Category summary fetch failed for %s, using fallback: %s", key, exc.message)
            self._current = self._fallback(key)
            return False
        if generation != self._generation:
            logger.debug("Dropping category summary for %s, cache was reset", key)
            return False

        categories = parse_categories(payload)
        if not categories:
            logger.info("Category summary for %s has no categories, using fallback", key)
            self._current = self._fallback(key)
            return False

        summary = CategorySummary(range_key=key, categories=categories, payload=dict(payload))
        self._entries[key] = summary
        self._current = summary
        return True

    def _fallback(self, key: str) -> CategorySummary:
        return CategorySummary(
            range_key=key,
            categories=fallback_categories(self._totals_source(), self._deltas_source()),
            is_fallback=True,
        )
