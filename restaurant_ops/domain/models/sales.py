"""
DOMAIN MODELS - WEEKLY SALES ENTRY

Per-day records, the selected week, sales channels and derived totals.
Channel amounts are keyed by a stable channel id, never by display name.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from restaurant_ops.utils.money import ZERO, normalize_flag, to_count, to_decimal
from restaurant_ops.utils.time import day_name, parse_iso_date, range_key, week_dates, week_end

logger = logging.getLogger(__name__)

WIRE_SALES_PREFIX = "actual_sales_"


def provider_id_from_name(name: str) -> str:
    """'Skip The Dishes' -> 'skip_the_dishes'"""
    return re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")


@dataclass(frozen=True)
class Provider:
    """A sales channel (base channel or third-party delivery provider)."""
    id: str
    name: str

    @property
    def wire_key(self) -> str:
        return f"{WIRE_SALES_PREFIX}{self.id}"

    @staticmethod
    def from_name(name: str) -> "Provider":
        return Provider(id=provider_id_from_name(name), name=name.strip())


IN_STORE = Provider(id="in_store", name="In Store")
APP_ONLINE = Provider(id="app_online", name="App/Online")
BASE_CHANNELS: Tuple[Provider, ...] = (IN_STORE, APP_ONLINE)


@dataclass(frozen=True)
class ProviderConfig:
    """
    Read-only list of third-party channels supplied by the backend.
    """
    providers: Tuple[Provider, ...] = ()

    @property
    def channels(self) -> Tuple[Provider, ...]:
        """Base channels followed by the configured providers."""
        return BASE_CHANNELS + self.providers

    @property
    def channel_ids(self) -> Tuple[str, ...]:
        return tuple(channel.id for channel in self.channels)

    @staticmethod
    def from_payload(entries: Optional[Iterable[Any]]) -> "ProviderConfig":
        """
        Build from `[{"provider_name": ...}]` (or plain names).

        Blank names are skipped; a provider whose id collides with an
        earlier channel is dropped.
        """
        seen = {channel.id for channel in BASE_CHANNELS}
        providers = []
        for entry in entries or []:
            if isinstance(entry, Mapping):
                name = entry.get("provider_name") or entry.get("name") or ""
            else:
                name = str(entry or "")
            if not name.strip():
                continue
            provider = Provider.from_name(name)
            if not provider.id or provider.id in seen:
                logger.debug("Skipping duplicate provider channel %r", name)
                continue
            seen.add(provider.id)
            providers.append(provider)
        return ProviderConfig(providers=tuple(providers))


@dataclass(frozen=True)
class WeekSelection:
    """The active 7-day period."""
    start_date: date
    week_number: Optional[int] = None

    @property
    def end_date(self) -> date:
        return week_end(self.start_date)

    @property
    def key(self) -> str:
        return range_key(self.start_date, self.end_date)

    def dates(self) -> list[date]:
        return week_dates(self.start_date)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass
class DayRecord:
    """
    One calendar day within the selected week.

    When `is_open` is False the sales and ticket fields are ignored by
    validation and only `is_open` itself may be edited.
    """
    date: date
    is_open: bool = True
    budgeted_sales: Decimal = ZERO
    actual_sales_by_source: Dict[str, Decimal] = field(default_factory=dict)
    ticket_count: int = 0

    @property
    def day_name(self) -> str:
        return day_name(self.date)

    def copy(self) -> "DayRecord":
        return DayRecord(
            date=self.date,
            is_open=self.is_open,
            budgeted_sales=self.budgeted_sales,
            actual_sales_by_source=dict(self.actual_sales_by_source),
            ticket_count=self.ticket_count,
        )

    @staticmethod
    def blank(day: date, providers: ProviderConfig, is_open: bool = True) -> "DayRecord":
        return DayRecord(
            date=day,
            is_open=is_open,
            actual_sales_by_source={channel_id: ZERO for channel_id in providers.channel_ids},
        )

    @staticmethod
    def from_wire(
        entry: Mapping[str, Any],
        providers: ProviderConfig,
        default_open: bool = True,
    ) -> "DayRecord":
        """
        Parse a saved daily entry (the shape the submission payload uses).

        `is_open` may arrive as bool, 0/1, a string or null; null falls
        back to `default_open`.
        """
        day = parse_iso_date(entry.get("date"))
        budget = entry.get("sales_budget", entry.get("budgeted_sales"))
        tickets = entry.get("daily_tickets", entry.get("ticket_count"))
        return DayRecord(
            date=day,
            is_open=normalize_flag(entry.get("is_open"), default=default_open),
            budgeted_sales=to_decimal(budget),
            actual_sales_by_source={
                channel.id: to_decimal(entry.get(channel.wire_key))
                for channel in providers.channels
            },
            ticket_count=to_count(tickets),
        )


@dataclass(frozen=True)
class EditRejected:
    """Returned instead of mutating when an edit is not allowed."""
    day_index: int
    field: str
    reason: str


@dataclass(frozen=True)
class WeeklyTotals:
    """
    Derived weekly aggregates; never mutated independently of the days.

    `variance_by_date` holds the per-day (actual - budget) / budget * 100,
    0 where the budget is 0.
    """
    budgeted_sales: Decimal
    actual_sales_by_source: Dict[str, Decimal]
    ticket_count: int
    net_sales_actual: Decimal
    average_ticket: int
    variance_percent: Decimal
    variance_by_date: Dict[date, Decimal]
