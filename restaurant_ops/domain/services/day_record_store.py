"""
DAYRECORD STORE
Holds the seven mutable per-day entries for the selected week

RESPONSIBILITIES:
- Initialize from saved data or generate a fresh week
- Apply single-field edits, refusing edits to closed days
- Notify subscribers after every successful mutation
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Collection, List, Mapping, Optional, Sequence, Union

from restaurant_ops.domain.models import (
    DayField,
    DayRecord,
    EditRejected,
    ProviderConfig,
    WeekSelection,
)
from restaurant_ops.utils.money import ZERO, normalize_flag, to_count, to_decimal
from restaurant_ops.utils.time import day_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayRecordChange:
    """Published to subscribers after a mutation."""
    day_index: int
    field: DayField
    channel_id: Optional[str]
    record: DayRecord


Subscriber = Callable[[DayRecordChange], None]
ExistingDay = Union[DayRecord, Mapping[str, Any]]


class DayRecordStore:
    def __init__(self):
        self._days: List[DayRecord] = []
        self._providers = ProviderConfig()
        self._week: Optional[WeekSelection] = None
        self._subscribers: List[Subscriber] = []

    @property
    def days(self) -> tuple:
        """Snapshot copies; mutate through set_field only."""
        return tuple(day.copy() for day in self._days)

    @property
    def week(self) -> Optional[WeekSelection]:
        return self._week

    @property
    def providers(self) -> ProviderConfig:
        return self._providers

    def __len__(self) -> int:
        return len(self._days)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def initialize(
        self,
        week: WeekSelection,
        existing_data: Optional[Sequence[ExistingDay]],
        providers: ProviderConfig,
        closed_days: Collection[str] = (),
    ) -> List[DayRecord]:
        """
        Load the week.

        Non-empty `existing_data` is adopted as-is (order preserved);
        otherwise seven blank days are generated, closed on the weekday
        names in `closed_days` (case-insensitive).
        """
        closed = {name.strip().lower() for name in closed_days if name}
        self._week = week
        self._providers = providers

        if existing_data:
            self._days = [self._adopt(entry, providers, closed) for entry in existing_data]
            logger.debug("Adopted %d saved days for week %s", len(self._days), week.key)
        else:
            self._days = [
                DayRecord.blank(day, providers, is_open=day_name(day).lower() not in closed)
                for day in week.dates()
            ]
            logger.debug("Generated fresh week %s (closed: %s)", week.key, sorted(closed))
        return list(self.days)

    @staticmethod
    def _adopt(entry: ExistingDay, providers: ProviderConfig, closed: Collection[str]) -> DayRecord:
        if isinstance(entry, DayRecord):
            record = entry.copy()
            for channel_id in providers.channel_ids:
                record.actual_sales_by_source.setdefault(channel_id, ZERO)
            return record
        record = DayRecord.from_wire(entry, providers)
        if entry.get("is_open") is None:
            record.is_open = record.day_name.lower() not in closed
        return record

    def clear(self) -> None:
        self._days = []
        self._week = None

    def set_field(
        self,
        day_index: int,
        field: Union[DayField, str],
        value: Any,
        channel_id: Optional[str] = None,
    ) -> Optional[EditRejected]:
        """
        Apply one edit. Returns EditRejected (and mutates nothing) when the
        edit is not allowed, None on success.
        """
        try:
            field = DayField(field)
        except ValueError:
            return self._reject(day_index, str(field), "unknown field")

        if not 0 <= day_index < len(self._days):
            return self._reject(day_index, field.value, "day index out of range")

        record = self._days[day_index]
        if field != DayField.IS_OPEN and not record.is_open:
            return self._reject(day_index, field.value, "day is closed")

        if field == DayField.IS_OPEN:
            flag = normalize_flag(value)
            if flag is None:
                return self._reject(day_index, field.value, "invalid open flag")
            record.is_open = flag
        elif field == DayField.TICKET_COUNT:
            count = to_count(value)
            if count < 0:
                return self._reject(day_index, field.value, "negative value")
            record.ticket_count = count
        else:
            amount = to_decimal(value)
            if amount < 0:
                return self._reject(day_index, field.value, "negative value")
            if field == DayField.BUDGETED_SALES:
                record.budgeted_sales = amount
            else:
                if channel_id not in self._providers.channel_ids:
                    return self._reject(day_index, field.value, f"unknown channel {channel_id!r}")
                record.actual_sales_by_source[channel_id] = amount

        self._publish(DayRecordChange(day_index, field, channel_id, record.copy()))
        return None

    def _reject(self, day_index: int, field: str, reason: str) -> EditRejected:
        logger.debug("Edit rejected: day=%s field=%s reason=%s", day_index, field, reason)
        return EditRejected(day_index=day_index, field=field, reason=reason)

    def _publish(self, change: DayRecordChange) -> None:
        for subscriber in list(self._subscribers):
            subscriber(change)
