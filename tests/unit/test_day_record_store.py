from datetime import date
from decimal import Decimal

import pytest

from restaurant_ops.domain.models import DayField, EditRejected
from restaurant_ops.domain.services.day_record_store import DayRecordStore


def test_generates_seven_days_with_closed_schedule(week, providers):
    store = DayRecordStore()

    days = store.initialize(week, None, providers, closed_days=("sunday", "Monday"))

    assert [d.date for d in days] == week.dates()
    assert [d.is_open for d in days] == [False, True, True, True, True, True, False]
    assert all(d.budgeted_sales == Decimal("0") for d in days)
    assert set(days[1].actual_sales_by_source) == set(providers.channel_ids)


def test_initialize_is_idempotent(week, providers):
    existing = [
        {"date": "2026-10-12", "is_open": 1, "sales_budget": "100.00", "actual_sales_door_dash": "12.50"},
        {"date": "2026-10-13", "is_open": "false", "sales_budget": "0.00"},
    ]
    store = DayRecordStore()

    first = store.initialize(week, existing, providers)
    second = store.initialize(week, existing, providers)

    assert first == second
    assert len(store) == 2


@pytest.mark.parametrize(
    "raw, expected",
    [(True, True), (False, False), (1, True), (0, False), ("1", True), ("0", False), ("true", True), ("false", False)],
)
def test_is_open_encodings_normalize(week, providers, raw, expected):
    store = DayRecordStore()
    days = store.initialize(week, [{"date": "2026-10-12", "is_open": raw}], providers)
    assert days[0].is_open is expected


def test_null_is_open_falls_back_to_closed_schedule(week, providers):
    existing = [
        {"date": "2026-10-17", "is_open": None},  # Saturday
        {"date": "2026-10-18", "is_open": None},  # Sunday
    ]
    store = DayRecordStore()

    days = store.initialize(week, existing, providers, closed_days=("Sunday",))

    assert [d.is_open for d in days] == [True, False]


def test_existing_data_order_is_preserved(week, providers):
    existing = [{"date": "2026-10-14"}, {"date": "2026-10-12"}]
    store = DayRecordStore()

    days = store.initialize(week, existing, providers)

    assert [d.date for d in days] == [date(2026, 10, 14), date(2026, 10, 12)]


def test_closed_day_rejects_sales_edits(week, providers):
    store = DayRecordStore()
    store.initialize(week, None, providers, closed_days=("Monday",))

    rejected = store.set_field(0, DayField.BUDGETED_SALES, "250")

    assert isinstance(rejected, EditRejected)
    assert rejected.reason == "day is closed"
    assert store.days[0].budgeted_sales == Decimal("0")


def test_closed_day_can_be_reopened(week, providers):
    store = DayRecordStore()
    store.initialize(week, None, providers, closed_days=("Monday",))

    assert store.set_field(0, DayField.IS_OPEN, True) is None
    assert store.set_field(0, DayField.BUDGETED_SALES, "250") is None
    assert store.days[0].budgeted_sales == Decimal("250")


def test_channel_edit_requires_known_channel(week, providers):
    store = DayRecordStore()
    store.initialize(week, None, providers)

    assert store.set_field(2, DayField.ACTUAL_SALES, "40.25", channel_id="door_dash") is None
    rejected = store.set_field(2, DayField.ACTUAL_SALES, "10", channel_id="skip_the_dishes")

    assert store.days[2].actual_sales_by_source["door_dash"] == Decimal("40.25")
    assert rejected is not None and "unknown channel" in rejected.reason


def test_rejects_out_of_range_and_negative(week, providers):
    store = DayRecordStore()
    store.initialize(week, None, providers)

    assert store.set_field(7, DayField.TICKET_COUNT, 3).reason == "day index out of range"
    assert store.set_field(1, DayField.TICKET_COUNT, -3).reason == "negative value"
    assert store.set_field(1, "covers", 3).reason == "unknown field"


def test_subscribers_notified_after_mutation(week, providers):
    store = DayRecordStore()
    store.initialize(week, None, providers)
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.set_field(3, DayField.TICKET_COUNT, "12")
    store.set_field(3, DayField.TICKET_COUNT, -1)
    unsubscribe()
    store.set_field(3, DayField.TICKET_COUNT, "13")

    assert len(seen) == 1
    assert seen[0].day_index == 3
    assert seen[0].record.ticket_count == 12


def test_days_are_snapshots(week, providers):
    store = DayRecordStore()
    store.initialize(week, None, providers)

    store.days[0].budgeted_sales = Decimal("999")

    assert store.days[0].budgeted_sales == Decimal("0")
