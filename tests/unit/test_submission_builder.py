from decimal import Decimal

import pytest

from restaurant_ops.domain.errors import SubmissionError, ValidationCode, ValidationError
from restaurant_ops.domain.models import DayField, LaborRateState
from restaurant_ops.domain.services.aggregation_engine import AggregationEngine
from restaurant_ops.domain.services.day_record_store import DayRecordStore
from restaurant_ops.domain.services.submission_builder import SALES_SECTION, SubmissionBuilder


@pytest.fixture()
def store(week, providers):
    store = DayRecordStore()
    store.initialize(week, None, providers, closed_days=("Sunday",))
    store.set_field(0, DayField.BUDGETED_SALES, "100")
    store.set_field(0, DayField.ACTUAL_SALES, "80", channel_id="in_store")
    store.set_field(0, DayField.ACTUAL_SALES, "15.5", channel_id="door_dash")
    store.set_field(0, DayField.TICKET_COUNT, 9)
    store.set_field(1, DayField.BUDGETED_SALES, "120.126")
    return store


def test_payload_wire_format(store, week, providers):
    payload = SubmissionBuilder().build(
        week, store.days, providers, labor_rate=LaborRateState.from_current_entry(Decimal("19.5"))
    )

    assert payload["week_start"] == "2026-10-12"
    assert payload["section"] == SALES_SECTION

    weekly = payload["section_data"]["weekly"]
    assert weekly["sales_budget"] == "220.13"
    assert weekly["actual_sales_in_store"] == "80.00"
    assert weekly["actual_sales_door_dash"] == "15.50"
    assert weekly["actual_sales_uber_eats"] == "0.00"
    assert weekly["net_sales_actual"] == "95.50"
    assert weekly["daily_tickets"] == 9
    assert weekly["average_daily_ticket"] == "10.61"
    assert weekly["average_hourly_rate"] == "19.50"

    daily = payload["section_data"]["daily"]
    assert len(daily) == 7
    assert daily[0] == {
        "date": "2026-10-12",
        "day": "Monday",
        "is_open": 1,
        "sales_budget": "100.00",
        "actual_sales_in_store": "80.00",
        "actual_sales_app_online": "0.00",
        "actual_sales_door_dash": "15.50",
        "actual_sales_uber_eats": "0.00",
        "daily_tickets": 9,
        "net_sales_actual": "95.50",
    }
    assert daily[6]["is_open"] == 0
    assert daily[6]["day"] == "Sunday"


def test_unset_labor_rate_is_omitted(store, week, providers):
    payload = SubmissionBuilder().build(week, store.days, providers, labor_rate=LaborRateState.unset())

    assert "average_hourly_rate" not in payload["section_data"]["weekly"]


def test_no_budgeted_sales_blocks(week, providers):
    store = DayRecordStore()
    store.initialize(week, None, providers)

    with pytest.raises(ValidationError) as exc_info:
        SubmissionBuilder().build(week, store.days, providers)

    assert exc_info.value.code == ValidationCode.NO_BUDGETED_SALES


def test_missing_week_blocks(providers):
    with pytest.raises(ValidationError) as exc_info:
        SubmissionBuilder().build(None, [], providers)

    assert exc_info.value.code == ValidationCode.MISSING_WEEK_DATA


def test_saved_payload_reproduces_weekly_totals(store, week, providers):
    builder = SubmissionBuilder()
    payload = builder.build(week, store.days, providers)

    parsed = builder.parse_daily(payload, providers)
    built = AggregationEngine.compute_weekly_totals(store.days, providers)
    reparsed = AggregationEngine.compute_weekly_totals(parsed, providers)

    assert reparsed.net_sales_actual == built.net_sales_actual
    assert reparsed.ticket_count == built.ticket_count
    assert reparsed.actual_sales_by_source == built.actual_sales_by_source
    assert [d.is_open for d in parsed] == [d.is_open for d in store.days]


async def test_save_wraps_unexpected_errors(store, week, providers):
    builder = SubmissionBuilder()
    payload = builder.build(week, store.days, providers)

    async def broken_save(_payload):
        raise RuntimeError("connection reset")

    with pytest.raises(SubmissionError) as exc_info:
        await builder.save(payload, broken_save)

    assert exc_info.value.message == "connection reset"


async def test_save_passes_server_message_verbatim(store, week, providers):
    builder = SubmissionBuilder()
    payload = builder.build(week, store.days, providers)

    async def rejecting_save(_payload):
        raise SubmissionError("Week is locked for editing", status_code=409)

    with pytest.raises(SubmissionError) as exc_info:
        await builder.save(payload, rejecting_save)

    assert exc_info.value.message == "Week is locked for editing"
    assert exc_info.value.status_code == 409
