import asyncio
from datetime import date
from decimal import Decimal
from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from restaurant_ops.api.routes import health, weekly_entry
from restaurant_ops.domain.errors import RemoteFetchError
from restaurant_ops.domain.models import DayRecord, ProviderConfig, WeekSelection
from restaurant_ops.services.entry_session_service import EntrySessionService

WEEK_START = date(2026, 10, 12)  # Monday
TODAY_OUTSIDE_WEEK = date(2026, 10, 19)
TODAY_INSIDE_WEEK = date(2026, 10, 14)


class FakeGateway:
    """In-memory dashboard backend that records every call."""

    def __init__(
        self,
        goals: Optional[Dict[str, Any]] = None,
        providers: Optional[List[Dict[str, Any]]] = None,
        dashboard_summary: Optional[Dict[str, Any]] = None,
        categories: Optional[List[Dict[str, Any]]] = None,
    ):
        self.goals = goals if goals is not None else {}
        self.providers = providers if providers is not None else [{"provider_name": "Door Dash"}]
        self.dashboard_summary = dashboard_summary if dashboard_summary is not None else {
            "previous_week_average_hourly_rate": 18.5,
            "average_hourly_rate": 19.25,
            "data": [],
        }
        self.categories = categories if categories is not None else [
            {"label": "Sales", "value": 120},
            {"label": "Labor", "value": -40},
        ]

        self.summary_calls: List[tuple] = []
        self.dashboard_calls: List[tuple] = []
        self.saved: List[Dict[str, Any]] = []

        self.fail_summary = False
        self.fail_dashboard = False
        self.fail_goals = False
        self.save_error: Optional[Exception] = None
        # When set, category summary calls park until the event fires
        self.summary_gate: Optional[asyncio.Event] = None

    async def fetch_category_summary(self, start_date: date, end_date: date):
        self.summary_calls.append((start_date, end_date))
        if self.summary_gate is not None:
            await self.summary_gate.wait()
        if self.fail_summary:
            raise RemoteFetchError("summary unavailable")
        return {"categories": list(self.categories)}

    async def fetch_dashboard_summary(self, start_date: date, end_date: date, group_by: str = "daily"):
        self.dashboard_calls.append((start_date, end_date, group_by))
        if self.fail_dashboard:
            raise RemoteFetchError("dashboard summary unavailable")
        return dict(self.dashboard_summary)

    async def get_restaurant_goals(self):
        if self.fail_goals:
            raise RemoteFetchError("goals unavailable")
        return dict(self.goals)

    async def get_provider_config(self):
        return list(self.providers)

    async def save_weekly_data(self, payload):
        if self.save_error is not None:
            raise self.save_error
        self.saved.append(payload)
        return {"status": "success"}


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def week() -> WeekSelection:
    return WeekSelection(start_date=WEEK_START, week_number=42)


@pytest.fixture()
def providers() -> ProviderConfig:
    return ProviderConfig.from_payload([{"provider_name": "Door Dash"}, {"provider_name": "Uber Eats"}])


def _existing_days(budgets, open_flags=None, start: date = WEEK_START) -> List[DayRecord]:
    open_flags = open_flags or [True] * len(budgets)
    week = WeekSelection(start_date=start)
    records = []
    for day, budget, is_open in zip(week.dates(), budgets, open_flags):
        record = DayRecord.blank(day, ProviderConfig(), is_open=is_open)
        record.budgeted_sales = Decimal(str(budget))
        records.append(record)
    return records


@pytest.fixture()
def existing_days():
    """Factory for saved-week records with the given per-day budgets."""
    return _existing_days


@pytest.fixture()
def session_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
async def app(session_gateway: FakeGateway) -> FastAPI:
    app = FastAPI()
    app.include_router(health.router, tags=["Health"])
    app.include_router(weekly_entry.router, prefix="/api/v1/weekly-entry", tags=["Weekly Sales Entry"])
    app.state.entry_sessions = EntrySessionService(
        lambda: session_gateway,
        today=lambda: TODAY_OUTSIDE_WEEK,
        debounce_seconds=0.01,
        labor_prompt_delay=0.01,
        budget_notice_delay=0.01,
    )
    yield app
    app.state.entry_sessions.close_all()


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
