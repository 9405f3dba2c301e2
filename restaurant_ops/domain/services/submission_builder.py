"""
SUBMISSION BUILDER
Turn the week's DayRecords into the save payload and hand it to the backend

Wire contract (field names, two-decimal currency strings):

    {
      "week_start": "YYYY-MM-DD",
      "section": "Sales Performance",
      "section_data": {
        "weekly": {"sales_budget": "700.00", "actual_sales_in_store": ..., "daily_tickets": 42, ...},
        "daily": [{"date": ..., "day": "Monday", "is_open": 1, ..., "net_sales_actual": "95.00"}, ...]
      }
    }
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from restaurant_ops.domain.errors import SubmissionError, ValidationCode, ValidationError
from restaurant_ops.domain.models import (
    DayRecord,
    LaborRateState,
    ProviderConfig,
    WeeklyTotals,
    WeekSelection,
)
from restaurant_ops.domain.services.aggregation_engine import AggregationEngine
from restaurant_ops.utils.money import ZERO, format_currency

logger = logging.getLogger(__name__)

SALES_SECTION = "Sales Performance"

SaveWeeklyData = Callable[[Dict[str, Any]], Awaitable[Any]]


class SubmissionBuilder:
    def __init__(self, engine: Optional[AggregationEngine] = None):
        self._engine = engine or AggregationEngine()

    def build(
        self,
        week: Optional[WeekSelection],
        days: Sequence[DayRecord],
        providers: ProviderConfig,
        totals: Optional[WeeklyTotals] = None,
        labor_rate: Optional[LaborRateState] = None,
    ) -> Dict[str, Any]:
        """
        Build the save payload.

        Raises:
            ValidationError: no week/days, or no day carries a budget
        """
        if week is None or not days:
            raise ValidationError(ValidationCode.MISSING_WEEK_DATA)
        if not any(day.budgeted_sales > ZERO for day in days):
            raise ValidationError(ValidationCode.NO_BUDGETED_SALES)

        if totals is None:
            totals = self._engine.compute_weekly_totals(days, providers)

        return {
            "week_start": week.start_date.isoformat(),
            "section": SALES_SECTION,
            "section_data": {
                "weekly": self._weekly_block(totals, providers, labor_rate),
                "daily": [self._daily_entry(day, providers) for day in days],
            },
        }

    def _weekly_block(
        self,
        totals: WeeklyTotals,
        providers: ProviderConfig,
        labor_rate: Optional[LaborRateState],
    ) -> Dict[str, Any]:
        weekly: Dict[str, Any] = {"sales_budget": format_currency(totals.budgeted_sales)}
        for channel in providers.channels:
            weekly[channel.wire_key] = format_currency(totals.actual_sales_by_source.get(channel.id, ZERO))
        weekly["net_sales_actual"] = format_currency(totals.net_sales_actual)
        weekly["daily_tickets"] = totals.ticket_count
        if totals.ticket_count > 0:
            weekly["average_daily_ticket"] = format_currency(totals.net_sales_actual / totals.ticket_count)
        else:
            weekly["average_daily_ticket"] = "0.00"
        if labor_rate is not None and labor_rate.is_set:
            weekly["average_hourly_rate"] = format_currency(labor_rate.rate)
        return weekly

    def _daily_entry(self, day: DayRecord, providers: ProviderConfig) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "date": day.date.isoformat(),
            "day": day.day_name,
            "is_open": 1 if day.is_open else 0,
            "sales_budget": format_currency(day.budgeted_sales),
        }
        for channel in providers.channels:
            entry[channel.wire_key] = format_currency(day.actual_sales_by_source.get(channel.id, ZERO))
        entry["daily_tickets"] = day.ticket_count
        entry["net_sales_actual"] = format_currency(self._engine.net_sales(day, providers))
        return entry

    @staticmethod
    def parse_daily(payload: Mapping[str, Any], providers: ProviderConfig) -> List[DayRecord]:
        """Read the daily entries of a saved payload back into DayRecords."""
        section = payload.get("section_data") or {}
        return [DayRecord.from_wire(entry, providers) for entry in section.get("daily") or []]

    async def save(self, payload: Dict[str, Any], save_weekly_data: SaveWeeklyData) -> Any:
        """
        Invoke the save collaborator.

        Raises:
            SubmissionError: the save failed; message is surfaced verbatim
        """
        try:
            response = await save_weekly_data(payload)
        except SubmissionError:
            raise
        except Exception as exc:
            raise SubmissionError(str(exc) or exc.__class__.__name__) from exc
        logger.info("Saved weekly sales for week starting %s", payload.get("week_start"))
        return response
