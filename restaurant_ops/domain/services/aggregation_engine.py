"""
AGGREGATION ENGINE
Derive weekly totals and per-day metrics from DayRecords

RESPONSIBILITIES:
- Sum every DayRecord field across the seven days
- Per-channel sums driven by ProviderConfig (no per-channel code)
- Variance %, average ticket and net sales

RULES:
❌ No I/O
❌ No mutation of the records
✅ Pure calculation
✅ Order-independent sums
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence

from restaurant_ops.domain.models import DayRecord, ProviderConfig, WeeklyTotals
from restaurant_ops.utils.money import ZERO


class AggregationEngine:
    """
    Aggregation Engine
    Every method is referentially transparent
    """

    @staticmethod
    def variance_percent(budget: Decimal, actual: Decimal) -> Decimal:
        """
        Budget variance in percent

        Formula: ((actual - budget) / budget) * 100, 0 when budget is 0
        """
        if budget == ZERO:
            return Decimal("0.00")
        change = ((actual - budget) / budget) * Decimal("100")
        return change.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @staticmethod
    def average_ticket(net_sales: Decimal, ticket_count: int) -> int:
        """Net sales per ticket rounded half-up to a whole amount; 0 without tickets"""
        if ticket_count == 0:
            return 0
        return int((net_sales / Decimal(ticket_count)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @staticmethod
    def net_sales(day: DayRecord, providers: Optional[ProviderConfig] = None) -> Decimal:
        """
        Sum of all channel amounts for one day

        With `providers`, only configured channels (base + third party)
        count; otherwise every stored channel does.
        """
        if providers is None:
            amounts: Iterable[Decimal] = day.actual_sales_by_source.values()
        else:
            amounts = (day.actual_sales_by_source.get(channel_id, ZERO) for channel_id in providers.channel_ids)
        return sum(amounts, ZERO)

    @classmethod
    def compute_weekly_totals(cls, days: Sequence[DayRecord], providers: ProviderConfig) -> WeeklyTotals:
        """
        Calculate the weekly block

        Open and closed days are summed alike; closed days contribute
        whatever is stored (normally zero).
        """
        budgeted = ZERO
        tickets = 0
        by_source = {channel_id: ZERO for channel_id in providers.channel_ids}
        variance_by_date = {}

        for day in days:
            budgeted += day.budgeted_sales
            tickets += day.ticket_count
            for channel_id in by_source:
                by_source[channel_id] += day.actual_sales_by_source.get(channel_id, ZERO)
            variance_by_date[day.date] = cls.variance_percent(
                day.budgeted_sales, cls.net_sales(day, providers)
            )

        net_sales = sum(by_source.values(), ZERO)

        return WeeklyTotals(
            budgeted_sales=budgeted,
            actual_sales_by_source=by_source,
            ticket_count=tickets,
            net_sales_actual=net_sales,
            average_ticket=cls.average_ticket(net_sales, tickets),
            variance_percent=cls.variance_percent(budgeted, net_sales),
            variance_by_date=variance_by_date,
        )
