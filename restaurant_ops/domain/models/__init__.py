"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    DayField,
    Gate,
    GateAction,
    LaborRateSource,
    PromptKind,
    SubmitStatus,
)
from .labor import LaborRateState
from .sales import (
    APP_ONLINE,
    BASE_CHANNELS,
    IN_STORE,
    DayRecord,
    EditRejected,
    Provider,
    ProviderConfig,
    WeeklyTotals,
    WeekSelection,
)
from .summary import Category, CategorySummary

__all__ = [
    # Enums
    "DayField",
    "Gate",
    "GateAction",
    "LaborRateSource",
    "PromptKind",
    "SubmitStatus",

    # Entities
    "APP_ONLINE",
    "BASE_CHANNELS",
    "IN_STORE",
    "Category",
    "CategorySummary",
    "DayRecord",
    "EditRejected",
    "LaborRateState",
    "Provider",
    "ProviderConfig",
    "WeeklyTotals",
    "WeekSelection",
]
