"""
DOMAIN MODELS - LABOR RATE

Tracks where the current average hourly rate came from.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .entities import LaborRateSource


@dataclass(frozen=True)
class LaborRateState:
    """
    Tagged rate value. `rate` is None exactly when `source` is UNSET.
    """
    source: LaborRateSource = LaborRateSource.UNSET
    rate: Optional[Decimal] = None

    def __post_init__(self):
        if (self.source == LaborRateSource.UNSET) != (self.rate is None):
            raise ValueError("rate must be set for every source except UNSET")

    @property
    def is_set(self) -> bool:
        return self.rate is not None

    @staticmethod
    def unset() -> "LaborRateState":
        return LaborRateState()

    @staticmethod
    def from_prior_week(rate: Decimal) -> "LaborRateState":
        return LaborRateState(LaborRateSource.FROM_PRIOR_WEEK, rate)

    @staticmethod
    def from_current_entry(rate: Decimal) -> "LaborRateState":
        return LaborRateState(LaborRateSource.FROM_CURRENT_ENTRY, rate)

    @staticmethod
    def user_override(rate: Decimal) -> "LaborRateState":
        return LaborRateState(LaborRateSource.USER_OVERRIDE, rate)
