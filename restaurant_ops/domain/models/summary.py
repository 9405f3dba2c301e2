"""
DOMAIN MODELS - CATEGORY SUMMARY

Category breakdown shown in the budget-vs-actual pie.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Category:
    """Signed contribution: positive helps profit, negative hurts it."""
    label: str
    value: Decimal


@dataclass(frozen=True)
class CategorySummary:
    """
    Latest breakdown for a date range.

    `is_fallback` marks the locally computed sales/labor/food cost split
    used when the server fails or returns no categories.
    """
    range_key: str
    categories: Tuple[Category, ...]
    payload: Optional[Dict[str, Any]] = field(default=None, compare=False)
    is_fallback: bool = False
