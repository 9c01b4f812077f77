"""
Core package — records, configuration, schema constants and shared utilities.
No business logic lives here.
"""

from .config import AllocationConfig
from .records import (
    Book,
    ExpenseEvent,
    Frequency,
    Goal,
    GoalPolicy,
    IncomeSource,
    Percentage,
    PurchaseRecord,
    Sequential,
    TargetDate,
    policy_kind,
)
from .schema import PHASE_ORDER
from .utils import excel_round, round_money, require_columns

__all__ = [
    "AllocationConfig",
    "Book",
    "ExpenseEvent",
    "Frequency",
    "Goal",
    "GoalPolicy",
    "IncomeSource",
    "Percentage",
    "PurchaseRecord",
    "Sequential",
    "TargetDate",
    "policy_kind",
    "PHASE_ORDER",
    "excel_round",
    "round_money",
    "require_columns",
]
