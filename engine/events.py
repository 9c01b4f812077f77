"""
Transient engine artifacts — signed ledger events, funding entries and
per-goal allocation outcomes. Recomputed on every call, never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional


class EventKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    DRAW = "draw"


@dataclass(frozen=True)
class SignedEvent:
    """One cash movement: positive for income, negative for expenses and draws."""
    date: date
    amount: float
    kind: EventKind
    source_id: Optional[int] = None
    description: str = ""


@dataclass(frozen=True)
class FundingEntry:
    """A slice of money attributed to a goal on a given date."""
    date: date
    amount: float
    income_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"date": self.date.isoformat(), "amount": self.amount}
        if self.income_id is not None:
            out["income_id"] = self.income_id
        return out


@dataclass
class AllocationOutcome:
    """Funding result for a single goal."""
    goal_id: Optional[int]
    goal_name: str
    policy: str
    cost: float
    remaining_cost: float
    feasible: bool
    amount_allocated: float = 0.0
    funded_by: List[FundingEntry] = field(default_factory=list)
    completion_date: Optional[date] = None
    shortfall: float = 0.0

    # target-date goals only
    adjusted: bool = False
    original_target: Optional[date] = None

    # percentage goals only
    percentage: Optional[float] = None

    hypothetical: bool = False
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "goal_id": self.goal_id,
            "goal_name": self.goal_name,
            "policy": self.policy,
            "cost": self.cost,
            "remaining_cost": self.remaining_cost,
            "feasible": self.feasible,
            "amount_allocated": self.amount_allocated,
            "funded_by": [f.to_dict() for f in self.funded_by],
            "completion_date": self.completion_date.isoformat() if self.completion_date else None,
            "shortfall": self.shortfall,
            "adjusted": self.adjusted,
            "original_target": self.original_target.isoformat() if self.original_target else None,
            "percentage": self.percentage,
            "hypothetical": self.hypothetical,
            "warning": self.warning,
        }
