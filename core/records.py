"""
Domain records: income sources, expenses, goals and purchases.

Goals carry a closed policy variant (TargetDate | Sequential | Percentage).
The engine dispatches on the variant once per goal; there is no behaviour
attached to the policy classes themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple, Union

from .schema import POLICY_PERCENTAGE, POLICY_SEQUENTIAL, POLICY_TARGET_DATE


class Frequency(str, Enum):
    ONE_TIME = "one_time"
    SPECIFIC_DATE = "specific_date"
    LAST_DAY = "last_day"
    BIWEEKLY = "biweekly"


@dataclass(frozen=True)
class IncomeSource:
    """
    A recurring (or one-off) income.

    Which optional field is required depends on the frequency:
      specific_date -> day_of_month (start_date optionally anchors the first month)
      last_day      -> nothing (start_date optional)
      biweekly      -> start_date
      one_time      -> one_time_date
    """

    description: str
    amount: float
    frequency: Frequency
    day_of_month: Optional[int] = None
    start_date: Optional[date] = None
    one_time_date: Optional[date] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class ExpenseEvent:
    description: str
    amount: float
    date: date
    id: Optional[int] = None


@dataclass(frozen=True)
class TargetDate:
    target_date: date


@dataclass(frozen=True)
class Sequential:
    order: int


@dataclass(frozen=True)
class Percentage:
    weight: float


GoalPolicy = Union[TargetDate, Sequential, Percentage]


def policy_kind(policy: GoalPolicy) -> str:
    if isinstance(policy, TargetDate):
        return POLICY_TARGET_DATE
    if isinstance(policy, Sequential):
        return POLICY_SEQUENTIAL
    if isinstance(policy, Percentage):
        return POLICY_PERCENTAGE
    raise TypeError(f"Unknown goal policy: {policy!r}")


@dataclass(frozen=True)
class PurchaseRecord:
    amount: float
    purchased_at: datetime
    note: Optional[str] = None


@dataclass(frozen=True)
class Goal:
    """A wish-list item competing for future funds."""

    name: str
    cost: float
    policy: GoalPolicy
    purchased: bool = False
    purchases: Tuple[PurchaseRecord, ...] = ()
    id: Optional[int] = None

    @property
    def kind(self) -> str:
        return policy_kind(self.policy)

    @property
    def amount_saved(self) -> float:
        return float(sum(p.amount for p in self.purchases))

    @property
    def remaining_cost(self) -> float:
        return max(float(self.cost) - self.amount_saved, 0.0)

    def with_policy(self, policy: GoalPolicy) -> "Goal":
        return replace(self, policy=policy)


@dataclass(frozen=True)
class Book:
    """Everything one user owns that the engine reads."""

    incomes: Tuple[IncomeSource, ...] = ()
    expenses: Tuple[ExpenseEvent, ...] = ()
    goals: Tuple[Goal, ...] = ()

    def unpurchased(self, kind: Optional[str] = None) -> List[Goal]:
        return [
            g for g in self.goals
            if not g.purchased and (kind is None or g.kind == kind)
        ]

    def goal(self, goal_id: int) -> Goal:
        for g in self.goals:
            if g.id == goal_id:
                return g
        raise KeyError(f"No goal with id {goal_id!r}")
