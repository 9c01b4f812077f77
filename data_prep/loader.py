"""
Load a user's book (incomes, expenses, goals) from JSON or CSV.

Shape checks happen here, at construction, through pydantic models; the
engine downstream assumes every record is well formed.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import List, Literal, Optional, Union

import pandas as pd
from pydantic import BaseModel, Field, ValidationError, model_validator

from core.records import (
    Book,
    ExpenseEvent,
    Frequency,
    Goal,
    IncomeSource,
    Percentage,
    PurchaseRecord,
    Sequential,
    TargetDate,
)
from core.schema import POLICY_PERCENTAGE, POLICY_SEQUENTIAL, POLICY_TARGET_DATE
from core.utils import require_columns


class BookLoadError(ValueError):
    """Raised when a book file cannot be parsed into records."""


class IncomeIn(BaseModel):
    id: Optional[int] = None
    description: str = Field(min_length=1)
    amount: float = Field(gt=0)
    frequency: Frequency
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    start_date: Optional[date] = None
    one_time_date: Optional[date] = None

    @model_validator(mode="after")
    def _rule_fields(self) -> "IncomeIn":
        if self.frequency == Frequency.SPECIFIC_DATE and self.day_of_month is None:
            raise ValueError("day_of_month is required for specific_date incomes")
        if self.frequency == Frequency.BIWEEKLY and self.start_date is None:
            raise ValueError("start_date is required for biweekly incomes")
        if self.frequency == Frequency.ONE_TIME and self.one_time_date is None:
            raise ValueError("one_time_date is required for one_time incomes")
        return self

    def to_record(self) -> IncomeSource:
        return IncomeSource(
            id=self.id,
            description=self.description,
            amount=self.amount,
            frequency=self.frequency,
            day_of_month=self.day_of_month,
            start_date=self.start_date,
            one_time_date=self.one_time_date,
        )


class ExpenseIn(BaseModel):
    id: Optional[int] = None
    description: str = Field(min_length=1)
    amount: float = Field(gt=0)
    date: date

    def to_record(self) -> ExpenseEvent:
        return ExpenseEvent(id=self.id, description=self.description, amount=self.amount, date=self.date)


class PurchaseIn(BaseModel):
    amount: float = Field(gt=0)
    purchased_at: datetime
    note: Optional[str] = None


class GoalIn(BaseModel):
    id: Optional[int] = None
    name: str = Field(min_length=1)
    cost: float = Field(gt=0)
    policy: Literal["target_date", "sequential", "percentage"]
    target_date: Optional[date] = None
    order: Optional[int] = Field(default=None, ge=1)
    percentage: Optional[float] = Field(default=None, gt=0, le=100)
    purchased: bool = False
    purchases: List[PurchaseIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def _policy_fields(self) -> "GoalIn":
        required = {
            POLICY_TARGET_DATE: ("target_date", self.target_date),
            POLICY_SEQUENTIAL: ("order", self.order),
            POLICY_PERCENTAGE: ("percentage", self.percentage),
        }
        name, value = required[self.policy]
        if value is None:
            raise ValueError(f"{name} is required for {self.policy} goals")
        return self

    def to_record(self) -> Goal:
        if self.policy == POLICY_TARGET_DATE:
            policy: Union[TargetDate, Sequential, Percentage] = TargetDate(target_date=self.target_date)
        elif self.policy == POLICY_SEQUENTIAL:
            policy = Sequential(order=self.order)
        else:
            policy = Percentage(weight=self.percentage)
        return Goal(
            id=self.id,
            name=self.name,
            cost=self.cost,
            policy=policy,
            purchased=self.purchased,
            purchases=tuple(
                PurchaseRecord(amount=p.amount, purchased_at=p.purchased_at, note=p.note)
                for p in self.purchases
            ),
        )


class BookIn(BaseModel):
    incomes: List[IncomeIn] = Field(default_factory=list)
    expenses: List[ExpenseIn] = Field(default_factory=list)
    goals: List[GoalIn] = Field(default_factory=list)

    def to_record(self) -> Book:
        return Book(
            incomes=tuple(i.to_record() for i in self.incomes),
            expenses=tuple(e.to_record() for e in self.expenses),
            goals=tuple(g.to_record() for g in self.goals),
        )


def parse_book(data: dict) -> Book:
    try:
        return BookIn.model_validate(data).to_record()
    except ValidationError as exc:
        raise BookLoadError(str(exc)) from exc


def parse_goal(data: dict) -> Goal:
    """Single goal from a dict (e.g. a CLI preview argument)."""
    try:
        return GoalIn.model_validate(data).to_record()
    except ValidationError as exc:
        raise BookLoadError(str(exc)) from exc


def load_book(path: Union[str, Path]) -> Book:
    """Load a JSON book file: {"incomes": [...], "expenses": [...], "goals": [...]}."""
    text = Path(path).read_text(encoding="utf-8")
    try:
        return BookIn.model_validate_json(text).to_record()
    except ValidationError as exc:
        raise BookLoadError(f"{path}: {exc}") from exc


def load_expenses_csv(path: Union[str, Path]) -> List[ExpenseEvent]:
    """
    Load expenses from a CSV with columns description, amount, date (and
    optionally id). Rows go through the same checks as the JSON loader.
    """
    df = pd.read_csv(path)
    require_columns(df, ["description", "amount", "date"])
    df = df.astype(object).where(df.notna(), None)
    try:
        return [ExpenseIn.model_validate(row).to_record() for row in df.to_dict(orient="records")]
    except ValidationError as exc:
        raise BookLoadError(f"{path}: {exc}") from exc
