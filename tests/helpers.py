import copy
import json
from datetime import date
from pathlib import Path

from core.config import AllocationConfig
from core.records import (
    ExpenseEvent,
    Frequency,
    Goal,
    IncomeSource,
    Percentage,
    Sequential,
    TargetDate,
)

TODAY = date(2026, 10, 1)
EXAMPLE_BOOK = Path(__file__).resolve().parent.parent / "examples" / "book.json"


def make_config(**overrides) -> AllocationConfig:
    overrides.setdefault("today", TODAY)
    return AllocationConfig(**overrides)


def monthly_income(amount: float, day: int, id: int = 1, start_date: date = None) -> IncomeSource:
    return IncomeSource(
        id=id,
        description=f"Paycheck ({day}th)",
        amount=amount,
        frequency=Frequency.SPECIFIC_DATE,
        day_of_month=day,
        start_date=start_date,
    )


def last_day_income(amount: float, id: int = 1) -> IncomeSource:
    return IncomeSource(id=id, description="Paycheck (month end)", amount=amount, frequency=Frequency.LAST_DAY)


def biweekly_income(amount: float, start_date: date, id: int = 1) -> IncomeSource:
    return IncomeSource(
        id=id,
        description="Biweekly",
        amount=amount,
        frequency=Frequency.BIWEEKLY,
        start_date=start_date,
    )


def one_time_income(amount: float, when: date, id: int = 1) -> IncomeSource:
    return IncomeSource(
        id=id,
        description="Gift",
        amount=amount,
        frequency=Frequency.ONE_TIME,
        one_time_date=when,
    )


def expense(amount: float, when: date, id: int = 1) -> ExpenseEvent:
    return ExpenseEvent(id=id, description="Bill", amount=amount, date=when)


def target_goal(name: str, cost: float, when: date, id: int = None) -> Goal:
    return Goal(id=id, name=name, cost=cost, policy=TargetDate(target_date=when))


def sequential_goal(name: str, cost: float, order: int, id: int = None) -> Goal:
    return Goal(id=id, name=name, cost=cost, policy=Sequential(order=order))


def percentage_goal(name: str, cost: float, weight: float, id: int = None) -> Goal:
    return Goal(id=id, name=name, cost=cost, policy=Percentage(weight=weight))


def write_book(tmp_path: Path, data: dict, filename: str = "book.json") -> Path:
    path = tmp_path / filename
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def clone_book(data: dict) -> dict:
    return copy.deepcopy(data)
