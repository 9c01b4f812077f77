"""
Timeline construction and the ledger snapshot threaded between allocation phases.

Key design principles:
  1. Income occurrences are positive, expenses and allocation draws negative
  2. Order within a day is insertion order and carries no meaning; only the
     end-of-day net balance is ever read
  3. A Ledger is an immutable net-by-date snapshot; withdrawing returns a new
     Ledger, so each phase sees exactly the draws committed before it
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Sequence

import pandas as pd

from core.records import ExpenseEvent, IncomeSource
from core.schema import TIMELINE_COLUMNS

from .events import EventKind, FundingEntry, SignedEvent
from .recurrence import occurrences


def future_expenses(
    expenses: Iterable[ExpenseEvent],
    *,
    today: date,
    horizon_end: date,
) -> List[ExpenseEvent]:
    """Expenses dated inside [today, horizon_end], oldest first (stable for same-day)."""
    kept = [e for e in expenses if today <= e.date <= horizon_end]
    return sorted(kept, key=lambda e: e.date)


def build_timeline(
    incomes: Sequence[IncomeSource],
    expenses: Sequence[ExpenseEvent],
    horizon_end: date,
    *,
    today: date,
) -> List[SignedEvent]:
    """
    Merge every income occurrence and every future expense into one
    date-ordered list of signed events.
    """
    events: List[SignedEvent] = []
    for income in incomes:
        for d in occurrences(income, horizon_end, today=today):
            events.append(
                SignedEvent(
                    date=d,
                    amount=float(income.amount),
                    kind=EventKind.INCOME,
                    source_id=income.id,
                    description=income.description,
                )
            )
    for expense in future_expenses(expenses, today=today, horizon_end=horizon_end):
        events.append(
            SignedEvent(
                date=expense.date,
                amount=-float(expense.amount),
                kind=EventKind.EXPENSE,
                source_id=expense.id,
                description=expense.description,
            )
        )
    # list.sort is stable: same-day events keep insertion order
    events.sort(key=lambda e: e.date)
    return events


def timeline_frame(events: Sequence[SignedEvent]) -> pd.DataFrame:
    """Tabular view of a timeline (one row per event)."""
    rows = [
        {
            "date": pd.Timestamp(e.date),
            "amount": e.amount,
            "kind": EventKind(e.kind).value,
            "source_id": e.source_id,
            "description": e.description,
        }
        for e in events
    ]
    return pd.DataFrame(rows, columns=list(TIMELINE_COLUMNS))


def net_by_date(events: Iterable[SignedEvent]) -> pd.Series:
    """Signed sum of all events landing on each date, indexed by date ascending."""
    events = list(events)
    if not events:
        return pd.Series([], index=pd.DatetimeIndex([]), dtype=float)
    s = pd.Series(
        [float(e.amount) for e in events],
        index=pd.DatetimeIndex([pd.Timestamp(e.date) for e in events]),
        dtype=float,
    )
    return s.groupby(level=0).sum().sort_index()


@dataclass(frozen=True, eq=False)
class Ledger:
    """Immutable net-by-date snapshot of funds still available."""

    net: pd.Series

    @classmethod
    def from_events(cls, events: Iterable[SignedEvent]) -> "Ledger":
        return cls(net=net_by_date(events))

    @classmethod
    def empty(cls) -> "Ledger":
        return cls.from_events([])

    @property
    def is_empty(self) -> bool:
        return self.net.empty

    @property
    def dates(self) -> List[date]:
        return [ts.date() for ts in self.net.index]

    @property
    def total(self) -> float:
        return float(self.net.sum()) if not self.net.empty else 0.0

    def balances(self) -> pd.Series:
        """End-of-day running balance per date."""
        return self.net.cumsum()

    def net_on(self, d: date) -> float:
        return float(self.net.get(pd.Timestamp(d), 0.0))

    def withdraw(self, d: date, amount: float) -> "Ledger":
        draw = pd.Series([-float(amount)], index=pd.DatetimeIndex([pd.Timestamp(d)]), dtype=float)
        return Ledger(net=self.net.add(draw, fill_value=0.0).sort_index())

    def withdraw_many(self, entries: Iterable[FundingEntry]) -> "Ledger":
        draws = [SignedEvent(date=e.date, amount=-float(e.amount), kind=EventKind.DRAW) for e in entries]
        if not draws:
            return self
        return Ledger(net=self.net.add(net_by_date(draws), fill_value=0.0).sort_index())

    def scaled(self, weight: float) -> "Ledger":
        return Ledger(net=self.net * float(weight))

    def until(self, d: date) -> "Ledger":
        return Ledger(net=self.net[self.net.index <= pd.Timestamp(d)])
