"""
Persistence boundary for a user's book.

The engine never writes; the planner's commitment operations go through a
GoalRepository so that a goal change and its sibling rebalance land as one
unit. InMemoryRepository is the reference implementation (and the one the
CLI and tests use).
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterable, Iterator, List, Optional

from core.records import Book, ExpenseEvent, Goal, IncomeSource


class GoalRepository:
    """Interface for the store that owns incomes, expenses and goals."""

    def book(self) -> Book:
        raise NotImplementedError

    def add_goal(self, goal: Goal) -> Goal:
        """Persist a new goal and return it with its assigned id."""
        raise NotImplementedError

    def save_goals(self, goals: Iterable[Goal]) -> None:
        """Bulk-replace existing goals matched by id."""
        raise NotImplementedError

    def remove_goal(self, goal_id: int) -> Goal:
        raise NotImplementedError

    def transaction(self):
        """Context manager: all writes inside commit together or not at all."""
        raise NotImplementedError


class InMemoryRepository(GoalRepository):
    def __init__(self, book: Optional[Book] = None):
        book = book or Book()
        self._incomes: List[IncomeSource] = list(book.incomes)
        self._expenses: List[ExpenseEvent] = list(book.expenses)
        self._goals: Dict[int, Goal] = {}
        self._next_id = 1
        for g in book.goals:
            self._store_new(g)

    def _store_new(self, goal: Goal) -> Goal:
        if goal.id is None:
            goal = replace(goal, id=self._next_id)
        if goal.id in self._goals:
            raise ValueError(f"Goal id {goal.id!r} already exists.")
        self._goals[goal.id] = goal
        self._next_id = max(self._next_id, int(goal.id) + 1)
        return goal

    def book(self) -> Book:
        return Book(
            incomes=tuple(self._incomes),
            expenses=tuple(self._expenses),
            goals=tuple(self._goals.values()),
        )

    def add_goal(self, goal: Goal) -> Goal:
        return self._store_new(goal)

    def save_goals(self, goals: Iterable[Goal]) -> None:
        for g in goals:
            if g.id not in self._goals:
                raise KeyError(f"No goal with id {g.id!r}")
            self._goals[g.id] = g

    def remove_goal(self, goal_id: int) -> Goal:
        try:
            return self._goals.pop(goal_id)
        except KeyError:
            raise KeyError(f"No goal with id {goal_id!r}") from None

    @contextmanager
    def transaction(self) -> Iterator["InMemoryRepository"]:
        snapshot = (dict(self._goals), self._next_id)
        try:
            yield self
        except BaseException:
            self._goals, self._next_id = snapshot
            raise
