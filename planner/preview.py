"""
What-if preview: run the full allocation as if a goal had been added,
without writing anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from core.config import AllocationConfig
from core.records import Book, Goal, Sequential
from core.schema import POLICY_PERCENTAGE, POLICY_SEQUENTIAL
from engine.events import AllocationOutcome
from engine.rebalancer import insert_percentage, insert_sequential, normalize_insert_order
from engine.runner import AllocationReport, run_allocation


@dataclass
class PreviewResult:
    report: AllocationReport
    outcome: AllocationOutcome
    sequential_override: Optional[List[Goal]] = None
    percentage_override: Optional[List[Goal]] = None


def preview_goal(book: Book, goal: Goal, config: Optional[AllocationConfig] = None) -> PreviewResult:
    """
    Allocate `book` plus the hypothetical `goal`.

    Sequential siblings are shown bumped and percentage siblings rebalanced,
    exactly as insert_goal would leave them.
    """
    sequential_override = None
    percentage_override = None

    if goal.kind == POLICY_SEQUENTIAL:
        goal = goal.with_policy(Sequential(order=normalize_insert_order(book.goals, goal.policy.order)))
        sequential_override = insert_sequential(book.goals, goal.policy.order).goals
    elif goal.kind == POLICY_PERCENTAGE:
        percentage_override = insert_percentage(book.goals, goal.policy.weight).goals

    report = run_allocation(
        book.incomes,
        book.expenses,
        book.goals,
        config,
        hypothetical_goals=[goal],
        sequential_override=sequential_override,
        percentage_override=percentage_override,
    )
    return PreviewResult(
        report=report,
        outcome=report.hypothetical[0],
        sequential_override=sequential_override,
        percentage_override=percentage_override,
    )
