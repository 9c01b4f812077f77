"""
Commitment operations — insert, delete and purchase goals.

Each operation applies the goal change and the Rebalancer's sibling updates
inside one repository transaction. Inserting a target-date goal can also
move stored targets that no longer hold (AllocationConfig.auto_adjust_target_dates).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional

from core.config import AllocationConfig
from core.records import Goal, PurchaseRecord, Sequential, TargetDate
from core.schema import POLICY_SEQUENTIAL, POLICY_TARGET_DATE
from core.utils import round_money
from data_prep.validators import GoalValidationError, validate_goal
from engine.rebalancer import normalize_insert_order, rebalance_for_delete, rebalance_for_insert
from engine.runner import run_allocation

from .repository import GoalRepository


@dataclass
class CommitResult:
    goal: Goal
    sibling_updates: List[Goal] = field(default_factory=list)
    adjusted_targets: List[Goal] = field(default_factory=list)


def _slipped_targets(repo: GoalRepository, config: AllocationConfig) -> List[Goal]:
    """Target-date goals whose earliest feasible completion now lies past their target."""
    book = repo.book()
    report = run_allocation(book.incomes, book.expenses, book.goals, config)
    moved: List[Goal] = []
    for outcome in report.allocations:
        if not outcome.adjusted or outcome.goal_id is None:
            continue
        goal = book.goal(outcome.goal_id)
        if outcome.completion_date > goal.policy.target_date:
            moved.append(goal.with_policy(TargetDate(target_date=outcome.completion_date)))
    return moved


def insert_goal(
    repo: GoalRepository,
    goal: Goal,
    config: Optional[AllocationConfig] = None,
) -> CommitResult:
    """
    Persist `goal`, rebalancing its unpurchased siblings first.

    Sequential positions past the end are clamped to N+1 so orders stay
    gap-free; positions below 1 fail validation.
    Raises GoalValidationError if the goal is malformed.
    """
    cfg = config or AllocationConfig()
    check = validate_goal(goal)
    if not check.is_valid:
        raise GoalValidationError(check)

    with repo.transaction():
        book = repo.book()
        if goal.kind == POLICY_SEQUENTIAL:
            goal = goal.with_policy(Sequential(order=normalize_insert_order(book.goals, goal.policy.order)))

        rebalance = rebalance_for_insert(book.goals, goal)
        repo.save_goals(rebalance.changed)
        saved = repo.add_goal(goal)

        adjusted: List[Goal] = []
        if saved.kind == POLICY_TARGET_DATE and cfg.auto_adjust_target_dates:
            adjusted = _slipped_targets(repo, cfg)
            repo.save_goals(adjusted)

    logging.info(
        f"[Goals] inserted {saved.name!r} ({saved.kind}); "
        f"{len(rebalance.changed)} siblings rebalanced, {len(adjusted)} targets moved"
    )
    return CommitResult(goal=saved, sibling_updates=rebalance.changed, adjusted_targets=adjusted)


def delete_goal(
    repo: GoalRepository,
    goal_id: int,
    config: Optional[AllocationConfig] = None,
) -> CommitResult:
    """Remove a goal; unpurchased siblings of the same policy are rebalanced."""
    with repo.transaction():
        book = repo.book()
        goal = book.goal(goal_id)
        changed: List[Goal] = []
        if not goal.purchased:
            changed = rebalance_for_delete(book.goals, goal).changed
            repo.save_goals(changed)
        repo.remove_goal(goal_id)

    logging.info(f"[Goals] deleted {goal.name!r} ({goal.kind}); {len(changed)} siblings rebalanced")
    return CommitResult(goal=goal, sibling_updates=changed)


def mark_goal_purchased(
    repo: GoalRepository,
    goal_id: int,
    amount: Optional[float] = None,
    note: Optional[str] = None,
    at: Optional[datetime] = None,
) -> CommitResult:
    """
    Record a purchase and flag the goal purchased.
    The goal leaves the unpurchased set, so siblings are rebalanced as on delete.
    """
    with repo.transaction():
        book = repo.book()
        goal = book.goal(goal_id)
        if goal.purchased:
            raise ValueError(f"Goal {goal.name!r} is already purchased.")

        paid = round_money(goal.remaining_cost if amount is None else float(amount))
        if paid <= 0:
            raise ValueError("Purchase amount must be greater than 0.")
        record = PurchaseRecord(amount=paid, purchased_at=at or datetime.now(), note=note)

        changed = rebalance_for_delete(book.goals, goal).changed
        purchased = replace(goal, purchased=True, purchases=goal.purchases + (record,))
        repo.save_goals(changed + [purchased])

    logging.info(f"[Goals] purchased {goal.name!r} for {paid:.2f}; {len(changed)} siblings rebalanced")
    return CommitResult(goal=purchased, sibling_updates=changed)
