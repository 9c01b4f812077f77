"""
Sibling rebalancing when a goal enters or leaves the unpurchased set.

Only unpurchased goals of the same policy are touched:
  sequential insert   orders >= desired shift up by one (applied highest first)
  sequential delete   orders > deleted shift down by one (applied lowest first)
  percentage insert   existing weights compressed into (100 - p), proportionally
  percentage delete   the freed weight is handed out proportionally

Everything here is pure: results are substitute collections the caller
either persists (planner) or feeds to a preview run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from core.records import Goal, Percentage, Sequential
from core.schema import POLICY_PERCENTAGE, POLICY_SEQUENTIAL
from core.utils import round_money


@dataclass(frozen=True)
class RebalanceResult:
    """
    goals:   the full substitute collection for the policy, in input order
    changed: the goals whose order/weight moved, in the order to apply them
    """
    goals: List[Goal] = field(default_factory=list)
    changed: List[Goal] = field(default_factory=list)


def _siblings(goals: Sequence[Goal], kind: str, exclude_id: Optional[int] = None) -> List[Goal]:
    return [
        g for g in goals
        if not g.purchased and g.kind == kind and (exclude_id is None or g.id != exclude_id)
    ]


def normalize_insert_order(goals: Sequence[Goal], desired_order: int) -> int:
    """Clamp a requested position into 1..N+1 so orders stay gap-free."""
    n = len(_siblings(goals, POLICY_SEQUENTIAL))
    return min(max(int(desired_order), 1), n + 1)


def insert_sequential(goals: Sequence[Goal], desired_order: int) -> RebalanceResult:
    siblings = _siblings(goals, POLICY_SEQUENTIAL)
    out: List[Goal] = []
    changed: List[Goal] = []
    for g in siblings:
        if g.policy.order >= desired_order:
            g = g.with_policy(Sequential(order=g.policy.order + 1))
            changed.append(g)
        out.append(g)
    changed.sort(key=lambda g: g.policy.order, reverse=True)
    return RebalanceResult(goals=out, changed=changed)


def delete_sequential(goals: Sequence[Goal], deleted: Goal) -> RebalanceResult:
    siblings = _siblings(goals, POLICY_SEQUENTIAL, exclude_id=deleted.id)
    removed_order = deleted.policy.order
    out: List[Goal] = []
    changed: List[Goal] = []
    for g in siblings:
        if g.policy.order > removed_order:
            g = g.with_policy(Sequential(order=g.policy.order - 1))
            changed.append(g)
        out.append(g)
    changed.sort(key=lambda g: g.policy.order)
    return RebalanceResult(goals=out, changed=changed)


def insert_percentage(goals: Sequence[Goal], new_weight: float) -> RebalanceResult:
    siblings = _siblings(goals, POLICY_PERCENTAGE)
    total = sum(float(g.policy.weight) for g in siblings)
    if not siblings or total <= 0:
        return RebalanceResult(goals=siblings, changed=[])

    room = 100.0 - float(new_weight)
    out = [
        g.with_policy(Percentage(weight=round_money(room * (float(g.policy.weight) / total))))
        for g in siblings
    ]
    changed = [new for old, new in zip(siblings, out) if new.policy != old.policy]
    return RebalanceResult(goals=out, changed=changed)


def delete_percentage(goals: Sequence[Goal], deleted: Goal) -> RebalanceResult:
    siblings = _siblings(goals, POLICY_PERCENTAGE, exclude_id=deleted.id)
    remaining_total = sum(float(g.policy.weight) for g in siblings)
    if not siblings or remaining_total <= 0:
        return RebalanceResult(goals=siblings, changed=[])

    freed = float(deleted.policy.weight)
    out = [
        g.with_policy(
            Percentage(weight=round_money(float(g.policy.weight) + freed * (float(g.policy.weight) / remaining_total)))
        )
        for g in siblings
    ]
    changed = [new for old, new in zip(siblings, out) if new.policy != old.policy]
    return RebalanceResult(goals=out, changed=changed)


def rebalance_for_insert(goals: Sequence[Goal], new_goal: Goal) -> RebalanceResult:
    """Sibling updates needed before `new_goal` joins `goals`."""
    if new_goal.kind == POLICY_SEQUENTIAL:
        return insert_sequential(goals, new_goal.policy.order)
    if new_goal.kind == POLICY_PERCENTAGE:
        return insert_percentage(goals, new_goal.policy.weight)
    return RebalanceResult()


def rebalance_for_delete(goals: Sequence[Goal], removed_goal: Goal) -> RebalanceResult:
    """Sibling updates needed once `removed_goal` leaves the unpurchased set."""
    if removed_goal.kind == POLICY_SEQUENTIAL:
        return delete_sequential(goals, removed_goal)
    if removed_goal.kind == POLICY_PERCENTAGE:
        return delete_percentage(goals, removed_goal)
    return RebalanceResult()
