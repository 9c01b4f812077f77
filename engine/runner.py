"""
Allocation runner — orchestrates the three allocation phases over one timeline.

Phase order is fixed:
  1. target-date goals, earliest target first
  2. sequential goals, by order
  3. percentage goals, together, against whatever is left

The residual ledger (original events minus every draw committed so far) is
passed from goal to goal and phase to phase as a value; nothing is shared
between calls, so the same inputs always produce the same report.

Preview mode runs the identical phases with hypothetical goals added and,
optionally, the sequential/percentage collections swapped for rebalanced
substitutes. Nothing passed in is mutated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core.config import AllocationConfig
from core.records import ExpenseEvent, Goal, IncomeSource
from core.schema import PHASE_ORDER, POLICY_PERCENTAGE, POLICY_SEQUENTIAL, POLICY_TARGET_DATE
from core.utils import round_money

from .allocators import (
    IncomePool,
    allocate_percentage,
    allocate_sequential,
    allocate_target_date,
    percentage_weights,
)
from .cashflow import Ledger, build_timeline, future_expenses
from .events import AllocationOutcome, EventKind, SignedEvent


@dataclass
class AllocationReport:
    """Everything one allocation run produces."""
    total_income: float
    total_expenses: float
    allocations: List[AllocationOutcome]
    expenses: List[ExpenseEvent]
    remaining_funds: float
    horizon_end: date
    timeline: List[SignedEvent] = field(default_factory=list)
    residual: Ledger = field(default_factory=Ledger.empty)

    def outcome_for(self, goal_id: Optional[int]) -> AllocationOutcome:
        for a in self.allocations:
            if a.goal_id == goal_id:
                return a
        raise KeyError(f"No allocation for goal {goal_id!r}")

    @property
    def hypothetical(self) -> List[AllocationOutcome]:
        return [a for a in self.allocations if a.hypothetical]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "horizon_end": self.horizon_end.isoformat(),
            "total_income": self.total_income,
            "total_expenses": self.total_expenses,
            "remaining_funds": self.remaining_funds,
            "allocations": [a.to_dict() for a in self.allocations],
            "expenses": [
                {"id": e.id, "description": e.description, "amount": float(e.amount), "date": e.date.isoformat()}
                for e in self.expenses
            ],
        }


def partition_goals(goals: Sequence[Goal]) -> Dict[str, List[Goal]]:
    """Split unpurchased goals by policy; purchased goals are dropped."""
    parts: Dict[str, List[Goal]] = {kind: [] for kind in PHASE_ORDER}
    for g in goals:
        if not g.purchased:
            parts[g.kind].append(g)
    return parts


def _phase_inputs(
    goals: Sequence[Goal],
    hypothetical_goals: Sequence[Goal],
    sequential_override: Optional[Sequence[Goal]],
    percentage_override: Optional[Sequence[Goal]],
) -> Tuple[List[Tuple[Goal, bool]], List[Tuple[Goal, bool]], List[Tuple[Goal, bool]]]:
    real = partition_goals(goals)
    if sequential_override is not None:
        real[POLICY_SEQUENTIAL] = [g for g in sequential_override if not g.purchased]
    if percentage_override is not None:
        real[POLICY_PERCENTAGE] = [g for g in percentage_override if not g.purchased]
    extra = partition_goals(hypothetical_goals)

    def tagged(kind: str) -> List[Tuple[Goal, bool]]:
        return [(g, False) for g in real[kind]] + [(g, True) for g in extra[kind]]

    # sorted() is stable: ties keep real-before-hypothetical, then input order
    target = sorted(tagged(POLICY_TARGET_DATE), key=lambda t: t[0].policy.target_date)
    sequential = sorted(tagged(POLICY_SEQUENTIAL), key=lambda t: t[0].policy.order)
    percentage = tagged(POLICY_PERCENTAGE)
    return target, sequential, percentage


def run_allocation(
    incomes: Sequence[IncomeSource],
    expenses: Sequence[ExpenseEvent],
    goals: Sequence[Goal],
    config: Optional[AllocationConfig] = None,
    *,
    hypothetical_goals: Sequence[Goal] = (),
    sequential_override: Optional[Sequence[Goal]] = None,
    percentage_override: Optional[Sequence[Goal]] = None,
) -> AllocationReport:
    """
    Run the full allocation for one user.

    Parameters
    ----------
    incomes, expenses : sequences of records
        Income sources and expense events (past expenses are ignored)
    goals : sequence of Goal
        Committed goals of every policy; purchased ones are skipped
    config : AllocationConfig, optional
        today / horizon / rounding; defaults to today + 2 years
    hypothetical_goals : sequence of Goal
        Uncommitted goals to include (preview)
    sequential_override, percentage_override : sequence of Goal, optional
        Replace the committed sequential / percentage collections (preview
        with rebalanced siblings)

    Returns
    -------
    AllocationReport with one outcome per goal, in phase order.
    """
    cfg = config or AllocationConfig()
    today, horizon_end, decimals = cfg.today, cfg.horizon_end, cfg.money_decimals

    timeline = build_timeline(incomes, expenses, horizon_end, today=today)
    used_expenses = future_expenses(expenses, today=today, horizon_end=horizon_end)
    total_income = sum(e.amount for e in timeline if e.kind == EventKind.INCOME)
    total_expenses = sum(float(e.amount) for e in used_expenses)

    target, sequential, percentage = _phase_inputs(
        goals, hypothetical_goals, sequential_override, percentage_override
    )
    logging.debug(
        f"[Allocation] {len(timeline)} events to {horizon_end}; goals: "
        f"{len(target)} target-date, {len(sequential)} sequential, {len(percentage)} percentage"
    )

    ledger = Ledger.from_events(timeline)
    pool = IncomePool.from_events(timeline)
    allocations: List[AllocationOutcome] = []

    # ========= PHASE 1: TARGET DATE =========
    for goal, is_hypothetical in target:
        outcome, ledger, pool = allocate_target_date(goal, ledger, pool, today=today, decimals=decimals)
        outcome.hypothetical = is_hypothetical
        allocations.append(outcome)

    # ========= PHASE 2: SEQUENTIAL =========
    for goal, is_hypothetical in sequential:
        outcome, ledger = allocate_sequential(goal, ledger, today=today, decimals=decimals)
        outcome.hypothetical = is_hypothetical
        allocations.append(outcome)

    # ========= PHASE 3: PERCENTAGE =========
    weights = percentage_weights([g for g, _ in percentage])
    for (goal, is_hypothetical), weight in zip(percentage, weights):
        outcome, ledger = allocate_percentage(goal, ledger, weight, today=today, decimals=decimals)
        outcome.hypothetical = is_hypothetical
        allocations.append(outcome)

    allocated = sum(a.amount_allocated for a in allocations)
    return AllocationReport(
        total_income=round_money(total_income, decimals),
        total_expenses=round_money(total_expenses, decimals),
        allocations=allocations,
        expenses=used_expenses,
        remaining_funds=round_money(total_income - total_expenses - allocated, decimals),
        horizon_end=horizon_end,
        timeline=timeline,
        residual=ledger,
    )
