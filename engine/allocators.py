"""
Allocation policies — one handler per goal policy, each taking the residual
ledger and returning an outcome plus the ledger left for the next goal.

  target date  spread across income occurrences up to the target; when the
               target cannot be met, or the spread would overdraw a later
               expense, a lump sum on the first date the full ledger
               supports (adjusted if past the target) or infeasible. Every
               draw also leaves the income pool, so later target-date
               goals cannot spend the same income again
  sequential   one lump sum on the earliest feasible date of the residual
               ledger, which already carries every earlier goal's draws
  percentage   the goal only sees weight x residual balance at every date;
               one lump sum on the earliest date that scaled view supports

Amounts are rounded to cents when a funding entry is created, never before.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from core.records import Goal, Percentage, Sequential, TargetDate
from core.utils import MONEY_EPS, round_money

from .cashflow import Ledger
from .events import AllocationOutcome, EventKind, FundingEntry, SignedEvent
from .feasibility import earliest_affordable_date

TARGET_MISSED_WARNING = "Cannot meet target date with current income"


@dataclass(frozen=True, eq=False)
class IncomePool:
    """
    Income occurrences with the part of each not yet drawn by target-date goals.
    Columns: date (Timestamp), income_id, available.
    """

    frame: pd.DataFrame

    @classmethod
    def from_events(cls, events: Sequence[SignedEvent]) -> "IncomePool":
        rows = [
            {"date": pd.Timestamp(e.date), "income_id": e.source_id, "available": float(e.amount)}
            for e in events
            if e.kind == EventKind.INCOME
        ]
        frame = pd.DataFrame(rows, columns=["date", "income_id", "available"])
        frame = frame.astype({"available": float})
        return cls(frame=frame.sort_values("date", kind="mergesort").reset_index(drop=True))

    def qualifying(self, until: date) -> pd.DataFrame:
        f = self.frame
        return f[(f["date"] <= pd.Timestamp(until)) & (f["available"] > MONEY_EPS)]

    def drawn(self, draws: pd.Series) -> "IncomePool":
        """New pool with `draws` (indexed like frame) subtracted."""
        out = self.frame.copy()
        out.loc[draws.index, "available"] = out.loc[draws.index, "available"] - draws
        return IncomePool(frame=out)

    def latest_first(self, until: date, amount: float) -> pd.Series:
        """Draws covering `amount` from occurrences on or before `until`, newest first."""
        q = self.qualifying(until).iloc[::-1]
        caps = q["available"].to_numpy(dtype=float)
        taken_before = np.cumsum(caps) - caps
        draws = pd.Series(np.clip(float(amount) - taken_before, 0.0, caps), index=q.index)
        return draws[draws > MONEY_EPS]


def spread_evenly(capacities: np.ndarray, needed: float) -> np.ndarray:
    """
    Split `needed` as evenly as possible over slots, never exceeding a slot's
    capacity; whatever a capped slot cannot take is re-split over the rest.
    """
    caps = np.clip(np.asarray(capacities, dtype=float), 0.0, None)
    draws = np.zeros_like(caps)
    remaining = float(needed)
    active = caps > MONEY_EPS

    while remaining > MONEY_EPS and active.any():
        share = remaining / int(active.sum())
        room = caps - draws
        capped = active & (room <= share + MONEY_EPS)
        if not capped.any():
            draws[active] += share
            break
        remaining -= float(room[capped].sum())
        draws[capped] = caps[capped]
        active &= ~capped

    return draws


def percentage_weights(goals: Sequence[Goal]) -> List[float]:
    """weight_i = w_i / sum(w); all zeros when the total is not positive."""
    raw = [float(g.policy.weight) for g in goals]
    total = sum(raw)
    if total <= 0:
        return [0.0 for _ in raw]
    return [w / total for w in raw]


def _base_outcome(goal: Goal, needed: float, **kwargs) -> AllocationOutcome:
    return AllocationOutcome(
        goal_id=goal.id,
        goal_name=goal.name,
        policy=goal.kind,
        cost=float(goal.cost),
        remaining_cost=needed,
        **kwargs,
    )


def _already_funded(goal: Goal, needed: float, today: date, **kwargs) -> AllocationOutcome:
    return _base_outcome(goal, needed, feasible=True, completion_date=today, **kwargs)


def _keeps_balance(before: Ledger, after: Ledger) -> bool:
    """`after` never dips below zero, or below the lowest point `before` already had."""
    if after.is_empty:
        return True
    floor = 0.0 if before.is_empty else min(float(before.balances().min()), 0.0)
    return float(after.balances().min()) >= floor - MONEY_EPS


def _income_id(value):
    return None if pd.isna(value) else int(value)


def _lump_sum(
    goal: Goal,
    ledger: Ledger,
    needed: float,
    *,
    solve_on: Ledger,
    decimals: int,
    **kwargs,
) -> Tuple[AllocationOutcome, Ledger]:
    """Solve against `solve_on`, draw the whole amount from `ledger` on the hit date."""
    result = earliest_affordable_date(solve_on, needed)
    if not result.feasible:
        outcome = _base_outcome(goal, needed, feasible=False, shortfall=result.shortfall, **kwargs)
        return outcome, ledger

    entry = FundingEntry(date=result.date, amount=round_money(needed, decimals))
    outcome = _base_outcome(
        goal,
        needed,
        feasible=True,
        amount_allocated=entry.amount,
        funded_by=[entry],
        completion_date=entry.date,
        **kwargs,
    )
    return outcome, ledger.withdraw(entry.date, entry.amount)


def allocate_target_date(
    goal: Goal,
    ledger: Ledger,
    pool: IncomePool,
    *,
    today: date,
    decimals: int = 2,
) -> Tuple[AllocationOutcome, Ledger, IncomePool]:
    policy = goal.policy
    if not isinstance(policy, TargetDate):
        raise TypeError(f"Goal {goal.name!r} is not a target-date goal")
    needed = round_money(goal.remaining_cost, decimals)
    if needed <= MONEY_EPS:
        return _already_funded(goal, needed, today), ledger, pool

    # --- by the target, income only ---
    qualifying = pool.qualifying(policy.target_date)
    by_target = Ledger(net=qualifying.groupby("date")["available"].sum().sort_index())
    on_time = earliest_affordable_date(by_target, needed)

    if on_time.feasible:
        draws = pd.Series(
            spread_evenly(qualifying["available"].to_numpy(), needed),
            index=qualifying.index,
        )
        draws = draws[draws > MONEY_EPS]
        entries = [
            FundingEntry(
                date=qualifying.at[i, "date"].date(),
                amount=round_money(amount, decimals),
                income_id=_income_id(qualifying.at[i, "income_id"]),
            )
            for i, amount in draws.items()
        ]
        spread_ledger = ledger.withdraw_many(entries)
        if _keeps_balance(ledger, spread_ledger):
            outcome = _base_outcome(
                goal,
                needed,
                feasible=True,
                amount_allocated=round_money(draws.sum(), decimals),
                funded_by=entries,
                completion_date=entries[-1].date,
            )
            logging.debug(
                f"[TargetDate] {goal.name!r}: {needed:.2f} spread over {len(entries)} "
                f"income dates, done {outcome.completion_date}"
            )
            return outcome, spread_ledger, pool.drawn(draws)
        logging.debug(f"[TargetDate] {goal.name!r}: spread would overdraw a later expense")

    # --- full ledger, lump sum ---
    outcome, ledger_after = _lump_sum(goal, ledger, needed, solve_on=ledger, decimals=decimals)
    if outcome.feasible:
        # the lump sum uses up the newest income it could have come from
        pool = pool.drawn(pool.latest_first(outcome.completion_date, outcome.amount_allocated))
        if outcome.completion_date > policy.target_date:
            outcome.adjusted = True
            outcome.original_target = policy.target_date
        logging.debug(
            f"[TargetDate] {goal.name!r}: target {policy.target_date}, "
            f"lump sum on {outcome.completion_date}"
        )
    else:
        outcome.warning = TARGET_MISSED_WARNING
        logging.debug(f"[TargetDate] {goal.name!r}: infeasible, short {outcome.shortfall:.2f}")
    return outcome, ledger_after, pool


def allocate_sequential(
    goal: Goal,
    ledger: Ledger,
    *,
    today: date,
    decimals: int = 2,
) -> Tuple[AllocationOutcome, Ledger]:
    if not isinstance(goal.policy, Sequential):
        raise TypeError(f"Goal {goal.name!r} is not a sequential goal")
    needed = round_money(goal.remaining_cost, decimals)
    if needed <= MONEY_EPS:
        return _already_funded(goal, needed, today), ledger

    outcome, ledger_after = _lump_sum(goal, ledger, needed, solve_on=ledger, decimals=decimals)
    logging.debug(
        f"[Sequential] #{goal.policy.order} {goal.name!r}: "
        f"{'done ' + str(outcome.completion_date) if outcome.feasible else 'infeasible'}"
    )
    return outcome, ledger_after


def allocate_percentage(
    goal: Goal,
    ledger: Ledger,
    weight: float,
    *,
    today: date,
    decimals: int = 2,
) -> Tuple[AllocationOutcome, Ledger]:
    policy = goal.policy
    if not isinstance(policy, Percentage):
        raise TypeError(f"Goal {goal.name!r} is not a percentage goal")
    needed = round_money(goal.remaining_cost, decimals)
    if needed <= MONEY_EPS:
        return _already_funded(goal, needed, today, percentage=float(policy.weight)), ledger

    outcome, ledger_after = _lump_sum(
        goal,
        ledger,
        needed,
        solve_on=ledger.scaled(weight),
        decimals=decimals,
        percentage=float(policy.weight),
    )
    logging.debug(
        f"[Percentage] {goal.name!r} weight {weight:.4f}: "
        f"{'done ' + str(outcome.completion_date) if outcome.feasible else 'infeasible'}"
    )
    return outcome, ledger_after
