"""
Allocation summary — headline numbers, per-goal status, and flags a user
can act on:
  - which goals cannot be funded inside the horizon, and by how much
  - which target dates had to slip
  - whether committed draws push the projected balance below zero
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List

import pandas as pd

from engine.runner import AllocationReport

from .tables import allocations_frame, balance_projection


@dataclass
class AllocationSummary:
    """Structured headline output of one allocation run."""
    horizon_end: date
    total_income: float
    total_expenses: float
    total_allocated: float
    remaining_funds: float
    n_goals: int
    n_feasible: int
    lowest_balance: float
    flags: List[str] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to a display-friendly table."""
        rows = [
            {"Metric": "Horizon End", "Value": self.horizon_end.isoformat()},
            {"Metric": "Projected Income", "Value": f"{self.total_income:,.2f}"},
            {"Metric": "Projected Expenses", "Value": f"{self.total_expenses:,.2f}"},
            {"Metric": "Allocated to Goals", "Value": f"{self.total_allocated:,.2f}"},
            {"Metric": "Remaining Funds", "Value": f"{self.remaining_funds:,.2f}"},
            {"Metric": "Goals Funded", "Value": f"{self.n_feasible} / {self.n_goals}"},
            {"Metric": "Lowest Projected Balance", "Value": f"{self.lowest_balance:,.2f}"},
        ]
        if self.flags:
            rows.append({"Metric": "FLAGS", "Value": " | ".join(self.flags)})
        return pd.DataFrame(rows)


def summarize(report: AllocationReport) -> AllocationSummary:
    projection = balance_projection(report)
    lowest = float(projection["balance_after"].min()) if not projection.empty else 0.0

    flags: List[str] = []
    for a in report.allocations:
        tag = " (preview)" if a.hypothetical else ""
        if not a.feasible:
            flags.append(f"{a.goal_name}{tag}: short {a.shortfall:,.2f}")
        elif a.adjusted:
            flags.append(f"{a.goal_name}{tag}: target {a.original_target} moves to {a.completion_date}")
    if lowest < -0.005:
        flags.append(f"Projected balance dips to {lowest:,.2f}")

    return AllocationSummary(
        horizon_end=report.horizon_end,
        total_income=report.total_income,
        total_expenses=report.total_expenses,
        total_allocated=round(sum(a.amount_allocated for a in report.allocations), 2),
        remaining_funds=report.remaining_funds,
        n_goals=len(report.allocations),
        n_feasible=sum(1 for a in report.allocations if a.feasible),
        lowest_balance=lowest,
        flags=flags,
    )


def render_text(report: AllocationReport) -> str:
    """Plain-text report: summary table followed by one line per goal."""
    summary = summarize(report)
    lines = [summary.to_dataframe().to_string(index=False), ""]

    goals = allocations_frame(report)
    for row in goals.itertuples(index=False):
        when = row.completion_date.date().isoformat() if pd.notna(row.completion_date) else "never"
        status = "funded" if row.feasible else f"short {row.shortfall:,.2f}"
        marker = "*" if row.hypothetical else " "
        lines.append(
            f"{marker} [{row.policy:<11}] {row.goal_name:<30} "
            f"{row.amount_allocated:>10,.2f} / {row.remaining_cost:>10,.2f}  {status:<18} {when}"
        )
    return "\n".join(lines)
