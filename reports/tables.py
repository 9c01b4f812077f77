"""
Tabular views of an AllocationReport for dashboards and CSV export.
"""

from __future__ import annotations

import pandas as pd

from core.schema import ALLOCATION_COLUMNS, FUNDING_COLUMNS
from engine.cashflow import Ledger
from engine.runner import AllocationReport


def allocations_frame(report: AllocationReport) -> pd.DataFrame:
    """One row per goal, in phase order."""
    rows = []
    for a in report.allocations:
        row = a.to_dict()
        row.pop("funded_by")
        row.pop("warning")
        rows.append(row)
    df = pd.DataFrame(rows, columns=list(ALLOCATION_COLUMNS))
    for col in ("completion_date", "original_target"):
        df[col] = pd.to_datetime(df[col])
    return df


def funding_schedule_frame(report: AllocationReport) -> pd.DataFrame:
    """One row per funding entry, sorted by date (stable by phase order)."""
    rows = [
        {
            "goal_id": a.goal_id,
            "goal_name": a.goal_name,
            "policy": a.policy,
            "date": pd.Timestamp(f.date),
            "amount": f.amount,
            "income_id": f.income_id,
        }
        for a in report.allocations
        for f in a.funded_by
    ]
    df = pd.DataFrame(rows, columns=list(FUNDING_COLUMNS))
    return df.sort_values("date", kind="mergesort").reset_index(drop=True)


def balance_projection(report: AllocationReport) -> pd.DataFrame:
    """
    End-of-day balance per date, before and after allocation draws.

    Columns: date, net_flow, draws, balance_before, balance_after
    """
    before = Ledger.from_events(report.timeline).net
    after = report.residual.net
    idx = before.index.union(after.index)
    before = before.reindex(idx, fill_value=0.0)
    after = after.reindex(idx, fill_value=0.0)

    df = pd.DataFrame(
        {
            "date": idx,
            "net_flow": before.to_numpy(),
            "draws": (before - after).to_numpy(),
            "balance_before": before.cumsum().to_numpy(),
            "balance_after": after.cumsum().to_numpy(),
        }
    )
    return df.reset_index(drop=True)
