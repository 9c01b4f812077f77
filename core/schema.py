from __future__ import annotations

from typing import Tuple

# Column layout of the timeline DataFrame (engine.cashflow.timeline_frame).
TIMELINE_COLUMNS: Tuple[str, ...] = (
    "date",
    "amount",
    "kind",
    "source_id",
    "description",
)

# One row per goal (reports.tables.allocations_frame).
ALLOCATION_COLUMNS: Tuple[str, ...] = (
    "goal_id",
    "goal_name",
    "policy",
    "cost",
    "remaining_cost",
    "feasible",
    "amount_allocated",
    "completion_date",
    "shortfall",
    "adjusted",
    "original_target",
    "percentage",
    "hypothetical",
)

# One row per funding entry (reports.tables.funding_schedule_frame).
FUNDING_COLUMNS: Tuple[str, ...] = (
    "goal_id",
    "goal_name",
    "policy",
    "date",
    "amount",
    "income_id",
)

# Goal policy labels, also the phase order of the orchestrator.
POLICY_TARGET_DATE = "target_date"
POLICY_SEQUENTIAL = "sequential"
POLICY_PERCENTAGE = "percentage"

PHASE_ORDER: Tuple[str, ...] = (
    POLICY_TARGET_DATE,
    POLICY_SEQUENTIAL,
    POLICY_PERCENTAGE,
)
