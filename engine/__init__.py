"""
Allocation engine — recurrence, timeline, feasibility, allocation policies,
rebalancing, and the phase runner that ties them together.
"""

from .cashflow import Ledger, build_timeline, net_by_date
from .events import AllocationOutcome, EventKind, FundingEntry, SignedEvent
from .feasibility import Feasibility, earliest_affordable_date
from .recurrence import occurrences
from .rebalancer import RebalanceResult, rebalance_for_delete, rebalance_for_insert
from .runner import AllocationReport, run_allocation

__all__ = [
    "AllocationOutcome",
    "AllocationReport",
    "EventKind",
    "Feasibility",
    "FundingEntry",
    "Ledger",
    "RebalanceResult",
    "SignedEvent",
    "build_timeline",
    "earliest_affordable_date",
    "net_by_date",
    "occurrences",
    "rebalance_for_delete",
    "rebalance_for_insert",
    "run_allocation",
]
