"""
Reports — tables, headline summary and text rendering of allocation runs.
"""

from .summary import AllocationSummary, render_text, summarize
from .tables import allocations_frame, balance_projection, funding_schedule_frame

__all__ = [
    "AllocationSummary",
    "allocations_frame",
    "balance_projection",
    "funding_schedule_frame",
    "render_text",
    "summarize",
]
