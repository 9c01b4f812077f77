"""
Planner — commitment operations over a repository, and what-if previews.
"""

from .operations import CommitResult, delete_goal, insert_goal, mark_goal_purchased
from .preview import PreviewResult, preview_goal
from .repository import GoalRepository, InMemoryRepository

__all__ = [
    "CommitResult",
    "GoalRepository",
    "InMemoryRepository",
    "PreviewResult",
    "delete_goal",
    "insert_goal",
    "mark_goal_purchased",
    "preview_goal",
]
