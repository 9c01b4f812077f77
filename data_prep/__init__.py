"""
Data preparation — loading books from JSON/CSV and validating them.
"""

from .loader import BookLoadError, load_book, load_expenses_csv, parse_book, parse_goal
from .validators import (
    GoalValidationError,
    ValidationResult,
    validate_book,
    validate_goal,
    validate_income,
)

__all__ = [
    "BookLoadError",
    "load_book",
    "load_expenses_csv",
    "parse_book",
    "parse_goal",
    "GoalValidationError",
    "ValidationResult",
    "validate_book",
    "validate_goal",
    "validate_income",
]
