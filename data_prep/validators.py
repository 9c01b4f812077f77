"""
Cross-record checks for a book before it reaches the engine.

Catches problems early:
- Duplicate ids
- Goals missing their policy attribute, or with out-of-range values
- Percentage weights summing above 100
- Sequential orders that are not a dense 1..N run
- Expenses already in the past (ignored by projections)
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from core.records import Book, Frequency, Goal, IncomeSource, Percentage, Sequential, TargetDate
from core.schema import POLICY_PERCENTAGE, POLICY_SEQUENTIAL


@dataclass
class ValidationResult:
    """Collects all validation warnings/errors for a book."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if not lines:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)


class GoalValidationError(ValueError):
    """Raised by commitment operations when a goal fails validation."""

    def __init__(self, result: ValidationResult):
        super().__init__("; ".join(result.errors))
        self.result = result


def validate_income(income: IncomeSource, result: Optional[ValidationResult] = None) -> ValidationResult:
    result = result or ValidationResult()
    label = f"Income {income.description!r}"
    if income.amount <= 0:
        result.errors.append(f"{label}: amount must be greater than 0.")
    if income.frequency == Frequency.SPECIFIC_DATE:
        if income.day_of_month is None or not 1 <= income.day_of_month <= 31:
            result.errors.append(f"{label}: day_of_month must be between 1 and 31.")
    elif income.frequency == Frequency.BIWEEKLY and income.start_date is None:
        result.errors.append(f"{label}: start_date is required for biweekly incomes.")
    elif income.frequency == Frequency.ONE_TIME and income.one_time_date is None:
        result.errors.append(f"{label}: one_time_date is required for one_time incomes.")
    return result


def validate_goal(goal: Goal, result: Optional[ValidationResult] = None) -> ValidationResult:
    result = result or ValidationResult()
    label = f"Goal {goal.name!r}"
    if not goal.name:
        result.errors.append("Goal name must be present.")
    if goal.cost <= 0:
        result.errors.append(f"{label}: cost must be greater than 0.")

    policy = goal.policy
    if isinstance(policy, TargetDate):
        if policy.target_date is None:
            result.errors.append(f"{label}: target_date is required.")
    elif isinstance(policy, Sequential):
        if policy.order is None or int(policy.order) < 1:
            result.errors.append(f"{label}: order must be a positive integer.")
    elif isinstance(policy, Percentage):
        if policy.weight is None or not 0 < float(policy.weight) <= 100:
            result.errors.append(f"{label}: percentage must be in (0, 100].")
    else:
        result.errors.append(f"{label}: unknown policy {policy!r}.")
    return result


def _check_duplicate_ids(kind: str, ids: Sequence[Optional[int]], result: ValidationResult) -> None:
    dupes = sorted(i for i, n in Counter(i for i in ids if i is not None).items() if n > 1)
    if dupes:
        result.errors.append(f"Duplicate {kind} ids: {dupes}")


def validate_book(book: Book, *, today: Optional[date] = None) -> ValidationResult:
    """
    Run all checks on a book.
    Returns a ValidationResult with errors (blocking) and warnings (informational).
    """
    result = ValidationResult()

    _check_duplicate_ids("income", [i.id for i in book.incomes], result)
    _check_duplicate_ids("expense", [e.id for e in book.expenses], result)
    _check_duplicate_ids("goal", [g.id for g in book.goals], result)

    for income in book.incomes:
        validate_income(income, result)
    for expense in book.expenses:
        if expense.amount <= 0:
            result.errors.append(f"Expense {expense.description!r}: amount must be greater than 0.")
    for goal in book.goals:
        validate_goal(goal, result)
    if not result.is_valid:
        return result

    if not book.incomes:
        result.warnings.append("No income sources: every goal will be infeasible.")

    if today is not None:
        n_past = sum(1 for e in book.expenses if e.date < today)
        if n_past:
            result.warnings.append(f"{n_past} expenses are dated before {today} and are ignored.")

    # --- Percentage weights ---
    weights = [float(g.policy.weight) for g in book.unpurchased(POLICY_PERCENTAGE)]
    if sum(weights) > 100.0 + 0.01 * max(len(weights), 1):
        result.errors.append(f"Percentage weights sum to {sum(weights):.2f} (> 100).")
    elif weights and abs(sum(weights) - 100.0) > 0.01 * len(weights):
        result.warnings.append(f"Percentage weights sum to {sum(weights):.2f}, not 100.")

    # --- Sequential orders ---
    orders = sorted(int(g.policy.order) for g in book.unpurchased(POLICY_SEQUENTIAL))
    if orders != list(range(1, len(orders) + 1)):
        result.warnings.append(f"Sequential orders {orders} are not a gap-free 1..{len(orders)} run.")

    return result
