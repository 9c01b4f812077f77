"""Tests for goal commitment operations and what-if previews."""

import json
from datetime import date, datetime

import pytest

from core.records import Book, Sequential
from data_prep.validators import GoalValidationError
from planner import (
    InMemoryRepository,
    delete_goal,
    insert_goal,
    mark_goal_purchased,
    preview_goal,
)
from tests.helpers import (
    make_config,
    monthly_income,
    percentage_goal,
    sequential_goal,
    target_goal,
)

SHORT = make_config(horizon_override=date(2026, 12, 31))


def _orders(repo):
    return {g.name: g.policy.order for g in repo.book().unpurchased("sequential")}


def _weights(repo):
    return {g.name: g.policy.weight for g in repo.book().unpurchased("percentage")}


@pytest.fixture
def repo(sample_book):
    return InMemoryRepository(sample_book)


# --- insert --------------------------------------------------------------


def test_insert_sequential_bumps_siblings(repo):
    result = insert_goal(repo, sequential_goal("Lamp", 50, 1), SHORT)

    assert result.goal.id == 6
    assert result.goal.policy.order == 1
    assert _orders(repo) == {"Ergonomic Desk Chair": 2, "Desk Mat": 3, "Lamp": 1}
    assert [g.name for g in result.sibling_updates] == ["Desk Mat", "Ergonomic Desk Chair"]


def test_insert_sequential_order_is_clamped(repo):
    result = insert_goal(repo, sequential_goal("Lamp", 50, 10), SHORT)
    assert result.goal.policy.order == 3
    assert result.sibling_updates == []
    assert sorted(_orders(repo).values()) == [1, 2, 3]


def test_insert_sequential_order_below_one_is_rejected(repo):
    with pytest.raises(GoalValidationError, match="order must be a positive integer"):
        insert_goal(repo, sequential_goal("Rug", 50, 0), SHORT)
    assert _orders(repo) == {"Ergonomic Desk Chair": 1, "Desk Mat": 2}


def test_insert_percentage_rebalances_siblings(repo):
    insert_goal(repo, percentage_goal("Grill", 100, 50), SHORT)
    assert _weights(repo) == {"Pellet Smoker": 40.0, "Mechanical Keyboard": 10.0, "Grill": 50}


def test_insert_invalid_goal_raises_and_writes_nothing(repo):
    before = repo.book()
    with pytest.raises(GoalValidationError) as exc:
        insert_goal(repo, sequential_goal("Broken", -5, 1), SHORT)
    assert "cost must be greater than 0" in str(exc.value)
    assert exc.value.result.errors
    assert repo.book() == before


def test_failed_insert_rolls_back_sibling_updates(sample_book):
    class FailingRepository(InMemoryRepository):
        def add_goal(self, goal):
            raise RuntimeError("disk full")

    repo = FailingRepository(sample_book)
    with pytest.raises(RuntimeError):
        insert_goal(repo, sequential_goal("Lamp", 50, 1), SHORT)
    assert _orders(repo) == {"Ergonomic Desk Chair": 1, "Desk Mat": 2}


# --- target slip write-back ---------------------------------------------


def _slip_repo():
    book = Book(
        incomes=(monthly_income(300, day=15),),
        goals=(target_goal("A", 300, date(2026, 10, 31), id=1),),
    )
    return InMemoryRepository(book)


def test_slipped_targets_are_written_back_when_enabled():
    repo = _slip_repo()
    config = make_config(horizon_override=date(2026, 12, 31), auto_adjust_target_dates=True)
    result = insert_goal(repo, target_goal("B", 300, date(2026, 10, 20)), config)

    assert [g.name for g in result.adjusted_targets] == ["A"]
    assert repo.book().goal(1).policy.target_date == date(2026, 11, 15)


def test_slipped_targets_are_left_alone_by_default():
    repo = _slip_repo()
    result = insert_goal(repo, target_goal("B", 300, date(2026, 10, 20)), SHORT)

    assert result.adjusted_targets == []
    assert repo.book().goal(1).policy.target_date == date(2026, 10, 31)


# --- delete --------------------------------------------------------------


def test_delete_sequential_closes_gap(repo):
    result = delete_goal(repo, 2, SHORT)
    assert result.goal.name == "Ergonomic Desk Chair"
    assert _orders(repo) == {"Desk Mat": 1}
    with pytest.raises(KeyError):
        repo.book().goal(2)


def test_delete_percentage_redistributes(repo):
    delete_goal(repo, 5, SHORT)
    assert _weights(repo) == {"Pellet Smoker": 100.0}


def test_delete_unknown_goal_raises(repo):
    with pytest.raises(KeyError):
        delete_goal(repo, 99)


def test_delete_purchased_goal_leaves_siblings(repo):
    mark_goal_purchased(repo, 3, at=datetime(2026, 10, 2))
    result = delete_goal(repo, 3)
    assert result.sibling_updates == []
    assert _orders(repo) == {"Ergonomic Desk Chair": 1}


# --- purchase ------------------------------------------------------------


def test_mark_purchased_records_purchase_and_rebalances(repo):
    result = mark_goal_purchased(repo, 4, note="Black Friday", at=datetime(2026, 11, 27, 9, 30))

    goal = repo.book().goal(4)
    assert goal.purchased
    assert goal.purchases[-1].amount == 800.0
    assert goal.purchases[-1].note == "Black Friday"
    assert result.goal == goal
    assert _weights(repo) == {"Mechanical Keyboard": 100.0}


def test_mark_purchased_twice_is_rejected(repo):
    mark_goal_purchased(repo, 2, amount=480)
    with pytest.raises(ValueError, match="already purchased"):
        mark_goal_purchased(repo, 2)
    assert repo.book().goal(2).amount_saved == 480.0


def test_mark_purchased_rejects_non_positive_amount(repo):
    with pytest.raises(ValueError):
        mark_goal_purchased(repo, 2, amount=0)
    assert not repo.book().goal(2).purchased


# --- repository ----------------------------------------------------------


def test_repository_assigns_ids_and_rejects_duplicates(sample_book):
    repo = InMemoryRepository(sample_book)
    assert repo.add_goal(sequential_goal("X", 1, 3)).id == 6
    with pytest.raises(ValueError):
        repo.add_goal(sequential_goal("Y", 1, 4, id=6))
    with pytest.raises(KeyError):
        repo.save_goals([sequential_goal("Z", 1, 1, id=42)])
    with pytest.raises(KeyError):
        repo.remove_goal(42)


# --- preview -------------------------------------------------------------


def test_preview_sequential_shows_bumped_siblings(sample_book):
    preview = preview_goal(sample_book, sequential_goal("Lamp", 50, 1), make_config())

    assert preview.outcome.hypothetical
    assert preview.outcome.goal_name == "Lamp"
    assert preview.outcome.feasible
    assert {g.name: g.policy.order for g in preview.sequential_override} == {
        "Ergonomic Desk Chair": 2,
        "Desk Mat": 3,
    }
    sequential = [a.goal_name for a in preview.report.allocations if a.policy == "sequential"]
    assert sequential == ["Lamp", "Ergonomic Desk Chair", "Desk Mat"]


def test_preview_percentage_uses_rebalanced_weights(sample_book):
    preview = preview_goal(sample_book, percentage_goal("Grill", 100, 50), make_config())

    assert {g.name: g.policy.weight for g in preview.percentage_override} == {
        "Pellet Smoker": 40.0,
        "Mechanical Keyboard": 10.0,
    }
    assert preview.report.outcome_for(4).percentage == 40.0
    assert preview.outcome.percentage == 50


def test_preview_does_not_touch_the_book(sample_book):
    goals = sample_book.goals
    preview_goal(sample_book, sequential_goal("Lamp", 50, 1), make_config())
    assert sample_book.goals == goals
    assert sample_book.goal(2).policy == Sequential(order=1)


def test_preview_target_date_goal(sample_book):
    preview = preview_goal(sample_book, target_goal("Bike", 400, date(2026, 12, 24)), make_config())
    assert preview.sequential_override is None
    assert preview.percentage_override is None
    assert preview.outcome.policy == "target_date"
    assert preview.outcome.feasible


def test_preview_is_deterministic(sample_book):
    goal = target_goal("Bike", 400, date(2026, 12, 24))
    first = json.dumps(preview_goal(sample_book, goal, make_config()).report.to_dict(), sort_keys=True)
    second = json.dumps(preview_goal(sample_book, goal, make_config()).report.to_dict(), sort_keys=True)
    assert first == second

    lamp = sequential_goal("Lamp", 50, 1)
    runs = [preview_goal(sample_book, lamp, make_config()).outcome.to_dict() for _ in range(2)]
    assert runs[0] == runs[1]
