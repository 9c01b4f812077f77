"""End-to-end tests for the allocation runner."""

import json
from dataclasses import replace
from datetime import date

import pytest

from core.records import Sequential
from core.schema import POLICY_PERCENTAGE, POLICY_SEQUENTIAL, POLICY_TARGET_DATE
from core.utils import MONEY_EPS
from engine.runner import partition_goals, run_allocation
from tests.helpers import (
    TODAY,
    make_config,
    monthly_income,
    percentage_goal,
    sequential_goal,
    target_goal,
)

SHORT = make_config(horizon_override=date(2026, 12, 31))


def _sample_run(book, **kwargs):
    return run_allocation(book.incomes, book.expenses, book.goals, make_config(), **kwargs)


def test_phases_run_in_fixed_order(sample_book):
    report = _sample_run(sample_book)
    assert [a.policy for a in report.allocations] == [
        POLICY_TARGET_DATE,
        POLICY_SEQUENTIAL,
        POLICY_SEQUENTIAL,
        POLICY_PERCENTAGE,
        POLICY_PERCENTAGE,
    ]
    assert [a.goal_id for a in report.allocations] == [1, 2, 3, 4, 5]


def test_sample_book_is_fully_affordable(sample_book):
    report = _sample_run(sample_book)
    assert all(a.feasible for a in report.allocations)
    assert report.horizon_end == date(2028, 10, 1)
    assert report.total_expenses == 150.0
    assert report.outcome_for(1).completion_date <= date(2027, 3, 31)


def test_remaining_funds_balances_the_books(sample_book):
    report = _sample_run(sample_book)
    allocated = sum(a.amount_allocated for a in report.allocations)
    assert report.remaining_funds == pytest.approx(
        report.total_income - report.total_expenses - allocated, abs=0.01
    )


def test_residual_balance_never_goes_negative(sample_book):
    report = _sample_run(sample_book)
    assert report.residual.balances().min() >= -MONEY_EPS


def test_allocated_never_exceeds_remaining_cost(sample_book):
    for a in _sample_run(sample_book).allocations:
        assert a.amount_allocated <= a.remaining_cost + MONEY_EPS
        if a.feasible:
            assert a.amount_allocated == pytest.approx(a.remaining_cost, abs=0.01)
            assert a.completion_date >= TODAY
            assert sum(f.amount for f in a.funded_by) == pytest.approx(a.amount_allocated, abs=0.01)


def test_runs_are_deterministic(sample_book):
    first = json.dumps(_sample_run(sample_book).to_dict(), sort_keys=True)
    second = json.dumps(_sample_run(sample_book).to_dict(), sort_keys=True)
    assert first == second


def test_inputs_are_not_mutated(sample_book):
    goals = list(sample_book.goals)
    _sample_run(sample_book, hypothetical_goals=[sequential_goal("Lamp", 50, 1)])
    assert list(sample_book.goals) == goals


def test_hypothetical_goals_are_flagged_and_follow_real_ties():
    real = sequential_goal("Real", 300, 1, id=1)
    extra = sequential_goal("Extra", 300, 1)
    report = run_allocation([monthly_income(300, day=15)], [], [real], SHORT, hypothetical_goals=[extra])

    assert [a.goal_name for a in report.allocations] == ["Real", "Extra"]
    assert [a.hypothetical for a in report.allocations] == [False, True]
    assert [a.goal_name for a in report.hypothetical] == ["Extra"]
    assert report.allocations[1].completion_date == date(2026, 11, 15)


def test_sequential_override_replaces_committed_collection():
    a = sequential_goal("A", 300, 1, id=1)
    b = sequential_goal("B", 300, 2, id=2)
    swapped = [a.with_policy(Sequential(order=2)), b.with_policy(Sequential(order=1))]

    report = run_allocation([monthly_income(300, day=15)], [], [a, b], SHORT, sequential_override=swapped)
    assert [x.goal_id for x in report.allocations] == [2, 1]
    assert report.outcome_for(2).completion_date == date(2026, 10, 15)


def test_percentage_override_replaces_committed_collection():
    a = percentage_goal("A", 100, 100, id=1)
    report = run_allocation(
        [monthly_income(300, day=15)], [], [a], SHORT,
        percentage_override=[percentage_goal("A", 100, 50, id=1)],
    )
    assert report.outcome_for(1).percentage == 50


def test_outcome_for_unknown_goal_raises():
    report = run_allocation([monthly_income(300, day=15)], [], [], SHORT)
    assert report.allocations == []
    with pytest.raises(KeyError):
        report.outcome_for(99)


def test_partition_drops_purchased_goals():
    done = replace(target_goal("Done", 10, date(2026, 12, 1), id=1), purchased=True)
    parts = partition_goals([done, sequential_goal("S", 10, 1, id=2), percentage_goal("P", 10, 100, id=3)])
    assert parts[POLICY_TARGET_DATE] == []
    assert [g.id for g in parts[POLICY_SEQUENTIAL]] == [2]
    assert [g.id for g in parts[POLICY_PERCENTAGE]] == [3]


def test_to_dict_is_json_ready(sample_book):
    data = _sample_run(sample_book).to_dict()
    assert data["horizon_end"] == "2028-10-01"
    assert data["expenses"][0]["date"] == "2026-11-01"
    first = data["allocations"][0]
    assert isinstance(first["completion_date"], str)
    assert all("income_id" in f for f in first["funded_by"])
