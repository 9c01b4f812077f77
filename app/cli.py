"""
Command line entry point — allocate a book file and print the result.

Run: wishlist-allocator book.json [--today 2026-10-01] [--format text|json|csv]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from core.config import AllocationConfig
from core.utils import to_date
from data_prep.loader import BookLoadError, load_book, parse_goal
from data_prep.validators import validate_book
from engine.runner import run_allocation
from planner.preview import preview_goal
from reports.summary import render_text
from reports.tables import allocations_frame


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Project when each wish-list goal becomes affordable")
    parser.add_argument("book", help="Path to book JSON file (incomes, expenses, goals)")
    parser.add_argument("--today", type=to_date, help="Projection start date (default: today)")
    parser.add_argument("--horizon-years", type=int, default=2, help="Years to project (default: 2)")
    parser.add_argument("--horizon-end", type=to_date, help="Explicit horizon end date (overrides --horizon-years)")
    parser.add_argument("--preview-goal", help="JSON object of a goal to preview without committing it")
    parser.add_argument("--format", choices=["text", "json", "csv"], default="text", help="Output format")
    parser.add_argument("--validate", action="store_true", help="Validate the book only")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log engine decisions")
    return parser


def _print_validation(errors: List[str], warnings: List[str]) -> None:
    for warning in warnings:
        print(f"WARNING: {warning}", file=sys.stderr)
    for error in errors:
        print(f"ERROR: {error}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config_kwargs = {"horizon_years": args.horizon_years, "horizon_override": args.horizon_end}
    if args.today is not None:
        config_kwargs["today"] = args.today
    config = AllocationConfig(**config_kwargs)

    try:
        book = load_book(args.book)
        preview = parse_goal(json.loads(args.preview_goal)) if args.preview_goal else None
    except (BookLoadError, OSError, ValueError) as exc:
        print(f"Failed to load book: {exc}", file=sys.stderr)
        return 2

    validation = validate_book(book, today=config.today)
    _print_validation(validation.errors, validation.warnings)
    if not validation.is_valid:
        return 1
    if args.validate:
        print("Book is valid.")
        return 0

    if preview is not None:
        report = preview_goal(book, preview, config).report
    else:
        report = run_allocation(book.incomes, book.expenses, book.goals, config)

    if args.format == "json":
        print(json.dumps(report.to_dict(), indent=2))
    elif args.format == "csv":
        print(allocations_frame(report).to_csv(index=False), end="")
    else:
        print(render_text(report))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
