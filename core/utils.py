from __future__ import annotations

import calendar
from datetime import date
from typing import Iterable, List

import numpy as np
import pandas as pd

# Tolerance for float comparisons of money amounts (well below one cent).
MONEY_EPS = 1e-9


def require_columns(df: pd.DataFrame, cols: Iterable[str]) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


def excel_round(x, decimals: int = 2):
    """Excel ROUND: half away from zero (vectorized)."""
    m = 10 ** decimals
    x = np.asarray(x, dtype=float)
    # the inner round absorbs binary noise such as 1.005 -> 1.00499999...
    return np.sign(x) * (np.floor(np.round(np.abs(x) * m, 6) + 0.5) / m)


def round_money(x: float, decimals: int = 2) -> float:
    """Scalar money rounding, same convention as excel_round."""
    return float(excel_round(x, decimals)) + 0.0


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_end(d: date) -> date:
    return date(d.year, d.month, days_in_month(d.year, d.month))


def month_starts_between(start: date, end: date) -> List[date]:
    """
    First day of every calendar month touching [start, end].
    The month containing `start` is always included, even if start is mid-month.
    """
    if end < start:
        return []
    first = pd.Timestamp(year=start.year, month=start.month, day=1)
    return [ts.date() for ts in pd.date_range(first, pd.Timestamp(end), freq="MS")]


def to_date(value) -> date:
    """Coerce a date, Timestamp, datetime or ISO string to datetime.date."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, date) and not hasattr(value, "hour"):
        return value
    return pd.Timestamp(value).date()

