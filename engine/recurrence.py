"""
Recurrence expansion — turn an income source's rule into concrete dates.

Every rule is expanded from its anchor (start date, or today) up to the
horizon and then filtered to [today, horizon_end]:
  one_time       the single date, if inside the window
  specific_date  min(day, days_in_month) for every month in range (31 -> Feb 28/29)
  last_day       the final day of every month in range
  biweekly       start_date + 14k
"""

from __future__ import annotations

from datetime import date
from typing import List

import pandas as pd

from core.records import Frequency, IncomeSource
from core.utils import days_in_month, month_end, month_starts_between


def _monthly_dates(source: IncomeSource, horizon_end: date, today: date) -> List[date]:
    anchor = source.start_date or today
    out: List[date] = []
    for first in month_starts_between(anchor, horizon_end):
        if source.frequency == Frequency.LAST_DAY:
            out.append(month_end(first))
        else:
            day = min(int(source.day_of_month), days_in_month(first.year, first.month))
            out.append(first.replace(day=day))
    return out


def _biweekly_dates(source: IncomeSource, horizon_end: date) -> List[date]:
    if source.start_date is None or source.start_date > horizon_end:
        return []
    stamps = pd.date_range(pd.Timestamp(source.start_date), pd.Timestamp(horizon_end), freq="14D")
    return [ts.date() for ts in stamps]


def occurrences(source: IncomeSource, horizon_end: date, *, today: date) -> List[date]:
    """
    All dates on which `source` pays out, ascending, within [today, horizon_end].

    Parameters
    ----------
    source : IncomeSource
        A well-formed source (rule fields already validated upstream)
    horizon_end : date
        Inclusive projection boundary
    today : date
        Inclusive lower bound; earlier occurrences are dropped
    """
    freq = Frequency(source.frequency)
    if freq == Frequency.ONE_TIME:
        candidates = [source.one_time_date] if source.one_time_date is not None else []
    elif freq in (Frequency.SPECIFIC_DATE, Frequency.LAST_DAY):
        candidates = _monthly_dates(source, horizon_end, today)
    elif freq == Frequency.BIWEEKLY:
        candidates = _biweekly_dates(source, horizon_end)
    else:
        raise ValueError(f"Unsupported frequency: {source.frequency!r}")

    return sorted(d for d in candidates if today <= d <= horizon_end)
