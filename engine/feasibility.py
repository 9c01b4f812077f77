"""
Feasibility solver — earliest date a lump sum can be withdrawn without the
running balance ever going negative afterwards.

For each distinct ledger date d, ascending:
  1. balance(d) = sum of every event dated <= d; reject if balance(d) < needed
  2. simulate the withdrawal at end of d and walk every later date; reject if
     the running balance ever drops below zero
  3. the first date that survives both checks is the answer

Step 2 only needs the minimum end-of-day balance over (d, horizon], so the
walk is done once for all candidates with a reversed cumulative minimum.
If nothing survives, shortfall = needed - final balance (for an undepleted
ledger that is needed - (total income - total expenses)).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence, Union

import numpy as np

from core.utils import MONEY_EPS, round_money

from .cashflow import Ledger
from .events import SignedEvent


@dataclass(frozen=True)
class Feasibility:
    feasible: bool
    date: Optional[date] = None
    shortfall: float = 0.0


def earliest_affordable_date(
    source: Union[Ledger, Sequence[SignedEvent]],
    needed: float,
) -> Feasibility:
    """
    Find the earliest date at which `needed` can be withdrawn.

    Parameters
    ----------
    source : Ledger or sequence of SignedEvent
        Cash movements to simulate against (events are netted per date)
    needed : float
        Amount to withdraw in one piece

    Returns
    -------
    Feasibility with the accepted date, or feasible=False and the shortfall.
    """
    ledger = source if isinstance(source, Ledger) else Ledger.from_events(source)
    needed = float(needed)

    if ledger.is_empty:
        return Feasibility(feasible=False, date=None, shortfall=round_money(needed))

    balances = ledger.balances().to_numpy(dtype=float)

    # lowest end-of-day balance from each date through the horizon
    floor_from = np.minimum.accumulate(balances[::-1])[::-1]
    # lowest balance strictly after each date (nothing after the last date)
    floor_after = np.append(floor_from[1:], np.inf)

    enough_today = balances >= needed - MONEY_EPS
    never_negative = (floor_after - needed) >= -MONEY_EPS
    hits = np.flatnonzero(enough_today & never_negative)

    if hits.size == 0:
        return Feasibility(
            feasible=False,
            date=None,
            shortfall=round_money(needed - float(balances[-1])),
        )
    return Feasibility(feasible=True, date=ledger.net.index[hits[0]].date(), shortfall=0.0)
