"""
Allocation configuration.
Horizon defaults to two years out; the engine never projects past it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from dateutil.relativedelta import relativedelta


@dataclass(frozen=True)
class AllocationConfig:
    today: date = field(default_factory=date.today)
    horizon_years: int = 2
    # explicit horizon end wins over horizon_years
    horizon_override: Optional[date] = None

    # when a target-date goal only becomes affordable after its stored target,
    # committing a new target-date goal rewrites that target to the slipped date
    auto_adjust_target_dates: bool = False

    money_decimals: int = 2

    @property
    def horizon_end(self) -> date:
        if self.horizon_override is not None:
            return self.horizon_override
        return self.today + relativedelta(years=self.horizon_years)
