from __future__ import annotations
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping


@dataclass(frozen=True)
class CirculationPolicy:
    """
    Circulation constants injected into the engine.

    loan_days    -- length of a loan and of each renewal extension
    max_renews   -- renewals allowed per loan
    fine_per_day -- fine units charged per whole overdue day
    """

    loan_days: int = 14
    max_renews: int = 2
    fine_per_day: int = 1

    def __post_init__(self) -> None:
        if self.loan_days <= 0:
            raise ValueError("loan_days must be positive")
        if self.max_renews < 0:
            raise ValueError("max_renews cannot be negative")
        if self.fine_per_day < 0:
            raise ValueError("fine_per_day cannot be negative")

    @property
    def loan_period(self) -> timedelta:
        return timedelta(days=self.loan_days)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "CirculationPolicy":
        defaults = cls()
        return cls(
            loan_days=int(values.get("LOAN_DAYS", defaults.loan_days)),
            max_renews=int(values.get("MAX_RENEWS", defaults.max_renews)),
            fine_per_day=int(values.get("FINE_PER_DAY", defaults.fine_per_day)),
        )
