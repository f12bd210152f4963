# Copyright (c) Syntropy Systems
"""Primary metric goal."""
from __future__ import annotations

from enum import Enum

from hypersweep.errors import InvalidArgument


class PrimaryMetricGoal(str, Enum):
    """Whether a larger or a smaller primary metric is better."""

    MAXIMIZE = "MAXIMIZE"
    MINIMIZE = "MINIMIZE"

    @classmethod
    def parse(cls, value: str | PrimaryMetricGoal) -> PrimaryMetricGoal:
        """Accept an enum member or a case-insensitive name."""
        if isinstance(value, PrimaryMetricGoal):
            return value
        if isinstance(value, str):
            try:
                return cls(value.upper())
            except ValueError:
                pass
        msg = f"primary_metric_goal must be 'maximize' or 'minimize', got {value!r}"
        raise InvalidArgument(msg)

    def is_better(self, candidate: float, reference: float) -> bool:
        """Whether ``candidate`` strictly beats ``reference``."""
        if self is PrimaryMetricGoal.MAXIMIZE:
            return candidate > reference
        return candidate < reference

    def best(self, values: list[float]) -> float:
        """Best of ``values`` under this goal."""
        return max(values) if self is PrimaryMetricGoal.MAXIMIZE else min(values)
