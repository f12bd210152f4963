# Copyright (c) Syntropy Systems
"""Pydantic models for child-run query results."""

from __future__ import annotations

from pydantic import Field

from .base import HypersweepBaseModel, JSONValue


class ChildRunSummary(HypersweepBaseModel):
    """One child run of a sweep, as seen at query time."""

    run_id: str
    submission_index: int
    status: str
    primary_metric_value: float | None = None
    metrics: dict[str, list[JSONValue]] = Field(default_factory=dict)
    hyperparameters: dict[str, JSONValue] = Field(default_factory=dict)

    @property
    def has_primary_metric(self) -> bool:
        """Whether the run reported the primary metric at least once."""
        return self.primary_metric_value is not None
