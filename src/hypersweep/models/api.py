# Copyright (c) Syntropy Systems
"""Pydantic models for control-plane requests and responses."""

from __future__ import annotations

from pydantic import Field

from .base import HypersweepBaseModel, JSONValue


class PrimaryMetricConfig(HypersweepBaseModel):
    """Primary metric name and optimization goal."""

    name: str
    goal: str


class JobSubmission(HypersweepBaseModel):
    """Serialized sweep job description sent to the control plane."""

    experiment: str | None = None
    execution_target: dict[str, JSONValue]
    sampling: dict[str, JSONValue]
    policy: dict[str, JSONValue] | None = None
    primary_metric: PrimaryMetricConfig
    max_total_runs: int = Field(gt=0)
    max_concurrent_runs: int | None = Field(default=None, gt=0)
    max_duration_minutes: int = Field(gt=0)


class JobCreateResponse(HypersweepBaseModel):
    """Response from submitting a sweep job."""

    job_id: str
    message: str | None = None


class JobStatusResponse(HypersweepBaseModel):
    """Current state of a job."""

    job_id: str
    status: str


class JobMetricsResponse(HypersweepBaseModel):
    """Every logged value of every metric of a job, in logging order."""

    metrics: dict[str, list[JSONValue]] = Field(default_factory=dict)


class ChildJobListResponse(HypersweepBaseModel):
    """Child job IDs in submission order."""

    jobs: list[str] = Field(default_factory=list)


class JobHyperparametersResponse(HypersweepBaseModel):
    """Hyperparameter assignment a child job was launched with."""

    hyperparameters: dict[str, JSONValue] = Field(default_factory=dict)


class JobCancelResponse(HypersweepBaseModel):
    """Response from cancelling a job."""

    message: str
    previous_status: str | None = None


class ErrorResponse(HypersweepBaseModel):
    """Error response."""

    detail: str
    error_code: str | None = None
