# Copyright (c) Syntropy Systems
"""Sweep run configuration."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Union, cast, runtime_checkable

import yaml
from pydantic import Field, ValidationError

from hypersweep.errors import InvalidArgument
from hypersweep.goal import PrimaryMetricGoal
from hypersweep.models.api import JobSubmission, PrimaryMetricConfig
from hypersweep.models.base import HypersweepBaseModel
from hypersweep.policies import (
    EarlyTerminationPolicy,
    NoTerminationPolicy,
    build_policy,
)
from hypersweep.sampling import BayesianSampling, SamplingStrategy, build_sampling

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from hypersweep.models.base import JSONValue

DEFAULT_MAX_DURATION_MINUTES = 10080


@runtime_checkable
class SerializableTarget(Protocol):
    """Anything that can describe itself to the control plane."""

    def to_wire(self) -> dict[str, JSONValue]:
        ...


ExecutionTarget = Union[SerializableTarget, Mapping[str, object]]


class ScriptTarget(HypersweepBaseModel):
    """Script, environment and compute a child run executes on."""

    script: str
    compute_target: str
    environment: str | None = None
    arguments: list[str] = Field(default_factory=list)
    source_directory: str = "."

    def to_wire(self) -> dict[str, JSONValue]:
        """Serialize for submission."""
        return cast("dict[str, JSONValue]", self.model_dump())


def _positive_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        msg = f"{name} must be a positive integer, got {value!r}"
        raise InvalidArgument(msg)
    return value


@dataclass(frozen=True)
class RunConfiguration:
    """Everything needed to submit one sweep.

    Owns its sampling strategy and policy. The execution target is only
    referenced; hypersweep never inspects it beyond serialization.
    """

    execution_target: ExecutionTarget
    sampling: SamplingStrategy
    primary_metric_name: str
    primary_metric_goal: PrimaryMetricGoal
    max_total_runs: int
    policy: EarlyTerminationPolicy = NoTerminationPolicy()
    max_concurrent_runs: int | None = None
    max_duration_minutes: int = DEFAULT_MAX_DURATION_MINUTES

    def __post_init__(self) -> None:
        target = cast("object", self.execution_target)
        if not isinstance(target, (SerializableTarget, Mapping)):
            msg = "execution_target must be a mapping or provide to_wire()"
            raise InvalidArgument(msg)
        if not isinstance(self.sampling, SamplingStrategy):
            msg = f"sampling must be a SamplingStrategy, got {self.sampling!r}"
            raise InvalidArgument(msg)

        name = cast("object", self.primary_metric_name)
        if not isinstance(name, str) or not name.strip():
            msg = "primary_metric_name must be a non-empty string"
            raise InvalidArgument(msg)
        object.__setattr__(
            self, "primary_metric_goal", PrimaryMetricGoal.parse(self.primary_metric_goal)
        )

        policy = cast("object", self.policy)
        if policy is None:
            object.__setattr__(self, "policy", NoTerminationPolicy())
        elif not isinstance(policy, EarlyTerminationPolicy):
            msg = f"policy must be an EarlyTerminationPolicy, got {policy!r}"
            raise InvalidArgument(msg)
        if isinstance(self.sampling, BayesianSampling) and not isinstance(
            self.policy, NoTerminationPolicy
        ):
            msg = "Bayesian sampling does not support an early termination policy"
            raise InvalidArgument(msg)

        total = _positive_int("max_total_runs", self.max_total_runs)
        if self.max_concurrent_runs is not None:
            concurrent = _positive_int("max_concurrent_runs", self.max_concurrent_runs)
            if concurrent > total:
                msg = (
                    f"max_concurrent_runs ({concurrent}) cannot exceed "
                    f"max_total_runs ({total})"
                )
                raise InvalidArgument(msg)
        _ = _positive_int("max_duration_minutes", self.max_duration_minutes)

    def target_to_wire(self) -> dict[str, JSONValue]:
        target = self.execution_target
        if isinstance(target, SerializableTarget):
            return target.to_wire()
        return cast("dict[str, JSONValue]", dict(target))

    def to_wire(self, experiment: str | None = None) -> JobSubmission:
        """Build the job description sent on submission."""
        return JobSubmission(
            experiment=experiment,
            execution_target=self.target_to_wire(),
            sampling=self.sampling.to_wire(),
            policy=self.policy.to_wire(),
            primary_metric=PrimaryMetricConfig(
                name=self.primary_metric_name,
                goal=self.primary_metric_goal.value,
            ),
            max_total_runs=self.max_total_runs,
            max_concurrent_runs=self.max_concurrent_runs,
            max_duration_minutes=self.max_duration_minutes,
        )

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, object],
        bayesian_distributions: Iterable[str] | None = None,
    ) -> RunConfiguration:
        """Build a configuration from a parsed sweep file.

        See ``load_sweep_yaml`` for the layout.
        """
        for key in ("target", "sampling", "primary_metric", "max_total_runs"):
            if key not in data:
                msg = f"Sweep config must have '{key}' field"
                raise InvalidArgument(msg)

        target_data = data["target"]
        if not isinstance(target_data, Mapping):
            msg = "'target' must be a mapping"
            raise InvalidArgument(msg)
        try:
            target = ScriptTarget.model_validate(target_data)
        except ValidationError as e:
            msg = f"Invalid target: {e}"
            raise InvalidArgument(msg) from e

        sampling_data = data["sampling"]
        if not isinstance(sampling_data, Mapping):
            msg = "'sampling' must be a mapping"
            raise InvalidArgument(msg)
        sampling_data = cast("Mapping[str, object]", sampling_data)
        method = cast("str", sampling_data.get("method", "random"))
        extra: dict[str, object] = {}
        if str(method).lower() == "random" and "seed" in sampling_data:
            extra["seed"] = sampling_data["seed"]
        if str(method).lower() == "bayesian" and bayesian_distributions is not None:
            extra["supported"] = bayesian_distributions
        sampling = build_sampling(
            str(method),
            cast("Mapping[str, object]", sampling_data.get("parameters") or {}),
            **extra,
        )

        policy_data = data.get("policy")
        if policy_data is None:
            policy: EarlyTerminationPolicy = NoTerminationPolicy()
        elif not isinstance(policy_data, Mapping):
            msg = "'policy' must be a mapping with a 'kind'"
            raise InvalidArgument(msg)
        else:
            params = dict(policy_data)
            kind = cast("str | None", params.pop("kind", None))
            policy = build_policy(kind, **params)

        metric = data["primary_metric"]
        if not isinstance(metric, Mapping) or "name" not in metric:
            msg = "'primary_metric' must be a mapping with 'name' and 'goal'"
            raise InvalidArgument(msg)
        metric = cast("Mapping[str, object]", metric)

        return cls(
            execution_target=target,
            sampling=sampling,
            primary_metric_name=cast("str", metric["name"]),
            primary_metric_goal=cast("PrimaryMetricGoal", metric.get("goal", "maximize")),
            max_total_runs=cast("int", data["max_total_runs"]),
            policy=policy,
            max_concurrent_runs=cast("int | None", data.get("max_concurrent_runs")),
            max_duration_minutes=cast(
                "int",
                data.get("max_duration_minutes", DEFAULT_MAX_DURATION_MINUTES),
            ),
        )

    @classmethod
    def from_yaml(
        cls,
        path: Path,
        bayesian_distributions: Iterable[str] | None = None,
    ) -> RunConfiguration:
        """Load a configuration from a sweep YAML file."""
        return cls.from_dict(load_sweep_yaml(path), bayesian_distributions)


def build_run_configuration(  # noqa: PLR0913
    execution_target: ExecutionTarget,
    sampling: SamplingStrategy,
    primary_metric_name: str,
    primary_metric_goal: PrimaryMetricGoal | str,
    max_total_runs: int,
    policy: EarlyTerminationPolicy | None = None,
    max_concurrent_runs: int | None = None,
    max_duration_minutes: int = DEFAULT_MAX_DURATION_MINUTES,
) -> RunConfiguration:
    """Validate and assemble a sweep configuration. No network access."""
    return RunConfiguration(
        execution_target=execution_target,
        sampling=sampling,
        primary_metric_name=primary_metric_name,
        primary_metric_goal=cast("PrimaryMetricGoal", primary_metric_goal),
        max_total_runs=max_total_runs,
        policy=policy if policy is not None else NoTerminationPolicy(),
        max_concurrent_runs=max_concurrent_runs,
        max_duration_minutes=max_duration_minutes,
    )


def load_sweep_yaml(path: Path) -> dict[str, object]:
    r"""Read a sweep file.

    Example sweep.yaml:

    \b
        experiment: mnist
        target: {script: train.py, compute_target: gpu-cluster}
        sampling:
          method: random
          parameters:
            batch_size: [choice, [[16, 32, 64]]]
            lr: {distribution: normal, mu: 0.0001, sigma: 0.005}
        policy: {kind: bandit, slack_factor: 0.15}
        primary_metric: {name: accuracy, goal: maximize}
        max_total_runs: 20
        max_concurrent_runs: 4
    """
    with path.open() as f:
        data = cast("object", yaml.safe_load(f))
    if not isinstance(data, dict):
        msg = f"Sweep config {path} must be a YAML mapping"
        raise InvalidArgument(msg)
    return cast("dict[str, object]", data)
