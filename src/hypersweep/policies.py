# Copyright (c) Syntropy Systems
"""Early-termination policies.

Policies are evaluated by the remote service at every reporting interval of
every child run. The client only encodes them. ``should_terminate`` mirrors
the remote rule over a local metric history so a policy can be tried out
before submission; it never cancels anything.

Intervals are counted from 1. A policy is due at interval ``k`` when
``k >= delay_evaluation`` and ``k`` is a multiple of ``evaluation_interval``.
"""
from __future__ import annotations

import statistics
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, cast

from hypersweep.errors import InvalidArgument
from hypersweep.goal import PrimaryMetricGoal

if TYPE_CHECKING:
    from hypersweep.models.base import JSONValue

MetricHistory = Mapping[str, Sequence[float]]


def _non_negative_int(owner: str, name: str, value: object, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{owner}: {name} must be an integer, got {value!r}"
        raise InvalidArgument(msg)
    if value < minimum:
        msg = f"{owner}: {name} must be >= {minimum}, got {value}"
        raise InvalidArgument(msg)


def _values_at(history: MetricHistory, interval: int) -> dict[str, float]:
    """Metric value of each run that has reached ``interval``."""
    return {
        run_id: float(values[interval - 1])
        for run_id, values in history.items()
        if len(values) >= interval
    }


class EarlyTerminationPolicy:
    """Base class for termination policies."""

    name: ClassVar[str | None] = None

    evaluation_interval: int
    delay_evaluation: int

    def _validate_cadence(self) -> None:
        owner = type(self).__name__
        _non_negative_int(owner, "evaluation_interval", self.evaluation_interval, 1)
        _non_negative_int(owner, "delay_evaluation", self.delay_evaluation, 0)

    def properties(self) -> dict[str, JSONValue]:
        return {}

    def to_wire(self) -> dict[str, JSONValue] | None:
        """Serialize to the control plane's policy object."""
        return {
            "name": self.name,
            "properties": self.properties(),
            "evaluation_interval": self.evaluation_interval,
            "delay_evaluation": self.delay_evaluation,
        }

    def is_due(self, interval: int) -> bool:
        """Whether the policy is applied at ``interval``."""
        return (
            interval >= 1
            and interval >= self.delay_evaluation
            and interval % self.evaluation_interval == 0
        )

    def should_terminate(
        self,
        run_id: str,
        interval: int,
        history: MetricHistory,
        goal: PrimaryMetricGoal | str,
    ) -> bool:
        """Apply the policy to ``run_id`` at ``interval``.

        Args:
            run_id: Run being evaluated
            interval: 1-based reporting interval
            history: Primary metric values per run, one per interval
            goal: Primary metric goal

        Returns:
            True if the remote service would stop the run here

        """
        values = history.get(run_id, ())
        if not self.is_due(interval) or len(values) < interval:
            return False
        return self._terminate(run_id, interval, history, PrimaryMetricGoal.parse(goal))

    def _terminate(
        self,
        run_id: str,
        interval: int,
        history: MetricHistory,
        goal: PrimaryMetricGoal,
    ) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class NoTerminationPolicy(EarlyTerminationPolicy):
    """Every run goes to completion."""

    evaluation_interval: int = 1
    delay_evaluation: int = 0

    def to_wire(self) -> dict[str, JSONValue] | None:
        return None

    def is_due(self, interval: int) -> bool:
        return False


@dataclass(frozen=True)
class BanditPolicy(EarlyTerminationPolicy):
    """Stop runs that fall outside a slack of the best run so far.

    At each due interval the best value reported by any run at that interval
    is found. With ``slack_factor`` the allowed slack scales with ``abs(best)``
    so negative metrics behave like positive ones: a run is stopped when, for
    a maximized metric, ``value < best - abs(best) * slack_factor / (1 +
    slack_factor)``, or for a minimized metric ``value > best + abs(best) *
    slack_factor``. With ``slack_amount`` the bounds
    are ``best - slack_amount`` and ``best + slack_amount``.

    Exactly one of ``slack_factor`` and ``slack_amount`` must be given.
    """

    slack_factor: float | None = None
    slack_amount: float | None = None
    evaluation_interval: int = 1
    delay_evaluation: int = 0

    name: ClassVar[str | None] = "BANDIT"

    def __post_init__(self) -> None:
        if (self.slack_factor is None) == (self.slack_amount is None):
            msg = "BanditPolicy: set exactly one of slack_factor and slack_amount"
            raise InvalidArgument(msg)
        field, value = (
            ("slack_factor", self.slack_factor)
            if self.slack_factor is not None
            else ("slack_amount", self.slack_amount)
        )
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            msg = f"BanditPolicy: {field} must be a positive number, got {value!r}"
            raise InvalidArgument(msg)
        self._validate_cadence()

    def properties(self) -> dict[str, JSONValue]:
        if self.slack_factor is not None:
            return {"slack_factor": self.slack_factor}
        return {"slack_amount": self.slack_amount}

    def _terminate(
        self,
        run_id: str,
        interval: int,
        history: MetricHistory,
        goal: PrimaryMetricGoal,
    ) -> bool:
        current = _values_at(history, interval)
        best = goal.best(list(current.values()))
        value = current[run_id]
        maximize = goal is PrimaryMetricGoal.MAXIMIZE

        if self.slack_factor is not None:
            if maximize:
                slack = abs(best) * self.slack_factor / (1 + self.slack_factor)
                return value < best - slack
            return value > best + abs(best) * self.slack_factor

        slack = cast("float", self.slack_amount)
        if maximize:
            return value < best - slack
        return value > best + slack


@dataclass(frozen=True)
class MedianStoppingPolicy(EarlyTerminationPolicy):
    """Stop runs whose best value is worse than the median of running averages.

    At each due interval the running average of every run over intervals
    ``1..k`` is taken; a run is stopped when its best value so far is worse
    than the median of those averages.
    """

    evaluation_interval: int = 1
    delay_evaluation: int = 5

    name: ClassVar[str | None] = "MEDIAN_STOPPING"

    def __post_init__(self) -> None:
        self._validate_cadence()

    def _terminate(
        self,
        run_id: str,
        interval: int,
        history: MetricHistory,
        goal: PrimaryMetricGoal,
    ) -> bool:
        averages = [
            statistics.fmean(float(v) for v in values[:interval])
            for values in history.values()
            if len(values) >= interval
        ]
        median = statistics.median(averages)
        run_best = goal.best([float(v) for v in history[run_id][:interval]])
        return goal.is_better(median, run_best)


@dataclass(frozen=True)
class TruncationSelectionPolicy(EarlyTerminationPolicy):
    """Stop the worst ``truncation_percentage`` percent of runs at each interval.

    Runs are ranked by their value at the interval; the lowest-ranked
    ``floor(n * truncation_percentage / 100)`` runs are stopped. Ties keep
    the order of ``history``. ``exclude_finished_jobs`` tells the service to
    leave completed runs out of the ranking.
    """

    truncation_percentage: int = 0
    evaluation_interval: int = 1
    delay_evaluation: int = 0
    exclude_finished_jobs: bool = False

    name: ClassVar[str | None] = "TRUNCATION_SELECTION"

    def __post_init__(self) -> None:
        pct = self.truncation_percentage
        if isinstance(pct, bool) or not isinstance(pct, int) or not 0 < pct < 100:  # noqa: PLR2004
            msg = (
                "TruncationSelectionPolicy: truncation_percentage must be an "
                f"integer between 1 and 99, got {pct!r}"
            )
            raise InvalidArgument(msg)
        self._validate_cadence()

    def properties(self) -> dict[str, JSONValue]:
        return {
            "truncation_percentage": self.truncation_percentage,
            "exclude_finished_jobs": self.exclude_finished_jobs,
        }

    def _terminate(
        self,
        run_id: str,
        interval: int,
        history: MetricHistory,
        goal: PrimaryMetricGoal,
    ) -> bool:
        current = _values_at(history, interval)
        # worst first; sorted() is stable so ties keep history order
        ranked = sorted(
            current,
            key=lambda rid: current[rid],
            reverse=goal is PrimaryMetricGoal.MINIMIZE,
        )
        cutoff = len(ranked) * self.truncation_percentage // 100
        return run_id in ranked[:cutoff]


POLICIES: dict[str, type[EarlyTerminationPolicy]] = {
    "none": NoTerminationPolicy,
    "bandit": BanditPolicy,
    "median_stopping": MedianStoppingPolicy,
    "truncation_selection": TruncationSelectionPolicy,
}


def build_policy(kind: str | None, **params: object) -> EarlyTerminationPolicy:
    """Build a policy by kind (none, bandit, median_stopping, truncation_selection)."""
    key = "none" if kind is None else kind.lower().replace("-", "_")
    cls = POLICIES.get(key)
    if cls is None:
        msg = f"Unknown early termination policy: {kind}"
        raise InvalidArgument(msg)
    try:
        return cls(**params)  # type: ignore[arg-type]
    except TypeError as e:
        msg = f"Invalid parameters for {key} policy: {e}"
        raise InvalidArgument(msg) from e


def policy_from_wire(data: Mapping[str, object] | None) -> EarlyTerminationPolicy:
    """Parse a serialized policy object back into a policy."""
    if data is None:
        return NoTerminationPolicy()
    name = data.get("name")
    if not isinstance(name, str):
        msg = f"Policy object needs a 'name', got {data!r}"
        raise InvalidArgument(msg)
    properties = cast("Mapping[str, object]", data.get("properties") or {})
    params: dict[str, object] = dict(properties)
    for key in ("evaluation_interval", "delay_evaluation"):
        if key in data:
            params[key] = data[key]
    return build_policy(name, **params)
