# Copyright (c) Syntropy Systems
"""Submitting sweeps and querying their child runs."""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from hypersweep.errors import InvalidArgument, NoCompletedRuns, WaitInterrupted
from hypersweep.goal import PrimaryMetricGoal
from hypersweep.models.run import ChildRunSummary
from hypersweep.progress import ConsoleProgressReporter

if TYPE_CHECKING:
    from hypersweep.client import ControlPlaneClient
    from hypersweep.models.base import JSONValue
    from hypersweep.progress import ProgressReporter
    from hypersweep.run_config import RunConfiguration

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0


class RunState(str, Enum):
    """Remote lifecycle state of a run."""

    QUEUED = "QUEUED"
    PREPARING = "PREPARING"
    RUNNING = "RUNNING"
    FINALIZING = "FINALIZING"
    CANCEL_REQUESTED = "CANCEL_REQUESTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELED = "CANCELED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_remote(cls, value: str) -> RunState:
        """Map a server state string onto a RunState."""
        key = value.strip().upper().replace("-", "_").replace(" ", "_")
        key = _STATE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            logger.debug("Unrecognized run state %r", value)
            return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.FAILED, RunState.CANCELED)


_STATE_ALIASES = {
    "NOT_STARTED": "QUEUED",
    "NOTSTARTED": "QUEUED",
    "STARTING": "PREPARING",
    "PROVISIONING": "PREPARING",
    "CANCELLED": "CANCELED",
    "CANCELREQUESTED": "CANCEL_REQUESTED",
}


@dataclass(frozen=True)
class Experiment:
    """Named experiment a sweep is submitted under."""

    name: str
    client: ControlPlaneClient


@dataclass(frozen=True)
class RunHandle:
    """Client-side reference to a submitted sweep.

    Holds only the remote ID and what is needed to rank child runs.
    Dropping the handle leaves the remote run untouched.
    """

    run_id: str
    experiment: Experiment
    primary_metric_name: str | None = None
    primary_metric_goal: PrimaryMetricGoal | None = None

    @property
    def client(self) -> ControlPlaneClient:
        return self.experiment.client


def submit(experiment: Experiment, configuration: RunConfiguration) -> RunHandle:
    """Submit a sweep and return immediately.

    Every call creates a new remote run; nothing is deduplicated.

    Raises:
        SubmissionRejected: If the control plane refuses the job
        TransportError: On network or auth failure

    """
    payload = configuration.to_wire(experiment.name).model_dump(mode="json")
    run_id = experiment.client.submit_job(payload)
    logger.info(
        "Submitted sweep %s to experiment %s (%d runs, %s sampling)",
        run_id,
        experiment.name,
        configuration.max_total_runs,
        configuration.sampling.method.lower(),
    )
    return RunHandle(
        run_id=run_id,
        experiment=experiment,
        primary_metric_name=configuration.primary_metric_name,
        primary_metric_goal=configuration.primary_metric_goal,
    )


def poll_status(handle: RunHandle) -> RunState:
    """Fetch the current state once."""
    return RunState.from_remote(handle.client.get_job_status(handle.run_id))


def wait_for_completion(  # noqa: PLR0913
    handle: RunHandle,
    show_progress: bool = False,
    poll_interval: float | None = None,
    timeout: float | None = None,
    reporter: ProgressReporter | None = None,
    stop_event: threading.Event | None = None,
) -> RunState:
    """Block until the sweep reaches a terminal state.

    Args:
        handle: Sweep to wait for
        show_progress: Print state changes to the console
        poll_interval: Seconds between status checks
        timeout: Maximum seconds to wait (default: None = wait forever)
        reporter: Receives every observed state; overrides show_progress
        stop_event: Setting it from another thread ends the wait

    Returns:
        The terminal state

    Raises:
        WaitInterrupted: If stop_event is set or the wait is interrupted
            with Ctrl+C. The remote run is not cancelled.
        TimeoutError: If timeout is reached first

    """
    interval = DEFAULT_POLL_INTERVAL if poll_interval is None else poll_interval
    if interval <= 0:
        msg = f"poll_interval must be positive, got {interval}"
        raise InvalidArgument(msg)
    if reporter is None and show_progress:
        reporter = ConsoleProgressReporter()
    event = stop_event if stop_event is not None else threading.Event()

    start = time.monotonic()
    try:
        while True:
            state = poll_status(handle)
            elapsed = time.monotonic() - start
            if reporter is not None:
                reporter.update(handle.run_id, state, elapsed)

            if state.is_terminal:
                logger.info("Sweep %s finished: %s", handle.run_id, state.value)
                if reporter is not None:
                    reporter.finish(handle.run_id, state, elapsed)
                return state

            if timeout is not None and elapsed > timeout:
                msg = f"Sweep {handle.run_id} did not complete within {timeout}s"
                raise TimeoutError(msg)

            if event.wait(interval):
                msg = f"Stopped waiting for sweep {handle.run_id}"
                raise WaitInterrupted(msg)
    except KeyboardInterrupt as e:
        logger.warning(
            "Interrupted while waiting for sweep %s; the remote run continues",
            handle.run_id,
        )
        msg = f"Interrupted while waiting for sweep {handle.run_id}"
        raise WaitInterrupted(msg) from e


def cancel(handle: RunHandle) -> RunState:
    """Request cancellation of the remote sweep and return its new state."""
    previous = handle.client.cancel_job(handle.run_id)
    logger.info("Cancellation requested for sweep %s (was %s)", handle.run_id, previous)
    return poll_status(handle)


def _metric_goal(handle: RunHandle) -> tuple[str, PrimaryMetricGoal]:
    if handle.primary_metric_name is None or handle.primary_metric_goal is None:
        msg = (
            f"Sweep {handle.run_id} has no primary metric; pass "
            "primary_metric_name and primary_metric_goal when creating the handle"
        )
        raise InvalidArgument(msg)
    return handle.primary_metric_name, PrimaryMetricGoal.parse(handle.primary_metric_goal)


def last_numeric(values: list[JSONValue]) -> float | None:
    """Return the most recently logged finite numeric value, if any.

    NaN and infinite values are skipped like non-numeric entries.
    """
    for value in reversed(values):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if math.isfinite(value):
            return float(value)
    return None


def _child_summaries(handle: RunHandle, metric_name: str) -> list[ChildRunSummary]:
    client = handle.client
    summaries: list[ChildRunSummary] = []
    for index, child_id in enumerate(client.list_child_jobs(handle.run_id)):
        metrics = client.get_job_metrics(child_id)
        summaries.append(
            ChildRunSummary(
                run_id=child_id,
                submission_index=index,
                status=RunState.from_remote(client.get_job_status(child_id)).value,
                primary_metric_value=last_numeric(metrics.get(metric_name, [])),
                metrics=metrics,
                hyperparameters=client.get_job_hyperparameters(child_id),
            )
        )
    return summaries


def list_child_runs_sorted_by_primary_metric(
    handle: RunHandle,
    top: int = 0,
    reverse: bool = False,
    discard_no_metric: bool = False,
) -> list[ChildRunSummary]:
    """List child runs best-first by primary metric.

    Descending for a maximized metric, ascending for a minimized one. The
    sort is stable, so equal values keep submission order. Runs that never
    reported the metric come last.

    Args:
        handle: Sweep to query
        top: Return at most this many runs (0 = all)
        reverse: Worst-first instead of best-first
        discard_no_metric: Drop runs without the primary metric

    """
    if isinstance(top, bool) or not isinstance(top, int) or top < 0:
        msg = f"top must be a non-negative integer, got {top!r}"
        raise InvalidArgument(msg)
    metric_name, goal = _metric_goal(handle)
    summaries = _child_summaries(handle, metric_name)

    reporting = [s for s in summaries if s.has_primary_metric]
    descending = (goal is PrimaryMetricGoal.MAXIMIZE) != reverse
    ordered = sorted(
        reporting,
        key=lambda s: s.primary_metric_value or 0.0,
        reverse=descending,
    )
    if not discard_no_metric:
        ordered.extend(s for s in summaries if not s.has_primary_metric)
    return ordered[:top] if top else ordered


def best_child_run(
    handle: RunHandle,
    include_failed: bool = True,
    include_canceled: bool = True,
) -> ChildRunSummary:
    """Return the child run with the best primary metric.

    Raises:
        NoCompletedRuns: If no eligible child reported the primary metric yet

    """
    excluded: set[str] = set()
    if not include_failed:
        excluded.add(RunState.FAILED.value)
    if not include_canceled:
        excluded.add(RunState.CANCELED.value)

    for summary in list_child_runs_sorted_by_primary_metric(
        handle, discard_no_metric=True
    ):
        if summary.status not in excluded:
            return summary

    msg = f"No child run of sweep {handle.run_id} has reported the primary metric yet"
    raise NoCompletedRuns(msg)


def child_run_metrics(handle: RunHandle) -> dict[str, dict[str, list[JSONValue]]]:
    """Return every logged value of every metric for each child run."""
    client = handle.client
    return {
        child_id: {
            name: list(values) for name, values in client.get_job_metrics(child_id).items()
        }
        for child_id in client.list_child_jobs(handle.run_id)
    }


def child_run_hyperparameters(handle: RunHandle) -> dict[str, dict[str, JSONValue]]:
    """Return the hyperparameter assignment of each child run."""
    client = handle.client
    return {
        child_id: client.get_job_hyperparameters(child_id)
        for child_id in client.list_child_jobs(handle.run_id)
    }
