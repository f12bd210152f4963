# Copyright (c) Syntropy Systems
"""Pytest fixtures for hypersweep tests."""
from __future__ import annotations

import os
import tempfile
from collections.abc import Generator, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from hypersweep.distributions import Choice, Normal
from hypersweep.run import Experiment
from hypersweep.run_config import RunConfiguration, ScriptTarget
from hypersweep.sampling import RandomSampling

if TYPE_CHECKING:
    from types import TracebackType

    from hypersweep.models.base import JSONValue

# Store original cwd at module load time
_original_cwd = Path.cwd()


class FakeControlPlaneClient:
    """In-memory control plane.

    Status sequences are consumed one entry per poll; the last entry sticks.
    """

    def __init__(self) -> None:
        self.submitted: list[dict[str, JSONValue]] = []
        self.statuses: dict[str, list[str]] = {}
        self.children: dict[str, list[str]] = {}
        self.metrics: dict[str, dict[str, list[JSONValue]]] = {}
        self.hyperparameters: dict[str, dict[str, JSONValue]] = {}
        self.cancelled: list[str] = []
        self.status_calls = 0
        self.closed = False

    def submit_job(self, serialized_config: Mapping[str, JSONValue]) -> str:
        self.submitted.append(dict(serialized_config))
        job_id = f"sweep_{len(self.submitted)}"
        _ = self.statuses.setdefault(job_id, ["QUEUED"])
        return job_id

    def get_job_status(self, job_id: str) -> str:
        self.status_calls += 1
        sequence = self.statuses.get(job_id, ["RUNNING"])
        if len(sequence) > 1:
            return sequence.pop(0)
        return sequence[0]

    def get_job_metrics(self, job_id: str) -> dict[str, list[JSONValue]]:
        return self.metrics.get(job_id, {})

    def list_child_jobs(self, job_id: str) -> list[str]:
        return list(self.children.get(job_id, []))

    def get_job_hyperparameters(self, job_id: str) -> dict[str, JSONValue]:
        return self.hyperparameters.get(job_id, {})

    def cancel_job(self, job_id: str) -> str | None:
        self.cancelled.append(job_id)
        previous = self.statuses.get(job_id, ["RUNNING"])[0]
        self.statuses[job_id] = ["CANCEL_REQUESTED"]
        return previous

    def add_child(
        self,
        parent_id: str,
        child_id: str,
        status: str = "COMPLETED",
        metrics: dict[str, list[JSONValue]] | None = None,
        hyperparameters: dict[str, JSONValue] | None = None,
    ) -> None:
        """Register a child run under ``parent_id``."""
        self.children.setdefault(parent_id, []).append(child_id)
        self.statuses[child_id] = [status]
        self.metrics[child_id] = metrics or {}
        self.hyperparameters[child_id] = hyperparameters or {}

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> FakeControlPlaneClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


@pytest.fixture
def fake_client() -> FakeControlPlaneClient:
    """An empty in-memory control plane."""
    return FakeControlPlaneClient()


@pytest.fixture
def experiment(fake_client: FakeControlPlaneClient) -> Experiment:
    """An experiment bound to the fake control plane."""
    return Experiment(name="mnist", client=fake_client)


@pytest.fixture
def run_configuration() -> RunConfiguration:
    """A small random sweep maximizing accuracy."""
    return RunConfiguration(
        execution_target=ScriptTarget(script="train.py", compute_target="gpu-cluster"),
        sampling=RandomSampling(
            {"batch_size": Choice([16, 32, 64]), "lr": Normal(0.0001, 0.005)}
        ),
        primary_metric_name="accuracy",
        primary_metric_goal="maximize",  # type: ignore[arg-type]
        max_total_runs=8,
        max_concurrent_runs=2,
    )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_dir(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary project with a .hypersweep directory."""
    (temp_dir / ".hypersweep").mkdir()

    # Change to temp directory
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)
