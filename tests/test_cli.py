# Copyright (c) Syntropy Systems
"""Tests for hypersweep CLI commands."""
from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from hypersweep.cli.main import app
from hypersweep.errors import SubmissionRejected

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path

    from conftest import FakeControlPlaneClient

runner = CliRunner()

SWEEP_YAML = """\
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


@pytest.fixture
def sweep_file(project_dir: Path) -> Path:
    path = project_dir / "sweep.yaml"
    _ = path.write_text(SWEEP_YAML)
    return path


@pytest.fixture
def patched_client(
    fake_client: FakeControlPlaneClient,
) -> Generator[MagicMock, None, None]:
    factory = MagicMock(return_value=fake_client)
    with patch("hypersweep.cli.common.get_client", factory):
        yield factory


class TestValidateCommand:
    """Tests for hypersweep validate."""

    def test_valid(self, sweep_file: Path) -> None:
        """Test a valid sweep file."""
        result = runner.invoke(app, ["validate", str(sweep_file)])

        assert result.exit_code == 0
        assert "Configuration is valid" in result.stdout
        assert "batch_size" in result.stdout
        assert "BANDIT" in result.stdout

    def test_grid_with_continuous(self, sweep_file: Path) -> None:
        """Test validation errors exit with 1."""
        _ = sweep_file.write_text(SWEEP_YAML.replace("method: random", "method: grid"))

        result = runner.invoke(app, ["validate", str(sweep_file)])

        assert result.exit_code == 1
        assert "Error" in result.stdout


class TestSubmitCommand:
    """Tests for hypersweep submit."""

    def test_submit(
        self,
        sweep_file: Path,
        fake_client: FakeControlPlaneClient,
        patched_client: MagicMock,
    ) -> None:
        """Test a sweep is submitted through the client."""
        result = runner.invoke(app, ["submit", str(sweep_file), "--server", "http://cp.test"])

        assert result.exit_code == 0
        assert "Submitted sweep sweep_1" in result.stdout
        assert patched_client.call_args[0][0] == "http://cp.test"
        assert fake_client.submitted[0]["experiment"] == "mnist"
        assert fake_client.closed

    def test_experiment_override(
        self,
        sweep_file: Path,
        fake_client: FakeControlPlaneClient,
        patched_client: MagicMock,
    ) -> None:
        """Test --experiment wins over the file."""
        result = runner.invoke(app, ["submit", str(sweep_file), "-e", "cifar"])

        assert result.exit_code == 0
        assert fake_client.submitted[0]["experiment"] == "cifar"

    def test_missing_experiment(self, sweep_file: Path, patched_client: MagicMock) -> None:
        """Test submission without an experiment name fails."""
        _ = sweep_file.write_text(SWEEP_YAML.replace("experiment: mnist\n", ""))

        result = runner.invoke(app, ["submit", str(sweep_file)])

        assert result.exit_code == 1
        assert "No experiment name" in result.stdout
        patched_client.assert_not_called()

    def test_submit_and_wait(
        self,
        sweep_file: Path,
        fake_client: FakeControlPlaneClient,
        patched_client: MagicMock,
    ) -> None:
        """Test --wait polls to a terminal state."""
        fake_client.statuses["sweep_1"] = ["Running", "Completed"]

        result = runner.invoke(
            app, ["submit", str(sweep_file), "--wait", "--interval", "0.01"]
        )

        assert result.exit_code == 0
        assert "Sweep finished: completed" in result.stdout

    def test_rejected(self, sweep_file: Path) -> None:
        """Test a rejected submission prints the server detail."""
        client = MagicMock()
        client.__enter__.return_value = client
        client.submit_job.side_effect = SubmissionRejected("quota exceeded", 429)

        with patch("hypersweep.cli.common.get_client", MagicMock(return_value=client)):
            result = runner.invoke(app, ["submit", str(sweep_file)])

        assert result.exit_code == 1
        assert "quota exceeded" in result.stdout


class TestStatusCommands:
    """Tests for hypersweep status and cancel."""

    def test_status(
        self,
        project_dir: Path,
        fake_client: FakeControlPlaneClient,
        patched_client: MagicMock,
    ) -> None:
        """Test a one-shot status query."""
        fake_client.statuses["sweep_1"] = ["Running"]

        result = runner.invoke(app, ["status", "sweep_1"])

        assert result.exit_code == 0
        assert "running" in result.stdout

    def test_status_wait(
        self,
        project_dir: Path,
        fake_client: FakeControlPlaneClient,
        patched_client: MagicMock,
    ) -> None:
        """Test waiting for a terminal state."""
        fake_client.statuses["sweep_1"] = ["Queued", "Running", "Failed"]

        result = runner.invoke(app, ["status", "sweep_1", "--wait", "-i", "0.01"])

        assert result.exit_code == 0
        assert "failed" in result.stdout
        assert fake_client.status_calls == 3

    def test_cancel(
        self,
        project_dir: Path,
        fake_client: FakeControlPlaneClient,
        patched_client: MagicMock,
    ) -> None:
        """Test cancelling a running sweep."""
        fake_client.statuses["sweep_1"] = ["Running"]

        result = runner.invoke(app, ["cancel", "sweep_1"])

        assert result.exit_code == 0
        assert "Cancellation requested" in result.stdout
        assert fake_client.cancelled == ["sweep_1"]

    def test_cancel_finished(
        self,
        project_dir: Path,
        fake_client: FakeControlPlaneClient,
        patched_client: MagicMock,
    ) -> None:
        """Test cancelling a finished sweep is a no-op."""
        fake_client.statuses["sweep_1"] = ["Completed"]

        result = runner.invoke(app, ["cancel", "sweep_1"])

        assert result.exit_code == 0
        assert "already completed" in result.stdout
        assert fake_client.cancelled == []


class TestRunsCommands:
    """Tests for hypersweep children and best."""

    @pytest.fixture
    def with_children(self, fake_client: FakeControlPlaneClient) -> FakeControlPlaneClient:
        fake_client.add_child(
            "sweep_1", "r0", metrics={"accuracy": [0.7]}, hyperparameters={"lr": 0.1}
        )
        fake_client.add_child(
            "sweep_1", "r1", metrics={"accuracy": [0.9]}, hyperparameters={"lr": 0.01}
        )
        return fake_client

    def test_children(
        self,
        project_dir: Path,
        with_children: FakeControlPlaneClient,
        patched_client: MagicMock,
    ) -> None:
        """Test the ranked table."""
        result = runner.invoke(app, ["children", "sweep_1", "--metric", "accuracy"])

        assert result.exit_code == 0
        assert result.stdout.index("r1") < result.stdout.index("r0")

    def test_best(
        self,
        project_dir: Path,
        with_children: FakeControlPlaneClient,
        patched_client: MagicMock,
    ) -> None:
        """Test the best run is printed."""
        result = runner.invoke(app, ["best", "sweep_1", "-m", "accuracy", "-g", "minimize"])

        assert result.exit_code == 0
        assert "Best run: r0" in result.stdout

    def test_best_no_runs(
        self,
        project_dir: Path,
        patched_client: MagicMock,
    ) -> None:
        """Test a sweep without reporting children exits with 1."""
        result = runner.invoke(app, ["best", "sweep_1", "-m", "accuracy"])

        assert result.exit_code == 1
        assert "No child run" in result.stdout

    def test_bad_goal(self, project_dir: Path, patched_client: MagicMock) -> None:
        """Test an unknown goal is reported."""
        result = runner.invoke(app, ["children", "sweep_1", "-m", "accuracy", "-g", "up"])

        assert result.exit_code == 1
        assert "Error" in result.stdout
