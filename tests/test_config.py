# Copyright (c) Syntropy Systems
"""Tests for configuration loading."""
from __future__ import annotations

from typing import TYPE_CHECKING

from hypersweep.config import HypersweepConfig, find_config_dir, load_config
from hypersweep.sampling import BAYESIAN_DISTRIBUTIONS

if TYPE_CHECKING:
    from pathlib import Path


def test_defaults(tmp_path: Path) -> None:
    """Test defaults when the config file is absent."""
    config = load_config(tmp_path)
    assert config == HypersweepConfig()
    assert config.poll_interval == 10.0
    assert config.bayesian_distributions == BAYESIAN_DISTRIBUTIONS


def test_load_values(tmp_path: Path) -> None:
    """Test values are read from config.yaml."""
    _ = (tmp_path / "config.yaml").write_text(
        "server_url: https://ml.example.com\n"
        "timeout: 5\n"
        "poll_interval: 2.5\n"
        "bayesian_distributions: [Choice, uniform]\n"
    )
    config = load_config(tmp_path)
    assert config.server_url == "https://ml.example.com"
    assert config.timeout == 5.0
    assert config.poll_interval == 2.5
    assert config.bayesian_distributions == frozenset({"choice", "uniform"})


def test_invalid_values_ignored(tmp_path: Path) -> None:
    """Test wrongly typed values fall back to defaults."""
    _ = (tmp_path / "config.yaml").write_text(
        "server_url: 8080\ntimeout: fast\npoll_interval: -1\nbayesian_distributions: all\n"
    )
    assert load_config(tmp_path) == HypersweepConfig()


def test_find_config_dir_walks_up(project_dir: Path) -> None:
    """Test the nearest .hypersweep directory is found from a subdirectory."""
    nested = project_dir / "a" / "b"
    nested.mkdir(parents=True)
    found = find_config_dir(nested)
    assert found is not None
    assert found.resolve() == (project_dir / ".hypersweep").resolve()


def test_find_config_dir_in_start_dir(project_dir: Path) -> None:
    """Test a .hypersweep directory in the start directory itself is found."""
    found = find_config_dir(project_dir)
    assert found is not None
    assert found.resolve() == (project_dir / ".hypersweep").resolve()


def test_find_config_dir_missing(tmp_path: Path) -> None:
    """Test None is returned when no ancestor has a .hypersweep directory."""
    nested = tmp_path / "x" / "y"
    nested.mkdir(parents=True)
    found = find_config_dir(nested)
    assert found is None or not found.is_relative_to(tmp_path)


def test_load_from_cwd(project_dir: Path) -> None:
    """Test load_config finds the project config from the cwd."""
    _ = (project_dir / ".hypersweep" / "config.yaml").write_text("poll_interval: 1\n")
    assert load_config().poll_interval == 1.0
