# Copyright (c) Syntropy Systems
"""Configuration management for hypersweep."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

import yaml

from hypersweep.sampling import BAYESIAN_DISTRIBUTIONS


@dataclass
class HypersweepConfig:
    """Configuration for hypersweep."""

    # Control-plane base URL
    server_url: str = "http://localhost:8080"

    # Request timeout in seconds
    timeout: float = 30.0

    # Seconds between status polls while waiting for a sweep
    poll_interval: float = 10.0

    # Distribution tags the Bayesian sampler accepts on this platform
    bayesian_distributions: frozenset[str] = field(
        default_factory=lambda: BAYESIAN_DISTRIBUTIONS
    )


def find_config_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .hypersweep directory by walking up from start_path.

    Returns None if no .hypersweep directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()
    for candidate in (current, *current.parents):
        if (candidate / ".hypersweep").is_dir():
            return candidate / ".hypersweep"
    return None


def get_global_config_dir() -> Path:
    """Get the global hypersweep config directory (~/.hypersweep)."""
    return Path.home() / ".hypersweep"


def load_config(config_dir: Path | None = None) -> HypersweepConfig:
    """Load configuration from .hypersweep/config.yaml or defaults.

    Looks for config in:
    1. Provided config_dir
    2. Nearest .hypersweep directory walking up
    3. ~/.hypersweep/config.yaml
    4. Defaults
    """
    config = HypersweepConfig()

    # Find config file
    config_path = None

    if config_dir is not None:
        config_path = config_dir / "config.yaml"
    else:
        found_dir = find_config_dir()
        if found_dir is not None:
            config_path = found_dir / "config.yaml"
        else:
            global_config = get_global_config_dir() / "config.yaml"
            if global_config.exists():
                config_path = global_config

    if config_path is not None and config_path.exists():
        with config_path.open() as f:
            data = cast("dict[str, object]", yaml.safe_load(f) or {})

        server_url = data.get("server_url")
        if isinstance(server_url, str) and server_url:
            config.server_url = server_url
        timeout = data.get("timeout")
        if isinstance(timeout, (int, float)) and timeout > 0:
            config.timeout = float(timeout)
        poll_interval = data.get("poll_interval")
        if isinstance(poll_interval, (int, float)) and poll_interval > 0:
            config.poll_interval = float(poll_interval)
        bayesian = data.get("bayesian_distributions")
        if isinstance(bayesian, list) and all(isinstance(t, str) for t in bayesian):
            config.bayesian_distributions = frozenset(
                t.lower() for t in cast("list[str]", bayesian)
            )

    return config
