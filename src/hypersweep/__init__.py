"""
hypersweep - Client for hosted hyperparameter sweeps.

Describe a search space, submit it, read back the best run.
"""

from hypersweep.distributions import (
    Choice,
    LogNormal,
    LogUniform,
    Normal,
    QLogNormal,
    QLogUniform,
    QNormal,
    QUniform,
    RandInt,
    Uniform,
)
from hypersweep.goal import PrimaryMetricGoal
from hypersweep.policies import (
    BanditPolicy,
    MedianStoppingPolicy,
    NoTerminationPolicy,
    TruncationSelectionPolicy,
)
from hypersweep.run import (
    Experiment,
    RunHandle,
    RunState,
    best_child_run,
    child_run_metrics,
    list_child_runs_sorted_by_primary_metric,
    poll_status,
    submit,
    wait_for_completion,
)
from hypersweep.run_config import RunConfiguration, ScriptTarget, build_run_configuration
from hypersweep.sampling import BayesianSampling, GridSampling, RandomSampling

__version__ = "0.1.0"
__all__ = [
    "BanditPolicy",
    "BayesianSampling",
    "Choice",
    "Experiment",
    "GridSampling",
    "LogNormal",
    "LogUniform",
    "MedianStoppingPolicy",
    "NoTerminationPolicy",
    "Normal",
    "PrimaryMetricGoal",
    "QLogNormal",
    "QLogUniform",
    "QNormal",
    "QUniform",
    "RandInt",
    "RandomSampling",
    "RunConfiguration",
    "RunHandle",
    "RunState",
    "ScriptTarget",
    "TruncationSelectionPolicy",
    "Uniform",
    "__version__",
    "best_child_run",
    "build_run_configuration",
    "child_run_metrics",
    "list_child_runs_sorted_by_primary_metric",
    "poll_status",
    "submit",
    "wait_for_completion",
]
