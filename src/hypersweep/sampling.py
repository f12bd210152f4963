# Copyright (c) Syntropy Systems
"""Sampling strategies over a hyperparameter search space."""
from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, ClassVar, cast

from hypersweep.distributions import Choice, Distribution, parse_distribution
from hypersweep.errors import InvalidArgument, UnsupportedDistributionForStrategy

if TYPE_CHECKING:
    from collections.abc import Iterable

    from hypersweep.models.base import JSONValue

# Every continuous distribution except quantized log-normal; randint is not
# continuous and the Bayesian optimizer cannot model it.
BAYESIAN_DISTRIBUTIONS: frozenset[str] = frozenset(
    {
        "choice",
        "uniform",
        "quniform",
        "loguniform",
        "qloguniform",
        "normal",
        "qnormal",
        "lognormal",
    }
)


class SamplingStrategy:
    """A named mapping of hyperparameters to distributions.

    Subclasses restrict which distributions they accept. The check runs in
    the constructor so a bad search space never reaches the network.
    """

    method: ClassVar[str]

    parameter_space: Mapping[str, Distribution]

    def __init__(self, parameter_space: Mapping[str, object]) -> None:
        if not isinstance(parameter_space, Mapping):
            msg = "parameter_space must be a mapping of name to distribution"
            raise InvalidArgument(msg)
        if not parameter_space:
            msg = "parameter_space must define at least one hyperparameter"
            raise InvalidArgument(msg)

        space: dict[str, Distribution] = {}
        for name, value in parameter_space.items():
            if not isinstance(name, str) or not name:
                msg = f"Hyperparameter names must be non-empty strings, got {name!r}"
                raise InvalidArgument(msg)
            distribution = parse_distribution(value)
            self._check_distribution(name, distribution)
            space[name] = distribution

        self.parameter_space = MappingProxyType(space)

    def _check_distribution(self, name: str, distribution: Distribution) -> None:
        """Raise if ``distribution`` is not usable with this strategy."""

    def properties(self) -> dict[str, JSONValue]:
        """Strategy-specific settings sent alongside the space."""
        return {}

    def to_wire(self) -> dict[str, JSONValue]:
        """Serialize to the control plane's search-space object."""
        return {
            "parameter_space": {
                name: dist.to_wire() for name, dist in self.parameter_space.items()
            },
            "sampling_method": self.method,
            "properties": self.properties(),
        }

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        other = cast("SamplingStrategy", other)
        return (
            list(self.parameter_space.items()) == list(other.parameter_space.items())
            and self.properties() == other.properties()
        )

    def __hash__(self) -> int:
        return hash((self.method, tuple(self.parameter_space.items())))

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.parameter_space.items())
        return f"{type(self).__name__}({params})"


class RandomSampling(SamplingStrategy):
    """Independent random draws; accepts every distribution."""

    method: ClassVar[str] = "RANDOM"

    def __init__(
        self,
        parameter_space: Mapping[str, object],
        seed: int | None = None,
    ) -> None:
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            msg = f"seed must be an integer, got {seed!r}"
            raise InvalidArgument(msg)
        self.seed = seed
        super().__init__(parameter_space)

    def properties(self) -> dict[str, JSONValue]:
        if self.seed is None:
            return {}
        return {"seed": self.seed}


class GridSampling(SamplingStrategy):
    """Exhaustive enumeration; every hyperparameter must be a choice."""

    method: ClassVar[str] = "GRID"

    def _check_distribution(self, name: str, distribution: Distribution) -> None:
        if not isinstance(distribution, Choice):
            raise UnsupportedDistributionForStrategy(name, distribution.tag, "grid")

    @property
    def grid_size(self) -> int:
        """Number of distinct assignments in the grid."""
        size = 1
        for dist in self.parameter_space.values():
            size *= len(cast("Choice", dist).values)
        return size


class BayesianSampling(SamplingStrategy):
    """Sequential model-based search.

    Which distributions the remote optimizer accepts is a platform policy;
    pass ``supported`` to match a deployment that differs from the default.
    """

    method: ClassVar[str] = "BAYESIAN"

    def __init__(
        self,
        parameter_space: Mapping[str, object],
        supported: Iterable[str] | None = None,
    ) -> None:
        self.supported = (
            BAYESIAN_DISTRIBUTIONS
            if supported is None
            else frozenset(tag.lower() for tag in supported)
        )
        super().__init__(parameter_space)

    def _check_distribution(self, name: str, distribution: Distribution) -> None:
        if distribution.tag not in self.supported:
            raise UnsupportedDistributionForStrategy(name, distribution.tag, "bayesian")


SAMPLING_METHODS: dict[str, type[SamplingStrategy]] = {
    "random": RandomSampling,
    "grid": GridSampling,
    "bayesian": BayesianSampling,
}


def build_sampling(
    method: str,
    parameter_space: Mapping[str, object],
    **kwargs: object,
) -> SamplingStrategy:
    """Build a sampling strategy by method name (random, grid, bayesian)."""
    cls = SAMPLING_METHODS.get(method.lower())
    if cls is None:
        msg = f"Unknown sampling method: {method}"
        raise InvalidArgument(msg)
    try:
        return cls(parameter_space, **kwargs)  # type: ignore[arg-type]
    except TypeError as e:
        msg = f"Invalid parameters for {method.lower()} sampling: {e}"
        raise InvalidArgument(msg) from e


def sampling_from_wire(
    data: Mapping[str, object],
    supported: Iterable[str] | None = None,
) -> SamplingStrategy:
    """Parse a serialized search-space object back into a strategy."""
    method = data.get("sampling_method")
    space = data.get("parameter_space")
    if not isinstance(method, str) or not isinstance(space, Mapping):
        msg = "Search space needs 'sampling_method' and 'parameter_space'"
        raise InvalidArgument(msg)
    space = cast("Mapping[str, object]", space)
    properties = cast("Mapping[str, object]", data.get("properties") or {})

    method = method.lower()
    if method == "random":
        return RandomSampling(space, seed=cast("int | None", properties.get("seed")))
    if method == "bayesian":
        return BayesianSampling(space, supported=supported)
    return build_sampling(method, space)
