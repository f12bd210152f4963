# Copyright (c) Syntropy Systems
"""Hyperparameter distribution descriptors.

Each descriptor is an immutable value describing how one hyperparameter is
sampled by the remote service. Descriptors serialize to the control plane's
literal form ``[<tag>, [<params...>]]``:

    >>> Uniform(0.0, 1.0).to_wire()
    ['uniform', [0.0, 1.0]]
    >>> Choice([16, 32]).to_wire()
    ['choice', [[16, 32]]]
"""
from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, ClassVar, Union, cast

from hypersweep.errors import InvalidArgument

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from hypersweep.models.base import JSONPrimitive, JSONValue

Number = Union[int, float]


def _number(owner: str, name: str, value: object) -> Number:
    # bool is an int subclass; a True bound is always a mistake
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"{owner}: {name} must be a number, got {value!r}"
        raise InvalidArgument(msg)
    if not math.isfinite(value):
        msg = f"{owner}: {name} must be finite, got {value!r}"
        raise InvalidArgument(msg)
    return value


def _check_range(owner: str, low: object, high: object) -> None:
    low_val = _number(owner, "low", low)
    high_val = _number(owner, "high", high)
    if low_val >= high_val:
        msg = f"{owner}: low must be less than high (got low={low}, high={high})"
        raise InvalidArgument(msg)


def _check_gaussian(owner: str, mu: object, sigma: object) -> None:
    _ = _number(owner, "mu", mu)
    if _number(owner, "sigma", sigma) <= 0:
        msg = f"{owner}: sigma must be positive, got {sigma}"
        raise InvalidArgument(msg)


def _check_q(owner: str, q: object) -> None:
    if _number(owner, "q", q) <= 0:
        msg = f"{owner}: q must be positive, got {q}"
        raise InvalidArgument(msg)


class Distribution:
    """Base class for distribution descriptors."""

    tag: ClassVar[str]
    is_discrete: ClassVar[bool] = False
    is_quantized: ClassVar[bool] = False

    def params(self) -> list[JSONValue]:
        """Return the positional parameters in wire order."""
        return [cast("JSONValue", getattr(self, f.name)) for f in fields(self)]  # type: ignore[arg-type]

    def to_wire(self) -> list[JSONValue]:
        """Serialize to ``[tag, [params...]]``."""
        return [self.tag, self.params()]

    @classmethod
    def from_params(cls, params: list[object]) -> Distribution:
        """Build a descriptor from its positional wire parameters."""
        expected = len(fields(cls))  # type: ignore[arg-type]
        if len(params) != expected:
            msg = (
                f"'{cls.tag}' takes {expected} parameter(s), "
                f"got {len(params)}: {params!r}"
            )
            raise InvalidArgument(msg)
        return cls(*params)


@dataclass(frozen=True)
class Choice(Distribution):
    """Discrete choice among an ordered list of literal values."""

    values: tuple[JSONPrimitive, ...]

    tag: ClassVar[str] = "choice"
    is_discrete: ClassVar[bool] = True

    def __post_init__(self) -> None:
        raw = cast("object", self.values)
        if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)):
            msg = f"choice: values must be a list, got {raw!r}"
            raise InvalidArgument(msg)
        values = tuple(cast("Iterable[object]", raw))
        if not values:
            msg = "choice: at least one value is required"
            raise InvalidArgument(msg)
        for value in values:
            if value is not None and not isinstance(value, (str, int, float, bool)):
                msg = f"choice: values must be literals, got {value!r}"
                raise InvalidArgument(msg)
        object.__setattr__(self, "values", values)

    def params(self) -> list[JSONValue]:
        return [list(self.values)]

    @classmethod
    def from_params(cls, params: list[object]) -> Distribution:
        if len(params) != 1:
            msg = f"'choice' takes a single list of values, got {params!r}"
            raise InvalidArgument(msg)
        return cls(cast("tuple[JSONPrimitive, ...]", params[0]))


@dataclass(frozen=True)
class RandInt(Distribution):
    """Random integer in ``[0, upper)``.

    Unlike the quantized distributions, neighbouring values are treated as
    uncorrelated by the sampler.
    """

    upper: int

    tag: ClassVar[str] = "randint"

    def __post_init__(self) -> None:
        upper = cast("object", self.upper)
        if isinstance(upper, bool) or not isinstance(upper, int):
            msg = f"randint: upper must be an integer, got {upper!r}"
            raise InvalidArgument(msg)
        if upper <= 0:
            msg = f"randint: upper must be positive, got {upper}"
            raise InvalidArgument(msg)


@dataclass(frozen=True)
class Uniform(Distribution):
    """Uniform over ``[low, high]``."""

    low: Number
    high: Number

    tag: ClassVar[str] = "uniform"

    def __post_init__(self) -> None:
        _check_range(self.tag, self.low, self.high)


@dataclass(frozen=True)
class QUniform(Distribution):
    """``round(uniform(low, high) / q) * q``."""

    low: Number
    high: Number
    q: Number

    tag: ClassVar[str] = "quniform"
    is_quantized: ClassVar[bool] = True

    def __post_init__(self) -> None:
        _check_range(self.tag, self.low, self.high)
        _check_q(self.tag, self.q)


@dataclass(frozen=True)
class LogUniform(Distribution):
    """``exp(uniform(low, high))``; bounds are in log space."""

    low: Number
    high: Number

    tag: ClassVar[str] = "loguniform"

    def __post_init__(self) -> None:
        _check_range(self.tag, self.low, self.high)


@dataclass(frozen=True)
class QLogUniform(Distribution):
    """``round(exp(uniform(low, high)) / q) * q``."""

    low: Number
    high: Number
    q: Number

    tag: ClassVar[str] = "qloguniform"
    is_quantized: ClassVar[bool] = True

    def __post_init__(self) -> None:
        _check_range(self.tag, self.low, self.high)
        _check_q(self.tag, self.q)


@dataclass(frozen=True)
class Normal(Distribution):
    """Normal with mean ``mu`` and standard deviation ``sigma``."""

    mu: Number
    sigma: Number

    tag: ClassVar[str] = "normal"

    def __post_init__(self) -> None:
        _check_gaussian(self.tag, self.mu, self.sigma)


@dataclass(frozen=True)
class QNormal(Distribution):
    """``round(normal(mu, sigma) / q) * q``."""

    mu: Number
    sigma: Number
    q: Number

    tag: ClassVar[str] = "qnormal"
    is_quantized: ClassVar[bool] = True

    def __post_init__(self) -> None:
        _check_gaussian(self.tag, self.mu, self.sigma)
        _check_q(self.tag, self.q)


@dataclass(frozen=True)
class LogNormal(Distribution):
    """``exp(normal(mu, sigma))``."""

    mu: Number
    sigma: Number

    tag: ClassVar[str] = "lognormal"

    def __post_init__(self) -> None:
        _check_gaussian(self.tag, self.mu, self.sigma)


@dataclass(frozen=True)
class QLogNormal(Distribution):
    """``round(exp(normal(mu, sigma)) / q) * q``."""

    mu: Number
    sigma: Number
    q: Number

    tag: ClassVar[str] = "qlognormal"
    is_quantized: ClassVar[bool] = True

    def __post_init__(self) -> None:
        _check_gaussian(self.tag, self.mu, self.sigma)
        _check_q(self.tag, self.q)


DISTRIBUTIONS: dict[str, type[Distribution]] = {
    cls.tag: cls
    for cls in (
        Choice,
        RandInt,
        Uniform,
        QUniform,
        LogUniform,
        QLogUniform,
        Normal,
        QNormal,
        LogNormal,
        QLogNormal,
    )
}


def distribution_from_wire(value: object) -> Distribution:
    """Parse ``[tag, [params...]]`` back into a descriptor."""
    if isinstance(value, Distribution):
        return value
    if not isinstance(value, (list, tuple)) or len(value) != 2:  # noqa: PLR2004
        msg = f"Expected [tag, [params...]], got {value!r}"
        raise InvalidArgument(msg)
    tag, params = cast("tuple[object, object]", tuple(value))
    if not isinstance(tag, str) or tag.lower() not in DISTRIBUTIONS:
        msg = f"Unknown distribution: {tag!r}"
        raise InvalidArgument(msg)
    if not isinstance(params, (list, tuple)):
        msg = f"Parameters for '{tag}' must be a list, got {params!r}"
        raise InvalidArgument(msg)
    return DISTRIBUTIONS[tag.lower()].from_params(list(cast("list[object]", params)))


def parse_distribution(value: object) -> Distribution:
    """Parse a descriptor from any of the accepted spellings.

    Supports:
    - a ``Distribution`` instance
    - the wire list ``[tag, [params...]]``
    - a mapping with ``values`` (a choice)
    - a mapping with ``distribution`` plus named parameters, e.g.
      ``{"distribution": "normal", "mu": 0.0, "sigma": 1.0}``
    """
    if not isinstance(value, dict):
        return distribution_from_wire(value)

    spec = cast("Mapping[str, object]", value)
    if "values" in spec and "distribution" not in spec:
        return Choice(cast("tuple[JSONPrimitive, ...]", spec["values"]))

    tag = spec.get("distribution")
    if not isinstance(tag, str) or tag.lower() not in DISTRIBUTIONS:
        msg = f"Unknown distribution: {tag!r}"
        raise InvalidArgument(msg)
    cls = DISTRIBUTIONS[tag.lower()]
    names = [f.name for f in fields(cls)]  # type: ignore[arg-type]
    unknown = set(spec) - {"distribution", *names}
    if unknown:
        msg = f"Unexpected parameter(s) for '{tag}': {', '.join(sorted(unknown))}"
        raise InvalidArgument(msg)
    missing = [name for name in names if name not in spec]
    if missing:
        msg = f"Missing parameter(s) for '{tag}': {', '.join(missing)}"
        raise InvalidArgument(msg)
    return cls.from_params([spec[name] for name in names])


# Convenience constructors mirroring the platform's naming


def choice(*options: JSONPrimitive) -> Choice:
    """Discrete choice; ``choice(16, 32)`` or ``choice([16, 32])``."""
    if len(options) == 1 and isinstance(options[0], (list, tuple)):
        return Choice(tuple(cast("Iterable[JSONPrimitive]", options[0])))
    return Choice(options)


def randint(upper: int) -> RandInt:
    return RandInt(upper)


def uniform(low: Number, high: Number) -> Uniform:
    return Uniform(low, high)


def quniform(low: Number, high: Number, q: Number) -> QUniform:
    return QUniform(low, high, q)


def loguniform(low: Number, high: Number) -> LogUniform:
    return LogUniform(low, high)


def qloguniform(low: Number, high: Number, q: Number) -> QLogUniform:
    return QLogUniform(low, high, q)


def normal(mu: Number, sigma: Number) -> Normal:
    return Normal(mu, sigma)


def qnormal(mu: Number, sigma: Number, q: Number) -> QNormal:
    return QNormal(mu, sigma, q)


def lognormal(mu: Number, sigma: Number) -> LogNormal:
    return LogNormal(mu, sigma)


def qlognormal(mu: Number, sigma: Number, q: Number) -> QLogNormal:
    return QLogNormal(mu, sigma, q)
