# Copyright (c) Syntropy Systems
"""Tests for distribution descriptors."""
from __future__ import annotations

import pytest

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
    choice,
    distribution_from_wire,
    parse_distribution,
    randint,
)
from hypersweep.errors import InvalidArgument


class TestRandInt:
    """Tests for randint."""

    @pytest.mark.parametrize("upper", [1, 5, 1000])
    def test_serializes(self, upper: int) -> None:
        """Test positive bounds serialize to the wire form."""
        assert RandInt(upper).to_wire() == ["randint", [upper]]

    @pytest.mark.parametrize("upper", [0, -1, -100])
    def test_rejects_non_positive(self, upper: int) -> None:
        """Test upper <= 0 is rejected."""
        with pytest.raises(InvalidArgument, match="positive"):
            _ = RandInt(upper)

    def test_rejects_float_and_bool(self) -> None:
        """Test upper must be a real integer."""
        with pytest.raises(InvalidArgument):
            _ = RandInt(2.5)  # type: ignore[arg-type]
        with pytest.raises(InvalidArgument):
            _ = RandInt(True)


class TestRanges:
    """Tests for low/high distributions."""

    RANGE_TYPES = [Uniform, LogUniform]
    QUANTIZED_RANGE_TYPES = [QUniform, QLogUniform]

    @pytest.mark.parametrize("cls", RANGE_TYPES)
    @pytest.mark.parametrize(("low", "high"), [(1, 1), (2.0, 1.0)])
    def test_rejects_low_not_below_high(self, cls: type, low: float, high: float) -> None:
        """Test low >= high is rejected, never clamped."""
        with pytest.raises(InvalidArgument, match="low must be less than high"):
            _ = cls(low, high)

    @pytest.mark.parametrize("cls", QUANTIZED_RANGE_TYPES)
    def test_quantized_rejects_bad_range(self, cls: type) -> None:
        """Test the range check also applies to quantized variants."""
        with pytest.raises(InvalidArgument, match="low must be less than high"):
            _ = cls(5, 5, 1)

    @pytest.mark.parametrize("cls", QUANTIZED_RANGE_TYPES)
    @pytest.mark.parametrize("q", [0, -0.5])
    def test_quantized_rejects_non_positive_q(self, cls: type, q: float) -> None:
        """Test q must be positive."""
        with pytest.raises(InvalidArgument, match="q must be positive"):
            _ = cls(0, 10, q)

    @pytest.mark.parametrize("cls", RANGE_TYPES)
    def test_round_trip(self, cls: type) -> None:
        """Test valid ranges survive serialization."""
        dist = cls(-2.5, 3)
        parsed = distribution_from_wire(dist.to_wire())
        assert parsed == dist
        assert (parsed.low, parsed.high) == (-2.5, 3)  # type: ignore[attr-defined]

    def test_quantized_wire_order(self) -> None:
        """Test quantized params serialize as low, high, q."""
        assert QUniform(0, 100, 5).to_wire() == ["quniform", [0, 100, 5]]
        assert QLogUniform(0, 4, 1).to_wire() == ["qloguniform", [0, 4, 1]]

    def test_rejects_non_numeric(self) -> None:
        """Test strings and NaN are rejected."""
        with pytest.raises(InvalidArgument, match="must be a number"):
            _ = Uniform("0", 1)  # type: ignore[arg-type]
        with pytest.raises(InvalidArgument, match="finite"):
            _ = Uniform(float("nan"), 1)


class TestGaussians:
    """Tests for normal-family distributions."""

    def test_serialization(self) -> None:
        """Test mu/sigma(/q) order on the wire."""
        assert Normal(0.0001, 0.005).to_wire() == ["normal", [0.0001, 0.005]]
        assert LogNormal(0, 1).to_wire() == ["lognormal", [0, 1]]
        assert QNormal(10, 2, 1).to_wire() == ["qnormal", [10, 2, 1]]
        assert QLogNormal(1, 0.5, 2).to_wire() == ["qlognormal", [1, 0.5, 2]]

    @pytest.mark.parametrize("cls", [Normal, LogNormal])
    def test_rejects_non_positive_sigma(self, cls: type) -> None:
        """Test sigma must be positive."""
        with pytest.raises(InvalidArgument, match="sigma"):
            _ = cls(0, 0)

    def test_quantized_flags(self) -> None:
        """Test quantized variants are flagged."""
        assert QNormal(0, 1, 1).is_quantized
        assert not Normal(0, 1).is_quantized
        assert not Normal(0, 1).is_discrete


class TestChoice:
    """Tests for choice."""

    def test_serializes_values_as_single_param(self) -> None:
        """Test choice wraps the values list once."""
        assert Choice([16, 32, 64]).to_wire() == ["choice", [[16, 32, 64]]]

    def test_preserves_order_and_types(self) -> None:
        """Test mixed literal values keep their order."""
        dist = Choice(["adam", "sgd", 0.1, True, None])
        assert dist.values == ("adam", "sgd", 0.1, True, None)
        assert distribution_from_wire(dist.to_wire()) == dist

    def test_rejects_empty(self) -> None:
        """Test an empty choice is rejected."""
        with pytest.raises(InvalidArgument, match="at least one"):
            _ = Choice([])

    def test_rejects_string_and_nested(self) -> None:
        """Test values must be a list of literals."""
        with pytest.raises(InvalidArgument, match="must be a list"):
            _ = Choice("abc")  # type: ignore[arg-type]
        with pytest.raises(InvalidArgument, match="literals"):
            _ = Choice([[1, 2]])  # type: ignore[list-item]

    def test_helper_accepts_varargs_and_list(self) -> None:
        """Test the choice() helper spellings agree."""
        assert choice(1, 2, 3) == choice([1, 2, 3]) == Choice([1, 2, 3])
        assert choice(1, 2, 3).is_discrete


class TestWireParsing:
    """Tests for distribution_from_wire and parse_distribution."""

    def test_unknown_tag(self) -> None:
        """Test unknown tags are rejected."""
        with pytest.raises(InvalidArgument, match="Unknown distribution"):
            _ = distribution_from_wire(["beta", [1, 2]])

    def test_wrong_arity(self) -> None:
        """Test a wrong parameter count is rejected."""
        with pytest.raises(InvalidArgument, match="takes 2 parameter"):
            _ = distribution_from_wire(["uniform", [0]])

    def test_malformed_shapes(self) -> None:
        """Test values that are not [tag, [params]] are rejected."""
        for bad in ("uniform", ["uniform"], ["uniform", 1], 42):
            with pytest.raises(InvalidArgument):
                _ = distribution_from_wire(bad)

    def test_tag_case_insensitive(self) -> None:
        """Test tags parse regardless of case."""
        assert distribution_from_wire(["RandInt", [4]]) == randint(4)

    def test_validation_applies_on_parse(self) -> None:
        """Test parsed descriptors are validated too."""
        with pytest.raises(InvalidArgument):
            _ = distribution_from_wire(["randint", [0]])

    def test_mapping_with_values(self) -> None:
        """Test {values: [...]} parses to a choice."""
        assert parse_distribution({"values": [1, 2]}) == Choice([1, 2])

    def test_mapping_with_named_params(self) -> None:
        """Test {distribution: ..., params} parses by field name."""
        parsed = parse_distribution({"distribution": "qnormal", "mu": 1, "sigma": 2, "q": 1})
        assert parsed == QNormal(1, 2, 1)

    def test_mapping_missing_and_unknown_params(self) -> None:
        """Test mappings with missing or extra keys are rejected."""
        with pytest.raises(InvalidArgument, match="Missing"):
            _ = parse_distribution({"distribution": "uniform", "low": 0})
        with pytest.raises(InvalidArgument, match="Unexpected"):
            _ = parse_distribution({"distribution": "uniform", "low": 0, "high": 1, "q": 1})

    def test_instances_pass_through(self) -> None:
        """Test a descriptor instance is returned unchanged."""
        dist = Uniform(0, 1)
        assert parse_distribution(dist) is dist
