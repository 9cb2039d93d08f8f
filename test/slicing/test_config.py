import dataclasses

import pytest

from treeslicer.config import (
    BranchDensitySlices,
    DateSlices,
    SliceStrategy,
    StopCriterion,
    UniformSlices,
    build_config,
    parse_stop_criterion,
    parse_strategy,
)
from treeslicer.exceptions import ConfigError


@pytest.mark.parametrize(
    "keyword, expected",
    [
        ("equidistant", SliceStrategy.UNIFORM),
        ("Uniform", SliceStrategy.UNIFORM),
        ("dates", SliceStrategy.DATES),
        (" date ", SliceStrategy.DATES),
        ("BRANCHES", SliceStrategy.BRANCH_DENSITY),
        ("branch", SliceStrategy.BRANCH_DENSITY),
        (None, SliceStrategy.UNIFORM),
    ],
)
def test_parse_strategy(keyword, expected):
    assert parse_strategy(keyword) is expected


@pytest.mark.parametrize(
    "keyword, expected",
    [
        ("tmrca", StopCriterion.TMRCA),
        ("MRCA", StopCriterion.TMRCA),
        ("oldestsample", StopCriterion.OLDEST_SAMPLE),
        ("  LastSample", StopCriterion.OLDEST_SAMPLE),
        (None, StopCriterion.TMRCA),
    ],
)
def test_parse_stop_criterion(keyword, expected):
    assert parse_stop_criterion(keyword) is expected


@pytest.mark.parametrize("keyword", ["heights", "samples", ""])
def test_unknown_strategy_fails_at_configuration(keyword):
    with pytest.raises(ConfigError):
        build_config(type=keyword, dimension=4)


@pytest.mark.parametrize("keyword", ["present", "origin", ""])
def test_unknown_stop_criterion_fails_at_configuration(keyword):
    with pytest.raises(ConfigError):
        build_config(stop=keyword, dimension=4)


def test_build_uniform():
    config = build_config(dimension=5)
    assert config == UniformSlices(dimension=5, stop=StopCriterion.TMRCA, include_last=True)
    assert config.strategy is SliceStrategy.UNIFORM


def test_build_branch_density():
    config = build_config(type="branches", stop="oldestsample", include_last=False, dimension=3)
    assert config == BranchDensitySlices(
        dimension=3, stop=StopCriterion.OLDEST_SAMPLE, include_last=False
    )


def test_build_dates_ignores_dimension():
    config = build_config(type="dates", dimension=99, dates=[2019, "2018.5"])
    assert config == DateSlices(dates=(2019.0, 2018.5))
    assert not hasattr(config, "dimension")


def test_build_dates_needs_dates():
    with pytest.raises(ConfigError):
        build_config(type="dates")
    with pytest.raises(ConfigError):
        build_config(type="dates", dates=[])


def test_build_needs_dimension():
    with pytest.raises(ConfigError):
        build_config(type="equidistant")


@pytest.mark.parametrize(
    "dimension, include_last", [(1, True), (0, True), (0, False), (-3, False)]
)
def test_dimension_validation(dimension, include_last):
    with pytest.raises(ConfigError):
        UniformSlices(dimension=dimension, include_last=include_last)
    with pytest.raises(ConfigError):
        BranchDensitySlices(dimension=dimension, include_last=include_last)


@pytest.mark.parametrize("dimension", [2.5, "4", True])
def test_dimension_must_be_integer(dimension):
    with pytest.raises(ConfigError):
        UniformSlices(dimension=dimension)


def test_single_slice_without_last_is_valid():
    assert UniformSlices(dimension=1, include_last=False).dimension == 1


def test_non_numeric_dates():
    with pytest.raises(ConfigError):
        DateSlices(dates=("yesterday",))


def test_configs_are_frozen():
    config = UniformSlices(dimension=3)
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.dimension = 4  # type: ignore[misc]
