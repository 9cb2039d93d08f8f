"""
Slicing configurations.

Each slicing strategy has its own frozen dataclass carrying only the fields
it needs; ``SliceConfig`` is their union. All variants validate themselves on
construction, so a config that exists is a config that can be computed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Union

from treeslicer.exceptions import ConfigError


class StopCriterion(Enum):
    """Upper bound of the slicing interval."""

    TMRCA = "tmrca"
    OLDEST_SAMPLE = "oldestsample"


class SliceStrategy(Enum):
    UNIFORM = "equidistant"
    DATES = "dates"
    BRANCH_DENSITY = "branches"


_STOP_KEYWORDS: Dict[str, StopCriterion] = {
    "tmrca": StopCriterion.TMRCA,
    "mrca": StopCriterion.TMRCA,
    "oldestsample": StopCriterion.OLDEST_SAMPLE,
    "lastsample": StopCriterion.OLDEST_SAMPLE,
}

_STRATEGY_KEYWORDS: Dict[str, SliceStrategy] = {
    "equidistant": SliceStrategy.UNIFORM,
    "uniform": SliceStrategy.UNIFORM,
    "dates": SliceStrategy.DATES,
    "date": SliceStrategy.DATES,
    "branches": SliceStrategy.BRANCH_DENSITY,
    "branch": SliceStrategy.BRANCH_DENSITY,
}


def _check_dimension(dimension: int, include_last: bool) -> None:
    if isinstance(dimension, bool) or not isinstance(dimension, int):
        raise ConfigError(f"Dimension must be an integer, got {dimension!r}")
    minimum = 2 if include_last else 1
    if dimension < minimum:
        raise ConfigError(
            f"Dimension must be at least {minimum} when include_last={include_last}, "
            f"got {dimension}"
        )


@dataclass(frozen=True)
class UniformSlices:
    """Equally spaced breakpoints between 0 and the stop criterion."""

    dimension: int
    stop: Optional[StopCriterion] = StopCriterion.TMRCA
    include_last: bool = True

    strategy = SliceStrategy.UNIFORM

    def __post_init__(self):
        _check_dimension(self.dimension, self.include_last)


@dataclass(frozen=True)
class BranchDensitySlices:
    """Breakpoints grouping roughly equal numbers of node heights."""

    dimension: int
    stop: Optional[StopCriterion] = StopCriterion.TMRCA
    include_last: bool = True

    strategy = SliceStrategy.BRANCH_DENSITY

    def __post_init__(self):
        _check_dimension(self.dimension, self.include_last)


@dataclass(frozen=True)
class DateSlices:
    """Breakpoints at literal calendar dates; the dimension follows from the dates."""

    dates: Tuple[float, ...]

    strategy = SliceStrategy.DATES

    def __post_init__(self):
        try:
            dates = tuple(float(date) for date in self.dates)
        except (TypeError, ValueError):
            raise ConfigError(f"Slice dates must be numeric, got {self.dates!r}")
        if not dates:
            raise ConfigError("Date slices need at least one date")
        object.__setattr__(self, "dates", dates)


SliceConfig = Union[UniformSlices, BranchDensitySlices, DateSlices]


def parse_stop_criterion(keyword: Optional[str]) -> StopCriterion:
    if keyword is None:
        return StopCriterion.TMRCA
    stop = _STOP_KEYWORDS.get(keyword.lower().strip())
    if stop is None:
        raise ConfigError(
            f"Unknown stop criterion '{keyword}' (expected tmrca or oldestsample)"
        )
    return stop


def parse_strategy(keyword: Optional[str]) -> SliceStrategy:
    if keyword is None:
        return SliceStrategy.UNIFORM
    strategy = _STRATEGY_KEYWORDS.get(keyword.lower().strip())
    if strategy is None:
        raise ConfigError(
            f"Unknown slice type '{keyword}' (expected equidistant, dates or branches)"
        )
    return strategy


def build_config(
    type: Optional[str] = "equidistant",
    stop: Optional[str] = "tmrca",
    include_last: bool = True,
    dimension: Optional[int] = None,
    dates: Optional[Iterable[float]] = None,
) -> SliceConfig:
    """
    Build a slicing configuration from keyword settings.

    Keywords are matched case-insensitively after trimming whitespace.
    ``dimension`` is ignored for date slices, whose dimension is derived from
    the dates and the tree.

    Raises:
        ConfigError: For unknown keywords, a missing or invalid dimension, or
            a missing or empty date list.
    """
    strategy = parse_strategy(type)

    if strategy is SliceStrategy.DATES:
        if dates is None:
            raise ConfigError("Date slices need a list of dates")
        return DateSlices(dates=tuple(dates))

    stop_criterion = parse_stop_criterion(stop)
    if dimension is None:
        raise ConfigError(f"Slice type '{strategy.value}' needs a dimension")
    if strategy is SliceStrategy.BRANCH_DENSITY:
        return BranchDensitySlices(
            dimension=dimension, stop=stop_criterion, include_last=include_last
        )
    return UniformSlices(dimension=dimension, stop=stop_criterion, include_last=include_last)
