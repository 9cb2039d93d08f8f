"""
Slicing strategies.

Every strategy returns a tuple of heights (time before the most recent
sample), starting at 0 and non-decreasing. The dimension of the output is
resolved first (``resolve_dimension``) and then handed to ``compute_slices``,
so that date slices, whose size depends on the tree's anchor date, never
resize their output behind the caller's back.
"""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from treeslicer.config import (
    BranchDensitySlices,
    DateSlices,
    SliceConfig,
    StopCriterion,
    UniformSlices,
)
from treeslicer.exceptions import ConfigError, InvalidTreeError
from treeslicer.summary import TreeSummary
from treeslicer.time_tree import TimedTree

logger = logging.getLogger(__name__)

# Offset placing the oldest sample strictly inside the last interval
OLDEST_SAMPLE_EPSILON = 1e-6

# Upper bound used when no stop criterion is configured
FALLBACK_ENDTIME = 1.0

Slices = Tuple[float, ...]


# ===================================================================
# 1. END OF THE SLICING INTERVAL
# ===================================================================


def resolve_endtime(stop: Optional[StopCriterion], summary: TreeSummary) -> float:
    if stop is StopCriterion.TMRCA:
        return summary.tmrca
    if stop is StopCriterion.OLDEST_SAMPLE:
        return summary.oldest_sample_height + OLDEST_SAMPLE_EPSILON
    logger.warning(
        f"No stop criterion configured, slicing up to height {FALLBACK_ENDTIME}"
    )
    return FALLBACK_ENDTIME


# ===================================================================
# 2. STRATEGIES
# ===================================================================


def uniform_slices(endtime: float, dimension: int, include_last: bool) -> Slices:
    """
    Equally spaced heights ``i * step`` for ``i = 0 .. dimension - 1``.

    With ``include_last`` the last value is ``endtime`` itself, otherwise the
    vector stops one step short of it.
    """
    if dimension < (2 if include_last else 1):
        raise ConfigError(
            f"Uniform slices need dimension >= {2 if include_last else 1}, got {dimension}"
        )
    step = endtime / (dimension - 1) if include_last else endtime / dimension
    values = np.arange(dimension, dtype=float) * step
    return tuple(values.tolist())


def date_slices(dates: Sequence[float], anchor_date: float, dimension: int) -> Slices:
    """
    Heights of literal calendar dates, oldest date last.

    ``values[0]`` is always the present (height 0). The sorted dates are
    converted to heights and written from the end of the vector backwards, so
    that the oldest date lands on the largest height.
    """
    if not dates:
        raise ConfigError("Date slices need at least one date")
    sorted_dates = np.sort(np.asarray(dates, dtype=float))
    values = np.zeros(dimension, dtype=float)
    for i in range(1, dimension):
        values[dimension - i] = anchor_date - sorted_dates[i - 1]
    return tuple(values.tolist())


def branch_density_slices(
    endtime: float, heights: Sequence[float], dimension: int, include_last: bool
) -> Slices:
    """
    Breakpoints placed so each interval holds about the same number of node heights.

    Heights above ``endtime`` are zeroed, which keeps them out of the ranked
    population. The ``n`` groups (``dimension - 1`` with ``include_last``)
    each span ``floor(events / n)`` sorted heights; every breakpoint is the
    midpoint of the two heights at the current position in the ranking.

    When there are fewer eligible heights than groups, the group size drops
    to zero and the breakpoints repeat.
    """
    if dimension < 1 or (include_last and dimension < 2):
        raise ConfigError(
            f"Branch density slices need dimension >= {2 if include_last else 1}, "
            f"got {dimension}"
        )
    n = dimension - 1 if include_last else dimension

    times = np.asarray(heights, dtype=float)
    times = np.sort(np.where(times <= endtime, times, 0.0))

    # First strictly positive height
    i = int(np.searchsorted(times, 0.0, side="right"))
    branch_events = len(times) - i
    if branch_events < 2:
        raise ConfigError(
            f"Branch density slices need at least 2 node heights in (0, {endtime}], "
            f"found {branch_events}"
        )

    group_size = branch_events // n
    if group_size == 0:
        logger.warning(
            f"Only {branch_events} node heights for {n} groups; breakpoints will repeat"
        )

    values = np.zeros(dimension, dtype=float)
    for j in range(1, n):
        values[j] = (times[i] + times[i + 1]) / 2
        i += group_size

    if include_last:
        values[n] = endtime

    return tuple(values.tolist())


# ===================================================================
# 3. DISPATCH
# ===================================================================


def resolve_dimension(config: SliceConfig, summary: TreeSummary) -> int:
    """
    Number of slices ``config`` produces for a tree with this summary.

    Date slices add an implicit present unless the most recent requested date
    coincides with the anchor date, in which case the anchor supplies it.

    Raises:
        InvalidTreeError: For date slices on a tree without an anchor date.
    """
    if isinstance(config, DateSlices):
        if summary.anchor_date is None:
            raise InvalidTreeError(
                "Date slices need a tree whose most recent sample is dated"
            )
        if max(config.dates) == summary.anchor_date:
            logger.debug(
                f"Most recent slice date coincides with the anchor {summary.anchor_date}"
            )
            return len(config.dates)
        return len(config.dates) + 1
    if isinstance(config, (UniformSlices, BranchDensitySlices)):
        return config.dimension
    raise ConfigError(f"Unsupported slice configuration: {config!r}")


def compute_slices(
    config: SliceConfig, tree: TimedTree, summary: TreeSummary, dimension: int
) -> Slices:
    """Run the strategy selected by ``config`` on ``tree``."""
    if isinstance(config, DateSlices):
        if summary.anchor_date is None:
            raise InvalidTreeError(
                "Date slices need a tree whose most recent sample is dated"
            )
        return date_slices(config.dates, summary.anchor_date, dimension)

    if isinstance(config, UniformSlices):
        endtime = resolve_endtime(config.stop, summary)
        return uniform_slices(endtime, dimension, config.include_last)

    if isinstance(config, BranchDensitySlices):
        endtime = resolve_endtime(config.stop, summary)
        heights = [node.height for node in tree.nodes()]
        return branch_density_slices(endtime, heights, dimension, config.include_last)

    raise ConfigError(f"Unsupported slice configuration: {config!r}")
