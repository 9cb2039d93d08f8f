"""Time breakpoints along time-calibrated phylogenetic trees."""

from treeslicer.config import (
    BranchDensitySlices,
    DateSlices,
    SliceConfig,
    SliceStrategy,
    StopCriterion,
    UniformSlices,
    build_config,
)
from treeslicer.dates import DateTrait
from treeslicer.exceptions import ConfigError, InvalidTreeError, TreeSlicerError
from treeslicer.parser import parse_newick
from treeslicer.slicer import TreeSlicer
from treeslicer.summary import TreeSummary, summarize_tree
from treeslicer.time_tree import NodeTime, TimeTree
from treeslicer.tree import Node

__all__ = [
    "BranchDensitySlices",
    "DateSlices",
    "SliceConfig",
    "SliceStrategy",
    "StopCriterion",
    "UniformSlices",
    "build_config",
    "DateTrait",
    "ConfigError",
    "InvalidTreeError",
    "TreeSlicerError",
    "parse_newick",
    "TreeSlicer",
    "TreeSummary",
    "summarize_tree",
    "NodeTime",
    "TimeTree",
    "Node",
]
