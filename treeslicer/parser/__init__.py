"""
Newick format parser module for time-calibrated phylogenetic trees.

This module provides functionality to parse Newick / NHX format strings into
tree structures, keeping per-node metadata such as sampling dates.
"""

from .newick_parser import parse_newick

__all__ = ["parse_newick"]
