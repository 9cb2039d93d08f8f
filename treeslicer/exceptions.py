"""
Custom exceptions for tree slicing.
"""


class TreeSlicerError(Exception):
    """Base exception for tree slicing errors."""

    pass


class ConfigError(TreeSlicerError):
    """Raised for an invalid or inconsistent slicing configuration."""

    pass


class InvalidTreeError(TreeSlicerError):
    """Raised when a tree is too degenerate to summarise (no nodes or no leaves)."""

    pass
