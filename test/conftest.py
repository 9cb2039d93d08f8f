import logging

import pytest

from treeslicer.parser.newick_parser import parse_newick
from treeslicer.time_tree import TimeTree


def pytest_configure(config):
    """Set up test environment before tests run."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("treeslicer").setLevel(logging.DEBUG)


@pytest.fixture
def dated_tree() -> TimeTree:
    """
    Non-ultrametric tree with three dated tips.

    Heights: A=0, B=1, C=2, (A,B)=3, root=5.
    """
    root = parse_newick(
        "((A[&date=2020.0]:3,B[&date=2019.0]:2):2,C[&date=2018.0]:3);"
    )
    return TimeTree(root)


@pytest.fixture
def ultrametric_tree() -> TimeTree:
    """Balanced tree of height 10: internal heights 4, 6, 10."""
    root = parse_newick("(((A:4,B:4):2,C:6):4,D:10);")
    return TimeTree(root)
