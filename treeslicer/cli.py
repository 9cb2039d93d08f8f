#!/usr/bin/env python3
"""
Compute time breakpoints (slices) for a time-calibrated tree.

Reads the first tree of a Newick file and prints the slice heights, together
with their calendar dates when the tips are dated (through --dates-file,
--date-trait or a [&date=...] annotation on every leaf).
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tabulate import tabulate

from treeslicer.config import build_config
from treeslicer.dates import DateTrait
from treeslicer.exceptions import TreeSlicerError
from treeslicer.io import read_date_trait, read_newick
from treeslicer.slicer import TreeSlicer
from treeslicer.time_tree import TimeTree

logger = logging.getLogger(__name__)


def setup_argument_parser() -> argparse.ArgumentParser:
    """
    Configure and return the argument parser.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="treeslicer",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("tree", help="Path to a Newick file", type=Path)

    slicing_group = parser.add_argument_group("slicing options")
    slicing_group.add_argument(
        "-t",
        "--type",
        help="Slice type: equidistant, dates or branches (default: equidistant)",
        default="equidistant",
    )
    slicing_group.add_argument(
        "-s",
        "--stop",
        help="Stop criterion: tmrca or oldestsample (default: tmrca)",
        default="tmrca",
    )
    slicing_group.add_argument(
        "-d",
        "--dimension",
        help="Number of slices (ignored for date slices)",
        type=int,
    )
    slicing_group.add_argument(
        "--exclude-last",
        dest="include_last",
        help="Do not place a breakpoint at the stop criterion",
        action="store_false",
    )
    slicing_group.add_argument(
        "--date",
        dest="dates",
        help="Calendar date of a breakpoint (repeatable, date slices only)",
        action="append",
        type=float,
    )

    dating_group = parser.add_argument_group("tip dates")
    dating_group.add_argument(
        "--dates-file",
        help="Two-column file with taxon and sampling date",
        type=Path,
    )
    dating_group.add_argument(
        "--date-trait",
        help="Sampling dates as 'taxon=date,taxon=date'",
    )
    dating_group.add_argument(
        "--date-key",
        help="Leaf annotation holding the sampling date (default: date)",
        default="date",
    )

    output_group = parser.add_argument_group("output options")
    output_group.add_argument(
        "-f",
        "--format",
        help="Output format (default: table)",
        choices=("table", "plain", "json"),
        default="table",
    )
    output_group.add_argument(
        "-v",
        "--verbose",
        help="Log progress information",
        action="store_true",
    )
    return parser


def load_date_trait(args: argparse.Namespace) -> Optional[DateTrait]:
    if args.dates_file is not None:
        return read_date_trait(str(args.dates_file))
    if args.date_trait:
        return DateTrait.from_string(args.date_trait)
    return None


def format_slices(heights: List[float], dates: Optional[List[float]], fmt: str) -> str:
    if fmt == "plain":
        return "\n".join(f"{height:.6f}" for height in heights)

    if fmt == "json":
        rows = [
            {"index": i, "height": height, "date": dates[i] if dates else None}
            for i, height in enumerate(heights)
        ]
        return json.dumps(rows, indent=2)

    headers = ["index", "height"] + (["date"] if dates else [])
    table = [
        [i, height] + ([dates[i]] if dates else [])
        for i, height in enumerate(heights)
    ]
    return tabulate(table, headers=headers, floatfmt=".6f")


def main(argv: Optional[List[str]] = None) -> int:
    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = build_config(
            type=args.type,
            stop=args.stop,
            include_last=args.include_last,
            dimension=args.dimension,
            dates=args.dates,
        )
        parsed = read_newick(str(args.tree), force_list=True)
        root = parsed[0] if isinstance(parsed, list) else parsed
        tree = TimeTree(root, date_trait=load_date_trait(args), date_key=args.date_key)
        logger.info(f"Read {tree} from {args.tree}")

        slicer = TreeSlicer(tree, config)
        heights = slicer.get_values()
        dates = slicer.get_dates()
    except (TreeSlicerError, ValueError) as e:
        print(f"treeslicer: error: {e}", file=sys.stderr)
        return 2

    logger.info(f"Computed {len(heights)} slices up to height {heights[-1]:.6f}")
    print(format_slices(heights, dates, args.format))
    return 0


if __name__ == "__main__":
    sys.exit(main())
