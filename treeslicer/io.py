from typing import List, Optional, Union

from treeslicer.dates import DateTrait
from treeslicer.parser.newick_parser import parse_newick
from treeslicer.tree import Node


def read_newick(
    path: str,
    force_list: bool = False,
    treat_zero_as_epsilon: bool = False,
) -> Union[Node, List[Node]]:
    with open(path) as f:
        newick_string: str = f.read()

    return parse_newick(
        newick_string,
        force_list=force_list,
        treat_zero_as_epsilon=treat_zero_as_epsilon,
    )


def read_date_trait(path: str, delimiter: Optional[str] = None) -> DateTrait:
    """
    Read sampling dates from a two-column text file (taxon, date).

    Columns are split on ``delimiter`` (whitespace by default); blank lines
    and lines starting with '#' are skipped.
    """
    entries: List[str] = []
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            columns = line.split(delimiter) if delimiter else line.split()
            if len(columns) < 2:
                raise ValueError(f"Expected 'taxon date' columns, got '{line}'")
            entries.append(f"{columns[0].strip()}={columns[1].strip()}")
    return DateTrait.from_string(",".join(entries))
