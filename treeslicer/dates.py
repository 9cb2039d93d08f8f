"""Per-taxon sampling dates for tip-dated trees."""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Mapping, Optional

from treeslicer.exceptions import ConfigError
from treeslicer.tree import Node

logger = logging.getLogger(__name__)


class DateTrait(Mapping[str, float]):
    """
    Calendar sampling dates keyed by taxon label.

    Dates run forward in time: a larger value is a more recent sample, so
    heights and dates relate through ``height = anchor_date - date``.
    """

    def __init__(self, dates: Mapping[str, float]):
        if not dates:
            raise ConfigError("A date trait needs at least one taxon")
        parsed: Dict[str, float] = {}
        for taxon, value in dates.items():
            try:
                parsed[str(taxon).strip()] = float(value)
            except (TypeError, ValueError):
                raise ConfigError(f"Date for taxon '{taxon}' is not numeric: {value!r}")
        self._dates = parsed

    @classmethod
    def from_string(cls, value: str) -> DateTrait:
        """
        Parse a ``taxon=date`` list separated by commas (or newlines).

        >>> DateTrait.from_string("A=2018.5, B=2019").get("B")
        2019.0
        """
        dates: Dict[str, str] = {}
        for entry in value.replace("\n", ",").split(","):
            entry = entry.strip()
            if not entry:
                continue
            if "=" not in entry:
                raise ConfigError(f"Expected 'taxon=date', got '{entry}'")
            taxon, date = entry.rsplit("=", 1)
            dates[taxon.strip()] = date.strip()
        return cls(dates)

    @classmethod
    def from_tree(cls, root: Node, key: str = "date") -> DateTrait:
        """Collect dates stored as leaf metadata (``A[&date=2018.5]``)."""
        dates = {
            leaf.name: leaf.values[key]
            for leaf in root.get_leaves()
            if key in leaf.values
        }
        if not dates:
            raise ConfigError(f"No leaf carries a '{key}' annotation")
        missing = len(root.get_leaves()) - len(dates)
        if missing:
            logger.warning(f"{missing} leaves carry no '{key}' annotation")
        return cls(dates)

    def get(self, taxon: str, default: Optional[float] = None) -> Optional[float]:  # type: ignore[override]
        return self._dates.get(taxon, default)

    def __getitem__(self, taxon: str) -> float:
        return self._dates[taxon]

    def __iter__(self) -> Iterator[str]:
        return iter(self._dates)

    def __len__(self) -> int:
        return len(self._dates)

    @property
    def most_recent(self) -> float:
        return max(self._dates.values())

    @property
    def oldest(self) -> float:
        return min(self._dates.values())

    def __repr__(self) -> str:
        return f"DateTrait({len(self._dates)} taxa, {self.oldest}..{self.most_recent})"
