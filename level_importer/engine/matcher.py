"""
Level Matcher Module

Classifies validated rows against the levels already in the document.

For each row, in ascending elevation order:
    - same name exists (case-insensitive):
        |existing - row| <= tolerance  -> SKIP
        otherwise                      -> UPDATE
    - no name match:
        any elevation seen so far within tolerance -> CONFLICT_SKIP
        otherwise                                  -> CREATE

"Seen so far" is the elevation of every pre-existing level plus the
elevation of every row already classified CREATE or UPDATE in this run.
"""
from typing import Dict, Iterable, List, Optional
import logging

import numpy as np

from ..config.models import (
    Level, ValidatedRow, Classification, ClassificationKind, IssueReason
)


logger = logging.getLogger(__name__)


class ElevationSet:
    """
    Ordered, append-only collection of elevations with tolerance lookup.

    Entries are never removed: when a level is moved by an UPDATE, both its
    old and its new elevation stay in the set.
    """

    def __init__(self, elevations: Iterable[float] = ()):
        self._values = np.asarray(list(elevations), dtype=float)

    def __len__(self) -> int:
        return int(self._values.size)

    def append(self, elevation: float):
        """Add an elevation at the end of the set."""
        self._values = np.append(self._values, float(elevation))

    def find_within(self, elevation: float, tolerance: float) -> Optional[int]:
        """
        Index of the first elevation within tolerance, or None.

        Args:
            elevation: Elevation to look up (canonical units)
            tolerance: Maximum difference treated as equal
        """
        if not self._values.size:
            return None
        hits = np.flatnonzero(np.abs(self._values - elevation) <= tolerance)
        return int(hits[0]) if hits.size else None

    def contains_within(self, elevation: float, tolerance: float) -> bool:
        return self.find_within(elevation, tolerance) is not None

    def to_list(self) -> List[float]:
        return self._values.tolist()


def sort_rows(rows: Iterable[ValidatedRow]) -> List[ValidatedRow]:
    """Sort rows by elevation, ties broken by source line."""
    return sorted(rows, key=lambda r: (r.elevation, r.source_line))


def index_levels(levels: Iterable[Level]) -> Dict[str, Level]:
    """
    Index levels by case-insensitive name.

    When two document levels differ only by case, the first one wins.
    """
    index: Dict[str, Level] = {}
    for level in levels:
        key = level.name.casefold()
        if key in index:
            logger.warning(f"Document has levels '{index[key].name}' and '{level.name}' differing only by case")
            continue
        index[key] = level
    return index


class LevelMatcher:
    """Classifies rows as CREATE, UPDATE, SKIP or CONFLICT_SKIP."""

    def __init__(self, existing_levels: Iterable[Level], tolerance: float):
        """
        Args:
            existing_levels: Snapshot of the document levels at run start
            tolerance: Maximum elevation difference treated as equal (canonical units)

        Raises:
            ValueError: tolerance is negative
        """
        if tolerance < 0:
            raise ValueError(f"Tolerance must be >= 0, got {tolerance}")
        self.existing = list(existing_levels)
        self.tolerance = tolerance

    def classify(self, rows: Iterable[ValidatedRow]) -> List[Classification]:
        """
        Classify rows in ascending elevation order.

        Args:
            rows: Validated rows (any order)

        Returns:
            One Classification per row, in processing order
        """
        by_name = index_levels(self.existing)
        seen = ElevationSet(level.elevation for level in self.existing)

        results = []
        for row in sort_rows(rows):
            classification = self.classify_row(row, by_name, seen)
            if classification.kind in (ClassificationKind.CREATE, ClassificationKind.UPDATE):
                seen.append(row.elevation)
            results.append(classification)

        counts = ", ".join(f"{kind.value}={count}" for kind, count in tally(results).items())
        logger.info(f"Classified {len(results)} rows: {counts}")
        return results

    def classify_row(
        self,
        row: ValidatedRow,
        by_name: Dict[str, Level],
        seen: ElevationSet
    ) -> Classification:
        """Classify one row against the name index and the elevations seen so far."""
        existing = by_name.get(row.name.casefold())
        if existing is not None:
            if abs(existing.elevation - row.elevation) <= self.tolerance:
                return Classification.skip(row, existing)
            return Classification.update(row, existing)

        if seen.contains_within(row.elevation, self.tolerance):
            logger.debug(f"Row {row.source_line}: '{row.name}' conflicts with an existing elevation")
            return Classification.conflict(row, IssueReason.AMBIGUOUS_ELEVATION)

        return Classification.create(row)


def tally(classifications: Iterable[Classification]) -> Dict[ClassificationKind, int]:
    """Count classifications per kind (every kind present, possibly 0)."""
    counts = {kind: 0 for kind in ClassificationKind}
    for classification in classifications:
        counts[classification.kind] += 1
    return counts


def classify_rows(
    rows: Iterable[ValidatedRow],
    existing_levels: Iterable[Level],
    tolerance: float
) -> List[Classification]:
    """
    Convenience function to classify rows against existing levels.

    Args:
        rows: Validated rows
        existing_levels: Document levels at run start
        tolerance: Maximum elevation difference treated as equal (canonical units)

    Returns:
        List of Classification objects
    """
    matcher = LevelMatcher(existing_levels, tolerance)
    return matcher.classify(rows)
