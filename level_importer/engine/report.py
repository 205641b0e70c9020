"""
Report Builder Module

Assembles the RunReport of an import run. No side effects.
"""
from typing import Iterable, List, Optional
import logging

from ..config.models import (
    Classification, ClassificationKind, ApplyResult, DerivedView, Level, RunReport
)
from ..config.settings import LengthUnit


logger = logging.getLogger(__name__)


def conflict_warnings(classifications: Iterable[Classification]) -> List[str]:
    """Warnings for rows skipped because another level sits at the same elevation."""
    return [
        f"Row {c.row.source_line}: another level has a similar elevation, '{c.row.name}' was skipped."
        for c in classifications
        if c.kind == ClassificationKind.CONFLICT_SKIP
    ]


def build_report(
    classifications: List[Classification],
    apply_result: Optional[ApplyResult] = None,
    views: Iterable[DerivedView] = (),
    warnings: Iterable[str] = (),
    source_name: str = "",
    unit: Optional[LengthUnit] = None
) -> RunReport:
    """
    Build the report of a run.

    Without an apply_result (dry run), the created/updated/unchanged lists
    describe what applying the classifications would do.

    Args:
        classifications: Matcher output
        apply_result: Outcome of the apply engine, if changes were applied
        views: Views derived for created levels
        warnings: Warnings gathered before matching (parsing, validation)
        source_name: Input file name
        unit: Default unit of the run

    Returns:
        RunReport
    """
    views = list(views)
    all_warnings = list(warnings) + conflict_warnings(classifications)

    if apply_result is None:
        created, updated, unchanged = _planned(classifications)
    else:
        created = list(apply_result.created)
        updated = list(apply_result.updated)
        unchanged = list(apply_result.unchanged)
        all_warnings.extend(apply_result.warnings)

    return RunReport(
        created=created,
        updated=updated,
        unchanged=unchanged,
        created_views=[v.final_view_name for v in views],
        warnings=all_warnings,
        conflicts=[c for c in classifications if c.kind == ClassificationKind.CONFLICT_SKIP],
        views=views,
        source_name=source_name,
        unit=unit,
    )


def build_cancelled_report(
    warnings: Iterable[str],
    source_name: str = "",
    unit: Optional[LengthUnit] = None
) -> RunReport:
    """Report of a run that found no valid rows and changed nothing."""
    return RunReport(
        warnings=list(warnings),
        source_name=source_name,
        unit=unit,
        cancelled=True,
    )


def _planned(classifications: List[Classification]):
    created, updated, unchanged = [], [], []
    for c in classifications:
        if c.kind == ClassificationKind.CREATE:
            created.append(Level(c.row.name, c.row.elevation))
        elif c.kind == ClassificationKind.UPDATE:
            updated.append(Level(c.entity.name, c.new_elevation, c.entity.identity))
        elif c.kind == ClassificationKind.SKIP:
            unchanged.append(c.entity)
    return created, updated, unchanged
