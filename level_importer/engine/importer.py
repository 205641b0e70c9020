"""
Level Importer Module

Runs the whole import pipeline in one call:

    parse -> resolve units -> validate -> match -> apply -> derive views -> report

Nothing in the document changes before the apply step, so source, format and
unit problems abort the run with the document untouched.
"""
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional
import logging

from .apply import ApplyEngine
from .matcher import LevelMatcher
from .report import build_report, build_cancelled_report
from .units import tolerance_from_millimeters
from .views import ViewDeriver
from ..config.models import Classification, ValidationResult, RunReport
from ..config.settings import Settings, LengthUnit, get_settings, is_selectable_unit
from ..document.provider import DocumentProvider
from ..parsers.base_parser import ColumnMapping, create_parser
from ..validators import RowValidator


logger = logging.getLogger(__name__)


@dataclass
class ImportPlan:
    """Everything decided before the document is touched."""
    source_name: str
    unit: LengthUnit
    tolerance: float
    validation: ValidationResult
    classifications: List[Classification] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.validation.is_empty


class LevelImporter:
    """Imports a level table into a document."""

    def __init__(
        self,
        document: DocumentProvider,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Args:
            document: Document to reconcile against
            settings: Settings to use; defaults to the global settings
            clock: Time source for view name suffixes
        """
        self.document = document
        self.settings = settings or get_settings()
        self.clock = clock

    def plan(
        self,
        source_path: str,
        default_unit: Optional[LengthUnit] = None,
        tolerance_mm: Optional[float] = None,
        column_mapping: Optional[ColumnMapping] = None
    ) -> ImportPlan:
        """
        Parse, validate and classify a source file without changing the document.

        Args:
            source_path: Delimited text file or workbook
            default_unit: Unit of values without row or header unit; defaults to settings
            tolerance_mm: Elevation tolerance in millimeters; defaults to settings
            column_mapping: Explicit column locations for delimited text

        Returns:
            ImportPlan

        Raises:
            SourceUnavailable: The source file cannot be read
            FormatError: Required columns are missing
            ValueError: Invalid default unit or tolerance
        """
        unit = default_unit or self.settings.importing.default_unit
        if not is_selectable_unit(unit):
            raise ValueError(f"Default unit must be millimeters, meters or feet, got {unit}")
        if tolerance_mm is None:
            tolerance_mm = self.settings.importing.tolerance_mm
        tolerance = tolerance_from_millimeters(tolerance_mm)

        source_name = Path(source_path).name
        parser = create_parser(source_path, column_mapping)
        rows = parser.parse(source_path)

        validation = RowValidator(unit, parser.header_unit).validate(rows)
        warnings = list(parser.warnings) + validation.warnings

        plan = ImportPlan(source_name, unit, tolerance, validation, warnings=warnings)
        if plan.is_empty:
            logger.warning(f"{source_name}: no valid rows")
            return plan

        matcher = LevelMatcher(self.document.levels(), tolerance)
        plan.classifications = matcher.classify(validation.rows)
        return plan

    def run(
        self,
        source_path: str,
        default_unit: Optional[LengthUnit] = None,
        tolerance_mm: Optional[float] = None,
        column_mapping: Optional[ColumnMapping] = None,
        dry_run: bool = False
    ) -> RunReport:
        """
        Import a source file into the document.

        Args:
            source_path: Delimited text file or workbook
            default_unit: Unit of values without row or header unit; defaults to settings
            tolerance_mm: Elevation tolerance in millimeters; defaults to settings
            column_mapping: Explicit column locations for delimited text
            dry_run: Report what would change without touching the document

        Returns:
            RunReport (cancelled when no row survived validation)

        Raises:
            SourceUnavailable, FormatError: Before any document change
            ApplyError: The document rejected the changes; all were rolled back
        """
        plan = self.plan(source_path, default_unit, tolerance_mm, column_mapping)

        if plan.is_empty:
            return build_cancelled_report(plan.warnings, plan.source_name, plan.unit)

        if dry_run:
            return build_report(plan.classifications, warnings=plan.warnings,
                                source_name=plan.source_name, unit=plan.unit)

        view_deriver = ViewDeriver(self.document, self.settings.views, self.clock)
        engine = ApplyEngine(self.document, view_deriver, self.settings.importing)
        result, views = engine.apply(plan.classifications)

        return build_report(
            plan.classifications,
            apply_result=result,
            views=views,
            warnings=plan.warnings,
            source_name=plan.source_name,
            unit=plan.unit
        )


def run_import(
    source_path: str,
    document: DocumentProvider,
    default_unit: LengthUnit,
    tolerance_mm: Optional[float] = None,
    column_mapping: Optional[ColumnMapping] = None
) -> RunReport:
    """
    Convenience function to import a source file into a document.

    Args:
        source_path: Delimited text file or workbook
        document: Document to reconcile against
        default_unit: Unit of values without row or header unit
        tolerance_mm: Elevation tolerance in millimeters
        column_mapping: Explicit column locations for delimited text

    Returns:
        RunReport
    """
    importer = LevelImporter(document)
    return importer.run(source_path, default_unit, tolerance_mm, column_mapping)
