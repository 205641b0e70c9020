"""
Validators Package

Validation and deduplication of candidate level rows.
"""
from typing import Iterable, Optional
import logging

from ..config.models import (
    CandidateRow, ValidatedRow, ValidationResult, RowIssue, IssueReason
)
from ..config.settings import LengthUnit
from ..engine.units import convert_elevation, resolve_unit


logger = logging.getLogger(__name__)


class RowValidator:
    """
    Validator for candidate rows.

    Rules, applied in order to each row:
        (a) empty name           -> EmptyName
        (b) name seen before     -> DuplicateInFile (first occurrence wins)
        (c) unparsable elevation -> InvalidElevation

    Invalid rows are recorded as issues and dropped; validation never aborts.
    """

    def __init__(self, default_unit: LengthUnit, header_unit: LengthUnit = LengthUnit.UNKNOWN):
        """
        Args:
            default_unit: Unit chosen for the run (millimeters, meters or feet)
            header_unit: Unit annotated on the elevation header, if any

        Raises:
            ValueError: default_unit is not selectable
        """
        # Fails fast on a bad default before any row is looked at
        resolve_unit(LengthUnit.UNKNOWN, LengthUnit.UNKNOWN, default_unit)
        self.default_unit = default_unit
        self.header_unit = header_unit

    def validate(self, rows: Iterable[CandidateRow]) -> ValidationResult:
        """
        Validate and deduplicate candidate rows.

        Args:
            rows: Candidate rows in source order

        Returns:
            ValidationResult with the surviving rows and the issues found
        """
        result = ValidationResult()
        seen_names = set()

        for row in rows:
            name = row.raw_name.strip()

            if not name:
                self._reject(result, row, IssueReason.EMPTY_NAME,
                             f"Row {row.source_line}: name is empty.")
                continue

            key = name.casefold()
            if key in seen_names:
                self._reject(result, row, IssueReason.DUPLICATE_IN_FILE,
                             f"Row {row.source_line}: name '{name}' is duplicated in the file.")
                continue
            seen_names.add(key)

            elevation = convert_elevation(
                row.raw_elevation_text, row.unit_hint, self.header_unit, self.default_unit
            )
            if elevation is None:
                self._reject(result, row, IssueReason.INVALID_ELEVATION,
                             f"Row {row.source_line}: invalid elevation '{row.raw_elevation_text}'.")
                continue

            result.rows.append(ValidatedRow(row.source_line, name, elevation))

        logger.info(f"Validated {len(result.rows)} rows, {len(result.issues)} excluded")
        return result

    def _reject(self, result: ValidationResult, row: CandidateRow, reason: IssueReason, message: str):
        result.add_issue(RowIssue(row.source_line, reason, message))
        logger.warning(message)


def validate_rows(
    rows: Iterable[CandidateRow],
    default_unit: LengthUnit,
    header_unit: Optional[LengthUnit] = None
) -> ValidationResult:
    """
    Convenience function to validate candidate rows.

    Args:
        rows: Candidate rows in source order
        default_unit: Unit chosen for the run
        header_unit: Unit annotated on the elevation header

    Returns:
        ValidationResult
    """
    validator = RowValidator(default_unit, header_unit or LengthUnit.UNKNOWN)
    return validator.validate(rows)
