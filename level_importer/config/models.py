"""
Data Models for Level Reconciliation

Core data structures used throughout the level importer.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Any
from enum import Enum
import pandas as pd

from .settings import LengthUnit


class IssueReason(Enum):
    """Reason a row was excluded from reconciliation."""
    EMPTY_NAME = "EmptyName"
    DUPLICATE_IN_FILE = "DuplicateInFile"
    INVALID_ELEVATION = "InvalidElevation"
    AMBIGUOUS_ELEVATION = "AmbiguousElevation"


class ClassificationKind(Enum):
    """Decision taken by the matcher for one validated row."""
    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"
    CONFLICT_SKIP = "conflict_skip"


@dataclass(frozen=True)
class CandidateRow:
    """Row as read from the source file, before any interpretation."""
    source_line: int
    raw_name: str
    raw_elevation_text: str
    unit_hint: LengthUnit = LengthUnit.UNKNOWN


@dataclass(frozen=True)
class ValidatedRow:
    """Row with a usable name and an elevation in canonical units (feet)."""
    source_line: int
    name: str
    elevation: float


@dataclass
class Level:
    """Named, elevation-tagged level owned by the document."""
    name: str
    elevation: float           # Canonical units (feet)
    identity: Any = None       # Opaque handle supplied by the document provider


@dataclass
class RowIssue:
    """Recoverable problem found on a single input row."""
    source_line: int
    reason: IssueReason
    message: str


@dataclass
class Classification:
    """Matcher decision for a single validated row."""
    kind: ClassificationKind
    row: ValidatedRow
    entity: Optional[Level] = None
    new_elevation: Optional[float] = None
    reason: Optional[IssueReason] = None

    @classmethod
    def create(cls, row: ValidatedRow) -> 'Classification':
        return cls(ClassificationKind.CREATE, row)

    @classmethod
    def update(cls, row: ValidatedRow, entity: Level) -> 'Classification':
        return cls(ClassificationKind.UPDATE, row, entity=entity, new_elevation=row.elevation)

    @classmethod
    def skip(cls, row: ValidatedRow, entity: Level) -> 'Classification':
        return cls(ClassificationKind.SKIP, row, entity=entity)

    @classmethod
    def conflict(cls, row: ValidatedRow, reason: IssueReason = IssueReason.AMBIGUOUS_ELEVATION) -> 'Classification':
        return cls(ClassificationKind.CONFLICT_SKIP, row, reason=reason)


@dataclass
class DerivedView:
    """Floor plan view created for a newly created level."""
    owner_name: str
    final_view_name: str
    scale: int
    crop_active: bool
    crop_visible: bool
    identity: Any = None


@dataclass
class ValidationResult:
    """Outcome of validating and deduplicating candidate rows."""
    rows: List[ValidatedRow] = field(default_factory=list)
    issues: List[RowIssue] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def warnings(self) -> List[str]:
        return [issue.message for issue in self.issues]

    def add_issue(self, issue: RowIssue):
        """Record an excluded row."""
        self.issues.append(issue)


@dataclass
class ApplyResult:
    """Entities touched by the apply engine."""
    created: List[Level] = field(default_factory=list)
    updated: List[Level] = field(default_factory=list)
    unchanged: List[Level] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_warning(self, message: str):
        self.warnings.append(message)


@dataclass
class RunReport:
    """Summary of one import run."""
    created: List[Level] = field(default_factory=list)
    updated: List[Level] = field(default_factory=list)
    unchanged: List[Level] = field(default_factory=list)
    created_views: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    conflicts: List[Classification] = field(default_factory=list)
    views: List[DerivedView] = field(default_factory=list)
    source_name: str = ""
    unit: Optional[LengthUnit] = None
    cancelled: bool = False

    @property
    def num_created(self) -> int:
        return len(self.created)

    @property
    def num_updated(self) -> int:
        return len(self.updated)

    @property
    def num_unchanged(self) -> int:
        return len(self.unchanged)

    @property
    def num_views(self) -> int:
        return len(self.created_views)

    def to_text(self) -> str:
        """Render the report as a plain text summary."""
        lines = []
        if self.source_name:
            lines.append(f"File: {self.source_name}")
        if self.unit is not None:
            lines.append(f"Input units: {self.unit.label}")
        if self.cancelled:
            lines.append("No valid rows were found in the file.")
        else:
            lines.append("")
            lines.append(f"Levels created: {self.num_created}")
            lines.extend(f"  • {level.name}" for level in self.created)
            lines.append(f"Levels updated: {self.num_updated}")
            lines.extend(f"  • {level.name}" for level in self.updated)
            lines.append(f"Levels unchanged: {self.num_unchanged}")
            lines.append(f"Floor plans created: {self.num_views}")
            lines.extend(f"  • {name}" for name in self.created_views)

        if self.warnings:
            lines.append("")
            lines.append("Observations:")
            lines.extend(f"  • {warning}" for warning in self.warnings)

        return "\n".join(lines) + "\n"

    def to_dataframe(self) -> pd.DataFrame:
        """Convert touched levels to a DataFrame, one row per level."""
        data = []
        for status, levels in (('created', self.created),
                               ('updated', self.updated),
                               ('unchanged', self.unchanged)):
            for level in levels:
                data.append({
                    'Name': level.name,
                    'Elevation': level.elevation,
                    'Status': status,
                })
        for classification in self.conflicts:
            data.append({
                'Name': classification.row.name,
                'Elevation': classification.row.elevation,
                'Status': 'conflict',
            })
        return pd.DataFrame(data, columns=['Name', 'Elevation', 'Status'])
