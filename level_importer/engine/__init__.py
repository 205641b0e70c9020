"""
Engine Package

Level reconciliation: units, matching, naming, apply, views and reporting.
"""
from .errors import (
    LevelImportError,
    SourceUnavailable,
    FormatError,
    ApplyError,
    DocumentOperationError,
    ReadOnlyParameterError,
)

from .units import (
    FEET_PER_UNIT,
    resolve_unit,
    to_canonical,
    from_canonical,
    parse_elevation,
    convert_elevation,
    tolerance_from_millimeters,
)

from .matcher import (
    ElevationSet,
    LevelMatcher,
    classify_rows,
    sort_rows,
    tally,
)

from .naming import (
    NameRegistry,
    LevelNameResolver,
    ViewNameResolver,
    unique_name,
)

from .views import ViewDeriver
from .apply import ApplyEngine
from .report import build_report, build_cancelled_report
from .importer import ImportPlan, LevelImporter, run_import

__all__ = [
    # Errors
    'LevelImportError',
    'SourceUnavailable',
    'FormatError',
    'ApplyError',
    'DocumentOperationError',
    'ReadOnlyParameterError',

    # Units
    'FEET_PER_UNIT',
    'resolve_unit',
    'to_canonical',
    'from_canonical',
    'parse_elevation',
    'convert_elevation',
    'tolerance_from_millimeters',

    # Matching
    'ElevationSet',
    'LevelMatcher',
    'classify_rows',
    'sort_rows',
    'tally',

    # Naming
    'NameRegistry',
    'LevelNameResolver',
    'ViewNameResolver',
    'unique_name',

    # Apply and report
    'ViewDeriver',
    'ApplyEngine',
    'build_report',
    'build_cancelled_report',
    'ImportPlan',
    'LevelImporter',
    'run_import',
]
