"""
Config Package

Configuration and data models for the level importer.
"""
from .settings import (
    get_settings,
    Settings,
    LengthUnit,
    SourceFormat,
    SELECTABLE_UNITS,
    is_selectable_unit,
)

from .models import (
    CandidateRow,
    ValidatedRow,
    Level,
    RowIssue,
    IssueReason,
    Classification,
    ClassificationKind,
    DerivedView,
    ValidationResult,
    ApplyResult,
    RunReport,
)

from .settings_manager import SettingsManager, get_settings_manager

__all__ = [
    # Settings
    'get_settings',
    'Settings',
    'LengthUnit',
    'SourceFormat',
    'SELECTABLE_UNITS',
    'is_selectable_unit',
    'SettingsManager',
    'get_settings_manager',

    # Models
    'CandidateRow',
    'ValidatedRow',
    'Level',
    'RowIssue',
    'IssueReason',
    'Classification',
    'ClassificationKind',
    'DerivedView',
    'ValidationResult',
    'ApplyResult',
    'RunReport',
]
