"""
Level Importer Configuration Settings
"""
import re
from dataclasses import dataclass, field
from typing import Pattern, List, Optional
from enum import Enum


class LengthUnit(Enum):
    """Length units accepted for input elevations."""
    UNKNOWN = "unknown"
    MILLIMETERS = "mm"
    METERS = "m"
    FEET = "ft"

    @classmethod
    def from_token(cls, token: Optional[str]) -> 'LengthUnit':
        """
        Map a unit token ("mm", "Metros", "ft", "'") to a LengthUnit.

        Unrecognized or empty tokens map to UNKNOWN.
        """
        if token is None:
            return cls.UNKNOWN
        key = token.strip().lower().rstrip('.')
        return _UNIT_TOKENS.get(key, cls.UNKNOWN)

    @property
    def label(self) -> str:
        """Human readable unit name for reports."""
        return {
            LengthUnit.MILLIMETERS: "Millimeters",
            LengthUnit.METERS: "Meters",
            LengthUnit.FEET: "Feet",
        }.get(self, "Unknown")


_UNIT_TOKENS = {
    'mm': LengthUnit.MILLIMETERS,
    'millimeter': LengthUnit.MILLIMETERS,
    'millimeters': LengthUnit.MILLIMETERS,
    'milimetro': LengthUnit.MILLIMETERS,
    'milimetros': LengthUnit.MILLIMETERS,
    'milímetros': LengthUnit.MILLIMETERS,
    'm': LengthUnit.METERS,
    'meter': LengthUnit.METERS,
    'meters': LengthUnit.METERS,
    'metre': LengthUnit.METERS,
    'metres': LengthUnit.METERS,
    'metro': LengthUnit.METERS,
    'metros': LengthUnit.METERS,
    'ft': LengthUnit.FEET,
    'foot': LengthUnit.FEET,
    'feet': LengthUnit.FEET,
    'pie': LengthUnit.FEET,
    'pies': LengthUnit.FEET,
    "'": LengthUnit.FEET,
}

# Units a caller may choose as the run default
SELECTABLE_UNITS = (LengthUnit.MILLIMETERS, LengthUnit.METERS, LengthUnit.FEET)


class SourceFormat(Enum):
    """Supported input formats."""
    DELIMITED_TEXT = "delimited_text"
    SPREADSHEET = "spreadsheet"


@dataclass
class ImportConfig:
    """Reconciliation parameters."""
    # Two elevations closer than this are the same level (in millimeters)
    tolerance_mm: float = 1.0
    default_unit: LengthUnit = LengthUnit.METERS
    group_name: str = "Import levels"
    levels_transaction_name: str = "Create or update levels"


@dataclass
class ViewConfig:
    """Floor plan views derived for newly created levels."""
    scale: int = 100
    name_template: str = "Planta - {level}"
    crop_active: bool = True
    crop_visible: bool = False
    timestamp_format: str = "%Y%m%d_%H%M%S"
    transaction_name: str = "Create floor plans"


@dataclass
class EncodingConfig:
    """File encoding configuration."""
    default_encoding: str = 'utf-8-sig'
    fallback_encodings: List[str] = field(default_factory=lambda: ['utf-8', 'cp1252', 'latin-1'])
    output_encoding: str = 'utf-8'


@dataclass
class ParserConfig:
    """Delimited text and spreadsheet parsing rules."""
    delimiters: List[str] = field(default_factory=lambda: [';', ','])
    default_delimiter: str = ';'
    spreadsheet_extensions: List[str] = field(default_factory=lambda: ['.xlsx', '.xlsm'])

    # Header aliases, compared after lower-casing and stripping accents and unit annotations
    name_aliases: List[str] = field(default_factory=lambda: ['name', 'nombre', 'nivel', 'level'])
    elevation_aliases: List[str] = field(
        default_factory=lambda: ['elevation', 'elevacion', 'elev', 'cota', 'height', 'z']
    )
    unit_aliases: List[str] = field(default_factory=lambda: ['unit', 'units', 'unidad', 'unidades'])

    # Unit annotation embedded in a header cell: "Elevation (m)", "Cota [mm]"
    header_unit_pattern: Pattern = field(
        default_factory=lambda: re.compile(r'[\(\[]\s*(mm|m|ft)\s*[\)\]]', re.IGNORECASE)
    )

    # Unit suffix on an elevation value: "3.50 m", "3500mm", "10 ft", "10'"
    value_unit_pattern: Pattern = field(
        default_factory=lambda: re.compile(r'^(?P<number>.*?\d\.?)\s*(?P<unit>mm|m|ft|\')\s*$', re.IGNORECASE)
    )


@dataclass
class Settings:
    """Main settings container."""
    importing: ImportConfig = field(default_factory=ImportConfig)
    views: ViewConfig = field(default_factory=ViewConfig)
    encoding: EncodingConfig = field(default_factory=EncodingConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)

    # Output formatting
    decimal_places: int = 3


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def is_selectable_unit(unit: LengthUnit) -> bool:
    """Check if a unit may be used as the default unit of a run."""
    return unit in SELECTABLE_UNITS
