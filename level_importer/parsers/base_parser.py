"""
Base Parser Module

Abstract base class for all level source parsers.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, List, Iterator, Union
import unicodedata
import re
import pandas as pd
import logging

from ..config.models import CandidateRow
from ..config.settings import get_settings, SourceFormat, LengthUnit
from ..engine.errors import SourceUnavailable


logger = logging.getLogger(__name__)

ColumnRef = Union[str, int, None]


@dataclass
class ColumnMapping:
    """
    Explicit location of the source columns.

    Each column is given either by its header text or by its 0-based index.
    Columns left as None are located through the header aliases.
    """
    name: ColumnRef = None
    elevation: ColumnRef = None
    unit: ColumnRef = None


class BaseParser(ABC):
    """Abstract base class for level source parsers."""

    def __init__(self, encoding: str = None, column_mapping: Optional[ColumnMapping] = None):
        """
        Initialize the parser.

        Args:
            encoding: File encoding to use. If None, uses default from settings.
            column_mapping: Explicit column locations. If None, headers are matched by alias.
        """
        self.settings = get_settings()
        self.encoding = encoding or self.settings.encoding.default_encoding
        self.column_mapping = column_mapping or ColumnMapping()
        self.header_unit = LengthUnit.UNKNOWN
        self.warnings: List[str] = []

    @abstractmethod
    def parse(self, filepath: str) -> Iterator[CandidateRow]:
        """
        Open a source file and return its candidate rows.

        The source is opened and its header interpreted before this returns,
        so SourceUnavailable and FormatError are raised here; rows are then
        produced lazily in source order.

        Args:
            filepath: Path to the file to parse

        Returns:
            Iterator of CandidateRow objects
        """
        pass

    @abstractmethod
    def detect_format(self, filepath: str) -> bool:
        """
        Check if this parser can handle the given file format.

        Args:
            filepath: Path to the file

        Returns:
            True if this parser can handle the file
        """
        pass

    def check_source(self, filepath: str) -> Path:
        """Ensure the source file exists, raising SourceUnavailable otherwise."""
        path = Path(filepath)
        if not path.is_file():
            raise SourceUnavailable(f"Source file not found: {filepath}")
        return path

    def read_file(self, filepath: str) -> List[str]:
        """
        Read file with automatic encoding detection.

        Args:
            filepath: Path to the file

        Returns:
            List of lines from the file
        """
        encodings = [self.encoding] + self.settings.encoding.fallback_encodings

        for enc in encodings:
            try:
                with open(filepath, 'r', encoding=enc) as f:
                    lines = f.read().splitlines()
                logger.debug(f"Successfully read {filepath} with encoding {enc}")
                return lines
            except (UnicodeDecodeError, LookupError):
                continue
            except OSError as e:
                raise SourceUnavailable(f"Cannot read {filepath}: {e}") from e

        # Last resort: read with errors='replace'
        with open(filepath, 'r', encoding='latin-1', errors='replace') as f:
            lines = f.read().splitlines()
        self.add_warning("Could not detect encoding, used latin-1 with replacements")
        return lines

    def extract_filename(self, filepath: str) -> str:
        """Extract just the filename without the directory."""
        return Path(filepath).name

    def extract_header_unit(self, header_text: str) -> LengthUnit:
        """
        Extract a unit annotation such as "(m)" or "[mm]" from a header cell.

        Args:
            header_text: Raw header text of the elevation column

        Returns:
            Annotated unit, or UNKNOWN when the header carries none
        """
        if not header_text:
            return LengthUnit.UNKNOWN
        match = self.settings.parser.header_unit_pattern.search(header_text)
        if not match:
            return LengthUnit.UNKNOWN
        return LengthUnit.from_token(match.group(1))

    def split_unit_suffix(self, elevation_text: str):
        """
        Split a trailing unit ("3.50 m", "3500mm", "10'") from an elevation value.

        Returns:
            Tuple of (number_text, unit); unit is UNKNOWN when no suffix is present
        """
        text = elevation_text.strip()
        match = self.settings.parser.value_unit_pattern.match(text)
        if not match:
            return text, LengthUnit.UNKNOWN
        return match.group('number').strip(), LengthUnit.from_token(match.group('unit'))

    def parse_to_dataframe(self, filepath: str) -> pd.DataFrame:
        """
        Parse file and return as DataFrame.

        Args:
            filepath: Path to the file

        Returns:
            pandas DataFrame with one row per candidate row
        """
        data = []
        for row in self.parse(filepath):
            data.append({
                'SourceLine': row.source_line,
                'Name': row.raw_name,
                'Elevation': row.raw_elevation_text,
                'UnitHint': row.unit_hint.value,
            })
        return pd.DataFrame(data, columns=['SourceLine', 'Name', 'Elevation', 'UnitHint'])

    def add_warning(self, message: str):
        """Add a warning message."""
        self.warnings.append(message)
        logger.warning(message)

    def clear_messages(self):
        """Clear all warning messages."""
        self.warnings = []
        self.header_unit = LengthUnit.UNKNOWN


def normalize_header(text: str) -> str:
    """
    Normalize a header cell for alias matching.

    Lower-cases, strips accents and unit annotations, and collapses
    separators: "Elevación (m)" -> "elevacion".
    """
    text = unicodedata.normalize('NFKD', str(text))
    text = ''.join(c for c in text if not unicodedata.combining(c))
    text = re.sub(r'[\(\[][^\)\]]*[\)\]]', ' ', text.lower())
    return ' '.join(re.findall(r'[a-z0-9]+', text))


def detect_file_format(filepath: str) -> SourceFormat:
    """
    Detect the format of a level source file.

    Args:
        filepath: Path to the file

    Returns:
        SourceFormat enum value
    """
    ext = Path(filepath).suffix.lower()
    if ext in get_settings().parser.spreadsheet_extensions:
        return SourceFormat.SPREADSHEET
    return SourceFormat.DELIMITED_TEXT


def create_parser(filepath: str, column_mapping: Optional[ColumnMapping] = None) -> BaseParser:
    """
    Factory function to create the appropriate parser for a file.

    Args:
        filepath: Path to the file
        column_mapping: Explicit column locations for delimited text

    Returns:
        Parser instance
    """
    file_format = detect_file_format(filepath)

    if file_format == SourceFormat.SPREADSHEET:
        from .spreadsheet_parser import SpreadsheetParser
        return SpreadsheetParser()

    from .delimited_parser import DelimitedParser
    return DelimitedParser(column_mapping=column_mapping)
