"""
Delimited Text Parser

Parses level tables stored as ';' or ',' separated text.

File Format:
    Nombre;Elevacion (m)
    Sotano;-3,20
    P1;0.00
    P2;3.50 m
    Cubierta;12500 mm

The first non-blank line is the header. The elevation header may carry a
unit annotation "(mm)", "[m]", "(ft)"; values may carry their own unit suffix.
"""
from pathlib import Path
from typing import Iterator, List, Optional, Tuple
import logging

from .base_parser import BaseParser, ColumnMapping, ColumnRef, normalize_header
from ..config.models import CandidateRow
from ..config.settings import LengthUnit
from ..engine.errors import FormatError


logger = logging.getLogger(__name__)


class DelimitedParser(BaseParser):
    """Parser for delimited text level tables."""

    def __init__(self, encoding: str = None, column_mapping: Optional[ColumnMapping] = None):
        super().__init__(encoding, column_mapping)
        self.delimiter = self.settings.parser.default_delimiter

    def detect_format(self, filepath: str) -> bool:
        """Any file that is not a spreadsheet is read as delimited text."""
        return Path(filepath).suffix.lower() not in self.settings.parser.spreadsheet_extensions

    def detect_delimiter(self, header_line: str) -> str:
        """
        Pick the delimiter from the header line.

        Candidates are tried in configured order (';' then ','); the default
        is used when none is present.
        """
        for delimiter in self.settings.parser.delimiters:
            if delimiter in header_line:
                return delimiter
        return self.settings.parser.default_delimiter

    def parse(self, filepath: str) -> Iterator[CandidateRow]:
        """
        Parse a delimited text file.

        Args:
            filepath: Path to the text file

        Returns:
            Iterator of CandidateRow objects in file order

        Raises:
            SourceUnavailable: The file does not exist or cannot be read
            FormatError: The name or elevation column cannot be located
        """
        self.clear_messages()
        self.check_source(filepath)
        lines = self.read_file(filepath)

        header_index = self._first_content_line(lines)
        if header_index is None:
            raise FormatError(f"{self.extract_filename(filepath)}: file has no header row")

        header_line = lines[header_index]
        self.delimiter = self.detect_delimiter(header_line)
        headers = self.split_fields(header_line)

        name_col, elev_col, unit_col = self.locate_columns(headers)
        self.header_unit = self.extract_header_unit(headers[elev_col])

        logger.debug(
            f"{self.extract_filename(filepath)}: delimiter '{self.delimiter}', "
            f"name column {name_col}, elevation column {elev_col}, "
            f"unit column {unit_col}, header unit {self.header_unit.value}"
        )

        return self._iter_rows(lines, header_index + 1, name_col, elev_col, unit_col)

    def _iter_rows(
        self,
        lines: List[str],
        start: int,
        name_col: int,
        elev_col: int,
        unit_col: Optional[int]
    ) -> Iterator[CandidateRow]:
        """Yield candidate rows for every non-blank line after the header."""
        for index in range(start, len(lines)):
            fields = self.split_fields(lines[index])
            if not fields:
                continue

            raw_name = self._field(fields, name_col)
            elevation_text, unit_hint = self.split_unit_suffix(self._field(fields, elev_col))

            if unit_col is not None:
                column_unit = LengthUnit.from_token(self._field(fields, unit_col))
                if column_unit != LengthUnit.UNKNOWN:
                    unit_hint = column_unit

            yield CandidateRow(
                source_line=index + 1,
                raw_name=raw_name,
                raw_elevation_text=elevation_text,
                unit_hint=unit_hint
            )

    def split_fields(self, line: str) -> List[str]:
        """
        Split a line into stripped fields.

        Repeated delimiters count as one: empty fields after the first are
        dropped, so "P2;;;6.0" gives ["P2", "6.0"]. A leading empty field is
        kept (";5" is a row with an empty name), and a line made only of
        delimiters yields no fields.
        """
        fields = [self._unquote(f) for f in line.split(self.delimiter)]
        fields = fields[:1] + [f for f in fields[1:] if f]
        while fields and not fields[-1]:
            fields.pop()
        return fields

    def locate_columns(self, headers: List[str]) -> Tuple[int, int, Optional[int]]:
        """
        Locate the name, elevation and optional unit columns.

        Explicit mapping entries win; the rest are matched by alias.
        The elevation column is located first so that a header such as
        "Level Elevation" is not taken as the name column.

        Returns:
            Tuple of (name_index, elevation_index, unit_index or None)

        Raises:
            FormatError: Name or elevation column not found
        """
        parser_config = self.settings.parser
        normalized = [normalize_header(h) for h in headers]
        mapping = self.column_mapping

        elev_col = self._resolve(mapping.elevation, headers, normalized,
                                 parser_config.elevation_aliases, exclude=set())
        if elev_col is None:
            raise FormatError(f"Elevation column not found in header: {headers}")

        name_col = self._resolve(mapping.name, headers, normalized,
                                 parser_config.name_aliases, exclude={elev_col})
        if name_col is None:
            raise FormatError(f"Name column not found in header: {headers}")

        unit_col = self._resolve(mapping.unit, headers, normalized,
                                 parser_config.unit_aliases, exclude={elev_col, name_col},
                                 required=False)

        return name_col, elev_col, unit_col

    def _resolve(
        self,
        ref: ColumnRef,
        headers: List[str],
        normalized: List[str],
        aliases: List[str],
        exclude: set,
        required: bool = True
    ) -> Optional[int]:
        """Resolve one column from an explicit reference or from aliases."""
        if isinstance(ref, int):
            if 0 <= ref < len(headers):
                return ref
            raise FormatError(f"Column index {ref} is outside the header ({len(headers)} columns)")

        if isinstance(ref, str):
            wanted = normalize_header(ref)
            for i, (raw, norm) in enumerate(zip(headers, normalized)):
                if raw.lower() == ref.strip().lower() or (wanted and norm == wanted):
                    return i
            if required:
                raise FormatError(f"Column '{ref}' not found in header: {headers}")
            return None

        # Exact alias match first, then any word of the header
        for i, norm in enumerate(normalized):
            if i not in exclude and norm in aliases:
                return i
        for i, norm in enumerate(normalized):
            if i not in exclude and any(token in aliases for token in norm.split()):
                return i
        return None

    @staticmethod
    def _first_content_line(lines: List[str]) -> Optional[int]:
        for index, line in enumerate(lines):
            if line.strip():
                return index
        return None

    @staticmethod
    def _field(fields: List[str], index: int) -> str:
        return fields[index] if index < len(fields) else ""

    @staticmethod
    def _unquote(value: str) -> str:
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1].strip()
        return value


# Convenience function
def parse_delimited(filepath: str, column_mapping: Optional[ColumnMapping] = None) -> List[CandidateRow]:
    """
    Parse a delimited text file into a list of candidate rows.

    Args:
        filepath: Path to the text file
        column_mapping: Explicit column locations

    Returns:
        List of CandidateRow objects
    """
    parser = DelimitedParser(column_mapping=column_mapping)
    return list(parser.parse(filepath))
