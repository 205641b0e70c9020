"""
Spreadsheet Parser

Reads level tables from the first worksheet of an Excel workbook.

Layout:
    Row 1:  header (cell B may carry a unit annotation, e.g. "Elevation (m)")
    Row 2+: column A name, column B elevation

Reading stops at the first row where both A and B are empty. Rows with only
one of the two cells filled are skipped with a warning.
"""
from typing import Iterator, Any, List
import math
import logging

import pandas as pd

from .base_parser import BaseParser
from ..config.models import CandidateRow
from ..engine.errors import SourceUnavailable


logger = logging.getLogger(__name__)


class SpreadsheetParser(BaseParser):
    """Parser for .xlsx level tables."""

    def detect_format(self, filepath: str) -> bool:
        """Check if the file has a spreadsheet extension."""
        return any(filepath.lower().endswith(ext) for ext in self.settings.parser.spreadsheet_extensions)

    def parse(self, filepath: str) -> Iterator[CandidateRow]:
        """
        Parse the first worksheet of a workbook.

        Args:
            filepath: Path to the workbook

        Returns:
            Iterator of CandidateRow objects in sheet order

        Raises:
            SourceUnavailable: The workbook does not exist or cannot be loaded
        """
        self.clear_messages()
        self.check_source(filepath)

        try:
            frame = pd.read_excel(filepath, sheet_name=0, header=None, dtype=object)
        except Exception as e:
            raise SourceUnavailable(f"Cannot read workbook {filepath}: {e}") from e

        if len(frame.columns) < 2:
            frame = frame.reindex(columns=range(2))

        if len(frame):
            self.header_unit = self.extract_header_unit(cell_text(frame.iat[0, 1]))

        return self._iter_rows(frame)

    def _iter_rows(self, frame: pd.DataFrame) -> Iterator[CandidateRow]:
        for index in range(1, len(frame)):
            sheet_row = index + 1
            name = cell_text(frame.iat[index, 0])
            elevation = cell_text(frame.iat[index, 1])

            if not name and not elevation:
                logger.debug(f"Row {sheet_row}: empty row, end of table")
                break

            if not name or not elevation:
                self.add_warning(f"Row {sheet_row}: name or elevation cell is empty, row skipped.")
                continue

            elevation_text, unit_hint = self.split_unit_suffix(elevation)
            yield CandidateRow(
                source_line=sheet_row,
                raw_name=name,
                raw_elevation_text=elevation_text,
                unit_hint=unit_hint
            )


def cell_text(value: Any) -> str:
    """
    Convert a worksheet cell to text.

    Empty cells give "", integral floats lose their ".0" so that a level
    named 1 is read as "1", other numbers keep full precision.
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value).strip()


# Convenience function
def parse_spreadsheet(filepath: str) -> List[CandidateRow]:
    """
    Parse a workbook into a list of candidate rows.

    Args:
        filepath: Path to the workbook

    Returns:
        List of CandidateRow objects
    """
    parser = SpreadsheetParser()
    return list(parser.parse(filepath))
