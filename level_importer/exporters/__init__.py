"""
Exporters Package

Writes import run reports to disk.
"""
from pathlib import Path
from datetime import datetime
import logging

from ..config.models import RunReport
from ..config.settings import get_settings
from ..engine.units import from_canonical


logger = logging.getLogger(__name__)


class TextReportExporter:
    """
    Export the plain text summary of a run.

    Format:
        # Level import report - <file>
        # Generated: <timestamp>
        <RunReport.to_text()>
    """

    def __init__(self):
        self.settings = get_settings()
        self.encoding = self.settings.encoding.output_encoding

    def export(self, filepath: str, report: RunReport) -> Path:
        """
        Export a report as text.

        Args:
            filepath: Output file path
            report: Report to write

        Returns:
            Path written
        """
        path = Path(filepath)
        with open(path, 'w', encoding=self.encoding) as f:
            f.write(f"# Level import report - {report.source_name or 'unknown source'}\n")
            f.write(f"# Generated: {datetime.now().isoformat(timespec='seconds')}\n")
            f.write("#" + "=" * 70 + "\n\n")
            f.write(report.to_text())
        logger.info(f"Report written to {path}")
        return path


class CsvReportExporter:
    """
    Export touched levels as CSV, one row per level.

    Columns: Name, Elevation (feet), Elevation in the run unit, Status
    """

    def __init__(self):
        self.settings = get_settings()
        self.encoding = self.settings.encoding.output_encoding

    def export(self, filepath: str, report: RunReport, delimiter: str = ';') -> Path:
        """
        Export a report as CSV.

        Args:
            filepath: Output file path
            report: Report to write
            delimiter: Field separator

        Returns:
            Path written
        """
        df = report.to_dataframe()
        if report.unit is not None and not df.empty:
            column = f"Elevation_{report.unit.value}"
            df.insert(2, column, [from_canonical(e, report.unit) for e in df['Elevation']])
            df[column] = df[column].round(self.settings.decimal_places)

        path = Path(filepath)
        df.to_csv(path, sep=delimiter, index=False, encoding=self.encoding)
        logger.info(f"CSV report written to {path} ({len(df)} rows)")
        return path


# Convenience functions
def export_report_text(filepath: str, report: RunReport) -> Path:
    """Export a report as plain text."""
    exporter = TextReportExporter()
    return exporter.export(filepath, report)


def export_report_csv(filepath: str, report: RunReport, delimiter: str = ';') -> Path:
    """Export a report as CSV."""
    exporter = CsvReportExporter()
    return exporter.export(filepath, report, delimiter)
