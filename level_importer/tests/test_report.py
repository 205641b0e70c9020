"""
Tests for report building and report exporters.
"""
import pandas as pd

from level_importer.config.models import (
    ApplyResult, Classification, DerivedView, Level, ValidatedRow
)
from level_importer.config.settings import LengthUnit
from level_importer.engine.report import build_cancelled_report, build_report, conflict_warnings
from level_importer.exporters import export_report_csv, export_report_text


def sample_report():
    existing = Level("P1", 10.0, identity=1)
    classifications = [
        Classification.create(ValidatedRow(3, "P2", 3.2808398950131235)),
        Classification.update(ValidatedRow(2, "P1", 6.561679790026247), existing),
        Classification.conflict(ValidatedRow(4, "P3", 6.561679790026247)),
    ]
    result = ApplyResult(
        created=[Level("P2", 3.2808398950131235, identity=2)],
        updated=[Level("P1", 6.561679790026247, identity=1)],
        warnings=["View 'Planta - P2': scale or crop region could not be set."],
    )
    views = [DerivedView("P2", "Planta - P2", 100, True, False, identity=3)]
    return build_report(
        classifications,
        apply_result=result,
        views=views,
        warnings=["Row 5: name is empty."],
        source_name="levels.csv",
        unit=LengthUnit.METERS,
    )


def test_warnings_order():
    report = sample_report()

    assert report.warnings == [
        "Row 5: name is empty.",
        "Row 4: another level has a similar elevation, 'P3' was skipped.",
        "View 'Planta - P2': scale or crop region could not be set.",
    ]


def test_counts_and_lists():
    report = sample_report()

    assert (report.num_created, report.num_updated, report.num_unchanged, report.num_views) == (1, 1, 0, 1)
    assert report.created_views == ["Planta - P2"]
    assert [c.row.name for c in report.conflicts] == ["P3"]


def test_text_summary():
    text = sample_report().to_text()

    assert text.startswith("File: levels.csv\nInput units: Meters\n")
    assert "Levels created: 1\n  • P2\n" in text
    assert "Levels updated: 1\n  • P1\n" in text
    assert "Levels unchanged: 0\n" in text
    assert "Floor plans created: 1\n  • Planta - P2\n" in text
    assert "Observations:\n  • Row 5: name is empty." in text


def test_report_without_warnings_has_no_observations():
    report = build_report([Classification.create(ValidatedRow(2, "P1", 0.0))])

    assert [l.name for l in report.created] == ["P1"]
    assert "Observations" not in report.to_text()


def test_cancelled_report():
    report = build_cancelled_report(["Row 2: name is empty."], "levels.csv", LengthUnit.FEET)

    assert report.cancelled
    assert report.to_text() == (
        "File: levels.csv\n"
        "Input units: Feet\n"
        "No valid rows were found in the file.\n"
        "\n"
        "Observations:\n"
        "  • Row 2: name is empty.\n"
    )


def test_conflict_warnings_only_for_conflicts():
    classifications = [
        Classification.create(ValidatedRow(2, "A", 0.0)),
        Classification.conflict(ValidatedRow(3, "B", 0.0)),
    ]

    assert conflict_warnings(classifications) == [
        "Row 3: another level has a similar elevation, 'B' was skipped."
    ]


def test_dataframe():
    df = sample_report().to_dataframe()

    assert list(df.columns) == ['Name', 'Elevation', 'Status']
    assert df['Status'].tolist() == ['created', 'updated', 'conflict']


def test_text_export(tmp_path):
    path = export_report_text(str(tmp_path / "report.txt"), sample_report())

    content = path.read_text(encoding="utf-8")
    assert content.startswith("# Level import report - levels.csv\n# Generated: ")
    assert "Floor plans created: 1" in content


def test_csv_export(tmp_path):
    path = export_report_csv(str(tmp_path / "report.csv"), sample_report())

    df = pd.read_csv(path, sep=';')
    assert list(df.columns) == ['Name', 'Elevation', 'Elevation_m', 'Status']
    assert df['Elevation_m'].tolist() == [1.0, 2.0, 2.0]
    assert df['Name'].tolist() == ['P2', 'P1', 'P3']
