"""
End-to-end tests for the import pipeline.
"""
from datetime import datetime

import pandas as pd
import pytest

from level_importer.config.settings import LengthUnit, Settings
from level_importer.document import InMemoryDocument
from level_importer.engine.errors import ApplyError, FormatError, SourceUnavailable
from level_importer.engine.importer import LevelImporter
from level_importer.engine.units import to_canonical


def fixed_clock():
    return datetime(2024, 1, 31, 15, 45, 0)


def meters(value):
    return to_canonical(value, LengthUnit.METERS)


def write_csv(tmp_path, content, name="levels.csv"):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


def importer_for(document, **import_options):
    settings = Settings()
    for key, value in import_options.items():
        setattr(settings.importing, key, value)
    return LevelImporter(document, settings=settings, clock=fixed_clock)


def state(document):
    return sorted((l.name, round(l.elevation, 9)) for l in document.levels()), sorted(document.view_names())


def test_first_import_creates_level_and_view(tmp_path):
    path = write_csv(tmp_path, "Nombre;Elevacion (m)\nP1;0.00\n")
    document = InMemoryDocument()

    report = importer_for(document).run(path, LengthUnit.METERS)

    assert [l.name for l in report.created] == ["P1"]
    assert report.created_views == ["Planta - P1"]
    assert report.num_updated == 0 and report.num_unchanged == 0
    assert report.warnings == []
    assert document.get_level("P1").elevation == 0.0
    assert document.view_names() == ["Planta - P1"]


def test_existing_level_is_moved(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation\nP1;3.0\n")
    document = InMemoryDocument(levels=[("P1", 10.0)])

    report = importer_for(document).run(path, LengthUnit.METERS)

    assert [l.name for l in report.updated] == ["P1"]
    assert report.created == []
    assert document.get_level("P1").elevation == pytest.approx(9.8425197, abs=1e-6)
    assert document.view_names() == []


def test_other_name_at_existing_elevation_is_reported(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation\nB;5.0\n")
    document = InMemoryDocument(levels=[("A", meters(5.0))])

    report = importer_for(document).run(path, LengthUnit.METERS)

    assert report.num_created == 0
    assert report.warnings == ["Row 2: another level has a similar elevation, 'B' was skipped."]
    assert [c.row.name for c in report.conflicts] == ["B"]
    assert [l.name for l in document.levels()] == ["A"]


def test_blank_name_row_is_reported_and_others_imported(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation\n;1.0\nP2;3.0\n")
    document = InMemoryDocument()

    report = importer_for(document).run(path, LengthUnit.METERS)

    assert [l.name for l in report.created] == ["P2"]
    assert report.warnings == ["Row 2: name is empty."]


def test_no_valid_rows_cancels_without_touching_document(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation\n;1.0\nP1;abc\n")
    document = InMemoryDocument(levels=[("Base", 0.0)])

    report = importer_for(document).run(path, LengthUnit.METERS)

    assert report.cancelled
    assert report.created == [] and report.created_views == []
    assert len(report.warnings) == 2
    assert "No valid rows" in report.to_text()
    assert document.history == []


def test_second_run_changes_nothing(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation (m)\nP1;0\nP2;3,5\nP3;7.0\n")
    document = InMemoryDocument()
    importer = importer_for(document)

    first = importer.run(path, LengthUnit.FEET)
    after_first = state(document)
    second = importer.run(path, LengthUnit.FEET)

    assert first.num_created == 3
    assert second.num_created == 0
    assert second.num_updated == 0
    assert second.num_unchanged == 3
    assert second.created_views == []
    assert second.warnings == []
    assert state(document) == after_first


def test_header_unit_beats_default(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation (mm)\nP1;3048\nP2;2 m\n")
    document = InMemoryDocument()

    importer_for(document).run(path, LengthUnit.FEET)

    assert document.get_level("P1").elevation == pytest.approx(10.0)
    assert document.get_level("P2").elevation == pytest.approx(meters(2.0))


def test_default_unit_and_tolerance_come_from_settings(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation\nP1;1000\nP2;1004\n")
    document = InMemoryDocument()

    report = importer_for(document, default_unit=LengthUnit.MILLIMETERS, tolerance_mm=5.0).run(path)

    assert [l.name for l in report.created] == ["P1"]
    assert report.unit == LengthUnit.MILLIMETERS
    assert len(report.conflicts) == 1


def test_dry_run_leaves_document_untouched(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation\nP1;3.0\nP2;6.0\n")
    document = InMemoryDocument(levels=[("P1", 0.0)])

    report = importer_for(document).run(path, LengthUnit.METERS, dry_run=True)

    assert [l.name for l in report.created] == ["P2"]
    assert [l.name for l in report.updated] == ["P1"]
    assert report.created_views == []
    assert document.history == []
    assert document.get_level("P1").elevation == 0.0


def test_plan_reports_classifications(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation\nHigh;9\nLow;1\n")
    document = InMemoryDocument()

    plan = importer_for(document).plan(path, LengthUnit.METERS)

    assert plan.source_name == "levels.csv"
    assert [c.row.name for c in plan.classifications] == ["Low", "High"]
    assert plan.tolerance == pytest.approx(1 / 304.8)


def test_warnings_are_ordered_by_stage(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation\n;1\nB;5\nC;9\n")
    document = InMemoryDocument(levels=[("A", meters(5.0))], fail_rename=["C"])

    report = importer_for(document).run(path, LengthUnit.METERS)

    assert len(report.warnings) == 3
    assert report.warnings[0].startswith("Row 2: name is empty")
    assert report.warnings[1].startswith("Row 3: another level")
    assert report.warnings[2].startswith("Level created from row 4")
    assert report.created_views == ["Planta - Level 2"]


def test_apply_failure_leaves_document_as_before(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation\nP1;3.0\nP2;6.0\n")
    document = InMemoryDocument(levels=[("P1", 0.0)], fail_on={"set_view_crop": RuntimeError("host crashed")})
    before = state(document)

    with pytest.raises(ApplyError):
        importer_for(document).run(path, LengthUnit.METERS)

    assert state(document) == before


def test_missing_source_raises_before_any_change(tmp_path):
    document = InMemoryDocument()

    with pytest.raises(SourceUnavailable):
        importer_for(document).run(str(tmp_path / "nope.csv"), LengthUnit.METERS)
    assert document.history == []


def test_missing_column_raises_before_any_change(tmp_path):
    path = write_csv(tmp_path, "Name;Comment\nP1;x\n")
    document = InMemoryDocument()

    with pytest.raises(FormatError):
        importer_for(document).run(path, LengthUnit.METERS)
    assert document.history == []


def test_invalid_run_parameters(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation\nP1;0\n")
    importer = importer_for(InMemoryDocument())

    with pytest.raises(ValueError):
        importer.run(path, LengthUnit.UNKNOWN)
    with pytest.raises(ValueError):
        importer.run(path, LengthUnit.METERS, tolerance_mm=-1)


def test_spreadsheet_import(tmp_path):
    path = tmp_path / "levels.xlsx"
    pd.DataFrame([["Nivel", "Cota (m)"], ["P1", 0], ["P2", 3.5]]).to_excel(
        path, index=False, header=False, engine="openpyxl")
    document = InMemoryDocument()

    report = importer_for(document).run(str(path), LengthUnit.FEET)

    assert [l.name for l in report.created] == ["P1", "P2"]
    assert document.get_level("P2").elevation == pytest.approx(meters(3.5))
    assert report.source_name == "levels.xlsx"


def test_level_named_like_a_default_name_is_stable_across_runs(tmp_path):
    path = write_csv(tmp_path, "Name;Elevation\nLevel 3;6.0\n")
    document = InMemoryDocument(levels=[("Level 1", 0.0), ("Level 2", 10.0)])
    importer = importer_for(document)

    first = importer.run(path, LengthUnit.METERS)
    plan = importer.plan(path, LengthUnit.METERS)

    assert [l.name for l in first.created] == ["Level 3"]
    assert [c.kind.value for c in plan.classifications] == ["skip"]


def test_repeated_delimiters_are_imported(tmp_path):
    path = write_csv(tmp_path, "Name;;Elevation\nP1;;3.0\nP2;;;6.0\n")
    document = InMemoryDocument()

    report = importer_for(document).run(path, LengthUnit.METERS)

    assert [l.name for l in report.created] == ["P1", "P2"]
    assert report.warnings == []
