"""
Tests for the level table parsers.
"""
import types

import pandas as pd
import pytest

from level_importer.config.settings import LengthUnit, SourceFormat
from level_importer.engine.errors import SourceUnavailable, FormatError
from level_importer.parsers import (
    ColumnMapping,
    DelimitedParser,
    SpreadsheetParser,
    create_parser,
    detect_file_format,
    parse_delimited,
    parse_spreadsheet,
)
from level_importer.parsers.base_parser import normalize_header


def write_text(tmp_path, content, name="levels.csv", encoding="utf-8"):
    path = tmp_path / name
    path.write_bytes(content.encode(encoding))
    return str(path)


def write_workbook(tmp_path, rows, name="levels.xlsx"):
    path = tmp_path / name
    pd.DataFrame(rows).to_excel(path, index=False, header=False, engine="openpyxl")
    return str(path)


def test_semicolon_file_with_header_unit(tmp_path):
    path = write_text(tmp_path, "Nombre;Elevacion (m)\nP1;0.00\nP2;3,50\n")
    parser = DelimitedParser()

    rows = list(parser.parse(path))

    assert parser.delimiter == ';'
    assert parser.header_unit == LengthUnit.METERS
    assert [(r.source_line, r.raw_name, r.raw_elevation_text) for r in rows] == [
        (2, "P1", "0.00"),
        (3, "P2", "3,50"),
    ]
    assert all(r.unit_hint == LengthUnit.UNKNOWN for r in rows)


def test_comma_delimiter_detected(tmp_path):
    path = write_text(tmp_path, "name,elevation [ft]\nRoof,42.5\n")
    parser = DelimitedParser()

    rows = list(parser.parse(path))

    assert parser.delimiter == ','
    assert parser.header_unit == LengthUnit.FEET
    assert rows[0].raw_name == "Roof"
    assert rows[0].raw_elevation_text == "42.5"


def test_blank_lines_and_trailing_delimiters_are_tolerated(tmp_path):
    content = "\n\n  \nName;Elevation;;\n\nP1;1.0;;\n;;;\n   \nP2;2.0\n"
    path = write_text(tmp_path, content)

    rows = parse_delimited(path)

    assert [(r.source_line, r.raw_name) for r in rows] == [(6, "P1"), (9, "P2")]


def test_short_row_gives_empty_elevation(tmp_path):
    path = write_text(tmp_path, "Name;Elevation\nP1\n;4.0\n")

    rows = parse_delimited(path)

    assert rows[0].raw_name == "P1"
    assert rows[0].raw_elevation_text == ""
    assert rows[1].raw_name == ""
    assert rows[1].raw_elevation_text == "4.0"


def test_row_unit_suffix_is_split_from_value(tmp_path):
    path = write_text(tmp_path, "Level;Elevation (m)\nA;3500 mm\nB;10'\nC;2.5m\nD;7\n")

    rows = parse_delimited(path)

    assert [(r.raw_elevation_text, r.unit_hint) for r in rows] == [
        ("3500", LengthUnit.MILLIMETERS),
        ("10", LengthUnit.FEET),
        ("2.5", LengthUnit.METERS),
        ("7", LengthUnit.UNKNOWN),
    ]


def test_unit_column_overrides_suffix(tmp_path):
    path = write_text(tmp_path, "Name;Elevation;Unit\nA;1200;mm\nB;3 m;ft\nC;4;\n")

    rows = parse_delimited(path)

    assert [r.unit_hint for r in rows] == [LengthUnit.MILLIMETERS, LengthUnit.FEET, LengthUnit.UNKNOWN]
    assert rows[1].raw_elevation_text == "3"


def test_level_elevation_header_is_not_taken_as_name(tmp_path):
    path = write_text(tmp_path, "Level Elevation;Level Name\n3.0;P1\n")

    rows = parse_delimited(path)

    assert rows[0].raw_name == "P1"
    assert rows[0].raw_elevation_text == "3.0"


def test_accented_headers_are_recognized(tmp_path):
    path = write_text(tmp_path, "Nombre;Elevación (mm)\nSótano;-3200\n", encoding="cp1252")
    parser = DelimitedParser()

    rows = list(parser.parse(path))

    assert parser.header_unit == LengthUnit.MILLIMETERS
    assert rows[0].raw_name == "Sótano"


def test_explicit_column_mapping(tmp_path):
    path = write_text(tmp_path, "id;label;z_value\n1;P1;0\n2;P2;3\n")

    rows = parse_delimited(path, ColumnMapping(name="label", elevation=2))

    assert [(r.raw_name, r.raw_elevation_text) for r in rows] == [("P1", "0"), ("P2", "3")]


def test_missing_elevation_column_raises_format_error(tmp_path):
    path = write_text(tmp_path, "Name;Comment\nP1;ground floor\n")

    with pytest.raises(FormatError):
        DelimitedParser().parse(path)


def test_missing_name_column_raises_format_error(tmp_path):
    path = write_text(tmp_path, "Elevation;Comment\n0.0;ground\n")

    with pytest.raises(FormatError):
        DelimitedParser().parse(path)


def test_mapping_to_unknown_header_raises_format_error(tmp_path):
    path = write_text(tmp_path, "Name;Elevation\nP1;0\n")

    with pytest.raises(FormatError):
        DelimitedParser(column_mapping=ColumnMapping(name="Nivel")).parse(path)


def test_empty_file_raises_format_error(tmp_path):
    path = write_text(tmp_path, "\n   \n")

    with pytest.raises(FormatError):
        DelimitedParser().parse(path)


def test_missing_file_raises_source_unavailable(tmp_path):
    with pytest.raises(SourceUnavailable):
        DelimitedParser().parse(str(tmp_path / "missing.csv"))


def test_parse_is_lazy(tmp_path):
    path = write_text(tmp_path, "Name;Elevation\nP1;0\n")

    rows = DelimitedParser().parse(path)

    assert isinstance(rows, types.GeneratorType)
    assert next(rows).raw_name == "P1"


def test_parse_to_dataframe(tmp_path):
    path = write_text(tmp_path, "Name;Elevation\nP1;0\nP2;3 m\n")

    df = DelimitedParser().parse_to_dataframe(path)

    assert list(df.columns) == ['SourceLine', 'Name', 'Elevation', 'UnitHint']
    assert df['Name'].tolist() == ["P1", "P2"]
    assert df['UnitHint'].tolist() == ["unknown", "m"]


def test_spreadsheet_reads_columns_a_and_b(tmp_path):
    path = write_workbook(tmp_path, [
        ["Nombre", "Elevacion (m)"],
        ["P1", 0.0],
        ["P2", 3.5],
        [1, "7,25"],
    ])
    parser = SpreadsheetParser()

    rows = list(parser.parse(path))

    assert parser.header_unit == LengthUnit.METERS
    assert [(r.source_line, r.raw_name, r.raw_elevation_text) for r in rows] == [
        (2, "P1", "0"),
        (3, "P2", "3.5"),
        (4, "1", "7,25"),
    ]


def test_spreadsheet_skips_half_empty_rows_and_stops_at_empty_row(tmp_path):
    path = write_workbook(tmp_path, [
        ["Name", "Elevation"],
        ["P1", 1.0],
        [None, 2.0],
        ["P3", None],
        ["P4", 4.0],
        [None, None],
        ["After", 9.0],
    ])
    parser = SpreadsheetParser()

    rows = list(parser.parse(path))

    assert [r.raw_name for r in rows] == ["P1", "P4"]
    assert len(parser.warnings) == 2
    assert parser.warnings[0].startswith("Row 3:")


def test_spreadsheet_missing_file(tmp_path):
    with pytest.raises(SourceUnavailable):
        parse_spreadsheet(str(tmp_path / "missing.xlsx"))


def test_spreadsheet_corrupt_file(tmp_path):
    path = tmp_path / "broken.xlsx"
    path.write_text("not a workbook")

    with pytest.raises(SourceUnavailable):
        parse_spreadsheet(str(path))


def test_format_detection_and_factory(tmp_path):
    assert detect_file_format("levels.xlsx") == SourceFormat.SPREADSHEET
    assert detect_file_format("LEVELS.XLSM") == SourceFormat.SPREADSHEET
    assert detect_file_format("levels.csv") == SourceFormat.DELIMITED_TEXT
    assert detect_file_format("levels.txt") == SourceFormat.DELIMITED_TEXT

    assert isinstance(create_parser("a.xlsx"), SpreadsheetParser)
    assert isinstance(create_parser("a.csv"), DelimitedParser)


def test_normalize_header():
    assert normalize_header("Elevación (m)") == "elevacion"
    assert normalize_header("  Level_Name ") == "level name"
    assert normalize_header("Cota [mm]") == "cota"


def test_repeated_delimiters_inside_a_row_count_as_one(tmp_path):
    path = write_text(tmp_path, "Name;;Elevation\nP1;;3.0\nP2;;;6.0\n;;5\n")

    rows = parse_delimited(path)

    assert [(r.raw_name, r.raw_elevation_text) for r in rows] == [
        ("P1", "3.0"),
        ("P2", "6.0"),
        ("", "5"),
    ]
