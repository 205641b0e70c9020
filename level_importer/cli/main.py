"""
Level Importer - Main Entry Point

Command-line interface for importing level tables into a JSON document.
"""
import argparse
import locale
import logging
import sys
from pathlib import Path
from typing import Optional

from ..config.settings import LengthUnit, Settings, get_settings
from ..config.settings_manager import SettingsManager, get_settings_manager
from ..document.json_document import JsonDocument
from ..engine.errors import LevelImportError
from ..engine.importer import LevelImporter, ImportPlan
from ..engine.matcher import tally
from ..engine.units import from_canonical
from ..exporters import export_report_text, export_report_csv
from ..parsers.base_parser import ColumnMapping, create_parser


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

UNIT_CHOICES = {
    'mm': LengthUnit.MILLIMETERS,
    'm': LengthUnit.METERS,
    'ft': LengthUnit.FEET,
}


def _column_ref(value: Optional[str]):
    """Column given on the command line: digits are a 0-based index, anything else a header."""
    if value is None:
        return None
    return int(value) if value.isdigit() else value


def column_mapping_from_args(args) -> ColumnMapping:
    return ColumnMapping(
        name=_column_ref(args.name_column),
        elevation=_column_ref(args.elevation_column),
        unit=_column_ref(args.unit_column),
    )


def print_plan(plan: ImportPlan):
    """Print the classification of every row."""
    unit = plan.unit
    print("\n" + "=" * 80)
    print(f"IMPORT PLAN - {plan.source_name} (default unit: {unit.label})")
    print("=" * 80)

    print(f"\n{'Row':>5}  {'Name':<24}{'Elevation':>12}  {'Action':<14}{'Existing':<20}")
    print("-" * 80)

    for c in plan.classifications:
        elevation = from_canonical(c.row.elevation, unit)
        existing = c.entity.name if c.entity is not None else ""
        print(
            f"{c.row.source_line:>5}  "
            f"{c.row.name:<24}"
            f"{elevation:>12.3f}  "
            f"{c.kind.value:<14}"
            f"{existing:<20}"
        )

    print("-" * 80)
    counts = tally(plan.classifications)
    print(", ".join(f"{kind.value}: {count}" for kind, count in counts.items()))

    if plan.warnings:
        print("\nWarnings:")
        for warning in plan.warnings:
            print(f"  • {warning}")


def cmd_parse(args) -> int:
    parser = create_parser(args.file, column_mapping_from_args(args))
    df = parser.parse_to_dataframe(args.file)

    print(f"\nFile: {Path(args.file).name}")
    print(f"Header unit: {parser.header_unit.label}")
    print(f"Rows: {len(df)}\n")
    if not df.empty:
        print(df.to_string(index=False))
    for warning in parser.warnings:
        print(f"  • {warning}")
    return 0


def cmd_plan(args) -> int:
    document = JsonDocument.load(args.document)
    importer = LevelImporter(document)
    plan = importer.plan(
        args.file,
        default_unit=UNIT_CHOICES.get(args.unit),
        tolerance_mm=args.tolerance_mm,
        column_mapping=column_mapping_from_args(args)
    )
    if plan.is_empty:
        print("No valid rows were found in the file.")
        for warning in plan.warnings:
            print(f"  • {warning}")
        return 0
    print_plan(plan)
    return 0


def cmd_import(args) -> int:
    document = JsonDocument.load(args.document)
    importer = LevelImporter(document)
    report = importer.run(
        args.file,
        default_unit=UNIT_CHOICES.get(args.unit),
        tolerance_mm=args.tolerance_mm,
        column_mapping=column_mapping_from_args(args),
        dry_run=args.dry_run
    )

    print()
    print(report.to_text())

    if not report.cancelled and not args.dry_run:
        document.save()

    if args.report:
        export_report_text(args.report, report)
    if args.csv:
        export_report_csv(args.csv, report)
    return 0


def cmd_settings(args) -> int:
    manager = SettingsManager(Path(args.settings_file)) if args.settings_file else get_settings_manager()

    if args.action == 'reset':
        return 0 if manager.reset_to_defaults() else 1

    if args.action == 'set':
        params = {}
        if args.unit:
            params['default_unit'] = args.unit
        if args.tolerance_mm is not None:
            if args.tolerance_mm < 0:
                logger.error("Tolerance must be >= 0")
                return 1
            params['tolerance_mm'] = args.tolerance_mm
        if args.view_scale is not None:
            params['view_scale'] = args.view_scale
        if args.view_template:
            params['view_name_template'] = args.view_template
        if not params:
            logger.error("Nothing to set")
            return 1
        return 0 if manager.save_import_parameters(params) else 1

    info = manager.get_settings_info()
    settings = manager.apply_to(Settings())
    print(f"\nSettings file: {info['settings_file']} ({'found' if info['file_exists'] else 'not found'})")
    print(f"Default unit: {settings.importing.default_unit.label}")
    print(f"Tolerance: {settings.importing.tolerance_mm} mm")
    print(f"View scale: 1:{settings.views.scale}")
    print(f"View name template: {settings.views.name_template}")
    return 0


def _add_source_arguments(subparser):
    subparser.add_argument('file', help='Level table (.csv, .txt or .xlsx)')
    subparser.add_argument('--name-column', help='Name column header or 0-based index')
    subparser.add_argument('--elevation-column', help='Elevation column header or 0-based index')
    subparser.add_argument('--unit-column', help='Unit column header or 0-based index')


def _add_run_arguments(subparser):
    subparser.add_argument('-d', '--document', required=True, help='JSON document file')
    subparser.add_argument('-u', '--unit', choices=sorted(UNIT_CHOICES), help='Default unit of the elevations')
    subparser.add_argument('-t', '--tolerance-mm', type=float, help='Elevation tolerance in millimeters')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='level-importer',
        description="Level table importer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show the rows read from a file
  level-importer parse levels.csv

  # Show what an import would do
  level-importer plan levels.csv -d building.json -u m

  # Import and write a report
  level-importer import levels.xlsx -d building.json -u m --report import.txt
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Parse command
    parse_parser = subparsers.add_parser('parse', help='Show the rows read from a level table')
    _add_source_arguments(parse_parser)

    # Plan command
    plan_parser = subparsers.add_parser('plan', help='Classify rows without changing the document')
    _add_source_arguments(plan_parser)
    _add_run_arguments(plan_parser)

    # Import command
    import_parser = subparsers.add_parser('import', help='Import a level table into a document')
    _add_source_arguments(import_parser)
    _add_run_arguments(import_parser)
    import_parser.add_argument('--dry-run', action='store_true', help='Do not change the document')
    import_parser.add_argument('--report', help='Write the text report to this file')
    import_parser.add_argument('--csv', help='Write the touched levels to this CSV file')

    # Settings command
    settings_parser = subparsers.add_parser('settings', help='Show or change persisted settings')
    settings_parser.add_argument('action', choices=['show', 'set', 'reset'], nargs='?', default='show')
    settings_parser.add_argument('--settings-file', help='Settings file (defaults to ~/.level_importer/settings.json)')
    settings_parser.add_argument('-u', '--unit', choices=sorted(UNIT_CHOICES), help='Default unit')
    settings_parser.add_argument('-t', '--tolerance-mm', type=float, help='Tolerance in millimeters')
    settings_parser.add_argument('--view-scale', type=int, help='Floor plan scale')
    settings_parser.add_argument('--view-template', help="View name template containing '{level}'")

    return parser


COMMANDS = {
    'parse': cmd_parse,
    'plan': cmd_plan,
    'import': cmd_import,
    'settings': cmd_settings,
}


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Elevations may be written with the user's decimal separator
    try:
        locale.setlocale(locale.LC_NUMERIC, '')
    except locale.Error as e:
        logger.warning(f"Could not apply the user locale, using the default: {e}")

    if args.command is None:
        parser.print_help()
        return 1

    if args.command != 'settings':
        get_settings_manager().apply_to(get_settings())

    try:
        return COMMANDS[args.command](args)
    except LevelImportError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 1


if __name__ == '__main__':
    sys.exit(main())
