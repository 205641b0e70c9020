"""
Parsers Package

Source file parsers for level tables.
"""
from .base_parser import BaseParser, ColumnMapping, detect_file_format, create_parser
from .delimited_parser import DelimitedParser, parse_delimited
from .spreadsheet_parser import SpreadsheetParser, parse_spreadsheet

__all__ = [
    'BaseParser',
    'ColumnMapping',
    'detect_file_format',
    'create_parser',
    'DelimitedParser',
    'parse_delimited',
    'SpreadsheetParser',
    'parse_spreadsheet',
]
