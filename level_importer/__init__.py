"""
Level Importer
==============
Reconciles a table of named elevation levels with the levels of a document.

Supports:
- Delimited text (';' or ',' separated)
- Excel workbooks (.xlsx)

Features:
- Unit annotations per row or per header, with a run default
- Validation and deduplication of input rows
- Tolerance-based matching against existing levels
- All-or-nothing apply with floor plan creation for new levels
- Plain text and CSV reports
"""

__version__ = "1.0.0"
__author__ = "Level Importer"

from .config.models import Level, RunReport
from .config.settings import Settings, LengthUnit
from .engine.importer import LevelImporter, run_import
