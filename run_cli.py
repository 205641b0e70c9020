#!/usr/bin/env python3
"""
Launch the Level Importer CLI
Usage:
    python run_cli.py parse levels.csv
    python run_cli.py plan levels.csv -d building.json -u m
    python run_cli.py import levels.xlsx -d building.json -u m --report import.txt
"""
import sys
import os

# Add the package to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from level_importer.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
