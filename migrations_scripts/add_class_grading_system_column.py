"""
Migration script to add grading_system to the classes table.
Existing classes keep the five-point system.

Usage:
    python migrations_scripts/add_class_grading_system_column.py
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from migrations_scripts.column_utils import ensure_column, run_standalone


def upgrade(engine):
    return ensure_column(engine, 'classes', 'grading_system', "grading_system TEXT NOT NULL DEFAULT 'five_point'")


if __name__ == '__main__':
    run_standalone(upgrade, 'classes.grading_system')
