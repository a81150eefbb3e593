"""
Migration script to add planned_for to the assignments table.
Marks assignments planned for a lesson that has not been conducted yet.

Usage:
    python migrations_scripts/add_assignment_planned_for_column.py
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from migrations_scripts.column_utils import ensure_column, run_standalone


def upgrade(engine):
    return ensure_column(engine, 'assignments', 'planned_for', "planned_for BOOLEAN DEFAULT FALSE")


if __name__ == '__main__':
    run_standalone(upgrade, 'assignments.planned_for')
