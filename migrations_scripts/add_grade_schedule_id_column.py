"""
Migration script to add schedule_id to the grades table.
Links a grade to the lesson it was given on.

Usage:
    python migrations_scripts/add_grade_schedule_id_column.py
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from migrations_scripts.column_utils import ensure_column, run_standalone


def upgrade(engine):
    return ensure_column(engine, 'grades', 'schedule_id', "schedule_id INTEGER")


if __name__ == '__main__':
    run_standalone(upgrade, 'grades.schedule_id')
