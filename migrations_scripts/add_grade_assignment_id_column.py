"""
Migration script to add assignment_id to the grades table.
Links a grade to the assignment it scores.

Usage:
    python migrations_scripts/add_grade_assignment_id_column.py
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from migrations_scripts.column_utils import ensure_column, run_standalone


def upgrade(engine):
    return ensure_column(engine, 'grades', 'assignment_id', "assignment_id INTEGER")


if __name__ == '__main__':
    run_standalone(upgrade, 'grades.assignment_id')
