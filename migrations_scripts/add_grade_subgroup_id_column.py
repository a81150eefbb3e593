"""
Migration script to add subgroup_id to the grades table.
Grades given on split lessons keep the subgroup.

Usage:
    python migrations_scripts/add_grade_subgroup_id_column.py
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from migrations_scripts.column_utils import ensure_column, run_standalone


def upgrade(engine):
    return ensure_column(engine, 'grades', 'subgroup_id', "subgroup_id INTEGER")


if __name__ == '__main__':
    run_standalone(upgrade, 'grades.subgroup_id')
