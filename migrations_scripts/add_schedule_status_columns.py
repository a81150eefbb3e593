"""
Migration script to add status and subgroup_id to the schedules table.

Usage:
    python migrations_scripts/add_schedule_status_columns.py
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from migrations_scripts.column_utils import ensure_column, run_standalone


def upgrade(engine):
    status_added = ensure_column(engine, 'schedules', 'status', "status TEXT DEFAULT 'not_conducted'")
    subgroup_added = ensure_column(engine, 'schedules', 'subgroup_id', "subgroup_id INTEGER")
    return status_added or subgroup_added


if __name__ == '__main__':
    run_standalone(upgrade, 'schedules.status and schedules.subgroup_id')
