"""
Migration script to add schedule_date to the schedules table.
Lessons can be bound to a calendar date in addition to their weekday.

Usage:
    python migrations_scripts/add_schedule_date_column.py
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from migrations_scripts.column_utils import ensure_column, run_standalone


def upgrade(engine):
    return ensure_column(engine, 'schedules', 'schedule_date', "schedule_date DATE")


if __name__ == '__main__':
    run_standalone(upgrade, 'schedules.schedule_date')
