"""
Migration script to add schedule_id to the attendance table.
Attendance is recorded per lesson. Rows created before this change get
lesson 0; on PostgreSQL the default is dropped again afterwards so new
rows must name their lesson.

Usage:
    python migrations_scripts/add_attendance_schedule_id_column.py
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text

from migrations_scripts.column_utils import ensure_column, run_standalone


def upgrade(engine):
    added = ensure_column(engine, 'attendance', 'schedule_id', "schedule_id INTEGER NOT NULL DEFAULT 0")
    if added and engine.dialect.name == 'postgresql':
        with engine.begin() as conn:
            conn.execute(text("ALTER TABLE attendance ALTER COLUMN schedule_id DROP DEFAULT"))
    return added


if __name__ == '__main__':
    run_standalone(upgrade, 'attendance.schedule_id')
