"""
Apply every column migration in order. Each one is a no-op when its
column already exists, so this is safe to run on every deploy.

Usage:
    python migrations_scripts/run_migrations.py
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from migrations_scripts import (
    add_schedule_date_column,
    add_grade_schedule_id_column,
    add_user_role_class_id_column,
    add_grade_subgroup_id_column,
    add_class_grading_system_column,
    add_grade_assignment_id_column,
    add_attendance_schedule_id_column,
    add_schedule_status_columns,
    add_assignment_planned_for_column,
)

MIGRATIONS = [
    add_schedule_date_column,
    add_grade_schedule_id_column,
    add_user_role_class_id_column,
    add_grade_subgroup_id_column,
    add_class_grading_system_column,
    add_grade_assignment_id_column,
    add_attendance_schedule_id_column,
    add_schedule_status_columns,
    add_assignment_planned_for_column,
]


def apply_all(engine):
    """Run every migration against `engine`; returns the names of those that changed the schema."""
    applied = []
    for migration in MIGRATIONS:
        name = migration.__name__.rsplit('.', 1)[-1]
        if migration.upgrade(engine):
            applied.append(name)
    return applied


def run_migrations():
    from app import create_app
    from extensions import db

    app = create_app()
    with app.app_context():
        try:
            applied = apply_all(db.engine)
        except Exception as e:
            print(f"\n[ERROR] Error during migration: {e}")
            raise

    if applied:
        for name in applied:
            print(f"[OK] {name}")
        print(f"\n[OK] Applied {len(applied)} migration(s)")
    else:
        print("[OK] Database schema is up to date")


if __name__ == '__main__':
    run_migrations()
