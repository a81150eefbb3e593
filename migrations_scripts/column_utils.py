"""
Helpers shared by the column migrations.
"""

import logging

from sqlalchemy import inspect, text

logger = logging.getLogger(__name__)


def column_names(engine, table):
    return [col['name'] for col in inspect(engine).get_columns(table)]


def ensure_column(engine, table, column, ddl):
    """
    Add `column` to `table` with `ALTER TABLE <table> ADD COLUMN <ddl>`
    unless it is already there. Missing tables are reported and skipped.

    Returns True when the column was added.
    """
    if not inspect(engine).has_table(table):
        logger.warning(f"Table {table} does not exist, skipping {column}")
        return False

    if column in column_names(engine, table):
        logger.info(f"{column} column already exists in {table} table")
        return False

    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {ddl}"))
    logger.info(f"Added {column} column to {table} table")
    return True


def run_standalone(upgrade, description):
    """Run one migration's `upgrade(engine)` inside an application context."""
    from app import create_app
    from extensions import db

    app = create_app()
    with app.app_context():
        try:
            print(f"Checking {description}...")
            added = upgrade(db.engine)
            if added:
                print(f"[OK] Added {description}")
            else:
                print(f"[OK] {description} already present")
        except Exception as e:
            print(f"\n[ERROR] Error during migration: {e}")
            raise
