"""
Startup schema fix: adds columns that older databases are missing.
Prefer Flask-Migrate for new schema changes; this only brings existing
deployments up to the current model.
Usage: set RUN_SCHEMA_FIX=1 to run on app startup, or call from a script.
"""

from extensions import db


def run_schema_fix(app):
    """Apply the column migrations inside the current app context."""
    from migrations_scripts.run_migrations import apply_all

    app.logger.info("Running database schema fix...")
    try:
        applied = apply_all(db.engine)
    except Exception:
        app.logger.exception("Database schema fix failed")
        raise

    if applied:
        app.logger.info(f"Database schema fix applied: {', '.join(applied)}")
    else:
        app.logger.info("Database schema fix: nothing to do")
    return applied
