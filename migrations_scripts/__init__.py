"""
Idempotent schema migrations. Each add_* module adds one missing column and
can be run on its own; run_migrations.py applies all of them in order.
"""
