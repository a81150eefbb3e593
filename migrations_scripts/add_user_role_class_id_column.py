"""
Migration script to add class_id to the user_roles table.
Class teacher roles are bound to the class they lead.

Usage:
    python migrations_scripts/add_user_role_class_id_column.py
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from migrations_scripts.column_utils import ensure_column, run_standalone


def upgrade(engine):
    return ensure_column(engine, 'user_roles', 'class_id', "class_id INTEGER")


if __name__ == '__main__':
    run_standalone(upgrade, 'user_roles.class_id')
