#!/usr/bin/env python3
"""
Create the first super administrator.

Usage:
    python create_super_admin.py <username> [email] [first_name] [last_name]

The password is prompted for and never passed on the command line.
Nothing is changed when the username already exists.
"""

import os
import sys
import getpass

# Add the current directory to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from werkzeug.security import generate_password_hash

from app import create_app
from extensions import db
from models import User, UserRoleEnum


def create_super_admin(username, password, email, first_name='Super', last_name='Admin'):
    """Create a super admin; returns the user, or None when the username is taken."""
    if User.query.filter_by(username=username).first():
        return None

    user = User(
        username=username,
        password_hash=generate_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        email=email,
        role=UserRoleEnum.SUPER_ADMIN,
    )
    db.session.add(user)
    db.session.commit()
    return user


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    username = sys.argv[1]
    email = sys.argv[2] if len(sys.argv) > 2 else f"{username}@example.com"
    first_name = sys.argv[3] if len(sys.argv) > 3 else 'Super'
    last_name = sys.argv[4] if len(sys.argv) > 4 else 'Admin'

    password = getpass.getpass("Password: ")
    if not password or password != getpass.getpass("Repeat password: "):
        print("Passwords are empty or do not match.")
        sys.exit(1)

    app = create_app()
    with app.app_context():
        try:
            user = create_super_admin(username, password, email, first_name, last_name)
        except Exception as e:
            db.session.rollback()
            print(f"Error creating super admin: {e}")
            raise

    if user is None:
        print(f"User '{username}' already exists.")
    else:
        print(f"Super admin '{username}' created successfully.")


if __name__ == '__main__':
    main()
