#!/usr/bin/env python3
"""Create the admin account, or reset its password and role.

Lists the current users first so the operator can see who exists.

Usage:
    # From project root (with Docker running):
    docker compose exec api python scripts/reset_admin.py

    # Or directly, with custom credentials:
    ADMIN_EMAIL=ops@example.com ADMIN_PASSWORD='s3cret!' python scripts/reset_admin.py
"""

import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from marketplace.database import init_db, session_scope
from marketplace.models import User
from marketplace.services.auth import AuthService, get_user_by_email

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@frelanceme.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "Admin@123")


def reset_admin():
    """Promote or create the admin and print its credentials."""
    init_db()

    with session_scope() as session:
        print("Current users:")
        for user in session.query(User).order_by(User.id).all():
            print(f"  {user.id:>4}  {user.email:<40} {user.name or '-':<20} {user.role}")

        existed = get_user_by_email(session, ADMIN_EMAIL) is not None
        AuthService(session).reset_admin(ADMIN_EMAIL, ADMIN_PASSWORD)
        print("\nAdmin password reset!" if existed else "\nNew admin created!")

        print("\n========================================")
        print("Admin Credentials:")
        print(f"Email: {ADMIN_EMAIL}")
        print(f"Password: {ADMIN_PASSWORD}")
        print("========================================\n")


if __name__ == "__main__":
    reset_admin()
