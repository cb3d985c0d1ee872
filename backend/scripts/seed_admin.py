#!/usr/bin/env python
"""
Seed script for creating the initial admin account.
Run with: cd backend; python scripts/seed_admin.py
Requires JWT_SECRET and DATABASE_URL in .env; the account comes from
ADMIN_USERNAME, ADMIN_EMAIL and ADMIN_PASSWORD.
"""

import os
import sys

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from affinity_api.config import settings
from affinity_api.database import Database, init_db
from affinity_api.errors import AppError
from affinity_api.models.user import User
from affinity_api.services.accounts import create_account


def seed_admin(database: Database) -> bool:
    """Create the admin from settings unless some admin already exists."""
    db = database.session()
    try:
        if db.query(User).filter(User.is_admin.is_(True)).first():
            print("Admin user already exists. Skipping seed.")
            print("Use the admin panel to create further admins.")
            return False

        admin = create_account(
            db,
            settings.admin_username,
            settings.admin_email,
            settings.admin_password,
            is_admin=True,
        )
        print("Created admin user:")
        print(f"   ID: {admin.id}")
        print(f"   Username: {admin.username}")
        print(f"   Email: {admin.email}")
        print("Change this password after first login!")
        return True
    finally:
        db.close()


if __name__ == "__main__":
    database = Database(settings.database_url, pool_size=settings.database_pool_size).open()
    try:
        init_db(database)
        seed_admin(database)
    except AppError as e:
        print(f"Error seeding admin user: {e.message}")
        sys.exit(1)
    finally:
        database.close()
