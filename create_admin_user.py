#!/usr/bin/env python
"""
Bootstrap the first admin account.

    python create_admin_user.py --email admin@example.com --password secret --name Admin
"""
import argparse

from core.database import SessionLocal, init_db
from core.logging_config import configure_logging
from services.user_service import UserService


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the admin account if it does not exist")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args(argv)

    configure_logging()
    init_db()
    db = SessionLocal()
    try:
        user, created = UserService(db).ensure_admin(args.name, args.email, args.password)
    finally:
        db.close()
    print(f"{'Created' if created else 'Already exists'}: {user.email} (id={user.id}, role={user.role.value})")


if __name__ == "__main__":
    main()
