#!/usr/bin/env python3
"""
Seed Script

Loads sample universities and (optionally) a first admin account.
Usage: python scripts/seed_database.py --admin-email admin@example.com --admin-password 'secret123'
"""
import argparse
import sys

from app.core.config import get_settings
from app.core.log import configure_logging
from app.db.mongodb import create_mongo_client, init_mongo_indexes
from app.services.seed_service import seed_database


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the university platform database")
    parser.add_argument("--admin-email", help="create an admin user with this email")
    parser.add_argument("--admin-password", help="password for the admin user (min 8 characters)")
    parser.add_argument("--admin-name", default="Administrator")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)

    client = create_mongo_client(settings)
    try:
        db = client[settings.mongodb_db]
        init_mongo_indexes(db)
        result = seed_database(db, args.admin_email, args.admin_password, args.admin_name)
    finally:
        client.close()

    print(f"Universities inserted: {result['universities']}")
    print(f"Admin created: {'yes' if result['admin'] else 'no'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
