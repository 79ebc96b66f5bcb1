#!/usr/bin/env python3
"""
Database initialization script
Creates every table the service needs
"""
import sys

from otp_recovery.core.database import Base, init_database


def create_tables():
    """Create all database tables"""
    try:
        created = init_database()
        print("Tables created:" if created else "All tables already exist")
        for table_name in created:
            print(f"  - {table_name}")
        print(f"Known tables: {', '.join(Base.metadata.tables.keys())}")

    except Exception as e:
        print(f"Failed to create tables: {e}")
        sys.exit(1)


if __name__ == "__main__":
    create_tables()
