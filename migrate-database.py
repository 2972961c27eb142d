"""
Database Migration Script
Adds the genre_json/cast_json snapshot columns and any missing tables
"""

import sys

from config.config import configure_logging
from movie_catalog.migrations import migrate_database
from movie_catalog.models import engine


def main():
    configure_logging("migrate")
    print("Starting database migration...\n")

    try:
        changes = migrate_database(engine)
    except Exception as e:
        print(f"\n✗ Error during migration: {e}")
        return False

    for change in changes:
        print(f"   ✓ {change}")
    if not changes:
        print("   ✓ Schema already up to date")

    print("\n" + "=" * 60)
    print("✓ Migration completed successfully!")
    print("=" * 60)
    print("\nYou can now restart the app:")
    print("  python -m movie_catalog.app")
    return True


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
