"""
Database cleanup script for clearing records after experiments.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add the parent directory to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
# set working directory to the project root (parent directory of this script directory)
os.chdir(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sqlalchemy import delete, or_
from sqlalchemy.exc import SQLAlchemyError

from db_config import AsyncSessionLocal
from models.models import (
    User, Smell, Favorite, Progress, UserPreferences, UserActivity, Setting
)

# Children first so the script also works where foreign keys are not enforced
ALL_TABLES = [Favorite, Progress, UserActivity, UserPreferences, Setting, Smell, User]
USER_DATA_TABLES = [Favorite, Progress, UserActivity, UserPreferences]


def confirm(prompt: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    response = input(f"⚠️  {prompt} (yes/no): ")
    if response.lower() != "yes":
        print("❌ Operation cancelled.")
        return False
    return True


async def clear_tables(session, models) -> bool:
    try:
        for model in models:
            result = await session.execute(delete(model))
            print(f"   ✅ Cleared {model.__tablename__}: {result.rowcount} records deleted")
        await session.commit()
        return True
    except SQLAlchemyError as e:
        await session.rollback()
        print(f"\n❌ Error clearing database: {str(e)}")
        return False


async def clear_test_users(session) -> bool:
    """Delete users whose email or name looks like a test account; their rows cascade."""
    try:
        result = await session.execute(
            delete(User).where(or_(User.email.like("%test%@%"), User.name.like("%test%")))
        )
        await session.commit()
        print(f"   ✅ Deleted {result.rowcount} test users")
        return True
    except SQLAlchemyError as e:
        await session.rollback()
        print(f"\n❌ Error clearing test users: {str(e)}")
        return False


def clear_all_logs():
    """Clear all logs from the logs directory."""
    print("🗑️  Clearing all logs...")
    logs_dir = Path("logs")
    if not logs_dir.is_dir():
        print(f"   ℹ️  Logs directory not found or not a directory: {logs_dir}")
        return
    for file in logs_dir.iterdir():
        if file.is_file():
            try:
                file.unlink()
                print(f"   ✅ Deleted {file.name}")
            except OSError as e:
                print(f"   ⚠️  Error deleting {file.name}: {str(e)}")


async def run(args) -> None:
    async with AsyncSessionLocal() as session:
        if args.all and confirm("This will DELETE ALL DATA from the database. Are you sure?", args.yes):
            print("🗑️  Clearing all database tables...")
            await clear_tables(session, ALL_TABLES)
        elif args.user_data and confirm("This will DELETE ALL USER DATA but keep users and smells. Continue?", args.yes):
            print("🗑️  Clearing user data only...")
            await clear_tables(session, USER_DATA_TABLES)
        elif args.test_users and confirm("This will DELETE TEST USERS and their data. Continue?", args.yes):
            print("🗑️  Clearing test users...")
            await clear_test_users(session)


def main():
    parser = argparse.ArgumentParser(description="Database cleanup utility")
    parser.add_argument("--all", action="store_true", help="Clear all data from the database")
    parser.add_argument(
        "--user-data",
        action="store_true",
        help="Clear favorites, progress, preferences and activity (keeps users and smells)",
    )
    parser.add_argument("--test-users", action="store_true", help="Clear test users and their data")
    parser.add_argument("--logs", action="store_true", help="Clear all logs from the logs directory")
    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Auto-confirm dangerous operations (use with caution!)",
    )
    args = parser.parse_args()

    if not any([args.all, args.user_data, args.test_users, args.logs]):
        print("🧹 Database Cleanup Utility")
        print("=" * 27)
        parser.print_help()
        print("\n📋 Tables in Database (from models.py):")
        for i, model in enumerate(ALL_TABLES, 1):
            print(f"   {i:2d}. {model.__tablename__}")
        print("\nExample: python scripts/clear_db.py --test-users --yes")
        return

    asyncio.run(run(args))
    if args.logs:
        clear_all_logs()
    print("\n🎉 Cleanup completed!")


if __name__ == "__main__":
    main()
