#!/usr/bin/env python3
"""
Database setup script for chatgate.

Uses SQLAlchemy models as the SINGLE SOURCE OF TRUTH for schema.
All tables, indexes, and constraints are defined in chatgate/db/models.py.

Usage:
    python scripts/db_setup.py setup      # Create all tables (+ cleanup function on PostgreSQL)
    python scripts/db_setup.py teardown   # Drop all tables (with confirmation)
    python scripts/db_setup.py reset      # Teardown + setup (full reset)
    python scripts/db_setup.py status     # Show current database state

Environment variables (from .env):
    - DATABASE_URL: SQLAlchemy async URL (postgresql+asyncpg://... or sqlite+aiosqlite:///...)
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from sqlalchemy import inspect, text

from chatgate.constants import ADMIN_CLEANUP_FUNCTION
from chatgate.db.connection import DatabaseManager
from chatgate.db.models import Base


# Deletes expired or revoked admin sessions and returns the number removed.
CLEANUP_FUNCTION_SQL = f"""
CREATE OR REPLACE FUNCTION {ADMIN_CLEANUP_FUNCTION}()
RETURNS integer
LANGUAGE plpgsql
AS $$
DECLARE
    removed integer;
BEGIN
    DELETE FROM admin_sessions
    WHERE expires_at < (now() AT TIME ZONE 'utc')
       OR revoked_at IS NOT NULL;
    GET DIAGNOSTICS removed = ROW_COUNT;
    RETURN removed;
END;
$$;
"""


# =============================================================================
# DATABASE OPERATIONS
# =============================================================================

async def install_cleanup_function(manager: DatabaseManager) -> None:
    """Install the admin session cleanup function (PostgreSQL only)."""
    engine = await manager.get_engine_async()
    if engine.dialect.name != "postgresql":
        logger.info(
            f"Skipping {ADMIN_CLEANUP_FUNCTION}() on {engine.dialect.name}; "
            "cleanup will use the manual delete"
        )
        return

    async with engine.begin() as conn:
        await conn.execute(text(CLEANUP_FUNCTION_SQL))
    logger.info(f"Installed function {ADMIN_CLEANUP_FUNCTION}()")


async def drop_cleanup_function(manager: DatabaseManager) -> None:
    engine = await manager.get_engine_async()
    if engine.dialect.name != "postgresql":
        return
    async with engine.begin() as conn:
        await conn.execute(text(f"DROP FUNCTION IF EXISTS {ADMIN_CLEANUP_FUNCTION}()"))
    logger.info(f"Dropped function {ADMIN_CLEANUP_FUNCTION}()")


def _confirm(prompt: str) -> bool:
    return input(f"{prompt} (yes/no): ").lower() == "yes"


# =============================================================================
# CLI COMMANDS
# =============================================================================

async def cmd_setup(manager: DatabaseManager):
    """Setup command: Create tables and the cleanup function."""
    logger.info("=" * 60)
    logger.info("Database Setup")
    logger.info("=" * 60)

    await manager.create_tables()
    logger.info(f"Tables: {', '.join(sorted(Base.metadata.tables.keys()))}")
    await install_cleanup_function(manager)

    logger.info("Setup completed successfully!")


async def cmd_teardown(manager: DatabaseManager, force: bool = False):
    """Teardown command: Drop all tables."""
    logger.info("=" * 60)
    logger.info("Database Teardown")
    logger.info("=" * 60)

    if not force and not _confirm("Are you sure you want to DROP all tables? This cannot be undone."):
        logger.info("Operation cancelled")
        return

    await drop_cleanup_function(manager)
    await manager.drop_tables()

    logger.info("Teardown completed successfully!")


async def cmd_reset(manager: DatabaseManager, force: bool = False):
    """Reset command: Teardown + Setup."""
    if not force and not _confirm("Are you sure you want to RESET the database? All data will be lost."):
        logger.info("Operation cancelled")
        return

    try:
        await cmd_teardown(manager, force=True)
    except Exception as e:
        logger.warning(f"Teardown error (may be expected if tables don't exist): {e}")

    await cmd_setup(manager)


async def cmd_status(manager: DatabaseManager):
    """Status command: Show current database state."""
    logger.info("=" * 60)
    logger.info("Database Status")
    logger.info("=" * 60)

    if not await manager.test_connection():
        logger.error("Cannot connect to the database")
        return

    engine = await manager.get_engine_async()
    async with engine.connect() as conn:
        existing = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))

        logger.info(f"Tables ({len(existing)}):")
        for table_name in sorted(existing):
            count = (await conn.execute(text(f'SELECT COUNT(*) FROM "{table_name}"'))).scalar()
            logger.info(f"  - {table_name}: {count} rows")

        expected = set(Base.metadata.tables.keys())
        missing = expected - existing
        if missing:
            logger.info(f"Missing tables (defined in models but not in DB): {', '.join(sorted(missing))}")

        if engine.dialect.name == "postgresql":
            found = (
                await conn.execute(
                    text("SELECT 1 FROM pg_proc WHERE proname = :name"),
                    {"name": ADMIN_CLEANUP_FUNCTION},
                )
            ).scalar()
            state = "installed" if found else "NOT installed"
            logger.info(f"Function {ADMIN_CLEANUP_FUNCTION}(): {state}")


async def run(command: str, force: bool) -> None:
    manager = DatabaseManager()
    logger.info(f"Target database: {manager.config.safe_url}")
    try:
        if command == "setup":
            await cmd_setup(manager)
        elif command == "teardown":
            await cmd_teardown(manager, force=force)
        elif command == "reset":
            await cmd_reset(manager, force=force)
        elif command == "status":
            await cmd_status(manager)
    finally:
        await manager.close_all()


def main():
    parser = argparse.ArgumentParser(
        description="Database setup script for chatgate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/db_setup.py setup              # Create all tables
  python scripts/db_setup.py status             # Show database state
  python scripts/db_setup.py teardown --force   # Drop tables without confirmation
  python scripts/db_setup.py reset --force      # Reset database

Schema is defined in: chatgate/db/models.py (SINGLE SOURCE OF TRUTH)
        """
    )

    parser.add_argument(
        "command",
        choices=["setup", "teardown", "reset", "status"],
        help="Command to execute"
    )
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Skip confirmation prompts for destructive operations"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    asyncio.run(run(args.command, args.force))


if __name__ == "__main__":
    main()
