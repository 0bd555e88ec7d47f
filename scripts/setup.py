#!/usr/bin/env python3
"""Setup script for the flight bookings API."""

import asyncio
import logging
import sys
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config
from flight_bookings.core.database import close_db, engine
from flight_bookings.core.config import settings
from sqlalchemy import text

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def check_database():
    """Fail fast when the configured database cannot be reached."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await close_db()


def run_migrations():
    """Bring the bookings schema up to the latest revision."""
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


def main():
    """Main setup function."""
    logger.info("Starting flight bookings API setup...")
    logger.info(f"Database: {settings.database_url.split('@')[-1]}")

    try:
        asyncio.run(check_database())
        logger.info("Database connection verified")

        # env.py drives its own event loop, so migrations run outside asyncio.run
        run_migrations()
    except Exception as e:
        logger.error(f"Database setup failed: {e}")
        raise

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn flight_bookings.main:app --reload")


if __name__ == "__main__":
    main()
