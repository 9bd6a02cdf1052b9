#!/usr/bin/env python3
"""Setup script for the Tramboory API: migrations plus starter data."""

import asyncio
import logging
import sys
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select

from tramboory.core.database import async_session_factory, close_db
from tramboory.models import *  # Import all models to ensure they're registered

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def run_migrations():
    """Bring the schema up to the latest revision."""
    logger.info("Running database migrations...")
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data():
    """Seed the booking rules, one package and one food option."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        try:
            existing = await db.execute(select(func.count()).select_from(Package))
            if existing.scalar() > 0:
                logger.info("Sample data already exists, skipping...")
                return

            db.add(SystemConfig.default())
            db.add(
                Package(
                    name="Paquete Tramboory",
                    description="Salón, animador, pastel y piñata",
                    weekday_price=5000,
                    weekend_price=6500,
                    holiday_price=7000,
                    duration=4,
                    max_guests=60,
                    features=["Salón privado", "Animador", "Pastel", "Piñata"],
                )
            )
            db.add(
                FoodOption(
                    name="Pizzas y hot dogs",
                    description="Menú infantil con opción para adultos",
                    base_price=1200,
                    adult_dishes=["Pizza familiar"],
                    kids_dishes=["Hot dog", "Papas"],
                )
            )

            await db.commit()
            logger.info("Sample data created successfully!")

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create sample data: {e}")
            raise


async def main():
    """Main setup function."""
    logger.info("Starting Tramboory API setup...")

    # env.py starts its own event loop
    await asyncio.to_thread(run_migrations)
    await create_sample_data()
    await close_db()

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn tramboory.main:app --reload")


if __name__ == "__main__":
    asyncio.run(main())
