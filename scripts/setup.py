#!/usr/bin/env python3
"""Setup script for the car rental booking API: migrate, then seed the fleet."""

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

from car_rental.core.database import async_session_factory, close_db
from car_rental.models import Car, FuelType, Transmission

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# (brand, name, category, category_label, fuel, transmission, base, 3-day, 7-day, 15-day)
SAMPLE_FLEET = [
    ("Maruti Suzuki", "Swift", "5-Seater", "Hatchback", FuelType.PETROL, Transmission.BOTH, 2500, 2200, 2000, 1800),
    ("Maruti Suzuki", "Baleno", "5-Seater", "Hatchback", FuelType.PETROL, Transmission.MANUAL, 3000, 2700, 2500, None),
    ("Tata", "Punch", "5-Seater", "SUV", FuelType.PETROL, Transmission.MANUAL, 3000, 2800, None, None),
    ("Maruti Suzuki", "Brezza", "5-Seater", "SUV", FuelType.PETROL, Transmission.AUTOMATIC, 3500, 3200, 3000, 2800),
    ("Hyundai", "Creta", "5-Seater", "SUV", FuelType.PETROL, Transmission.BOTH, 4000, 3700, 3500, 3200),
    ("Maruti Suzuki", "Ertiga", "7-Seater", "MUV", FuelType.PETROL, Transmission.MANUAL, 4000, 3800, None, None),
    ("Toyota", "Innova", "7-Seater", "MUV", FuelType.DIESEL, Transmission.MANUAL, 4000, 3800, 3600, None),
    ("Mahindra", "Thar", "5-Seater", "SUV", FuelType.DIESEL, Transmission.BOTH, 6500, 6000, 5500, 5000),
    ("Mahindra", "XUV700", "7-Seater", "SUV", FuelType.PETROL, Transmission.AUTOMATIC, 6500, 6000, None, None),
    ("Toyota", "Fortuner", "7-Seater", "SUV", FuelType.PETROL, Transmission.AUTOMATIC, 9000, 8500, 8000, 7500),
]


def run_migrations() -> None:
    """Apply Alembic migrations up to head."""
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data() -> None:
    """Seed the fleet unless cars already exist."""
    async with async_session_factory() as db:
        existing = await db.execute(select(func.count(Car.id)))
        if existing.scalar_one() > 0:
            logger.info("Fleet already present, skipping sample data")
            return

        for brand, name, category, label, fuel, transmission, price, p3, p7, p15 in SAMPLE_FLEET:
            db.add(Car(
                brand=brand,
                name=name,
                category=category,
                category_label=label,
                fuel=fuel.value,
                transmission=transmission.value,
                images=[],
                price=price,
                price_3_days=p3,
                price_7_days=p7,
                price_15_days=p15,
            ))
        await db.commit()
        logger.info(f"Created {len(SAMPLE_FLEET)} sample cars")

    await close_db()


def main() -> None:
    try:
        run_migrations()
        if "--with-sample-data" in sys.argv:
            asyncio.run(create_sample_data())
    except Exception as e:
        logger.error(f"Database setup failed: {e}")
        sys.exit(1)

    logger.info("Database setup completed successfully!")


if __name__ == "__main__":
    main()
