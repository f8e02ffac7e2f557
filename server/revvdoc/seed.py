"""
Seed the service catalog for development and fresh deployments.

Run with ``python -m revvdoc.seed``. Safe to re-run: services are matched by
name and existing rows are left untouched.
"""

import asyncio
import logging

from revvdoc.config import settings
from revvdoc.models.service import Service, ServiceCategory
from revvdoc.services import database
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Prices in USD cents, durations in minutes
SERVICE_CATALOG = [
    {
        "name": "Oil Change",
        "category": ServiceCategory.MECHANIC,
        "description": "Full synthetic or conventional oil change with new filter. "
        "Includes 20-point inspection and fluid top-off.",
        "base_price": 8900,
        "duration_mins": 45,
    },
    {
        "name": "Brake Pad Replacement",
        "category": ServiceCategory.MECHANIC,
        "description": "Front or rear brake pad replacement with rotor inspection. Parts and labor included.",
        "base_price": 22900,
        "duration_mins": 90,
    },
    {
        "name": "Battery Replacement",
        "category": ServiceCategory.MECHANIC,
        "description": "Battery test, removal of the old battery and installation of a new one.",
        "base_price": 17900,
        "duration_mins": 30,
    },
    {
        "name": "Tire Rotation & Balance",
        "category": ServiceCategory.MECHANIC,
        "description": "Rotate all four tires to even out tread wear and balance for a smoother ride.",
        "base_price": 6900,
        "duration_mins": 60,
    },
    {
        "name": "Air Filter Replacement",
        "category": ServiceCategory.MECHANIC,
        "description": "Engine and cabin air filter inspection and replacement.",
        "base_price": 4900,
        "duration_mins": 20,
    },
    {
        "name": "Full Detail",
        "category": ServiceCategory.DETAILING,
        "description": "Complete interior and exterior detail: wash, clay bar, polish, wax, vacuum and shampoo.",
        "base_price": 29900,
        "duration_mins": 240,
    },
    {
        "name": "Exterior Wash & Wax",
        "category": ServiceCategory.DETAILING,
        "description": "Hand wash, clay bar treatment, one-step polish and carnauba wax.",
        "base_price": 14900,
        "duration_mins": 120,
    },
    {
        "name": "Interior Detail",
        "category": ServiceCategory.DETAILING,
        "description": "Deep vacuum, steam clean, carpet and seat shampoo, dash and console cleaning.",
        "base_price": 14900,
        "duration_mins": 120,
    },
    {
        "name": "Ceramic Coating",
        "category": ServiceCategory.DETAILING,
        "description": "Professional-grade ceramic coating with 2-year protection and a hydrophobic finish.",
        "base_price": 79900,
        "duration_mins": 360,
    },
    {
        "name": "Check Engine Light Diagnostic",
        "category": ServiceCategory.DIAGNOSTIC,
        "description": "OBD-II code scan, root cause analysis and a written report with repair recommendations.",
        "base_price": 9900,
        "duration_mins": 45,
    },
    {
        "name": "Pre-Purchase Inspection",
        "category": ServiceCategory.DIAGNOSTIC,
        "description": "150-point inspection before buying a used vehicle.",
        "base_price": 19900,
        "duration_mins": 90,
    },
    {
        "name": "AC System Diagnostic",
        "category": ServiceCategory.DIAGNOSTIC,
        "description": "Refrigerant check, compressor test and leak detection.",
        "base_price": 7900,
        "duration_mins": 30,
    },
]


async def seed_services(db: AsyncSession, catalog=None) -> tuple[int, int]:
    """
    Insert catalog entries that don't exist yet.

    Returns:
        (created, skipped) counts
    """
    catalog = SERVICE_CATALOG if catalog is None else catalog
    existing = set((await db.execute(select(Service.name))).scalars().all())

    created = 0
    skipped = 0
    for entry in catalog:
        if entry["name"] in existing:
            logger.info(f"Skipped (exists): {entry['name']}")
            skipped += 1
            continue

        db.add(Service(is_active=True, **entry))
        existing.add(entry["name"])
        logger.info(f"Created: {entry['name']} ({entry['category'].value}, ${entry['base_price'] // 100})")
        created += 1

    await db.commit()
    return created, skipped


async def main():
    await database.init_db()
    try:
        async with database.new_session() as db:
            created, skipped = await seed_services(db)
        logger.info(f"Service catalog seeded: {created} created, {skipped} skipped")
    finally:
        await database.close_db()


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(main())
