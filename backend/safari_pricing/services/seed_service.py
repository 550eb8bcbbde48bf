"""Seed service for reference data"""
import logging
from datetime import date

from sqlalchemy import select

from safari_pricing.core.database import AsyncSessionLocal
from safari_pricing.models.reference import (
    NationalPark,
    ParkCategory,
    EntryType,
    AgeGroup,
    PricingType,
    Season,
    Currency,
)

logger = logging.getLogger(__name__)


async def seed_data(session_factory=AsyncSessionLocal):
    """Seed lookup tables if empty"""
    async with session_factory() as db:
        # Check if already seeded
        result = await db.execute(select(NationalPark).limit(1))
        if result.scalar_one_or_none():
            return  # Already seeded

        parks = [
            NationalPark(national_park_name='Serengeti National Park'),
            NationalPark(national_park_name='Ngorongoro Conservation Area'),
            NationalPark(national_park_name='Tarangire National Park'),
            NationalPark(national_park_name='Lake Manyara National Park'),
            NationalPark(national_park_name='Arusha National Park'),
            NationalPark(national_park_name='Kilimanjaro National Park'),
        ]

        categories = [
            ParkCategory(category_name='Non-Resident'),
            ParkCategory(category_name='East African Citizen'),
            ParkCategory(category_name='Expatriate / Resident'),
        ]

        entry_types = [
            EntryType(entry_name='Day Visit'),
            EntryType(entry_name='Vehicle Entry'),
            EntryType(entry_name='Crater Service'),
        ]

        age_groups = [
            AgeGroup(age_group_name='Children Below 5', min_age=0, max_age=4),
            AgeGroup(age_group_name='Children 5 - 15', min_age=5, max_age=15),
            AgeGroup(age_group_name='Adults 16+', min_age=16, max_age=None),
        ]

        pricing_types = [
            PricingType(pricing_type_name='Per Person'),
            PricingType(pricing_type_name='Per Group'),
            PricingType(pricing_type_name='Per Vehicle'),
        ]

        year = date.today().year
        seasons = [
            Season(season_name=f'Low Season {year}', start_date=date(year, 3, 15), end_date=date(year, 5, 15)),
            Season(season_name=f'High Season {year}', start_date=date(year, 5, 16), end_date=date(year, 12, 31)),
        ]

        # Currency ids 1 = USD, 2 = TZS
        currencies = [
            Currency(id=1, currency_name='USD'),
            Currency(id=2, currency_name='TZS'),
        ]

        for rows in (parks, categories, entry_types, age_groups, pricing_types, seasons, currencies):
            db.add_all(rows)
        await db.commit()
        logger.info("Database seeded with reference data")
