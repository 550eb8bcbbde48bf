"""Shared fixtures for the service tests"""
import unittest
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import safari_pricing.models  # noqa: F401
from safari_pricing.core.database import Base
from safari_pricing.models.reference import (
    NationalPark,
    ParkCategory,
    EntryType,
    AgeGroup,
    PricingType,
    Season,
    Currency,
)

SERENGETI, NGORONGORO, TARANGIRE = 1, 2, 3
NON_RESIDENT, EAST_AFRICAN = 1, 2
DAY_VISIT, VEHICLE_ENTRY = 1, 2
ADULTS, CHILDREN = 1, 2
PER_PERSON = 1
HIGH_SEASON, LOW_SEASON = 1, 2
USD, TZS = 1, 2


def reference_rows():
    return [
        NationalPark(id=SERENGETI, national_park_name="Serengeti National Park"),
        NationalPark(id=NGORONGORO, national_park_name="Ngorongoro Conservation Area"),
        NationalPark(id=TARANGIRE, national_park_name="Tarangire National Park"),
        ParkCategory(id=NON_RESIDENT, category_name="Non-Resident"),
        ParkCategory(id=EAST_AFRICAN, category_name="East African Citizen"),
        EntryType(id=DAY_VISIT, entry_name="Day Visit"),
        EntryType(id=VEHICLE_ENTRY, entry_name="Vehicle Entry"),
        AgeGroup(id=ADULTS, age_group_name="Adults 16+", min_age=16),
        AgeGroup(id=CHILDREN, age_group_name="Children 5 - 15", min_age=5, max_age=15),
        PricingType(id=PER_PERSON, pricing_type_name="Per Person"),
        Season(id=HIGH_SEASON, season_name="High Season", start_date=date(2024, 6, 1), end_date=date(2024, 8, 31)),
        Season(id=LOW_SEASON, season_name="Low Season", start_date=date(2024, 3, 1), end_date=date(2024, 5, 31)),
        Currency(id=USD, currency_name="USD"),
        Currency(id=TZS, currency_name="TZS"),
    ]


def make_engine(url: str = "sqlite+aiosqlite://", **kwargs):
    if url == "sqlite+aiosqlite://":
        kwargs.setdefault("poolclass", StaticPool)
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_async_engine(url, **kwargs)


async def create_schema(engine, seed: bool = True):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if seed:
        session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with session_factory() as db:
            db.add_all(reference_rows())
            await db.commit()


class DatabaseTestCase(unittest.IsolatedAsyncioTestCase):
    """Fresh in-memory database with reference rows for every test"""

    seed = True

    async def asyncSetUp(self):
        self.engine = make_engine()
        await create_schema(self.engine, seed=self.seed)
        self.session_factory = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)
        self.db = self.session_factory()

    async def asyncTearDown(self):
        await self.db.close()
        await self.engine.dispose()
