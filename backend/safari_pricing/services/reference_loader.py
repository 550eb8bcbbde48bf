"""Reference Data Loader - lookup tables for the pricing selectors"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

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


@dataclass
class ReferenceData:
    parks: List[NationalPark] = field(default_factory=list)
    categories: List[ParkCategory] = field(default_factory=list)
    entry_types: List[EntryType] = field(default_factory=list)
    age_groups: List[AgeGroup] = field(default_factory=list)
    pricing_types: List[PricingType] = field(default_factory=list)
    seasons: List[Season] = field(default_factory=list)
    currencies: List[Currency] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class ReferenceDataLoader:
    """
    Loads each lookup independently.

    A lookup that fails is logged and comes back empty; the others still
    load. There is no retry here, callers re-run the load.
    """

    LOOKUPS = ("parks", "categories", "entry_types", "age_groups", "pricing_types", "seasons", "currencies")

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_all(self) -> ReferenceData:
        data = ReferenceData()
        for name in self.LOOKUPS:
            rows = await self.load(name)
            if rows is None:
                data.failed.append(name)
            else:
                setattr(data, name, rows)
        return data

    async def load(self, name: str) -> Optional[list]:
        """Rows of one lookup, or None when the read failed."""
        try:
            return await getattr(self, name)()
        except SQLAlchemyError:
            logger.exception("Error fetching %s", name)
            await self.db.rollback()
            return None

    async def parks(self) -> List[NationalPark]:
        """Active parks by name, de-duplicated case-insensitively (first wins)."""
        result = await self.db.execute(
            select(NationalPark)
            .where(NationalPark.is_active.is_(True))
            .order_by(NationalPark.national_park_name, NationalPark.id)
        )
        unique: List[NationalPark] = []
        seen = {}
        for park in result.scalars().all():
            key = park.national_park_name.strip().lower()
            if key in seen:
                logger.warning(
                    'Duplicate park name found: "%s" (ID: %s), keeping "%s" (ID: %s)',
                    park.national_park_name, park.id, seen[key].national_park_name, seen[key].id,
                )
                continue
            seen[key] = park
            unique.append(park)
        return unique

    async def categories(self) -> List[ParkCategory]:
        result = await self.db.execute(
            select(ParkCategory)
            .where(ParkCategory.is_active.is_(True))
            .order_by(ParkCategory.category_name)
        )
        return list(result.scalars().all())

    async def entry_types(self) -> List[EntryType]:
        result = await self.db.execute(
            select(EntryType)
            .where(EntryType.is_active.is_(True))
            .order_by(EntryType.entry_name)
        )
        return list(result.scalars().all())

    async def age_groups(self) -> List[AgeGroup]:
        result = await self.db.execute(select(AgeGroup).order_by(AgeGroup.min_age))
        return list(result.scalars().all())

    async def pricing_types(self) -> List[PricingType]:
        result = await self.db.execute(select(PricingType).order_by(PricingType.pricing_type_name))
        return list(result.scalars().all())

    async def seasons(self) -> List[Season]:
        result = await self.db.execute(select(Season).order_by(Season.season_name))
        return list(result.scalars().all())

    async def currencies(self) -> List[Currency]:
        result = await self.db.execute(select(Currency).order_by(Currency.currency_name))
        return list(result.scalars().all())
