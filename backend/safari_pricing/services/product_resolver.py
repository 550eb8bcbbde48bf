"""Product Resolver - find or lazily create the product row for a tuple"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from safari_pricing.core.errors import PricingValidationError, StoreUnavailableError
from safari_pricing.models.park_product import ParkProduct
from safari_pricing.models.reference import (
    NationalPark,
    ParkCategory,
    EntryType,
    AgeGroup,
    PricingType,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductTuple:
    park_id: int
    category_id: Optional[int]
    entry_type_id: int
    age_group_id: int
    pricing_type_id: int

    def validate(self):
        for name in ("park_id", "entry_type_id", "age_group_id", "pricing_type_id"):
            if not getattr(self, name):
                raise PricingValidationError(f"{name} is required", field=name)


def _initials(text: str, limit: int) -> str:
    return "".join(word[0].upper() for word in text.split() if word)[:limit]


def abbreviated_code(park_name: str, entry_type: str, age_group: str, category: Optional[str] = None) -> str:
    """
    Short product code, e.g. "SNP-DV-EA-16+".

    Park initials (max 3), entry type initials (max 2), optional category
    initials (max 2), then an age band code.
    """
    age = age_group.lower()
    if "5" in age and "15" in age:
        age_code = "5-15"
    elif "below" in age or "5" in age:
        age_code = "0-4"
    elif "student" in age:
        age_code = "STU"
    elif "senior" in age:
        age_code = "SEN"
    else:
        age_code = "16+"

    parts = [_initials(park_name, 3), _initials(entry_type, 2)]
    if category:
        parts.append(_initials(category, 2))
    parts.append(age_code)
    return "-".join(parts)


class ProductResolver:
    """
    Resolves a (park, category, entry type, age group, pricing type) tuple to
    a single product id.

    The lookup runs before the insert. A request that loses an insert race to
    the unique constraint re-reads and returns the winning row.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_product(self, key: ProductTuple) -> Optional[ParkProduct]:
        """First product matching the full tuple; no category matches NULL only."""
        query = select(ParkProduct).where(
            ParkProduct.national_park_id == key.park_id,
            ParkProduct.entry_type_id == key.entry_type_id,
            ParkProduct.age_group == key.age_group_id,
            ParkProduct.pricing_type_id == key.pricing_type_id,
        )
        if key.category_id:
            query = query.where(ParkProduct.park_category_id == key.category_id)
        else:
            query = query.where(ParkProduct.park_category_id.is_(None))

        result = await self.db.execute(query.order_by(ParkProduct.id).limit(1))
        return result.scalar_one_or_none()

    async def resolve_or_create_product(
        self,
        park_id: int,
        category_id: Optional[int],
        entry_type_id: int,
        age_group_id: int,
        pricing_type_id: int,
    ) -> int:
        key = ProductTuple(park_id, category_id or None, entry_type_id, age_group_id, pricing_type_id)
        key.validate()

        try:
            existing = await self.find_product(key)
        except SQLAlchemyError as exc:
            logger.error("Error checking existing product %s: %s", key, exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error checking existing product") from exc

        if existing:
            return existing.id

        try:
            product = ParkProduct(
                national_park_id=key.park_id,
                park_category_id=key.category_id,
                entry_type_id=key.entry_type_id,
                age_group=key.age_group_id,
                pricing_type_id=key.pricing_type_id,
                product_name=await self._product_name(key),
            )
            self.db.add(product)
            await self.db.commit()
            await self.db.refresh(product)
        except IntegrityError:
            # A concurrent request inserted the same tuple first
            await self.db.rollback()
            return await self._winner(key)
        except SQLAlchemyError as exc:
            logger.error("Error creating park product %s: %s", key, exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error creating park product") from exc

        logger.info("Created park product %s '%s'", product.id, product.product_name)
        return product.id

    async def _winner(self, key: ProductTuple) -> int:
        try:
            existing = await self.find_product(key)
        except SQLAlchemyError as exc:
            logger.error("Error re-reading park product %s: %s", key, exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error creating park product") from exc
        if existing is None:
            raise StoreUnavailableError("Error creating park product")
        logger.info("Park product %s was created concurrently, reusing %s", key, existing.id)
        return existing.id

    async def _product_name(self, key: ProductTuple) -> str:
        """'{park} - {entry type}[ - {category}] - {age group} - {pricing type}'"""
        park = await self.require_row(NationalPark, key.park_id, "park_id")
        entry_type = await self.require_row(EntryType, key.entry_type_id, "entry_type_id")
        age_group = await self.require_row(AgeGroup, key.age_group_id, "age_group_id")
        pricing_type = await self.require_row(PricingType, key.pricing_type_id, "pricing_type_id")

        parts = [park.national_park_name, entry_type.entry_name]
        if key.category_id:
            category = await self.require_row(ParkCategory, key.category_id, "park_category_id")
            parts.append(category.category_name)
        parts.extend([age_group.age_group_name, pricing_type.pricing_type_name])
        return " - ".join(parts)

    async def require_row(self, model, row_id: int, field: str):
        row = await self.db.get(model, row_id)
        if row is None:
            raise PricingValidationError(f"Unknown {field} {row_id}", field=field)
        return row
