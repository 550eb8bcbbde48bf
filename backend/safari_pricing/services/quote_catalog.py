"""Quote catalog - priced park products available for a trip"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from safari_pricing.core.errors import StoreUnavailableError
from safari_pricing.models.park_product import ParkProduct, ParkProductPrice
from safari_pricing.models.reference import (
    NationalPark,
    ParkCategory,
    EntryType,
    Season,
    Currency,
)
from safari_pricing.schemas.quote import ProductOption
from safari_pricing.services.price_display import seasons_overlap

logger = logging.getLogger(__name__)


@dataclass
class CatalogResult:
    usd_products: List[ProductOption] = field(default_factory=list)
    tzs_products: List[ProductOption] = field(default_factory=list)
    season_filtered: bool = False

    def find(self, product_id: int) -> Optional[ProductOption]:
        for option in self.usd_products + self.tzs_products:
            if option.id == product_id:
                return option
        return None


class QuoteCatalog:
    """
    Lists products for a park/category/entry type with USD and TZS prices
    folded into one option per product.

    With trip dates, only prices whose season overlaps the trip are used. If
    that leaves nothing, every price is used instead.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def products_for(
        self,
        park_id: int,
        category_name: str,
        entry_name: str,
        trip_start: Optional[date] = None,
        trip_end: Optional[date] = None,
    ) -> CatalogResult:
        try:
            rows = await self._priced_rows(park_id, category_name, entry_name)
        except SQLAlchemyError as exc:
            logger.error("Error fetching products for park %s: %s", park_id, exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error fetching products") from exc

        season_filtered = False
        if trip_start and trip_end:
            in_season = [
                row for row in rows
                if seasons_overlap(row.start_date, row.end_date, trip_start, trip_end)
            ]
            if in_season:
                rows, season_filtered = in_season, True
            else:
                logger.info("No products found with season filtering for park %s, using all seasons", park_id)

        options = self._group(rows)
        return CatalogResult(
            usd_products=[o for o in options if o.usd_price > 0],
            tzs_products=[o for o in options if o.tzs_price > 0],
            season_filtered=season_filtered,
        )

    async def _priced_rows(self, park_id: int, category_name: str, entry_name: str):
        result = await self.db.execute(
            select(
                ParkProduct.id,
                ParkProduct.product_name,
                NationalPark.national_park_name,
                ParkCategory.category_name,
                EntryType.entry_name,
                ParkProductPrice.unit_amount,
                ParkProductPrice.tax_behavior,
                ParkProductPrice.currency_id,
                Currency.currency_name,
                Season.start_date,
                Season.end_date,
            )
            .join(NationalPark, NationalPark.id == ParkProduct.national_park_id)
            .join(ParkCategory, ParkCategory.id == ParkProduct.park_category_id)
            .join(EntryType, EntryType.id == ParkProduct.entry_type_id)
            .join(ParkProductPrice, ParkProductPrice.park_product_id == ParkProduct.id)
            .join(Currency, Currency.id == ParkProductPrice.currency_id)
            .join(Season, Season.id == ParkProductPrice.season_id)
            .where(
                ParkProduct.national_park_id == park_id,
                ParkCategory.category_name == category_name,
                EntryType.entry_name == entry_name,
            )
            .order_by(ParkProduct.id, ParkProductPrice.id)
        )
        return result.all()

    @staticmethod
    def _group(rows) -> List[ProductOption]:
        """One option per product; a later price row for the same currency wins."""
        groups: Dict[int, ProductOption] = {}
        for row in rows:
            code = (row.currency_name or "").lower()
            if code not in ("usd", "tzs"):
                logger.warning("Product %s has a price in unsupported currency %r", row.id, row.currency_name)
                continue

            option = groups.get(row.id)
            if option is None:
                option = ProductOption(
                    id=row.id,
                    product_name=row.product_name,
                    park_name=row.national_park_name or "Unknown",
                    category_name=row.category_name or "Unknown",
                    entry_name=row.entry_name or "Unknown",
                )
                groups[row.id] = option

            setattr(option, f"{code}_price", float(row.unit_amount or 0))
            setattr(option, f"{code}_tax_behavior", row.tax_behavior)
            setattr(option, f"{code}_currency_id", row.currency_id)

        return list(groups.values())
