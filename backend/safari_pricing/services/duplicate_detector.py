"""Duplicate/existing-combination detector (advisory badges for candidate parks)"""
import logging
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from safari_pricing.core.errors import StoreUnavailableError
from safari_pricing.schemas.pricing import ClassifyRequest, CandidateStatus
from safari_pricing.services.price_display import TaxBehavior
from safari_pricing.services.price_resolver import PriceResolver
from safari_pricing.services.product_resolver import ProductTuple

logger = logging.getLogger(__name__)


class DuplicateDetector:
    """
    Classifies each candidate park as new, existing product, or exact duplicate.

    Uses the same lookups as the resolvers so the badge shown here matches what
    a submit would do, barring a concurrent write in between. Never blocks.
    """

    def __init__(self, db: AsyncSession):
        self.resolver = PriceResolver(db)
        self.db = db

    async def classify_candidates(self, request: ClassifyRequest) -> Dict[int, CandidateStatus]:
        behavior = TaxBehavior.parse(request.tax_behavior)
        candidates: Dict[int, CandidateStatus] = {}

        try:
            for park_id in request.park_ids:
                candidates[park_id] = await self._classify_park(park_id, request, behavior)
        except SQLAlchemyError as exc:
            logger.error("Error checking existing products: %s", exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error checking existing product") from exc

        return candidates

    async def _classify_park(
        self, park_id: int, request: ClassifyRequest, behavior: TaxBehavior
    ) -> CandidateStatus:
        status = CandidateStatus()
        for entry_type_id in request.entry_type_ids:
            for age_group_id in request.age_group_ids:
                product = await self.resolver.products.find_product(ProductTuple(
                    park_id,
                    request.park_category_id or None,
                    entry_type_id,
                    age_group_id,
                    request.pricing_type_id,
                ))
                if not product:
                    continue
                status.has_product = True

                # Price existence only matters once a season is chosen
                if not request.season_id:
                    continue
                prices = await self.resolver.find_prices(
                    product.id, request.season_id, behavior, request.currency_id
                )
                if prices:
                    status.has_exact_price = True

        if status.has_exact_price:
            status.status = 'exact_duplicate'
        elif status.has_product:
            status.status = 'existing_product'
        return status


def conflicting_parks(candidates: Dict[int, CandidateStatus]) -> List[int]:
    return [park_id for park_id, status in candidates.items() if status.has_exact_price]
