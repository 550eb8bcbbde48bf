"""Price Resolver - duplicate-checked price creation, batch pricing, edits"""
import itertools
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from safari_pricing.core.config import settings
from safari_pricing.core.errors import (
    PricingValidationError,
    StoreUnavailableError,
    NotFoundError,
)
from safari_pricing.models.park_product import ParkProduct, ParkProductPrice
from safari_pricing.models.reference import (
    NationalPark,
    ParkCategory,
    EntryType,
    AgeGroup,
    PricingType,
    Season,
    Currency,
)
from safari_pricing.schemas.pricing import (
    BatchPricingRequest,
    BatchPricingResponse,
    CombinationResult,
    ParkPricingRow,
)
from safari_pricing.services.price_display import TaxBehavior, is_exclusive
from safari_pricing.services.product_resolver import ProductResolver, abbreviated_code

logger = logging.getLogger(__name__)

DUPLICATE_SUFFIX = (
    "This combination of park, entry type, age group, category, season, "
    "and tax behavior already exists."
)


@dataclass
class PriceResolution:
    created: bool
    price_id: Optional[int] = None
    message: Optional[str] = None
    conflicts: List[str] = field(default_factory=list)


def parse_amount(value) -> Decimal:
    """Positive decimal amount or PricingValidationError."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise PricingValidationError("Please enter a valid price", field="unit_amount")
    if not amount.is_finite() or amount <= 0:
        raise PricingValidationError("Please enter a valid price", field="unit_amount")
    return amount


class PriceResolver:
    """
    Creates price rows for products.

    The exact-duplicate key is (product, season, tax behavior); currency joins
    the key only when DUPLICATE_KEY_INCLUDES_CURRENCY is set. The check runs
    before the insert with no lock held.
    """

    def __init__(self, db: AsyncSession, include_currency: Optional[bool] = None):
        self.db = db
        self.products = ProductResolver(db)
        if include_currency is None:
            include_currency = settings.DUPLICATE_KEY_INCLUDES_CURRENCY
        self.include_currency = include_currency

    async def find_prices(
        self,
        product_id: int,
        season_id: int,
        tax_behavior: TaxBehavior,
        currency_id: Optional[int] = None,
    ) -> List[ParkProductPrice]:
        """Prices matching the duplicate key. Legacy exclusive code 4 counts as exclusive."""
        codes = [2, 4] if tax_behavior == TaxBehavior.EXCLUSIVE else [int(tax_behavior)]
        query = select(ParkProductPrice).where(
            ParkProductPrice.park_product_id == product_id,
            ParkProductPrice.season_id == season_id,
            ParkProductPrice.tax_behavior.in_(codes),
        )
        if self.include_currency and currency_id:
            query = query.where(ParkProductPrice.currency_id == currency_id)
        result = await self.db.execute(query.order_by(ParkProductPrice.id))
        return list(result.scalars().all())

    async def resolve_or_create_price(
        self,
        product_id: int,
        season_id: int,
        currency_id: int,
        tax_behavior,
        unit_amount,
    ) -> PriceResolution:
        amount = parse_amount(unit_amount)
        for name, value in (
            ("park_product_id", product_id),
            ("season_id", season_id),
            ("currency_id", currency_id),
        ):
            if not value:
                raise PricingValidationError(f"{name} is required", field=name)
        behavior = TaxBehavior.parse(tax_behavior)
        await self._require_rows(
            (ParkProduct, product_id, "park_product_id"),
            (Season, season_id, "season_id"),
            (Currency, currency_id, "currency_id"),
        )

        try:
            existing = await self.find_prices(product_id, season_id, behavior, currency_id)
        except SQLAlchemyError as exc:
            logger.error("Error checking existing pricing for product %s: %s", product_id, exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error checking existing pricing") from exc

        if existing:
            names = await self._conflict_names(product_id)
            return PriceResolution(
                created=False,
                price_id=existing[0].id,
                message=f"Exact pricing already exists for: {names}. {DUPLICATE_SUFFIX}",
                conflicts=[names],
            )

        try:
            price = ParkProductPrice(
                park_product_id=product_id,
                season_id=season_id,
                currency_id=currency_id,
                unit_amount=amount,
                tax_behavior=int(behavior),
            )
            self.db.add(price)
            await self.db.commit()
            await self.db.refresh(price)
        except SQLAlchemyError as exc:
            logger.error("Error creating pricing for product %s: %s", product_id, exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error creating pricing") from exc

        return PriceResolution(created=True, price_id=price.id)

    async def _require_rows(self, *checks):
        """PricingValidationError for the first (model, id, field) with no row."""
        try:
            for model, row_id, field_name in checks:
                await self.products.require_row(model, row_id, field_name)
        except SQLAlchemyError as exc:
            logger.error("Error checking referenced rows %s: %s", checks, exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error checking existing pricing") from exc

    async def _conflict_names(self, product_id: int) -> str:
        try:
            result = await self.db.execute(
                select(NationalPark.national_park_name, ParkProduct.product_name)
                .join(NationalPark, NationalPark.id == ParkProduct.national_park_id)
                .where(ParkProduct.id == product_id)
            )
            row = result.first()
        except SQLAlchemyError:
            logger.exception("Error loading names for product %s", product_id)
            await self.db.rollback()
            row = None
        if not row:
            return f"product {product_id}"
        return f"{row[0]} ({row[1]})"

    async def create_pricing_batch(self, request: BatchPricingRequest) -> BatchPricingResponse:
        """
        Price every park x entry type x age group combination, one at a time.

        An exact duplicate is reported for its combination and the batch moves
        on. A store failure stops the batch; combinations already written stay
        written, including a product whose price insert failed.
        """
        if (
            not request.park_ids
            or not request.entry_type_ids
            or not request.age_group_ids
            or not request.season_id
            or not request.currency_id
            or not request.pricing_type_id
            or request.unit_amount is None
        ):
            raise PricingValidationError("All fields are required")
        amount = parse_amount(request.unit_amount)
        behavior = TaxBehavior.parse(request.tax_behavior)

        park_names = await self._park_names(request.park_ids)
        combinations = list(itertools.product(
            request.park_ids, request.entry_type_ids, request.age_group_ids
        ))
        response = BatchPricingResponse(created_count=0, total_combinations=len(combinations))

        for park_id, entry_type_id, age_group_id in combinations:
            park_name = park_names.get(park_id, "Unknown Park")
            outcome = CombinationResult(
                park_id=park_id,
                park_name=park_name,
                entry_type_id=entry_type_id,
                age_group_id=age_group_id,
                status='failed',
            )
            try:
                outcome.product_id = await self.products.resolve_or_create_product(
                    park_id,
                    request.park_category_id,
                    entry_type_id,
                    age_group_id,
                    request.pricing_type_id,
                )
                resolution = await self.resolve_or_create_price(
                    outcome.product_id,
                    request.season_id,
                    request.currency_id,
                    behavior,
                    amount,
                )
            except (StoreUnavailableError, PricingValidationError) as exc:
                outcome.message = (
                    f"{exc.message} for {park_name}, entry type {entry_type_id}, "
                    f"age group {age_group_id}"
                )
                logger.error("Batch pricing aborted: %s", outcome.message)
                response.results.append(outcome)
                response.aborted = True
                response.error = outcome.message
                response.failed_combination = outcome
                return response

            outcome.price_id = resolution.price_id
            if resolution.created:
                outcome.status = 'created'
                response.created_count += 1
            else:
                outcome.status = 'duplicate'
                outcome.message = resolution.message
                if park_name not in response.conflicts:
                    response.conflicts.append(park_name)
            response.results.append(outcome)

        if response.conflicts:
            response.error = (
                f"Exact pricing already exists for: {', '.join(response.conflicts)}. {DUPLICATE_SUFFIX}"
            )
        logger.info(
            "Created %s of %s pricing records (%s conflicts)",
            response.created_count, response.total_combinations, len(response.conflicts),
        )
        return response

    async def _park_names(self, park_ids: List[int]) -> Dict[int, str]:
        try:
            result = await self.db.execute(
                select(NationalPark.id, NationalPark.national_park_name)
                .where(NationalPark.id.in_(park_ids))
            )
        except SQLAlchemyError as exc:
            logger.error("Error loading parks %s: %s", park_ids, exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error loading parks") from exc
        return {row[0]: row[1] for row in result.all()}

    async def update_price(self, price_id: int, unit_amount, currency_id: int, tax_behavior) -> ParkProductPrice:
        """Replace amount, currency and tax behavior of an existing price."""
        amount = parse_amount(unit_amount)
        if not currency_id:
            raise PricingValidationError("currency_id is required", field="currency_id")
        behavior = TaxBehavior.parse(tax_behavior)
        await self._require_rows((Currency, currency_id, "currency_id"))

        try:
            price = await self.db.get(ParkProductPrice, price_id)
            if price is None:
                raise NotFoundError(f"Price {price_id} not found")
            price.unit_amount = amount
            price.currency_id = currency_id
            price.tax_behavior = int(behavior)
            await self.db.commit()
            await self.db.refresh(price)
        except SQLAlchemyError as exc:
            logger.error("Error updating pricing %s: %s", price_id, exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error updating pricing") from exc
        return price

    async def delete_price(self, price_id: int):
        try:
            price = await self.db.get(ParkProductPrice, price_id)
            if price is None:
                raise NotFoundError(f"Price {price_id} not found")
            await self.db.delete(price)
            await self.db.commit()
        except SQLAlchemyError as exc:
            logger.error("Error deleting pricing %s: %s", price_id, exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error deleting pricing") from exc

    async def delete_product(self, product_id: int):
        """Delete a product that has no prices left; prices are never cascaded."""
        try:
            product = await self.db.get(ParkProduct, product_id)
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")
            price_count = await self.db.scalar(
                select(func.count(ParkProductPrice.id))
                .where(ParkProductPrice.park_product_id == product_id)
            )
            if price_count:
                raise PricingValidationError(
                    f"Product {product_id} still has {price_count} price(s); delete them first",
                    field="park_product_id",
                )
            await self.db.delete(product)
            await self.db.commit()
        except SQLAlchemyError as exc:
            logger.error("Error deleting product %s: %s", product_id, exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error deleting product") from exc

    async def list_pricing(self) -> List[ParkPricingRow]:
        """Readable pricing table: one row per price, or one per unpriced product."""
        try:
            products = await self.db.execute(
                select(
                    ParkProduct,
                    NationalPark.national_park_name,
                    EntryType.entry_name,
                    AgeGroup.age_group_name,
                    ParkCategory.category_name,
                    PricingType.pricing_type_name,
                )
                .join(NationalPark, NationalPark.id == ParkProduct.national_park_id)
                .join(EntryType, EntryType.id == ParkProduct.entry_type_id)
                .join(AgeGroup, AgeGroup.id == ParkProduct.age_group)
                .join(PricingType, PricingType.id == ParkProduct.pricing_type_id)
                .outerjoin(ParkCategory, ParkCategory.id == ParkProduct.park_category_id)
                .order_by(ParkProduct.id)
            )
            prices = await self.db.execute(
                select(ParkProductPrice, Season.season_name, Currency.currency_name)
                .outerjoin(Season, Season.id == ParkProductPrice.season_id)
                .outerjoin(Currency, Currency.id == ParkProductPrice.currency_id)
                .order_by(ParkProductPrice.id)
            )
            product_rows = products.all()
            price_rows = prices.all()
        except SQLAlchemyError as exc:
            logger.error("Error fetching park pricing: %s", exc)
            await self.db.rollback()
            raise StoreUnavailableError("Error fetching park pricing") from exc

        prices_by_product = defaultdict(list)
        for price, season_name, currency_name in price_rows:
            prices_by_product[price.park_product_id].append((price, season_name, currency_name))

        rows: List[ParkPricingRow] = []
        for product, park_name, entry_name, age_group_name, category_name, pricing_type_name in product_rows:
            code = product.product_name
            if not code or len(code) > 20:
                code = abbreviated_code(park_name, entry_name, age_group_name, category_name)
            base = dict(
                id=product.id,
                product_name=product.product_name,
                product_code=code,
                park_name=park_name,
                entry_type=entry_name,
                age_group=age_group_name,
                category_name=category_name or "No Category",
                pricing_type=pricing_type_name,
            )
            priced = prices_by_product.get(product.id)
            if not priced:
                rows.append(ParkPricingRow(
                    **base, price=0, season_name="Unknown Season", currency_name="USD",
                ))
                continue
            for price, season_name, currency_name in priced:
                rows.append(ParkPricingRow(
                    **base,
                    price_id=price.id,
                    price=float(price.unit_amount),
                    season_name=season_name or "Unknown Season",
                    currency_name=currency_name or "USD",
                    tax_behavior='exclusive' if is_exclusive(price.tax_behavior) else 'inclusive',
                ))
        return rows
