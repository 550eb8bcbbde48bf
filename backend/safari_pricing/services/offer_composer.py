"""Offer Composer - park line items of a quote session

The local store is the authoritative copy of a session's line items. Every
mutation writes the full list there first, then mirrors it to the session's
temporary offer in the database on a best-effort basis.
"""
import logging
import re
import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from safari_pricing.core.config import settings
from safari_pricing.core.errors import StoreUnavailableError, NotFoundError
from safari_pricing.models.offer import Offer, OfferParkService
from safari_pricing.models.park_product import ParkProduct, ParkProductPrice
from safari_pricing.models.reference import NationalPark, ParkCategory, EntryType, Currency
from safari_pricing.schemas.quote import LineItem, ProductOption, QuoteTotals
from safari_pricing.services.local_store import LocalStore
from safari_pricing.services.price_display import unit_price_with_tax, trip_duration_days

logger = logging.getLogger(__name__)

DESCRIPTION_PATTERN = re.compile(r"Duration: (\d+), PAX: (\d+)")

TEMP_OFFER_DAYS = 30


def describe(duration: int, pax: int) -> str:
    return f"Duration: {duration}, PAX: {pax}"


def parse_description(description: Optional[str]):
    """(duration, pax) from an offer service description, (1, 1) if absent."""
    match = DESCRIPTION_PATTERN.search(description or "")
    if not match:
        return 1, 1
    return int(match.group(1)), int(match.group(2))


def clamp_duration(value, trip_start: Optional[date] = None, trip_end: Optional[date] = None) -> int:
    """At least 1 day, at most the trip length (or MAX_LINE_ITEM_DURATION without trip dates)."""
    try:
        value = int(value)
    except (TypeError, ValueError):
        return 1
    if value < 1:
        return 1
    trip_days = trip_duration_days(trip_start, trip_end)
    max_duration = trip_days if trip_days > 0 else settings.MAX_LINE_ITEM_DURATION
    return min(value, max_duration)


class OfferComposer:
    def __init__(
        self,
        db: AsyncSession,
        store: LocalStore,
        session_id: str,
        mirror_enabled: Optional[bool] = None,
    ):
        self.db = db
        self.store = store
        self.session_id = session_id
        self.mirror_enabled = settings.OFFER_MIRROR_ENABLED if mirror_enabled is None else mirror_enabled
        self.items: List[LineItem] = []

    @property
    def items_key(self) -> str:
        return f"selected_parks:{self.session_id}"

    @property
    def offer_key(self) -> str:
        return f"temp_offer_id:{self.session_id}"

    async def load(self) -> List[LineItem]:
        """
        Local store first. Database rows whose id is not already present locally
        are appended; local items are never overwritten.
        """
        self.items = []
        saved = self.store.get(self.items_key)
        if saved:
            for raw in saved:
                try:
                    self.items.append(LineItem.model_validate(raw))
                except ValueError:
                    logger.exception("Skipping unreadable saved line item in session %s", self.session_id)

        if not self.mirror_enabled:
            return self.items

        try:
            backing = await self._load_backing()
        except SQLAlchemyError:
            logger.exception("Database loading failed for session %s, using local store only", self.session_id)
            await self.db.rollback()
            return self.items

        known = {item.id for item in self.items}
        added = [item for item in backing if item.id not in known]
        if added:
            self.items.extend(added)
            logger.info("Added %s line items from database for session %s", len(added), self.session_id)
        return self.items

    def get(self, item_id: str) -> LineItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise NotFoundError(f"Line item {item_id} not found")

    async def add_line_item(
        self,
        option: ProductOption,
        currency: str,
        duration: int,
        pax: int,
        editing_id: Optional[str] = None,
        park_id: Optional[int] = None,
        trip_start: Optional[date] = None,
        trip_end: Optional[date] = None,
        rate=None,
    ) -> LineItem:
        """
        total = unit price with tax x duration x pax.

        With `editing_id`, the matching item is replaced in place; when nothing
        matches, the item is appended instead.
        """
        duration = clamp_duration(duration, trip_start, trip_end)
        unit_price = unit_price_with_tax(option, currency, rate)
        total = unit_price * duration * pax

        item = LineItem(
            id=editing_id or uuid.uuid4().hex,
            park_product_id=option.id,
            park_id=park_id,
            park_name=option.park_name,
            product_name=option.product_name,
            category=option.category_name,
            entry_type=option.entry_name,
            duration=duration,
            pax=pax,
            unit_price=float(unit_price),
            price=float(total),
            currency=currency,
        )

        for index, existing in enumerate(self.items):
            if editing_id and existing.id == editing_id:
                self.items[index] = item
                break
        else:
            self.items.append(item)

        await self._save()
        return item

    async def remove_line_item(self, item_id: str):
        self.get(item_id)
        self.items = [item for item in self.items if item.id != item_id]
        await self._save()

    def totals(self) -> QuoteTotals:
        usd = [item for item in self.items if item.currency == "USD"]
        tzs = [item for item in self.items if item.currency == "TZS"]
        return QuoteTotals(
            usd_total=float(sum((Decimal(str(i.price)) for i in usd), Decimal("0"))),
            tzs_total=float(sum((Decimal(str(i.price)) for i in tzs), Decimal("0"))),
            usd_count=len(usd),
            tzs_count=len(tzs),
        )

    async def _save(self):
        try:
            self.store.set(self.items_key, [item.model_dump(mode="json") for item in self.items])
        except OSError as exc:
            raise StoreUnavailableError("Could not save quote locally") from exc
        logger.debug("Saved %s line items locally for session %s", len(self.items), self.session_id)

        if self.mirror_enabled:
            await self._mirror()

    async def get_or_create_temp_offer(self) -> int:
        """Offer backing this session; the id is cached in the local store."""
        offer_id = self.store.get(self.offer_key)
        if offer_id:
            if await self.db.get(Offer, offer_id):
                return offer_id
            logger.warning("Temporary offer %s no longer exists, creating a new one", offer_id)

        today = date.today()
        offer = Offer(
            offer_code=f"TEMP_{uuid.uuid4().hex[:12].upper()}",
            offer_name="Temporary Quote Session",
            active_from=today,
            active_to=today + timedelta(days=TEMP_OFFER_DAYS),
            accepted=False,
        )
        self.db.add(offer)
        await self.db.commit()
        await self.db.refresh(offer)
        self.store.set(self.offer_key, offer.id)
        logger.info("Created temporary offer %s for session %s", offer.id, self.session_id)
        return offer.id

    async def _mirror(self):
        """Replace the offer's park services with the current items. Failures are logged only."""
        try:
            offer_id = await self.get_or_create_temp_offer()
            await self.db.execute(delete(OfferParkService).where(OfferParkService.offer_id == offer_id))

            for item in self.items:
                price_id = await self._price_id_for(item)
                if price_id is None:
                    logger.warning(
                        "No park product price found for product %s (%s), not mirrored",
                        item.park_product_id, item.currency,
                    )
                    continue
                self.db.add(OfferParkService(
                    offer_id=offer_id,
                    park_product_price_id=price_id,
                    price=Decimal(str(item.unit_price)),
                    discount_percent=Decimal("0"),
                    final_service_price=Decimal(str(item.unit_price)),
                    description=describe(item.duration, item.pax),
                    line_item_id=item.id,
                    currency=item.currency,
                ))
            await self.db.commit()
        except (SQLAlchemyError, OSError):
            logger.exception("Offer mirror failed for session %s, continuing with local store only", self.session_id)
            await self.db.rollback()

    async def _price_id_for(self, item: LineItem) -> Optional[int]:
        """Price row in the item's currency, else any price of the product."""
        result = await self.db.execute(
            select(ParkProductPrice.id)
            .join(Currency, Currency.id == ParkProductPrice.currency_id)
            .where(
                ParkProductPrice.park_product_id == item.park_product_id,
                Currency.currency_name == item.currency,
            )
            .order_by(ParkProductPrice.id)
            .limit(1)
        )
        price_id = result.scalar_one_or_none()
        if price_id is not None:
            return price_id

        result = await self.db.execute(
            select(ParkProductPrice.id)
            .where(ParkProductPrice.park_product_id == item.park_product_id)
            .order_by(ParkProductPrice.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _load_backing(self) -> List[LineItem]:
        offer_id = self.store.get(self.offer_key)
        if not offer_id:
            return []

        result = await self.db.execute(
            select(
                OfferParkService,
                ParkProduct,
                NationalPark.national_park_name,
                ParkCategory.category_name,
                EntryType.entry_name,
                Currency.currency_name,
            )
            .join(ParkProductPrice, ParkProductPrice.id == OfferParkService.park_product_price_id)
            .join(ParkProduct, ParkProduct.id == ParkProductPrice.park_product_id)
            .join(NationalPark, NationalPark.id == ParkProduct.national_park_id)
            .join(EntryType, EntryType.id == ParkProduct.entry_type_id)
            .join(Currency, Currency.id == ParkProductPrice.currency_id)
            .outerjoin(ParkCategory, ParkCategory.id == ParkProduct.park_category_id)
            .where(OfferParkService.offer_id == offer_id)
            .order_by(OfferParkService.id)
        )

        items = []
        for service, product, park_name, category_name, entry_name, currency_name in result.all():
            duration, pax = parse_description(service.description)
            unit_price = Decimal(str(service.final_service_price))
            # Mirror rows can point at a price in the other currency
            currency = (service.currency or currency_name or "USD").upper()
            if currency not in ("USD", "TZS"):
                logger.warning("Skipping offer service %s in unsupported currency %s", service.id, currency)
                continue
            items.append(LineItem(
                id=service.line_item_id or str(service.id),
                park_product_id=product.id,
                park_id=product.national_park_id,
                park_name=park_name,
                product_name=product.product_name,
                category=category_name or "No Category",
                entry_type=entry_name,
                duration=duration,
                pax=pax,
                unit_price=float(unit_price),
                price=float(unit_price * duration * pax),
                currency=currency,
            ))
        return items
