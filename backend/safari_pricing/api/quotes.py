"""Quote endpoints - park product catalog and line items of a quote session"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi import Limiter
from slowapi.util import get_remote_address

from safari_pricing.api.deps import get_local_store, http_error
from safari_pricing.core.config import settings
from safari_pricing.core.database import get_db
from safari_pricing.core.errors import PricingError, NotFoundError
from safari_pricing.schemas.quote import (
    CatalogResponse,
    DisplayPriceResponse,
    LineItem,
    LineItemListResponse,
    LineItemRequest,
    ProductOptionWithDisplay,
    QuoteTotals,
)
from safari_pricing.services.local_store import LocalStore
from safari_pricing.services.offer_composer import OfferComposer
from safari_pricing.services.price_display import display_price
from safari_pricing.services.quote_catalog import QuoteCatalog

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


async def _composer(session_id: str, db: AsyncSession, store: LocalStore) -> OfferComposer:
    composer = OfferComposer(db, store, session_id)
    await composer.load()
    return composer


def _with_display(option, rate: Optional[float]) -> ProductOptionWithDisplay:
    shown = display_price(option.usd_price, option.tzs_price, rate)
    return ProductOptionWithDisplay(
        **option.model_dump(),
        display=DisplayPriceResponse(usd=float(shown.usd), tzs=float(shown.tzs)),
    )


@router.get("/{session_id}/products", response_model=CatalogResponse)
async def list_products(
    session_id: str,
    park_id: int = Query(..., description="Selected park"),
    category_name: str = Query(..., description="Selected category name"),
    entry_name: str = Query(..., description="Selected entry type name"),
    trip_start: Optional[date] = Query(None),
    trip_end: Optional[date] = Query(None),
    usd_to_tzs_rate: Optional[float] = Query(None, gt=0),
    db: AsyncSession = Depends(get_db),
):
    """Priced products for the selection, limited to seasons overlapping the trip when possible."""
    try:
        catalog = await QuoteCatalog(db).products_for(
            park_id, category_name, entry_name, trip_start, trip_end
        )
    except PricingError as exc:
        raise http_error(exc)

    return CatalogResponse(
        usd_products=[_with_display(o, usd_to_tzs_rate) for o in catalog.usd_products],
        tzs_products=[_with_display(o, usd_to_tzs_rate) for o in catalog.tzs_products],
        season_filtered=catalog.season_filtered,
    )


@router.get("/{session_id}/parks", response_model=LineItemListResponse)
async def list_line_items(
    session_id: str,
    db: AsyncSession = Depends(get_db),
    store: LocalStore = Depends(get_local_store),
):
    composer = await _composer(session_id, db, store)
    return LineItemListResponse(session_id=session_id, items=composer.items, totals=composer.totals())


@router.get("/{session_id}/parks/{item_id}", response_model=LineItem)
async def get_line_item(
    session_id: str,
    item_id: str,
    db: AsyncSession = Depends(get_db),
    store: LocalStore = Depends(get_local_store),
):
    """Stored dimensions of a line item, used to pre-populate the edit form."""
    composer = await _composer(session_id, db, store)
    try:
        return composer.get(item_id)
    except NotFoundError as exc:
        raise http_error(exc)


async def _save_line_item(
    session_id: str,
    data: LineItemRequest,
    db: AsyncSession,
    store: LocalStore,
    editing_id: Optional[str] = None,
) -> LineItem:
    try:
        catalog = await QuoteCatalog(db).products_for(
            data.park_id, data.category_name, data.entry_name, data.trip_start, data.trip_end
        )
        option = catalog.find(data.park_product_id)
        if option is None:
            raise NotFoundError(f"Product {data.park_product_id} has no price for this selection")

        composer = await _composer(session_id, db, store)
        return await composer.add_line_item(
            option,
            data.currency,
            data.duration,
            data.pax,
            editing_id=editing_id,
            park_id=data.park_id,
            trip_start=data.trip_start,
            trip_end=data.trip_end,
            rate=data.usd_to_tzs_rate,
        )
    except PricingError as exc:
        raise http_error(exc)


@router.post("/{session_id}/parks", response_model=LineItem)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def add_line_item(
    request: Request,
    session_id: str,
    data: LineItemRequest,
    db: AsyncSession = Depends(get_db),
    store: LocalStore = Depends(get_local_store),
):
    """Add a park line item; total = unit price with tax x duration x pax."""
    return await _save_line_item(session_id, data, db, store)


@router.put("/{session_id}/parks/{item_id}", response_model=LineItem)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def edit_line_item(
    request: Request,
    session_id: str,
    item_id: str,
    data: LineItemRequest,
    db: AsyncSession = Depends(get_db),
    store: LocalStore = Depends(get_local_store),
):
    """Replace the line item in place, or append it if the id is unknown."""
    return await _save_line_item(session_id, data, db, store, editing_id=item_id)


@router.delete("/{session_id}/parks/{item_id}", response_model=LineItemListResponse)
async def remove_line_item(
    session_id: str,
    item_id: str,
    db: AsyncSession = Depends(get_db),
    store: LocalStore = Depends(get_local_store),
):
    composer = await _composer(session_id, db, store)
    try:
        await composer.remove_line_item(item_id)
    except PricingError as exc:
        raise http_error(exc)
    return LineItemListResponse(session_id=session_id, items=composer.items, totals=composer.totals())


@router.get("/{session_id}/totals", response_model=QuoteTotals)
async def quote_totals(
    session_id: str,
    db: AsyncSession = Depends(get_db),
    store: LocalStore = Depends(get_local_store),
):
    composer = await _composer(session_id, db, store)
    return composer.totals()
