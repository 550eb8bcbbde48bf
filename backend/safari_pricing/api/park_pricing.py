"""Park pricing endpoints - products, prices, batch creation, duplicate badges"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi import Limiter
from slowapi.util import get_remote_address

from safari_pricing.api.deps import http_error
from safari_pricing.core.config import settings
from safari_pricing.core.database import get_db
from safari_pricing.core.errors import PricingError, DuplicatePriceError
from safari_pricing.schemas.pricing import (
    ProductResolveRequest,
    ProductResolveResponse,
    PriceCreateRequest,
    PriceResolutionResponse,
    PriceUpdateRequest,
    BatchPricingRequest,
    BatchPricingResponse,
    ClassifyRequest,
    ClassifyResponse,
    ParkPricingListResponse,
)
from safari_pricing.services.duplicate_detector import DuplicateDetector, conflicting_parks
from safari_pricing.services.price_resolver import PriceResolver
from safari_pricing.services.product_resolver import ProductResolver

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


@router.get("/", response_model=ParkPricingListResponse)
async def list_park_pricing(db: AsyncSession = Depends(get_db)):
    """Pricing table rows with readable names and short product codes."""
    try:
        rows = await PriceResolver(db).list_pricing()
    except PricingError as exc:
        raise http_error(exc)
    return ParkPricingListResponse(rows=rows, count=len(rows))


@router.post("/products/resolve", response_model=ProductResolveResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def resolve_product(
    request: Request,
    data: ProductResolveRequest,
    db: AsyncSession = Depends(get_db),
):
    """Existing product id for the tuple, creating the product on first use."""
    try:
        product_id = await ProductResolver(db).resolve_or_create_product(
            data.national_park_id,
            data.park_category_id,
            data.entry_type_id,
            data.age_group_id,
            data.pricing_type_id,
        )
    except PricingError as exc:
        raise http_error(exc)
    return ProductResolveResponse(product_id=product_id)


@router.post("/prices", response_model=PriceResolutionResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def create_price(
    request: Request,
    data: PriceCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create a price for a product. An exact duplicate is rejected with 409."""
    try:
        resolution = await PriceResolver(db).resolve_or_create_price(
            data.park_product_id,
            data.season_id,
            data.currency_id,
            data.tax_behavior,
            data.unit_amount,
        )
        if not resolution.created:
            raise DuplicatePriceError(resolution.message, conflicts=resolution.conflicts)
    except PricingError as exc:
        raise http_error(exc)
    return PriceResolutionResponse(created=True, price_id=resolution.price_id)


@router.post("/batch", response_model=BatchPricingResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def create_pricing_batch(
    request: Request,
    data: BatchPricingRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Price every park x entry type x age group combination.

    Exact duplicates are listed in `conflicts` and skipped. When the store
    fails mid-batch, `aborted` is set and `failed_combination` names the
    combination; earlier combinations are already saved.
    """
    try:
        return await PriceResolver(db).create_pricing_batch(data)
    except PricingError as exc:
        raise http_error(exc)


@router.post("/classify", response_model=ClassifyResponse)
async def classify_candidates(
    data: ClassifyRequest,
    db: AsyncSession = Depends(get_db),
):
    """Existing Product / Exact Duplicate badges for each candidate park."""
    try:
        candidates = await DuplicateDetector(db).classify_candidates(data)
    except PricingError as exc:
        raise http_error(exc)
    return ClassifyResponse(candidates=candidates, conflicts=conflicting_parks(candidates))


@router.put("/prices/{price_id}", response_model=PriceResolutionResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def update_price(
    request: Request,
    price_id: int,
    data: PriceUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        price = await PriceResolver(db).update_price(
            price_id, data.unit_amount, data.currency_id, data.tax_behavior
        )
    except PricingError as exc:
        raise http_error(exc)
    return PriceResolutionResponse(created=False, price_id=price.id, message="Pricing updated")


@router.delete("/prices/{price_id}", status_code=204)
async def delete_price(price_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await PriceResolver(db).delete_price(price_id)
    except PricingError as exc:
        raise http_error(exc)


@router.delete("/products/{product_id}", status_code=204)
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a product with no remaining prices."""
    try:
        await PriceResolver(db).delete_product(product_id)
    except PricingError as exc:
        raise http_error(exc)
