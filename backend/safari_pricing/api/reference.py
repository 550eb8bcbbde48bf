"""Reference data endpoints"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from safari_pricing.core.database import get_db
from safari_pricing.schemas.reference import (
    ReferenceDataResponse,
    ParkResponse,
    CategoryResponse,
    EntryTypeResponse,
)
from safari_pricing.services.reference_loader import ReferenceDataLoader

router = APIRouter()


@router.get("/", response_model=ReferenceDataResponse)
async def load_reference_data(db: AsyncSession = Depends(get_db)):
    """
    All lookup tables for the pricing selectors.

    A lookup that fails to load comes back empty and is named in `failed`;
    call again to retry.
    """
    data = await ReferenceDataLoader(db).load_all()
    return ReferenceDataResponse.model_validate(data, from_attributes=True)


@router.get("/parks", response_model=List[ParkResponse])
async def list_parks(db: AsyncSession = Depends(get_db)):
    parks = await ReferenceDataLoader(db).load("parks") or []
    return [ParkResponse.model_validate(p) for p in parks]


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    categories = await ReferenceDataLoader(db).load("categories") or []
    return [CategoryResponse.model_validate(c) for c in categories]


@router.get("/entry-types", response_model=List[EntryTypeResponse])
async def list_entry_types(db: AsyncSession = Depends(get_db)):
    entry_types = await ReferenceDataLoader(db).load("entry_types") or []
    return [EntryTypeResponse.model_validate(e) for e in entry_types]
