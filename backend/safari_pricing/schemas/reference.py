"""Reference data schemas"""
from datetime import date
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class ParkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    national_park_name: str


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_name: str


class EntryTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entry_name: str


class AgeGroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    age_group_name: str
    min_age: int
    max_age: Optional[int] = None


class PricingTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    pricing_type_name: str


class SeasonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    season_name: str
    start_date: date
    end_date: date


class CurrencyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    currency_name: str


class ReferenceDataResponse(BaseModel):
    """All lookups; a lookup that failed to load is an empty list"""
    parks: List[ParkResponse]
    categories: List[CategoryResponse]
    entry_types: List[EntryTypeResponse]
    age_groups: List[AgeGroupResponse]
    pricing_types: List[PricingTypeResponse]
    seasons: List[SeasonResponse]
    currencies: List[CurrencyResponse]
    failed: List[str] = []
