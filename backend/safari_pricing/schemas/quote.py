"""Quote composition schemas"""
from datetime import date
from typing import List, Optional, Literal
from pydantic import BaseModel, Field


QuoteCurrency = Literal['USD', 'TZS']


class ProductOption(BaseModel):
    """A park product with its USD and TZS prices side by side (0 = not set)"""
    id: int
    product_name: str
    park_name: str
    category_name: str
    entry_name: str
    usd_price: float = 0
    tzs_price: float = 0
    usd_tax_behavior: Optional[int] = None
    tzs_tax_behavior: Optional[int] = None
    usd_currency_id: Optional[int] = None
    tzs_currency_id: Optional[int] = None


class DisplayPriceResponse(BaseModel):
    usd: float
    tzs: float


class ProductOptionWithDisplay(ProductOption):
    display: DisplayPriceResponse


class CatalogResponse(BaseModel):
    usd_products: List[ProductOptionWithDisplay]
    tzs_products: List[ProductOptionWithDisplay]
    season_filtered: bool = Field(
        False, description="False when no product matched the trip dates and the unfiltered set is returned"
    )


class LineItem(BaseModel):
    """One park selection in a quote; `price` is the line total"""
    id: str
    park_product_id: int
    park_id: Optional[int] = None
    park_name: str
    product_name: str
    category: str
    entry_type: str
    duration: int
    pax: int
    unit_price: float
    price: float
    currency: QuoteCurrency


class LineItemRequest(BaseModel):
    park_product_id: int
    park_id: int
    category_name: str
    entry_name: str
    currency: QuoteCurrency = 'USD'
    duration: int = 1
    pax: int = Field(1, ge=1)
    trip_start: Optional[date] = None
    trip_end: Optional[date] = None
    usd_to_tzs_rate: Optional[float] = Field(None, gt=0)


class QuoteTotals(BaseModel):
    """USD and TZS totals are never combined"""
    usd_total: float
    tzs_total: float
    usd_count: int
    tzs_count: int


class LineItemListResponse(BaseModel):
    session_id: str
    items: List[LineItem]
    totals: QuoteTotals
