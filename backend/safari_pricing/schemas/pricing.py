"""Park pricing request/response schemas"""
from typing import Dict, List, Optional, Literal
from decimal import Decimal
from pydantic import BaseModel, Field


TaxBehaviorName = Literal['inclusive', 'exclusive']


class ProductResolveRequest(BaseModel):
    """Product tuple; a missing category means 'no category', not 'any'"""
    national_park_id: int
    park_category_id: Optional[int] = None
    entry_type_id: int
    age_group_id: int
    pricing_type_id: int


class ProductResolveResponse(BaseModel):
    product_id: int


class PriceCreateRequest(BaseModel):
    park_product_id: int
    season_id: int
    currency_id: int
    tax_behavior: TaxBehaviorName = 'exclusive'
    unit_amount: Decimal


class PriceResolutionResponse(BaseModel):
    created: bool
    price_id: Optional[int] = None
    message: Optional[str] = None


class PriceUpdateRequest(BaseModel):
    unit_amount: Decimal
    currency_id: int
    tax_behavior: TaxBehaviorName


class BatchPricingRequest(BaseModel):
    """One price applied to every park x entry type x age group combination"""
    park_ids: List[int] = Field(default_factory=list)
    park_category_id: Optional[int] = None
    entry_type_ids: List[int] = Field(default_factory=list)
    age_group_ids: List[int] = Field(default_factory=list)
    pricing_type_id: Optional[int] = None
    season_id: Optional[int] = None
    currency_id: Optional[int] = None
    tax_behavior: TaxBehaviorName = 'exclusive'
    unit_amount: Optional[Decimal] = None


class CombinationResult(BaseModel):
    park_id: int
    park_name: str
    entry_type_id: int
    age_group_id: int
    product_id: Optional[int] = None
    price_id: Optional[int] = None
    status: Literal['created', 'duplicate', 'failed']
    message: Optional[str] = None


class BatchPricingResponse(BaseModel):
    created_count: int
    total_combinations: int
    results: List[CombinationResult] = Field(default_factory=list)
    conflicts: List[str] = Field(default_factory=list, description="Parks with an exact duplicate")
    aborted: bool = False
    error: Optional[str] = None
    failed_combination: Optional[CombinationResult] = None


class ClassifyRequest(BaseModel):
    """Fixed dimensions plus the candidate parks to annotate"""
    park_ids: List[int]
    park_category_id: Optional[int] = None
    entry_type_ids: List[int]
    age_group_ids: List[int]
    pricing_type_id: int
    season_id: Optional[int] = None
    currency_id: Optional[int] = None
    tax_behavior: TaxBehaviorName = 'exclusive'


class CandidateStatus(BaseModel):
    has_product: bool = False
    has_exact_price: bool = False
    status: Literal['new', 'existing_product', 'exact_duplicate'] = 'new'


class ClassifyResponse(BaseModel):
    candidates: Dict[int, CandidateStatus]
    conflicts: List[int] = Field(default_factory=list, description="Parks with an exact duplicate")


class ParkPricingRow(BaseModel):
    """Readable row of the park pricing table"""
    id: int
    price_id: Optional[int] = None
    product_name: str
    product_code: str
    park_name: str
    entry_type: str
    age_group: str
    category_name: str
    pricing_type: str
    price: float
    season_name: str
    currency_name: str
    tax_behavior: Optional[TaxBehaviorName] = None


class ParkPricingListResponse(BaseModel):
    rows: List[ParkPricingRow]
    count: int
