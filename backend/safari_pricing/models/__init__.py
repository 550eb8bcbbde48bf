from safari_pricing.models.reference import (
    NationalPark,
    ParkCategory,
    EntryType,
    AgeGroup,
    PricingType,
    Season,
    Currency,
)
from safari_pricing.models.park_product import ParkProduct, ParkProductPrice
from safari_pricing.models.offer import Offer, OfferParkService

__all__ = [
    "NationalPark",
    "ParkCategory",
    "EntryType",
    "AgeGroup",
    "PricingType",
    "Season",
    "Currency",
    "ParkProduct",
    "ParkProductPrice",
    "Offer",
    "OfferParkService",
]
