"""Offer models (backing mirror of quote line items)"""
from sqlalchemy import Column, Integer, String, Numeric, Boolean, Date, DateTime, ForeignKey
from sqlalchemy.sql import func

from safari_pricing.core.database import Base


class Offer(Base):
    __tablename__ = "offer"

    id = Column(Integer, primary_key=True, index=True)
    offer_code = Column(String(50), unique=True, nullable=False)
    offer_name = Column(String(255), nullable=False)
    active_from = Column(Date)
    active_to = Column(Date)
    accepted = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class OfferParkService(Base):
    """
    One park line item of an offer.

    Duration and pax are not columns; they travel in `description` as
    "Duration: D, PAX: P".
    """
    __tablename__ = "offer_park_services"

    id = Column(Integer, primary_key=True, index=True)
    offer_id = Column(Integer, ForeignKey("offer.id"), nullable=False, index=True)
    park_product_price_id = Column(Integer, ForeignKey("park_product_price.id"), nullable=False)
    price = Column(Numeric(14, 4), nullable=False)  # unit price
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    final_service_price = Column(Numeric(14, 4), nullable=False)
    description = Column(String)
    line_item_id = Column(String(36), index=True)
    currency = Column(String(3))  # USD or TZS of the line item
    created_at = Column(DateTime(timezone=True), server_default=func.now())
