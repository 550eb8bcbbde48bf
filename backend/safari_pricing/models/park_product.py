"""Park product and price models"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from safari_pricing.core.database import Base


class ParkProduct(Base):
    """
    Identity of a sellable (park, category, entry type, age group, pricing type)
    combination. Carries no price.

    The tuple is unique. NULL categories compare as distinct, so tuples
    without a category rely on the resolver's pre-insert lookup alone.
    """
    __tablename__ = "park_product"
    __table_args__ = (
        UniqueConstraint(
            "national_park_id", "park_category_id", "entry_type_id", "age_group", "pricing_type_id",
            name="uq_park_product_tuple",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    national_park_id = Column(Integer, ForeignKey("national_parks.id"), nullable=False, index=True)
    park_category_id = Column(Integer, ForeignKey("park_category.id"), nullable=True)
    entry_type_id = Column(Integer, ForeignKey("entry_type.id"), nullable=False)
    age_group = Column(Integer, ForeignKey("age_group.id"), nullable=False)
    pricing_type_id = Column(Integer, ForeignKey("pricing_type.id"), nullable=False)
    product_name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ParkProductPrice(Base):
    """Price of a product for one season, currency and tax behavior"""
    __tablename__ = "park_product_price"

    id = Column(Integer, primary_key=True, index=True)
    park_product_id = Column(Integer, ForeignKey("park_product.id"), nullable=False, index=True)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False)
    currency_id = Column(Integer, ForeignKey("currency.id"), nullable=False)
    unit_amount = Column(Numeric(12, 2), nullable=False)
    tax_behavior = Column(Integer, nullable=False)  # 1 = inclusive, 2 (legacy 4) = exclusive
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
