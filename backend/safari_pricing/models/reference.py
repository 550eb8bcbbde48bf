"""Reference data models (lookup tables)"""
from sqlalchemy import Column, Integer, String, Boolean, Date

from safari_pricing.core.database import Base


class NationalPark(Base):
    __tablename__ = "national_parks"

    id = Column(Integer, primary_key=True, index=True)
    national_park_name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class ParkCategory(Base):
    """Qualifier on a product, e.g. non-resident"""
    __tablename__ = "park_category"

    id = Column(Integer, primary_key=True, index=True)
    category_name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class EntryType(Base):
    __tablename__ = "entry_type"

    id = Column(Integer, primary_key=True, index=True)
    entry_name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class AgeGroup(Base):
    """Named age band; bands are not checked for overlap"""
    __tablename__ = "age_group"

    id = Column(Integer, primary_key=True, index=True)
    age_group_name = Column(String(100), nullable=False)
    min_age = Column(Integer, nullable=False, default=0)
    max_age = Column(Integer)


class PricingType(Base):
    """Unit of sale, e.g. per person"""
    __tablename__ = "pricing_type"

    id = Column(Integer, primary_key=True, index=True)
    pricing_type_name = Column(String(100), nullable=False)


class Season(Base):
    """Named date range; seasons may overlap"""
    __tablename__ = "seasons"

    id = Column(Integer, primary_key=True, index=True)
    season_name = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)


class Currency(Base):
    __tablename__ = "currency"

    id = Column(Integer, primary_key=True, index=True)
    currency_name = Column(String(10), nullable=False)  # 'USD', 'TZS'
