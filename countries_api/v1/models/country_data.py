from sqlalchemy import Column, String, Float, BigInteger, DateTime, Index
from sqlalchemy.dialects.mysql import CHAR

from countries_api.db.database import Base
from sqlalchemy.sql import func
import uuid


class CountryData(Base):
    __tablename__ = "country_data"

    country_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    country_name = Column(String(255), nullable=False)
    # Lower-cased copy of country_name; the unique index makes names case-insensitively unique
    name_key = Column(String(255), nullable=False, unique=True, index=True)
    capital = Column(String(255), nullable=True)
    region = Column(String(255), nullable=True)
    population = Column(BigInteger, nullable=False)
    currency_code = Column(String(10), nullable=True, index=True)
    exchange_rate = Column(Float, nullable=True)
    estimated_gdp = Column(Float, nullable=True)
    flag_url = Column(String(512), nullable=True)
    last_refreshed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (Index("ix_country_data_region_currency", "region", "currency_code"),)

    @staticmethod
    def key_for(name: str) -> str:
        return name.strip().lower()
