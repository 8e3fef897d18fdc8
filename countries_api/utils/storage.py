"""
SQLAlchemy-backed storage for country records and the last-refresh marker.

The session passed in is the unit of work: these classes never commit, the
caller decides when to commit or roll back.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from countries_api.utils.errors import InvalidQuery
from countries_api.utils.reconcile import CountryRecordData
from countries_api.v1.models.country_data import CountryData
from countries_api.v1.models.system_meta import SystemMeta, LAST_REFRESH_KEY

SORT_OPTIONS = ("gdp_desc", "gdp_asc")


class CountryRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_name(self, name: str) -> Optional[CountryData]:
        """Case-insensitive exact lookup."""
        return (
            self.db.query(CountryData)
            .filter(CountryData.name_key == CountryData.key_for(name))
            .first()
        )

    def create(self, record: CountryRecordData) -> CountryData:
        country = CountryData(
            country_name=record.name,
            name_key=CountryData.key_for(record.name),
        )
        self._apply(country, record)
        self.db.add(country)
        # Flush so later lookups in the same batch see the new row
        self.db.flush()
        return country

    def update(self, country: CountryData, record: CountryRecordData) -> CountryData:
        self._apply(country, record)
        self.db.flush()
        return country

    def upsert(self, record: CountryRecordData) -> tuple[CountryData, bool]:
        """Update the row matching the name case-insensitively, else create one.
        Returns the row and whether it was created."""
        existing = self.find_by_name(record.name)
        if existing:
            return self.update(existing, record), False
        return self.create(record), True

    def delete(self, name: str) -> Optional[CountryData]:
        country = self.find_by_name(name)
        if country is not None:
            self.db.delete(country)
            self.db.flush()
        return country

    def list(self, region: str | None = None, currency_code: str | None = None, sort: str | None = None):
        # --- Base Query ---
        query = self.db.query(CountryData)

        # --- Filters ---
        if region:
            query = query.filter(CountryData.region == region)
        if currency_code:
            query = query.filter(CountryData.currency_code == currency_code)

        # --- Sorting (null GDP always last) ---
        gdp_missing = CountryData.estimated_gdp.is_(None)
        if sort == "gdp_desc":
            query = query.order_by(gdp_missing, CountryData.estimated_gdp.desc(), CountryData.country_name.asc())
        elif sort == "gdp_asc":
            query = query.order_by(gdp_missing, CountryData.estimated_gdp.asc(), CountryData.country_name.asc())
        elif sort is None:
            query = query.order_by(CountryData.country_name.asc())
        else:
            raise InvalidQuery({"sort": f"Unsupported sort value. Allowed: {', '.join(SORT_OPTIONS)}"})

        return query.all()

    def count(self) -> int:
        return self.db.query(func.count(CountryData.country_id)).scalar() or 0

    def top_by_gdp(self, limit: int = 5):
        return (
            self.db.query(CountryData.country_name, CountryData.estimated_gdp)
            .filter(CountryData.estimated_gdp.isnot(None))
            .order_by(CountryData.estimated_gdp.desc())
            .limit(limit)
            .all()
        )

    def latest_refresh(self) -> Optional[datetime]:
        return self.db.query(func.max(CountryData.last_refreshed_at)).scalar()

    @staticmethod
    def _apply(country: CountryData, record: CountryRecordData) -> None:
        # Full overwrite; the stored name keeps its original spelling
        country.capital = record.capital
        country.region = record.region
        country.population = record.population
        country.currency_code = record.currency_code
        country.exchange_rate = record.exchange_rate
        country.estimated_gdp = record.estimated_gdp
        country.flag_url = record.flag_url
        country.last_refreshed_at = record.last_refreshed_at


class RefreshMarkerStore:
    """The single persisted timestamp of the last successful refresh."""

    def __init__(self, db: Session):
        self.db = db

    def _row(self) -> Optional[SystemMeta]:
        return self.db.query(SystemMeta).filter(SystemMeta.key == LAST_REFRESH_KEY).first()

    def get(self) -> Optional[datetime]:
        meta = self._row()
        return meta.last_refreshed_at if meta else None

    def set(self, timestamp: datetime) -> None:
        meta = self._row()
        if not meta:
            meta = SystemMeta(key=LAST_REFRESH_KEY, last_refreshed_at=timestamp)
            self.db.add(meta)
        else:
            meta.last_refreshed_at = timestamp
        self.db.flush()
