import logging
import os

from fastapi import APIRouter, HTTPException, Depends, status, Query
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from countries_api.db.database import get_db
from countries_api.utils.country_tools import refresh_countries_data
from countries_api.utils.errors import CountryCacheError, CountryNotFound
from countries_api.utils.sources import CountriesSource, RatesSource
from countries_api.utils.storage import CountryRepository, RefreshMarkerStore
from countries_api.utils.summary_image import generate_summary_image, get_summary_image_path
from countries_api.v1.schemas.country_info import CountryInfo, RefreshResponse, StatusInfo

logger = logging.getLogger(__name__)

country_ops = APIRouter(tags=["Countries"])


def get_countries_source() -> CountriesSource:
    return CountriesSource()


def get_rates_source() -> RatesSource:
    return RatesSource()


def get_summary_renderer():
    return generate_summary_image


def _http_error(exc: CountryCacheError) -> HTTPException:
    return HTTPException(status_code=exc.http_status, detail=exc.to_detail())


@country_ops.post("/countries/refresh", status_code=status.HTTP_200_OK, response_model=RefreshResponse)
def refresh_countries_endpoint(
    db: Session = Depends(get_db),
    countries_source=Depends(get_countries_source),
    rates_source=Depends(get_rates_source),
    summary_renderer=Depends(get_summary_renderer),
):
    """
    Fetches all countries and exchange rates, then updates or caches
    them in the database.
    """
    try:
        result = refresh_countries_data(
            db, countries_source, rates_source, on_committed=summary_renderer,
        )
    except CountryCacheError as e:
        raise _http_error(e)

    return RefreshResponse(
        processed=result.processed,
        last_refreshed_at=result.last_refreshed_at,
    )


@country_ops.get("/countries", status_code=status.HTTP_200_OK, response_model=list[CountryInfo])
def get_all_countries(
    region: str | None = Query(None, description="Filter by region"),
    currency: str | None = Query(None, description="Filter by currency code"),
    sort: str | None = Query(None, description="Sort by GDP: gdp_desc or gdp_asc"),
    db: Session = Depends(get_db),
):
    try:
        countries = CountryRepository(db).list(region=region, currency_code=currency, sort=sort)
    except CountryCacheError as e:
        raise _http_error(e)

    return [CountryInfo.model_validate(country) for country in countries]


@country_ops.get("/countries/image", status_code=status.HTTP_200_OK)
def get_summary_image():
    path = get_summary_image_path()
    if not os.path.exists(path):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Summary image not found"},
        )
    return FileResponse(path, media_type="image/png")


@country_ops.get("/countries/{name}", status_code=status.HTTP_200_OK, response_model=CountryInfo)
def get_country_by_name(name: str, db: Session = Depends(get_db)):
    """
    Retrieve a specific country by its name (case-insensitive).
    """
    country = CountryRepository(db).find_by_name(name)
    if not country:
        raise _http_error(CountryNotFound(name))

    return CountryInfo.model_validate(country)


@country_ops.delete("/countries/{name}", status_code=status.HTTP_200_OK)
def delete_country(name: str, db: Session = Depends(get_db)):
    """
    Delete a country record by name.
    """
    country = CountryRepository(db).delete(name)
    if not country:
        raise _http_error(CountryNotFound(name))

    db.commit()
    logger.info("Deleted country %s", country.country_name)

    return {"message": f"Country '{country.country_name}' deleted successfully."}


@country_ops.get("/status", status_code=status.HTTP_200_OK, response_model=StatusInfo)
def get_status(db: Session = Depends(get_db)):
    """
    Return total countries and the most recent refresh timestamp.
    """
    countries = CountryRepository(db)
    last_refresh = RefreshMarkerStore(db).get() or countries.latest_refresh()

    return StatusInfo(total_countries=countries.count(), last_refreshed_at=last_refresh)
