"""
Adapters for the two external datasets: world countries and USD exchange rates.
Each adapter performs a single GET and either returns normalized data or
raises SourceUnavailable. No retries happen here.
"""
import logging
import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Optional, Protocol

import requests

from countries_api.config import get_settings
from countries_api.utils.errors import SourceUnavailable

logger = logging.getLogger(__name__)


@dataclass
class SourceCountryEntry:
    name: Optional[str]
    population: Any = None
    capital: Optional[str] = None
    region: Optional[str] = None
    flag_url: Optional[str] = None
    currency_codes: list = field(default_factory=list)

    @classmethod
    def from_payload(cls, item) -> "SourceCountryEntry":
        """Build an entry from one raw countries-API item, tolerating missing keys."""
        if not isinstance(item, dict):
            return cls(name=None)

        currencies = item.get("currencies") or []
        if not isinstance(currencies, list):
            currencies = []
        codes = [c.get("code") if isinstance(c, dict) else None for c in currencies]

        return cls(
            name=item.get("name"),
            population=item.get("population"),
            capital=item.get("capital"),
            region=item.get("region"),
            flag_url=item.get("flag"),
            currency_codes=codes,
        )


class CountriesSourceLike(Protocol):
    def fetch_countries(self) -> list[SourceCountryEntry]: ...


class RatesSourceLike(Protocol):
    def fetch_rates(self) -> dict[str, float]: ...


def _get_json(http, url: str, timeout: float, source: str):
    logger.info("Fetching %s from: %s", source, url)
    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        # Any HTTP, status or timeout-related issue
        logger.error("%s API request failed: %s", source, e)
        raise SourceUnavailable(source, e) from e
    except ValueError as e:
        # Body was not valid JSON
        logger.error("%s API returned an undecodable body: %s", source, e)
        raise SourceUnavailable(source, e) from e


class CountriesSource:
    """Fetches the restcountries v2 listing."""

    def __init__(self, url: str | None = None, timeout: float | None = None, http=None):
        settings = get_settings()
        self.url = url or settings.countries_api_url
        self.timeout = timeout if timeout is not None else settings.fetch_timeout_seconds
        self.http = http or requests

    def fetch_countries(self) -> list[SourceCountryEntry]:
        data = _get_json(self.http, self.url, self.timeout, "countries")

        if not isinstance(data, list):
            logger.error("Countries API returned invalid data type: %s", type(data).__name__)
            raise SourceUnavailable("countries", "Invalid data format from countries API")

        entries = [SourceCountryEntry.from_payload(item) for item in data]
        logger.info("Successfully fetched countries data (count=%d)", len(entries))
        return entries


def _is_valid_rate(value) -> bool:
    if not isinstance(value, Real) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value) and value >= 0
    except OverflowError:
        # Integers too large for a float
        return False


class RatesSource:
    """Fetches the open.er-api USD rates table."""

    def __init__(self, url: str | None = None, timeout: float | None = None, http=None):
        settings = get_settings()
        self.url = url or settings.exchange_api_url
        self.timeout = timeout if timeout is not None else settings.fetch_timeout_seconds
        self.http = http or requests

    def fetch_rates(self) -> dict[str, float]:
        data = _get_json(self.http, self.url, self.timeout, "rates")

        rates = data.get("rates") if isinstance(data, dict) else None
        if not isinstance(rates, dict):
            logger.error("Exchange Rates API returned invalid structure: missing rates mapping")
            raise SourceUnavailable("rates", "Invalid data format from exchange rates API - missing rates mapping")

        table = {}
        for code, value in rates.items():
            if _is_valid_rate(value):
                table[code] = float(value)
            else:
                logger.warning("Dropping invalid exchange rate for %s: %r", code, value)

        logger.info("Successfully fetched exchange rates (currencies=%d)", len(table))
        return table
