"""
Turns one source country entry plus the rates table into the values stored
for that country. All currency and GDP rules live here; nothing in this
module touches the network or the database.
"""
import random
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from numbers import Integral, Real
from typing import Callable, Optional, Union

from countries_api.utils.sources import SourceCountryEntry

GDP_MULTIPLIER_MIN = 1000
GDP_MULTIPLIER_MAX = 2000
# Largest value a BIGINT population column holds
MAX_POPULATION = 2**63 - 1


class SkipReason(str, Enum):
    MISSING_REQUIRED_FIELD = "missing_required_field"
    INVALID_FIELD = "invalid_field"


@dataclass
class CountryRecordData:
    name: str
    capital: Optional[str]
    region: Optional[str]
    population: int
    currency_code: Optional[str]
    exchange_rate: Optional[float]
    estimated_gdp: Optional[float]
    flag_url: Optional[str]
    last_refreshed_at: datetime


def make_multiplier(rng: random.Random | None = None) -> Callable[[], int]:
    """
    Return a provider of GDP multipliers drawn uniformly from [1000, 2000].
    Pass a seeded random.Random for reproducible draws.
    """
    rng = rng or random.Random()

    def draw() -> int:
        return rng.randint(GDP_MULTIPLIER_MIN, GDP_MULTIPLIER_MAX)

    return draw


_default_multiplier = make_multiplier()


def _coerce_population(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, Integral):
        return int(value)
    if isinstance(value, Real) and float(value).is_integer():
        return int(value)
    return None


def first_currency_code(entry: SourceCountryEntry) -> Optional[str]:
    if not entry.currency_codes:
        return None
    code = entry.currency_codes[0]
    if isinstance(code, str) and code:
        return code
    return None


def reconcile(
    entry: SourceCountryEntry,
    rates: dict[str, float],
    now: datetime,
    multiplier: Callable[[], int] = _default_multiplier,
) -> Union[CountryRecordData, SkipReason]:
    # --- Required fields ---
    if not entry.name or not isinstance(entry.name, str) or entry.population is None:
        return SkipReason.MISSING_REQUIRED_FIELD

    population = _coerce_population(entry.population)
    if population is None or not 0 <= population <= MAX_POPULATION:
        return SkipReason.INVALID_FIELD

    # --- Currency / GDP ---
    currency_code = first_currency_code(entry)

    if currency_code is None:
        exchange_rate = None
        estimated_gdp = 0
    elif currency_code in rates:
        exchange_rate = float(rates[currency_code])
        if exchange_rate > 0:
            estimated_gdp = population * multiplier() / exchange_rate
        else:
            estimated_gdp = None
    else:
        exchange_rate = None
        estimated_gdp = None

    return CountryRecordData(
        name=entry.name,
        capital=entry.capital,
        region=entry.region,
        population=population,
        currency_code=currency_code,
        exchange_rate=exchange_rate,
        estimated_gdp=estimated_gdp,
        flag_url=entry.flag_url,
        last_refreshed_at=now,
    )
