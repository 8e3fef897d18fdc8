import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from countries_api.utils.errors import InternalFailure, RefreshInProgress, SourceUnavailable
from countries_api.utils.reconcile import SkipReason, reconcile, make_multiplier
from countries_api.utils.sources import CountriesSourceLike, RatesSourceLike
from countries_api.utils.storage import CountryRepository, RefreshMarkerStore

logger = logging.getLogger(__name__)

# Only one refresh may run per process at a time
_refresh_lock = threading.Lock()


@dataclass
class RefreshResult:
    processed: int
    last_refreshed_at: datetime
    created: int = 0
    updated: int = 0
    skipped: int = 0


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def fetch_sources(countries_source: CountriesSourceLike, rates_source: RatesSourceLike):
    """
    Fetch both datasets concurrently. A countries failure is reported ahead
    of a rates failure when both fail.
    """
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="source-fetch") as pool:
        countries_future = pool.submit(countries_source.fetch_countries)
        rates_future = pool.submit(rates_source.fetch_rates)

        try:
            countries = countries_future.result()
        except SourceUnavailable:
            raise
        except Exception as e:
            raise SourceUnavailable("countries", e) from e

        try:
            rates = rates_future.result()
        except SourceUnavailable:
            raise
        except Exception as e:
            raise SourceUnavailable("rates", e) from e

    return countries, rates


def refresh_countries_data(
    db: Session,
    countries_source: CountriesSourceLike,
    rates_source: RatesSourceLike,
    *,
    multiplier: Optional[Callable[[], int]] = None,
    clock: Callable[[], datetime] = utc_now,
    on_committed: Optional[Callable[[Session], object]] = None,
) -> RefreshResult:
    """
    Fetch all countries and exchange rates, then create or update every
    country record and the last-refresh marker in a single transaction.

    Raises SourceUnavailable when either fetch fails (nothing is written),
    InternalFailure when the database rejects the batch (everything is
    rolled back) and RefreshInProgress when another refresh is running.
    """
    if not _refresh_lock.acquire(blocking=False):
        raise RefreshInProgress("A refresh is already running")

    try:
        result = _run_refresh(db, countries_source, rates_source, multiplier or make_multiplier(), clock)
    finally:
        _refresh_lock.release()

    # --- Best-effort summary image ---
    if on_committed is not None:
        try:
            on_committed(db)
        except Exception:
            logger.exception("Summary image generation failed")

    return result


def _run_refresh(db, countries_source, rates_source, multiplier, clock) -> RefreshResult:
    countries_data, rates = fetch_sources(countries_source, rates_source)

    now = clock()
    countries = CountryRepository(db)
    marker = RefreshMarkerStore(db)
    result = RefreshResult(processed=0, last_refreshed_at=now)

    try:
        for entry in countries_data:
            record = reconcile(entry, rates, now, multiplier)
            if isinstance(record, SkipReason):
                logger.warning("Skipping country %r: %s", entry.name, record.value)
                result.skipped += 1
                continue

            _, created = countries.upsert(record)
            if created:
                result.created += 1
            else:
                result.updated += 1
            result.processed += 1

        # Update global timestamp
        marker.set(now)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Refresh failed during DB update: %s", e)
        raise InternalFailure(cause=e) from e
    except Exception as e:
        # Driver errors that SQLAlchemy does not wrap, e.g. OverflowError on bind
        db.rollback()
        logger.exception("Refresh failed during DB update")
        raise InternalFailure(cause=e) from e

    logger.info(
        "Countries refreshed: processed=%d created=%d updated=%d skipped=%d",
        result.processed, result.created, result.updated, result.skipped,
    )
    return result
