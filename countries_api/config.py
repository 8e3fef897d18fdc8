import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

# Load environment variables
load_dotenv(".env.config")

COUNTRIES_URL = "https://restcountries.com/v2/all?fields=name,capital,region,population,flag,currencies"
EXCHANGE_URL = "https://open.er-api.com/v6/latest/USD"


@dataclass(frozen=True)
class Settings:
    db_type: str
    db_url: str | None
    db_user: str
    db_password: str
    db_host: str
    db_port: str
    db_name: str
    countries_api_url: str
    exchange_api_url: str
    fetch_timeout_seconds: float
    summary_image_path: str
    dropbox_token: str | None
    dropbox_path: str
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read settings from the environment once per process."""
    return Settings(
        db_type=os.getenv("DB_TYPE", "sqlite").lower(),
        db_url=os.getenv("DB_URL"),
        db_user=os.getenv("DB_USER", "root"),
        db_password=os.getenv("DB_PASSWORD", ""),
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=os.getenv("DB_PORT", "3306"),
        db_name=os.getenv("DB_NAME", "countries_db"),
        countries_api_url=os.getenv("COUNTRIES_API_URL", COUNTRIES_URL),
        exchange_api_url=os.getenv("EXCHANGE_API_URL", EXCHANGE_URL),
        fetch_timeout_seconds=float(os.getenv("FETCH_TIMEOUT_SECONDS", "30")),
        summary_image_path=os.getenv("SUMMARY_IMAGE_PATH", "cache/summary.png"),
        dropbox_token=os.getenv("DROPBOX_TOKEN") or None,
        dropbox_path=os.getenv("DROPBOX_PATH", "/cache/summary.png"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
