import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from countries_api.config import get_settings
from countries_api.db.database import create_database
from countries_api.v1.routes.country_information import country_ops

logger = logging.getLogger(__name__)


LOG_HANDLER_NAME = "countries_api"


def setup_logging(level: str = "INFO"):
    """Configure logging for the application. Safe to call more than once."""
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if any(h.name == LOG_HANDLER_NAME for h in logging.root.handlers):
        return

    handler = logging.StreamHandler()
    handler.set_name(LOG_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s"))
    logging.root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    setup_logging(get_settings().log_level)
    create_database()
    logger.info("Country currency API started")
    yield
    logger.info("Country currency API shutting down")


app = FastAPI(title="Country Currency API", version="1.0.0", lifespan=lifespan)
app.include_router(country_ops)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("countries_api.main:app", host="0.0.0.0", port=8000)
