from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from countries_api.config import get_settings


# ==========================================================
# Engine
# ==========================================================
def get_db_url(settings=None) -> str:
    """
    Build the database URL for MySQL, or use DB_URL for SQLite.
    """
    settings = settings or get_settings()

    if settings.db_type == "sqlite":
        # Local fallback option
        return settings.db_url or "sqlite:///./countries.db"

    # MySQL configuration
    return (
        f"mysql+pymysql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def get_db_engine(database_url: str | None = None):
    """
    Create a SQLAlchemy engine for MySQL or SQLite.
    """
    database_url = database_url or get_db_url()

    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        echo=False,  # set True for debugging
    )


db_engine = get_db_engine()
SessionLocal = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)
Base = declarative_base()


def create_database(engine=None):
    """Initialize all tables."""
    # Models register themselves on Base.metadata when imported
    from countries_api.v1.models import country_data, system_meta  # noqa: F401

    Base.metadata.create_all(bind=engine or db_engine)


def get_db():
    """Dependency to provide a DB session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
