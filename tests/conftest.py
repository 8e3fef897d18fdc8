"""Shared fixtures: in-memory SQLite database, fake sources and an API client."""

import os

# Never touch a real database or Dropbox account from tests
os.environ.setdefault("DB_TYPE", "sqlite")
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.pop("DROPBOX_TOKEN", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from countries_api.db.database import Base, create_database, get_db
from countries_api.main import app
from countries_api.v1.routes import country_information as routes
from fakes import FakeCountriesSource, FakeRatesSource


@pytest.fixture
def test_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_database(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


@pytest.fixture
def test_db(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def sources():
    """Mutable pair of fake sources wired into the API client."""
    return {
        "countries": FakeCountriesSource(),
        "rates": FakeRatesSource(),
    }


@pytest.fixture
def rendered():
    """Records every summary render triggered by the API."""
    return []


@pytest.fixture
def client(session_factory, sources, rendered):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[routes.get_countries_source] = lambda: sources["countries"]
    app.dependency_overrides[routes.get_rates_source] = lambda: sources["rates"]
    app.dependency_overrides[routes.get_summary_renderer] = lambda: rendered.append

    yield TestClient(app)

    app.dependency_overrides.clear()
