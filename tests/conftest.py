"""Shared fixtures: an app over a throwaway SQLite file."""
import pytest
from fastapi.testclient import TestClient

from rng_service.config import ServiceConfig
from rng_service.main import create_app
from rng_service.store.sqlite import SQLiteEventStore

API_KEY = "test-api-key"


@pytest.fixture
def service_config():
    return ServiceConfig(api_key=API_KEY)


@pytest.fixture
def store(tmp_path):
    event_store = SQLiteEventStore(f"sqlite:///{tmp_path / 'rng.sqlite'}")
    event_store.initialize()
    yield event_store
    event_store.close()


@pytest.fixture
def app(service_config, store):
    return create_app(service_config, store)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"Authorization": API_KEY}
