"""Shared test fixtures."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import httpx
import pytest

from ymmybttn.config import Config
from ymmybttn.database.connection import DatabaseConnection
from ymmybttn.database.repository import Repository
from ymmybttn.database.schema import initialize_database
from ymmybttn.sync.catalog_client import CatalogClient
from ymmybttn.sync.state import AppState

CATALOG_URL = "https://catalog.test"
API_KEY = "anon-key-0123456789abcdef"


def remote_product(pid, version="v1", **overrides):
    """A product object as the catalog service returns it."""
    row = {
        "catalog_product_id": pid,
        "product_name": f"Product {pid} {version}",
        "category_id": f"cat-{version}",
        "preferred_measurement": "lb",
        "measurement_type": "weight",
        "description": f"{pid} description {version}",
        "is_active": True,
        "updated_at": "2026-10-01T12:00:00+00:00",
    }
    row.update(overrides)
    return row


class FakeCatalog:
    """In-process stand-in for the catalog REST service.

    Serves ``products`` as JSON unless ``status``/``body`` or ``error``
    say otherwise. Every request is recorded.
    """

    def __init__(self):
        self.products: list = []
        self.status = 200
        self.body: str | None = None
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.status != 200 or self.body is not None:
            return httpx.Response(self.status, text=self.body or "")
        return httpx.Response(200, json=self.products)

    def client(self) -> CatalogClient:
        return CatalogClient(
            CATALOG_URL, API_KEY, timeout=5,
            transport=httpx.MockTransport(self),
        )


@pytest.fixture(autouse=True)
def isolate_settings(tmp_path, monkeypatch):
    """Redirect settings.json writes so tests never touch real config."""
    import ymmybttn.config as config_mod
    monkeypatch.setattr(config_mod, "_SETTINGS_FILE", tmp_path / "settings.json")
    monkeypatch.setattr(Config, "LAST_SYNC_TIMESTAMP", "")


@pytest.fixture
def db_path(tmp_path):
    """Provide a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def db(db_path):
    """Provide an initialized database connection."""
    conn = DatabaseConnection(db_path)
    initialize_database(conn)
    return conn


@pytest.fixture
def repo(db):
    """Provide a repository with an initialized database."""
    return Repository(db)


@pytest.fixture
def app_state(db):
    """AppState wired to the test database."""
    return AppState(db)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def client(catalog):
    c = catalog.client()
    yield c
    c.close()


@pytest.fixture
def make_remote():
    """Factory for remote product objects."""
    return remote_product
