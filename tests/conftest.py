"""Pytest fixtures for TimeTide API tests.

This module provides test fixtures that ensure:
1. No external API calls are made (OpenWeatherMap is mocked with respx)
2. No real MongoDB connections; an in-memory collection stands in
3. Isolated test environment with controlled configuration
"""

import os
from typing import Any

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError
from tenacity import wait_none

# Set test environment BEFORE importing application modules
os.environ.setdefault("NODE_ENV", "development")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.pop("OPENWEATHER_API_KEY", None)
os.environ.pop("FRONTEND_ORIGIN", None)

from timetide.api import create_app
from timetide.config import Settings
from timetide.database.connection import MongoConnector
from timetide.models.location import Coordinates

TEST_MONGO_URI = "mongodb://localhost:27017/timetide_test"


# =============================================================================
# In-memory MongoDB
# =============================================================================


class FakeCollection:
    """Async collection storing documents by `_id`."""

    def __init__(self, name: str):
        self.name = name
        self.documents: dict[Any, dict[str, Any]] = {}
        self.indexes: list[tuple[str, dict[str, Any]]] = []
        self.error: Exception | None = None
        self.index_error: Exception | None = None

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    async def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:
        self._check()
        doc = self.documents.get(filter["_id"])
        return dict(doc) if doc is not None else None

    async def replace_one(self, filter: dict[str, Any], doc: dict[str, Any], upsert: bool = False):
        self._check()
        if filter["_id"] in self.documents or upsert:
            self.documents[filter["_id"]] = dict(doc)

    async def delete_one(self, filter: dict[str, Any]):
        self._check()
        self.documents.pop(filter["_id"], None)

    async def create_index(self, key: str, **options: Any) -> str:
        self._check()
        if self.index_error is not None:
            raise self.index_error
        self.indexes.append((key, options))
        return f"{key}_1"


class FakeDatabase:
    def __init__(self, client: "FakeMongoClient", name: str):
        self.client = client
        self.name = name
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection(name))

    async def command(self, name: str) -> dict[str, Any]:
        self.client.pings += 1
        if self.client.ping_failures > 0:
            self.client.ping_failures -= 1
            raise ServerSelectionTimeoutError("No servers available")
        return {"ok": 1.0}


class FakeMongoClient:
    """Stands in for `AsyncMongoClient`; records how it was built."""

    def __init__(self):
        self.uri: str | None = None
        self.options: dict[str, Any] = {}
        self.ping_failures = 0
        self.pings = 0
        self.closed = False
        self.databases: dict[str, FakeDatabase] = {}

    def bind(self, uri: str, **options: Any) -> "FakeMongoClient":
        self.uri = uri
        self.options = options
        return self

    def get_default_database(self, default: str | None = None) -> FakeDatabase:
        return self.databases.setdefault(default, FakeDatabase(self, default))

    async def close(self) -> None:
        self.closed = True

    def sessions(self, name: str = "timetide") -> FakeCollection:
        return self.get_default_database(name)["sessions"]


# =============================================================================
# Settings and application fixtures
# =============================================================================


@pytest.fixture
def make_settings():
    """Build settings without reading the environment or a .env file."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "node_env": "development",
            "mongo_uri": TEST_MONGO_URI,
            "session_secret": "test-session-secret",
            "openweather_api_key": None,
            "frontend_origin": None,
            "mongo_connect_attempts": 3,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def fake_mongo() -> FakeMongoClient:
    return FakeMongoClient()


@pytest.fixture
def make_connector(fake_mongo):
    def _make(settings: Settings) -> MongoConnector:
        return MongoConnector(settings, client_factory=fake_mongo.bind, wait=wait_none())

    return _make


@pytest.fixture
def make_client(make_settings, make_connector):
    """Build a TestClient for an app created with the given settings."""

    def _make(base_url: str = "http://testserver", **overrides: Any) -> TestClient:
        settings = make_settings(**overrides)
        app = create_app(settings, connector=make_connector(settings))
        return TestClient(app, base_url=base_url, raise_server_exceptions=False)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    """Development-mode client with MongoDB configured."""
    return make_client()


@pytest.fixture
def sample_coordinates() -> Coordinates:
    """Sample coordinates used by weather tests."""
    return Coordinates(latitude=10.0, longitude=20.0)
