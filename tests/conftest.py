from __future__ import annotations

from typing import Dict

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from db.database import get_database
from main import app
from tests.helpers import register


@pytest.fixture
def db():
    return AsyncMongoMockClient()["salonflow_test"]


@pytest.fixture
def client(db):
    async def _override_db():
        return db

    app.dependency_overrides[get_database] = _override_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client) -> Dict[str, str]:
    return register(client, "owner@example.com")
