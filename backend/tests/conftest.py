"""Shared pytest fixtures: in-memory MongoDB and an authenticated API client."""

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from dosetrack.database import Database
from dosetrack.main import app
from dosetrack.services.auth_service import AuthService
from dosetrack.services.pattern_service import PatternService

from .factories import USER_ID


@pytest.fixture
def db():
    """Point Database at a fresh in-memory MongoDB for one test."""
    client = AsyncMongoMockClient()
    Database.client = client
    Database.db = client["dosetrack_test"]
    PatternService._locks.clear()
    yield Database.db
    Database.client = None
    Database.db = None


@pytest.fixture
def client(db):
    # No context manager: the lifespan would connect to a real server
    return TestClient(app)


@pytest.fixture
def auth_headers():
    token = AuthService.create_access_token({"sub": USER_ID})
    return {"Authorization": f"Bearer {token}"}
