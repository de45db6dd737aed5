"""
Pytest configuration for API tests.

Requests go through the FastAPI app in-process with TestClient; the
credential store is swapped for the in-memory double unless a test asks for
the SQL-backed client.
"""

import pytest
from fastapi.testclient import TestClient

from authflow.api.dependencies import get_credential_store
from authflow.core.database import Base, engine
from authflow.main import app


@pytest.fixture
def client(memory_store):
    """TestClient backed by the in-memory credential store"""
    app.dependency_overrides[get_credential_store] = lambda: memory_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sql_client():
    """TestClient backed by the SQL credential store on in-memory SQLite"""
    Base.metadata.create_all(bind=engine)
    with TestClient(app) as test_client:
        yield test_client
    Base.metadata.drop_all(bind=engine)
