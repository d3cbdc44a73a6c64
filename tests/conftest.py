"""
Pytest configuration and shared fixtures.
"""

import base64

import pytest
from fastapi.testclient import TestClient

from api.config import APIConfig
from api.database import InMemoryBookService
from api.main import create_app


TEST_USERNAME = "durimkryeziu"
TEST_PASSWORD = "password"


def basic_auth_header(username: str, password: str) -> str:
    """Build a Basic Authorization header value."""
    encoded = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


@pytest.fixture
def api_config():
    """Create API configuration for testing."""
    return APIConfig(
        storage_backend="memory",
        basic_auth_users=f"{TEST_USERNAME}:{TEST_PASSWORD},reader:secret",
        powered_by="FastAPI Framework",
        gzip_minimum_size=500,
        report_missing_on_delete=True,
        debug=False
    )


@pytest.fixture
def book_service():
    """Create an empty in-memory book service."""
    return InMemoryBookService()


@pytest.fixture
def app(api_config, book_service):
    """Create the application with the test service injected."""
    return create_app(config=api_config, service=book_service)


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Headers carrying valid basic credentials."""
    return {"Authorization": basic_auth_header(TEST_USERNAME, TEST_PASSWORD)}


@pytest.fixture
def sample_book_payload():
    """Create a book payload with only the required fields."""
    return {
        "title": "How to Win Friends & Influence People",
        "author": "Dale Carnegie",
        "isbn": "067142517X",
        "pages": 299
    }


@pytest.fixture
def full_book_payload():
    """Create a book payload with every field set."""
    return {
        "title": "The Clean Coder: A Code of Conduct for Professional Programmers",
        "author": "Robert C. Martin",
        "description": "Legendary software expert Robert C. Martin introduces the "
                       "disciplines, techniques, tools, and practices of true "
                       "software craftsmanship.",
        "isbn": "9780137081073",
        "pages": 256,
        "publisher": "Prentice Hall",
        "published": "2011-05-23T00:00:00Z"
    }


@pytest.fixture
def created_book(client, auth_headers, sample_book_payload):
    """Create a book through the API and return its JSON body."""
    response = client.post("/books", json=sample_book_payload, headers=auth_headers)
    assert response.status_code == 201
    return response.json()
