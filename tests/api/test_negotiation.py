"""
Tests for content negotiation and XML rendering.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone

import pytest

from api.middleware import UriSuffixNegotiationMiddleware
from api.models import Book, ErrorResponse
from api.negotiation import (
    APPLICATION_JSON, APPLICATION_XML, render, select_media_type,
    split_uri_suffix, to_xml
)


@pytest.mark.parametrize("accept,expected", [
    (None, APPLICATION_JSON),
    ("", APPLICATION_JSON),
    ("application/json", APPLICATION_JSON),
    ("application/xml", APPLICATION_XML),
    ("text/xml", APPLICATION_XML),
    ("*/*", APPLICATION_JSON),
    ("text/html", APPLICATION_JSON),
    ("application/json;q=0.5, application/xml", APPLICATION_XML),
    ("application/xml;q=0.2, application/json;q=0.9", APPLICATION_JSON),
    ("application/xml, application/json", APPLICATION_XML),
    ("application/xml;q=0, */*", APPLICATION_JSON),
    ("text/html, application/xml;q=0.9, */*;q=0.8", APPLICATION_XML),
])
def test_select_media_type(accept, expected):
    """Test Accept header parsing."""
    assert select_media_type(accept) == expected


@pytest.mark.parametrize("path,expected", [
    ("/books", ("/books", None)),
    ("/books.json", ("/books", APPLICATION_JSON)),
    ("/books.xml", ("/books", APPLICATION_XML)),
    ("/books/.json", ("/books", APPLICATION_JSON)),
    ("/books/.xml", ("/books", APPLICATION_XML)),
    ("/books/abc-123.xml", ("/books/abc-123", APPLICATION_XML)),
    ("/.json", ("/", APPLICATION_JSON)),
])
def test_split_uri_suffix(path, expected):
    """Test that suffixes are stripped from the last path segment."""
    assert split_uri_suffix(path) == expected


def test_book_to_xml_skips_null_fields():
    """Test XML rendering of a single book."""
    book = Book(
        id="abc",
        title="Refactoring",
        author="Martin Fowler",
        isbn="9780201485677",
        pages=431,
        published=datetime(1999, 7, 8, tzinfo=timezone.utc)
    )

    root = ET.fromstring(to_xml(book))

    assert root.tag == "book"
    assert root.findtext("title") == "Refactoring"
    assert root.findtext("pages") == "431"
    assert root.findtext("published") == "1999-07-08T00:00:00Z"
    assert root.find("description") is None


def test_book_list_to_xml():
    """Test XML rendering of a list of books."""
    books = [
        Book(id="1", title="A", author="X", isbn="1", pages=1),
        Book(id="2", title="B", author="Y", isbn="2", pages=2),
    ]

    root = ET.fromstring(to_xml(books))

    assert root.tag == "books"
    assert [node.findtext("id") for node in root.findall("book")] == ["1", "2"]


def test_render_error_as_xml():
    """Test that error responses render with their own root element."""
    response = render(
        ErrorResponse(error="Book not found", status_code=404),
        APPLICATION_XML,
        status_code=404
    )

    assert response.status_code == 404
    assert response.media_type == APPLICATION_XML
    root = ET.fromstring(response.body)
    assert root.tag == "errorResponse"
    assert root.findtext("error") == "Book not found"


def test_uri_based_content_negotiation(client, auth_headers):
    """Test that the URI suffix selects the Content-Type."""
    json_response = client.get("/books/.json", headers=auth_headers)
    assert json_response.status_code == 200
    assert json_response.headers["Content-Type"] == "application/json"

    xml_response = client.get("/books/.xml", headers=auth_headers)
    assert xml_response.status_code == 200
    assert xml_response.headers["Content-Type"] == "application/xml"


def test_uri_suffix_overrides_accept_header(client, auth_headers):
    """Test that the suffix wins over the Accept header."""
    response = client.get(
        "/books.xml",
        headers={**auth_headers, "Accept": "application/json"}
    )

    assert response.headers["Content-Type"] == "application/xml"


def test_get_book_as_xml_by_suffix(client, auth_headers, created_book):
    """Test fetching one book as XML via its suffixed URI."""
    response = client.get(f"/books/{created_book['id']}.xml", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/xml"
    root = ET.fromstring(response.content)
    assert root.findtext("id") == created_book["id"]
    assert root.findtext("author") == "Dale Carnegie"


def test_list_books_as_xml_by_accept_header(client, auth_headers, created_book):
    """Test header-based negotiation of the list representation."""
    response = client.get("/books", headers={**auth_headers, "Accept": "application/xml"})

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/xml"
    root = ET.fromstring(response.content)
    assert root.tag == "books"
    assert root.find("book").findtext("id") == created_book["id"]


def test_create_book_with_xml_response(client, auth_headers, sample_book_payload):
    """Test that a JSON request can ask for an XML response."""
    response = client.post(
        "/books",
        json=sample_book_payload,
        headers={**auth_headers, "Accept": "application/xml"}
    )

    assert response.status_code == 201
    assert response.headers["Content-Type"] == "application/xml"
    assert ET.fromstring(response.content).findtext("isbn") == "067142517X"


def test_validation_error_as_xml(client, auth_headers):
    """Test that errors follow the negotiated representation."""
    response = client.post("/books.xml", headers=auth_headers)

    assert response.status_code == 400
    root = ET.fromstring(response.content)
    assert root.tag == "errorResponse"
    assert root.findtext("error") == "Request body does not exist."
    assert root.findtext("status_code") == "400"


def test_openapi_schema_served(client, auth_headers):
    """Test that the schema URL is not treated as a suffixed resource."""
    response = client.get("/openapi.json", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/json"
    assert "/books" in response.json()["paths"]


@pytest.mark.parametrize("path,rewritten", [
    ("/books.xml", True),
    ("/books/abc.xml", True),
    ("/openapi.json", False),
    ("/booksellers.json", False),
    ("/health.xml", False),
])
@pytest.mark.asyncio
async def test_suffix_rewrite_limited_to_books(path, rewritten):
    """Test which paths the suffix middleware rewrites."""
    seen = {}

    async def app(scope, receive, send):
        seen.update(scope)

    middleware = UriSuffixNegotiationMiddleware(app, prefix="/books")
    scope = {"type": "http", "path": path, "raw_path": path.encode(), "headers": []}
    await middleware(scope, None, None)

    assert (seen["path"] != path) is rewritten
