"""
FastAPI RESTful API for managing books.

This module provides a CRUD REST API for:
- Listing, reading, creating, updating and deleting books
- JSON and XML representations
- HTTP basic authentication
- Gzip compression of response bodies
"""
