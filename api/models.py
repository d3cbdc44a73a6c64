"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic.types import PositiveInt


BOOK_FIELDS = (
    "id", "title", "author", "isbn", "pages",
    "description", "publisher", "published",
)


class Book(BaseModel):
    """Book entity exchanged over the API and stored by the service."""
    id: Optional[str] = Field(None, description="Server-generated book identifier")
    title: str = Field(..., min_length=1, description="Book title")
    author: str = Field(..., min_length=1, description="Book author")
    isbn: str = Field(..., min_length=1, description="ISBN-10 or ISBN-13")
    pages: PositiveInt = Field(..., description="Number of pages")
    description: Optional[str] = Field(None, description="Book description")
    publisher: Optional[str] = Field(None, description="Publisher name")
    published: Optional[datetime] = Field(None, description="Publication timestamp")

    model_config = {"extra": "ignore"}

    def to_document(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return self.model_dump(mode="json")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Storage backend status")
