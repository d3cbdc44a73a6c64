"""
Book service layer for the FastAPI application.

``BookService`` is the persistence abstraction consumed by the resource
handler. Two implementations are provided: an in-memory store and a
MongoDB store backed by motor.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from api.errors import BackendFailure
from api.models import Book

logger = structlog.get_logger(__name__)


def generate_book_id() -> str:
    """Generate a new book identifier."""
    return str(uuid.uuid4())


class BookService(ABC):
    """Persistence operations for books."""

    @abstractmethod
    async def get(self, book_id: str) -> Optional[Book]:
        """Return the book with this id, or None."""

    @abstractmethod
    async def get_all(self) -> List[Book]:
        """Return all books in insertion order."""

    @abstractmethod
    async def add(self, book: Book) -> Book:
        """Store a new book and return it with its assigned id."""

    @abstractmethod
    async def update(self, book: Book) -> Optional[Book]:
        """Replace an existing book. Returns None if the id is unknown."""

    @abstractmethod
    async def delete(self, book_id: str) -> bool:
        """Delete one book. Returns False if the id is unknown."""

    @abstractmethod
    async def delete_all(self) -> int:
        """Delete every book and return how many were removed."""

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Report backend status."""

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryBookService(BookService):
    """Book service keeping everything in an insertion-ordered dict."""

    def __init__(self):
        self._books: Dict[str, Book] = {}
        self._lock = asyncio.Lock()

    async def get(self, book_id: str) -> Optional[Book]:
        async with self._lock:
            book = self._books.get(book_id)
            return book.model_copy() if book else None

    async def get_all(self) -> List[Book]:
        async with self._lock:
            return [book.model_copy() for book in self._books.values()]

    async def add(self, book: Book) -> Book:
        stored = book.model_copy(update={"id": generate_book_id()})
        async with self._lock:
            self._books[stored.id] = stored
        logger.debug("Book stored", book_id=stored.id)
        return stored.model_copy()

    async def update(self, book: Book) -> Optional[Book]:
        async with self._lock:
            if book.id not in self._books:
                return None
            self._books[book.id] = book.model_copy()
        logger.debug("Book updated", book_id=book.id)
        return book.model_copy()

    async def delete(self, book_id: str) -> bool:
        async with self._lock:
            removed = self._books.pop(book_id, None)
        return removed is not None

    async def delete_all(self) -> int:
        async with self._lock:
            count = len(self._books)
            self._books.clear()
        return count

    async def health_check(self) -> Dict[str, Any]:
        async with self._lock:
            count = len(self._books)
        return {
            "status": "healthy",
            "backend": "memory",
            "books_count": count
        }


class MongoBookService(BookService):
    """Book service storing documents in a MongoDB collection."""

    def __init__(self, collection: AsyncIOMotorCollection, client=None):
        """
        Initialize the MongoDB book service.

        Args:
            collection: Motor collection holding book documents
            client: Owning motor client, closed by ``close()`` when given
        """
        self.collection = collection
        self.client = client

    @staticmethod
    def _to_document(book: Book) -> Dict[str, Any]:
        doc = book.model_dump(exclude={"id"})
        doc["_id"] = book.id
        return doc

    @staticmethod
    def _to_book(doc: Dict[str, Any]) -> Book:
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        doc.pop("created_at", None)
        return Book.model_validate(doc)

    async def get(self, book_id: str) -> Optional[Book]:
        try:
            doc = await self.collection.find_one({"_id": book_id})
        except PyMongoError as e:
            logger.error("Failed to get book by ID", book_id=book_id, error=str(e))
            raise BackendFailure("Failed to retrieve book") from e

        return self._to_book(doc) if doc else None

    async def get_all(self) -> List[Book]:
        try:
            cursor = self.collection.find({}).sort("created_at", ASCENDING)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Failed to get books", error=str(e))
            raise BackendFailure("Failed to retrieve books") from e

        return [self._to_book(doc) for doc in docs]

    async def add(self, book: Book) -> Book:
        stored = book.model_copy(update={"id": generate_book_id()})
        doc = self._to_document(stored)
        doc["created_at"] = datetime.utcnow()

        try:
            await self.collection.insert_one(doc)
        except PyMongoError as e:
            logger.error("Failed to insert book", error=str(e))
            raise BackendFailure("Failed to store book") from e

        logger.debug("Book stored", book_id=stored.id)
        return stored

    async def update(self, book: Book) -> Optional[Book]:
        fields = book.model_dump(exclude={"id"})

        try:
            result = await self.collection.update_one({"_id": book.id}, {"$set": fields})
        except PyMongoError as e:
            logger.error("Failed to update book", book_id=book.id, error=str(e))
            raise BackendFailure("Failed to update book") from e

        if result.matched_count == 0:
            return None
        logger.debug("Book updated", book_id=book.id)
        return book

    async def delete(self, book_id: str) -> bool:
        try:
            result = await self.collection.delete_one({"_id": book_id})
        except PyMongoError as e:
            logger.error("Failed to delete book", book_id=book_id, error=str(e))
            raise BackendFailure("Failed to delete book") from e

        return result.deleted_count > 0

    async def delete_all(self) -> int:
        try:
            result = await self.collection.delete_many({})
        except PyMongoError as e:
            logger.error("Failed to delete books", error=str(e))
            raise BackendFailure("Failed to delete books") from e

        return result.deleted_count

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.collection.database.command("ping")
            books_count = await self.collection.count_documents({})

            return {
                "status": "healthy",
                "backend": "mongodb",
                "books_collection": "accessible",
                "books_count": books_count
            }
        except PyMongoError as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "backend": "mongodb",
                "error": str(e)
            }

    async def close(self) -> None:
        if self.client is not None:
            self.client.close()
