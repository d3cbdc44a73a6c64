"""
Book resource handler and its route table.
"""

import functools
from typing import Callable

import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import Response

from api.database import BookService
from api.errors import BackendFailure, BookAPIError, NotFound
from api.negotiation import negotiate, render, render_error
from api.validation import Invalid, validate_book_update, validate_new_book

logger = structlog.get_logger(__name__)


def translate_errors(endpoint: Callable) -> Callable:
    """Render BookAPIErrors and hide anything unexpected behind an opaque 500."""

    @functools.wraps(endpoint)
    async def wrapper(self, request: Request, *args, **kwargs) -> Response:
        try:
            return await endpoint(self, request, *args, **kwargs)
        except BookAPIError as e:
            return render_error(e, negotiate(request))
        except Exception as e:
            logger.error("Unhandled exception", error=str(e), path=request.url.path)
            error = BackendFailure(
                "Internal server error",
                detail=str(e) if self.debug else None
            )
            return render_error(error, negotiate(request))

    return wrapper


class BookResource:
    """Maps book routes onto a BookService."""

    def __init__(
        self,
        service: BookService,
        report_missing_on_delete: bool = True,
        debug: bool = False
    ):
        self.service = service
        self.report_missing_on_delete = report_missing_on_delete
        self.debug = debug

    @translate_errors
    async def list_books(self, request: Request) -> Response:
        """Find all books."""
        logger.debug("Getting all books")
        books = await self.service.get_all()
        return render(books, negotiate(request))

    @translate_errors
    async def get_book(self, request: Request, book_id: str) -> Response:
        """Find book by id."""
        logger.debug("Getting book", book_id=book_id)
        book = await self.service.get(book_id)
        if book is None:
            raise NotFound(f"Book with ID '{book_id}' not found")
        return render(book, negotiate(request))

    @translate_errors
    async def create_book(self, request: Request) -> Response:
        """Add a new book. Responds 201 with a Location header."""
        result = validate_new_book(await request.body())
        if isinstance(result, Invalid):
            raise result.error

        logger.debug("Inserting book", title=result.value.title)
        saved = await self.service.add(result.value)

        location = str(request.url_for("get_book", book_id=saved.id))
        return render(
            saved,
            negotiate(request),
            status_code=status.HTTP_201_CREATED,
            headers={"Location": location}
        )

    @translate_errors
    async def update_book(self, request: Request) -> Response:
        """Update an existing book identified by the id in the body."""
        result = validate_book_update(await request.body())
        if isinstance(result, Invalid):
            raise result.error

        book = result.value
        logger.debug("Updating book", book_id=book.id)
        updated = await self.service.update(book)
        if updated is None:
            raise NotFound(f"Book with ID '{book.id}' not found")
        return render(updated, negotiate(request))

    @translate_errors
    async def delete_book(self, request: Request, book_id: str) -> Response:
        """Delete book by id."""
        logger.debug("Deleting book", book_id=book_id)
        deleted = await self.service.delete(book_id)
        if not deleted and self.report_missing_on_delete:
            raise NotFound(f"Book with ID '{book_id}' not found")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @translate_errors
    async def delete_books(self, request: Request) -> Response:
        """Delete all books."""
        count = await self.service.delete_all()
        logger.debug("Deleted all books", count=count)
        return Response(status_code=status.HTTP_204_NO_CONTENT)


# method, path, endpoint, success status, summary
BOOK_ROUTES = (
    ("GET", "", "list_books", status.HTTP_200_OK, "Find all books"),
    ("GET", "/{book_id}", "get_book", status.HTTP_200_OK, "Find book by id"),
    ("POST", "", "create_book", status.HTTP_201_CREATED, "Add a new book"),
    ("PUT", "", "update_book", status.HTTP_200_OK, "Update an existing book"),
    ("DELETE", "/{book_id}", "delete_book", status.HTTP_204_NO_CONTENT, "Delete book by id"),
    ("DELETE", "", "delete_books", status.HTTP_204_NO_CONTENT, "Delete all books"),
)


def build_router(resource: BookResource, prefix: str = "/books") -> APIRouter:
    """Register every entry of BOOK_ROUTES against the resource."""
    router = APIRouter(prefix=prefix, tags=["Books"])
    for method, path, name, status_code, summary in BOOK_ROUTES:
        router.add_api_route(
            path,
            getattr(resource, name),
            methods=[method],
            name=name,
            status_code=status_code,
            summary=summary,
            response_class=Response
        )
    return router
