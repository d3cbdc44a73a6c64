"""
Cross-cutting request/response filters for the books API.
"""

import time
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.gzip import GZipMiddleware
from starlette.datastructures import MutableHeaders
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from api.auth import BasicAuthMiddleware
from api.config import APIConfig
from api.negotiation import split_uri_suffix

logger = structlog.get_logger(__name__)


class PoweredByMiddleware(BaseHTTPMiddleware):
    """Add the identifying X-Powered-By header to every response."""

    def __init__(self, app, value: str):
        super().__init__(app)
        self.value = value

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Powered-By"] = self.value
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one structured access-log event per request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
            client=request.client.host if request.client else None
        )
        return response


class UriSuffixNegotiationMiddleware:
    """
    Turn a .json/.xml URI suffix into an Accept header.

    The suffix is stripped from the path before routing, so ``/books.xml``
    is routed as ``/books`` with ``Accept: application/xml``. Only paths
    under ``prefix`` are rewritten; ``/openapi.json`` keeps its name.
    """

    def __init__(self, app: ASGIApp, prefix: str = "/books"):
        self.app = app
        self.prefix = prefix.rstrip("/")

    def _in_scope(self, path: str) -> bool:
        return path == self.prefix or path.startswith(self.prefix + "/")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            path, media_type = split_uri_suffix(scope["path"])
            if media_type and self._in_scope(path):
                scope = dict(scope)
                scope["path"] = path
                scope["raw_path"] = path.encode("utf-8")
                headers = MutableHeaders(scope=scope)
                headers["accept"] = media_type

        await self.app(scope, receive, send)


def setup_middleware(app: FastAPI, config: APIConfig) -> None:
    """
    Register the filters on the app.

    Starlette runs the last-added middleware first, so the order below is
    innermost to outermost: gzip, authentication, suffix negotiation,
    request logging, then the identifying header on the way out.

    Gzip must sit next to the router. The ``BaseHTTPMiddleware`` layers
    re-stream responses without Content-Length, and gzip cannot apply
    ``minimum_size`` to a streamed body.
    """
    app.add_middleware(GZipMiddleware, minimum_size=config.gzip_minimum_size)
    app.add_middleware(
        BasicAuthMiddleware,
        credentials=config.get_credentials(),
        realm=config.auth_realm
    )
    app.add_middleware(UriSuffixNegotiationMiddleware, prefix="/books")
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(PoweredByMiddleware, value=config.powered_by)
