"""
HTTP basic authentication for the FastAPI API.
"""

import base64
import binascii
import secrets
from typing import Callable, Dict, Optional, Tuple

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from api.errors import AuthenticationFailure
from api.negotiation import negotiate, render_error

logger = structlog.get_logger(__name__)

MISSING_HEADER = "'Authorization' header is missing"
WRONG_SCHEME = "'Authorization' header must use the Basic scheme"
MALFORMED_CREDENTIALS = "'Authorization' header contains malformed credentials"
WRONG_CREDENTIALS = "Wrong username or password"


def decode_basic_credentials(authorization: Optional[str]) -> Tuple[str, str]:
    """
    Extract username and password from a Basic Authorization header.

    Args:
        authorization: Raw Authorization header value

    Returns:
        (username, password) tuple

    Raises:
        AuthenticationFailure: If the header is missing or malformed
    """
    if not authorization:
        raise AuthenticationFailure(MISSING_HEADER)

    scheme, _, encoded = authorization.strip().partition(" ")
    if scheme.lower() != "basic" or not encoded.strip():
        raise AuthenticationFailure(WRONG_SCHEME)

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise AuthenticationFailure(MALFORMED_CREDENTIALS)

    username, separator, password = decoded.partition(":")
    if not separator:
        raise AuthenticationFailure(MALFORMED_CREDENTIALS)

    return username, password


def verify_credentials(
    authorization: Optional[str],
    credentials: Dict[str, str],
    realm: Optional[str] = None
) -> str:
    """
    Verify a Basic Authorization header against the credential store.

    Args:
        authorization: Raw Authorization header value
        credentials: Mapping of username to password
        realm: Realm advertised in the challenge, if any

    Returns:
        The authenticated username

    Raises:
        AuthenticationFailure: If credentials are missing, malformed or wrong
    """
    try:
        username, password = decode_basic_credentials(authorization)
    except AuthenticationFailure as e:
        e.realm = realm
        raise

    expected = credentials.get(username)
    # Compare against a throwaway value for unknown users as well
    candidate = expected if expected is not None else secrets.token_urlsafe(16)
    password_ok = secrets.compare_digest(password.encode("utf-8"), candidate.encode("utf-8"))

    if expected is None or not password_ok:
        logger.warning("Invalid credentials attempted", username=username)
        raise AuthenticationFailure(WRONG_CREDENTIALS, realm=realm)

    return username


class BasicAuthMiddleware(BaseHTTPMiddleware):
    """
    Reject every request that lacks valid basic credentials.

    The authenticated username is stored on ``request.state.user``.
    """

    def __init__(self, app, credentials: Dict[str, str], realm: Optional[str] = None):
        super().__init__(app)
        self.credentials = credentials
        self.realm = realm

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            request.state.user = verify_credentials(
                request.headers.get("authorization"),
                self.credentials,
                self.realm
            )
        except AuthenticationFailure as e:
            logger.info("Request rejected", path=request.url.path, reason=e.message)
            return render_error(e, negotiate(request))

        return await call_next(request)
