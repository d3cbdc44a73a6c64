"""
Content negotiation and JSON/XML rendering.
"""

import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Tuple, Union

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from api.errors import BookAPIError
from api.models import Book, ErrorResponse, HealthResponse

APPLICATION_JSON = "application/json"
APPLICATION_XML = "application/xml"

SUFFIX_MEDIA_TYPES = {
    ".json": APPLICATION_JSON,
    ".xml": APPLICATION_XML,
}

# Accept values mapped onto the two representations we produce
ACCEPTED_MEDIA_TYPES = {
    "application/json": APPLICATION_JSON,
    "application/xml": APPLICATION_XML,
    "text/xml": APPLICATION_XML,
    "application/*": APPLICATION_JSON,
    "*/*": APPLICATION_JSON,
}

XML_ROOT_TAGS = {
    Book: "book",
    ErrorResponse: "errorResponse",
    HealthResponse: "health",
}

Payload = Union[BaseModel, List[Book]]


def _parse_accept(accept: str) -> List[Tuple[str, float]]:
    entries = []
    for part in accept.split(","):
        pieces = [piece.strip() for piece in part.split(";")]
        media_range = pieces[0].lower()
        if not media_range:
            continue
        quality = 1.0
        for param in pieces[1:]:
            name, _, value = param.partition("=")
            if name.strip().lower() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        entries.append((media_range, quality))
    # sorted() is stable, so equal q-values keep header order
    return sorted(entries, key=lambda entry: entry[1], reverse=True)


def select_media_type(accept: Optional[str]) -> str:
    """
    Pick the response media type for an Accept header.

    Args:
        accept: Raw Accept header value, if any

    Returns:
        application/json or application/xml; JSON when nothing matches
    """
    if not accept:
        return APPLICATION_JSON

    for media_range, quality in _parse_accept(accept):
        if quality <= 0:
            continue
        media_type = ACCEPTED_MEDIA_TYPES.get(media_range)
        if media_type:
            return media_type

    return APPLICATION_JSON


def negotiate(request: Request) -> str:
    """Media type for the response to this request."""
    return select_media_type(request.headers.get("accept"))


def split_uri_suffix(path: str) -> Tuple[str, Optional[str]]:
    """
    Strip a .json/.xml suffix from the last path segment.

    ``/books.xml``, ``/books/.xml`` and ``/books/<id>.xml`` all carry a
    suffix; the returned path has it removed along with any trailing slash.
    """
    for suffix, media_type in SUFFIX_MEDIA_TYPES.items():
        if path.lower().endswith(suffix):
            stripped = path[:-len(suffix)]
            if len(stripped) > 1:
                stripped = stripped.rstrip("/")
            return stripped or "/", media_type
    return path, None


def _append_fields(parent: ET.Element, document: Dict) -> None:
    for key, value in document.items():
        if value is None:
            continue
        child = ET.SubElement(parent, key)
        if isinstance(value, bool):
            child.text = str(value).lower()
        else:
            child.text = str(value)


def to_xml(payload: Payload) -> bytes:
    """Render a model, or a list of books, as an XML document."""
    if isinstance(payload, list):
        root = ET.Element("books")
        for book in payload:
            _append_fields(ET.SubElement(root, "book"), book.to_document())
    else:
        root = ET.Element(XML_ROOT_TAGS.get(type(payload), "response"))
        _append_fields(root, payload.model_dump(mode="json"))

    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def to_json(payload: Payload):
    if isinstance(payload, list):
        return [book.to_document() for book in payload]
    return payload.model_dump(mode="json")


def render(
    payload: Payload,
    media_type: str,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None
) -> Response:
    """
    Build a response in the negotiated representation.

    Args:
        payload: Model or list of books to send
        media_type: application/json or application/xml
        status_code: HTTP status code
        headers: Extra response headers

    Returns:
        Response with a matching Content-Type
    """
    if media_type == APPLICATION_XML:
        return Response(
            content=to_xml(payload),
            status_code=status_code,
            headers=headers,
            media_type=APPLICATION_XML
        )
    return JSONResponse(
        content=to_json(payload),
        status_code=status_code,
        headers=headers
    )


def render_error(error: BookAPIError, media_type: str) -> Response:
    """Render a BookAPIError as an ErrorResponse with its status and headers."""
    return render(
        ErrorResponse(
            error=error.message,
            detail=error.detail,
            status_code=error.status_code
        ),
        media_type,
        status_code=error.status_code,
        headers=error.headers
    )
