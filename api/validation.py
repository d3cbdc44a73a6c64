"""
Request body parsing and validation for book payloads.

Every function returns a tagged result: ``Valid`` wrapping the parsed value,
or ``Invalid`` wrapping the ``ValidationFailure`` to send back. Nothing here
touches the service, so a failed validation never reaches storage.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Union

from pydantic import ValidationError

from api.errors import ValidationFailure
from api.models import Book


REQUEST_BODY_MISSING = "Request body does not exist."
MALFORMED_BODY = "Request body is not valid JSON."
BODY_NOT_OBJECT = "Request body must be a JSON object."
UPDATE_ID_MISSING = "Id cannot be null when you want to update the Book"
CREATE_ID_PRESENT = "Id must be null when you want to create a Book"

REQUIRED_TEXT_FIELDS = ("title", "author", "isbn")
OPTIONAL_TEXT_FIELDS = ("description", "publisher")


@dataclass(frozen=True)
class Valid:
    value: Any


@dataclass(frozen=True)
class Invalid:
    error: ValidationFailure


ValidationResult = Union[Valid, Invalid]


def _invalid(message: str) -> Invalid:
    return Invalid(ValidationFailure(message))


def parse_json_object(raw: bytes) -> ValidationResult:
    """
    Decode a request body into a JSON object.

    Args:
        raw: Raw request body

    Returns:
        Valid(dict) or Invalid with the violated constraint
    """
    if not raw or not raw.strip():
        return _invalid(REQUEST_BODY_MISSING)

    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return _invalid(MALFORMED_BODY)

    if data is None:
        return _invalid(REQUEST_BODY_MISSING)
    if not isinstance(data, dict):
        return _invalid(BODY_NOT_OBJECT)
    return Valid(data)


def _field_violations(data: Dict[str, Any]) -> List[str]:
    violations = []

    for field in REQUIRED_TEXT_FIELDS:
        value = data.get(field)
        if value is None:
            violations.append(f"{field} cannot be null")
        elif not isinstance(value, str):
            violations.append(f"{field} must be a string")
        elif not value.strip():
            violations.append(f"{field} cannot be empty")

    pages = data.get("pages")
    if pages is None:
        violations.append("pages cannot be null")
    elif isinstance(pages, bool) or not isinstance(pages, int):
        violations.append("pages must be an integer")
    elif pages < 1:
        violations.append("pages must be a positive number")

    for field in OPTIONAL_TEXT_FIELDS:
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            violations.append(f"{field} must be a string")

    return violations


def validate_book_fields(data: Dict[str, Any]) -> ValidationResult:
    """
    Check required fields and types, then build a Book.

    Args:
        data: Decoded JSON object

    Returns:
        Valid(Book) or Invalid naming every violated field constraint
    """
    violations = _field_violations(data)
    if violations:
        return _invalid("; ".join(violations))

    try:
        book = Book.model_validate(data)
    except ValidationError as e:
        messages = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        return _invalid("; ".join(messages))

    return Valid(book)


def validate_new_book(raw: bytes) -> ValidationResult:
    """Validate a create request body. The id must be absent."""
    parsed = parse_json_object(raw)
    if isinstance(parsed, Invalid):
        return parsed

    if parsed.value.get("id") is not None:
        return _invalid(CREATE_ID_PRESENT)

    return validate_book_fields(parsed.value)


def validate_book_update(raw: bytes) -> ValidationResult:
    """Validate an update request body. The id must be a non-empty string."""
    parsed = parse_json_object(raw)
    if isinstance(parsed, Invalid):
        return parsed

    book_id = parsed.value.get("id")
    if book_id is None:
        return _invalid(UPDATE_ID_MISSING)
    if not isinstance(book_id, str) or not book_id.strip():
        return _invalid("id must be a non-empty string")

    return validate_book_fields(parsed.value)
