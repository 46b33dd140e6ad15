"""Wire-format mapping between stored documents and API payloads.

Stored documents keep the store-native identifier under `_id`. Clients only
ever see it as `id`; the rename happens here and nowhere else.
"""

from typing import Any, Mapping

from core.errors import ValidationError
from tracker.rules import parse_object_id

STORE_ID = "_id"
PUBLIC_ID = "id"


def to_public(document: Mapping[str, Any]) -> dict[str, Any]:
    """Map a stored document to its public shape (`_id` -> `id`)."""
    public = {PUBLIC_ID: str(document[STORE_ID])}
    for key, value in document.items():
        if key != STORE_ID:
            public[key] = value
    return public


def to_public_list(documents: list[Mapping[str, Any]]) -> list[dict[str, Any]]:
    return [to_public(doc) for doc in documents]


def split_identifier(body: Any) -> tuple[str, dict[str, Any]]:
    """Split a PUT/DELETE body into (identifier, remaining fields).

    Accepts the identifier as `id` or, for older clients, `_id`. A missing
    or malformed identifier is a ValidationError.
    """
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    fields = dict(body)
    identifier = fields.pop(PUBLIC_ID, None)
    legacy = fields.pop(STORE_ID, None)
    if identifier is None:
        identifier = legacy
    if identifier is None or identifier == "":
        raise ValidationError("Missing id in request body")
    parse_object_id(identifier)
    return str(identifier), fields
