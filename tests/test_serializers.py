"""Test the `_id` -> `id` wire mapping and body identifier parsing."""
import uuid

import pytest

from core.errors import ValidationError
from tracker.serializers import split_identifier, to_public


def test_to_public_renames_store_id():
    object_id = uuid.uuid4()
    doc = {"_id": object_id, "dbId": "t1", "title": "General"}
    public = to_public(doc)
    assert public == {"id": str(object_id), "dbId": "t1", "title": "General"}
    assert "_id" in doc  # source document untouched


def test_split_identifier_prefers_id():
    object_id = str(uuid.uuid4())
    identifier, fields = split_identifier({"id": object_id, "_id": "ignored", "rating": 3})
    assert identifier == object_id
    assert fields == {"rating": 3}


def test_split_identifier_accepts_legacy_key():
    object_id = str(uuid.uuid4())
    identifier, fields = split_identifier({"_id": object_id})
    assert identifier == object_id
    assert fields == {}


@pytest.mark.parametrize("body", [{}, {"id": ""}, {"title": "x"}, [], "id"])
def test_split_identifier_missing(body):
    with pytest.raises(ValidationError):
        split_identifier(body)


def test_split_identifier_malformed():
    with pytest.raises(ValidationError, match="Invalid id format"):
        split_identifier({"id": "65f1c0ffee"})
