"""Test the HTTP surface end to end through the ASGI app."""
import uuid
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession


async def make_collection(client, db_id: str, title: str = "General") -> dict:
    resp = await client.post(f"/collections?dbId={db_id}", json={"title": title})
    assert resp.status_code == 201
    return resp.json()


async def make_book(client, db_id: str, collection_id: str, **overrides) -> dict:
    body = {
        "title": "Kindred",
        "author": "Octavia E. Butler",
        "rating": 4,
        "status": "Reading",
        "collectionId": collection_id,
    }
    body.update(overrides)
    resp = await client.post(f"/books?dbId={db_id}", json=body)
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_missing_db_id_is_client_error(client):
    for method, path in [("GET", "/books"), ("GET", "/collections"), ("GET", "/stats")]:
        resp = await client.request(method, path)
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"

    resp = await client.post("/books", json={"title": "x", "author": "y", "collectionId": "c"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_and_list_books_expose_public_id(client):
    collection = await make_collection(client, "shelf")
    book = await make_book(client, "shelf", collection["id"])

    assert "_id" not in book
    uuid.UUID(book["id"])
    assert book["dbId"] == "shelf"
    assert book["createdAt"] and book["updatedAt"]

    resp = await client.get("/books?dbId=shelf")
    assert resp.status_code == 200
    books = resp.json()
    assert [b["id"] for b in books] == [book["id"]]
    assert all("_id" not in b for b in books)


@pytest.mark.asyncio
async def test_list_books_empty_tenant(client):
    resp = await client.get("/books?dbId=nobody")
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_create_book_invalid_rating(client):
    resp = await client.post(
        "/books?dbId=shelf",
        json={"title": "x", "author": "y", "collectionId": "c", "rating": 6},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_book(client):
    collection = await make_collection(client, "shelf")
    book = await make_book(client, "shelf", collection["id"])

    resp = await client.put("/books?dbId=shelf", json={"id": book["id"], "status": "Read"})
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["id"] == book["id"]
    assert updated["status"] == "Read"
    assert updated["createdAt"] == book["createdAt"]
    assert datetime.fromisoformat(updated["updatedAt"]) > datetime.fromisoformat(book["updatedAt"])


@pytest.mark.asyncio
async def test_update_book_accepts_legacy_id_key_and_ignores_updated_at(client):
    collection = await make_collection(client, "shelf")
    book = await make_book(client, "shelf", collection["id"])

    resp = await client.put(
        "/books?dbId=shelf",
        json={"_id": book["id"], "rating": 2, "updatedAt": "2000-01-01T00:00:00Z"},
    )
    assert resp.status_code == 200
    assert resp.json()["rating"] == 2


@pytest.mark.asyncio
async def test_update_book_identifier_errors(client):
    resp = await client.put("/books?dbId=shelf", json={"status": "Read"})
    assert resp.status_code == 400

    resp = await client.put("/books?dbId=shelf", json={"id": "not-a-uuid", "status": "Read"})
    assert resp.status_code == 400

    resp = await client.put("/books?dbId=shelf", json={"id": str(uuid.uuid4()), "status": "Read"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_update_book_rejects_created_at(client):
    collection = await make_collection(client, "shelf")
    book = await make_book(client, "shelf", collection["id"])
    resp = await client.put(
        "/books?dbId=shelf",
        json={"id": book["id"], "createdAt": "2000-01-01T00:00:00Z"},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_book_from_other_tenant_is_not_found(client):
    collection = await make_collection(client, "shelf")
    book = await make_book(client, "shelf", collection["id"])
    resp = await client.put("/books?dbId=intruder", json={"id": book["id"], "rating": 0})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_book(client):
    collection = await make_collection(client, "shelf")
    book = await make_book(client, "shelf", collection["id"])

    resp = await client.request("DELETE", "/books?dbId=shelf", json={"id": book["id"]})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    resp = await client.request("DELETE", "/books?dbId=shelf", json={"id": book["id"]})
    assert resp.status_code == 404

    resp = await client.request("DELETE", "/books?dbId=shelf", json={"id": "bad"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_get_single_book(client):
    collection = await make_collection(client, "shelf")
    book = await make_book(client, "shelf", collection["id"], review="Unputdownable")

    resp = await client.get(f"/books/{book['id']}?dbId=shelf")
    assert resp.status_code == 200
    assert resp.json()["review"] == "Unputdownable"

    resp = await client.get(f"/books/{book['id']}?dbId=elsewhere")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_filter_books_by_status(client):
    collection = await make_collection(client, "shelf")
    await make_book(client, "shelf", collection["id"], status="Read")
    await make_book(client, "shelf", collection["id"], status="TBR")

    resp = await client.get("/books?dbId=shelf&status=Read")
    assert [b["status"] for b in resp.json()] == ["Read"]


@pytest.mark.asyncio
async def test_duplicate_collection_is_conflict(client):
    await make_collection(client, "shelf", "General")
    resp = await client.post("/collections?dbId=shelf", json={"title": "general"})
    assert resp.status_code == 409
    assert resp.json()["error"] == "duplicate_name"

    resp = await client.post("/collections?dbId=other", json={"title": "general"})
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_update_collection(client):
    collection = await make_collection(client, "shelf", "General")
    resp = await client.put(
        "/collections?dbId=shelf",
        json={"id": collection["id"], "description": "Everything else"},
    )
    assert resp.status_code == 200
    assert resp.json()["description"] == "Everything else"
    assert resp.json()["title"] == "General"


@pytest.mark.asyncio
async def test_delete_last_collection_is_conflict(client):
    collection = await make_collection(client, "shelf")
    resp = await client.request("DELETE", "/collections?dbId=shelf", json={"id": collection["id"]})
    assert resp.status_code == 409
    assert resp.json()["error"] == "invariant_violation"

    resp = await client.get("/collections?dbId=shelf")
    assert len(resp.json()) == 1


@pytest.mark.asyncio
async def test_delete_collection_moves_books(client):
    general = await make_collection(client, "shelf", "General")
    scifi = await make_collection(client, "shelf", "Sci-Fi")
    book = await make_book(client, "shelf", general["id"])

    resp = await client.request("DELETE", "/collections?dbId=shelf", json={"id": general["id"]})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    books = (await client.get("/books?dbId=shelf")).json()
    assert [(b["id"], b["collectionId"]) for b in books] == [(book["id"], scifi["id"])]


@pytest.mark.asyncio
async def test_delete_missing_collection(client):
    await make_collection(client, "shelf")
    resp = await client.request(
        "DELETE", "/collections?dbId=shelf", json={"id": str(uuid.uuid4())}
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_database_generated(client):
    resp = await client.post("/databases")
    assert resp.status_code == 201
    db_id = resp.json()["dbId"]

    collections = (await client.get(f"/collections?dbId={db_id}")).json()
    assert [c["title"] for c in collections] == ["My Books"]

    resp = await client.get(f"/databases/{db_id}")
    assert resp.json() == {"dbId": db_id, "exists": True}


@pytest.mark.asyncio
async def test_create_database_with_chosen_id(client):
    resp = await client.post("/databases", json={"dbId": "my_shelf-1"})
    assert resp.status_code == 201

    resp = await client.post("/databases", json={"dbId": "my_shelf-1"})
    assert resp.status_code == 409

    resp = await client.post("/databases", json={"dbId": "a b"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_unknown_database_does_not_exist(client):
    resp = await client.get("/databases/ghost")
    assert resp.json() == {"dbId": "ghost", "exists": False}


@pytest.mark.asyncio
async def test_stats(client):
    collection = await make_collection(client, "shelf")
    await make_book(client, "shelf", collection["id"], status="Read")
    await make_book(client, "shelf", collection["id"], status="On Hold")

    resp = await client.get("/stats?dbId=shelf")
    assert resp.status_code == 200
    stats = resp.json()
    assert stats["totalBooks"] == 2
    assert stats["statusCounts"]["Read"] == 1
    assert stats["statusCounts"]["On Hold"] == 1
    assert stats["collections"][0]["id"] == collection["id"]


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert "X-Request-ID" in resp.headers


@pytest.mark.asyncio
async def test_failed_commit_is_server_error(client, monkeypatch):
    async def failing_commit(self):
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)
    resp = await client.post("/collections?dbId=shelf", json={"title": "X"})
    assert resp.status_code == 500
    assert resp.json()["error"] == "store_unavailable"

    monkeypatch.undo()
    resp = await client.get("/collections?dbId=shelf")
    assert resp.json() == []


@pytest.mark.asyncio
async def test_boolean_rating_is_rejected(client):
    resp = await client.post(
        "/books?dbId=shelf",
        json={"title": "x", "author": "y", "collectionId": "c", "rating": True},
    )
    assert resp.status_code == 400

    collection = await make_collection(client, "shelf")
    book = await make_book(client, "shelf", collection["id"])
    resp = await client.put("/books?dbId=shelf", json={"id": book["id"], "rating": False})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_long_tenant_and_collection_ids_are_stored(client):
    db_id = "t" * 200
    collection_id = "c" * 300
    book = await make_book(client, db_id, collection_id)
    assert book["dbId"] == db_id
    assert book["collectionId"] == collection_id

    books = (await client.get(f"/books?dbId={db_id}")).json()
    assert [b["id"] for b in books] == [book["id"]]
