"""Reading tracker API router — tenant-scoped CRUD for books and collections.

Every books/collections route takes the tenant from the required `dbId`
query parameter. PUT and DELETE locate the record by the `id` in the JSON
body. Repositories are injected via FastAPI Depends and raise TrackerError
subclasses, which the app's exception handlers turn into responses.
Writes commit before the response is built, so a failed commit is
reported to the client instead of after the fact.
"""

from typing import Any, Optional

import pydantic
from fastapi import APIRouter, Body, Depends, Query

from core.errors import DatabaseExistsError, NotFoundError, ValidationError
from tracker.models.schemas import (
    BookCreate,
    BookResponse,
    BookStatus,
    BookUpdate,
    CollectionCreate,
    CollectionResponse,
    CollectionUpdate,
    DashboardStats,
    DatabaseCreate,
    DatabaseResponse,
    DeleteResponse,
)
from tracker.repository import (
    BookRepository,
    CollectionRepository,
    DatabaseRepository,
    get_book_repository,
    get_collection_repository,
    get_database_repository,
    get_db_id,
)
from tracker.serializers import split_identifier, to_public, to_public_list

router = APIRouter()

# Sent by clients on every update; the repository sets it itself.
SERVER_MANAGED = ("updatedAt",)


def _validate(schema: type[pydantic.BaseModel], fields: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial body against `schema`, keeping only the fields sent."""
    for key in SERVER_MANAGED:
        fields.pop(key, None)
    try:
        model = schema.model_validate(fields)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            "Invalid request body",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc
    return model.model_dump(mode="json", by_alias=True, exclude_unset=True)


# ============================================================================
# Book Endpoints
# ============================================================================

@router.get("/books", response_model=list[BookResponse])
async def list_books(
    status: Optional[BookStatus] = None,
    collection_id: Optional[str] = Query(None, alias="collectionId"),
    repo: BookRepository = Depends(get_book_repository),
):
    """List the tenant's books, optionally filtered by status or collection."""
    books = await repo.list_books(
        status=status.value if status else None,
        collection_id=collection_id,
    )
    return to_public_list(books)


@router.get("/books/{book_id}", response_model=BookResponse)
async def get_book(
    book_id: str,
    repo: BookRepository = Depends(get_book_repository),
):
    """Get a single book."""
    return to_public(await repo.get_book(book_id))


@router.post("/books", response_model=BookResponse, status_code=201)
async def create_book(
    request: BookCreate,
    repo: BookRepository = Depends(get_book_repository),
):
    """Add a book to the tenant's shelf."""
    book = await repo.create_book(request.model_dump(mode="json", by_alias=True))
    await repo.commit()
    return to_public(book)


@router.put("/books", response_model=BookResponse)
async def update_book(
    body: Any = Body(...),
    repo: BookRepository = Depends(get_book_repository),
):
    """Update a book's fields; the body carries the book `id`."""
    book_id, fields = split_identifier(body)
    updates = _validate(BookUpdate, fields)
    book = await repo.update_book(book_id, updates)
    await repo.commit()
    return to_public(book)


@router.delete("/books", response_model=DeleteResponse)
async def delete_book(
    body: Any = Body(...),
    repo: BookRepository = Depends(get_book_repository),
):
    """Remove a book; the body carries the book `id`."""
    book_id, _ = split_identifier(body)
    if not await repo.delete_book(book_id):
        raise NotFoundError("Book not found", details={"id": book_id})
    await repo.commit()
    return {"success": True}


# ============================================================================
# Collection Endpoints
# ============================================================================

@router.get("/collections", response_model=list[CollectionResponse])
async def list_collections(
    repo: CollectionRepository = Depends(get_collection_repository),
):
    """List the tenant's collections."""
    return to_public_list(await repo.list_collections())


@router.get("/collections/{collection_id}", response_model=CollectionResponse)
async def get_collection(
    collection_id: str,
    repo: CollectionRepository = Depends(get_collection_repository),
):
    """Get a single collection."""
    return to_public(await repo.get_collection(collection_id))


@router.post("/collections", response_model=CollectionResponse, status_code=201)
async def create_collection(
    request: CollectionCreate,
    repo: CollectionRepository = Depends(get_collection_repository),
):
    """Create a collection; titles are unique per tenant, ignoring case."""
    collection = await repo.create_collection(request.model_dump())
    await repo.commit()
    return to_public(collection)


@router.put("/collections", response_model=CollectionResponse)
async def update_collection(
    body: Any = Body(...),
    repo: CollectionRepository = Depends(get_collection_repository),
):
    """Rename or re-describe a collection; the body carries its `id`."""
    collection_id, fields = split_identifier(body)
    updates = _validate(CollectionUpdate, fields)
    collection = await repo.update_collection(collection_id, updates)
    await repo.commit()
    return to_public(collection)


@router.delete("/collections", response_model=DeleteResponse)
async def delete_collection(
    body: Any = Body(...),
    repo: CollectionRepository = Depends(get_collection_repository),
):
    """Delete a collection, moving its books to the first remaining one."""
    collection_id, _ = split_identifier(body)
    if not await repo.delete_collection(collection_id):
        raise NotFoundError("Collection not found", details={"id": collection_id})
    await repo.commit()
    return {"success": True}


# ============================================================================
# Database (tenant) Endpoints
# ============================================================================

@router.post("/databases", response_model=DatabaseResponse, status_code=201)
async def create_database(
    request: Optional[DatabaseCreate] = None,
    repo: DatabaseRepository = Depends(get_database_repository),
):
    """Create a tenant, under a chosen `dbId` or a generated one."""
    if request is None or not request.db_id:
        db_id = await repo.create_database()
        await repo.commit()
        return {"dbId": db_id, "exists": True}

    db_id = request.db_id.strip()
    if not await repo.create_database_with_id(db_id):
        raise DatabaseExistsError(db_id)
    await repo.commit()
    return {"dbId": db_id, "exists": True}


@router.get("/databases/{db_id}", response_model=DatabaseResponse)
async def get_database(
    db_id: str,
    repo: DatabaseRepository = Depends(get_database_repository),
):
    """Report whether any book or collection carries this `dbId`."""
    return {"dbId": db_id, "exists": await repo.database_exists(db_id)}


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    db_id: str = Depends(get_db_id),
    repo: DatabaseRepository = Depends(get_database_repository),
):
    """Book totals per status plus the tenant's collections."""
    stats = await repo.dashboard_stats(db_id)
    stats["collections"] = to_public_list(stats["collections"])
    return stats
