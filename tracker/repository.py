"""Reading tracker repositories — validated, tenant-scoped document access.

Extends TenantRepository with the tracker's rules: book field validation,
case-insensitive unique collection titles, the keep-one-collection
invariant, and book reassignment when a collection is deleted.
"""

import logging
import uuid
from typing import Any, Mapping

from fastapi import Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import Database, get_database, get_session
from core.errors import (
    DuplicateNameError,
    InvariantViolationError,
    NotFoundError,
    PartialDeletionError,
    StoreUnavailableError,
    ValidationError,
)
from patterns.repository import TenantRepository, bounded
from patterns.rules_engine import evaluate_rules
from tracker.config import config
from tracker.models.db_models import Book, Collection
from tracker.rules import (
    BOOK_FIELDS,
    COLLECTION_FIELDS,
    book_create_rules,
    book_update_rules,
    check_db_id,
    check_not_last_collection,
    collection_create_rules,
    collection_update_rules,
    ensure_valid,
    normalize_title,
    parse_object_id,
)

logger = logging.getLogger(__name__)


def _pick(fields: Mapping[str, Any], allowed: tuple[str, ...]) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if k in allowed}


# ---------------------------------------------------------------------------
# Book repository
# ---------------------------------------------------------------------------

class BookRepository(TenantRepository[Book]):
    """Repository for book CRUD within one tenant."""

    model = Book
    field_map = {"collectionId": "collection_id"}

    async def list_books(
        self,
        status: str | None = None,
        collection_id: str | None = None,
    ) -> list[dict]:
        """All books of the tenant in store order, optionally filtered."""
        return await self.list({"status": status, "collectionId": collection_id})

    async def get_book(self, book_id: Any) -> dict:
        row = await self.get_row(parse_object_id(book_id))
        if row is None:
            raise NotFoundError("Book not found", details={"id": str(book_id)})
        return row.to_dict()

    async def create_book(self, fields: Mapping[str, Any]) -> dict:
        ensure_valid(book_create_rules(fields))
        data = {"rating": config.rating.min_rating, "status": config.default_status, "review": None}
        data.update(_pick(fields, BOOK_FIELDS))
        row = await self.insert(data)
        logger.info("Created book %s in %s", row.id, self.db_id)
        return row.to_dict()

    async def update_book(self, book_id: Any, fields: Mapping[str, Any]) -> dict:
        object_id = parse_object_id(book_id)
        ensure_valid(book_update_rules(fields))
        row = await self.get_row(object_id)
        if row is None:
            raise NotFoundError("Book not found", details={"id": str(book_id)})
        await self.apply(row, fields)
        return row.to_dict()

    async def delete_book(self, book_id: Any) -> bool:
        deleted = await self.remove(parse_object_id(book_id))
        if deleted:
            logger.info("Deleted book %s from %s", book_id, self.db_id)
        return deleted

    async def reassign_collection(self, from_collection_id: str, to_collection_id: str) -> int:
        """Point every book of one collection at another. Returns the count moved."""
        rows = await self.list_rows({"collectionId": from_collection_id})
        for row in rows:
            await self.apply(row, {"collectionId": to_collection_id})
        return len(rows)


# ---------------------------------------------------------------------------
# Collection repository
# ---------------------------------------------------------------------------

class CollectionRepository(TenantRepository[Collection]):
    """Repository for collections, enforcing unique titles and the last-one rule."""

    model = Collection

    async def list_collections(self) -> list[dict]:
        return await self.list()

    async def get_collection(self, collection_id: Any) -> dict:
        row = await self.get_row(parse_object_id(collection_id))
        if row is None:
            raise NotFoundError("Collection not found", details={"id": str(collection_id)})
        return row.to_dict()

    async def _ensure_unique_title(self, title: str, exclude_id: uuid.UUID | None = None) -> None:
        key = normalize_title(title)
        for row in await self.list_rows():
            if row.id != exclude_id and normalize_title(row.title) == key:
                raise DuplicateNameError(
                    "A collection with this name already exists",
                    details={"title": title},
                )

    async def create_collection(self, fields: Mapping[str, Any]) -> dict:
        ensure_valid(collection_create_rules(fields))
        await self._ensure_unique_title(fields["title"])
        data = {"description": ""}
        data.update(_pick(fields, COLLECTION_FIELDS))
        if data["description"] is None:
            data["description"] = ""
        row = await self.insert(data)
        logger.info("Created collection %s in %s", row.id, self.db_id)
        return row.to_dict()

    async def update_collection(self, collection_id: Any, fields: Mapping[str, Any]) -> dict:
        object_id = parse_object_id(collection_id)
        ensure_valid(collection_update_rules(fields))
        row = await self.get_row(object_id)
        if row is None:
            raise NotFoundError("Collection not found", details={"id": str(collection_id)})
        if "title" in fields:
            await self._ensure_unique_title(fields["title"], exclude_id=row.id)
        data = dict(fields)
        if "description" in data and data["description"] is None:
            data["description"] = ""
        await self.apply(row, data)
        return row.to_dict()

    async def delete_collection(self, collection_id: Any) -> bool:
        """Move the collection's books to the first remaining collection, then delete it.

        Returns False when the collection does not exist. Raises
        InvariantViolationError, without touching any data, when it is the
        tenant's only collection. A failure after books were moved raises
        PartialDeletionError so callers can tell it from a clean failure.
        """
        object_id = parse_object_id(collection_id)
        # Concurrent deletes in the same tenant queue behind this lock
        rows = await self.list_rows(lock=True)
        target = next((r for r in rows if r.id == object_id), None)
        if target is None:
            return False

        rule = check_not_last_collection(len(rows))
        if not rule.passed:
            raise InvariantViolationError(rule.message, details=rule.details)

        destination = next(r for r in rows if r.id != target.id)
        books = BookRepository(self.session, self.db_id, timeout=self.timeout)
        moved = await books.reassign_collection(str(target.id), str(destination.id))

        try:
            await self.session.delete(target)
            await self._flush()
        except (StoreUnavailableError, SQLAlchemyError) as exc:
            if not moved:
                raise
            logger.error(
                "Moved %d books from %s to %s but could not delete the collection (dbId=%s)",
                moved, target.id, destination.id, self.db_id,
            )
            raise PartialDeletionError(
                "Books were reassigned but the collection could not be deleted",
                details={"moved": moved, "destinationId": str(destination.id)},
            ) from exc

        if not await self.exists():
            # Another writer removed the destination after the count above
            rule = check_not_last_collection(1)
            logger.error("Deleting collection %s would empty %s", target.id, self.db_id)
            raise InvariantViolationError(rule.message, details=rule.details)

        logger.info(
            "Deleted collection %s from %s (%d books moved to %s)",
            target.id, self.db_id, moved, destination.id,
        )
        return True


# ---------------------------------------------------------------------------
# Tenant ("database") operations
# ---------------------------------------------------------------------------

class DatabaseRepository:
    """Tenant-level operations: existence, creation, and dashboard stats."""

    def __init__(self, session: AsyncSession, timeout: float | None = None):
        self.session = session
        self.timeout = timeout

    async def commit(self) -> None:
        await bounded(self.session.commit(), self.timeout)

    def books(self, db_id: str) -> BookRepository:
        return BookRepository(self.session, db_id, timeout=self.timeout)

    def collections(self, db_id: str) -> CollectionRepository:
        return CollectionRepository(self.session, db_id, timeout=self.timeout)

    async def database_exists(self, db_id: str) -> bool:
        """True iff any book or collection carries this dbId."""
        if await self.books(db_id).exists():
            return True
        return await self.collections(db_id).exists()

    async def _seed(self, db_id: str) -> None:
        await self.collections(db_id).create_collection({
            "title": config.tenant.default_collection_title,
            "description": config.tenant.default_collection_description,
        })

    async def create_database(self) -> str:
        """Create a tenant under a random id, seeded with the default collection."""
        db_id = str(uuid.uuid4())
        await self._seed(db_id)
        logger.info("Created database %s", db_id)
        return db_id

    async def create_database_with_id(self, db_id: str) -> bool:
        """Create a tenant under a chosen id. False when it already exists."""
        ensure_valid(evaluate_rules(check_db_id(db_id)))
        if await self.database_exists(db_id):
            return False
        await self._seed(db_id)
        logger.info("Created database %s", db_id)
        return True

    async def dashboard_stats(self, db_id: str) -> dict:
        books = await self.books(db_id).list_books()
        collections = await self.collections(db_id).list_collections()
        status_counts = {status: 0 for status in config.statuses}
        for book in books:
            status_counts[book["status"]] = status_counts.get(book["status"], 0) + 1
        return {
            "totalBooks": len(books),
            "collections": collections,
            "statusCounts": status_counts,
        }


# ---------------------------------------------------------------------------
# FastAPI dependency factories
# ---------------------------------------------------------------------------

def get_db_id(
    db_id: str | None = Query(None, alias="dbId"),
) -> str:
    """The tenant id from the `dbId` query parameter (required)."""
    if not db_id or not db_id.strip():
        raise ValidationError("dbId is required as a query parameter")
    return db_id


def get_book_repository(
    db_id: str = Depends(get_db_id),
    session: AsyncSession = Depends(get_session),
    database: Database = Depends(get_database),
) -> BookRepository:
    """FastAPI dependency for BookRepository."""
    return BookRepository(session, db_id, timeout=database.timeout)


def get_collection_repository(
    db_id: str = Depends(get_db_id),
    session: AsyncSession = Depends(get_session),
    database: Database = Depends(get_database),
) -> CollectionRepository:
    """FastAPI dependency for CollectionRepository."""
    return CollectionRepository(session, db_id, timeout=database.timeout)


def get_database_repository(
    session: AsyncSession = Depends(get_session),
    database: Database = Depends(get_database),
) -> DatabaseRepository:
    """FastAPI dependency for DatabaseRepository."""
    return DatabaseRepository(session, timeout=database.timeout)
