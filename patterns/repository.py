"""Async repository pattern for tenant-scoped document access.

Provides a generic base repository bound to one tenant (`dbId`) with CRUD
operations, bounded store calls, and store-error translation. The tracker
repositories subclass this to add validation and cross-document rules.

Every statement built here is filtered by the bound tenant; there is no
code path that reads or writes a row without the `dbId` predicate.
"""

import asyncio
import logging
import uuid
from typing import Any, Generic, Mapping, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import StoreUnavailableError, ValidationError
from core.models.base import Base, next_timestamp, utcnow

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Type variable for model classes
# ---------------------------------------------------------------------------

ModelT = TypeVar("ModelT", bound=Base)


async def bounded(awaitable, timeout: float | None, db_id: str | None = None):
    """Await a store call under `timeout`, translating connectivity failures."""
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as exc:
        logger.error("Store call timed out after %ss (dbId=%s)", timeout, db_id)
        raise StoreUnavailableError("Store call timed out") from exc
    except (OperationalError, InterfaceError) as exc:
        logger.error("Store unavailable (dbId=%s): %s", db_id, exc)
        raise StoreUnavailableError("Store unavailable") from exc
    except DBAPIError as exc:
        if exc.connection_invalidated:
            raise StoreUnavailableError("Store connection lost") from exc
        raise


# ---------------------------------------------------------------------------
# Base repository
# ---------------------------------------------------------------------------

class TenantRepository(Generic[ModelT]):
    """Generic async repository scoped to a single tenant.

    Subclass and set `model` (and `field_map` for document keys whose
    attribute name differs)::

        class BookRepository(TenantRepository[Book]):
            model = Book
            field_map = {"collectionId": "collection_id"}
    """

    model: type[ModelT]
    field_map: dict[str, str] = {}

    def __init__(self, session: AsyncSession, db_id: str, timeout: float | None = None):
        if not isinstance(db_id, str) or not db_id.strip():
            raise ValidationError("dbId is required as a query parameter")
        self.session = session
        self.db_id = db_id
        self.timeout = timeout

    # -- Store access --

    async def _bounded(self, awaitable):
        return await bounded(awaitable, self.timeout, self.db_id)

    async def _execute(self, stmt):
        return await self._bounded(self.session.execute(stmt))

    async def _flush(self) -> None:
        await self._bounded(self.session.flush())

    async def commit(self) -> None:
        """Commit the unit of work; callers do this before answering a write."""
        await self._bounded(self.session.commit())

    def _scoped(self):
        return select(self.model).where(self.model.db_id == self.db_id)

    def _attribute(self, key: str) -> str:
        return self.field_map.get(key, key)

    # -- List --

    async def list_rows(
        self,
        filters: Mapping[str, Any] | None = None,
        lock: bool = False,
    ) -> list[ModelT]:
        """Rows of this tenant in store order, optionally filtered by equality.

        With `lock`, the rows stay locked (SELECT ... FOR UPDATE) until the
        transaction ends. Backends without row locks ignore it.
        """
        stmt = self._scoped()
        if filters:
            for key, value in filters.items():
                if value is not None:
                    stmt = stmt.where(getattr(self.model, self._attribute(key)) == value)
        if lock:
            stmt = stmt.with_for_update()
        result = await self._execute(stmt)
        return list(result.scalars().all())

    async def list(self, filters: Mapping[str, Any] | None = None) -> list[dict]:
        return [row.to_dict() for row in await self.list_rows(filters)]

    async def exists(self) -> bool:
        """True when the tenant has at least one row of this model."""
        stmt = select(self.model.id).where(self.model.db_id == self.db_id).limit(1)
        result = await self._execute(stmt)
        return result.first() is not None

    # -- Get by ID --

    async def get_row(self, item_id: uuid.UUID) -> ModelT | None:
        """Fetch one row by id; the tenant predicate is always applied."""
        stmt = self._scoped().where(self.model.id == item_id)
        result = await self._execute(stmt)
        return result.scalar_one_or_none()

    # -- Create --

    async def insert(self, data: Mapping[str, Any]) -> ModelT:
        now = utcnow()
        values = {self._attribute(k): v for k, v in data.items()}
        item = self.model(db_id=self.db_id, created_at=now, updated_at=now, **values)
        self.session.add(item)
        await self._flush()
        return item

    # -- Update --

    async def apply(self, item: ModelT, data: Mapping[str, Any]) -> ModelT:
        """Merge fields into a loaded row and move updated_at forward."""
        for key, value in data.items():
            setattr(item, self._attribute(key), value)
        item.updated_at = next_timestamp(item.updated_at)
        await self._flush()
        return item

    # -- Delete --

    async def remove(self, item_id: uuid.UUID) -> bool:
        """Delete a row. Returns True if deleted, False if not found."""
        item = await self.get_row(item_id)
        if item is None:
            return False
        await self.session.delete(item)
        await self._flush()
        return True
