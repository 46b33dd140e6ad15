"""Base model and mixins for all SQLAlchemy models.

Provides:
- Base: Declarative base class for all models
- TenantMixin: Adds the store-native `_id`, the `dbId` tenant tag, and timestamps

Every stored document inherits from Base and includes TenantMixin. The
`dbId` column is indexed for efficient per-tenant queries. Timestamps are
assigned by the repository, not the server, so `updatedAt` can be kept
strictly increasing.
"""

import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import DateTime, Text, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops the offset on read)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def next_timestamp(previous: datetime | None) -> datetime:
    """Return now, bumped past `previous` so updates always move forward."""
    now = utcnow()
    previous = as_utc(previous)
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class Base(DeclarativeBase):
    """Declarative base for all reading-tracker documents."""
    pass


class TenantMixin:
    """Mixin providing tenant isolation and standard audit columns.

    Adds:
    - id: UUID primary key stored as `_id` (store-native identifier)
    - db_id: Indexed tenant tag stored as `dbId`
    - created_at: Set once on insert
    - updated_at: Refreshed on every mutation
    """

    id: Mapped[uuid.UUID] = mapped_column(
        "_id",
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    db_id: Mapped[str] = mapped_column(
        "dbId",
        Text,
        index=True,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        "createdAt",
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        "updatedAt",
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
