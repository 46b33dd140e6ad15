"""SQLAlchemy models for the reading tracker.

Each model inherits from Base and uses TenantMixin for tenant isolation.
The to_dict() method returns the stored document: the store-native `_id`
stays under its own key and is only renamed at the HTTP boundary.
"""

from sqlalchemy import String, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.models.base import Base, TenantMixin, as_utc


class Book(TenantMixin, Base):
    """A book on a tenant's shelf."""

    __tablename__ = "books"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    review: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="TBR")
    collection_id: Mapped[str] = mapped_column(
        "collectionId", Text, nullable=False, index=True
    )

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "dbId": self.db_id,
            "title": self.title,
            "author": self.author,
            "review": self.review,
            "rating": self.rating,
            "status": self.status,
            "collectionId": self.collection_id,
            "createdAt": as_utc(self.created_at),
            "updatedAt": as_utc(self.updated_at),
        }


class Collection(TenantMixin, Base):
    """A user-defined grouping of books."""

    __tablename__ = "collections"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "dbId": self.db_id,
            "title": self.title,
            "description": self.description,
            "createdAt": as_utc(self.created_at),
            "updatedAt": as_utc(self.updated_at),
        }
