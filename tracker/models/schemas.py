"""Pydantic schemas for API request/response validation."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BookStatus(str, Enum):
    TBR = "TBR"
    READING = "Reading"
    READ = "Read"
    DNF = "DNF"
    ON_HOLD = "On Hold"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class BookCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=200)
    review: Optional[str] = None
    rating: StrictInt = Field(0, ge=0, le=5)
    status: BookStatus = BookStatus.TBR
    collection_id: str = Field(..., alias="collectionId", min_length=1)


class BookUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, min_length=1, max_length=200)
    review: Optional[str] = None
    rating: Optional[StrictInt] = Field(None, ge=0, le=5)
    status: Optional[BookStatus] = None
    collection_id: Optional[str] = Field(None, alias="collectionId", min_length=1)


class CollectionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""


class CollectionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None


class DatabaseCreate(BaseModel):
    db_id: Optional[str] = Field(None, alias="dbId")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

class BookResponse(BaseModel):
    id: str
    dbId: str
    title: str
    author: str
    review: Optional[str] = None
    rating: int
    status: BookStatus
    collectionId: str
    createdAt: datetime
    updatedAt: datetime


class CollectionResponse(BaseModel):
    id: str
    dbId: str
    title: str
    description: str
    createdAt: datetime
    updatedAt: datetime


class DatabaseResponse(BaseModel):
    dbId: str
    exists: bool = True


class DashboardStats(BaseModel):
    totalBooks: int
    collections: list[CollectionResponse]
    statusCounts: dict[str, int]


class DeleteResponse(BaseModel):
    success: bool = True
