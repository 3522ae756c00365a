import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class SortField(str, Enum):
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


class SortOrder(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


class ListOptions(BaseModel):
    """Ordering for post listings. Defaults to newest first."""

    sortBy: SortField = SortField.CREATED_AT
    sortOrder: SortOrder = SortOrder.DESCENDING


class PostCreate(BaseModel):
    # title is optional here so the service can report it by name
    title: Optional[str] = None
    author: Optional[str] = None
    contents: Optional[str] = None
    tags: Optional[List[str]] = None


class PostUpdate(PostCreate):
    """Only fields explicitly set on the request are written."""


class Post(BaseModel):
    id: str
    title: str
    author: Optional[str] = None
    contents: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    createdAt: datetime.datetime
    updatedAt: datetime.datetime


class DeleteResult(BaseModel):
    deletedCount: int
