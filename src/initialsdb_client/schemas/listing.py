# src/initialsdb_client/schemas/listing.py
"""Listing-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_POST_CHARS = 255


class Listing(BaseModel):
    """A single immutable message stored on the board."""

    id: int
    body: str
    created_at: datetime

    model_config = ConfigDict(frozen=True)


class ListingCreate(BaseModel):
    """Request body for creating a new listing."""

    text: str = Field(..., min_length=1, max_length=MAX_POST_CHARS)


class SearchPage(BaseModel):
    """One page of search results plus the cursor for the next page."""

    items: list[Listing] = Field(default_factory=list)
    next_cursor: str | None = None

    @field_validator("next_cursor")
    @classmethod
    def _empty_cursor_is_end(cls, value: str | None) -> str | None:
        return value or None


class ListingCount(BaseModel):
    """Total number of visible listings."""

    count: int = Field(..., ge=0)
