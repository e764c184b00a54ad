"""
Pydantic schemas for board request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .listing import MAX_POST_CHARS, Listing, ListingCount, ListingCreate, SearchPage
from .pow import PowChallenge

__all__ = [
    "MAX_POST_CHARS",
    "Listing", "ListingCount", "ListingCreate", "SearchPage",
    "PowChallenge",
]
