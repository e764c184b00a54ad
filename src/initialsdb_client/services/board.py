"""Board client for talking to the initialsDB HTTP API.

This module provides the BoardClient class that wraps every network call the
client makes:

- fetching a proof-of-work challenge
- paginated listing search
- creating a listing with a solved proof-of-work
- reading the total listing count

Each call maps transport failures, non-2xx responses and malformed payloads to
the matching :mod:`initialsdb_client.core.errors` exception.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from initialsdb_client.core.errors import (
    BoardError,
    ChallengeUnavailableError,
    CountUnavailableError,
    PostFailedError,
    SearchFailedError,
    ValidationFailedError,
)
from initialsdb_client.core.settings import settings
from initialsdb_client.schemas import (
    Listing,
    ListingCount,
    ListingCreate,
    PowChallenge,
    SearchPage,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = 30

POW_CHALLENGE_HEADER = "X-PoW-Challenge"
POW_NONCE_HEADER = "X-PoW-Nonce"
POW_TOKEN_HEADER = "X-PoW-Token"


@dataclass(frozen=True)
class BoardConfig:
    """Immutable configuration for board operations."""

    base_url: str
    challenge_path: str
    search_path: str
    create_path: str
    count_path: str
    timeout_seconds: float | None


def load_board_config() -> BoardConfig:
    """Build configuration object from global settings."""

    return BoardConfig(
        base_url=settings.board_base_url,
        challenge_path=settings.board_challenge_path,
        search_path=settings.board_search_path,
        create_path=settings.board_create_path,
        count_path=settings.board_count_path,
        timeout_seconds=settings.board_http_timeout_seconds,
    )


class BoardClient:
    """HTTP client wrapper for board interactions."""

    def __init__(
        self,
        config: BoardConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_board_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def __aenter__(self) -> BoardClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        error_cls: type[BoardError],
        *,
        params: Mapping[str, Any] | None = None,
        json_data: Any | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body of a 2xx response."""
        client = await self._ensure_client()
        endpoint = f"{method} {path}"

        try:
            response = await client.request(
                method,
                path,
                params=params,
                json=json_data,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.warning("Board request %s failed: %s", endpoint, exc)
            raise error_cls(f"{endpoint} failed: {exc}") from exc

        if not response.is_success:
            logger.warning("Board responded with %d for %s", response.status_code, endpoint)
            raise error_cls(f"{endpoint} responded with {response.status_code}")

        try:
            return response.json()
        except ValueError as exc:
            raise error_cls(f"{endpoint} returned a non-JSON body") from exc

    async def get_challenge(self) -> PowChallenge:
        """Fetch a fresh single-use proof-of-work challenge."""

        payload = await self._request(
            "GET", self.config.challenge_path, ChallengeUnavailableError
        )
        try:
            challenge = PowChallenge.model_validate(payload)
        except ValidationError as exc:
            raise ChallengeUnavailableError("malformed challenge payload") from exc

        logger.debug(
            "Fetched challenge difficulty=%d ttl=%ds", challenge.difficulty, challenge.ttl_secs
        )
        return challenge

    async def search(
        self,
        query: str,
        *,
        limit: int = PAGE_SIZE,
        cursor: str | None = None,
    ) -> SearchPage:
        """Fetch one page of listings matching ``query``.

        Args:
            query: Search text.
            limit: Page size.
            cursor: Continuation cursor from the previous page, if any.

        Returns:
            The page of listings; ``next_cursor`` is None on the last page.
        """
        params: dict[str, Any] = {"q": query, "limit": limit}
        if cursor:
            params["cursor"] = cursor

        payload = await self._request(
            "GET", self.config.search_path, SearchFailedError, params=params
        )
        try:
            return SearchPage.model_validate(payload)
        except ValidationError as exc:
            raise SearchFailedError("malformed search payload") from exc

    async def create_listing(self, text: str, challenge: PowChallenge, nonce: str) -> Listing:
        """Create a listing, proving work with a solved challenge."""

        try:
            body = ListingCreate(text=text)
        except ValidationError as exc:
            raise ValidationFailedError("post text must be 1 to 255 characters") from exc

        headers = {
            POW_CHALLENGE_HEADER: challenge.challenge,
            POW_NONCE_HEADER: nonce,
            POW_TOKEN_HEADER: challenge.token,
        }

        payload = await self._request(
            "POST",
            self.config.create_path,
            PostFailedError,
            json_data=body.model_dump(),
            headers=headers,
        )
        try:
            listing = Listing.model_validate(payload)
        except ValidationError as exc:
            raise PostFailedError("malformed listing payload") from exc

        logger.info("Created listing %d", listing.id)
        return listing

    async def count(self) -> int:
        """Return the total number of visible listings."""

        payload = await self._request("GET", self.config.count_path, CountUnavailableError)
        try:
            return ListingCount.model_validate(payload).count
        except ValidationError as exc:
            raise CountUnavailableError("malformed count payload") from exc

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
