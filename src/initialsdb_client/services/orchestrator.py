"""Request orchestrator for the board client.

The :class:`Orchestrator` owns the single :data:`OperationState`, the status
log and one :class:`OperationSlot` per operation class. User actions are plain
synchronous methods, as a UI event handler would call them; the ones that hit
the network schedule an ``asyncio.Task`` on the running loop and return it, or
return None when the action is ignored.

All state mutation happens on the event loop thread between await points, so
no locking is needed. Completions may resume in any order; every completion
checks its :class:`CancelToken` first and is dropped if a newer operation of
the same class has started since.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from initialsdb_client.core.errors import (
    BoardError,
    ChallengeUnavailableError,
    CountUnavailableError,
    PostFailedError,
    PowExpiredError,
    SearchFailedError,
    SupersededError,
    ValidationFailedError,
)
from initialsdb_client.core.settings import settings
from initialsdb_client.schemas import MAX_POST_CHARS, Listing
from initialsdb_client.services.board import PAGE_SIZE, BoardClient
from initialsdb_client.services.operations import CancelToken, OperationSlot
from initialsdb_client.services.state import (
    Idle,
    OperationState,
    Posting,
    Searching,
    SearchResults,
    SolvingPoW,
    is_locked,
)
from initialsdb_client.services.status import StatusLog, StatusMessage
from initialsdb_client.utils.pow_client import ProgressCallback, solve_pow

logger = logging.getLogger(__name__)

Solver = Callable[[bytes, int, float, ProgressCallback | None], Awaitable[str]]

COUNT_PLACEHOLDER = "unknown"

SEARCH_CLEARED = "Search cleared."
SEARCH_FAILED = "Search failed."
POST_SAVED = "Post saved."

_POST_FAILURE_MESSAGES: dict[type[BoardError], str] = {
    ChallengeUnavailableError: "Challenge unavailable, submit again.",
    PowExpiredError: "PoW did not complete, submit again.",
    PostFailedError: "Post failed, submit again.",
    ValidationFailedError: "Post rejected, edit and submit again.",
}
_DEFAULT_POST_FAILURE = "PoW did not complete, submit again."


def validate_post_text(text: str) -> str:
    """Return ``text`` if it can be posted, else raise ValidationFailedError.

    Length is measured in Unicode code points.
    """
    if not text.strip():
        raise ValidationFailedError("Post is empty.")
    if len(text) > MAX_POST_CHARS:
        raise ValidationFailedError(f"Post exceeds {MAX_POST_CHARS} characters.")
    return text


class Orchestrator:
    """State machine mediating every network-triggering user action."""

    def __init__(
        self,
        client: BoardClient,
        *,
        status: StatusLog | None = None,
        solver: Solver | None = None,
    ) -> None:
        self._client = client
        self._solve: Solver = solver or solve_pow
        self.status = status if status is not None else StatusLog(settings.board_status_greeting)

        self._state: OperationState = Idle()
        self.query = ""
        self.post_text = ""
        self.post_open = False
        self.items: list[Listing] = []
        self.total_count: int | None = None
        self.pow_info: str | None = None
        self._active_query = ""

        self._search_slot = OperationSlot("search")
        self._post_slot = OperationSlot("post")
        self._count_slot = OperationSlot("count")

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    @property
    def state(self) -> OperationState:
        return self._state

    @property
    def locked(self) -> bool:
        """True while the search box and post toggle must be disabled."""
        return is_locked(self._state)

    @property
    def has_more(self) -> bool:
        return isinstance(self._state, SearchResults) and self._state.has_more

    @property
    def current_status(self) -> StatusMessage | None:
        return self.status.latest

    @property
    def count_label(self) -> str:
        if self.total_count is None:
            return COUNT_PLACEHOLDER
        return f"{self.total_count:,}"

    def _transition(self, new_state: OperationState) -> None:
        logger.debug("State %s -> %s", self._state, new_state)
        self._state = new_state

    # ------------------------------------------------------------------
    # Input buffers
    # ------------------------------------------------------------------

    def set_query(self, text: str) -> bool:
        if self.locked:
            return False
        self.query = text
        return True

    def set_post_text(self, text: str) -> bool:
        if self.locked:
            return False
        self.post_text = text
        return True

    # ------------------------------------------------------------------
    # Search class
    # ------------------------------------------------------------------

    def submit_query(self, query: str | None = None) -> asyncio.Task[None] | None:
        """Start a first-page search, or clear results for a blank query.

        Ignored while a locked state is active.
        """
        if self.locked:
            logger.debug("Ignoring search while %s", self._state)
            return None
        if query is not None:
            self.query = query

        self.post_open = False
        self._transition(Idle())

        if not self.query.strip():
            self._search_slot.cancel()
            self.items = []
            self.status.info(SEARCH_CLEARED)
            return None

        active_query = self.query
        self._active_query = active_query
        self._transition(Searching())
        return self._search_slot.start(
            lambda token: self._run_search(token, active_query, None)
        )

    def load_more(self) -> asyncio.Task[None] | None:
        """Fetch the next page of the current result set, if there is one."""
        state = self._state
        if not isinstance(state, SearchResults) or state.cursor is None:
            return None
        if self._search_slot.busy:
            return None

        cursor = state.cursor
        active_query = self._active_query
        self._transition(Searching(continuation=True))
        return self._search_slot.start(
            lambda token: self._run_search(token, active_query, cursor)
        )

    async def _run_search(self, token: CancelToken, query: str, cursor: str | None) -> None:
        try:
            page = await self._client.search(query, limit=PAGE_SIZE, cursor=cursor)
            token.raise_if_cancelled()
        except SupersededError:
            logger.debug("Dropping superseded search for %r", query)
            return
        except SearchFailedError as exc:
            if token.cancelled:
                return
            logger.warning("Search for %r failed: %s", query, exc)
            # A failed continuation keeps its cursor so the user can retry.
            self._transition(Idle() if cursor is None else SearchResults(cursor))
            self.status.error(SEARCH_FAILED)
            return

        if cursor is None:
            self.items = list(page.items)
            self.status.info(f"Results: {len(page.items)}")
        else:
            self.items.extend(page.items)
        self._transition(SearchResults(page.next_cursor))

    # ------------------------------------------------------------------
    # Post class
    # ------------------------------------------------------------------

    def toggle_post_panel(self) -> bool:
        """Open or close the post panel. Returns False when ignored."""
        if self.locked:
            return False
        if isinstance(self._state, Posting):
            self.post_open = False
            self._transition(Idle())
        else:
            self.post_open = True
            self._transition(Posting())
        return True

    def submit_post(self, text: str | None = None) -> asyncio.Task[Listing | None] | None:
        """Validate the post text and start the challenge, solve, submit pipeline."""
        if not isinstance(self._state, Posting):
            logger.debug("Ignoring post submit while %s", self._state)
            return None
        if text is not None:
            self.post_text = text

        post_text = self.post_text
        try:
            validate_post_text(post_text)
        except ValidationFailedError as exc:
            self.status.error(str(exc))
            return None

        self._transition(SolvingPoW())
        return self._post_slot.start(lambda token: self._run_post(token, post_text))

    def _progress_reporter(self, token: CancelToken) -> ProgressCallback:
        def report(tries: int, remaining: int) -> None:
            if not token.cancelled:
                self.pow_info = f"{tries:,} tries · {remaining}s"

        return report

    async def _run_post(self, token: CancelToken, text: str) -> Listing | None:
        # Every attempt starts from a fresh challenge; nothing is reused.
        try:
            challenge = await self._client.get_challenge()
            token.raise_if_cancelled()
            nonce = await self._solve(
                challenge.challenge_bytes,
                challenge.difficulty,
                challenge.ttl_secs,
                self._progress_reporter(token),
            )
            token.raise_if_cancelled()
            listing = await self._client.create_listing(text, challenge, nonce)
            token.raise_if_cancelled()
        except SupersededError:
            logger.debug("Dropping superseded post attempt")
            return None
        except BoardError as exc:
            if token.cancelled:
                return None
            logger.warning("Post pipeline failed: %s", exc)
            self.pow_info = None
            self._transition(Posting())
            self.status.error(_POST_FAILURE_MESSAGES.get(type(exc), _DEFAULT_POST_FAILURE))
            return None

        if self.total_count is not None:
            self.total_count += 1
        self.post_text = ""
        self.pow_info = None
        self.post_open = False
        self._transition(Idle())
        self.status.info(POST_SAVED)
        return listing

    # ------------------------------------------------------------------
    # Count
    # ------------------------------------------------------------------

    def refresh_count(self) -> asyncio.Task[None]:
        """Fetch the total listing count; failures leave the count unchanged."""
        return self._count_slot.start(self._run_count)

    async def _run_count(self, token: CancelToken) -> None:
        try:
            count = await self._client.count()
        except CountUnavailableError as exc:
            logger.debug("Count unavailable: %s", exc)
            return
        if token.cancelled:
            return
        self.total_count = count

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Cancel every in-flight operation and return to Idle."""
        for slot in (self._search_slot, self._post_slot, self._count_slot):
            slot.cancel()
        self.pow_info = None
        self.post_open = False
        self._transition(Idle())

    async def aclose(self) -> None:
        """Reset and wait for cancelled tasks to unwind."""
        tasks = [
            slot.task
            for slot in (self._search_slot, self._post_slot, self._count_slot)
            if slot.task is not None
        ]
        self.reset()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
