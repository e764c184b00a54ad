"""Exception hierarchy for board client operations.

Every failure the client can surface derives from :class:`BoardError`, so the
orchestrator can catch one base class at its boundary and map each kind to a
state transition and a status message.
"""

from __future__ import annotations


class BoardError(RuntimeError):
    """Base exception raised for board-related failures."""


class ChallengeUnavailableError(BoardError):
    """Raised when a proof-of-work challenge cannot be fetched or parsed."""


class PowExpiredError(BoardError):
    """Raised when the solver runs past the challenge deadline.

    The challenge that produced this error is spent; a fresh one must be
    requested before the next attempt.
    """


class SearchFailedError(BoardError):
    """Raised when a search request fails or returns an unusable payload."""


class PostFailedError(BoardError):
    """Raised when the server rejects or fails to store a new listing."""


class CountUnavailableError(BoardError):
    """Raised when the total listing count cannot be fetched."""


class ValidationFailedError(BoardError):
    """Raised when post text is rejected before any network call."""


class SupersededError(BoardError):
    """Raised when a newer operation of the same class replaced this one.

    This is not a user-visible failure and is never logged as an error.
    """
