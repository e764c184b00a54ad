"""Operation states of the request orchestrator.

The orchestrator holds exactly one of these values. The cursor of a result
set lives only in :class:`SearchResults`, and mutual exclusion of modes holds
by construction since a single variant is active at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias


@dataclass(frozen=True)
class Idle:
    """Nothing in flight and no result set on display."""


@dataclass(frozen=True)
class Searching:
    """A search page request is in flight."""

    continuation: bool = False


@dataclass(frozen=True)
class SearchResults:
    """A result set is on display; ``cursor`` is None on the last page."""

    cursor: str | None = None

    @property
    def has_more(self) -> bool:
        return self.cursor is not None


@dataclass(frozen=True)
class Posting:
    """The post panel is open and accepting text."""


@dataclass(frozen=True)
class SolvingPoW:
    """The post pipeline (challenge, solve, submit) is running."""


OperationState: TypeAlias = Idle | Searching | SearchResults | Posting | SolvingPoW

LOCKED_STATES: tuple[type, ...] = (Searching, SolvingPoW)


def is_locked(state: OperationState) -> bool:
    """Return True if competing user input must be ignored in ``state``."""
    return isinstance(state, LOCKED_STATES)
