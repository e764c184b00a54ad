"""Cancellation plumbing for in-flight operations.

Each operation class (search, post, count) owns one :class:`OperationSlot`.
Starting a new operation in a slot cancels the previous task and bumps the
slot's generation; the :class:`CancelToken` handed to the new operation is
only current while the generation still matches. Completion code checks the
token before touching shared state, so a late result from a replaced
operation is dropped even if it slipped past task cancellation.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

from initialsdb_client.core.errors import SupersededError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CancelToken:
    """Generation stamp captured by one operation of a slot."""

    slot: OperationSlot
    generation: int

    @property
    def cancelled(self) -> bool:
        return self.slot.generation != self.generation

    def raise_if_cancelled(self) -> None:
        """Raise SupersededError if a newer operation replaced this one."""
        if self.cancelled:
            raise SupersededError(f"{self.slot.name} operation superseded")


class OperationSlot:
    """Holds the single live task of one operation class."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._generation = 0
        self._task: asyncio.Task[Any] | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def task(self) -> asyncio.Task[Any] | None:
        return self._task

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(
        self, factory: Callable[[CancelToken], Coroutine[Any, Any, T]]
    ) -> asyncio.Task[T]:
        """Cancel the predecessor, then schedule ``factory(token)`` as a task.

        Must be called with a running event loop.
        """
        self.cancel()
        token = CancelToken(self, self._generation)
        task = asyncio.get_running_loop().create_task(
            factory(token), name=f"{self.name}-{token.generation}"
        )
        self._task = task
        task.add_done_callback(self._on_done)
        return task

    def cancel(self) -> bool:
        """Invalidate the current token and cancel its task.

        Returns:
            True if a running task was cancelled.
        """
        self._generation += 1
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        logger.debug("Cancelling %s", task.get_name())
        task.cancel()
        return True

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        if self._task is task:
            self._task = None
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "%s ended with an unhandled error",
                task.get_name(),
                exc_info=task.exception(),
            )
