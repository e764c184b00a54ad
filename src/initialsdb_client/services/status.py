"""Append-only status message log."""

from __future__ import annotations

import itertools
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class Severity(str, Enum):
    """Status message severities."""

    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class StatusMessage:
    """A single entry of the status log."""

    id: int
    text: str
    severity: Severity
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class StatusLog:
    """Append-only log of status messages.

    Only the latest entry is ever displayed. Ordering follows append order via a
    monotonic id, so two messages sharing a timestamp still sort correctly.
    """

    def __init__(self, greeting: str | None = None) -> None:
        self._ids = itertools.count()
        self._messages: list[StatusMessage] = []
        if greeting:
            self.push(greeting)

    def push(self, text: str, severity: Severity = Severity.INFO) -> StatusMessage:
        """Append a message and return it."""
        message = StatusMessage(id=next(self._ids), text=text, severity=severity)
        self._messages.append(message)
        return message

    def info(self, text: str) -> StatusMessage:
        return self.push(text, Severity.INFO)

    def error(self, text: str) -> StatusMessage:
        return self.push(text, Severity.ERROR)

    @property
    def latest(self) -> StatusMessage | None:
        return self._messages[-1] if self._messages else None

    def __iter__(self) -> Iterator[StatusMessage]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)
