"""Listener registry types."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from weft.kernel.cancellation import CancellationToken
    from weft.kernel.context import ListenerContext
    from weft.kernel.event import KernelEvent

ListenerFunction = Callable[["KernelEvent", "ListenerContext"], Any]
PredicateFunction = Callable[["KernelEvent"], bool]


@dataclass(frozen=True, eq=False)
class ListenerEntry:
    """
    One registered callback.

    Entries compare by identity: two registrations of the same callback are
    two entries, and the entry object itself is the removal handle.
    """

    id: str
    pattern: str
    callback: ListenerFunction
    priority: float = 0
    after: tuple[str, ...] = ()
    once: bool | PredicateFunction = False
    token: CancellationToken | None = None
    sequence: int = 0

    @property
    def is_one_shot(self) -> bool:
        return self.once is not False

    def should_remove(self, event: KernelEvent) -> bool:
        """Cardinality check, evaluated after the emission has run."""
        if self.once is True:
            return True
        if callable(self.once):
            return bool(self.once(event))
        return False


@dataclass
class ExecutionError:
    listener_id: str
    error: Exception
    event_name: str
    timestamp: float = field(default_factory=time.time)
