"""
Composition types

Buffered source events, merge results and the context merger contract used
when several kernels feed one composite event.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

EventName = str
TTLPolicy = float | Literal["permanent", "instant"]


@dataclass(frozen=True)
class BufferedEvent:
    """One contribution received from a source kernel."""

    name: str
    data: Any
    context: dict[str, Any]
    timestamp: float


@dataclass(frozen=True)
class ConflictInfo:
    """A context key provided by more than one source during a merge."""

    key: str
    sources: list[EventName]
    values: list[Any]


@dataclass
class MergeResult:
    context: dict[str, Any]
    conflicts: list[ConflictInfo] = field(default_factory=list)


@dataclass(frozen=True)
class CompositePayload:
    """Data carried by a composite event."""

    sources: list[EventName]
    contexts: dict[EventName, dict[str, Any]]
    merged: dict[str, Any]


class ContextMerger(ABC):
    """
    Strategy for merging per-source contexts into one composite context.

    Implementations receive the contexts keyed by source event name and the
    source names in declaration order.
    """

    @abstractmethod
    def merge_with_conflicts(
        self, contexts: dict[EventName, dict[str, Any]], sources: list[EventName]
    ) -> MergeResult:
        """Merge contexts and report every conflicting key."""

    def merge(
        self, contexts: dict[EventName, dict[str, Any]], sources: list[EventName]
    ) -> dict[str, Any]:
        return self.merge_with_conflicts(contexts, sources).context
