"""Shared data types."""

from weft.types.composition import (
    BufferedEvent,
    CompositePayload,
    ConflictInfo,
    ContextMerger,
    EventName,
    MergeResult,
    TTLPolicy,
)
from weft.types.listener import (
    ExecutionError,
    ListenerEntry,
    ListenerFunction,
    PredicateFunction,
)

__all__ = [
    # Listener
    "ListenerEntry",
    "ListenerFunction",
    "PredicateFunction",
    "ExecutionError",
    # Composition
    "EventName",
    "TTLPolicy",
    "BufferedEvent",
    "ConflictInfo",
    "MergeResult",
    "CompositePayload",
    "ContextMerger",
]
