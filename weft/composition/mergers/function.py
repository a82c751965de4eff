"""Adapter turning a plain ``contexts -> dict`` callable into a ContextMerger."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from weft.composition.mergers.namespaced import NamespacedMerger
from weft.types import ContextMerger, EventName, MergeResult

ContextMergerFunction = Callable[[dict[EventName, dict[str, Any]]], dict[str, Any]]


class FunctionMerger(ContextMerger):
    """Wraps a merge function. Function mergers never report conflicts."""

    def __init__(self, func: ContextMergerFunction) -> None:
        self.func = func

    def merge_with_conflicts(
        self, contexts: dict[EventName, dict[str, Any]], sources: list[EventName]
    ) -> MergeResult:
        return MergeResult(context=dict(self.func(contexts)))


def resolve_merger(value: ContextMerger | ContextMergerFunction | None) -> ContextMerger:
    """Coerce a configured merger value; None selects the namespaced merger."""
    if value is None:
        return NamespacedMerger()
    if isinstance(value, ContextMerger):
        return value
    if callable(value):
        return FunctionMerger(value)
    raise TypeError(f"Expected a ContextMerger or callable, got {type(value).__name__}")
