"""
NamespacedMerger - prefixes every context key with its source event name

Input:
    'user:loaded':    {"count": 1, "name": "Alice"}
    'profile:loaded': {"count": 2, "city": "NYC"}

Output:
    {"user:loaded:count": 1, "user:loaded:name": "Alice",
     "profile:loaded:count": 2, "profile:loaded:city": "NYC"}

Default strategy: keys cannot collide, so no conflict is ever reported.
"""

from __future__ import annotations

from typing import Any

from weft.types import ContextMerger, EventName, MergeResult


class NamespacedMerger(ContextMerger):
    def __init__(self, separator: str = ":") -> None:
        self.separator = separator

    def merge_with_conflicts(
        self, contexts: dict[EventName, dict[str, Any]], sources: list[EventName]
    ) -> MergeResult:
        result: dict[str, Any] = {}
        for event_name, context in contexts.items():
            for key, value in context.items():
                result[f"{event_name}{self.separator}{key}"] = value
        return MergeResult(context=result)
