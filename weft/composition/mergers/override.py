"""
OverrideMerger - last source wins

Sources are applied in declaration order; a later source overrides an
earlier one for the same key. Every key provided by more than one source is
reported as a conflict, with the sources and values in that order.
"""

from __future__ import annotations

from typing import Any

from weft.types import ConflictInfo, ContextMerger, EventName, MergeResult


class OverrideMerger(ContextMerger):
    def merge_with_conflicts(
        self, contexts: dict[EventName, dict[str, Any]], sources: list[EventName]
    ) -> MergeResult:
        key_sources: dict[str, list[tuple[EventName, Any]]] = {}

        for event_name in sources:
            context = contexts.get(event_name)
            if not context:
                continue
            for key, value in context.items():
                key_sources.setdefault(key, []).append((event_name, value))

        result: dict[str, Any] = {}
        conflicts: list[ConflictInfo] = []
        for key, provided in key_sources.items():
            if len(provided) > 1:
                conflicts.append(
                    ConflictInfo(
                        key=key,
                        sources=[source for source, _ in provided],
                        values=[value for _, value in provided],
                    )
                )
            result[key] = provided[-1][1]

        return MergeResult(context=result, conflicts=conflicts)
