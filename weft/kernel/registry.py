"""
Listener Registry

Owns the mapping from pattern to listener entries. Each bucket is kept in
descending priority order, ties in registration order. Collection for an
emission returns a snapshot, so registration changes made while the
emission runs only affect later emissions.
"""

from __future__ import annotations

import bisect
import itertools
from collections.abc import Callable, Iterator
from typing import Any

from weft.errors import MissingDependencyError
from weft.kernel.toposort import TopoNode, dependency_levels
from weft.kernel.wildcard import find_matching_patterns
from weft.types import ListenerEntry, ListenerFunction, PredicateFunction


def _sort_key(entry: ListenerEntry) -> tuple[float, int]:
    return (-entry.priority, entry.sequence)


class ListenerRegistry:
    """Pattern buckets plus dependency-aware ordering of collected entries."""

    def __init__(self) -> None:
        self._buckets: dict[str, list[ListenerEntry]] = {}
        self._detach: dict[ListenerEntry, Callable[[], None]] = {}
        self._sequence = itertools.count(1)

    # ==================== Registration ====================

    def add(
        self,
        pattern: str,
        callback: ListenerFunction,
        *,
        id: str | None = None,
        after: str | list[str] | tuple[str, ...] | None = None,
        priority: float = 0,
        once: bool | PredicateFunction = False,
        token: Any = None,
    ) -> ListenerEntry:
        sequence = next(self._sequence)
        if after is None:
            after = ()
        elif isinstance(after, str):
            after = (after,)

        entry = ListenerEntry(
            id=id if id is not None else f"listener_{sequence}",
            pattern=pattern,
            callback=callback,
            priority=priority,
            after=tuple(after),
            once=once,
            token=token,
            sequence=sequence,
        )

        bucket = self._buckets.setdefault(pattern, [])
        bisect.insort_right(bucket, entry, key=_sort_key)

        if token is not None:
            self._detach[entry] = token.register(lambda: self.remove(entry))

        return entry

    def remove(self, entry: ListenerEntry) -> bool:
        """Remove one entry by identity. Returns False if it was already gone."""
        bucket = self._buckets.get(entry.pattern)
        if not bucket:
            return False

        for index, candidate in enumerate(bucket):
            if candidate is entry:
                del bucket[index]
                break
        else:
            return False

        if not bucket:
            del self._buckets[entry.pattern]
        self._release(entry)
        return True

    def remove_matching(self, pattern: str, listener: ListenerFunction | str) -> int:
        """Remove entries of a pattern whose callback or id equals ``listener``."""
        bucket = self._buckets.get(pattern, [])
        targets = [
            entry for entry in bucket
            if entry.callback == listener or entry.id == listener
        ]
        for entry in targets:
            self.remove(entry)
        return len(targets)

    def clear(self, pattern: str | None = None) -> int:
        if pattern is None:
            entries = [entry for bucket in self._buckets.values() for entry in bucket]
            self._buckets.clear()
        else:
            entries = self._buckets.pop(pattern, [])
        for entry in entries:
            self._release(entry)
        return len(entries)

    def _release(self, entry: ListenerEntry) -> None:
        detach = self._detach.pop(entry, None)
        if detach is not None:
            detach()

    # ==================== Lookup ====================

    def bucket_size(self, pattern: str) -> int:
        return len(self._buckets.get(pattern, ()))

    def count(self, pattern: str | None = None) -> int:
        if pattern is None:
            return sum(len(bucket) for bucket in self._buckets.values())
        return self.bucket_size(pattern)

    def patterns(self) -> list[str]:
        return list(self._buckets)

    def contains(self, entry: ListenerEntry) -> bool:
        return any(candidate is entry for candidate in self._buckets.get(entry.pattern, ()))

    def __iter__(self) -> Iterator[ListenerEntry]:
        for bucket in list(self._buckets.values()):
            yield from list(bucket)

    def collect(self, event_name: str, delimiter: str = ":", wildcard: bool = True) -> list[ListenerEntry]:
        """Snapshot every entry whose pattern matches ``event_name``."""
        matching = find_matching_patterns(event_name, self.patterns(), delimiter, wildcard)
        entries: list[ListenerEntry] = []
        for pattern in matching:
            entries.extend(self._buckets.get(pattern, ()))
        return entries

    # ==================== Ordering ====================

    @staticmethod
    def order(entries: list[ListenerEntry]) -> list[list[ListenerEntry]]:
        """
        Group collected entries into dependency levels.

        Without any declared dependency the result is a single level in
        descending priority order. Otherwise entries are grouped by their
        longest path from a dependency-free entry, each level sorted by
        descending priority.

        Raises:
            MissingDependencyError: an ``after`` id is not among ``entries``
            CyclicDependencyError: the ``after`` graph has a cycle
        """
        if not entries:
            return []

        if not any(entry.after for entry in entries):
            return [sorted(entries, key=_sort_key)]

        ids = {entry.id for entry in entries}
        for entry in entries:
            for dep in entry.after:
                if dep not in ids:
                    raise MissingDependencyError(entry.id, dep)

        levels = dependency_levels([TopoNode(entry.id, entry.after) for entry in entries])

        grouped: dict[int, list[ListenerEntry]] = {}
        for entry in entries:
            grouped.setdefault(levels[entry.id], []).append(entry)

        return [sorted(grouped[level], key=_sort_key) for level in sorted(grouped)]
