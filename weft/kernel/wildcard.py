"""
Wildcard pattern matching for event names

Supports:
- ``*``  single segment wildcard: exactly one non-empty segment
- ``**`` multi segment wildcard: any number of segments, including none
- Prefix, suffix, middle and catch-all forms (``user:*``, ``*:created``,
  ``api:*:get``, ``**``)

Patterns without ``*`` are compared with plain string equality. Compiled
patterns are cached per (pattern, delimiter), evicting the oldest entry
when the cache is full.
"""

from __future__ import annotations

import re
from collections import OrderedDict

DEFAULT_DELIMITER = ":"
MAX_CACHE_SIZE = 100

_TOKEN_RE = re.compile(r"(\*\*|\*)")


def has_wildcard(pattern: str) -> bool:
    return "*" in pattern


def compile_pattern(pattern: str, delimiter: str = DEFAULT_DELIMITER) -> re.Pattern[str]:
    """Translate a wildcard pattern into a regular expression for fullmatch."""
    segment = f"[^{re.escape(delimiter)}]+"
    parts = []
    for token in _TOKEN_RE.split(pattern):
        if token == "**":
            parts.append(".*")
        elif token == "*":
            parts.append(segment)
        elif token:
            parts.append(re.escape(token))
    return re.compile("".join(parts), re.DOTALL)


class PatternCache:
    """Bounded cache of compiled patterns keyed by (pattern, delimiter)."""

    def __init__(self, max_size: int = MAX_CACHE_SIZE) -> None:
        self.max_size = max_size
        self._compiled: OrderedDict[tuple[str, str], re.Pattern[str]] = OrderedDict()

    def get(self, pattern: str, delimiter: str = DEFAULT_DELIMITER) -> re.Pattern[str]:
        key = (pattern, delimiter)
        regex = self._compiled.get(key)
        if regex is None:
            regex = compile_pattern(pattern, delimiter)
            if len(self._compiled) >= self.max_size:
                self._compiled.popitem(last=False)
            self._compiled[key] = regex
        return regex

    def clear(self) -> None:
        self._compiled.clear()

    def __len__(self) -> int:
        return len(self._compiled)

    def __contains__(self, key: object) -> bool:
        return key in self._compiled


_pattern_cache = PatternCache()


def get_pattern_regex(pattern: str, delimiter: str = DEFAULT_DELIMITER) -> re.Pattern[str]:
    return _pattern_cache.get(pattern, delimiter)


def matches_pattern(event_name: str, pattern: str, delimiter: str = DEFAULT_DELIMITER) -> bool:
    """
    Test an event name against a pattern.

    Args:
        event_name: Concrete event name (never a pattern)
        pattern: Exact name or wildcard pattern
        delimiter: Segment delimiter

    Returns:
        True if the name matches
    """
    if not has_wildcard(pattern):
        return event_name == pattern
    return get_pattern_regex(pattern, delimiter).fullmatch(event_name) is not None


def find_matching_patterns(
    event_name: str,
    patterns: list[str],
    delimiter: str = DEFAULT_DELIMITER,
    wildcard: bool = True,
) -> list[str]:
    """
    Return every pattern that matches ``event_name``, keeping input order.

    With ``wildcard=False`` this is a plain equality filter.
    """
    if not wildcard:
        return [p for p in patterns if p == event_name]
    return [p for p in patterns if matches_pattern(event_name, p, delimiter)]


def clear_pattern_cache() -> None:
    _pattern_cache.clear()


def get_cache_size() -> int:
    return len(_pattern_cache)
