"""
Weft Kernel Module - dispatch core

Organized leaves first:
- Pattern matcher (wildcard)
- Dependency resolver (toposort)
- Listener registry
- Dispatch engine (Kernel)
"""

from weft.kernel.cancellation import CancellationToken
from weft.kernel.context import ListenerContext
from weft.kernel.event import KernelEvent
from weft.kernel.kernel import Kernel, create_kernel
from weft.kernel.registry import ListenerRegistry
from weft.kernel.toposort import TopoNode, dependency_levels, toposort
from weft.kernel.wildcard import (
    PatternCache,
    clear_pattern_cache,
    find_matching_patterns,
    get_cache_size,
    get_pattern_regex,
    has_wildcard,
    matches_pattern,
)

__all__ = [
    # Dispatch
    "Kernel",
    "create_kernel",
    "KernelEvent",
    "ListenerContext",
    "CancellationToken",
    "ListenerRegistry",
    # Dependency resolution
    "TopoNode",
    "toposort",
    "dependency_levels",
    # Pattern matching
    "PatternCache",
    "has_wildcard",
    "get_pattern_regex",
    "matches_pattern",
    "find_matching_patterns",
    "clear_pattern_cache",
    "get_cache_size",
]
