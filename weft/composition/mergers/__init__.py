"""Context merge strategies for composite events."""

from weft.composition.mergers.function import (
    ContextMergerFunction,
    FunctionMerger,
    resolve_merger,
)
from weft.composition.mergers.namespaced import NamespacedMerger
from weft.composition.mergers.override import OverrideMerger

__all__ = [
    "NamespacedMerger",
    "OverrideMerger",
    "FunctionMerger",
    "ContextMergerFunction",
    "resolve_merger",
]
