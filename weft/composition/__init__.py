"""Multi-kernel event composition."""

from weft.composition.composition import COMPOSED_EVENT, RESERVED_PREFIX, Composition
from weft.composition.mergers import (
    FunctionMerger,
    NamespacedMerger,
    OverrideMerger,
    resolve_merger,
)

__all__ = [
    "Composition",
    "COMPOSED_EVENT",
    "RESERVED_PREFIX",
    "NamespacedMerger",
    "OverrideMerger",
    "FunctionMerger",
    "resolve_merger",
]
