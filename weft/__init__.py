"""
Weft - in-process event dispatch kernel
=======================================

Components register named listeners, emit named events carrying a payload
and a shared mutable context, and the kernel decides which listeners run,
in what order, and how failures are handled.

## Core Concepts

- **Kernel**: listener registry plus dispatch engine (`weft.kernel`).
  - `on(pattern, listener, id=..., after=..., priority=..., once=...)`
  - `await emit(name, data)` runs listeners concurrently, level by level
  - `await emit_serial(name, data)` runs them one after another
- **Patterns**: `user:*` matches one segment, `user:**` any number.
- **Dependencies**: `after=["a", "b"]` orders listeners within one emission.
- **Composition**: `kernel.compose([(k1, "a:ready"), (k2, "b:ready")])`
  fires a composite once every source has contributed (`weft.composition`).

## Quick Start

```python
from weft import Kernel

kernel = Kernel()

def load(event, ctx):
    event.context["user"] = {"id": event.data["id"]}

async def greet(event, ctx):
    await send_mail(event.context["user"])

kernel.on("user:created", load, id="load")
kernel.on("user:created", greet, after="load")

await kernel.emit("user:created", {"id": 42})
```
"""

from weft.composition import (
    COMPOSED_EVENT,
    Composition,
    FunctionMerger,
    NamespacedMerger,
    OverrideMerger,
)
from weft.config import CompositionConfig, KernelConfig
from weft.errors import (
    CompositionError,
    CyclicDependencyError,
    DependencyError,
    EmitError,
    ListenerContextError,
    MissingDependencyError,
    ReservedEventError,
    WeftError,
)
from weft.kernel import (
    CancellationToken,
    Kernel,
    KernelEvent,
    ListenerContext,
    create_kernel,
)
from weft.types import CompositePayload, ConflictInfo, ContextMerger, ExecutionError

__version__ = "0.1.0"

__all__ = [
    # Kernel
    "Kernel",
    "create_kernel",
    "KernelEvent",
    "ListenerContext",
    "CancellationToken",
    "ExecutionError",
    # Composition
    "Composition",
    "COMPOSED_EVENT",
    "CompositePayload",
    "ContextMerger",
    "NamespacedMerger",
    "OverrideMerger",
    "FunctionMerger",
    "ConflictInfo",
    # Config
    "KernelConfig",
    "CompositionConfig",
    # Errors
    "WeftError",
    "DependencyError",
    "MissingDependencyError",
    "CyclicDependencyError",
    "EmitError",
    "ReservedEventError",
    "ListenerContextError",
    "CompositionError",
]
