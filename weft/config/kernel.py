"""
Kernel Configuration

Options recognised when a kernel is constructed: event name delimiter,
wildcard matching, listener cap, error boundary, debug tracing and the
defaults handed to compositions created from the kernel.
"""

from collections.abc import Callable
from typing import Any

from pydantic import Field

from weft.config.base import WeftBaseConfig
from weft.types import ContextMerger


class KernelConfig(WeftBaseConfig):
    """Kernel 配置"""

    delimiter: str = Field(
        ":",
        min_length=1,
        description="Segment delimiter used by wildcard patterns",
    )

    wildcard: bool = Field(
        True,
        description="Enable '*' and '**' pattern matching; False means exact names only",
    )

    max_listeners: int = Field(
        0,
        ge=0,
        description="Per-pattern listener count above which a warning is logged (0 = unlimited)",
    )

    error_boundary: bool = Field(
        True,
        description="Isolate listener failures instead of aborting the emission",
    )

    debug: bool = Field(
        False,
        description="Emit debug trace records for registration and dispatch",
    )

    on_error: Callable[..., Any] | None = Field(
        None,
        description="Called as on_error(error, event) for isolated listener failures",
    )

    context_merger: ContextMerger | Callable[..., Any] | None = Field(
        None,
        description="Default merger for compositions created through Kernel.compose",
    )

    on_context_conflict: Callable[..., Any] | None = Field(
        None,
        description="Default conflict callback for compositions created through Kernel.compose",
    )
