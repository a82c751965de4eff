"""
Composition Configuration

Buffering, reset and time-to-live policy for multi-kernel composition.
TTL values are seconds; 0 and "permanent" keep an entry until it is
superseded, "instant" keeps it only if it completes a composite at once.
"""

from collections.abc import Callable
from typing import Any, Literal

from pydantic import Field, field_validator

from weft.config.base import WeftBaseConfig
from weft.types import ContextMerger


class CompositionConfig(WeftBaseConfig):
    """Composition 配置"""

    merger: ContextMerger | Callable[..., Any] | None = Field(
        None,
        description="Context merger (default: namespaced merge)",
    )

    buffer_limit: int = Field(
        100,
        ge=1,
        description="Maximum buffered events per source (oldest evicted first)",
    )

    reset: bool = Field(
        True,
        description="Trim each buffer to its latest entry after a composite fires",
    )

    event_ttl: float = Field(
        0,
        ge=0,
        description="Global time-to-live in seconds (0 = permanent)",
    )

    event_ttls: dict[str, float | Literal["permanent", "instant"]] = Field(
        default_factory=dict,
        description="Per source event TTL overriding event_ttl",
    )

    on_conflict: Callable[..., Any] | None = Field(
        None,
        description="Called with each ConflictInfo reported by the merger",
    )

    @field_validator("event_ttls")
    @classmethod
    def _check_ttls(
        cls, value: dict[str, float | str]
    ) -> dict[str, float | str]:
        for name, ttl in value.items():
            if not isinstance(ttl, str) and ttl < 0:
                raise ValueError(f"TTL for '{name}' must be >= 0, got {ttl}")
        return value
