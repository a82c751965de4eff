"""
Composition - merges events from several kernels into one composite event

Subscribes at lowest priority to one event on each source kernel, so it
sees the context as left by that kernel's own listeners. Each source keeps
a FIFO buffer of its contributions. A composite fires when every source has
a buffered entry and every source has fired since the last composite; the
latest entry of each source is merged with the configured ContextMerger.

TTL policy per source event:
- "permanent" (or 0): entry stays until superseded or trimmed
- number > 0: entry expires after that many seconds
- "instant": entry is kept only if it completes a composite immediately
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from weft.composition.mergers import resolve_merger
from weft.config import CompositionConfig, KernelConfig
from weft.errors import CompositionError, ReservedEventError
from weft.kernel.event import KernelEvent
from weft.kernel.kernel import Kernel
from weft.types import (
    BufferedEvent,
    CompositePayload,
    ConflictInfo,
    EventName,
    ListenerFunction,
    TTLPolicy,
)

logger = logging.getLogger(__name__)

RESERVED_PREFIX = "__weft:"
COMPOSED_EVENT = "__weft:composed__"


class Composition:
    """
    Composite event over multiple kernels.

    Example:
        composition = Composition(
            [(user_kernel, "user:loaded"), (profile_kernel, "profile:loaded")],
            CompositionConfig(merger=OverrideMerger()),
        )

        def on_ready(event, ctx):
            print(event.data.merged)

        composition.on_composed(on_ready)
    """

    def __init__(
        self,
        sources: Sequence[tuple[Kernel, EventName]],
        config: CompositionConfig | None = None,
        **options: Any,
    ) -> None:
        if not sources:
            raise CompositionError("Composition requires at least one source")

        if config is None:
            config = CompositionConfig(**options)
        elif options:
            config = CompositionConfig(**{**dict(config), **options})
        else:
            config = config.model_copy(update={"event_ttls": dict(config.event_ttls)})

        self._config = config
        self._merger = resolve_merger(config.merger)
        self._kernel = Kernel(KernelConfig(error_boundary=True))

        self._subscriptions: list[Callable[[], None]] = []
        self._buffers: dict[EventName, list[BufferedEvent]] = {}
        self._source_events: list[EventName] = []
        self._fired_since_composite: set[EventName] = set()
        self._last_conflicts: list[ConflictInfo] = []
        self._expirations: dict[int, asyncio.TimerHandle] = {}
        self._expiration_ids = itertools.count(1)

        for kernel, event_name in sources:
            self._subscribe(kernel, event_name)

    @property
    def config(self) -> CompositionConfig:
        return self._config

    @property
    def sources(self) -> list[EventName]:
        return list(self._source_events)

    # ==================== Source handling ====================

    def _subscribe(self, kernel: Kernel, event_name: EventName) -> None:
        self._buffers.setdefault(event_name, [])
        if event_name not in self._source_events:
            self._source_events.append(event_name)

        async def on_source_event(event: KernelEvent[Any], ctx: Any) -> None:
            await self._handle_source_event(event_name, event)

        self._subscriptions.append(
            kernel.on(event_name, on_source_event, priority=float("-inf"))
        )

    def _effective_ttl(self, event_name: EventName) -> TTLPolicy:
        """Per-event TTL, else the global TTL, else permanent."""
        per_event = self._config.event_ttls.get(event_name)
        if per_event is not None:
            return per_event
        return self._config.event_ttl if self._config.event_ttl > 0 else "permanent"

    async def _handle_source_event(self, event_name: EventName, event: KernelEvent[Any]) -> None:
        buffer = self._buffers.get(event_name)
        if buffer is None:
            return

        ttl = self._effective_ttl(event_name)
        entry = BufferedEvent(
            name=event.name,
            data=event.data,
            context=dict(event.context),
            timestamp=event.timestamp,
        )

        buffer.append(entry)
        if len(buffer) > self._config.buffer_limit:
            del buffer[0]

        self._fired_since_composite.add(event_name)

        completed = await self._check_and_emit()

        if ttl == "instant" and not completed:
            current = self._buffers.get(event_name, [])
            if current and current[-1] is entry:
                current.pop()
            self._fired_since_composite.discard(event_name)
            return

        if not isinstance(ttl, str) and ttl > 0:
            expiration_id = next(self._expiration_ids)
            self._expirations[expiration_id] = asyncio.get_running_loop().call_later(
                ttl, self._expire, event_name, event.timestamp, expiration_id
            )

    def _expire(self, event_name: EventName, timestamp: float, expiration_id: int) -> None:
        """Drop entries at or before ``timestamp``. Never fires a composite."""
        self._expirations.pop(expiration_id, None)
        buffer = self._buffers.get(event_name)
        if buffer is None:
            return

        kept = [entry for entry in buffer if entry.timestamp > timestamp]
        self._buffers[event_name] = kept
        if not kept:
            self._fired_since_composite.discard(event_name)

        logger.debug(
            f"Composition entries expired: source={event_name} "
            f"dropped={len(buffer) - len(kept)} remaining={len(kept)}"
        )

    def _is_ready(self) -> bool:
        return all(self._buffers.get(name) for name in self._source_events) and all(
            name in self._fired_since_composite for name in self._source_events
        )

    def _latest_contexts(self) -> dict[EventName, dict[str, Any]]:
        """Latest entry of each source: mapping payload overlaid with its context."""
        contexts: dict[EventName, dict[str, Any]] = {}
        for name in self._source_events:
            buffer = self._buffers.get(name)
            if not buffer:
                continue
            latest = buffer[-1]
            data = latest.data if isinstance(latest.data, Mapping) else {}
            contexts[name] = {**data, **latest.context}
        return contexts

    async def _check_and_emit(self) -> bool:
        """Emit the composite if every source is ready. Returns True if it fired."""
        if not self._is_ready():
            return False

        if self._kernel.listener_count(COMPOSED_EVENT) == 0:
            return False

        sources = list(self._source_events)
        contexts = self._latest_contexts()
        result = self._merger.merge_with_conflicts(contexts, sources)
        self._last_conflicts = result.conflicts
        if self._config.on_conflict is not None:
            for conflict in result.conflicts:
                self._config.on_conflict(conflict)

        self._fired_since_composite.clear()
        if self._config.reset:
            for name in sources:
                buffer = self._buffers.get(name)
                if buffer:
                    self._buffers[name] = [buffer[-1]]

        await self._kernel.emit(
            COMPOSED_EVENT,
            CompositePayload(sources=sources, contexts=contexts, merged=result.context),
        )
        return True

    # ==================== Composite listeners ====================

    def on_composed(self, listener: ListenerFunction, **options: Any) -> Callable[[], None]:
        """React when every source has contributed. ``event.data`` is a CompositePayload."""
        return self._kernel.on(COMPOSED_EVENT, listener, **options)

    def off_composed(self, listener: ListenerFunction | str | None = None) -> None:
        self._kernel.off(COMPOSED_EVENT, listener)

    def composed_listener_count(self) -> int:
        return self._kernel.listener_count(COMPOSED_EVENT)

    def get_context(self) -> dict[str, Any] | None:
        """Merged context of the latest buffered entries, without firing. None until every source has one."""
        if not all(self._buffers.get(name) for name in self._source_events):
            return None

        result = self._merger.merge_with_conflicts(
            self._latest_contexts(), list(self._source_events)
        )
        self._last_conflicts = result.conflicts
        return result.context

    def get_conflicts(self) -> tuple[ConflictInfo, ...]:
        return tuple(self._last_conflicts)

    # ==================== Internal kernel delegation ====================

    def on(self, event_name: str, listener: ListenerFunction, **options: Any) -> Callable[[], None]:
        return self._kernel.on(event_name, listener, **options)

    def off(self, event_name: str, listener: ListenerFunction | str | None = None) -> None:
        self._kernel.off(event_name, listener)

    async def emit(self, event_name: str, data: Any = None) -> None:
        if event_name.startswith(RESERVED_PREFIX):
            raise ReservedEventError(event_name)
        await self._kernel.emit(event_name, data)

    def listener_count(self, event_name: str | None = None) -> int:
        return self._kernel.listener_count(event_name)

    def event_names(self) -> list[str]:
        return self._kernel.event_names()

    def off_all(self, event_name: str | None = None) -> None:
        self._kernel.off_all(event_name)

    def debug(self, enabled: bool) -> None:
        self._kernel.debug(enabled)

    # ==================== Buffers & TTL ====================

    def get_buffer(self, event_name: EventName) -> tuple[BufferedEvent, ...] | None:
        buffer = self._buffers.get(event_name)
        return tuple(buffer) if buffer is not None else None

    def clear_buffers(self) -> None:
        for name in self._source_events:
            self._buffers[name] = []
        self._fired_since_composite.clear()

    @property
    def event_ttl(self) -> float:
        return self._config.event_ttl

    @event_ttl.setter
    def event_ttl(self, ttl: float) -> None:
        self._config.event_ttl = ttl

    @property
    def event_ttls(self) -> dict[EventName, TTLPolicy]:
        return dict(self._config.event_ttls)

    def set_event_ttl_for(self, event_name: EventName, ttl: TTLPolicy) -> None:
        self._config.event_ttls = {**self._config.event_ttls, event_name: ttl}

    def clear_event_ttl_for(self, event_name: EventName) -> None:
        self._config.event_ttls = {
            name: ttl for name, ttl in self._config.event_ttls.items() if name != event_name
        }

    # ==================== Lifecycle ====================

    def dispose(self) -> None:
        """Unsubscribe from every source, cancel pending expirations, drop all state."""
        for unregister in self._subscriptions:
            unregister()
        self._subscriptions = []

        for handle in self._expirations.values():
            handle.cancel()
        self._expirations.clear()

        self._kernel.off_all()
        self._buffers.clear()
        self._source_events.clear()
        self._fired_since_composite.clear()
        self._last_conflicts = []

        logger.debug("Composition disposed")
