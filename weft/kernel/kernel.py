"""
Kernel - in-process event dispatch

One emission runs through: collect matching listeners -> order them ->
execute -> prune one-shot entries -> report.

执行模式：
- emit(): every listener of a dependency level is started concurrently on
  the running event loop; each level settles before the next one starts.
- emit_serial(): each listener is awaited before the next one starts.

Listener failures are isolated and collected while the error boundary is
enabled. Ordering problems (missing dependency, cycle) are configuration
errors and are always raised before any listener runs.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import AsyncIterator, Callable, Sequence
from typing import TYPE_CHECKING, Any

from weft.config import CompositionConfig, KernelConfig
from weft.errors import EmitError
from weft.kernel.cancellation import CancellationToken
from weft.kernel.context import ListenerContext
from weft.kernel.event import KernelEvent
from weft.kernel.registry import ListenerRegistry
from weft.types import ExecutionError, ListenerEntry, ListenerFunction, PredicateFunction

if TYPE_CHECKING:
    from weft.composition.composition import Composition

logger = logging.getLogger(__name__)


class Kernel:
    """
    事件内核 - listener registry plus dispatch engine

    Example:
        kernel = Kernel()

        kernel.on("user:created", load_profile, id="profile")
        kernel.on("user:created", send_welcome, after="profile")
        kernel.on("user:*", audit, priority=-10)

        await kernel.emit("user:created", {"id": 42})
    """

    def __init__(self, config: KernelConfig | None = None, **options: Any) -> None:
        """
        Args:
            config: Kernel configuration (defaults to KernelConfig())
            **options: Field overrides applied on top of ``config``
        """
        if config is None:
            config = KernelConfig(**options)
        elif options:
            config = KernelConfig(**{**dict(config), **options})
        else:
            # runtime toggles must not leak into the caller's object
            config = config.model_copy()

        self._config = config
        self._registry = ListenerRegistry()
        self._execution_errors: list[ExecutionError] = []

        if self._config.debug:
            logger.debug(
                f"Kernel initialized: delimiter={config.delimiter!r} wildcard={config.wildcard} "
                f"max_listeners={config.max_listeners} error_boundary={config.error_boundary}"
            )

    @property
    def config(self) -> KernelConfig:
        return self._config

    @property
    def registry(self) -> ListenerRegistry:
        return self._registry

    # ==================== Registration ====================

    def on(
        self,
        pattern: str,
        listener: ListenerFunction,
        *,
        id: str | None = None,
        after: str | Sequence[str] | None = None,
        priority: float = 0,
        once: bool | PredicateFunction = False,
        token: CancellationToken | None = None,
    ) -> Callable[[], None]:
        """
        Register a listener.

        Args:
            pattern: Event name or wildcard pattern
            listener: ``listener(event, ctx)``, sync or async
            id: Listener id used by ``after`` (generated when omitted)
            after: Id or ids of listeners that must complete first
            priority: Higher runs earlier among unconstrained listeners
            once: True to run once, or a predicate evaluated on the event
                after the emission; the listener is removed when it returns True
            token: Cancellation token; cancelling it unregisters the listener

        Returns:
            Function removing exactly this registration
        """
        if token is not None and token.cancelled:
            if self._config.debug:
                logger.debug(f"Listener not added (token already cancelled): event={pattern}")
            return lambda: None

        entry = self._registry.add(
            pattern,
            listener,
            id=id,
            after=after if isinstance(after, str) or after is None else tuple(after),
            priority=priority,
            once=once,
            token=token,
        )
        count = self._registry.bucket_size(pattern)

        if self._config.debug:
            logger.debug(
                f"Listener added: event={pattern} id={entry.id} priority={priority} "
                f"after={list(entry.after)} once={entry.is_one_shot} total={count}"
            )

        if self._config.max_listeners > 0 and count > self._config.max_listeners:
            logger.warning(
                f'MaxListenersExceeded: Event "{pattern}" has {count} listeners '
                f"(limit: {self._config.max_listeners})"
            )

        def unregister() -> None:
            self._remove_entry(entry)

        return unregister

    def once(self, pattern: str, listener: ListenerFunction, **options: Any) -> Callable[[], None]:
        """Register a listener that runs on the next matching emission only."""
        return self.on(pattern, listener, once=True, **options)

    def off(self, pattern: str, listener: ListenerFunction | str | None = None) -> None:
        """
        Remove listeners of a pattern.

        Args:
            pattern: Pattern the listener was registered under
            listener: Callback or listener id; None removes every listener
                of the pattern
        """
        if listener is None:
            removed = self._registry.clear(pattern)
        else:
            removed = self._registry.remove_matching(pattern, listener)

        if self._config.debug and removed:
            logger.debug(
                f"Listener removed: event={pattern} removed={removed} "
                f"remaining={self._registry.bucket_size(pattern)}"
            )

    def off_all(self, pattern: str | None = None) -> None:
        removed = self._registry.clear(pattern)
        if self._config.debug:
            logger.debug(f"All listeners removed: event={pattern or '*'} removed={removed}")

    def _remove_entry(self, entry: ListenerEntry) -> None:
        if self._registry.remove(entry) and self._config.debug:
            logger.debug(f"Listener removed: event={entry.pattern} id={entry.id}")

    # ==================== Introspection ====================

    def listener_count(self, pattern: str | None = None) -> int:
        """Listeners registered under ``pattern`` (exact key), or in total."""
        return self._registry.count(pattern)

    def event_names(self) -> list[str]:
        return self._registry.patterns()

    def resolve(self, event_name: str) -> list[list[ListenerEntry]]:
        """
        Dependency levels an emission of ``event_name`` would execute.

        Raises:
            MissingDependencyError, CyclicDependencyError
        """
        entries = self._registry.collect(event_name, self._config.delimiter, self._config.wildcard)
        return self._registry.order(entries)

    def get_execution_errors(self) -> tuple[ExecutionError, ...]:
        """Listener failures recorded by the last emission that had listeners."""
        return tuple(self._execution_errors)

    def clear_execution_errors(self) -> None:
        self._execution_errors = []

    def debug(self, enabled: bool) -> None:
        self._config.debug = enabled
        logger.debug(f"Debug mode {'enabled' if enabled else 'disabled'}")

    # ==================== Emission ====================

    def _prepare(
        self, event_name: str, data: Any, context: dict[str, Any] | None, mode: str
    ) -> tuple[list[list[ListenerEntry]], KernelEvent[Any] | None]:
        levels = self.resolve(event_name)
        if not levels:
            if self._config.debug:
                logger.debug(f"Event emitted ({mode}, no listeners): {event_name}")
            return levels, None

        if self._config.debug:
            total = sum(len(level) for level in levels)
            preview = repr(data)[:100] if data is not None else None
            logger.debug(
                f"Event emitted ({mode}): {event_name} listeners={total} "
                f"levels={len(levels)} data={preview}"
            )

        return levels, KernelEvent(event_name, data, context)

    async def emit(
        self, event_name: str, data: Any = None, *, context: dict[str, Any] | None = None
    ) -> None:
        """
        Emit an event, running listeners concurrently level by level.

        Args:
            event_name: Concrete event name
            data: Payload handed to every listener
            context: Seed for the shared context; a fresh dict when omitted

        Raises:
            MissingDependencyError, CyclicDependencyError: before any listener runs
            EmitError: with the error boundary disabled, after every listener
                settled, listing each failure
        """
        levels, event = self._prepare(event_name, data, context, "parallel")
        if event is None:
            return

        errors: list[ExecutionError] = []
        self._execution_errors = errors
        invoked: list[ListenerEntry] = []
        failures: list[Exception] = []

        for level in levels:
            results = await asyncio.gather(
                *(self._execute_listener(entry, event, errors, invoked) for entry in level),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, Exception):
                    failures.append(result)
                elif isinstance(result, BaseException):
                    raise result

        self._prune(event_name, invoked, event)
        self._execution_errors = errors

        if failures and not self._config.error_boundary:
            raise EmitError(event_name, failures)

        if self._config.debug:
            logger.debug(f"Event completed: {event_name}")

    async def emit_serial(
        self, event_name: str, data: Any = None, *, context: dict[str, Any] | None = None
    ) -> None:
        """
        Emit an event, awaiting each listener before starting the next.

        With the error boundary disabled the first failure stops the
        emission: one-shot listeners that already ran are pruned, then the
        listener's own exception is re-raised.
        """
        levels, event = self._prepare(event_name, data, context, "serial")
        if event is None:
            return

        errors: list[ExecutionError] = []
        self._execution_errors = errors
        invoked: list[ListenerEntry] = []

        for level in levels:
            for entry in level:
                try:
                    await self._execute_listener(entry, event, errors, invoked)
                except Exception:
                    self._prune(event_name, invoked, event)
                    self._execution_errors = errors
                    raise

        self._prune(event_name, invoked, event)
        self._execution_errors = errors

        if self._config.debug:
            logger.debug(f"Event completed serially: {event_name}")

    async def _execute_listener(
        self,
        entry: ListenerEntry,
        event: KernelEvent[Any],
        errors: list[ExecutionError],
        invoked: list[ListenerEntry],
    ) -> None:
        if event.is_propagation_stopped:
            if self._config.debug:
                logger.debug(f"Listener skipped (propagation stopped): {entry.id}")
            return

        invoked.append(entry)
        ctx = ListenerContext(
            entry,
            event.name,
            unregister=lambda: self._remove_entry(entry),
            emit=self.emit,
        )
        ctx._bind(event)
        start = time.perf_counter()

        if self._config.debug:
            logger.debug(
                f"Listener executing: id={entry.id} event={event.name} priority={entry.priority}"
            )

        try:
            result = entry.callback(event, ctx)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            errors.append(ExecutionError(entry.id, e, event.name))
            if self._config.debug:
                logger.debug(f"Listener error: id={entry.id} error={e}")
            if not self._config.error_boundary:
                raise
            self._report_error(e, event)
            return
        finally:
            ctx._release()

        if self._config.debug:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.debug(f"Listener completed: id={entry.id} duration={duration_ms:.1f}ms")

    def _report_error(self, error: Exception, event: KernelEvent[Any]) -> None:
        if self._config.on_error is None:
            logger.error(f"Listener error for event '{event.name}': {error}", exc_info=error)
            return

        try:
            self._config.on_error(error, event)
        except Exception:
            logger.exception(f"on_error callback failed for event '{event.name}'")

    def _prune(self, event_name: str, invoked: list[ListenerEntry], event: KernelEvent[Any]) -> None:
        """Remove one-shot entries that ran in this emission and qualify."""
        removable = [entry for entry in invoked if entry.is_one_shot and entry.should_remove(event)]
        if not removable:
            return

        if self._config.debug:
            logger.debug(f"Removing once listeners: event={event_name} count={len(removable)}")

        for entry in removable:
            self._registry.remove(entry)

    # ==================== Awaiting ====================

    async def wait_for(self, pattern: str) -> KernelEvent[Any]:
        """Wait for the next emission matching ``pattern`` and return its event."""
        future: asyncio.Future[KernelEvent[Any]] = asyncio.get_running_loop().create_future()

        def resolve(event: KernelEvent[Any], ctx: ListenerContext) -> None:
            if not future.done():
                future.set_result(event)

        unregister = self.on(pattern, resolve, once=True)
        try:
            return await future
        finally:
            unregister()

    async def events(self, pattern: str, maxsize: int = 0) -> AsyncIterator[KernelEvent[Any]]:
        """
        Iterate over every emission matching ``pattern``.

        The listener is unregistered when the generator is closed; use
        ``contextlib.aclosing`` when breaking out of the loop early.

        Args:
            pattern: Event name or wildcard pattern
            maxsize: Pending events kept for a slow consumer (0 = unbounded);
                when full the oldest pending event is dropped
        """
        queue: asyncio.Queue[KernelEvent[Any]] = asyncio.Queue(maxsize)

        def enqueue(event: KernelEvent[Any], ctx: ListenerContext) -> None:
            if queue.full():
                dropped = queue.get_nowait()
                logger.warning(f"events({pattern!r}) queue full, dropping {dropped.name}")
            queue.put_nowait(event)

        unregister = self.on(pattern, enqueue)
        try:
            while True:
                yield await queue.get()
        finally:
            unregister()

    # ==================== Composition ====================

    def compose(
        self,
        sources: Sequence[tuple[Kernel, str]],
        merger: Any = None,
        **options: Any,
    ) -> Composition:
        """
        Compose events from several kernels into one composite event.

        The kernel's ``context_merger`` and ``on_context_conflict`` are used
        unless ``merger`` / ``on_conflict`` are given.

        Args:
            sources: (kernel, event name) pairs
            merger: Context merger for this composition
            **options: Remaining CompositionConfig fields
        """
        from weft.composition.composition import Composition

        options.setdefault("on_conflict", self._config.on_context_conflict)
        config = CompositionConfig(
            merger=merger if merger is not None else self._config.context_merger,
            **options,
        )
        return Composition(sources, config)


def create_kernel(config: KernelConfig | None = None, **options: Any) -> Kernel:
    return Kernel(config, **options)
